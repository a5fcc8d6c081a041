"""
Pytest configuration and shared fixtures.

Registers the integration marker / --run-integration option and provides
in-memory ports wired into the FastAPI app through dependency overrides.
"""

import pytest
from fastapi.testclient import TestClient
from buyer_portal.api import deps
from buyer_portal.api.main import app
from buyer_portal.core.errors import OcrServiceError
from buyer_portal.services.fee_calculator import FeeConfig
from buyer_portal.services.ocr import OcrClientBase
from buyer_portal.services.storage import InMemoryDocumentStorage, InMemoryInvoiceStore

SAMPLE_INVOICE_TEXT = """Telavox AB
Faktura
Fakturanummer 1234567890123
Fakturadatum 2026-02-13
Förfallodatum 2026-03-01
Summa (SEK) 12 500,00 (inkl. moms)
Bankgiro 5050-1055
Att betala
Förfallodatum 2026-03-15
Kvar att betala (SEK) 12 500,50 (inkl. moms)
# 9876543210123 # 12500 50 > 50501055#41#
"""


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real OCR service"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real OCR service"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeOcr(OcrClientBase):
    """Returns canned text, or raises when `error` is set."""

    def __init__(self, text: str = SAMPLE_INVOICE_TEXT, error: str | None = None):
        self.text = text
        self.error = error
        self.calls = []

    def extract_text(self, content, file_name, content_type="application/pdf"):
        self.calls.append((file_name, len(content), content_type))
        if self.error:
            raise OcrServiceError(self.error)
        return self.text


@pytest.fixture
def sample_text():
    return SAMPLE_INVOICE_TEXT


@pytest.fixture
def store():
    return InMemoryInvoiceStore()


@pytest.fixture
def documents():
    return InMemoryDocumentStorage()


@pytest.fixture
def fake_ocr():
    return FakeOcr()


@pytest.fixture
def client(store, documents, fake_ocr):
    """TestClient with in-memory ports and default pricing."""
    app.dependency_overrides[deps.get_invoice_store] = lambda: store
    app.dependency_overrides[deps.get_document_storage] = lambda: documents
    app.dependency_overrides[deps.get_ocr_client] = lambda: fake_ocr
    app.dependency_overrides[deps.get_fee_config] = lambda: FeeConfig()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def ocr_factory():
    """Build a FakeOcr with custom text or error."""
    return FakeOcr
