"""
Integration tests using real sample invoice PDFs with OCR.space.

These tests require an OCR.space key:
- Set OCR_SPACE_API_KEY in .env

If not configured, tests will be skipped.
"""

import pytest
from pathlib import Path
from buyer_portal.core.config import settings
from buyer_portal.services.field_extractor import extract_fields
from buyer_portal.services.invoice_types import NOT_FOUND
from buyer_portal.services.ocr import create_ocr_client

OCR_SPACE_CONFIGURED = bool(settings.ocr_space_api_key)
skip_if_no_ocr_space = pytest.mark.skipif(
    not OCR_SPACE_CONFIGURED,
    reason="OCR.space not configured (set OCR_SPACE_API_KEY)",
)

SAMPLES_DIR = Path(__file__).parent.parent / "samples" / "invoices"


@skip_if_no_ocr_space
@pytest.mark.integration
@pytest.mark.parametrize("invoice_file", ["telavox-faktura.pdf", "telavox-faktura-scan.pdf"])
def test_extract_real_invoice(invoice_file):
    """Real Swedish invoices should yield at least amount and due date"""
    pdf_path = SAMPLES_DIR / invoice_file

    if not pdf_path.exists():
        pytest.skip(f"Sample file not found: {pdf_path}")

    client = create_ocr_client(settings)
    text = client.extract_text(pdf_path.read_bytes(), invoice_file, "application/pdf")
    parsed = extract_fields(text, supplier=settings.supplier_name).to_wire()

    print(f"\n{invoice_file}: {parsed}")

    assert parsed["amount"] != NOT_FOUND
    assert parsed["amount"].endswith(" kr")
    assert parsed["dueDate"] != NOT_FOUND
