"""
Tests for the upload pipeline with injected fakes.
"""

from decimal import Decimal
import pytest
from buyer_portal.core.errors import OcrServiceError, PersistenceError
from buyer_portal.services.ingestion import ingest_document
from buyer_portal.services.storage import DocumentStorageBase, InvoiceStoreBase


class BrokenStorage(DocumentStorageBase):
    def upload(self, file_name, content, content_type="application/pdf"):
        raise ConnectionError("storage bucket unavailable")


def test_ingest_stores_file_and_record(fake_ocr, store, documents):
    outcome = ingest_document(
        b"%PDF-1.4", "faktura feb.pdf", "application/pdf",
        ocr=fake_ocr, store=store, documents=documents, supplier="Telavox AB",
    )

    assert outcome.pdf_url == "memory://invoices/1234567890123-faktura_feb.pdf"
    assert outcome.invoice.invoice_number == "1234567890123"
    assert outcome.invoice.amount == Decimal("12500.50")
    assert store.get_invoice(outcome.invoice.id) is not None
    assert "1234567890123-faktura_feb.pdf" in documents.files
    assert fake_ocr.calls == [("faktura feb.pdf", 8, "application/pdf")]


def test_ocr_failure_stores_nothing(store, documents, ocr_factory):
    ocr = ocr_factory(error="OCR failed")

    with pytest.raises(OcrServiceError):
        ingest_document(b"x", "a.pdf", "application/pdf", ocr=ocr, store=store, documents=documents)

    assert store.list_invoices() == []
    assert documents.files == {}


def test_persistence_failure_carries_extraction(fake_ocr, store):
    with pytest.raises(PersistenceError) as exc_info:
        ingest_document(
            b"x", "a.pdf", "application/pdf",
            ocr=fake_ocr, store=store, documents=BrokenStorage(),
        )

    assert "storage bucket unavailable" in exc_info.value.message
    assert exc_info.value.extraction.invoice_number == "1234567890123"
    assert store.list_invoices() == []


def test_store_persistence_error_is_rewrapped_with_extraction(fake_ocr, documents):
    class FailingStore(InvoiceStoreBase):
        def upsert_extraction(self, result, pdf_url=None):
            raise PersistenceError("database locked")

        def get_invoice(self, invoice_id):
            return None

        def list_invoices(self, search=None, status=None):
            return []

        def update_status(self, invoice_id, status, payout_date=None, payout_amount=None):
            return None

        def delete_invoice(self, invoice_id):
            return False

    with pytest.raises(PersistenceError) as exc_info:
        ingest_document(b"x", "a.pdf", "application/pdf", ocr=fake_ocr, store=FailingStore(), documents=documents)

    assert exc_info.value.message == "database locked"
    assert exc_info.value.extraction is not None


def test_unreadable_document_is_saved_without_key(store, documents, ocr_factory):
    ocr = ocr_factory(text="")

    outcome = ingest_document(b"x", "blank.pdf", "application/pdf", ocr=ocr, store=store, documents=documents)

    assert outcome.invoice.invoice_number is None
    assert outcome.extraction.to_wire()["invoiceNumber"] == "Ej hittat"
