"""
In-memory storage (for tests and local demos).
In production, use SQLite or a hosted database.
"""
import threading
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from ...models.invoice import InvoiceRecord, InvoiceStatus
from ..invoice_lifecycle import apply_transition
from ..invoice_types import ExtractionResult
from .base import DocumentStorageBase, InvoiceStoreBase, matches_search, record_from_extraction


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        self._invoices: Dict[str, InvoiceRecord] = {}
        self._lock = threading.Lock()

    def upsert_extraction(self, result: ExtractionResult, pdf_url: str | None = None) -> InvoiceRecord:
        with self._lock:
            existing = None
            if result.invoice_number is not None:
                existing = next(
                    (inv for inv in self._invoices.values() if inv.invoice_number == result.invoice_number),
                    None,
                )
            record = record_from_extraction(result, pdf_url, existing)
            self._invoices[record.id] = record
            return record

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        return self._invoices.get(invoice_id)

    def list_invoices(self, search: str | None = None, status: InvoiceStatus | None = None) -> list[InvoiceRecord]:
        invoices = [
            inv for inv in self._invoices.values()
            if matches_search(inv, search) and (status is None or inv.status == status)
        ]
        return sorted(invoices, key=lambda inv: inv.created_at, reverse=True)

    def update_status(
        self,
        invoice_id: str,
        status: InvoiceStatus,
        payout_date: datetime | None = None,
        payout_amount: Decimal | None = None,
    ) -> Optional[InvoiceRecord]:
        with self._lock:
            record = self._invoices.get(invoice_id)
            if record is None:
                return None
            updated = apply_transition(record, status, payout_date, payout_amount)
            self._invoices[invoice_id] = updated
            return updated

    def delete_invoice(self, invoice_id: str) -> bool:
        with self._lock:
            return self._invoices.pop(invoice_id, None) is not None

    def clear(self):
        with self._lock:
            self._invoices.clear()


class InMemoryDocumentStorage(DocumentStorageBase):
    def __init__(self, base_url: str = "memory://invoices"):
        self.base_url = base_url.rstrip("/")
        self.files: Dict[str, tuple[bytes, str]] = {}

    def upload(self, file_name: str, content: bytes, content_type: str = "application/pdf") -> str:
        self.files[file_name] = (content, content_type)
        return f"{self.base_url}/{file_name}"
