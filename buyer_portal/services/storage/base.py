"""
Abstract storage ports.

The ingestion pipeline and API receive these as explicit dependencies, so the
backend (in-memory for tests, SQLite, a hosted database) can be swapped.
"""

import re
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, UTC
from decimal import Decimal
from pathlib import PurePath
from typing import Optional
from ...models.invoice import InvoiceRecord, InvoiceStatus
from ..invoice_types import ExtractionResult


class InvoiceStoreBase(ABC):
    """
    Abstract base class for invoice persistence.

    Implementations can use:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)
    - A hosted PostgreSQL/Supabase table (for production)
    """

    @abstractmethod
    def upsert_extraction(self, result: ExtractionResult, pdf_url: str | None = None) -> InvoiceRecord:
        """
        Insert or update the invoice described by an extraction.

        Keyed on invoice number. When the number was not found the record has
        no natural key and is always inserted as a new row. Updating an
        existing row keeps its status and payout details.

        Returns:
            The stored InvoiceRecord
        """
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        """Return the invoice or None if not found."""
        pass

    @abstractmethod
    def list_invoices(self, search: str | None = None, status: InvoiceStatus | None = None) -> list[InvoiceRecord]:
        """
        List invoices, newest first.

        Args:
            search: Case-insensitive substring of invoice number or supplier
            status: Only invoices in this lifecycle state
        """
        pass

    @abstractmethod
    def update_status(
        self,
        invoice_id: str,
        status: InvoiceStatus,
        payout_date: datetime | None = None,
        payout_amount: Decimal | None = None,
    ) -> Optional[InvoiceRecord]:
        """
        Move an invoice forward in its lifecycle.

        Returns:
            The updated record, or None if not found

        Raises:
            InvalidStatusTransition: for backward, repeated or skipped moves
        """
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> bool:
        """Delete an invoice. Returns False if it did not exist."""
        pass


class DocumentStorageBase(ABC):
    """Stores uploaded invoice files and hands back a URL to them."""

    @abstractmethod
    def upload(self, file_name: str, content: bytes, content_type: str = "application/pdf") -> str:
        """Store the file (overwriting any same-named file) and return its URL."""
        pass


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def matches_search(invoice: InvoiceRecord, term: str | None) -> bool:
    """Case-insensitive substring match on invoice number or supplier."""
    if not term:
        return True
    needle = term.casefold()
    return needle in (invoice.invoice_number or "").casefold() or needle in (invoice.supplier or "").casefold()


def build_document_name(invoice_number: str | None, original_name: str) -> str:
    """
    "<invoice number>-<file name>" with whitespace replaced by underscores.

    Falls back to the current epoch milliseconds when there is no invoice
    number. Directory components of the original name are dropped.
    """
    prefix = invoice_number or str(int(time.time() * 1000))
    base = PurePath(original_name.replace("\\", "/")).name or "document"
    safe = re.sub(r"\s", "_", base)
    return f"{prefix}-{safe}"


def record_from_extraction(
    result: ExtractionResult,
    pdf_url: str | None,
    existing: InvoiceRecord | None = None,
) -> InvoiceRecord:
    """Build the record to store; an existing record keeps id, lifecycle and created_at."""
    timestamp = now_iso()
    fields = {
        "invoice_number": result.invoice_number,
        "supplier": result.supplier,
        "amount": result.amount,
        "due_date": result.due_date,
        "ocr_number": result.ocr_number,
        "bankgiro": result.bankgiro,
        "pdf_url": pdf_url,
        "updated_at": timestamp,
    }
    if existing is not None:
        if pdf_url is None:
            fields.pop("pdf_url")
        return existing.model_copy(update=fields)
    return InvoiceRecord(id=str(uuid.uuid4()), created_at=timestamp, **fields)
