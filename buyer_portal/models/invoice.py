
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class InvoiceRecord(BaseModel):
    """A stored invoice. `None` means the value was not found on the document."""
    id: str
    invoice_number: str | None = None
    supplier: str
    amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    due_date: date | None = None
    ocr_number: str | None = None
    bankgiro: str | None = None
    pdf_url: str | None = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    payout_date: datetime | None = None
    payout_amount: Decimal | None = Field(default=None, ge=0)
    created_at: str
    updated_at: str


class StatusUpdateRequest(BaseModel):
    status: InvoiceStatus
    payout_date: datetime | None = None
    payout_amount: Decimal | None = Field(default=None, ge=0)


class ParseRequest(BaseModel):
    text: str = ""


class QuoteRequest(BaseModel):
    """Either an invoice_id or an amount/due_date pair, plus the extension."""
    invoice_id: str | None = None
    amount: str | float | None = None
    due_date: date | None = None
    extension_days: int
