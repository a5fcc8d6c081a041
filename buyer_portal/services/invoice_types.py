
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, ConfigDict

# Literal placeholder used on the wire (API responses, CSV) for unresolved fields.
# Internally an unresolved field is always None.
NOT_FOUND = "Ej hittat"

CURRENCY_SUFFIX = "kr"


def format_amount(amount: Decimal | None) -> str:
    """Render an amount as "<number> kr", or the sentinel when missing."""
    if amount is None:
        return NOT_FOUND
    return f"{amount} {CURRENCY_SUFFIX}"


class FieldMatch(BaseModel):
    """Which line decided a field, and by which rule."""
    model_config = ConfigDict(frozen=True)

    value: str
    line_index: int
    line_text: str
    rule: str


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    supplier: str
    amount: Decimal | None = None
    due_date: date | None = None
    invoice_number: str | None = None
    ocr_number: str | None = None
    bankgiro: str | None = None
    matches: dict[str, FieldMatch] = {}

    @property
    def resolved_fields(self) -> list[str]:
        return [
            name for name in ("amount", "due_date", "invoice_number", "ocr_number", "bankgiro")
            if getattr(self, name) is not None
        ]

    def to_wire(self) -> dict:
        """External record shape; unresolved fields carry NOT_FOUND."""
        return {
            "amount": format_amount(self.amount),
            "dueDate": self.due_date.isoformat() if self.due_date else NOT_FOUND,
            "supplier": self.supplier,
            "invoiceNumber": self.invoice_number or NOT_FOUND,
            "ocrNumber": self.ocr_number or NOT_FOUND,
            "bankgiro": self.bankgiro or NOT_FOUND,
        }
