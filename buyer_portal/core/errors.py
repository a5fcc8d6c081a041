"""
Exception hierarchy for the buyer portal.

    PortalError (base)
    ├── OcrServiceError          upstream OCR call failed or returned an error payload
    ├── PersistenceError         document upload or invoice upsert failed
    ├── InvoiceNotFound
    └── InvalidStatusTransition  lifecycle move that is not pending -> approved -> paid

InvalidExtensionError lives next to the fee calculator and is a ValueError.
"""


class PortalError(Exception):
    """Base class; carries a one-line message for the caller plus optional details."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class OcrServiceError(PortalError):
    pass


class PersistenceError(PortalError):
    """
    Raised when the extracted invoice could not be saved.

    `extraction` holds the result that was read successfully so the caller can
    report that OCR worked but saving did not.
    """

    def __init__(self, message: str, extraction=None, details: dict | None = None):
        super().__init__(message, details)
        self.extraction = extraction


class InvoiceNotFound(PortalError):
    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice not found: {invoice_id}", {"invoice_id": invoice_id})
        self.invoice_id = invoice_id


class InvalidStatusTransition(PortalError):
    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move invoice from '{current}' to '{target}'",
            {"current": current, "target": target},
        )
        self.current = current
        self.target = target
