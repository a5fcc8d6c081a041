"""
Forward-only invoice lifecycle: pending -> approved -> paid.

Payout details belong to the paid state only. Stores call apply_transition
so the rules live in one place regardless of backend.
"""

from datetime import datetime, UTC
from decimal import Decimal
from loguru import logger
from ..core.errors import InvalidStatusTransition
from ..models.invoice import InvoiceRecord, InvoiceStatus

NEXT_STATUS = {
    InvoiceStatus.PENDING: InvoiceStatus.APPROVED,
    InvoiceStatus.APPROVED: InvoiceStatus.PAID,
}


def ensure_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
    """Raise InvalidStatusTransition unless target is the next step after current."""
    if NEXT_STATUS.get(InvoiceStatus(current)) != InvoiceStatus(target):
        raise InvalidStatusTransition(InvoiceStatus(current).value, InvoiceStatus(target).value)


def apply_transition(
    record: InvoiceRecord,
    target: InvoiceStatus,
    payout_date: datetime | None = None,
    payout_amount: Decimal | None = None,
) -> InvoiceRecord:
    """
    Return a copy of record moved to target.

    Moving to paid stamps payout_date (default: now) and payout_amount
    (default: the invoice amount). Supplying payout details for any other
    target is rejected.
    """
    target = InvoiceStatus(target)
    ensure_transition(record.status, target)

    now = datetime.now(UTC)
    update = {"status": target, "updated_at": now.isoformat()}

    if target == InvoiceStatus.PAID:
        update["payout_date"] = payout_date or now
        update["payout_amount"] = payout_amount if payout_amount is not None else record.amount
    elif payout_date is not None or payout_amount is not None:
        raise InvalidStatusTransition(record.status.value, f"{target.value} (with payout details)")

    logger.info(
        "Invoice status changed",
        invoice_id=record.id,
        invoice_number=record.invoice_number,
        from_status=record.status.value,
        to_status=target.value,
    )
    return record.model_copy(update=update)
