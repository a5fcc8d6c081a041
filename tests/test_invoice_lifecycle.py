"""
Tests for the forward-only invoice lifecycle.
"""

from datetime import datetime, UTC
from decimal import Decimal
import pytest
from buyer_portal.core.errors import InvalidStatusTransition
from buyer_portal.models.invoice import InvoiceRecord, InvoiceStatus
from buyer_portal.services.invoice_lifecycle import apply_transition, ensure_transition


def make_record(status=InvoiceStatus.PENDING, amount=Decimal("87500.00")):
    return InvoiceRecord(
        id="inv-1",
        invoice_number="1234567890",
        supplier="Tjänster Sverige AB",
        amount=amount,
        status=status,
        created_at="2026-02-10T09:15:00+00:00",
        updated_at="2026-02-10T09:15:00+00:00",
    )


@pytest.mark.parametrize("current,target", [
    (InvoiceStatus.PENDING, InvoiceStatus.APPROVED),
    (InvoiceStatus.APPROVED, InvoiceStatus.PAID),
])
def test_forward_steps_allowed(current, target):
    ensure_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (InvoiceStatus.PAID, InvoiceStatus.PENDING),
    (InvoiceStatus.PAID, InvoiceStatus.APPROVED),
    (InvoiceStatus.APPROVED, InvoiceStatus.PENDING),
    (InvoiceStatus.PENDING, InvoiceStatus.PAID),
    (InvoiceStatus.PENDING, InvoiceStatus.PENDING),
    (InvoiceStatus.PAID, InvoiceStatus.PAID),
])
def test_backward_skipped_and_repeated_moves_rejected(current, target):
    with pytest.raises(InvalidStatusTransition) as exc_info:
        ensure_transition(current, target)
    assert exc_info.value.current == current.value
    assert exc_info.value.target == target.value


def test_approve_has_no_payout_details():
    approved = apply_transition(make_record(), InvoiceStatus.APPROVED)

    assert approved.status == InvoiceStatus.APPROVED
    assert approved.payout_date is None
    assert approved.payout_amount is None


def test_paid_defaults_payout_to_now_and_amount():
    record = make_record(status=InvoiceStatus.APPROVED)

    paid = apply_transition(record, InvoiceStatus.PAID)

    assert paid.status == InvoiceStatus.PAID
    assert paid.payout_amount == Decimal("87500.00")
    assert paid.payout_date is not None
    assert record.status == InvoiceStatus.APPROVED  # original untouched


def test_paid_with_explicit_payout():
    when = datetime(2026, 2, 2, 14, 30, tzinfo=UTC)
    paid = apply_transition(
        make_record(status=InvoiceStatus.APPROVED),
        InvoiceStatus.PAID,
        payout_date=when,
        payout_amount=Decimal("86625"),
    )

    assert paid.payout_date == when
    assert paid.payout_amount == Decimal("86625")


def test_payout_details_rejected_before_paid():
    with pytest.raises(InvalidStatusTransition):
        apply_transition(make_record(), InvoiceStatus.APPROVED, payout_amount=Decimal("100"))
