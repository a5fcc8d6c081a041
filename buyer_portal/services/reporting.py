"""
Reporting over stored invoices: CSV export and dashboard figures.
"""

import csv
import io
from decimal import Decimal
from typing import Iterable
from pydantic import BaseModel
from ..models.invoice import InvoiceRecord, InvoiceStatus
from .invoice_types import CURRENCY_SUFFIX

CSV_COLUMNS = ["Fakturanummer", "Leverantör", "Belopp", "Status", "Utbetalt belopp", "Utbetalningsdatum"]


def _money(value: Decimal | None) -> str:
    return f"{value} {CURRENCY_SUFFIX}" if value is not None else ""


def export_invoices_csv(invoices: Iterable[InvoiceRecord]) -> str:
    """One comma-delimited row per invoice under the Swedish report header."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for inv in invoices:
        writer.writerow([
            inv.invoice_number or "",
            inv.supplier or "",
            _money(inv.amount),
            inv.status.value,
            _money(inv.payout_amount),
            inv.payout_date.isoformat() if inv.payout_date else "",
        ])
    return buffer.getvalue()


class InvoiceSummary(BaseModel):
    count: int = 0
    total_amount: Decimal = Decimal("0")
    total_paid_out: Decimal = Decimal("0")
    pending_count: int = 0
    approved_count: int = 0
    paid_count: int = 0


def summarize_invoices(invoices: Iterable[InvoiceRecord]) -> InvoiceSummary:
    """Dashboard totals; invoices without a resolved amount count but add nothing."""
    summary = InvoiceSummary()
    for inv in invoices:
        summary.count += 1
        if inv.amount is not None:
            summary.total_amount += inv.amount
        if inv.status == InvoiceStatus.PAID:
            summary.paid_count += 1
            summary.total_paid_out += inv.payout_amount or Decimal("0")
        elif inv.status == InvoiceStatus.APPROVED:
            summary.approved_count += 1
        else:
            summary.pending_count += 1
    return summary
