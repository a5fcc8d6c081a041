"""
Marker-driven field extraction from Swedish invoice OCR text.

Each field has an independent heuristic evaluated line by line in a single
pass. A field that cannot be located (or whose capture does not parse) stays
None; extraction itself never fails. OCR layout is unconstrained, so results
are best-effort and are expected to go through the approval workflow before
any payout.

Precedence:
- amount, due date: last match wins (the payment slip at the bottom repeats
  them and is authoritative)
- invoice number, bankgiro, OCR reference: first match wins
- an OCR reference found before any invoice number doubles as the invoice
  number; a later explicit "fakturanummer" line replaces that alias

The supplier is not parsed from text. It is a configured constant per
integration and passed in by the caller.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from loguru import logger
from .invoice_types import ExtractionResult, FieldMatch
from .text_normalizer import NormalizedLine, normalize_text

DEFAULT_SUPPLIER = "Telavox AB"

AMOUNT_MARKERS = ("summa (sek)", "kvar att betala (sek)")
DUE_DATE_MARKER = "förfallodatum"
INVOICE_NUMBER_MARKER = "fakturanummer"
BANKGIRO_MARKER = "bankgiro"
OCR_SLIP_CHARS = ("#", ">")

VAT_QUALIFIER_PATTERN = re.compile(r"\(inkl\.?\s*moms\)", re.IGNORECASE)
# Amount directly before the qualifier: "12 500,00" or "12500,00", anchored at
# the end and not preceded by a digit, separator or whitespace
AMOUNT_PATTERN = re.compile(r"(?<![\d.,\s])\s*((?:\d{1,3}(?:\s\d{3})+|\d+)(?:,\d+)?)$")
DATE_PATTERN = re.compile(r"(?<!\d)(\d{4}-\d{2}-\d{2})(?!\d)")
LONG_NUMBER_PATTERN = re.compile(r"(?<!\d)(\d{10,})")
BANKGIRO_PATTERN = re.compile(r"(?<!\d)(\d{4}-\d{4})(?!\d)")

RULE_AMOUNT = "amount_marker"
RULE_DUE_DATE = "due_date_marker"
RULE_INVOICE_NUMBER = "invoice_number_marker"
RULE_OCR_FALLBACK = "ocr_fallback"
RULE_BANKGIRO = "bankgiro_marker"
RULE_OCR_SLIP = "ocr_slip_line"

TWO_PLACES = Decimal("0.01")


def parse_amount(raw: str) -> Decimal | None:
    """
    Parse a Swedish-formatted amount ("12 500,50") into a Decimal.

    Whitespace is a thousands separator and the decimal comma becomes a point.
    Returns None for anything that does not parse or is negative.
    """
    cleaned = re.sub(r"\s+", "", raw).replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    if value.as_tuple().exponent < -2:
        value = value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return value


def parse_iso_date(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _match_amount(line: NormalizedLine) -> Decimal | None:
    if not any(marker in line.folded for marker in AMOUNT_MARKERS):
        return None
    qualifier = VAT_QUALIFIER_PATTERN.search(line.text)
    if not qualifier:
        return None
    m = AMOUNT_PATTERN.search(line.text[:qualifier.start()].rstrip())
    if not m:
        return None
    return parse_amount(m.group(1))


def _match_due_date(line: NormalizedLine) -> date | None:
    if DUE_DATE_MARKER not in line.folded:
        return None
    m = DATE_PATTERN.search(line.text)
    if not m:
        return None
    return parse_iso_date(m.group(1))


def _match_long_number(line: NormalizedLine) -> str | None:
    m = LONG_NUMBER_PATTERN.search(line.text)
    return m.group(1) if m else None


def _match_bankgiro(line: NormalizedLine) -> str | None:
    if BANKGIRO_MARKER not in line.folded:
        return None
    m = BANKGIRO_PATTERN.search(line.text)
    return m.group(1) if m else None


def _is_ocr_slip_line(line: NormalizedLine) -> bool:
    return all(ch in line.text for ch in OCR_SLIP_CHARS)


def extract_from_lines(lines: list[NormalizedLine], supplier: str = DEFAULT_SUPPLIER) -> ExtractionResult:
    """Run every field heuristic over already-normalized lines."""
    fields: dict = {}
    matches: dict[str, FieldMatch] = {}

    def record(name, value, line, rule):
        fields[name] = value
        matches[name] = FieldMatch(
            value=str(value), line_index=line.index, line_text=line.text, rule=rule
        )

    for line in lines:
        amount = _match_amount(line)
        if amount is not None:
            record("amount", amount, line, RULE_AMOUNT)

        due_date = _match_due_date(line)
        if due_date is not None:
            record("due_date", due_date, line, RULE_DUE_DATE)

        if INVOICE_NUMBER_MARKER in line.folded:
            number = _match_long_number(line)
            current = matches.get("invoice_number")
            if number and (current is None or current.rule == RULE_OCR_FALLBACK):
                record("invoice_number", number, line, RULE_INVOICE_NUMBER)

        if "bankgiro" not in fields:
            bankgiro = _match_bankgiro(line)
            if bankgiro:
                record("bankgiro", bankgiro, line, RULE_BANKGIRO)

        if "ocr_number" not in fields and _is_ocr_slip_line(line):
            ocr_number = _match_long_number(line)
            if ocr_number:
                record("ocr_number", ocr_number, line, RULE_OCR_SLIP)
                if "invoice_number" not in fields:
                    record("invoice_number", ocr_number, line, RULE_OCR_FALLBACK)

    result = ExtractionResult(supplier=supplier, matches=matches, **fields)
    logger.info(
        "Invoice fields extracted",
        lines=len(lines),
        resolved=result.resolved_fields,
        invoice_number=result.invoice_number,
    )
    return result


def extract_fields(text: str | None, supplier: str = DEFAULT_SUPPLIER) -> ExtractionResult:
    """
    Extract structured invoice fields from raw OCR text.

    Args:
        text: Raw OCR output, possibly several pages joined by newlines
        supplier: Configured counterparty name for this integration

    Returns:
        ExtractionResult with every field either resolved or None
    """
    return extract_from_lines(normalize_text(text), supplier=supplier)
