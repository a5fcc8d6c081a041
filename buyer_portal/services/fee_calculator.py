"""
FortusFlex financing quotes.

We pay the supplier now; the buyer pays us at a later due date plus a fee.
Two pricing models exist and the active one is a deployment setting:

- per_period: fee = amount * rate_per_period * ceil(days / 30)
- per_day:    fee = amount * rate_per_day * days

Which model is the product default still needs confirmation, so neither is
hard-wired; `GET /financing/options` reports the active one.
"""

import math
import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from loguru import logger
from pydantic import BaseModel, ConfigDict
from .invoice_types import NOT_FOUND, CURRENCY_SUFFIX

PERIOD_DAYS = 30
TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class PricingModel(str, Enum):
    PER_PERIOD = "per_period"
    PER_DAY = "per_day"


class InvalidExtensionError(ValueError):
    """Requested extension is outside the configured slider domain."""


class ExtensionPolicy(BaseModel):
    """Allowed extension lengths: min_days..max_days in steps of step_days."""
    model_config = ConfigDict(frozen=True)

    min_days: int = 15
    max_days: int = 90
    step_days: int = 15

    def allowed_days(self) -> list[int]:
        return list(range(self.min_days, self.max_days + 1, self.step_days))

    def validate_days(self, extension_days: int) -> int:
        if extension_days not in self.allowed_days():
            raise InvalidExtensionError(
                f"extension_days must be between {self.min_days} and {self.max_days} "
                f"in steps of {self.step_days} (got {extension_days})"
            )
        return extension_days


QUARTER_MONTH_POLICY = ExtensionPolicy(min_days=15, max_days=90, step_days=15)
TEN_DAY_POLICY = ExtensionPolicy(min_days=30, max_days=90, step_days=10)


class FeeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    pricing_model: PricingModel = PricingModel.PER_PERIOD
    fee_rate_per_period: Decimal = Decimal("0.015")
    fee_rate_per_day: Decimal = Decimal("0.0005")
    policy: ExtensionPolicy = QUARTER_MONTH_POLICY

    @property
    def active_rate(self) -> Decimal:
        if self.pricing_model == PricingModel.PER_DAY:
            return self.fee_rate_per_day
        return self.fee_rate_per_period

    @classmethod
    def from_settings(cls, settings) -> "FeeConfig":
        return cls(
            pricing_model=PricingModel(settings.pricing_model),
            # go through str() so 0.015 does not become 0.01499999...
            fee_rate_per_period=Decimal(str(settings.fee_rate_per_period)),
            fee_rate_per_day=Decimal(str(settings.fee_rate_per_day)),
            policy=ExtensionPolicy(
                min_days=settings.extension_min_days,
                max_days=settings.extension_max_days,
                step_days=settings.extension_step_days,
            ),
        )


class FinancingQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    fee: Decimal
    total_cost: Decimal
    new_due_date: date | None
    periods: int
    extension_days: int
    pricing_model: PricingModel
    fee_rate: Decimal

    @property
    def is_zero(self) -> bool:
        return self.total_cost == ZERO

    def to_wire(self) -> dict:
        return {
            "fee": str(self.fee),
            "totalCost": str(self.total_cost),
            "newDueDate": self.new_due_date.isoformat() if self.new_due_date else "",
            "periods": self.periods,
            "extensionDays": self.extension_days,
            "pricingModel": self.pricing_model.value,
            "feeRate": str(self.fee_rate),
        }


def periods_for(extension_days: int) -> int:
    """Number of started 30-day periods; 31 days is two periods."""
    return math.ceil(extension_days / PERIOD_DAYS)


def coerce_amount(amount) -> Decimal | None:
    """
    Best-effort conversion of a stored or extracted amount to Decimal.

    Accepts Decimal, int, float or strings such as "12 500,00" and
    "12500.00 kr". Returns None for None, the NOT_FOUND sentinel, negative
    values and anything unparsable.
    """
    if amount is None or isinstance(amount, bool):
        return None
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float)):
        value = Decimal(str(amount))
    elif isinstance(amount, str):
        text = amount.strip()
        if not text or text == NOT_FOUND:
            return None
        if text.lower().endswith(CURRENCY_SUFFIX):
            text = text[: -len(CURRENCY_SUFFIX)]
        text = re.sub(r"\s+", "", text).replace(",", ".")
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not value.is_finite() or value < 0:
        return None
    return value


def _money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_quote(
    amount,
    original_due_date: date | None,
    extension_days: int,
    config: FeeConfig | None = None,
) -> FinancingQuote:
    """
    Compute fee, total cost and new due date for a payment extension.

    An unresolved amount gives a zero quote (fee 0, total 0, no due date)
    instead of an error. An extension outside the policy raises
    InvalidExtensionError.
    """
    config = config or FeeConfig()
    config.policy.validate_days(extension_days)
    periods = periods_for(extension_days)

    principal = coerce_amount(amount)
    if principal is None:
        logger.info("Amount unresolved, returning zero quote", amount=str(amount))
        return FinancingQuote(
            fee=ZERO,
            total_cost=ZERO,
            new_due_date=None,
            periods=periods,
            extension_days=extension_days,
            pricing_model=config.pricing_model,
            fee_rate=config.active_rate,
        )

    if config.pricing_model == PricingModel.PER_DAY:
        fee = principal * config.fee_rate_per_day * extension_days
    else:
        fee = principal * config.fee_rate_per_period * periods

    fee = _money(fee)
    new_due_date = original_due_date + timedelta(days=extension_days) if original_due_date else None

    return FinancingQuote(
        fee=fee,
        total_cost=_money(principal + fee),
        new_due_date=new_due_date,
        periods=periods,
        extension_days=extension_days,
        pricing_model=config.pricing_model,
        fee_rate=config.active_rate,
    )
