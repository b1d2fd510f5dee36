"""
Cost Normalization Engine

Turns a subscription's billing terms into numbers that can be compared
and summed:
- my cost:      what I pay per billing cycle (after splitting)
- monthly cost: my cost spread over the cycle length in months
- display total: monthly costs converted into one currency and summed

DESIGN DECISION: Money is decimal.Decimal everywhere in here. No float is
ever created: format_money renders the string straight from a quantized
Decimal. Rounding happens once, at display time.

The exchange rate is an argument, not ambient state. Callers read it from
settings once and pass it down.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, localcontext
from typing import Iterable, Optional, Union

import structlog

from subtracker.models.subscription import BillingType, CostMode, Currency, Subscription

logger = structlog.get_logger(__name__)

ZERO = Decimal(0)
DEFAULT_USD_TO_VND_RATE = Decimal("26000")
DISPLAY_CURRENCY = Currency.VND

# Fractional digits shown per currency
CURRENCY_DECIMALS: dict[Currency, int] = {
    Currency.USD: 2,
    Currency.VND: 0,
}


def get_interval_months(billing_type: BillingType, billing_interval: int) -> int:
    """Length of one billing cycle in months."""
    if billing_type == BillingType.YEARLY:
        return billing_interval * 12
    return billing_interval


def calculate_my_cost(subscription: Subscription) -> Decimal:
    """
    My share of one billing cycle.

    Missing mode-specific fields degrade to zero. The form validator rejects
    such records before they are saved; this only keeps a corrupted row
    from taking the whole dashboard down.
    """
    mode = subscription.cost_mode

    if mode == CostMode.FULL:
        return subscription.total_amount

    elif mode == CostMode.SPLIT:
        if not subscription.split_total_users or not subscription.my_share:
            return ZERO
        return subscription.total_amount * subscription.my_share / subscription.split_total_users

    elif mode == CostMode.FIXED:
        if subscription.fixed_amount is None:
            return ZERO
        return subscription.fixed_amount

    # Unreachable for records built through the model; only rows
    # constructed without validation get here.
    logger.warning(
        "unknown_cost_mode",
        subscription_id=str(subscription.id),
        cost_mode=str(mode),
    )
    return ZERO


def calculate_monthly_cost(subscription: Subscription) -> Decimal:
    """My cost normalized to a per-month value (unrounded)."""
    months = get_interval_months(subscription.billing_type, subscription.billing_interval)
    return calculate_my_cost(subscription) / months


def parse_exchange_rate(raw: Union[str, Decimal, int, None]) -> Decimal:
    """
    Parse a configured exchange rate.

    Falls back to DEFAULT_USD_TO_VND_RATE when the value is absent,
    non-numeric, non-finite or not strictly positive.
    """
    if raw is None:
        return DEFAULT_USD_TO_VND_RATE
    try:
        rate = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        logger.warning("invalid_exchange_rate", raw=str(raw))
        return DEFAULT_USD_TO_VND_RATE
    if not rate.is_finite() or rate <= 0:
        logger.warning("invalid_exchange_rate", raw=str(raw))
        return DEFAULT_USD_TO_VND_RATE
    return rate


def convert_to_display_currency(
    amount: Decimal,
    source_currency: Currency,
    rate: Optional[Decimal],
    display_currency: Currency = DISPLAY_CURRENCY,
) -> Decimal:
    """
    Convert an amount into the display currency.

    rate is the number of display-currency units per one unit of the other
    currency. It is never looked at when the currencies already match.
    """
    if source_currency == display_currency:
        return amount
    if rate is None or not rate.is_finite() or rate <= 0:
        rate = DEFAULT_USD_TO_VND_RATE
    return amount * rate


def calculate_monthly_total(
    subscriptions: Iterable[Subscription],
    rate: Optional[Decimal],
    display_currency: Currency = DISPLAY_CURRENCY,
) -> Decimal:
    """Sum of every subscription's monthly cost, in the display currency."""
    total = ZERO
    for subscription in subscriptions:
        total += convert_to_display_currency(
            calculate_monthly_cost(subscription),
            subscription.currency,
            rate,
            display_currency,
        )
    return total


def format_money(amount: Union[Decimal, int], currency: Currency) -> str:
    """
    Render an amount with thousands separators and the currency's precision.

    Rounds half to even at this boundary only. Precision grows with the
    amount, so very large values still format instead of raising.
    """
    digits = CURRENCY_DECIMALS.get(currency, 2)
    quantum = Decimal(1).scaleb(-digits)
    amount = Decimal(amount)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + digits + 2)
        value = amount.quantize(quantum, rounding=ROUND_HALF_EVEN)
    if value.is_zero():
        value = abs(value)
    return f"{value:,.{digits}f}"


def format_billing_frequency(billing_type: BillingType, billing_interval: int) -> str:
    if billing_type == BillingType.MONTHLY:
        return "Every month" if billing_interval == 1 else f"Every {billing_interval} months"
    return "Every year" if billing_interval == 1 else f"Every {billing_interval} years"
