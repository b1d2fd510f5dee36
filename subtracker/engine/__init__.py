"""
Billing engine package.

Pure functions only: no I/O, no settings lookups, no clock reads except
where a "now" argument is left at its default.
"""

from subtracker.engine.billing import advance_next_billing_date
from subtracker.engine.cost import (
    CURRENCY_DECIMALS,
    DEFAULT_USD_TO_VND_RATE,
    DISPLAY_CURRENCY,
    calculate_monthly_cost,
    calculate_monthly_total,
    calculate_my_cost,
    convert_to_display_currency,
    format_billing_frequency,
    format_money,
    get_interval_months,
    parse_exchange_rate,
)
from subtracker.engine.date_only import (
    add_months,
    days_between,
    format_date_only,
    from_date_only_string,
    is_valid_date_only_string,
    normalize,
    to_date_only,
    to_date_only_string,
)
from subtracker.engine.reminder import get_reminder_bucket

__all__ = [
    # Billing
    "advance_next_billing_date",
    # Cost
    "CURRENCY_DECIMALS",
    "DEFAULT_USD_TO_VND_RATE",
    "DISPLAY_CURRENCY",
    "calculate_monthly_cost",
    "calculate_monthly_total",
    "calculate_my_cost",
    "convert_to_display_currency",
    "format_billing_frequency",
    "format_money",
    "get_interval_months",
    "parse_exchange_rate",
    # Date-only
    "add_months",
    "days_between",
    "format_date_only",
    "from_date_only_string",
    "is_valid_date_only_string",
    "normalize",
    "to_date_only",
    "to_date_only_string",
    # Reminders
    "get_reminder_bucket",
]
