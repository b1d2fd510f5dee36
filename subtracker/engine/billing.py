"""
Billing Advancement

Moves a subscription's next billing date forward by exactly one billing
cycle. Only ever called from an explicit "mark as billed" action; nothing
in the system advances a date on its own.
"""

from datetime import date

from subtracker.engine.cost import get_interval_months
from subtracker.engine.date_only import add_months
from subtracker.models.subscription import Subscription


def advance_next_billing_date(subscription: Subscription) -> date:
    """
    The billing date one cycle after the current one.

    Day of month clamps to shorter months, so a monthly subscription billed
    on Jan 31 moves to Feb 28 (or 29). The clamped day then sticks: the
    following advance starts from the 28th, not the 31st.
    """
    month_delta = get_interval_months(
        subscription.billing_type,
        subscription.billing_interval,
    )
    return add_months(subscription.next_billing_date, month_delta)
