"""
Display helpers shared by the Streamlit pages.

Nothing here touches storage or settings; every function maps a value to
the text the UI shows for it.
"""

from decimal import Decimal

from subtracker.engine.cost import format_money
from subtracker.models.subscription import CostMode, Currency, ReminderBucket, Subscription

REMINDER_LABELS = {
    ReminderBucket.OVERDUE: "Overdue",
    ReminderBucket.TODAY: "Due Today",
    ReminderBucket.TOMORROW: "Due Tomorrow",
    ReminderBucket.NONE: "",
}

# Streamlit colored-text names used for reminder badges
REMINDER_COLORS = {
    ReminderBucket.OVERDUE: "red",
    ReminderBucket.TODAY: "orange",
    ReminderBucket.TOMORROW: "green",
    ReminderBucket.NONE: "gray",
}


def reminder_label(bucket: ReminderBucket) -> str:
    return REMINDER_LABELS[bucket]


def reminder_badge(bucket: ReminderBucket) -> str:
    """Markdown badge for a reminder bucket, empty for NONE."""
    if bucket == ReminderBucket.NONE:
        return ""
    return f":{REMINDER_COLORS[bucket]}[**{REMINDER_LABELS[bucket]}**]"


def render_amount(amount: Decimal, currency: Currency) -> str:
    """Money followed by its currency code, e.g. '100,000 VND'."""
    return f"{format_money(amount, currency)} {currency.value}"


def logo_monogram(name: str) -> str:
    """
    Two-letter badge text for a subscription card.

    First two letters of a one-word name, initials of the first two words
    otherwise, "SB" for a blank name.
    """
    parts = name.split()
    if not parts:
        return "SB"
    if len(parts) == 1:
        return parts[0][:2].upper()
    return f"{parts[0][0]}{parts[1][0]}".upper()


def cost_mode_description(subscription: Subscription) -> str:
    """Short explanation of how my cost is derived."""
    if subscription.cost_mode == CostMode.SPLIT:
        return f"Split: {subscription.my_share or 0} of {subscription.split_total_users or 0} shares"
    elif subscription.cost_mode == CostMode.FIXED:
        return "Fixed amount"
    return "Full amount"
