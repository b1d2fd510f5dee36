"""
Dashboard Models

Read-only views computed from stored subscriptions. Nothing here is
persisted; every field is derived on each dashboard render.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from subtracker.models.subscription import Currency, ReminderBucket, Subscription


class SubscriptionView(BaseModel):
    """A subscription enriched with its derived costs and reminder state."""

    subscription: Subscription
    my_cost: Decimal
    monthly_cost: Decimal
    reminder_bucket: ReminderBucket
    days_until_due: int

    @property
    def has_reminder(self) -> bool:
        return self.reminder_bucket != ReminderBucket.NONE


class DashboardSummary(BaseModel):
    """
    Everything the dashboard page shows.

    monthly_total is expressed in display_currency. Each record's monthly
    cost is converted before summing.
    """

    subscriptions: list[SubscriptionView] = Field(default_factory=list)
    reminders: list[SubscriptionView] = Field(default_factory=list)

    display_currency: Currency = Currency.VND
    exchange_rate: Decimal
    monthly_total: Decimal = Decimal(0)

    overdue_count: int = 0
    due_today_count: int = 0
    upcoming_count: int = 0
    upcoming_window_days: int = 7

    error_message: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.subscriptions
