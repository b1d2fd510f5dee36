"""
Dashboard Query Engine

DESIGN DECISION: The dashboard is computed, never stored.
Every render reads the active subscriptions once and derives costs,
reminder buckets, counts and the display-currency total from them.
There is no cached total that could drift from the records.

The exchange rate and display currency are injected, so a summary can be
rebuilt for any rate without touching settings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from subtracker.engine.cost import (
    DISPLAY_CURRENCY,
    ZERO,
    calculate_monthly_cost,
    calculate_my_cost,
    convert_to_display_currency,
)
from subtracker.engine.date_only import days_between
from subtracker.engine.reminder import get_reminder_bucket
from subtracker.models.dashboard import DashboardSummary, SubscriptionView
from subtracker.models.subscription import Currency, ReminderBucket, Subscription
from subtracker.services.storage import StorageError, SubscriptionStorageInterface

logger = structlog.get_logger(__name__)

# Reminder list order; "none" never appears in it
REMINDER_ORDER = [
    ReminderBucket.OVERDUE,
    ReminderBucket.TODAY,
    ReminderBucket.TOMORROW,
]


def build_view(
    subscription: Subscription,
    now: Optional[Union[date, datetime]] = None,
) -> SubscriptionView:
    """Enrich one subscription with its derived values."""
    return SubscriptionView(
        subscription=subscription,
        my_cost=calculate_my_cost(subscription),
        monthly_cost=calculate_monthly_cost(subscription),
        reminder_bucket=get_reminder_bucket(subscription.next_billing_date, now),
        days_until_due=days_between(subscription.next_billing_date, now),
    )


def summarize(
    subscriptions: Iterable[Subscription],
    exchange_rate: Decimal,
    now: Optional[Union[date, datetime]] = None,
    display_currency: Currency = DISPLAY_CURRENCY,
    upcoming_window_days: int = 7,
) -> DashboardSummary:
    """
    Build the dashboard from a list of subscriptions.

    Archived records are skipped even if the caller passes them in.
    Reminder order is overdue, today, tomorrow; within a bucket the input
    order (due date, then name) is kept.
    """
    if now is None:
        now = datetime.now()

    views = []
    total = ZERO
    overdue_count = 0
    due_today_count = 0
    upcoming_count = 0

    for subscription in subscriptions:
        if subscription.is_archived:
            continue

        view = build_view(subscription, now)
        views.append(view)

        total += convert_to_display_currency(
            view.monthly_cost,
            subscription.currency,
            exchange_rate,
            display_currency,
        )

        if view.reminder_bucket == ReminderBucket.OVERDUE:
            overdue_count += 1
        if view.reminder_bucket == ReminderBucket.TODAY:
            due_today_count += 1
        if 0 <= view.days_until_due <= upcoming_window_days:
            upcoming_count += 1

    # sorted() is stable, so due-date order survives within each bucket
    reminders = sorted(
        (view for view in views if view.has_reminder),
        key=lambda view: REMINDER_ORDER.index(view.reminder_bucket),
    )

    return DashboardSummary(
        subscriptions=views,
        reminders=reminders,
        display_currency=display_currency,
        exchange_rate=exchange_rate,
        monthly_total=total,
        overdue_count=overdue_count,
        due_today_count=due_today_count,
        upcoming_count=upcoming_count,
        upcoming_window_days=upcoming_window_days,
    )


class DashboardQuery:
    """
    Reads active subscriptions from storage and summarizes them.

    GUARANTEES:
    - Only real stored data is shown
    - A storage failure yields an empty summary with error_message set,
      never a partial total
    """

    def __init__(
        self,
        storage: SubscriptionStorageInterface,
        exchange_rate: Decimal,
        display_currency: Currency = DISPLAY_CURRENCY,
        upcoming_window_days: int = 7,
    ):
        self._storage = storage
        self._exchange_rate = exchange_rate
        self._display_currency = display_currency
        self._upcoming_window_days = upcoming_window_days

    async def build(
        self,
        now: Optional[Union[date, datetime]] = None,
    ) -> DashboardSummary:
        try:
            subscriptions = await self._storage.list_active()
        except StorageError as e:
            logger.error("dashboard_load_failed", error=str(e))
            return DashboardSummary(
                display_currency=self._display_currency,
                exchange_rate=self._exchange_rate,
                upcoming_window_days=self._upcoming_window_days,
                error_message=str(e),
            )

        return summarize(
            subscriptions,
            exchange_rate=self._exchange_rate,
            now=now,
            display_currency=self._display_currency,
            upcoming_window_days=self._upcoming_window_days,
        )
