"""Reminder classification by days until the next billing date."""

from datetime import date, datetime
from typing import Optional, Union

from subtracker.engine.date_only import days_between
from subtracker.models.subscription import ReminderBucket


def get_reminder_bucket(
    next_billing_date: Union[date, datetime],
    now: Optional[Union[date, datetime]] = None,
) -> ReminderBucket:
    # Compare by date-only values so reminders stay stable across timezones.
    day_diff = days_between(next_billing_date, now)

    if day_diff < 0:
        return ReminderBucket.OVERDUE

    if day_diff == 0:
        return ReminderBucket.TODAY

    if day_diff == 1:
        return ReminderBucket.TOMORROW

    return ReminderBucket.NONE
