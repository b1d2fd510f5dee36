"""
Data Models Package

This package contains all Pydantic models used in Subtracker.
All data flowing through the system must conform to these schemas.
"""

from subtracker.models.subscription import (
    BillingType,
    CostMode,
    Currency,
    FormParseResult,
    ReminderBucket,
    Subscription,
    SubscriptionPayload,
    utc_now,
)
from subtracker.models.dashboard import (
    DashboardSummary,
    SubscriptionView,
)
from subtracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Subscription models
    "BillingType",
    "CostMode",
    "Currency",
    "FormParseResult",
    "ReminderBucket",
    "Subscription",
    "SubscriptionPayload",
    "utc_now",
    # Dashboard models
    "DashboardSummary",
    "SubscriptionView",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
