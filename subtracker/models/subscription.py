"""
Core Data Models for Subtracker

These models define the schemas for every subscription record flowing
through the system. They are designed to:
1. Keep money as Decimal end to end
2. Keep billing dates as calendar dates (no time of day)
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: The Subscription model is deliberately permissive about
cross-field rules (e.g. split mode without my_share). Those rules belong to
the form validation layer. Records that slip past it still load, and the
cost engine degrades to zero instead of crashing the dashboard.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """Supported currencies. VND is the dashboard's display currency."""
    VND = "VND"
    USD = "USD"


class CostMode(str, Enum):
    """
    How a subscription's total amount maps to "my cost".

    FULL:  I pay the whole bill
    SPLIT: the bill is shared, I pay my_share out of split_total_users parts
    FIXED: I pay a fixed amount regardless of the bill total
    """
    FULL = "full"
    SPLIT = "split"
    FIXED = "fixed"


class BillingType(str, Enum):
    """Unit of the billing interval."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ReminderBucket(str, Enum):
    """Where a subscription sits relative to today."""
    OVERDUE = "overdue"
    TODAY = "today"
    TOMORROW = "tomorrow"
    NONE = "none"


# =============================================================================
# CORE SUBSCRIPTION MODEL
# =============================================================================

class Subscription(BaseModel):
    """
    A recurring payment obligation.

    Records are never hard-deleted. archived_at marks a soft delete and is
    terminal: archived records are excluded from every active view and are
    never advanced again.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique subscription ID"
    )

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )

    # Billing terms
    total_amount: Decimal = Field(
        ...,
        ge=0,
        description="Full price of one billing cycle"
    )
    currency: Currency
    cost_mode: CostMode = CostMode.FULL
    split_total_users: Optional[int] = Field(default=None, ge=0)
    my_share: Optional[int] = Field(default=None, ge=0)
    fixed_amount: Optional[Decimal] = Field(default=None, ge=0)
    billing_type: BillingType = BillingType.MONTHLY
    billing_interval: int = Field(
        default=1,
        ge=1,
        description="Number of billing_type units between charges"
    )
    next_billing_date: date = Field(
        ...,
        description="Next charge date (date-only)"
    )

    note: Optional[str] = Field(default=None, max_length=500)

    # Timestamps
    archived_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('next_billing_date', mode='before')
    @classmethod
    def coerce_date_only(cls, v):
        """Funnel datetimes through the date-only layer so no time zone can shift the day."""
        if isinstance(v, datetime):
            from subtracker.engine.date_only import to_date_only

            return to_date_only(v)
        return v

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class SubscriptionPayload(BaseModel):
    """
    Validated form data, ready to create or replace a subscription.

    Only produced by the form validation layer. Fields that do not belong
    to the chosen cost mode are always None.
    """

    id: Optional[UUID] = None
    name: str
    total_amount: Decimal
    currency: Currency
    cost_mode: CostMode
    split_total_users: Optional[int] = None
    my_share: Optional[int] = None
    fixed_amount: Optional[Decimal] = None
    billing_type: BillingType
    billing_interval: int
    next_billing_date: date
    note: Optional[str] = None

    def to_subscription_fields(self) -> dict:
        """Fields a storage update may replace (everything except identity)."""
        return self.model_dump(exclude={"id"})


class FormParseResult(BaseModel):
    """Outcome of parsing a submitted subscription form."""

    success: bool
    payload: Optional[SubscriptionPayload] = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    message: Optional[str] = None

    @property
    def error_count(self) -> int:
        return sum(len(messages) for messages in self.field_errors.values())
