"""
Flat column layout shared by the tabular backends.

Every value is stored as text: Decimals as their exact string form, dates as
YYYY-MM-DD, timestamps as ISO 8601. Nothing passes through float.
"""

from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional
from uuid import UUID

from subtracker.engine.date_only import from_date_only_string, to_date_only_string
from subtracker.models.subscription import (
    BillingType,
    CostMode,
    Currency,
    Subscription,
)

SUBSCRIPTION_COLUMNS = [
    "id",
    "name",
    "total_amount",
    "currency",
    "cost_mode",
    "split_total_users",
    "my_share",
    "fixed_amount",
    "billing_type",
    "billing_interval",
    "next_billing_date",
    "note",
    "archived_at",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _optional_str(value) -> str:
    return "" if value is None else str(value)


def subscription_to_record(subscription: Subscription) -> dict[str, str]:
    """Convert a Subscription to {column: text}."""
    return {
        "id": str(subscription.id),
        "name": subscription.name,
        "total_amount": str(subscription.total_amount),
        "currency": subscription.currency.value,
        "cost_mode": subscription.cost_mode.value,
        "split_total_users": _optional_str(subscription.split_total_users),
        "my_share": _optional_str(subscription.my_share),
        "fixed_amount": _optional_str(subscription.fixed_amount),
        "billing_type": subscription.billing_type.value,
        "billing_interval": str(subscription.billing_interval),
        "next_billing_date": to_date_only_string(subscription.next_billing_date),
        "note": subscription.note or "",
        "archived_at": subscription.archived_at.isoformat() if subscription.archived_at else "",
        "created_at": subscription.created_at.isoformat(),
        "updated_at": subscription.updated_at.isoformat(),
    }


def record_to_subscription(record: Mapping[str, Optional[str]]) -> Subscription:
    """Inverse of subscription_to_record. Empty and NULL both read as missing."""
    def get(column: str) -> str:
        value = record.get(column)
        return "" if value is None else str(value)

    return Subscription(
        id=UUID(get("id")),
        name=get("name"),
        total_amount=Decimal(get("total_amount")),
        currency=Currency(get("currency")),
        cost_mode=CostMode(get("cost_mode")),
        split_total_users=int(get("split_total_users")) if get("split_total_users") else None,
        my_share=int(get("my_share")) if get("my_share") else None,
        fixed_amount=Decimal(get("fixed_amount")) if get("fixed_amount") else None,
        billing_type=BillingType(get("billing_type")),
        billing_interval=int(get("billing_interval")),
        next_billing_date=from_date_only_string(get("next_billing_date")),
        note=get("note") or None,
        archived_at=datetime.fromisoformat(get("archived_at")) if get("archived_at") else None,
        created_at=datetime.fromisoformat(get("created_at")),
        updated_at=datetime.fromisoformat(get("updated_at")),
    )
