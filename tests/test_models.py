"""
Tests for Subtracker models

Test strategy:
1. Unit tests for individual components (models, engine, validators)
2. Integration tests for flows against a temporary SQLite database
3. No real API calls in tests (Google Sheets is mocked)
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from subtracker.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    BillingType,
    CostMode,
    Currency,
    DashboardSummary,
    FormParseResult,
    ReminderBucket,
    Subscription,
    SubscriptionView,
)
from subtracker.services.storage.columns import (
    AUDIT_COLUMNS,
    SUBSCRIPTION_COLUMNS,
    record_to_subscription,
    subscription_to_record,
)


class TestSubscriptionModel:
    """Tests for the Subscription model."""

    def test_defaults(self):
        """Mode, billing type and interval default to full/monthly/1."""
        sub = Subscription(
            name="iCloud",
            total_amount=Decimal("2.99"),
            currency=Currency.USD,
            next_billing_date=date(2024, 3, 1),
        )
        assert sub.cost_mode == CostMode.FULL
        assert sub.billing_type == BillingType.MONTHLY
        assert sub.billing_interval == 1
        assert sub.archived_at is None
        assert sub.is_archived is False
        assert sub.created_at.tzinfo is not None

    def test_name_strips_whitespace(self):
        sub = Subscription(
            name="  Netflix  ",
            total_amount=Decimal("1"),
            currency=Currency.VND,
            next_billing_date=date(2024, 3, 1),
        )
        assert sub.name == "Netflix"

    def test_rejects_negative_amount(self):
        """Negative amounts are rejected."""
        with pytest.raises(ValueError):
            Subscription(
                name="Test",
                total_amount=Decimal("-1"),
                currency=Currency.VND,
                next_billing_date=date(2024, 3, 1),
            )

    def test_rejects_zero_interval(self):
        with pytest.raises(ValueError):
            Subscription(
                name="Test",
                total_amount=Decimal("1"),
                currency=Currency.VND,
                billing_interval=0,
                next_billing_date=date(2024, 3, 1),
            )

    def test_datetime_billing_date_becomes_date_only(self, make_subscription):
        """An aware datetime is reduced to its UTC calendar day."""
        sub = make_subscription(
            next_billing_date=datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
        )
        assert sub.next_billing_date == date(2024, 3, 5)
        assert type(sub.next_billing_date) is date

    def test_is_archived(self, make_subscription):
        sub = make_subscription(archived_at=datetime.now(timezone.utc))
        assert sub.is_archived is True

    def test_enum_values(self):
        """Stored enum values are the lowercase words (currencies upper)."""
        assert [c.value for c in Currency] == ["VND", "USD"]
        assert [m.value for m in CostMode] == ["full", "split", "fixed"]
        assert [b.value for b in BillingType] == ["monthly", "yearly"]
        assert [r.value for r in ReminderBucket] == ["overdue", "today", "tomorrow", "none"]


class TestRecordColumns:
    """Tests for the flat text layout used by SQLite and Google Sheets."""

    def test_record_has_every_column(self, make_subscription):
        record = subscription_to_record(make_subscription())
        assert list(record) == SUBSCRIPTION_COLUMNS

    def test_record_is_text(self, make_subscription):
        """Money stays exact, dates are YYYY-MM-DD, missing values are empty."""
        sub = make_subscription(
            total_amount=Decimal("0.10"),
            cost_mode=CostMode.SPLIT,
            split_total_users=3,
            my_share=1,
        )
        record = subscription_to_record(sub)

        assert record["total_amount"] == "0.10"
        assert record["next_billing_date"] == "2024-03-15"
        assert record["split_total_users"] == "3"
        assert record["fixed_amount"] == ""
        assert record["archived_at"] == ""

    def test_record_back_to_subscription(self, make_subscription):
        sub = make_subscription(
            cost_mode=CostMode.FIXED,
            fixed_amount=Decimal("99000"),
            note="family plan",
        )
        assert record_to_subscription(subscription_to_record(sub)) == sub

    def test_null_reads_as_missing(self, make_subscription):
        """SQLite NULLs and empty sheet cells are both absent values."""
        record = subscription_to_record(make_subscription())
        record["note"] = None
        record["my_share"] = None

        sub = record_to_subscription(record)
        assert sub.note is None
        assert sub.my_share is None

    def test_bad_date_raises(self, make_subscription):
        record = subscription_to_record(make_subscription())
        record["next_billing_date"] = "2024-02-30"
        with pytest.raises(ValueError):
            record_to_subscription(record)


class TestDashboardModels:
    """Tests for dashboard view models."""

    def test_view_has_reminder(self, make_subscription):
        view = SubscriptionView(
            subscription=make_subscription(),
            my_cost=Decimal("1"),
            monthly_cost=Decimal("1"),
            reminder_bucket=ReminderBucket.TOMORROW,
            days_until_due=1,
        )
        assert view.has_reminder is True
        assert view.model_copy(update={"reminder_bucket": ReminderBucket.NONE}).has_reminder is False

    def test_empty_summary(self):
        summary = DashboardSummary(exchange_rate=Decimal("26000"))
        assert summary.is_empty is True
        assert summary.monthly_total == Decimal(0)
        assert summary.display_currency == Currency.VND

    def test_form_parse_result_error_count(self):
        result = FormParseResult(
            success=False,
            field_errors={"name": ["Name is required"], "my_share": ["a", "b"]},
        )
        assert result.error_count == 3


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CREATED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.SUBSCRIPTION_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_ARCHIVED,
            description="Test",
            details={"key": "value"},
        )
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "subscription_archived"
        assert log_dict["details"] == {"key": "value"}
        assert isinstance(log_dict["timestamp"], str)

    def test_audit_event_to_row(self):
        """Test conversion to a flat storage row."""
        event = AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description="Test",
            error_message="boom",
        )
        row = event.to_row()

        assert len(row) == len(AUDIT_COLUMNS)
        assert row[2] == "system_error"
        assert row[3] == "error"
        assert row[9] == "boom"

    def test_audit_event_from_row(self):
        """Rows read back into the same event."""
        event = AuditEventBuilder.subscription_billed(
            subscription_id=uuid4(),
            previous_date=date(2024, 1, 31),
            next_date=date(2024, 2, 29),
            correlation_id=uuid4(),
        )
        restored = AuditEvent.from_row(event.to_row())

        assert restored.event_id == event.event_id
        assert restored.entity_id == event.entity_id
        assert restored.details == event.details
        assert restored.is_user_action is True

    def test_builder_subscription_billed(self):
        """Billed events record both dates."""
        subscription_id = uuid4()
        event = AuditEventBuilder.subscription_billed(
            subscription_id=subscription_id,
            previous_date=date(2024, 1, 31),
            next_date=date(2024, 3, 31),
            correlation_id=uuid4(),
        )

        assert event.event_type == AuditEventType.SUBSCRIPTION_BILLED
        assert event.entity_type == "subscription"
        assert event.entity_id == subscription_id
        assert event.details == {
            "previous_billing_date": "2024-01-31",
            "next_billing_date": "2024-03-31",
        }

    def test_builder_validation_failed(self):
        field_errors = {"my_share": ["My share cannot be greater than split total users"]}
        event = AuditEventBuilder.validation_failed(
            field_errors=field_errors,
            correlation_id=uuid4(),
        )

        assert event.severity == AuditSeverity.WARNING
        assert event.details["field_errors"] == field_errors
        assert json.loads(event.to_row()[8]) == {"field_errors": field_errors}
