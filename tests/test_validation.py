"""Tests for two-stage subscription form validation."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from subtracker.models import BillingType, CostMode, Currency
from subtracker.validation import SubscriptionFormValidator, parse_subscription_form


class TestSchemaStage:
    """Stage 1: shape and format of the raw fields."""

    def test_valid_split_form(self, make_form):
        """A complete split form produces a typed payload."""
        result = parse_subscription_form(make_form())

        assert result.success is True
        assert result.field_errors == {}
        payload = result.payload
        assert payload.name == "Spotify Family"
        assert payload.total_amount == Decimal("300000")
        assert payload.currency == Currency.VND
        assert payload.cost_mode == CostMode.SPLIT
        assert payload.split_total_users == 3
        assert payload.my_share == 1
        assert payload.billing_type == BillingType.MONTHLY
        assert payload.billing_interval == 1
        assert payload.next_billing_date == date(2024, 1, 31)
        assert payload.note is None

    def test_name_is_trimmed(self, make_form):
        result = parse_subscription_form(make_form(name="  YouTube Premium  "))
        assert result.payload.name == "YouTube Premium"

    def test_blank_name_is_required(self, make_form):
        """Whitespace-only names fail as missing."""
        result = parse_subscription_form(make_form(name="   "))

        assert result.success is False
        assert result.field_errors["name"] == ["Name is required"]
        assert result.message == "Please fix the form fields."

    def test_missing_name_is_required(self, make_form):
        form = make_form()
        del form["name"]
        result = parse_subscription_form(form)
        assert result.field_errors["name"] == ["Name is required"]

    def test_bad_money_format(self, make_form):
        """Negative and non-numeric amounts fail the money pattern."""
        for value in ["-5", "abc", "1,000", "1e5"]:
            result = parse_subscription_form(make_form(total_amount=value))
            assert result.field_errors["total_amount"] == ["Amount must be a positive number"]

    def test_unknown_enums(self, make_form):
        """Unknown currency, mode and billing type are each reported."""
        result = parse_subscription_form(
            make_form(currency="EUR", cost_mode="per-seat", billing_type="weekly")
        )

        assert result.success is False
        assert result.field_errors["currency"] == ["Currency must be VND or USD"]
        assert result.field_errors["cost_mode"] == ["Cost mode must be full, split or fixed"]
        assert result.field_errors["billing_type"] == ["Billing type must be monthly or yearly"]

    def test_billing_interval_must_be_positive_integer(self, make_form):
        for value in ["0", "-1", "1.5", "two"]:
            result = parse_subscription_form(make_form(billing_interval=value))
            assert result.field_errors["billing_interval"] == [
                "Billing interval must be a positive integer"
            ]

    def test_date_format(self, make_form):
        result = parse_subscription_form(make_form(next_billing_date="31/01/2024"))
        assert result.field_errors["next_billing_date"] == ["Date must be in YYYY-MM-DD format"]

    def test_note_length(self, make_form):
        result = parse_subscription_form(make_form(note="x" * 501))
        assert result.field_errors["note"] == ["Note must be at most 500 characters"]

    def test_invalid_id(self, make_form):
        result = parse_subscription_form(make_form(id="not-a-uuid"))
        assert result.field_errors["id"] == ["Subscription id is invalid"]

    def test_non_string_widget_values(self, make_form):
        """Ints and dates from widgets are read as their text form."""
        result = parse_subscription_form(
            make_form(billing_interval=2, next_billing_date=date(2024, 5, 1))
        )

        assert result.success is True
        assert result.payload.billing_interval == 2
        assert result.payload.next_billing_date == date(2024, 5, 1)

    def test_semantic_stage_skipped_when_schema_fails(self, make_form):
        """Cross-field errors are not reported until the shape is valid."""
        result = parse_subscription_form(make_form(name="", my_share="9"))

        assert "name" in result.field_errors
        assert "my_share" not in result.field_errors


class TestSemanticStage:
    """Stage 2: cross-field rules."""

    def test_total_amount_must_be_positive(self, make_form):
        result = parse_subscription_form(make_form(total_amount="0"))
        assert result.field_errors["total_amount"] == ["Total amount must be greater than 0"]

    def test_my_share_cannot_exceed_split_users(self, make_form):
        result = parse_subscription_form(make_form(split_total_users="3", my_share="4"))

        assert result.success is False
        assert result.field_errors["my_share"] == [
            "My share cannot be greater than split total users"
        ]

    def test_split_fields_must_be_positive_integers(self, make_form):
        result = parse_subscription_form(make_form(split_total_users="", my_share="0"))

        assert result.field_errors["split_total_users"] == [
            "Split total users must be a positive integer"
        ]
        assert result.field_errors["my_share"] == ["My share must be a positive integer"]

    def test_fixed_amount_required(self, make_form):
        result = parse_subscription_form(make_form(cost_mode="fixed", fixed_amount=""))
        assert result.field_errors["fixed_amount"] == [
            "Fixed amount is required and must be numeric"
        ]

    def test_fixed_amount_must_be_numeric(self, make_form):
        result = parse_subscription_form(make_form(cost_mode="fixed", fixed_amount="ten"))
        assert result.field_errors["fixed_amount"] == [
            "Fixed amount is required and must be numeric"
        ]

    def test_fixed_amount_must_be_positive(self, make_form):
        result = parse_subscription_form(make_form(cost_mode="fixed", fixed_amount="0"))
        assert result.field_errors["fixed_amount"] == ["Fixed amount must be greater than 0"]

    def test_impossible_date(self, make_form):
        """2024-02-30 matches the pattern but does not exist."""
        result = parse_subscription_form(make_form(next_billing_date="2024-02-30"))
        assert result.field_errors["next_billing_date"] == ["Next billing date is invalid"]

    def test_leap_day(self, make_form):
        assert parse_subscription_form(make_form(next_billing_date="2024-02-29")).success
        assert not parse_subscription_form(make_form(next_billing_date="2023-02-29")).success

    def test_interval_must_keep_next_cycle_in_calendar(self, make_form):
        """The first advance from the entered date has to land before year 10000."""
        too_far = [
            make_form(billing_type="yearly", billing_interval="9000", next_billing_date="2024-01-01"),
            make_form(billing_interval="1" + "0" * 30),
            make_form(next_billing_date="9999-12-15"),
        ]
        for form in too_far:
            result = parse_subscription_form(form)
            assert result.field_errors == {
                "billing_interval": ["Billing interval is too large for the next billing date"]
            }

        assert parse_subscription_form(
            make_form(billing_type="yearly", billing_interval="7000", next_billing_date="2024-01-01")
        ).success

    def test_all_errors_reported_together(self, make_form):
        """Every failing field is returned in one result."""
        result = parse_subscription_form(
            make_form(total_amount="0", my_share="5", next_billing_date="2024-04-31")
        )

        assert set(result.field_errors) == {"total_amount", "my_share", "next_billing_date"}
        assert result.error_count == 3


class TestPayload:
    """Normalization of the validated payload."""

    def test_full_mode_drops_split_and_fixed_fields(self, make_form):
        """Fields that do not belong to the chosen mode are nulled."""
        result = SubscriptionFormValidator().parse(
            make_form(cost_mode="full", fixed_amount="5000")
        )

        assert result.success is True
        assert result.payload.split_total_users is None
        assert result.payload.my_share is None
        assert result.payload.fixed_amount is None

    def test_fixed_mode_keeps_only_fixed_amount(self, make_form):
        result = parse_subscription_form(make_form(cost_mode="fixed", fixed_amount="120000.50"))

        assert result.payload.fixed_amount == Decimal("120000.50")
        assert result.payload.split_total_users is None
        assert result.payload.my_share is None

    def test_id_and_note_carried(self, make_form):
        subscription_id = uuid4()
        result = parse_subscription_form(
            make_form(id=str(subscription_id), note="  shared with family  ")
        )

        assert result.payload.id == subscription_id
        assert result.payload.note == "shared with family"

    def test_subscription_fields_exclude_id(self, make_form):
        result = parse_subscription_form(make_form(id=str(uuid4())))
        assert "id" not in result.payload.to_subscription_fields()
