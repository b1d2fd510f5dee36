"""
Two-Stage Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Format validation (money strings, YYYY-MM-DD, enums, integer interval)
- Done by a pydantic model over the raw form fields

STAGE 2 - SEMANTIC VALIDATION:
- Amounts strictly positive
- Split fields present, positive integers, my share within the split
- Fixed amount present when the mode needs it
- The date actually exists on the calendar (2024-02-30 matches the pattern)
- One billing cycle after that date is still a representable date

Stage 2 only runs when stage 1 passes. Either stage failing rejects the
whole submission: nothing is saved and every field error is reported back
to the form.

IMPORTANT: Validation NEVER silently fixes issues. The only normalization is
trimming whitespace and nulling out fields that do not belong to the chosen
cost mode.
"""

import re
from decimal import Decimal
from typing import Any, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from subtracker.engine.cost import get_interval_months
from subtracker.engine.date_only import (
    add_months,
    from_date_only_string,
    is_valid_date_only_string,
)
from subtracker.models.subscription import (
    BillingType,
    CostMode,
    Currency,
    FormParseResult,
    SubscriptionPayload,
)

MONEY_PATTERN = r"^\d+(\.\d+)?$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
INTEGER_PATTERN = re.compile(r"^\d+$")
FORM_ERROR_MESSAGE = "Please fix the form fields."

# Message shown when a field fails stage 1, whatever the underlying reason
SCHEMA_MESSAGES = {
    "id": "Subscription id is invalid",
    "name": "Name is required",
    "total_amount": "Amount must be a positive number",
    "currency": "Currency must be VND or USD",
    "cost_mode": "Cost mode must be full, split or fixed",
    "billing_type": "Billing type must be monthly or yearly",
    "billing_interval": "Billing interval must be a positive integer",
    "next_billing_date": "Date must be in YYYY-MM-DD format",
    "note": "Note must be at most 500 characters",
}

FORM_FIELDS = [
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
]


class SubscriptionFormInput(BaseModel):
    """Shape of a submitted subscription form (stage 1)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    total_amount: str = Field(..., pattern=MONEY_PATTERN)
    currency: Currency
    cost_mode: CostMode
    split_total_users: Optional[str] = None
    my_share: Optional[str] = None
    fixed_amount: Optional[str] = None
    billing_type: BillingType
    billing_interval: int = Field(..., gt=0)
    next_billing_date: str = Field(..., pattern=DATE_PATTERN)
    note: Optional[str] = Field(default=None, max_length=500)


def _positive_int(value: Optional[str]) -> Optional[int]:
    """The value as a positive integer, or None if it is not one."""
    if value is None or not INTEGER_PATTERN.match(value):
        return None
    number = int(value)
    return number if number > 0 else None


class SubscriptionFormValidator:
    """
    Validates raw subscription form fields through a two-stage pipeline
    and turns them into a SubscriptionPayload.
    """

    def _clean(self, form: Mapping[str, Any]) -> dict[str, str]:
        """
        Keep known fields as text; empty and whitespace-only values count as absent.

        Non-string values (ints, Decimals, dates from widgets) are read as their
        str() form, the same text a browser form would have submitted.
        """
        cleaned = {}
        for field in FORM_FIELDS:
            value = form.get(field)
            if value is None:
                continue
            if not isinstance(value, str):
                value = str(value)
            if not value.strip():
                # An all-blank name still has to fail as "required"
                if field == "name":
                    cleaned[field] = value
                continue
            cleaned[field] = value
        return cleaned

    def _validate_schema(
        self,
        form: Mapping[str, Any],
    ) -> tuple[Optional[SubscriptionFormInput], dict[str, list[str]]]:
        """
        Stage 1: Schema validation.

        Returns: (parsed_input_or_None, field_errors)
        """
        try:
            return SubscriptionFormInput(**self._clean(form)), {}
        except ValidationError as e:
            errors: dict[str, list[str]] = {}
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "form"
                message = SCHEMA_MESSAGES.get(field, error["msg"])
                if message not in errors.setdefault(field, []):
                    errors[field].append(message)
            return None, errors

    def _validate_semantic(self, data: SubscriptionFormInput) -> dict[str, list[str]]:
        """
        Stage 2: Semantic validation.

        Returns: field_errors (empty when valid)
        """
        errors: dict[str, list[str]] = {}

        def add(field: str, message: str) -> None:
            errors.setdefault(field, []).append(message)

        if Decimal(data.total_amount) <= 0:
            add("total_amount", "Total amount must be greater than 0")

        if data.cost_mode == CostMode.SPLIT:
            split_total_users = _positive_int(data.split_total_users)
            my_share = _positive_int(data.my_share)

            if split_total_users is None:
                add("split_total_users", "Split total users must be a positive integer")
            if my_share is None:
                add("my_share", "My share must be a positive integer")
            if (
                split_total_users is not None
                and my_share is not None
                and my_share > split_total_users
            ):
                add("my_share", "My share cannot be greater than split total users")

        if data.cost_mode == CostMode.FIXED:
            if not data.fixed_amount or not re.match(MONEY_PATTERN, data.fixed_amount):
                add("fixed_amount", "Fixed amount is required and must be numeric")
            elif Decimal(data.fixed_amount) <= 0:
                add("fixed_amount", "Fixed amount must be greater than 0")

        if not is_valid_date_only_string(data.next_billing_date):
            add("next_billing_date", "Next billing date is invalid")
        else:
            months = get_interval_months(data.billing_type, data.billing_interval)
            try:
                add_months(from_date_only_string(data.next_billing_date), months)
            except ValueError:
                add("billing_interval", "Billing interval is too large for the next billing date")

        return errors

    def _to_payload(self, data: SubscriptionFormInput) -> SubscriptionPayload:
        is_split = data.cost_mode == CostMode.SPLIT
        is_fixed = data.cost_mode == CostMode.FIXED
        return SubscriptionPayload(
            id=data.id,
            name=data.name,
            total_amount=Decimal(data.total_amount),
            currency=data.currency,
            cost_mode=data.cost_mode,
            split_total_users=int(data.split_total_users) if is_split else None,
            my_share=int(data.my_share) if is_split else None,
            fixed_amount=Decimal(data.fixed_amount) if is_fixed and data.fixed_amount else None,
            billing_type=data.billing_type,
            billing_interval=data.billing_interval,
            next_billing_date=from_date_only_string(data.next_billing_date),
            note=data.note or None,
        )

    def parse(self, form: Mapping[str, Any]) -> FormParseResult:
        """
        Run the full pipeline over raw form fields.

        Args:
            form: field name -> submitted value (usually strings)

        Returns:
            FormParseResult with either a payload or per-field errors
        """
        data, errors = self._validate_schema(form)
        if data is None:
            return FormParseResult(success=False, field_errors=errors, message=FORM_ERROR_MESSAGE)

        errors = self._validate_semantic(data)
        if errors:
            return FormParseResult(success=False, field_errors=errors, message=FORM_ERROR_MESSAGE)

        return FormParseResult(success=True, payload=self._to_payload(data))


def parse_subscription_form(form: Mapping[str, Any]) -> FormParseResult:
    """Convenience wrapper around SubscriptionFormValidator.parse."""
    return SubscriptionFormValidator().parse(form)
