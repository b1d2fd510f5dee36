"""Form validation package."""

from subtracker.validation.validator import (
    SubscriptionFormInput,
    SubscriptionFormValidator,
    parse_subscription_form,
)

__all__ = [
    "SubscriptionFormInput",
    "SubscriptionFormValidator",
    "parse_subscription_form",
]
