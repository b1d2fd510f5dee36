"""Shared fixtures for the Subtracker tests."""

from datetime import date
from decimal import Decimal

import pytest

from subtracker.audit import AuditLogger
from subtracker.config import get_settings
from subtracker.models import BillingType, CostMode, Currency, Subscription
from subtracker.services.storage import (
    SqliteAuditStorage,
    SqliteDatabase,
    SqliteSubscriptionStorage,
)

SETTINGS_ENV_VARS = [
    "USD_TO_VND_RATE",
    "DISPLAY_CURRENCY",
    "DATE_DISPLAY_FORMAT",
    "UPCOMING_WINDOW_DAYS",
    "STORAGE_BACKEND",
    "SQLITE_PATH",
    "BASIC_AUTH_USERNAME",
    "BASIC_AUTH_PASSWORD",
    "GOOGLE_SHEETS_CREDENTIALS_PATH",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
]


def build_subscription(**overrides) -> Subscription:
    fields = {
        "name": "Netflix",
        "total_amount": Decimal("300000"),
        "currency": Currency.VND,
        "cost_mode": CostMode.FULL,
        "billing_type": BillingType.MONTHLY,
        "billing_interval": 1,
        "next_billing_date": date(2024, 3, 15),
    }
    fields.update(overrides)
    return Subscription(**fields)


def build_form(**overrides) -> dict:
    form = {
        "name": "Spotify Family",
        "total_amount": "300000",
        "currency": "VND",
        "cost_mode": "split",
        "split_total_users": "3",
        "my_share": "1",
        "fixed_amount": "",
        "billing_type": "monthly",
        "billing_interval": "1",
        "next_billing_date": "2024-01-31",
        "note": "",
    }
    form.update(overrides)
    return form


@pytest.fixture
def make_subscription():
    return build_subscription


@pytest.fixture
def make_form():
    return build_form


@pytest.fixture
def clean_env(monkeypatch):
    """Remove settings variables so defaults apply, and reset the settings cache."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def database(tmp_path):
    db = SqliteDatabase(tmp_path / "subtracker.db")
    yield db
    db.close()


@pytest.fixture
def subscription_storage(database):
    return SqliteSubscriptionStorage(database)


@pytest.fixture
def audit_storage(database):
    return SqliteAuditStorage(database)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)
