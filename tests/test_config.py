"""Tests for settings, the access gate, audit logging and display helpers."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from pydantic import ValidationError

from subtracker.audit import AuditLogger, create_correlation_id
from subtracker.auth import check_credentials, is_auth_required
from subtracker.config import AppSettings, BasicAuthSettings, get_settings, validate_all_settings
from subtracker.models import AuditEventBuilder, CostMode, Currency, ReminderBucket
from subtracker.presentation import (
    cost_mode_description,
    logo_monogram,
    reminder_badge,
    reminder_label,
    render_amount,
)
from subtracker.services.storage import StorageError


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self, clean_env):
        app = get_settings().app

        assert app.exchange_rate == Decimal("26000")
        assert app.display_currency == Currency.VND
        assert app.date_display_format == "%d %b %Y"
        assert app.upcoming_window_days == 7
        assert app.storage_backend == "sqlite"
        assert app.sqlite_path == "subtracker.db"

    def test_rate_from_environment(self, clean_env):
        clean_env.setenv("USD_TO_VND_RATE", "25400.5")
        assert get_settings().app.exchange_rate == Decimal("25400.5")

    def test_invalid_rate_falls_back(self, clean_env):
        """Garbage and non-positive rates never reach the engine."""
        for raw in ["abc", "0", "-26000", ""]:
            clean_env.setenv("USD_TO_VND_RATE", raw)
            assert AppSettings().exchange_rate == Decimal("26000")

    def test_display_rate_follows_display_currency(self, clean_env):
        """The engine rate is VND per USD, or USD per VND when showing USD."""
        clean_env.setenv("USD_TO_VND_RATE", "25000")
        assert AppSettings().display_rate == Decimal("25000")

        clean_env.setenv("DISPLAY_CURRENCY", "USD")
        app = AppSettings()
        assert app.exchange_rate == Decimal("25000")
        assert app.display_rate == Decimal("0.00004")

    def test_unknown_backend_rejected(self, clean_env):
        clean_env.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_validate_all_settings(self, clean_env):
        """Google Sheets is only checked when selected."""
        status = validate_all_settings()
        assert status["app"] is True
        assert status["basic_auth"] is True
        assert "google_sheets" not in status

        clean_env.setenv("STORAGE_BACKEND", "google_sheets")
        status = validate_all_settings()
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status

    def test_validate_reports_bad_app_settings(self, clean_env):
        clean_env.setenv("UPCOMING_WINDOW_DAYS", "-3")
        status = validate_all_settings()
        assert status["app"] is False
        assert "app_error" in status


class TestAccessGate:
    """Tests for the optional username/password gate."""

    def test_gate_off_without_both_values(self, clean_env):
        assert is_auth_required() is False
        assert is_auth_required(BasicAuthSettings(username="me")) is False
        assert is_auth_required(BasicAuthSettings(password="secret")) is False

    def test_gate_off_accepts_anything(self, clean_env):
        assert check_credentials(None, None, BasicAuthSettings(username="me")) is True

    def test_gate_on(self):
        settings = BasicAuthSettings(username="me", password="secret")

        assert is_auth_required(settings) is True
        assert check_credentials("me", "secret", settings) is True
        assert check_credentials("me", "wrong", settings) is False
        assert check_credentials("you", "secret", settings) is False
        assert check_credentials(None, None, settings) is False

    def test_gate_from_environment(self, clean_env):
        clean_env.setenv("BASIC_AUTH_USERNAME", "me")
        clean_env.setenv("BASIC_AUTH_PASSWORD", "pässwörd")

        assert is_auth_required() is True
        assert check_credentials("me", "pässwörd") is True
        assert check_credentials("me", "password") is False


class TestAuditLogger:
    """Tests for AuditLogger persistence behaviour."""

    def test_local_only(self):
        """Without storage, logging always succeeds."""
        logger = AuditLogger()
        event = AuditEventBuilder.login_failed("someone")
        assert asyncio.run(logger.log(event)) is True

    def test_persists_to_storage(self, audit_logger, audit_storage):
        subscription_id = uuid4()
        asyncio.run(audit_logger.log_subscription_billed(
            subscription_id=subscription_id,
            previous_date=date(2024, 1, 31),
            next_date=date(2024, 2, 29),
            correlation_id=create_correlation_id(),
        ))

        events = asyncio.run(audit_storage.get_events_by_entity("subscription", subscription_id))
        assert len(events) == 1

    def test_storage_failure_is_swallowed(self):
        """A broken audit store never breaks the user's action."""
        storage = MagicMock()
        storage.append_event = AsyncMock(side_effect=StorageError("quota exceeded"))
        logger = AuditLogger(storage)

        result = asyncio.run(logger.log(AuditEventBuilder.login_failed("someone")))

        assert result is False
        storage.append_event.assert_awaited_once()


class TestPresentation:
    """Tests for display helpers."""

    def test_reminder_labels(self):
        assert reminder_label(ReminderBucket.OVERDUE) == "Overdue"
        assert reminder_label(ReminderBucket.TODAY) == "Due Today"
        assert reminder_label(ReminderBucket.TOMORROW) == "Due Tomorrow"
        assert reminder_badge(ReminderBucket.NONE) == ""
        assert reminder_badge(ReminderBucket.OVERDUE) == ":red[**Overdue**]"

    def test_render_amount(self):
        assert render_amount(Decimal("100000"), Currency.VND) == "100,000 VND"
        assert render_amount(Decimal("9.5"), Currency.USD) == "9.50 USD"

    def test_logo_monogram(self):
        assert logo_monogram("Netflix") == "NE"
        assert logo_monogram("youtube premium family") == "YP"
        assert logo_monogram("   ") == "SB"

    def test_cost_mode_description(self, make_subscription):
        split = make_subscription(cost_mode=CostMode.SPLIT, split_total_users=4, my_share=1)
        assert cost_mode_description(split) == "Split: 1 of 4 shares"
        assert cost_mode_description(make_subscription()) == "Full amount"
