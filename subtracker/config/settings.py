"""
Configuration Management for Subtracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine never reads settings itself: the exchange rate, display currency
and reminder window are read here once and passed down explicitly.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtracker.engine.cost import parse_exchange_rate
from subtracker.models.subscription import Currency


class BasicAuthSettings(BaseSettings):
    """
    Optional access gate.

    The gate is only active when BOTH username and password are set.
    """

    model_config = SettingsConfigDict(
        env_prefix="BASIC_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    username: Optional[str] = Field(
        default=None,
        description="Username required to open the dashboard"
    )
    password: Optional[str] = Field(
        default=None,
        description="Password required to open the dashboard"
    )

    @property
    def enabled(self) -> bool:
        return bool(self.username) and bool(self.password)


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    subscriptions_sheet_name: str = Field(
        default="Subscriptions",
        description="Name of the sheet for subscriptions"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Currency
    usd_to_vnd_rate: Optional[str] = Field(
        default=None,
        description="Static USD->VND rate. Invalid or non-positive values fall back to 26000"
    )
    display_currency: Currency = Field(
        default=Currency.VND,
        description="Currency the dashboard total is shown in"
    )

    # Presentation
    date_display_format: str = Field(
        default="%d %b %Y",
        description="strftime format for billing dates"
    )
    upcoming_window_days: int = Field(
        default=7,
        ge=0,
        le=90,
        description="Days ahead counted as 'upcoming' on the dashboard"
    )

    # Storage
    storage_backend: str = Field(
        default="sqlite",
        pattern="^(sqlite|google_sheets)$",
        description="Where subscriptions are stored"
    )
    sqlite_path: str = Field(
        default="subtracker.db",
        description="SQLite database file (sqlite backend only)"
    )

    @property
    def exchange_rate(self) -> Decimal:
        """The effective USD->VND rate, never zero or negative."""
        return parse_exchange_rate(self.usd_to_vnd_rate)

    @property
    def display_rate(self) -> Decimal:
        """
        Display-currency units per one unit of the other currency.

        This is the rate the cost engine multiplies by: the USD->VND rate
        when showing VND, its reciprocal when showing USD.
        """
        rate = self.exchange_rate
        if self.display_currency == Currency.USD:
            return Decimal(1) / rate
        return rate


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Google Sheets config does
    # not stop a sqlite-backed app from starting.

    @property
    def basic_auth(self) -> BasicAuthSettings:
        return BasicAuthSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error" entries
    for sections that failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        app_settings = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
        app_settings = None

    try:
        _ = settings.basic_auth
        results["basic_auth"] = True
    except Exception as e:
        results["basic_auth"] = False
        results["basic_auth_error"] = str(e)

    # Google Sheets only matters when it is the selected backend
    if app_settings is not None and app_settings.storage_backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results
