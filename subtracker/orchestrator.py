"""
Main Orchestrator for Subtracker

This module ties together all the components and defines the
end-to-end flows for:
1. Create (raw form -> validate -> save)
2. Edit (raw form -> validate -> full replacement of the stored record)
3. Archive (stamp archived_at; the record leaves every list)
4. Mark billed (advance next_billing_date by exactly one cycle)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written unless the whole form validates
- Billing dates only move when the user marks a subscription billed
- Archived subscriptions are never billed or edited again
- Every step is audited

Failures are audited and then re-raised so the UI can show a single error.
"""

from datetime import date
from typing import Any, Mapping, Optional
from uuid import UUID

import structlog

from subtracker.audit import AuditLogger, create_correlation_id
from subtracker.config import Settings, get_settings
from subtracker.engine.billing import advance_next_billing_date
from subtracker.models.subscription import Subscription, utc_now
from subtracker.queries import DashboardQuery
from subtracker.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
    NotFoundError,
    SqliteAuditStorage,
    SqliteDatabase,
    SqliteSubscriptionStorage,
    StorageError,
    SubscriptionStorageInterface,
)
from subtracker.validation import parse_subscription_form
from subtracker.validation.validator import FORM_ERROR_MESSAGE

logger = structlog.get_logger(__name__)


class SubscriptionValidationError(Exception):
    """A submitted form failed validation; nothing was saved."""

    def __init__(self, field_errors: dict[str, list[str]], message: str = FORM_ERROR_MESSAGE):
        self.field_errors = field_errors
        self.message = message
        super().__init__(message)


class ArchivedSubscriptionError(Exception):
    """The subscription is archived and can no longer change."""

    def __init__(self, subscription_id: UUID):
        self.subscription_id = subscription_id
        super().__init__(f"Subscription is archived: {subscription_id}")


class SubscriptionService:
    """
    Orchestrates every write to a subscription.

    Reads go through list_active/get; the dashboard uses DashboardQuery.
    """

    def __init__(
        self,
        storage: SubscriptionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def storage(self) -> SubscriptionStorageInterface:
        return self._storage

    async def _reject(
        self,
        field_errors: dict[str, list[str]],
        message: str,
        correlation_id: UUID,
        subscription_id: Optional[UUID] = None,
    ) -> None:
        await self._audit_logger.log_validation_failed(
            field_errors=field_errors,
            correlation_id=correlation_id,
            subscription_id=subscription_id,
        )
        raise SubscriptionValidationError(field_errors, message)

    async def _audit_failure(self, action: str, error: Exception, correlation_id: UUID) -> None:
        await self._audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"action": action},
            correlation_id=correlation_id,
        )

    async def _load(self, subscription_id: UUID, correlation_id: UUID) -> Subscription:
        """The stored record, or NotFoundError (audited)."""
        try:
            subscription = await self._storage.get_by_id(subscription_id)
        except StorageError as e:
            await self._audit_failure("load", e, correlation_id)
            raise
        if subscription is None:
            error = NotFoundError(f"Subscription not found: {subscription_id}")
            await self._audit_failure("load", error, correlation_id)
            raise error
        return subscription

    async def list_active(self) -> list[Subscription]:
        return await self._storage.list_active()

    async def get(self, subscription_id: UUID) -> Optional[Subscription]:
        return await self._storage.get_by_id(subscription_id)

    async def create_from_form(
        self,
        form: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        """
        Validate a raw form and store it as a new subscription.

        Raises:
            SubscriptionValidationError: the form was rejected
            StorageError: the write failed
        """
        correlation_id = correlation_id or create_correlation_id()

        result = parse_subscription_form(form)
        if not result.success:
            await self._reject(result.field_errors, result.message, correlation_id)

        fields = result.payload.to_subscription_fields()
        subscription = Subscription(**fields)

        try:
            saved = await self._storage.create(subscription)
        except StorageError as e:
            await self._audit_failure("create", e, correlation_id)
            raise

        await self._audit_logger.log_subscription_created(
            subscription_id=saved.id,
            name=saved.name,
            correlation_id=correlation_id,
        )
        return saved

    async def update_from_form(
        self,
        form: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Subscription:
        """
        Validate a raw form and fully replace the stored record with it.

        The form must carry the subscription id. Identity, archived_at and
        created_at are kept from the stored record.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = parse_subscription_form(form)
        if not result.success:
            await self._reject(result.field_errors, result.message, correlation_id)

        payload = result.payload
        if payload.id is None:
            await self._reject(
                {"id": ["Subscription id is required"]},
                FORM_ERROR_MESSAGE,
                correlation_id,
            )

        existing = await self._load(payload.id, correlation_id)
        if existing.is_archived:
            error = ArchivedSubscriptionError(existing.id)
            await self._audit_failure("update", error, correlation_id)
            raise error

        fields = payload.to_subscription_fields()
        changed = [name for name, value in fields.items() if getattr(existing, name) != value]
        replacement = existing.model_copy(update=fields)

        try:
            saved = await self._storage.update(replacement)
        except StorageError as e:
            await self._audit_failure("update", e, correlation_id)
            raise

        await self._audit_logger.log_subscription_updated(
            subscription_id=saved.id,
            changed_fields=changed,
            correlation_id=correlation_id,
        )
        return saved

    async def archive(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Soft-delete a subscription. Archiving twice is a no-op."""
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._load(subscription_id, correlation_id)
        if existing.is_archived:
            return

        try:
            await self._storage.set_archived_at(subscription_id, utc_now())
        except StorageError as e:
            await self._audit_failure("archive", e, correlation_id)
            raise

        await self._audit_logger.log_subscription_archived(
            subscription_id=subscription_id,
            correlation_id=correlation_id,
        )

    async def mark_billed(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> date:
        """
        Advance next_billing_date by one billing cycle.

        Returns the new billing date. No other field changes.

        Raises:
            SubscriptionValidationError: the advanced date is out of range
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._load(subscription_id, correlation_id)
        if existing.is_archived:
            error = ArchivedSubscriptionError(subscription_id)
            await self._audit_failure("mark_billed", error, correlation_id)
            raise error

        try:
            next_date = advance_next_billing_date(existing)
        except ValueError:
            await self._reject(
                {"next_billing_date": ["Next billing date cannot move past year 9999"]},
                "This subscription cannot be billed again.",
                correlation_id,
                subscription_id=subscription_id,
            )

        try:
            await self._storage.set_next_billing_date(subscription_id, next_date)
        except StorageError as e:
            await self._audit_failure("mark_billed", e, correlation_id)
            raise

        await self._audit_logger.log_subscription_billed(
            subscription_id=subscription_id,
            previous_date=existing.next_billing_date,
            next_date=next_date,
            correlation_id=correlation_id,
        )
        return next_date


def _create_storage(
    settings: Settings,
) -> tuple[SubscriptionStorageInterface, AuditStorageInterface]:
    backend = settings.app.storage_backend

    if backend == "google_sheets":
        try:
            client = GoogleSheetsClient()
            return GoogleSheetsSubscriptionStorage(client), GoogleSheetsAuditStorage(client)
        except Exception as e:
            # Google Sheets not configured - continue on the local database
            logger.warning("google_sheets_unavailable", error=str(e), fallback="sqlite")

    database = SqliteDatabase(settings.app.sqlite_path)
    return SqliteSubscriptionStorage(database), SqliteAuditStorage(database)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[SubscriptionService, DashboardQuery, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from. Defaults to get_settings().

    Returns:
        (subscription_service, dashboard_query, audit_logger)
    """
    settings = settings or get_settings()
    app_settings = settings.app

    subscription_storage, audit_storage = _create_storage(settings)
    audit_logger = AuditLogger(audit_storage)

    service = SubscriptionService(
        storage=subscription_storage,
        audit_logger=audit_logger,
    )

    dashboard_query = DashboardQuery(
        storage=subscription_storage,
        exchange_rate=app_settings.display_rate,
        display_currency=app_settings.display_currency,
        upcoming_window_days=app_settings.upcoming_window_days,
    )

    return service, dashboard_query, audit_logger
