"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap SQLite for Google Sheets (or a hosted database) via configuration
2. Use a throwaway SQLite file for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally small - we're not building a full ORM.
Every write is one of exactly three shapes: full replacement on edit,
setting archived_at, or replacing next_billing_date after a mark-billed.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from subtracker.models.audit import AuditEvent
from subtracker.models.subscription import Subscription


class SubscriptionStorageInterface(ABC):
    """
    Abstract interface for subscription storage operations.

    Any storage implementation (SQLite, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Returns:
            The stored subscription

        Raises:
            DuplicateError: If the id already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        """
        Retrieve a subscription by id, archived or not.

        Returns:
            The subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """
        Replace every field of an existing subscription.

        Raises:
            NotFoundError: If the subscription doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def set_archived_at(
        self,
        subscription_id: UUID,
        archived_at: datetime,
    ) -> None:
        """
        Soft-delete a subscription.

        Raises:
            NotFoundError: If the subscription doesn't exist
        """
        pass

    @abstractmethod
    async def set_next_billing_date(
        self,
        subscription_id: UUID,
        next_billing_date: date,
    ) -> None:
        """
        Replace only the next billing date.

        Raises:
            NotFoundError: If the subscription doesn't exist
        """
        pass

    @abstractmethod
    async def list_active(self) -> list[Subscription]:
        """
        All non-archived subscriptions, ordered by next billing date then name.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
