"""Services package."""

from subtracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
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

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSubscriptionStorage",
    "NotFoundError",
    "SqliteAuditStorage",
    "SqliteDatabase",
    "SqliteSubscriptionStorage",
    "StorageError",
    "SubscriptionStorageInterface",
]
