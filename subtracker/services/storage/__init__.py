"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
SQLite is the default backend; Google Sheets is selectable via settings.
"""

from subtracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    SubscriptionStorageInterface,
)
from subtracker.services.storage.sqlite import (
    SqliteAuditStorage,
    SqliteDatabase,
    SqliteSubscriptionStorage,
)
from subtracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SubscriptionStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # SQLite implementation
    "SqliteAuditStorage",
    "SqliteDatabase",
    "SqliteSubscriptionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSubscriptionStorage",
]
