"""
SQLite Storage Implementation

DESIGN DECISION: SQLite is the default backend. One file, no server, and a
real relational table so "active subscriptions ordered by due date then
name" is a plain indexed query rather than a Python-side sort.

Money columns are TEXT holding the exact Decimal string; REAL would round
through binary floating point. Billing dates are TEXT in YYYY-MM-DD form,
which sorts correctly as a string and carries no time zone.
"""

import sqlite3
from datetime import date, datetime
from pathlib import Path
from threading import Lock
from typing import Optional, Union
from uuid import UUID

from subtracker.engine.date_only import to_date_only_string
from subtracker.models.audit import AuditEvent
from subtracker.models.subscription import Subscription, utc_now
from subtracker.services.storage.columns import (
    AUDIT_COLUMNS,
    SUBSCRIPTION_COLUMNS,
    record_to_subscription,
    subscription_to_record,
)
from subtracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    SubscriptionStorageInterface,
)

NULLABLE_COLUMNS = {"split_total_users", "my_share", "fixed_amount", "note", "archived_at"}


class SqliteDatabase:
    """
    Shared connection plus schema management.

    One connection guarded by a lock; sqlite3 connections are not safe to
    use from several threads at once and Streamlit reruns on worker threads.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        path = Path(db_path)
        if str(path) != ":memory:" and path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._connection = sqlite3.connect(str(path), check_same_thread=False)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open database {path}: {e}")
        self._connection.row_factory = sqlite3.Row
        self.lock = Lock()
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def _ensure_schema(self) -> None:
        with self._connection:
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    total_amount TEXT NOT NULL,
                    currency TEXT NOT NULL CHECK(currency IN ('VND','USD')),
                    cost_mode TEXT NOT NULL CHECK(cost_mode IN ('full','split','fixed')),
                    split_total_users INTEGER,
                    my_share INTEGER,
                    fixed_amount TEXT,
                    billing_type TEXT NOT NULL CHECK(billing_type IN ('monthly','yearly')),
                    billing_interval INTEGER NOT NULL,
                    next_billing_date TEXT NOT NULL,
                    note TEXT,
                    archived_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            self._connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_subscriptions_active_due
                ON subscriptions (archived_at, next_billing_date, name COLLATE NOCASE)
                """
            )
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS audit_events (
                    event_id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    severity TEXT NOT NULL,
                    entity_type TEXT,
                    entity_id TEXT,
                    correlation_id TEXT,
                    description TEXT NOT NULL,
                    details_json TEXT,
                    error_message TEXT,
                    is_user_action TEXT NOT NULL
                )
                """
            )

    def close(self) -> None:
        self._connection.close()


class SqliteSubscriptionStorage(SubscriptionStorageInterface):
    """SQLite implementation of subscription storage."""

    def __init__(self, database: SqliteDatabase):
        self._db = database

    @staticmethod
    def _to_params(subscription: Subscription) -> dict[str, Optional[str]]:
        record = subscription_to_record(subscription)
        return {
            column: (None if column in NULLABLE_COLUMNS and value == "" else value)
            for column, value in record.items()
        }

    def _execute_update(self, sql: str, params: tuple, subscription_id: UUID) -> None:
        with self._db.lock, self._db.connection as conn:
            cursor = conn.execute(sql, params)
            if cursor.rowcount == 0:
                raise NotFoundError(f"Subscription not found: {subscription_id}")

    async def create(self, subscription: Subscription) -> Subscription:
        columns = ", ".join(SUBSCRIPTION_COLUMNS)
        placeholders = ", ".join(f":{column}" for column in SUBSCRIPTION_COLUMNS)
        try:
            with self._db.lock, self._db.connection as conn:
                conn.execute(
                    f"INSERT INTO subscriptions ({columns}) VALUES ({placeholders})",
                    self._to_params(subscription),
                )
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateError(f"Subscription already exists: {subscription.id}") from e
            raise StorageError(f"Subscription rejected by the database: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save subscription: {e}") from e
        return subscription

    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        try:
            with self._db.lock:
                row = self._db.connection.execute(
                    "SELECT * FROM subscriptions WHERE id = ?",
                    (str(subscription_id),),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get subscription: {e}") from e
        if row is None:
            return None
        return record_to_subscription(dict(row))

    async def update(self, subscription: Subscription) -> Subscription:
        subscription = subscription.model_copy(update={"updated_at": utc_now()})
        params = self._to_params(subscription)
        assignments = ", ".join(
            f"{column} = :{column}"
            for column in SUBSCRIPTION_COLUMNS
            if column not in ("id", "created_at")
        )
        try:
            self._execute_update(
                f"UPDATE subscriptions SET {assignments} WHERE id = :id",
                params,
                subscription.id,
            )
        except NotFoundError:
            raise
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update subscription: {e}") from e
        return subscription

    async def set_archived_at(self, subscription_id: UUID, archived_at: datetime) -> None:
        try:
            self._execute_update(
                "UPDATE subscriptions SET archived_at = ?, updated_at = ? WHERE id = ?",
                (archived_at.isoformat(), utc_now().isoformat(), str(subscription_id)),
                subscription_id,
            )
        except NotFoundError:
            raise
        except sqlite3.Error as e:
            raise StorageError(f"Failed to archive subscription: {e}") from e

    async def set_next_billing_date(self, subscription_id: UUID, next_billing_date: date) -> None:
        try:
            self._execute_update(
                "UPDATE subscriptions SET next_billing_date = ?, updated_at = ? WHERE id = ?",
                (
                    to_date_only_string(next_billing_date),
                    utc_now().isoformat(),
                    str(subscription_id),
                ),
                subscription_id,
            )
        except NotFoundError:
            raise
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update billing date: {e}") from e

    async def list_active(self) -> list[Subscription]:
        try:
            with self._db.lock:
                rows = self._db.connection.execute(
                    """
                    SELECT * FROM subscriptions
                    WHERE archived_at IS NULL
                    ORDER BY next_billing_date ASC, name COLLATE NOCASE ASC, name ASC
                    """
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list subscriptions: {e}") from e
        return [record_to_subscription(dict(row)) for row in rows]


class SqliteAuditStorage(AuditStorageInterface):
    """
    SQLite implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, database: SqliteDatabase):
        self._db = database

    def _query_events(self, sql: str, params: tuple = ()) -> list[AuditEvent]:
        try:
            with self._db.lock:
                rows = self._db.connection.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
        return [
            AuditEvent.from_row([row[column] or "" for column in AUDIT_COLUMNS])
            for row in rows
        ]

    async def append_event(self, event: AuditEvent) -> bool:
        columns = ", ".join(AUDIT_COLUMNS)
        placeholders = ", ".join("?" for _ in AUDIT_COLUMNS)
        try:
            with self._db.lock, self._db.connection as conn:
                conn.execute(
                    f"INSERT INTO audit_events ({columns}) VALUES ({placeholders})",
                    tuple(event.to_row()),
                )
            return True
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    async def get_events_by_entity(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        return self._query_events(
            """
            SELECT * FROM audit_events
            WHERE entity_type = ? AND entity_id = ?
            ORDER BY timestamp ASC
            """,
            (entity_type, str(entity_id)),
        )

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return self._query_events(
            "SELECT * FROM audit_events ORDER BY timestamp DESC LIMIT ?",
            (limit,),
        )
