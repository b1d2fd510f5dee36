"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as an alternative backend because:
1. The user can view and hand-edit their subscriptions directly in Sheets
2. No database file to back up
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a personal subscription list is tiny)
- No transactions (each write touches a single row)
- Limited query capabilities (we filter and sort in Python)

Hand edits in the sheet are exactly the kind of data that can slip past form
validation, which is why the cost engine degrades to zero rather than raising.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from subtracker.config import get_settings
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
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    SubscriptionStorageInterface,
)

logger = structlog.get_logger(__name__)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_subscriptions_sheet(self) -> gspread.Worksheet:
        """Get or create the Subscriptions worksheet."""
        return self._get_or_create_sheet(
            self._settings.subscriptions_sheet_name,
            SUBSCRIPTION_COLUMNS,
            rows=500,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsSubscriptionStorage(SubscriptionStorageInterface):
    """
    Google Sheets implementation of subscription storage.

    One subscription per row, columns in SUBSCRIPTION_COLUMNS order.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _subscription_to_row(subscription: Subscription) -> list[str]:
        record = subscription_to_record(subscription)
        return [record[column] for column in SUBSCRIPTION_COLUMNS]

    @staticmethod
    def _row_to_subscription(row: list) -> Subscription:
        record = {
            column: (row[index] if index < len(row) else "")
            for index, column in enumerate(SUBSCRIPTION_COLUMNS)
        }
        return record_to_subscription(record)

    def _find_row_index(self, sheet: gspread.Worksheet, subscription_id: UUID) -> Optional[int]:
        """1-based sheet row number of the subscription, header is row 1."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == str(subscription_id):
                return idx
        return None

    def _update_cells(self, subscription_id: UUID, values: dict[str, str]) -> None:
        sheet = self._client.get_subscriptions_sheet()
        row_idx = self._find_row_index(sheet, subscription_id)
        if row_idx is None:
            raise NotFoundError(f"Subscription not found: {subscription_id}")
        for column, value in values.items():
            sheet.update_cell(row_idx, SUBSCRIPTION_COLUMNS.index(column) + 1, value)

    @retry(
        retry=retry_if_not_exception_type(DuplicateError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create(self, subscription: Subscription) -> Subscription:
        """Append a new subscription row."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            if self._find_row_index(sheet, subscription.id) is not None:
                raise DuplicateError(f"Subscription already exists: {subscription.id}")
            sheet.append_row(self._subscription_to_row(subscription), value_input_option="RAW")
            return subscription
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save subscription: {e}")

    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        """Retrieve a subscription by its ID."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(subscription_id):
                    return self._row_to_subscription(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get subscription: {e}")

    async def update(self, subscription: Subscription) -> Subscription:
        """Rewrite every cell of an existing subscription row."""
        subscription = subscription.model_copy(update={"updated_at": utc_now()})
        record = subscription_to_record(subscription)
        try:
            self._update_cells(
                subscription.id,
                {column: record[column] for column in SUBSCRIPTION_COLUMNS if column != "id"},
            )
            return subscription
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update subscription: {e}")

    async def set_archived_at(self, subscription_id: UUID, archived_at: datetime) -> None:
        try:
            self._update_cells(
                subscription_id,
                {
                    "archived_at": archived_at.isoformat(),
                    "updated_at": utc_now().isoformat(),
                },
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to archive subscription: {e}")

    async def set_next_billing_date(self, subscription_id: UUID, next_billing_date: date) -> None:
        try:
            self._update_cells(
                subscription_id,
                {
                    "next_billing_date": to_date_only_string(next_billing_date),
                    "updated_at": utc_now().isoformat(),
                },
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update billing date: {e}")

    async def list_active(self) -> list[Subscription]:
        """Non-archived rows, due date then name. Malformed rows are skipped."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list subscriptions: {e}")

        subscriptions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                subscription = self._row_to_subscription(row)
            except Exception as e:
                logger.warning("malformed_subscription_row", row_id=row[0], error=str(e))
                continue
            if subscription.is_archived:
                continue
            subscriptions.append(subscription)

        subscriptions.sort(key=lambda s: (s.next_billing_date, s.name.lower(), s.name))
        return subscriptions


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(AuditEvent.from_row(row))
            except Exception as e:
                logger.warning("malformed_audit_row", row_id=row[0], error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_entity(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = [
                event for event in self._read_events()
                if event.entity_type == entity_type and event.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
