"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is an optional storage backend because:
1. Users (and coaches) can view assessment history directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (one row per user / per assessment)
- No transactions (we handle this with careful ordering: history rows are
  appended before the profile row is written)
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime
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

from vgla_engine.config import get_settings
from vgla_engine.models.assessment import (
    CombinationType,
    Dimension,
    SessionSnapshot,
    utc_now,
)
from vgla_engine.models.audit import AuditEvent, AuditEventType, AuditSeverity
from vgla_engine.models.profile import HistoryRecord, Profile
from vgla_engine.services.storage.codec import (
    decode_score_vector,
    encode_score_vector,
    encode_snapshot,
)
from vgla_engine.services.storage.interface import (
    AuditStorageInterface,
    ConflictError,
    ConnectionError,
    ProfileStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for Profiles sheet
PROFILE_COLUMNS = [
    "user_id",
    "current_primary",
    "current_secondary",
    "current_combination_type",
    "last_test_date",
    "next_test_date",
    "should_retake_test",
    "has_type_changed",
    "previous_combination_type",
    "type_change_date",
    "updated_at",
]

# Column mappings for History sheet
HISTORY_COLUMNS = [
    "user_id",
    "test_date",
    "primary_type",
    "secondary_type",
    "combination_type",
    "score_json",
    "notes",
]

# Column mappings for Snapshots sheet
SNAPSHOT_COLUMNS = [
    "user_id",
    "test_id",
    "question_index",
    "phase",
    "answered",
    "updated_at",
    "snapshot_json",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_getter(row: list):
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


def _find_row(rows: list[list], key: str) -> Optional[int]:
    """1-based sheet row number of the first data row whose column A is key."""
    for idx, row in enumerate(rows[1:], start=2):  # row 1 is header
        if row and row[0] == key:
            return idx
    return None


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

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
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

    def get_profiles_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.profiles_sheet_name, PROFILE_COLUMNS)

    def get_history_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.history_sheet_name, HISTORY_COLUMNS, rows=5000)

    def get_snapshots_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.snapshots_sheet_name, SNAPSHOT_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsSnapshotStorage(SnapshotStorageInterface):
    """
    Session snapshots, one row per user.

    The full snapshot is kept as JSON; the other columns are a readable
    summary for people browsing the sheet.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _snapshot_to_row(self, user_id: str, snapshot: SessionSnapshot) -> list:
        return [
            user_id,
            snapshot.test_id,
            str(snapshot.question_index),
            snapshot.phase.value,
            str(snapshot.answered_count),
            snapshot.last_updated_time.isoformat(),
            encode_snapshot(snapshot),
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_snapshot(self, user_id: str, snapshot: SessionSnapshot) -> bool:
        try:
            sheet = self._client.get_snapshots_sheet()
            row = self._snapshot_to_row(user_id, snapshot)
            idx = _find_row(sheet.get_all_values(), user_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(range_name=f"A{idx}", values=[row], value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save snapshot: {e}")

    async def load_raw_snapshot(self, user_id: str) -> Optional[str]:
        try:
            sheet = self._client.get_snapshots_sheet()
            all_rows = sheet.get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to load snapshot: {e}")

        idx = _find_row(all_rows, user_id)
        if idx is None:
            return None
        return _safe_getter(all_rows[idx - 1])(6) or None

    async def clear_snapshot(self, user_id: str) -> bool:
        try:
            sheet = self._client.get_snapshots_sheet()
            idx = _find_row(sheet.get_all_values(), user_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to clear snapshot: {e}")


class GoogleSheetsProfileStorage(ProfileStorageInterface):
    """
    Profiles (one row per user) and history (one row per assessment).

    History rows are only ever appended.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _profile_to_row(self, profile: Profile) -> list:
        return [
            profile.user_id,
            profile.current_primary.value,
            profile.current_secondary.value,
            profile.current_combination_type.value,
            profile.last_test_date.isoformat(),
            profile.next_test_date.isoformat(),
            str(profile.should_retake_test),
            str(profile.has_type_changed),
            profile.previous_combination_type.value if profile.previous_combination_type else "",
            profile.type_change_date.isoformat() if profile.type_change_date else "",
            utc_now().isoformat(),
        ]

    def _row_to_profile(self, row: list, history: list[HistoryRecord]) -> Profile:
        safe_get = _safe_getter(row)
        return Profile(
            user_id=safe_get(0),
            current_primary=Dimension(safe_get(1)),
            current_secondary=Dimension(safe_get(2)),
            current_combination_type=CombinationType(safe_get(3)),
            last_test_date=datetime.fromisoformat(safe_get(4)),
            next_test_date=datetime.fromisoformat(safe_get(5)),
            should_retake_test=safe_get(6).lower() == "true",
            has_type_changed=safe_get(7).lower() == "true",
            previous_combination_type=CombinationType(safe_get(8)) if safe_get(8) else None,
            type_change_date=datetime.fromisoformat(safe_get(9)) if safe_get(9) else None,
            history=history,
        )

    def _record_to_row(self, user_id: str, record: HistoryRecord) -> list:
        return [
            user_id,
            record.test_date.isoformat(),
            record.primary_type.value,
            record.secondary_type.value,
            record.combination_type.value,
            encode_score_vector(record.score_snapshot),
            record.notes or "",
        ]

    def _row_to_record(self, row: list) -> HistoryRecord:
        safe_get = _safe_getter(row)
        return HistoryRecord(
            test_date=datetime.fromisoformat(safe_get(1)),
            primary_type=Dimension(safe_get(2)),
            secondary_type=Dimension(safe_get(3)),
            combination_type=CombinationType(safe_get(4)),
            # Corrupt score JSON degrades to zero scores, the record is kept
            score_snapshot=decode_score_vector(safe_get(5)),
            notes=safe_get(6) or None,
        )

    def _history_rows(self, user_id: str) -> list[list]:
        sheet = self._client.get_history_sheet()
        return [row for row in sheet.get_all_values()[1:] if row and row[0] == user_id]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(ConflictError),
        reraise=True,
    )
    async def save_profile(self, profile: Profile) -> bool:
        try:
            stored_count = len(self._history_rows(profile.user_id))
        except Exception as e:
            raise StorageError(f"Failed to read history: {e}")

        if stored_count > len(profile.history):
            raise ConflictError(
                f"History for {profile.user_id} is append-only; "
                f"{stored_count} records stored, {len(profile.history)} given"
            )

        try:
            new_records = profile.history[stored_count:]
            if new_records:
                self._client.get_history_sheet().append_rows(
                    [self._record_to_row(profile.user_id, r) for r in new_records],
                    value_input_option="RAW",
                )

            sheet = self._client.get_profiles_sheet()
            row = self._profile_to_row(profile)
            idx = _find_row(sheet.get_all_values(), profile.user_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(range_name=f"A{idx}", values=[row], value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save profile: {e}")

    async def list_history(self, user_id: str) -> list[HistoryRecord]:
        try:
            rows = self._history_rows(user_id)
        except Exception as e:
            raise StorageError(f"Failed to list history: {e}")

        records = []
        for row in rows:
            try:
                records.append(self._row_to_record(row))
            except Exception:
                logger.warning("history_row_malformed", user_id=user_id)
                continue  # Skip malformed rows

        return records

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            all_rows = self._client.get_profiles_sheet().get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to get profile: {e}")

        idx = _find_row(all_rows, user_id)
        if idx is None:
            return None

        history = await self.list_history(user_id)
        try:
            return self._row_to_profile(all_rows[idx - 1], history)
        except Exception:
            logger.warning("profile_row_malformed", user_id=user_id)
            return None

    async def list_profiles(self) -> list[Profile]:
        try:
            all_rows = self._client.get_profiles_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list profiles: {e}")

        profiles = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            profile = await self.get_profile(row[0])
            if profile is not None:
                profiles.append(profile)
        return profiles


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        safe_get = _safe_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
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
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_sheet_write_failed", error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
