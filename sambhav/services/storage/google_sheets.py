"""
Finance Records in Google Sheets

DESIGN DECISION: Records live in a spreadsheet the owner already has
access to. They can read or export the raw rows without this app, and
there is no database to run or back up.

TRADEOFFS:
- Not suitable for high-volume data (fine for a single small business)
- No transactions (one row per record keeps writes independent)
- Limited query capabilities (the ledger is computed in Python anyway)
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from sambhav.config import get_settings
from sambhav.config.settings import GoogleSheetsSettings
from sambhav.logging_setup import get_logger
from sambhav.models.record import BillImageRef, FinanceRecord
from sambhav.services.storage.interface import (
    ConnectionError,
    FieldsInput,
    RecordStoreInterface,
    StorageError,
)


# Column mappings for the records sheet
RECORD_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "user_name",
    "mobile_number",
    "amount",
    "location",
    "bill_image_url",
    "bill_image_storage_id",
]

logger = get_logger(__name__)


class GoogleSheetsClient:
    """
    Opens the records spreadsheet with a service account.

    The gspread client and spreadsheet handle are created on first use
    and reused afterwards.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Authorize with the service account key (retried).
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

    def get_records_sheet(self) -> gspread.Worksheet:
        """Get or create the finance records worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.records_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.records_sheet_name,
                rows=1000,
                cols=len(RECORD_COLUMNS),
            )
            sheet.append_row(RECORD_COLUMNS)
        return sheet


def record_to_row(record: FinanceRecord) -> list[str]:
    """Convert a FinanceRecord to a spreadsheet row."""
    return [
        record.id,
        record.created_at.isoformat(),
        record.updated_at.isoformat(),
        record.user_name,
        record.mobile_number,
        str(record.amount),
        record.location,
        record.bill_image.url,
        record.bill_image.storage_id,
    ]


def _parse_timestamp(value: str) -> datetime:
    """ISO timestamp; one typed into the sheet without an offset is taken as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_record(row: list) -> FinanceRecord:
    """
    Convert a spreadsheet row to a FinanceRecord.

    Raises:
        StorageError: If the row cannot be parsed into a valid record
    """
    # Handle missing trailing columns
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    try:
        return FinanceRecord(
            id=safe_get(0),
            created_at=_parse_timestamp(safe_get(1)),
            updated_at=_parse_timestamp(safe_get(2) or safe_get(1)),
            user_name=safe_get(3),
            mobile_number=safe_get(4),
            amount=Decimal(safe_get(5)),
            location=safe_get(6),
            bill_image=BillImageRef(
                url=safe_get(7),
                storage_id=safe_get(8),
            ),
        )
    except (ValueError, InvalidOperation) as e:
        raise StorageError(f"Malformed record row {safe_get(0) or '?'}: {e}") from e


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of record storage.

    Records are stored as rows in a worksheet, one record per row,
    with the header in row 1.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _data_rows(self) -> list[list]:
        """All rows below the header."""
        sheet = self._client.get_records_sheet()
        return sheet.get_all_values()[1:]

    def _find_row(self, record_id: str) -> tuple[Optional[int], Optional[list]]:
        """Return (sheet row number, row values) for a record ID."""
        for idx, row in enumerate(self._data_rows(), start=2):  # row 1 is header
            if row and row[0] == record_id:
                return idx, row
        return None, None

    async def list_all(self) -> list[FinanceRecord]:
        """List all records, newest first."""
        try:
            rows = self._data_rows()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list records: {e}")

        records = []
        for row in rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(row_to_record(row))
            except StorageError as e:
                logger.warning("malformed_record_row_skipped", error=str(e))

        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    async def get_by_id(self, record_id: str) -> Optional[FinanceRecord]:
        """Retrieve a record by its ID."""
        try:
            _, row = self._find_row(record_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get record: {e}")
        return row_to_record(row) if row else None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _append(self, record: FinanceRecord) -> None:
        try:
            sheet = self._client.get_records_sheet()
            sheet.append_row(record_to_row(record), value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save record: {e}")

    async def create(
        self,
        fields: FieldsInput,
        bill_image: Optional[BillImageRef],
    ) -> FinanceRecord:
        """Validate and append a new record."""
        validated = self.validate_fields(fields)
        image = self.require_image(bill_image)
        record = FinanceRecord(bill_image=image, **validated.model_dump())
        await self._append(record)
        return record

    async def update(
        self,
        record_id: str,
        fields: FieldsInput,
        bill_image: Optional[BillImageRef] = None,
    ) -> Optional[FinanceRecord]:
        """Rewrite a record's row in place."""
        validated = self.validate_fields(fields)
        try:
            idx, row = self._find_row(record_id)
            if row is None:
                return None
            updated = row_to_record(row).with_changes(validated, bill_image)
            sheet = self._client.get_records_sheet()
            sheet.update(
                range_name=f"A{idx}",
                values=[record_to_row(updated)],
                value_input_option="RAW",
            )
            return updated
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update record: {e}")

    async def delete_by_id(self, record_id: str) -> bool:
        """Delete a record's row."""
        try:
            idx, _ = self._find_row(record_id)
            if idx is None:
                return False
            self._client.get_records_sheet().delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete record: {e}")
