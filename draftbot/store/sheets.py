"""
Google Sheets row store (gspread + service account).

Reads the whole A:I range once per run. Each write-back touches only
Session ID (A) and Date Sent, Message, Status (E:G) in one batch; Date Sent
and Message are left out for preserving statuses.
"""
import json
import logging
from typing import Optional

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.utils import ValueInputOption

from draftbot.config import Settings
from draftbot.errors import StoreError, StoreWriteError
from draftbot.schemas.row import Row
from draftbot.store.base import PRESERVING_STATUSES, RowStore, check_write_args, parse_rows

logger = logging.getLogger("draftbot")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

_API_ERRORS = (gspread.exceptions.GSpreadException, GoogleAuthError, OSError)


def load_credentials(settings: Settings) -> Credentials:
    """Inline GOOGLE_CREDENTIALS JSON wins over GOOGLE_CREDENTIALS_PATH."""
    try:
        if settings.google_credentials:
            info = json.loads(settings.google_credentials)
            return Credentials.from_service_account_info(info, scopes=SCOPES)
        return Credentials.from_service_account_file(
            settings.google_credentials_path, scopes=SCOPES
        )
    except (ValueError, OSError) as e:
        raise StoreError(f"Failed to load Google service account credentials: {e}") from e


class SheetsRowStore(RowStore):
    def __init__(self, settings: Settings, worksheet: Optional[gspread.Worksheet] = None):
        self.sheet_id = settings.google_sheet_id
        self.sheet_name = settings.google_sheet_name
        self._settings = settings
        self._worksheet = worksheet

    @property
    def worksheet(self) -> gspread.Worksheet:
        if self._worksheet is None:
            creds = load_credentials(self._settings)
            try:
                client = gspread.authorize(creds)
                self._worksheet = client.open_by_key(self.sheet_id).worksheet(self.sheet_name)
            except _API_ERRORS as e:
                raise StoreError(
                    f'Failed to open sheet "{self.sheet_name}" ({self.sheet_id}): {e}'
                ) from e
        return self._worksheet

    def describe(self) -> str:
        return f"Google Sheet {self.sheet_id} / {self.sheet_name}"

    def load_rows(self) -> list[Row]:
        try:
            values = self.worksheet.get("A:I")
        except StoreError:
            raise
        except _API_ERRORS as e:
            raise StoreError(f"Failed to fetch data from Google Sheets: {e}") from e

        if not values:
            logger.warning("Sheet is empty.")
            return []

        rows = parse_rows([list(r) for r in values])
        logger.info(f"Loaded {len(rows)} row(s) from {self.describe()}")
        return rows

    def write_outcome(
        self,
        row_index: int,
        session_id,
        sent_timestamp: str,
        message: str,
        status: str,
    ) -> None:
        check_write_args(row_index, session_id, sent_timestamp, message, status)

        # B:D (Date Added, Username, Source) are never part of the update
        data = [{"range": f"A{row_index}", "values": [[str(session_id)]]}]
        if status in PRESERVING_STATUSES:
            data.append({"range": f"G{row_index}", "values": [[status]]})
        else:
            data.append(
                {"range": f"E{row_index}:G{row_index}", "values": [[sent_timestamp, message, status]]}
            )

        try:
            self.worksheet.batch_update(data, value_input_option=ValueInputOption.raw)
        except _API_ERRORS as e:
            raise StoreWriteError(f"Failed to update row {row_index}: {e}") from e

        logger.debug(f"Row {row_index} -> {status} (session {session_id})")
