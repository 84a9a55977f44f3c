"""
Row store contract and the sheet column layout shared by every backend.

Column order (A..I):
  Session ID | Date Added | Username | Source | Date Sent | Message | Status | Name | Bio

Name and Bio are optional. Only Session ID, Date Sent, Message and Status
are ever written; the rest belong to whoever fills the sheet upstream.
"""
from abc import ABC, abstractmethod
from typing import Optional

from draftbot.errors import StoreError, StoreWriteError
from draftbot.schemas.row import Row

REQUIRED_HEADERS = [
    "Session ID",
    "Date Added",
    "Username",
    "Source",
    "Date Sent",
    "Message",
    "Status",
]
OPTIONAL_HEADERS = ["Name", "Bio"]
ALL_HEADERS = REQUIRED_HEADERS + OPTIONAL_HEADERS

SESSION_ID = 0
DATE_ADDED = 1
USERNAME = 2
SOURCE = 3
DATE_SENT = 4
MESSAGE = 5
STATUS = 6
NAME = 7
BIO = 8

# Write-backs with these statuses keep the stored Date Sent / Message
PRESERVING_STATUSES = frozenset({"Send Failed", "Skipped", "Failed"})


def validate_headers(header_row: list) -> None:
    """Raise StoreError unless the first seven columns match REQUIRED_HEADERS exactly."""
    if len(header_row) < len(REQUIRED_HEADERS):
        raise StoreError(
            f"Invalid sheet structure: expected {len(REQUIRED_HEADERS)} columns, "
            f"found {len(header_row)}. Required columns: {', '.join(REQUIRED_HEADERS)}"
        )

    for i, expected in enumerate(REQUIRED_HEADERS):
        actual = (header_row[i] or "").strip()
        if actual != expected:
            raise StoreError(
                f'Invalid sheet structure: column {i + 1} should be "{expected}", '
                f'but found "{actual}". Ensure headers match exactly: '
                f"{', '.join(REQUIRED_HEADERS)}"
            )


def parse_rows(values: list[list[str]]) -> list[Row]:
    """
    Turn raw sheet values (header included) into Rows.

    Blank rows are skipped but keep their place in the numbering, so
    row_index always points at the real sheet row.
    """
    if not values:
        return []

    validate_headers(values[0])
    rows = []

    for offset, raw in enumerate(values[1:]):
        if not raw or all(not (cell or "").strip() for cell in raw):
            continue

        cells = list(raw) + [""] * (len(ALL_HEADERS) - len(raw))
        rows.append(
            Row(
                row_index=offset + 2,
                session_id=cells[SESSION_ID].strip() or None,
                date_added=cells[DATE_ADDED],
                username=cells[USERNAME],
                source=cells[SOURCE],
                date_sent=cells[DATE_SENT],
                message=cells[MESSAGE],
                status=cells[STATUS],
                name=cells[NAME],
                bio=cells[BIO],
            )
        )

    return rows


def check_write_args(row_index, session_id, sent_timestamp, message, status) -> None:
    if not isinstance(row_index, int) or isinstance(row_index, bool) or row_index < 2:
        raise StoreWriteError(
            f"Invalid row_index: {row_index}. Must be an integer >= 2 (row 1 is header)"
        )
    if session_id is None or not str(session_id).strip():
        raise StoreWriteError("session_id is required and must be non-empty")
    if not isinstance(sent_timestamp, str):
        raise StoreWriteError("sent_timestamp must be a string (can be empty)")
    if not isinstance(message, str):
        raise StoreWriteError("message must be a string")
    if not isinstance(status, str) or not status.strip():
        raise StoreWriteError("status must be a non-empty string")


def merge_outcome(
    current: list[str], session_id, sent_timestamp: str, message: str, status: str
) -> list[str]:
    """
    Apply a write-back to a copy of the current row cells.

    Session ID and Status always change. Date Sent and Message change only
    when the status is not in PRESERVING_STATUSES.
    """
    updated = list(current) + [""] * (len(REQUIRED_HEADERS) - len(current))
    updated[SESSION_ID] = str(session_id)
    if status not in PRESERVING_STATUSES:
        updated[DATE_SENT] = sent_timestamp
        updated[MESSAGE] = message
    updated[STATUS] = status
    return updated


class RowStore(ABC):
    """Where candidate rows come from and where outcomes go back to."""

    @abstractmethod
    def load_rows(self) -> list[Row]:
        """Read and validate every row. Raises StoreError on failure."""

    @abstractmethod
    def write_outcome(
        self,
        row_index: int,
        session_id,
        sent_timestamp: str,
        message: str,
        status: str,
    ) -> None:
        """Persist one target's result. Raises StoreWriteError on failure."""

    def describe(self) -> Optional[str]:
        return None
