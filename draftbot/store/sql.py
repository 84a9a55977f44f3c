"""
Local SQL row store. Same rows and write-back rules as the sheet, kept in
the `leads` table so a run can work offline (ROW_STORE=sqlite).
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from draftbot.database import make_session_factory
from draftbot.errors import StoreError, StoreWriteError
from draftbot.models.lead import Lead
from draftbot.schemas.row import Row
from draftbot.store.base import (
    DATE_SENT,
    MESSAGE,
    SESSION_ID,
    STATUS,
    RowStore,
    check_write_args,
    merge_outcome,
)

logger = logging.getLogger("draftbot")


class SqlRowStore(RowStore):
    def __init__(self, database_url: str, session_factory=None):
        self.database_url = database_url
        self.SessionLocal = session_factory or make_session_factory(database_url)

    def describe(self) -> str:
        return f"SQL store {self.database_url}"

    def load_rows(self) -> list[Row]:
        db = self.SessionLocal()
        try:
            leads = db.query(Lead).order_by(Lead.id).all()
            rows = [
                Row(
                    row_index=lead.row_index,
                    session_id=(lead.session_id or "").strip() or None,
                    date_added=lead.date_added or "",
                    username=lead.username or "",
                    source=lead.source or "",
                    date_sent=lead.date_sent or "",
                    message=lead.message or "",
                    status=lead.status or "",
                    name=lead.name or "",
                    bio=lead.bio or "",
                )
                for lead in leads
                if (lead.username or "").strip() or (lead.status or "").strip()
            ]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load rows from {self.database_url}: {e}") from e
        finally:
            db.close()

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

        db = self.SessionLocal()
        try:
            lead = db.get(Lead, row_index - 1)
            if lead is None:
                raise StoreWriteError(f"Row {row_index} does not exist")

            updated = merge_outcome(lead.to_cells(), session_id, sent_timestamp, message, status)
            lead.session_id = updated[SESSION_ID]
            lead.date_sent = updated[DATE_SENT]
            lead.message = updated[MESSAGE]
            lead.status = updated[STATUS]
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreWriteError(f"Failed to update row {row_index}: {e}") from e
        finally:
            db.close()

        logger.debug(f"Row {row_index} -> {status} (session {session_id})")
