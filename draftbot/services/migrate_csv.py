import csv
import logging
from pathlib import Path

from draftbot.errors import StoreError
from draftbot.models.lead import Lead
from draftbot.store.base import ALL_HEADERS, validate_headers

logger = logging.getLogger("draftbot")


def import_leads_csv(csv_path: Path, session_factory) -> int:
    """
    Append the rows of a sheet export (same header as the sheet) to the
    leads table. Blank lines are skipped. Returns the number imported.
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise StoreError(f"CSV file not found: {csv_path}")

    with open(csv_path, "r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            logger.info("CSV is empty, nothing to import.")
            return 0
        validate_headers(header)
        records = list(reader)

    db = session_factory()
    try:
        count = 0
        for raw in records:
            if not raw or all(not cell.strip() for cell in raw):
                continue
            cells = [c.strip() for c in raw] + [""] * (len(ALL_HEADERS) - len(raw))
            db.add(
                Lead(
                    session_id=cells[0],
                    date_added=cells[1],
                    username=cells[2],
                    source=cells[3],
                    date_sent=cells[4],
                    message=cells[5],
                    status=cells[6],
                    name=cells[7],
                    bio=cells[8],
                )
            )
            count += 1

        db.commit()
        logger.info(f"Imported {count} lead(s) from {csv_path.name}.")
        return count

    except Exception:
        db.rollback()
        logger.error(f"CSV import from {csv_path} failed, rolled back.")
        raise
    finally:
        db.close()
