"""
Candidate selection: turns every row in the store into this run's worklist.

Pure functions. Nothing here mutates or persists rows.
"""
import logging
from typing import Iterable, Optional

from draftbot.schemas.row import Row, SelectionStats

logger = logging.getLogger("draftbot")


def eligible_rows_by_status(
    rows: list[Row],
    status: str,
    source_mode: str,
    limit: int,
    exclude_usernames: Iterable[str] = (),
) -> list[Row]:
    """
    Rows with exactly this status (and source, unless source_mode is "all"),
    deduplicated by username, in store order, capped at `limit`.

    Usernames in `exclude_usernames` are treated as already seen.
    """
    seen = {u.strip().lower() for u in exclude_usernames}
    eligible = []

    for row in rows:
        if row.status.strip() != status:
            continue
        if source_mode != "all" and row.source.strip().lower() != source_mode:
            continue

        username = row.username.strip().lower()
        if not username or username in seen:
            continue

        seen.add(username)
        eligible.append(row)

    return eligible[:limit]


def select_candidates(
    all_rows: list[Row],
    activate_status: str,
    source_mode: str,
    max_candidates_per_pool: int,
    max_worklist_size: int,
    fallback_enabled: bool = False,
    fallback_status: Optional[str] = None,
) -> tuple[list[Row], SelectionStats]:
    """
    Build the worklist from the primary pool, topped up from the fallback pool.

    Returns (worklist, stats). Primary rows always come first and the
    fallback pool never repeats a username already taken from primary.
    """
    primary_eligible = eligible_rows_by_status(
        all_rows, activate_status, source_mode, max_candidates_per_pool
    )
    selected_primary = primary_eligible[:max_worklist_size]
    selected_usernames = {row.username for row in selected_primary}

    fallback_eligible: list[Row] = []
    selected_fallback: list[Row] = []

    if fallback_enabled and len(selected_primary) < max_worklist_size:
        fallback_eligible = eligible_rows_by_status(
            all_rows,
            fallback_status or "",
            source_mode,
            max_candidates_per_pool,
            exclude_usernames=selected_usernames,
        )
        remaining = max_worklist_size - len(selected_primary)
        selected_fallback = fallback_eligible[:remaining]

    worklist = selected_primary + selected_fallback
    stats = SelectionStats(
        primary_eligible=len(primary_eligible),
        fallback_eligible=len(fallback_eligible),
        selected_primary=len(selected_primary),
        selected_fallback=len(selected_fallback),
        total_selected=len(worklist),
    )

    logger.debug(f"Selection stats: {stats.model_dump()}")
    return worklist, stats
