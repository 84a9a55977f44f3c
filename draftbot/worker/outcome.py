"""
What happened to one target, and what that means for the row store and
the browser tab. OUTCOME_POLICY is the single place that decision lives.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OutcomeKind(str, Enum):
    DRAFTED = "drafted"
    SENT = "sent"
    SEND_FAILED = "send_failed"
    SKIPPED = "skipped"
    FAILED = "failed"


class TabAction(str, Enum):
    KEEP = "keep"
    CLOSE = "close"
    CLOSE_IMMEDIATELY = "close_immediately"


@dataclass(frozen=True)
class OutcomePolicy:
    status: str
    writes_message: bool
    tab: TabAction


OUTCOME_POLICY = {
    OutcomeKind.DRAFTED: OutcomePolicy("Drafted", True, TabAction.KEEP),
    OutcomeKind.SENT: OutcomePolicy("Sent", True, TabAction.CLOSE),
    OutcomeKind.SEND_FAILED: OutcomePolicy("Send Failed", False, TabAction.KEEP),
    OutcomeKind.SKIPPED: OutcomePolicy("Skipped", False, TabAction.CLOSE_IMMEDIATELY),
    OutcomeKind.FAILED: OutcomePolicy("Failed", False, TabAction.CLOSE),
}


@dataclass
class Outcome:
    kind: OutcomeKind
    message: str = ""
    reason: str = ""
    strategy: str = ""
    send_attempts: int = 0

    @property
    def policy(self) -> OutcomePolicy:
        return OUTCOME_POLICY[self.kind]


def format_run_duration(seconds: Optional[float]) -> str:
    """3m 12.48s, or 12.48s under a minute. Invalid input gives "0s"."""
    if seconds is None or not isinstance(seconds, (int, float)) or seconds != seconds or seconds < 0:
        return "0s"
    minutes = int(seconds // 60)
    remainder = seconds - minutes * 60
    if minutes > 0:
        return f"{minutes}m {remainder:.2f}s"
    return f"{remainder:.2f}s"


_last_session_id = 0


def new_session_id() -> int:
    """Millisecond timestamp, strictly increasing within this process."""
    global _last_session_id
    candidate = int(time.time() * 1000)
    if candidate <= _last_session_id:
        candidate = _last_session_id + 1
    _last_session_id = candidate
    return candidate


@dataclass
class RunSummary:
    session_id: int
    started_at: float = field(default_factory=time.monotonic)
    drafted: int = 0
    sent: int = 0
    send_failed: int = 0
    skipped: int = 0
    failed: int = 0
    store_errors: int = 0
    processed: int = 0
    aborted: bool = False
    abort_reason: str = ""
    finished_at: Optional[float] = None

    _COUNTERS = {
        OutcomeKind.DRAFTED: "drafted",
        OutcomeKind.SENT: "sent",
        OutcomeKind.SEND_FAILED: "send_failed",
        OutcomeKind.SKIPPED: "skipped",
        OutcomeKind.FAILED: "failed",
    }

    def record(self, outcome: Outcome) -> None:
        self.processed += 1
        name = self._COUNTERS[outcome.kind]
        setattr(self, name, getattr(self, name) + 1)

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    @property
    def duration(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    @property
    def duration_text(self) -> str:
        return format_run_duration(self.duration)
