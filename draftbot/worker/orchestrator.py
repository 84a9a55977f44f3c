"""
Run loop and per-target state machine.

One run:
  1. Load rows from the store and build the worklist
  2. Launch the persistent browser and verify the Instagram session
  3. For each target, in its own tab:
       navigate -> open DM -> (history check) -> draft -> (send + retry once)
  4. Write the outcome back to the store and keep or close the tab
  5. Stop at MAX_DRAFT successes, then print the summary

Per-target failures never escape process_target(). Only
AuthenticationError and StoreError (on load) end a run early.
"""
import logging
import random
import time
from datetime import datetime

from draftbot.config import Settings
from draftbot.errors import AuthenticationError, DraftbotError, StoreError
from draftbot.instagram.automation import PROFILE_URL, PageDriver
from draftbot.instagram.browser import BrowserSession, is_login_surface
from draftbot.instagram.drafter import draft, send_with_retry
from draftbot.instagram.history import detect_history
from draftbot.instagram.names import resolve_first_name
from draftbot.instagram.opener import open_conversation
from draftbot.schemas.row import Row
from draftbot.services.message_service import build_draft_message
from draftbot.services.selector import select_candidates
from draftbot.store.base import RowStore
from draftbot.worker.outcome import (
    Outcome,
    OutcomeKind,
    RunSummary,
    TabAction,
    new_session_id,
)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


def setup_logging(settings: Settings) -> None:
    """
    Console logging (INFO) always; daily log file (DEBUG) under logs/ when
    ENABLE_FILE_LOGGING is on.
    """
    logger = logging.getLogger("draftbot")
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers on re-runs
    if logger.handlers:
        return

    if settings.enable_file_logging:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        log_filename = settings.logs_dir / f"outreach_{datetime.now().strftime('%Y-%m-%d')}.log"
        fh = logging.FileHandler(log_filename, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(ch)


class OutreachOrchestrator:
    """Selects the worklist and drives every target through the state machine."""

    def __init__(self, settings: Settings, store: RowStore, browser=None):
        self.settings = settings
        self.store = store
        self.browser = browser or BrowserSession(settings)
        self.logger = logging.getLogger("draftbot")

    def section(self, title: str) -> None:
        self.logger.info("=" * 60)
        self.logger.info(title)
        self.logger.info("=" * 60)

    @staticmethod
    def now_iso() -> str:
        """Return the current datetime as an ISO 8601 string."""
        return datetime.now().isoformat(timespec="seconds")

    def random_delay(self) -> None:
        """Sleep MIN_DELAY..MAX_DELAY seconds between targets."""
        delay = random.uniform(self.settings.min_delay, self.settings.max_delay)
        self.logger.info(f"Safety delay: waiting {delay:.1f} seconds...")
        time.sleep(delay)

    # --- Run ---

    def run(self, dry_run: bool = False) -> RunSummary:
        summary = RunSummary(session_id=new_session_id())
        self.section("Session Initialization")
        self.logger.info(f"Session ID: {summary.session_id}")
        if dry_run:
            self.logger.info("DRY RUN MODE - no browser, no store updates")
        self._log_settings()

        try:
            worklist = self.select_worklist()
            if not worklist:
                self.logger.warning("No rows match the filter criteria. Nothing to do.")
            elif dry_run:
                self._log_dry_run(worklist)
            else:
                self.section("Browser Initialization")
                self.browser.launch()
                self.browser.verify_session()

                self.section("Drafting Messages")
                self.process_worklist(worklist, summary)

        except DraftbotError as e:
            summary.abort(str(e))
            self.logger.error(f"Fatal error: {e}")
        except Exception as e:
            summary.abort(str(e))
            self.logger.critical(f"Unexpected error during run: {e}", exc_info=True)
            raise
        finally:
            summary.finish()
            self.log_summary(summary, dry_run)
            self.release_browser(summary)

        return summary

    def select_worklist(self) -> list:
        self.section("Loading Rows")
        rows = self.store.load_rows()

        self.section("Filtering and Deduplication")
        s = self.settings
        worklist, stats = select_candidates(
            rows,
            activate_status=s.activate_status,
            source_mode=s.source_mode,
            max_candidates_per_pool=s.max_process,
            max_worklist_size=s.max_draft,
            fallback_enabled=s.enable_fallback,
            fallback_status=s.fallback_status,
        )

        self.logger.info(f"Primary eligible: {stats.primary_eligible} rows")
        if s.enable_fallback:
            self.logger.info(f"Fallback eligible: {stats.fallback_eligible} rows")
            self.logger.info(f"Selected from primary: {stats.selected_primary} rows")
            self.logger.info(f"Selected from fallback: {stats.selected_fallback} rows")
        self.logger.info(f"Total selected: {stats.total_selected} rows ready for processing")
        return worklist

    def limit_reached(self, summary: RunSummary) -> bool:
        if self.settings.send_message:
            return summary.sent >= self.settings.max_draft
        return summary.drafted >= self.settings.max_draft

    def process_worklist(self, worklist: list, summary: RunSummary) -> None:
        for i, row in enumerate(worklist):
            if self.limit_reached(summary):
                self.logger.warning(f"Reached MAX_DRAFT limit ({self.settings.max_draft}). Stopping.")
                break

            self.logger.info(f"--- Target {i + 1}/{len(worklist)}: {row.username} (row {row.row_index}) ---")
            driver, outcome = self.open_tab(row)
            if driver is not None:
                outcome = self.process_target(driver, row)
            summary.record(outcome)
            self.write_back(row, outcome, summary)
            if driver is not None:
                self.apply_tab_policy(driver, row, outcome)

            if i < len(worklist) - 1 and not self.limit_reached(summary):
                self.random_delay()

    # --- Per target ---

    def open_tab(self, row: Row) -> tuple:
        """Return (driver, None), or (None, a Failed outcome) when no tab could be created."""
        try:
            return self.browser.new_driver(), None
        except Exception as e:
            self.logger.error(f"Could not open a tab for {row.username}: {e}", exc_info=True)
            return None, Outcome(OutcomeKind.FAILED, reason=f"could not open tab: {e}")

    def process_target(self, driver: PageDriver, row: Row) -> Outcome:
        """
        Run one target through the state machine. Returns an Outcome for
        everything except a logged-out session, which raises AuthenticationError.
        """
        try:
            return self._run_target(driver, row)
        except AuthenticationError:
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error processing {row.username}: {e}", exc_info=True)
            return Outcome(OutcomeKind.FAILED, reason=f"unexpected error: {e}")

    def _run_target(self, driver: PageDriver, row: Row) -> Outcome:
        s = self.settings

        # Start -> Navigated
        driver.navigate(PROFILE_URL.format(username=row.username))
        driver.pause(1500, 2500)
        if is_login_surface(driver):
            raise AuthenticationError(
                "Not logged in - redirected to login page. Run `draftbot --login` first."
            )

        # Navigated -> ConversationOpened
        opened = open_conversation(driver)
        if not opened.success:
            return Outcome(
                OutcomeKind.FAILED,
                reason=f"could not open conversation: {opened.reason}",
            )
        driver.pause(1000, 2000)

        # ConversationOpened -> HistoryChecked
        if s.detect_conversation:
            history = detect_history(
                driver,
                min_text_length=s.history_min_text_length,
                excluded_phrases=s.history_excluded_phrases,
            )
            if history.has_history:
                driver.close()
                return Outcome(
                    OutcomeKind.SKIPPED,
                    reason=f"existing conversation detected ({history.message_count} messages)",
                    strategy=opened.strategy_used,
                )
            self.logger.info(f"No existing conversation found for {row.username}")

        # -> Drafted
        first_name = resolve_first_name(driver, row.username)
        text = build_draft_message(s.draft_message, first_name, s.message_separator)
        drafted = draft(driver, text)
        if not drafted.success:
            return Outcome(
                OutcomeKind.FAILED,
                message=text,
                reason=f"could not draft message: {drafted.reason}",
                strategy=opened.strategy_used,
            )

        if not s.send_message:
            return Outcome(OutcomeKind.DRAFTED, message=text, strategy=opened.strategy_used)

        # Drafted -> Sent | SendFailed
        result = send_with_retry(driver)
        if result.sent:
            return Outcome(
                OutcomeKind.SENT,
                message=text,
                strategy=opened.strategy_used,
                send_attempts=result.attempts,
            )
        return Outcome(
            OutcomeKind.SEND_FAILED,
            message=text,
            reason="message send not confirmed after retry",
            strategy=opened.strategy_used,
            send_attempts=result.attempts,
        )

    def write_back(self, row: Row, outcome: Outcome, summary: RunSummary) -> None:
        policy = outcome.policy
        timestamp = self.now_iso() if policy.writes_message else ""
        message = outcome.message if policy.writes_message else ""

        try:
            self.store.write_outcome(row.row_index, summary.session_id, timestamp, message, policy.status)
        except StoreError as e:
            summary.store_errors += 1
            self.logger.error(f"Failed to update row {row.row_index} for {row.username}: {e}")
            return

        self.logger.info(
            f"Updated row {row.row_index} for {row.username} - Status: {policy.status}, "
            f"Session ID: {summary.session_id}"
        )
        if outcome.reason:
            self.logger.info(f"Reason: {outcome.reason}")

    def apply_tab_policy(self, driver: PageDriver, row: Row, outcome: Outcome) -> None:
        if outcome.policy.tab is TabAction.KEEP:
            self.logger.info(f"Keeping tab open for {row.username} ({outcome.policy.status})")
            return
        driver.close()
        self.logger.debug(f"Tab closed for {row.username}")

    # --- Reporting / teardown ---

    def _log_settings(self) -> None:
        s = self.settings
        self.logger.info(f"Instagram username: {s.instagram_username}")
        self.logger.info(f"Row store: {self.store.describe() or s.row_store}")
        self.logger.info(f"Source mode: {s.source_mode}")
        self.logger.info(f"Activate status: {s.activate_status}")
        self.logger.info(f"Fallback enabled: {s.enable_fallback}")
        if s.enable_fallback:
            self.logger.info(f"Fallback status: {s.fallback_status}")
        self.logger.info(f"Max draft: {s.max_draft}")
        self.logger.info(f"Max process: {s.max_process}")
        self.logger.info(f"Detect conversation: {s.detect_conversation}")
        self.logger.info(f"Send message: {s.send_message}")

    def _log_dry_run(self, worklist: list) -> None:
        self.section("Dry Run - Skipping Browser Initialization")
        self.logger.info("Would process the following users:")
        for index, row in enumerate(worklist, start=1):
            self.logger.info(f"  {index}. {row.username} (row {row.row_index}, status {row.status})")

    def log_summary(self, summary: RunSummary, dry_run: bool = False) -> None:
        if summary.aborted:
            self.section("Fatal Error Summary")
            self.logger.info(f"Reason: {summary.abort_reason}")
        elif dry_run:
            self.section("Final Summary (Dry Run)")
        else:
            self.section("Final Summary")

        self.logger.info(f"Session ID: {summary.session_id}")
        self.logger.info(f"Processed: {summary.processed}")
        if self.settings.send_message:
            self.logger.info(f"Sent: {summary.sent}")
            self.logger.info(f"Send Failed: {summary.send_failed}")
        else:
            self.logger.info(f"Drafted: {summary.drafted}")
        self.logger.info(f"Skipped: {summary.skipped}")
        self.logger.info(f"Failed: {summary.failed}")
        if summary.store_errors:
            self.logger.warning(f"Store write errors: {summary.store_errors}")
        self.logger.info(f"Run Duration: {summary.duration_text}")

    def release_browser(self, summary: RunSummary) -> None:
        """Close the browser. Aborted runs and KEEP_BROWSER_OPEN wait for ENTER first."""
        if not self.browser.is_open:
            return
        if summary.aborted:
            self.section("Run Aborted - Browser Remains Open")
            self.logger.info("Every open tab is left as it was for inspection.")
            self.wait_for_operator()
        elif self.settings.keep_browser_open:
            self.section("Script Completed - Browser Remains Open")
            self.logger.info("Drafted and failed-send tabs are left open for inspection.")
            self.wait_for_operator()
        self.browser.close()

    @staticmethod
    def wait_for_operator() -> None:
        try:
            input("  >>> Press ENTER to close the browser... ")
        except EOFError:
            pass
