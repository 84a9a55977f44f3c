import logging
from dataclasses import dataclass

from draftbot.config import DEFAULT_EXCLUDED_PHRASES
from draftbot.instagram.automation import PageDriver

logger = logging.getLogger("draftbot")

MODAL_CONTAINER = 'div[aria-label="Chat details"], div[role="none"]:has(span[dir="auto"])'
FULL_PAGE_CONTAINER = 'div[role="none"]:has(span[dir="auto"])'
UNKNOWN_CONTAINER = 'div[role="none"]:has(span[dir="auto"]), div[aria-label="Chat details"]'


@dataclass
class HistoryResult:
    has_history: bool
    message_count: int = 0
    reason: str = ""


def _container_for_layout(driver: PageDriver) -> tuple:
    if driver.count('div[role="dialog"]'):
        return "modal", MODAL_CONTAINER
    if driver.count('div[role="presentation"]'):
        return "full-page", FULL_PAGE_CONTAINER
    return "unknown", UNKNOWN_CONTAINER


def _fragment_selector(container: str) -> str:
    parts = [c.strip() for c in container.split(", ")]
    return ", ".join(f"{c} div[dir=\"auto\"], {c} span[dir=\"auto\"]" for c in parts)


def is_message_text(fragment, min_text_length: int, excluded_phrases) -> bool:
    text = (fragment.text or "").strip()
    if not text or fragment.in_header:
        return False
    lowered = text.lower()
    if any(phrase in lowered for phrase in excluded_phrases):
        return False
    return len(text) >= min_text_length


def detect_history(
    driver: PageDriver,
    min_text_length: int = 3,
    excluded_phrases=DEFAULT_EXCLUDED_PHRASES,
) -> HistoryResult:
    """
    Decide whether the open DM thread already has messages in it.

    Header/identity text and UI labels (anything containing an excluded
    phrase, or shorter than min_text_length) are not counted. Any error
    reports no history.
    """
    try:
        driver.pause(250, 500)
        layout, container = _container_for_layout(driver)
        logger.debug(f"Detected {layout} DM layout")

        fragments = driver.collect_text(_fragment_selector(container))
        messages = [
            f for f in fragments if is_message_text(f, min_text_length, excluded_phrases)
        ]
        logger.debug(
            f"History scan: {len(fragments)} candidate(s), {len(messages)} counted as messages"
        )

        if messages:
            sample = ", ".join(f.text for f in messages[:3])
            logger.debug(f"Sample messages: {sample}")
            return HistoryResult(True, len(messages), "detected_valid_message_bubbles")
        return HistoryResult(False, 0, "empty_thread")

    except Exception as e:
        logger.warning(f"Conversation detection error: {e}")
        return HistoryResult(False, 0, "detection_error")
