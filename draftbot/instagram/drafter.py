"""
Typing the message into the DM composer and, in send mode, sending it.

draft() never sends. send_with_retry() presses Enter and waits for a sign
that the message left; if none shows up it tries exactly once more.
"""
import logging
from dataclasses import dataclass

from draftbot.instagram.automation import PageDriver

logger = logging.getLogger("draftbot")

INPUT_SELECTORS = [
    'p[contenteditable="true"]',
    'div[contenteditable="true"]',
    'p[dir="auto"][contenteditable]',
    "textarea",
    'div[role="textbox"]',
]

MESSAGE_ROW_SELECTOR = 'div[role="row"]'

CONFIRM_POLLS = 6
MIN_SENT_TEXT_LENGTH = 5


@dataclass
class DraftResult:
    success: bool
    typed_text: str = ""
    reason: str = ""


@dataclass
class SendResult:
    sent: bool
    attempts: int = 0


def draft(driver: PageDriver, text: str) -> DraftResult:
    """Type `text` into the composer and verify it reads back identically."""
    if not text or not text.strip():
        return DraftResult(False, reason="Missing or empty message text")

    element = driver.locate(INPUT_SELECTORS)
    if element is None:
        logger.error("No DM input field found")
        return DraftResult(False, reason="No DM input field found")

    driver.pause(250, 500)
    driver.click(element)
    driver.pause(250, 500)
    driver.clear(element)

    driver.type_text(element, text)
    driver.pause(500, 1000)

    typed = driver.read_text(element)
    if typed.strip() != text.strip():
        logger.error("Draft verification failed")
        return DraftResult(
            False,
            typed_text=typed,
            reason=f"Message verification failed. Expected: {text!r} Got: {typed!r}",
        )

    logger.info("Message populated successfully")
    return DraftResult(True, typed_text=typed)


def send(driver: PageDriver) -> bool:
    """Focus the composer and press Enter."""
    element = driver.locate(INPUT_SELECTORS)
    if element is None:
        logger.error("No DM input field found to send from")
        return False
    try:
        driver.focus(element)
        driver.pause(200, 400)
        driver.press("Enter")
    except Exception as e:
        logger.error(f"Error sending message: {e}")
        return False
    return True


def confirm_sent(driver: PageDriver, rows_before: int) -> bool:
    """
    Poll briefly for any sign the message went out: more message rows than
    before, an emptied composer, or a last row with real text in it.
    """
    for _ in range(CONFIRM_POLLS):
        driver.pause(400, 600)

        rows_after = driver.count(MESSAGE_ROW_SELECTOR)
        if rows_after > rows_before:
            logger.info(f"Message bubble detected ({rows_before} -> {rows_after} rows)")
            return True

        element = driver.locate(INPUT_SELECTORS)
        if element is not None and not driver.read_text(element).strip():
            logger.info("Input field cleared - message sent")
            return True

        rows = driver.locate_all(MESSAGE_ROW_SELECTOR)
        if rows and len(driver.read_text(rows[-1]).strip()) > MIN_SENT_TEXT_LENGTH:
            logger.info("Message bubble detected via last message text")
            return True

    logger.warning(f"Could not confirm message was sent ({rows_before} rows before)")
    return False


def send_with_retry(driver: PageDriver, max_attempts: int = 2) -> SendResult:
    rows_before = driver.count(MESSAGE_ROW_SELECTOR)

    for attempt in range(1, max_attempts + 1):
        if send(driver) and confirm_sent(driver, rows_before):
            logger.info(f"Message sent and confirmed (attempt {attempt})")
            return SendResult(True, attempt)

        if attempt < max_attempts:
            logger.warning("Message send confirmation failed - retrying once...")
            driver.pause(500, 1000)

    logger.error(f"Message send failed after {max_attempts} attempt(s)")
    return SendResult(False, max_attempts)
