"""
Conversation opening. Two strategies, tried in order:

  direct        "Message" button on the profile header
  options_menu  profile "Options" (...) menu -> "Send message"

Each strategy and each composer confirmation signal is a plain function
returning an Attempt, so adding one means appending to a list.
"""
import logging
import random
from dataclasses import dataclass, field

from draftbot.instagram.automation import PageDriver

logger = logging.getLogger("draftbot")

PROFILE_HEADER_SELECTOR = "header, span.x1lliihq.x193iq5w.x6ikm8r.x10wlt62.xlyipyv.xuxw1ft"

MESSAGE_BUTTON_SELECTORS = [
    'div[role="button"]:has-text("Message")',
    'button:has-text("Message")',
    'a:has-text("Message")',
    '[data-testid*="message"]',
    'span:has-text("Message")',
]

OPTIONS_BUTTON_SELECTORS = [
    'div[role="button"]:has(svg[aria-label="Options"])',
    'button:has(svg[aria-label="Options"])',
    'svg[aria-label="Options"]',
]

DIALOG_SELECTOR = 'div[role="dialog"]'

SEND_MESSAGE_MENU_SELECTORS = [
    'div[role="dialog"] button:has-text("Send message")',
    'div[role="dialog"] div[role="button"]:has-text("Send message")',
]

COMPOSER_INPUT_SELECTORS = [
    'textarea[placeholder*="Message"]',
    'textarea[placeholder*="message"]',
    'p[contenteditable="true"]',
    'div[contenteditable="true"]',
    "textarea",
    '[contenteditable="true"]',
]


@dataclass
class Attempt:
    success: bool
    detail: str = ""


@dataclass
class OpenResult:
    success: bool
    strategy_used: str = ""
    reason: str = ""
    attempts: list = field(default_factory=list)


# --- Composer confirmation signals ---

def _url_signal(driver: PageDriver) -> Attempt:
    if "/direct/" in driver.current_url():
        return Attempt(True, "url")
    return Attempt(False, "url unchanged")


def _dialog_signal(driver: PageDriver) -> Attempt:
    if driver.wait_for(DIALOG_SELECTOR, 8000) is not None:
        return Attempt(True, "dialog")
    return Attempt(False, "no dialog")


def _input_signal(driver: PageDriver) -> Attempt:
    for selector in COMPOSER_INPUT_SELECTORS:
        if driver.wait_for(selector, 3000) is not None:
            return Attempt(True, f"input field ({selector})")
    return Attempt(False, "no input field")


def _delayed_url_signal(driver: PageDriver) -> Attempt:
    driver.pause(2000, 3000)
    if "/direct/" in driver.current_url():
        return Attempt(True, "url (delayed)")
    return Attempt(False, "url unchanged after wait")


CONFIRMATION_SIGNALS: list = [
    _url_signal,
    _dialog_signal,
    _input_signal,
    _delayed_url_signal,
]


def confirm_composer_open(driver: PageDriver, signals=None) -> Attempt:
    """First positive signal wins. Every signal is bounded on its own."""
    for signal in signals or CONFIRMATION_SIGNALS:
        try:
            result = signal(driver)
        except Exception as e:
            logger.debug(f"Composer signal {signal.__name__} errored: {e}")
            continue
        if result.success:
            logger.debug(f"Composer detected via {result.detail}")
            return result
    return Attempt(False, "composer not detected")


def _click_with_force_fallback(driver: PageDriver, element) -> bool:
    try:
        driver.click(element)
        return True
    except Exception as e:
        logger.debug(f"Normal click failed ({e}), trying force click")
    try:
        driver.click(element, force=True)
        return True
    except Exception as e:
        logger.debug(f"Force click failed: {e}")
        return False


# --- Strategies ---

def open_direct(driver: PageDriver) -> Attempt:
    """Click the profile's "Message" button."""
    driver.wait_for(PROFILE_HEADER_SELECTOR, 7000)

    button = driver.locate(MESSAGE_BUTTON_SELECTORS)
    if button is None:
        return Attempt(False, "message button not found")

    driver.pause(400, 900)
    if not _click_with_force_fallback(driver, button):
        return Attempt(False, "failed to click message button")

    driver.pause(1500, 2500)
    confirmed = confirm_composer_open(driver)
    if not confirmed.success:
        return Attempt(False, "dm not opened")
    return Attempt(True, confirmed.detail)


def _dismiss_interstitial(driver: PageDriver) -> None:
    """Click somewhere in the chat area to close "Turn on notifications" style popups."""
    try:
        driver.pause(800, 1500)
        driver.click_at(random.randint(600, 800), random.randint(300, 450))
        driver.pause(1000, 1500)
    except Exception as e:
        logger.debug(f"Interstitial dismissal click ignored: {e}")


def open_via_options_menu(driver: PageDriver) -> Attempt:
    """Profile "Options" menu, then "Send message"."""
    driver.scroll_to_top()

    options = driver.wait_for(OPTIONS_BUTTON_SELECTORS, 7000)
    if options is None:
        return Attempt(False, "options icon not found")

    driver.pause(400, 800)
    if not _click_with_force_fallback(driver, options):
        return Attempt(False, "options click failed")

    driver.pause(1800, 2500)
    if driver.wait_for(DIALOG_SELECTOR, 7000) is None:
        return Attempt(False, "options dialog not found")

    send_button = driver.wait_for(SEND_MESSAGE_MENU_SELECTORS, 3000)
    if send_button is None:
        return Attempt(False, "send message button not found")

    if not _click_with_force_fallback(driver, send_button):
        return Attempt(False, "send message click failed")

    driver.pause(2000, 3000)
    confirmed = confirm_composer_open(driver)
    if not confirmed.success:
        return Attempt(False, "dm not opened")

    _dismiss_interstitial(driver)
    return Attempt(True, confirmed.detail)


# (name, strategy) pairs, tried in order
DEFAULT_STRATEGIES: list = [
    ("direct", open_direct),
    ("options_menu", open_via_options_menu),
]


def open_conversation(driver: PageDriver, strategies=None) -> OpenResult:
    """
    Try each strategy once, in order, stopping at the first success.
    Strategy exceptions count as a failed attempt.
    """
    attempts = []
    for name, strategy in strategies or DEFAULT_STRATEGIES:
        logger.info(f"Opening DM via {name}...")
        try:
            result = strategy(driver)
        except Exception as e:
            result = Attempt(False, f"error: {e}")

        attempts.append((name, result))
        if result.success:
            logger.info(f"DM opened via {name} ({result.detail})")
            return OpenResult(True, strategy_used=name, attempts=attempts)

        logger.warning(f"Strategy {name} failed: {result.detail}")

    reason = "; ".join(f"{name}: {result.detail}" for name, result in attempts)
    return OpenResult(False, reason=reason, attempts=attempts)
