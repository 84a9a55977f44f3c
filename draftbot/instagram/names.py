"""
First-name lookup from the open DM thread header, with the username as
the fallback source.
"""
import logging

from draftbot.instagram.automation import PageDriver
from draftbot.services.message_service import (
    derive_first_name_from_username,
    sanitize_first_name,
)

logger = logging.getLogger("draftbot")

POPUP_NAME_SELECTORS = [
    'div[role="dialog"] h2 span[title]',
    'div[role="dialog"] h2 span',
    'div[role="dialog"] header h2 span',
    'div[role="dialog"] [data-visualcompletion="ignore-dynamic"] span',
]
PAGE_NAME_SELECTORS = [
    "header h2 span[title]",
    "header h2 span",
    "h2 span[title]",
    "h2 span",
    '[data-testid="chat-header"] h2 span',
]

POPUP_ARIA_SELECTORS = ['[role="dialog"] a[aria-label]', '[role="dialog"] [aria-label]']
PAGE_ARIA_SELECTORS = ['a[aria-label^="Open the profile page of"]', "header [aria-label]"]

POPUP_FALLBACK_SELECTOR = 'div[role="dialog"] span[dir="auto"], div[role="dialog"] span'
PAGE_FALLBACK_SELECTOR = 'header span[dir="auto"], span[dir="auto"]'

MAX_DISPLAY_NAME_LENGTH = 40


def _first_text(driver: PageDriver, selectors, attribute: str = None) -> str:
    for selector in selectors:
        element = driver.locate(selector)
        if element is None:
            continue
        if attribute:
            text = driver.read_attribute(element, attribute)
        else:
            text = driver.read_text(element)
        if text and text.strip():
            return text.strip()
    return ""


def read_display_name(driver: PageDriver) -> str:
    """Display name shown in the DM header, or "" if none is readable."""
    driver.wait_for(['div[role="dialog"]', '[role="main"]', '[role="presentation"]'], 5000)
    is_popup = driver.count('div[role="dialog"]') > 0

    name = _first_text(driver, POPUP_NAME_SELECTORS if is_popup else PAGE_NAME_SELECTORS)
    if name:
        return name

    name = _first_text(
        driver,
        POPUP_ARIA_SELECTORS if is_popup else PAGE_ARIA_SELECTORS,
        attribute="aria-label",
    )
    if name:
        logger.debug("Name extracted via aria-label")
        return name

    fragments = driver.collect_text(POPUP_FALLBACK_SELECTOR if is_popup else PAGE_FALLBACK_SELECTOR)
    for fragment in fragments:
        if fragment.text and len(fragment.text) <= MAX_DISPLAY_NAME_LENGTH:
            logger.debug("Name extracted via generic fallback")
            return fragment.text
    return ""


def resolve_first_name(driver: PageDriver, username: str = "") -> str:
    """
    Display name from the thread header first, else a guess from the
    username. Returns "" when neither yields a usable name.
    """
    try:
        first_name = sanitize_first_name(read_display_name(driver))
    except Exception as e:
        logger.warning(f"Error extracting first name from page: {e}")
        first_name = ""

    if first_name:
        logger.info(f"Extracted first name from page: {first_name}")
        return first_name

    derived = derive_first_name_from_username(username)
    if derived:
        logger.info(f"Derived first name from username: {derived}")
        return derived

    logger.warning("Could not extract or derive first name")
    return ""
