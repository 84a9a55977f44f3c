"""
Instagram browser automation via Playwright.

PageDriver is the only thing in draftbot that touches a Playwright Page.
Everything above it (opener, history, names, drafter) speaks in terms of
ordered candidate selector lists and "first match wins".

SELECTOR STRATEGY (Instagram changes DOM frequently):
  1. ARIA / role selectors FIRST: [role="button"], [aria-label=...]
  2. Text-based selectors SECOND: :has-text("Message")
  3. Obfuscated class names LAST RESORT, and only for waits

Lookups return None / empty on failure. Actions (click, type) raise
playwright Error so callers can decide whether to retry or force.
"""
import logging
import random
import time
from typing import NamedTuple, Optional, Union

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

PROFILE_URL = "https://www.instagram.com/{username}/"
HOME_URL = "https://www.instagram.com/"

# First N characters are typed key by key, the rest is inserted in one go
TYPED_PREFIX_CHARS = 10

_COLLECT_TEXT_JS = """
nodes => nodes.map(el => ({
    text: (el.innerText || el.textContent || '').trim(),
    in_header: el.closest('[role="banner"], [aria-label*="profile"]') !== null,
}))
"""

_DISPATCH_INPUT_JS = """
el => {
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""


class TextFragment(NamedTuple):
    text: str
    in_header: bool = False


Selectors = Union[str, list, tuple]


def _as_list(selectors: Selectors) -> list:
    if isinstance(selectors, str):
        return [selectors]
    return list(selectors)


class PageDriver:
    """One browser tab. All Instagram UI interaction goes through here."""

    def __init__(self, page: Page):
        self.page = page
        self.logger = logging.getLogger("draftbot")
        self._closed = False

    # --- Navigation ---

    def navigate(self, url: str) -> None:
        self.logger.debug(f"Navigating to {url}")
        self.page.goto(url, wait_until="domcontentloaded", timeout=30000)

    def current_url(self) -> str:
        try:
            return self.page.url
        except PlaywrightError:
            return ""

    def scroll_to_top(self) -> None:
        self.page.evaluate("window.scrollTo({top: 0, behavior: 'smooth'})")

    # --- Lookup ---

    def locate(self, selectors: Selectors) -> Optional[Locator]:
        """First element matching the first selector (in order) that matches anything."""
        for selector in _as_list(selectors):
            try:
                locator = self.page.locator(selector).first
                if locator.count():
                    self.logger.debug(f"Matched selector: {selector}")
                    return locator
            except PlaywrightError as e:
                self.logger.debug(f"Selector {selector!r} lookup failed: {e}")
        return None

    def locate_all(self, selector: str) -> list:
        try:
            return self.page.locator(selector).all()
        except PlaywrightError:
            return []

    def wait_for(self, selectors: Selectors, timeout_ms: int) -> Optional[Locator]:
        """
        Wait up to timeout_ms for any of the selectors to become visible.
        Returns the first match, or None on timeout.
        """
        joined = ", ".join(_as_list(selectors))
        try:
            self.page.wait_for_selector(joined, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return None
        except PlaywrightError as e:
            self.logger.debug(f"wait_for({joined!r}) failed: {e}")
            return None
        return self.locate(selectors)

    def count(self, selector: str) -> int:
        try:
            return self.page.locator(selector).count()
        except PlaywrightError:
            return 0

    def collect_text(self, selector: str) -> list:
        """Visible text of every match, flagged when it sits inside a header or profile block."""
        try:
            items = self.page.locator(selector).evaluate_all(_COLLECT_TEXT_JS)
        except PlaywrightError as e:
            self.logger.debug(f"collect_text({selector!r}) failed: {e}")
            return []
        return [TextFragment(item.get("text", ""), bool(item.get("in_header"))) for item in items]

    def read_text(self, element: Locator) -> str:
        try:
            return element.inner_text(timeout=3000) or ""
        except PlaywrightError:
            try:
                return element.text_content(timeout=3000) or ""
            except PlaywrightError:
                return ""

    def read_attribute(self, element: Locator, name: str) -> str:
        try:
            return element.get_attribute(name, timeout=3000) or ""
        except PlaywrightError:
            return ""

    # --- Actions ---

    def click(self, element: Locator, force: bool = False) -> None:
        element.click(force=force, timeout=5000)

    def click_at(self, x: float, y: float) -> None:
        """Physical mouse press at page coordinates."""
        self.page.mouse.move(x, y, steps=2)
        self.pause(100, 200)
        self.page.mouse.down()
        self.pause(50, 120)
        self.page.mouse.up()

    def focus(self, element: Locator) -> None:
        element.focus(timeout=3000)

    def clear(self, element: Locator) -> None:
        """Select all + Backspace inside the focused element."""
        element.click(timeout=5000)
        self.page.keyboard.press("Control+A")
        self.page.keyboard.press("Backspace")

    def type_text(self, element: Locator, text: str) -> None:
        """
        Type the first few characters keystroke by keystroke, bulk-insert the
        remainder, then fire input/change so Instagram registers the text.
        """
        head, tail = text[:TYPED_PREFIX_CHARS], text[TYPED_PREFIX_CHARS:]
        for ch in head:
            self.pause(40, 100)
            self.page.keyboard.type(ch)
        if tail:
            self.pause(250, 500)
            self.page.keyboard.insert_text(tail)
        element.evaluate(_DISPATCH_INPUT_JS)

    def press(self, key: str) -> None:
        self.page.keyboard.press(key)

    # --- Timing / lifecycle ---

    def pause(self, min_ms: int, max_ms: int) -> None:
        time.sleep(random.uniform(min_ms, max_ms) / 1000)

    @property
    def is_closed(self) -> bool:
        if self._closed:
            return True
        try:
            return self.page.is_closed()
        except PlaywrightError:
            return True

    def close(self) -> None:
        """Close the tab. Safe to call more than once."""
        if self.is_closed:
            self._closed = True
            return
        try:
            self.page.close()
        except PlaywrightError as e:
            self.logger.error(f"Error closing tab: {e}")
        self._closed = True
