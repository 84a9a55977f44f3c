import pytest

from draftbot.config import Settings
from draftbot.errors import StoreWriteError
from draftbot.schemas.row import Row
from draftbot.store.base import RowStore

COMPOSER = 'p[contenteditable="true"]'
MESSAGE_BUTTON = 'div[role="button"]:has-text("Message")'
OPTIONS_BUTTON = 'div[role="button"]:has(svg[aria-label="Options"])'
DIALOG = 'div[role="dialog"]'
SEND_MESSAGE_ITEM = 'div[role="dialog"] button:has-text("Send message")'
MESSAGE_ROW = 'div[role="row"]'


class FakeElement:
    def __init__(self, selector, text="", attrs=None, fail_clicks=0, on_click=None, mangle=None):
        self.selector = selector
        self.text = text
        self.attrs = attrs or {}
        self.fail_clicks = fail_clicks
        self.on_click = on_click
        self.mangle = mangle


class FakeDriver:
    """In-memory stand-in for PageDriver. Selectors are matched by exact string."""

    def __init__(self, url="https://www.instagram.com/"):
        self.url = url
        self.elements = {}
        self.counts = {}
        self.fragments = {}
        self.default_fragments = []
        self.row_elements = []
        self.navigated = []
        self.clicked = []
        self.clicked_at = []
        self.typed = []
        self.pressed = []
        self.on_press = None
        self.on_navigate = None
        self.navigate_error = None
        self.close_calls = 0
        self._closed = False

    # --- setup helpers ---

    def add(self, selector, text="", **kwargs) -> FakeElement:
        element = FakeElement(selector, text, **kwargs)
        self.elements[selector] = element
        return element

    # --- PageDriver surface ---

    def navigate(self, url):
        if self.navigate_error:
            raise self.navigate_error
        self.navigated.append(url)
        if self.on_navigate:
            self.on_navigate(self, url)

    def current_url(self):
        return self.url

    def scroll_to_top(self):
        pass

    def locate(self, selectors):
        if isinstance(selectors, str):
            selectors = [selectors]
        for selector in selectors:
            if selector in self.elements:
                return self.elements[selector]
        return None

    def locate_all(self, selector):
        if selector == MESSAGE_ROW:
            return list(self.row_elements)
        return []

    def wait_for(self, selectors, timeout_ms):
        return self.locate(selectors)

    def count(self, selector):
        if selector in self.counts:
            return self.counts[selector]
        return 1 if selector in self.elements else 0

    def collect_text(self, selector):
        return list(self.fragments.get(selector, self.default_fragments))

    def read_text(self, element):
        return element.text

    def read_attribute(self, element, name):
        return element.attrs.get(name, "")

    def click(self, element, force=False):
        self.clicked.append((element.selector, force))
        if element.fail_clicks > 0:
            element.fail_clicks -= 1
            raise RuntimeError("Element is not clickable")
        if element.on_click:
            element.on_click(self)

    def click_at(self, x, y):
        self.clicked_at.append((x, y))

    def focus(self, element):
        pass

    def clear(self, element):
        element.text = ""

    def type_text(self, element, text):
        self.typed.append(text)
        element.text = element.mangle(text) if element.mangle else element.text + text

    def press(self, key):
        self.pressed.append(key)
        if self.on_press:
            self.on_press(self, key)

    def pause(self, min_ms, max_ms):
        pass

    @property
    def is_closed(self):
        return self._closed

    def close(self):
        self.close_calls += 1
        self._closed = True


def open_dm(driver):
    driver.url = "https://www.instagram.com/direct/t/1234567890/"
    driver.add(COMPOSER)


def profile_driver(**kwargs) -> FakeDriver:
    """A profile page whose "Message" button opens the DM composer."""
    driver = FakeDriver(**kwargs)
    driver.add(MESSAGE_BUTTON, "Message", on_click=open_dm)
    return driver


def deliver_on_enter(driver, key):
    """Enter empties the composer and adds a message row."""
    if key == "Enter":
        driver.elements[COMPOSER].text = ""
        driver.counts[MESSAGE_ROW] = driver.counts.get(MESSAGE_ROW, 0) + 1


class FakeBrowser:
    def __init__(self, drivers=None):
        self.drivers = list(drivers or [])
        self.handed_out = []
        self.launched = False
        self.verified = False
        self.closed = False

    @property
    def is_open(self):
        return self.launched and not self.closed

    def launch(self):
        self.launched = True
        return self

    def verify_session(self):
        self.verified = True

    def new_driver(self):
        driver = self.drivers.pop(0) if self.drivers else profile_driver()
        self.handed_out.append(driver)
        return driver

    def close(self):
        self.closed = True


class FakeStore(RowStore):
    def __init__(self, rows=None, failing_rows=()):
        self.rows = list(rows or [])
        self.failing_rows = set(failing_rows)
        self.writes = []

    def load_rows(self):
        return list(self.rows)

    def write_outcome(self, row_index, session_id, sent_timestamp, message, status):
        if row_index in self.failing_rows:
            raise StoreWriteError(f"Failed to update row {row_index}: quota exceeded")
        self.writes.append(
            {
                "row_index": row_index,
                "session_id": session_id,
                "sent_timestamp": sent_timestamp,
                "message": message,
                "status": status,
            }
        )

    def describe(self):
        return "fake store"


def make_row(row_index, username, status="Pending", source="followers", **kwargs) -> Row:
    return Row(row_index=row_index, username=username, status=status, source=source, **kwargs)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        instagram_username="operator",
        row_store="sqlite",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        draft_message="Hey! Thanks for following.",
        activate_status="Pending",
        source_mode="followers",
        max_draft=10,
        max_process=100,
        min_delay=0,
        max_delay=0,
        keep_browser_open=False,
        browser_data_dir=tmp_path / "browser-data",
        logs_dir=tmp_path / "logs",
    )
