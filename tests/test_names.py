from conftest import DIALOG, FakeDriver
from draftbot.instagram.automation import TextFragment
from draftbot.instagram.names import read_display_name, resolve_first_name


def test_header_display_name_is_sanitized():
    driver = FakeDriver()
    driver.add("header h2 span", "Jane 🌸 | Photographer")
    assert resolve_first_name(driver, "jane_doe_photo") == "Jane"


def test_popup_selectors_used_when_dialog_open():
    driver = FakeDriver()
    driver.add(DIALOG)
    driver.add('div[role="dialog"] h2 span', "maría lópez")
    driver.add("header h2 span", "Wrong Person")
    assert resolve_first_name(driver) == "María"


def test_aria_label_fallback():
    driver = FakeDriver()
    driver.add("header [aria-label]", attrs={"aria-label": "Carlos Ruiz"})
    assert read_display_name(driver) == "Carlos Ruiz"


def test_generic_fallback_skips_long_text():
    driver = FakeDriver()
    driver.default_fragments = [
        TextFragment("x" * 41),
        TextFragment("Amir K."),
    ]
    assert read_display_name(driver) == "Amir K."


def test_falls_back_to_username():
    assert resolve_first_name(FakeDriver(), "john_doe") == "John"


def test_nothing_usable():
    assert resolve_first_name(FakeDriver(), "x") == ""


def test_page_error_still_uses_username():
    driver = FakeDriver()

    def broken(selectors, timeout_ms):
        raise RuntimeError("target closed")

    driver.wait_for = broken
    assert resolve_first_name(driver, "maria.k") == "Maria"
