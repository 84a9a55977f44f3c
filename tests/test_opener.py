from conftest import (
    COMPOSER,
    DIALOG,
    MESSAGE_BUTTON,
    OPTIONS_BUTTON,
    SEND_MESSAGE_ITEM,
    FakeDriver,
    open_dm,
    profile_driver,
)
from draftbot.instagram.opener import (
    Attempt,
    confirm_composer_open,
    open_conversation,
    open_direct,
    open_via_options_menu,
)


def options_menu_driver() -> FakeDriver:
    """Profile without a Message button; the Options menu leads to the DM."""
    driver = FakeDriver()

    def show_menu(d):
        d.add(DIALOG)
        d.add(SEND_MESSAGE_ITEM, "Send message", on_click=open_dm)

    driver.add(OPTIONS_BUTTON, on_click=show_menu)
    return driver


class TestDirect:
    def test_opens_dm_via_message_button(self):
        driver = profile_driver()
        result = open_direct(driver)

        assert result.success
        assert driver.clicked == [(MESSAGE_BUTTON, False)]

    def test_falls_back_to_force_click(self):
        driver = profile_driver()
        driver.elements[MESSAGE_BUTTON].fail_clicks = 1

        result = open_direct(driver)

        assert result.success
        assert driver.clicked == [(MESSAGE_BUTTON, False), (MESSAGE_BUTTON, True)]

    def test_both_clicks_failing_is_a_failure(self):
        driver = profile_driver()
        driver.elements[MESSAGE_BUTTON].fail_clicks = 2

        result = open_direct(driver)

        assert not result.success
        assert result.detail == "failed to click message button"

    def test_missing_button(self):
        result = open_direct(FakeDriver())
        assert result == Attempt(False, "message button not found")


class TestOptionsMenu:
    def test_opens_dm_and_dismisses_interstitial(self):
        driver = options_menu_driver()
        result = open_via_options_menu(driver)

        assert result.success
        assert (SEND_MESSAGE_ITEM, False) in driver.clicked
        assert len(driver.clicked_at) == 1

    def test_missing_send_message_item(self):
        driver = FakeDriver()
        driver.add(OPTIONS_BUTTON, on_click=lambda d: d.add(DIALOG))

        result = open_via_options_menu(driver)

        assert not result.success
        assert result.detail == "send message button not found"


class TestOpenConversation:
    def test_direct_wins_without_trying_options_menu(self):
        driver = profile_driver()
        driver.add(OPTIONS_BUTTON)

        result = open_conversation(driver)

        assert result.success
        assert result.strategy_used == "direct"
        assert [name for name, _ in result.attempts] == ["direct"]
        assert (OPTIONS_BUTTON, False) not in driver.clicked

    def test_options_menu_used_when_direct_fails(self):
        result = open_conversation(options_menu_driver())

        assert result.success
        assert result.strategy_used == "options_menu"
        assert [name for name, _ in result.attempts] == ["direct", "options_menu"]

    def test_both_fail_aggregates_reasons(self):
        result = open_conversation(FakeDriver())

        assert not result.success
        assert result.reason == "direct: message button not found; options_menu: options icon not found"

    def test_strategy_exception_becomes_failed_attempt(self):
        def explodes(driver):
            raise RuntimeError("page crashed")

        def works(driver):
            return Attempt(True, "url")

        result = open_conversation(FakeDriver(), strategies=[("direct", explodes), ("options_menu", works)])

        assert result.success
        assert result.strategy_used == "options_menu"
        assert result.attempts[0][1] == Attempt(False, "error: page crashed")

    def test_each_strategy_runs_once(self):
        calls = []

        def failing(name):
            def strategy(driver):
                calls.append(name)
                return Attempt(False, "nope")
            return strategy

        open_conversation(FakeDriver(), strategies=[("a", failing("a")), ("b", failing("b"))])
        assert calls == ["a", "b"]


class TestConfirmComposer:
    def test_url_signal(self):
        driver = FakeDriver(url="https://www.instagram.com/direct/t/1/")
        assert confirm_composer_open(driver).detail == "url"

    def test_dialog_signal(self):
        driver = FakeDriver()
        driver.add(DIALOG)
        assert confirm_composer_open(driver).detail == "dialog"

    def test_input_signal(self):
        driver = FakeDriver()
        driver.add(COMPOSER)
        assert confirm_composer_open(driver).detail == f"input field ({COMPOSER})"

    def test_nothing_detected(self):
        assert not confirm_composer_open(FakeDriver()).success

    def test_erroring_signal_is_skipped(self):
        def broken(driver):
            raise RuntimeError("boom")

        def ok(driver):
            return Attempt(True, "ok")

        assert confirm_composer_open(FakeDriver(), signals=[broken, ok]).detail == "ok"
