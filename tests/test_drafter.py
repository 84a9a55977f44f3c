from conftest import COMPOSER, MESSAGE_ROW, FakeDriver, FakeElement, deliver_on_enter
from draftbot.instagram.drafter import confirm_sent, draft, send, send_with_retry


def composer_driver(text="") -> FakeDriver:
    driver = FakeDriver(url="https://www.instagram.com/direct/t/1/")
    driver.add(COMPOSER, text)
    return driver


class TestDraft:
    def test_types_and_verifies(self):
        driver = composer_driver("leftover text")
        result = draft(driver, "Hey John! Thanks for following.")

        assert result.success
        assert result.typed_text == "Hey John! Thanks for following."
        assert driver.typed == ["Hey John! Thanks for following."]

    def test_no_input_field(self):
        result = draft(FakeDriver(), "hello there")
        assert not result.success
        assert result.reason == "No DM input field found"

    def test_empty_text_fails(self):
        assert not draft(composer_driver(), "   ").success

    def test_mismatch_reports_expected_and_actual(self):
        driver = composer_driver()
        driver.elements[COMPOSER].mangle = lambda text: text[:5]

        result = draft(driver, "Hey John!")

        assert not result.success
        assert "'Hey John!'" in result.reason
        assert "'Hey J'" in result.reason

    def test_surrounding_whitespace_is_tolerated(self):
        driver = composer_driver()
        driver.elements[COMPOSER].mangle = lambda text: text + "\n"
        assert draft(driver, "Hey John!").success


class TestSend:
    def test_presses_enter(self):
        driver = composer_driver("hi")
        assert send(driver)
        assert driver.pressed == ["Enter"]

    def test_no_input(self):
        assert not send(FakeDriver())


class TestConfirmSent:
    def test_row_count_increase(self):
        driver = composer_driver("still here")
        driver.counts[MESSAGE_ROW] = 4
        assert confirm_sent(driver, rows_before=3)

    def test_cleared_input(self):
        assert confirm_sent(composer_driver(""), rows_before=0)

    def test_last_row_with_text(self):
        driver = composer_driver("still here")
        driver.row_elements = [FakeElement(MESSAGE_ROW, "Hey John! Thanks for following.")]
        assert confirm_sent(driver, rows_before=0)

    def test_no_signal(self):
        driver = composer_driver("still here")
        driver.row_elements = [FakeElement(MESSAGE_ROW, "ok")]
        assert not confirm_sent(driver, rows_before=0)


class TestSendWithRetry:
    def test_first_attempt(self):
        driver = composer_driver("Hey John!")
        driver.on_press = deliver_on_enter

        result = send_with_retry(driver)

        assert result.sent
        assert result.attempts == 1
        assert driver.pressed == ["Enter"]

    def test_retries_once_then_succeeds(self):
        driver = composer_driver("Hey John!")
        presses = []

        def second_press_delivers(d, key):
            presses.append(key)
            if len(presses) == 2:
                deliver_on_enter(d, key)

        driver.on_press = second_press_delivers
        result = send_with_retry(driver)

        assert result.sent
        assert result.attempts == 2
        assert driver.pressed == ["Enter", "Enter"]

    def test_gives_up_after_second_failure(self):
        driver = composer_driver("Hey John!")
        result = send_with_retry(driver)

        assert not result.sent
        assert result.attempts == 2
        assert driver.pressed == ["Enter", "Enter"]
