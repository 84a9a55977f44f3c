"""
Playwright persistent-context launch and Instagram session handling.

The login lives in the browser profile directory (BROWSER_DATA_DIR), not
in a cookie file: run `draftbot --login` once, log in by hand, press ENTER.
"""
import logging

from playwright.sync_api import BrowserContext, Playwright, sync_playwright

from draftbot.config import Settings
from draftbot.errors import AuthenticationError
from draftbot.instagram.automation import HOME_URL, PageDriver

logger = logging.getLogger("draftbot")

LOGIN_FORM_SELECTOR = 'input[name="username"]'


def is_login_surface(driver: PageDriver) -> bool:
    """True when Instagram bounced us to the login form."""
    if "/accounts/login" in driver.current_url().lower():
        return True
    return driver.count(LOGIN_FORM_SELECTOR) > 0


class BrowserSession:
    """
    Owns the Playwright instance and the persistent context. Each target
    gets its own tab via new_driver().
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._pw: Playwright = None
        self.context: BrowserContext = None

    @property
    def is_open(self) -> bool:
        return self.context is not None

    def launch(self) -> "BrowserSession":
        logger.info("Launching browser with persistent context...")
        self.settings.browser_data_dir.mkdir(parents=True, exist_ok=True)

        self._pw = sync_playwright().start()
        self.context = self._pw.chromium.launch_persistent_context(
            str(self.settings.browser_data_dir),
            headless=self.settings.headless,
            no_viewport=True,  # use the full window size
            args=[
                "--disable-blink-features=AutomationControlled",
                "--start-maximized",
            ],
        )

        # Mask the navigator.webdriver flag
        self.context.add_init_script(
            "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"
        )

        logger.info("Browser launched successfully.")
        return self

    def new_driver(self) -> PageDriver:
        return PageDriver(self.context.new_page())

    def verify_session(self) -> None:
        """Open Instagram in a scratch tab and raise AuthenticationError if logged out."""
        driver = self.new_driver()
        try:
            driver.navigate(HOME_URL)
            driver.pause(2000, 3000)
            if is_login_surface(driver):
                raise AuthenticationError(
                    "Not logged in to Instagram. Run `draftbot --login` first to establish a session."
                )
        finally:
            driver.close()
        logger.info("Browser initialized and session verified.")

    def seed_login(self) -> None:
        """Open Instagram for a manual login and wait for the operator."""
        page = self.context.pages[0] if self.context.pages else self.context.new_page()
        page.goto(HOME_URL, wait_until="domcontentloaded")

        print()
        print("=" * 60)
        print("  MANUAL LOGIN REQUIRED")
        print("  Please log in to Instagram in the browser window.")
        print("  Complete any 2FA/CAPTCHA if prompted.")
        print("  Then come back here and press ENTER to save the session...")
        print("=" * 60)
        print()

        input("  >>> Press ENTER after you have logged in... ")

        driver = PageDriver(page)
        if is_login_surface(driver):
            raise AuthenticationError("Login was not completed. Please try again.")
        logger.info(f"Session saved to {self.settings.browser_data_dir}")

    def close(self) -> None:
        try:
            if self.context is not None:
                self.context.close()
            if self._pw is not None:
                self._pw.stop()
            logger.info("Browser closed.")
        except Exception as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            self.context = None
            self._pw = None
