"""
Browser Manager - Single browser instance for one plugin run.

Session state (cookies, local storage) is persisted between runs so that
a plugin's checkAuth can succeed without logging in again.
"""

import os
from pathlib import Path
from typing import Optional
import structlog

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from .session import PlaywrightSession

logger = structlog.get_logger()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)


class BrowserManager:
    """
    Manages a single browser, context and page.

    Features:
    - Headed by default so the user can complete interactive logins
    - Session persistence (cookies, storage) in ``user_data_dir``
    - Usable as a context manager
    """

    def __init__(
        self,
        headless: bool = False,
        user_data_dir: Optional[str] = None,
        viewport_width: int = 1280,
        viewport_height: int = 720,
        user_agent: str = DEFAULT_USER_AGENT,
        default_timeout: int = 30000,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode
            user_data_dir: Directory for persistent session data
            viewport_width: Browser viewport width
            viewport_height: Browser viewport height
            user_agent: User agent sent by the browser
            default_timeout: Timeout in ms for individual driver calls
        """
        self.headless = headless
        self.user_data_dir = user_data_dir or "./data/browser"
        self.viewport = {"width": viewport_width, "height": viewport_height}
        self.user_agent = user_agent
        self.default_timeout = default_timeout

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._session: Optional[PlaywrightSession] = None

    def __enter__(self) -> "BrowserManager":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def initialize(self) -> None:
        """Launch the browser and open the page."""
        if self._page is not None:
            return

        logger.info("browser_initializing", headless=self.headless)

        Path(self.user_data_dir).mkdir(parents=True, exist_ok=True)
        storage_path = self._get_storage_path()

        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(
                headless=self.headless,
                args=["--disable-blink-features=AutomationControlled"],
            )
            self._context = self._browser.new_context(
                viewport=self.viewport,
                user_agent=self.user_agent,
                storage_state=storage_path if Path(storage_path).exists() else None,
                accept_downloads=True,
            )
            self._page = self._context.new_page()
        except Exception:
            logger.error("browser_launch_failed")
            self.shutdown()
            raise
        self._session = PlaywrightSession(self._page, default_timeout=self.default_timeout)

        logger.info("browser_initialized")

    def shutdown(self) -> None:
        """Save session state and close everything."""
        if self._playwright is None:
            return

        logger.info("browser_shutting_down")

        try:
            self._save_storage_state()

            if self._context:
                self._context.close()
            if self._browser:
                self._browser.close()
        finally:
            self._playwright.stop()
            self._playwright = None
            self._browser = None
            self._context = None
            self._page = None
            self._session = None

        logger.info("browser_shutdown_complete")

    @property
    def session(self) -> PlaywrightSession:
        """The capability for the managed page (raises if not started)."""
        if self._session is None:
            raise RuntimeError("Browser not started. Call initialize() first.")
        return self._session

    def _save_storage_state(self) -> None:
        """Save session state for the next run."""
        if self._context:
            try:
                storage_path = self._get_storage_path()
                self._context.storage_state(path=storage_path)
                logger.debug("storage_state_saved", path=storage_path)
            except Exception as e:
                logger.warning("storage_state_save_failed", error=str(e))

    def _get_storage_path(self) -> str:
        """Get path for storage state file."""
        return os.path.join(self.user_data_dir, "storage_state.json")
