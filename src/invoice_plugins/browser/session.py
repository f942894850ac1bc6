"""
Playwright session - BrowserCapability over a Playwright page.

Provides the concrete browser operations used by the step engine with:
- Driver errors converted to BrowserError / StepTimeoutError
- Per-action timing and logging
- Field extraction relative to matched elements
"""

import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional
import structlog

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..core.errors import BrowserError, StepTimeoutError
from .capability import BrowserCapability

logger = structlog.get_logger()


class PlaywrightSession(BrowserCapability):
    """
    Browser capability backed by a single Playwright page.

    The page is owned by the caller (usually BrowserManager); this class
    only drives it.
    """

    def __init__(
        self,
        page: Page,
        default_timeout: int = 30000,
    ):
        """
        Initialize the session.

        Args:
            page: Playwright page instance
            default_timeout: Timeout in milliseconds for driver calls
        """
        self.page = page
        self.default_timeout = default_timeout
        self._action_count = 0

    @contextmanager
    def _action(
        self,
        name: str,
        selector: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Iterator[None]:
        """Time a driver call and translate Playwright failures."""
        start_time = time.monotonic()
        try:
            yield
            self._action_count += 1
        except PlaywrightTimeoutError as e:
            raise StepTimeoutError(
                f"{name} timed out: {e.message}",
                target=selector or url,
            ) from e
        except PlaywrightError as e:
            raise BrowserError(
                f"{name} failed: {e.message}",
                selector=selector,
                url=url,
            ) from e
        finally:
            logger.debug(
                "browser_action",
                action=name,
                selector=selector,
                url=url,
                duration_ms=round((time.monotonic() - start_time) * 1000, 1),
            )

    def navigate(self, url: str, wait_until_ready: bool = False) -> None:
        with self._action("navigate", url=url):
            self.page.goto(url, timeout=self.default_timeout)
            if wait_until_ready:
                self.page.wait_for_selector("body", state="attached", timeout=self.default_timeout)

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        with self._action("wait_for_selector", selector=selector):
            self.page.wait_for_selector(selector, state="visible", timeout=timeout_ms)

    def current_url(self) -> str:
        return self.page.url

    def query_count(self, selector: str) -> int:
        with self._action("query", selector=selector):
            return len(self.page.query_selector_all(selector))

    def click(self, selector: str) -> None:
        with self._action("click", selector=selector):
            self.page.click(selector, timeout=self.default_timeout)

    def type_text(self, selector: str, value: str) -> None:
        with self._action("type", selector=selector):
            self.page.type(selector, value, timeout=self.default_timeout)

    def select_value(self, selector: str, value: str) -> None:
        with self._action("select", selector=selector):
            self.page.select_option(selector, value, timeout=self.default_timeout)

    def evaluate(self, script: str) -> Any:
        with self._action("evaluate"):
            return self.page.evaluate(script)

    def screenshot(self, full_page: bool = False) -> bytes:
        with self._action("screenshot"):
            return self.page.screenshot(full_page=full_page)

    def extract(
        self,
        selector: str,
        attribute: Optional[str] = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> Any:
        with self._action("extract", selector=selector or None):
            if fields:
                root = self.page.query_selector(selector) if selector else None
                return self._extract_fields(root, fields)

            element = self.page.query_selector(selector)
            if element is None:
                raise BrowserError(f"no element matches {selector}", selector=selector)
            return self._read(element, attribute)

    def extract_all(
        self,
        selector: str,
        attribute: Optional[str] = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> list[Any]:
        with self._action("extract_all", selector=selector):
            elements = self.page.query_selector_all(selector)
            if fields:
                return [self._extract_fields(el, fields) for el in elements]
            return [self._read(el, attribute) for el in elements]

    def download(self, url: str) -> bytes:
        with self._action("download", url=url):
            response = self.page.context.request.get(url, timeout=self.default_timeout)
            if not response.ok:
                raise BrowserError(f"download returned HTTP {response.status}", url=url)
            return response.body()

    def _extract_fields(
        self,
        root: Optional[ElementHandle],
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """Read each field, scoped to ``root`` when given."""
        data: dict[str, Any] = {}
        for name, spec in fields.items():
            if isinstance(spec, str):
                field_selector, attribute = spec, None
            else:
                field_selector, attribute = spec.get("selector", ""), spec.get("attribute")

            if not field_selector:
                data[name] = self._read(root, attribute) if root is not None else None
                continue

            scope = root if root is not None else self.page
            element = scope.query_selector(field_selector)
            data[name] = self._read(element, attribute) if element is not None else None
        return data

    @staticmethod
    def _read(element: ElementHandle, attribute: Optional[str]) -> Optional[str]:
        if attribute:
            return element.get_attribute(attribute)
        text = element.text_content()
        return text.strip() if text else ""

    @property
    def action_count(self) -> int:
        """Get total action count."""
        return self._action_count
