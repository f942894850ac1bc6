"""Shared fixtures: a recording browser double and a fake clock."""

import os
import sys
from typing import Any, Optional

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from invoice_plugins.browser.capability import BrowserCapability
from invoice_plugins.core.errors import BrowserError
from invoice_plugins.engine.context import ExecutionContext
from invoice_plugins.engine.documents import DocumentStore
from invoice_plugins.engine.executor import StepExecutor
from invoice_plugins.engine.waits import WaitStrategy


class FakeBrowser(BrowserCapability):
    """
    In-memory BrowserCapability.

    ``calls`` records every operation as ``(name, *args)``. Scripts are
    answered from ``scripts`` (exact script text -> result or callable).
    Any operation named in ``failures`` raises the mapped exception.
    """

    def __init__(self, url: str = "about:blank"):
        self.url = url
        self.calls: list[tuple] = []
        self.counts: dict[str, int] = {}
        self.scripts: dict[str, Any] = {}
        self.failures: dict[str, Exception] = {}
        self.extracted: dict[str, Any] = {}
        self.extracted_all: dict[str, list[Any]] = {}
        self.downloads: dict[str, bytes] = {}
        self.url_history: list[str] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def navigate(self, url: str, wait_until_ready: bool = False) -> None:
        self._record("navigate", url, wait_until_ready)
        self.url = url

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        self._record("wait_for_selector", selector, timeout_ms)

    def current_url(self) -> str:
        self._record("current_url")
        if self.url_history:
            self.url = self.url_history.pop(0)
        return self.url

    def query_count(self, selector: str) -> int:
        self._record("query_count", selector)
        return self.counts.get(selector, 0)

    def click(self, selector: str) -> None:
        self._record("click", selector)

    def type_text(self, selector: str, value: str) -> None:
        self._record("type_text", selector, value)

    def select_value(self, selector: str, value: str) -> None:
        self._record("select_value", selector, value)

    def evaluate(self, script: str) -> Any:
        self._record("evaluate", script)
        result = self.scripts.get(script)
        return result() if callable(result) else result

    def screenshot(self, full_page: bool = False) -> bytes:
        self._record("screenshot", full_page)
        return b"\x89PNG-fake"

    def extract(self, selector: str, attribute: Optional[str] = None, fields: Optional[dict] = None) -> Any:
        self._record("extract", selector, attribute, fields)
        return self.extracted.get(selector)

    def extract_all(self, selector: str, attribute: Optional[str] = None, fields: Optional[dict] = None) -> list:
        self._record("extract_all", selector, attribute, fields)
        return self.extracted_all.get(selector, [])

    def download(self, url: str) -> bytes:
        self._record("download", url)
        if url not in self.downloads:
            raise BrowserError("download returned HTTP 404", url=url)
        return self.downloads[url]

    def names(self) -> list[str]:
        """Operation names in call order."""
        return [call[0] for call in self.calls]


class MinimalBrowser(BrowserCapability):
    """Capability implementing only the required operations."""

    def __init__(self):
        self.calls: list[str] = []

    def navigate(self, url, wait_until_ready=False):
        self.calls.append("navigate")

    def wait_for_selector(self, selector, timeout_ms):
        self.calls.append("wait_for_selector")

    def current_url(self):
        return "https://example.com/"

    def query_count(self, selector):
        return 0

    def click(self, selector):
        self.calls.append("click")

    def type_text(self, selector, value):
        self.calls.append("type_text")

    def select_value(self, selector, value):
        self.calls.append("select_value")

    def evaluate(self, script):
        return None

    def screenshot(self, full_page=False):
        raise NotImplementedError("screenshot")


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def browser():
    return FakeBrowser()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def waits(clock):
    return WaitStrategy(poll_interval_ms=500, network_idle_wait_ms=2000, clock=clock, sleep=clock.sleep)


@pytest.fixture
def documents(tmp_path):
    return DocumentStore(str(tmp_path / "documents"))


@pytest.fixture
def executor(browser, waits, documents):
    return StepExecutor(browser, waits=waits, documents=documents)


@pytest.fixture
def context():
    return ExecutionContext(config={"region": "eu", "teamId": "12345"})
