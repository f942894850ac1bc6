"""
Browser capability - the session interface the step engine drives.

The engine only talks to this interface, never to a driver directly.
Extraction and download are optional: a capability that cannot do them
raises NotImplementedError and the engine skips the step.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class BrowserCapability(ABC):
    """Abstract, stateful browser session."""

    @abstractmethod
    def navigate(self, url: str, wait_until_ready: bool = False) -> None:
        """
        Direct the browser to ``url``.

        Args:
            url: Target URL
            wait_until_ready: Also wait for the document body to be ready
        """

    @abstractmethod
    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        """Block until ``selector`` is visible, or fail after ``timeout_ms``."""

    @abstractmethod
    def current_url(self) -> str:
        """Return the current location."""

    @abstractmethod
    def query_count(self, selector: str) -> int:
        """Return how many nodes match ``selector``."""

    @abstractmethod
    def click(self, selector: str) -> None:
        """Click the element matching ``selector``."""

    @abstractmethod
    def type_text(self, selector: str, value: str) -> None:
        """Send keystrokes for ``value`` to the element."""

    @abstractmethod
    def select_value(self, selector: str, value: str) -> None:
        """Set the value of a select element."""

    @abstractmethod
    def evaluate(self, script: str) -> Any:
        """Evaluate ``script`` in the page and return its result."""

    @abstractmethod
    def screenshot(self, full_page: bool = False) -> bytes:
        """Capture the page as an image."""

    def extract(
        self,
        selector: str,
        attribute: Optional[str] = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Extract data from the page.

        With ``fields``, returns a dict of field name to value, each field
        being a selector string or ``{"selector": ..., "attribute": ...}``.
        Without, returns the text (or ``attribute``) of the first match.
        """
        raise NotImplementedError("extract")

    def extract_all(
        self,
        selector: str,
        attribute: Optional[str] = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> list[Any]:
        """Like ``extract`` but for every element matching ``selector``."""
        raise NotImplementedError("extract_all")

    def download(self, url: str) -> bytes:
        """Fetch ``url`` using the session's cookies and return the body."""
        raise NotImplementedError("download")
