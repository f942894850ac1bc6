"""Timeout-bounded waits and URL matching."""

import time
from typing import Callable, Optional
import structlog

from ..browser.capability import BrowserCapability
from ..core.errors import StepTimeoutError


logger = structlog.get_logger()

WILDCARD = "**"


def url_matches(expected: str, current: str) -> bool:
    """
    Loose URL match used by waitForURL and checkURL.

    With a ``**`` token, the current URL must start with the text before
    the token. Without one, the expected URL must appear anywhere in the
    current URL.
    """
    if WILDCARD in expected:
        prefix = expected.split(WILDCARD, 1)[0]
        return current.startswith(prefix)
    return expected in current


class WaitStrategy:
    """
    Blocking wait primitives.

    All waits block the calling thread. ``clock`` and ``sleep`` can be
    replaced to run without real delays.
    """

    def __init__(
        self,
        poll_interval_ms: int = 500,
        network_idle_wait_ms: int = 2000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.poll_interval_ms = poll_interval_ms
        self.network_idle_wait_ms = network_idle_wait_ms
        self._clock = clock
        self._sleep = sleep

    def sleep_ms(self, duration_ms: int) -> None:
        """Block for ``duration_ms`` milliseconds."""
        if duration_ms > 0:
            self._sleep(duration_ms / 1000)

    def network_idle(self) -> None:
        """Approximate network idle with a fixed pause."""
        self.sleep_ms(self.network_idle_wait_ms)

    def poll_until(
        self,
        check: Callable[[], bool],
        timeout_ms: int,
        description: Optional[str] = None,
    ) -> bool:
        """
        Call ``check`` every poll interval until it returns True.

        Exceptions raised by ``check`` count as a miss for that tick.

        Returns:
            True when the check passed, False once ``timeout_ms`` elapsed.
        """
        start = self._clock()
        deadline = start + timeout_ms / 1000
        attempts = 0

        while self._clock() < deadline:
            attempts += 1
            try:
                if check():
                    return True
            except Exception as e:
                logger.debug("poll_check_error", target=description, attempt=attempts, error=str(e))
            self.sleep_ms(self.poll_interval_ms)

        logger.debug("poll_timed_out", target=description, attempts=attempts, timeout_ms=timeout_ms)
        return False

    def wait_for_url(
        self,
        browser: BrowserCapability,
        expected: str,
        timeout_ms: int,
    ) -> str:
        """
        Wait until the browser location matches ``expected``.

        Returns:
            The matching URL.

        Raises:
            StepTimeoutError: No match within ``timeout_ms``.
        """
        matched: list[str] = []

        def check() -> bool:
            current = browser.current_url()
            if url_matches(expected, current):
                matched.append(current)
                return True
            return False

        if not self.poll_until(check, timeout_ms, description=expected):
            raise StepTimeoutError(
                f"timeout waiting for URL: {expected}",
                target=expected,
                timeout_ms=timeout_ms,
            )
        return matched[-1]
