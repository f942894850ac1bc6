"""Step executor - interprets plugin step sequences against a browser."""

from typing import Any, Callable, Optional, Sequence
import structlog

from ..browser.capability import BrowserCapability
from ..core.errors import BrowserError, ElementNotFoundError, StepError, URLMismatchError
from .context import ExecutionContext
from .documents import DocumentStore
from .interpolate import interpolate, interpolate_value
from .steps import (
    CheckElementExists,
    CheckURL,
    Click,
    DownloadPdf,
    DropdownSelect,
    Extract,
    ExtractAll,
    If,
    Navigate,
    PrintPdf,
    RunJs,
    Sleep,
    Step,
    Type,
    Unsupported,
    WaitForElement,
    WaitForNavigation,
    WaitForNetworkIdle,
    WaitForURL,
)
from .waits import WaitStrategy, url_matches


logger = structlog.get_logger()

DEFAULT_ELEMENT_TIMEOUT_MS = 30_000
DEFAULT_URL_TIMEOUT_MS = 30_000
DEFAULT_NAVIGATION_WAIT_MS = 10_000
DEFAULT_NETWORK_IDLE_TIMEOUT_MS = 15_000


class StepExecutor:
    """
    Recursive interpreter for plugin steps.

    Flow:
    1. ``execute_sequence`` runs steps in order and stops at the first failure
    2. ``execute_step`` dispatches on the step type
    3. ``if`` and ``extractAll`` recurse into nested sequences with the same
       ExecutionContext

    A failing step is reported as StepError with its 1-based position and
    action. Unsupported actions are logged and skipped.
    """

    def __init__(
        self,
        browser: BrowserCapability,
        waits: Optional[WaitStrategy] = None,
        documents: Optional[DocumentStore] = None,
    ):
        self.browser = browser
        self.waits = waits or WaitStrategy()
        self.documents = documents or DocumentStore()

        self._handlers: dict[type, Callable[[Any, ExecutionContext], None]] = {
            Navigate: self._navigate,
            WaitForElement: self._wait_for_element,
            WaitForURL: self._wait_for_url,
            WaitForNavigation: self._wait_for_navigation,
            WaitForNetworkIdle: self._wait_for_network_idle,
            CheckElementExists: self._check_element_exists,
            CheckURL: self._check_url,
            Click: self._click,
            Type: self._type,
            DropdownSelect: self._dropdown_select,
            Extract: self._extract,
            ExtractAll: self._extract_all,
            DownloadPdf: self._download_pdf,
            PrintPdf: self._print_pdf,
            Sleep: self._sleep,
            RunJs: self._run_js,
            If: self._if,
            Unsupported: self._unsupported,
        }

    def execute_sequence(self, steps: Sequence[Step], context: ExecutionContext) -> None:
        """
        Run ``steps`` in order.

        Raises:
            StepError: The first failing step, wrapping the original error.
        """
        for index, step in enumerate(steps, start=1):
            logger.info("step_executing", index=index, action=step.action)
            try:
                self.execute_step(step, context)
            except Exception as e:
                raise StepError(str(e), index=index, action=step.action) from e

    def execute_step(self, step: Step, context: ExecutionContext) -> None:
        """Execute a single step."""
        handler = self._handlers.get(type(step))
        if handler is None:
            raise TypeError(f"Not a step: {step!r}")
        handler(step, context)

    # ==================== Navigation ====================

    def _navigate(self, step: Navigate, context: ExecutionContext) -> None:
        url = interpolate(step.url, context)
        logger.info("navigating", url=url)
        self.browser.navigate(url, wait_until_ready=step.wait_for_network_idle)

    def _wait_for_element(self, step: WaitForElement, context: ExecutionContext) -> None:
        selector = interpolate(step.selector, context)
        self.browser.wait_for_selector(selector, step.timeout or DEFAULT_ELEMENT_TIMEOUT_MS)

    def _wait_for_url(self, step: WaitForURL, context: ExecutionContext) -> None:
        expected = interpolate(step.url, context)
        self.waits.wait_for_url(self.browser, expected, step.timeout or DEFAULT_URL_TIMEOUT_MS)

    def _wait_for_navigation(self, step: WaitForNavigation, context: ExecutionContext) -> None:
        self.waits.sleep_ms(step.timeout or DEFAULT_NAVIGATION_WAIT_MS)

    def _wait_for_network_idle(self, step: WaitForNetworkIdle, context: ExecutionContext) -> None:
        logger.debug(
            "network_idle_wait",
            timeout_ms=step.timeout or DEFAULT_NETWORK_IDLE_TIMEOUT_MS,
            wait_ms=self.waits.network_idle_wait_ms,
        )
        self.waits.network_idle()

    # ==================== Verification ====================

    def _check_element_exists(self, step: CheckElementExists, context: ExecutionContext) -> None:
        selector = interpolate(step.selector, context)
        try:
            count = self.browser.query_count(selector)
        except Exception as e:
            raise ElementNotFoundError(selector) from e
        if count == 0:
            raise ElementNotFoundError(selector)
        logger.info("element_exists", selector=selector, count=count)

    def _check_url(self, step: CheckURL, context: ExecutionContext) -> None:
        expected = interpolate(step.url, context)
        current = self.browser.current_url()
        if not url_matches(expected, current):
            raise URLMismatchError(expected, current)
        logger.info("url_matches", url=current)

    # ==================== Interaction ====================

    def _click(self, step: Click, context: ExecutionContext) -> None:
        selector = interpolate(step.selector, context)
        logger.info("clicking", selector=selector)
        self.browser.click(selector)

    def _type(self, step: Type, context: ExecutionContext) -> None:
        selector = interpolate(step.selector, context)
        value = interpolate(step.value, context)
        # value may hold credentials
        logger.info("typing", selector=selector, length=len(value))
        self.browser.type_text(selector, value)

    def _dropdown_select(self, step: DropdownSelect, context: ExecutionContext) -> None:
        selector = interpolate(step.selector, context)
        value = interpolate(step.value, context)
        logger.info("selecting", selector=selector, value=value)
        self.browser.select_value(selector, value)

    # ==================== Data extraction ====================

    def _extract(self, step: Extract, context: ExecutionContext) -> None:
        selector = interpolate(step.selector, context)
        attribute = interpolate(step.attribute, context) if step.attribute else None

        try:
            if step.script:
                value = self.browser.evaluate(interpolate(step.script, context))
            else:
                value = self.browser.extract(
                    selector,
                    attribute=attribute,
                    fields=interpolate_value(step.fields, context) or None,
                )
        except NotImplementedError:
            logger.warning("extract_unavailable", variable=step.variable)
            return

        if step.variable:
            context.set_variable(step.variable, value)
        logger.info("extracted", variable=step.variable)

    def _extract_all(self, step: ExtractAll, context: ExecutionContext) -> None:
        try:
            items = self._collect_items(step, context)
        except NotImplementedError:
            logger.warning("extract_all_unavailable", selector=step.selector)
            return

        logger.info("extracted_all", selector=step.selector, count=len(items))

        if not step.for_each:
            context.set_variable(step.variable, items)
            return

        for position, item in enumerate(items, start=1):
            logger.debug("for_each_item", variable=step.variable, position=position, total=len(items))
            context.set_variable(step.variable, item)
            self.execute_sequence(step.for_each, context)

    def _collect_items(self, step: ExtractAll, context: ExecutionContext) -> list[Any]:
        if step.script:
            result = self.browser.evaluate(interpolate(step.script, context))
            if result is None:
                return []
            return list(result) if isinstance(result, (list, tuple)) else [result]

        return self.browser.extract_all(
            interpolate(step.selector, context),
            attribute=interpolate(step.attribute, context) if step.attribute else None,
            fields=interpolate_value(step.fields, context) or None,
        )

    # ==================== Documents ====================

    def _download_pdf(self, step: DownloadPdf, context: ExecutionContext) -> None:
        url = interpolate(step.url, context)
        logger.info("downloading_pdf", url=url)
        try:
            content = self.browser.download(url)
        except NotImplementedError:
            logger.warning("download_unavailable", url=url)
            return

        self.documents.save(
            content,
            kind="download",
            suffix=".pdf",
            metadata=interpolate_value(step.document, context),
            source_url=url,
        )

    def _print_pdf(self, step: PrintPdf, context: ExecutionContext) -> None:
        logger.info("printing_page")
        try:
            content = self.browser.screenshot(full_page=True)
        except NotImplementedError:
            logger.warning("print_unavailable")
            return

        self.documents.save(
            content,
            kind="print",
            suffix=".png",
            metadata=interpolate_value(step.document, context),
            source_url=self.browser.current_url(),
        )

    # ==================== Miscellaneous ====================

    def _sleep(self, step: Sleep, context: ExecutionContext) -> None:
        logger.info("sleeping", duration_ms=step.duration)
        self.waits.sleep_ms(step.duration)

    def _run_js(self, step: RunJs, context: ExecutionContext) -> None:
        script = interpolate(step.script, context)
        logger.info("running_js", variable=step.variable)
        result = self.browser.evaluate(script)
        if step.variable:
            context.set_variable(step.variable, result)

    def _if(self, step: If, context: ExecutionContext) -> None:
        script = interpolate(step.script, context)
        result = self.browser.evaluate(script)
        if not isinstance(result, bool):
            raise BrowserError(f"condition script returned {type(result).__name__}, expected a boolean")

        if result and step.then:
            logger.info("condition_true", steps=len(step.then))
            self.execute_sequence(step.then, context)
        elif not result and step.otherwise:
            logger.info("condition_false", steps=len(step.otherwise))
            self.execute_sequence(step.otherwise, context)

    def _unsupported(self, step: Unsupported, context: ExecutionContext) -> None:
        logger.warning("step_unsupported", action=step.action)
