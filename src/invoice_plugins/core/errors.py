"""Plugin runner error definitions."""

from typing import Optional, Any
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for classification."""
    LOW = "low"           # Logged and skipped
    MEDIUM = "medium"     # Aborts the current sequence
    HIGH = "high"         # Aborts the run
    CRITICAL = "critical" # Aborts before any step runs


class ErrorCategory(Enum):
    """Error categories for routing and reporting."""
    LOAD = "load"                 # Plugin or config file unreadable/malformed
    TIMEOUT = "timeout"           # A wait bound was exceeded
    VERIFICATION = "verification" # A check step did not hold
    DRIVER = "driver"             # Browser interaction failed
    STEP = "step"                 # Wrapped failure of a step in a sequence


class PluginRunnerError(Exception):
    """Base exception for all plugin runner errors."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.DRIVER,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logging."""
        data = {
            "type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context,
        }
        if isinstance(self.__cause__, PluginRunnerError):
            data["cause"] = self.__cause__.to_dict()
        elif self.__cause__ is not None:
            data["cause"] = {"type": type(self.__cause__).__name__, "message": str(self.__cause__)}
        return data


class ConfigError(PluginRunnerError):
    """Configuration file loading error."""

    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        kwargs.setdefault("category", ErrorCategory.LOAD)
        super().__init__(message, **kwargs)
        self.context["config_path"] = config_path


class PluginLoadError(PluginRunnerError):
    """Plugin definition loading or structure error."""

    def __init__(self, message: str, plugin_path: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        kwargs.setdefault("category", ErrorCategory.LOAD)
        super().__init__(message, **kwargs)
        self.context["plugin_path"] = plugin_path


class StepError(PluginRunnerError):
    """A step in a sequence failed; carries its 1-based position and action."""

    def __init__(self, message: str, index: int, action: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.STEP)
        super().__init__(f"step {index} ({action}) failed: {message}", **kwargs)
        self.index = index
        self.action = action
        self.context["index"] = index
        self.context["action"] = action


class PhaseError(PluginRunnerError):
    """A phase whose failure ends the run (startAuth, getDocuments)."""

    def __init__(self, message: str, phase: str, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.STEP)
        super().__init__(message, **kwargs)
        self.phase = phase
        self.context["phase"] = phase


class StepTimeoutError(PluginRunnerError):
    """A wait step exceeded its timeout."""

    def __init__(self, message: str, target: Optional[str] = None, timeout_ms: Optional[int] = None, **kwargs):
        kwargs.setdefault("category", ErrorCategory.TIMEOUT)
        super().__init__(message, **kwargs)
        self.context["target"] = target
        self.context["timeout_ms"] = timeout_ms


class ElementNotFoundError(PluginRunnerError):
    """checkElementExists matched no nodes."""

    def __init__(self, selector: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.VERIFICATION)
        super().__init__(f"element not found: {selector}", **kwargs)
        self.context["selector"] = selector


class URLMismatchError(PluginRunnerError):
    """checkURL found the browser somewhere else."""

    def __init__(self, expected: str, actual: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.VERIFICATION)
        super().__init__(f"URL does not match: expected {expected}, got {actual}", **kwargs)
        self.context["expected"] = expected
        self.context["actual"] = actual


class BrowserError(PluginRunnerError):
    """Browser automation error."""

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault("category", ErrorCategory.DRIVER)
        super().__init__(message, **kwargs)
        self.context["selector"] = selector
        self.context["url"] = url
