"""Step definitions for plugin sequences.

Every step object in a plugin file becomes one of the dataclasses below.
The set is closed: an action name that is not recognised becomes an
``Unsupported`` step, which the executor logs and skips.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union


@dataclass(frozen=True)
class Navigate:
    action: ClassVar[str] = "navigate"
    url: str
    wait_for_network_idle: bool = False


@dataclass(frozen=True)
class WaitForElement:
    action: ClassVar[str] = "waitForElement"
    selector: str
    timeout: Optional[int] = None  # ms


@dataclass(frozen=True)
class WaitForURL:
    action: ClassVar[str] = "waitForURL"
    url: str
    timeout: Optional[int] = None


@dataclass(frozen=True)
class WaitForNavigation:
    action: ClassVar[str] = "waitForNavigation"
    timeout: Optional[int] = None


@dataclass(frozen=True)
class WaitForNetworkIdle:
    action: ClassVar[str] = "waitForNetworkIdle"
    timeout: Optional[int] = None


@dataclass(frozen=True)
class CheckElementExists:
    action: ClassVar[str] = "checkElementExists"
    selector: str


@dataclass(frozen=True)
class CheckURL:
    action: ClassVar[str] = "checkURL"
    url: str


@dataclass(frozen=True)
class Click:
    action: ClassVar[str] = "click"
    selector: str


@dataclass(frozen=True)
class Type:
    action: ClassVar[str] = "type"
    selector: str
    value: str = ""


@dataclass(frozen=True)
class DropdownSelect:
    action: ClassVar[str] = "dropdownSelect"
    selector: str
    value: str = ""


@dataclass(frozen=True)
class Extract:
    """Store data from the page in a variable.

    Source precedence: ``script``, then ``fields``, then ``selector``.
    """

    action: ClassVar[str] = "extract"
    variable: str
    selector: str = ""
    attribute: Optional[str] = None
    script: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractAll:
    """Collect a list of items and run ``for_each`` once per item."""

    action: ClassVar[str] = "extractAll"
    variable: str = "item"
    selector: str = ""
    attribute: Optional[str] = None
    script: str = ""
    fields: dict[str, Any] = field(default_factory=dict)
    for_each: tuple["Step", ...] = ()


@dataclass(frozen=True)
class DownloadPdf:
    action: ClassVar[str] = "downloadPdf"
    url: str
    document: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PrintPdf:
    action: ClassVar[str] = "printPdf"
    document: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Sleep:
    action: ClassVar[str] = "sleep"
    duration: int = 0  # ms


@dataclass(frozen=True)
class RunJs:
    action: ClassVar[str] = "runJs"
    script: str
    variable: Optional[str] = None


@dataclass(frozen=True)
class If:
    action: ClassVar[str] = "if"
    script: str
    then: tuple["Step", ...] = ()
    otherwise: tuple["Step", ...] = ()


@dataclass(frozen=True)
class Unsupported:
    """An action the engine does not know. Executing it is a no-op."""

    action: str


Step = Union[
    Navigate,
    WaitForElement,
    WaitForURL,
    WaitForNavigation,
    WaitForNetworkIdle,
    CheckElementExists,
    CheckURL,
    Click,
    Type,
    DropdownSelect,
    Extract,
    ExtractAll,
    DownloadPdf,
    PrintPdf,
    Sleep,
    RunJs,
    If,
    Unsupported,
]


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _timeout(data: dict[str, Any]) -> Optional[int]:
    # 0 and missing both mean "use the step's default"
    value = data.get("timeout")
    return int(value) if value else None


def _mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return dict(value) if isinstance(value, dict) else {}


def parse_steps(items: Optional[list[dict[str, Any]]]) -> tuple[Step, ...]:
    """Parse a list of JSON step objects into step dataclasses."""
    return tuple(parse_step(item) for item in items or [])


def parse_step(data: dict[str, Any]) -> Step:
    """Parse one JSON step object. Fields irrelevant to the action are ignored."""
    action = _text(data, "action")
    parser = _PARSERS.get(action)
    if parser is None:
        return Unsupported(action=action)
    return parser(data)


_PARSERS = {
    "navigate": lambda d: Navigate(
        url=_text(d, "url"),
        wait_for_network_idle=bool(d.get("waitForNetworkIdle", False)),
    ),
    "waitForElement": lambda d: WaitForElement(selector=_text(d, "selector"), timeout=_timeout(d)),
    "waitForURL": lambda d: WaitForURL(url=_text(d, "url"), timeout=_timeout(d)),
    "waitForNavigation": lambda d: WaitForNavigation(timeout=_timeout(d)),
    "waitForNetworkIdle": lambda d: WaitForNetworkIdle(timeout=_timeout(d)),
    "checkElementExists": lambda d: CheckElementExists(selector=_text(d, "selector")),
    "checkURL": lambda d: CheckURL(url=_text(d, "url")),
    "click": lambda d: Click(selector=_text(d, "selector")),
    "type": lambda d: Type(selector=_text(d, "selector"), value=_text(d, "value")),
    "dropdownSelect": lambda d: DropdownSelect(selector=_text(d, "selector"), value=_text(d, "value")),
    "extract": lambda d: Extract(
        variable=_text(d, "variable"),
        selector=_text(d, "selector"),
        attribute=d.get("attribute") or None,
        script=_text(d, "script"),
        fields=_mapping(d, "fields"),
    ),
    "extractAll": lambda d: ExtractAll(
        variable=_text(d, "variable") or "item",
        selector=_text(d, "selector"),
        attribute=d.get("attribute") or None,
        script=_text(d, "script"),
        fields=_mapping(d, "fields"),
        for_each=parse_steps(d.get("forEach")),
    ),
    "downloadPdf": lambda d: DownloadPdf(url=_text(d, "url"), document=_mapping(d, "document")),
    "printPdf": lambda d: PrintPdf(document=_mapping(d, "document")),
    "sleep": lambda d: Sleep(duration=int(d.get("duration") or 0)),
    "runJs": lambda d: RunJs(script=_text(d, "script"), variable=d.get("variable") or None),
    "if": lambda d: If(
        script=_text(d, "script"),
        then=parse_steps(d.get("then")),
        otherwise=parse_steps(d.get("else")),
    ),
}

SUPPORTED_ACTIONS = frozenset(_PARSERS)
