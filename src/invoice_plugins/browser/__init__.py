"""Browser automation module using Playwright."""

from .capability import BrowserCapability
from .manager import BrowserManager
from .session import PlaywrightSession

__all__ = ["BrowserCapability", "BrowserManager", "PlaywrightSession"]
