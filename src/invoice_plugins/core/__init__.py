"""Core runner components."""

from .config import ConfigLoader, Plugin, RunnerSettings
from .errors import (
    PluginRunnerError,
    ConfigError,
    PluginLoadError,
    PhaseError,
    StepError,
    StepTimeoutError,
    BrowserError,
)

__all__ = [
    "ConfigLoader",
    "Plugin",
    "RunnerSettings",
    "PluginRunnerError",
    "ConfigError",
    "PluginLoadError",
    "PhaseError",
    "StepError",
    "StepTimeoutError",
    "BrowserError",
]
