"""Step execution engine."""

from .context import ExecutionContext
from .executor import StepExecutor
from .interpolate import interpolate
from .steps import Step, parse_step, parse_steps
from .waits import WaitStrategy, url_matches

__all__ = [
    "ExecutionContext",
    "StepExecutor",
    "interpolate",
    "Step",
    "parse_step",
    "parse_steps",
    "WaitStrategy",
    "url_matches",
]
