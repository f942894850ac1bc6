"""Placeholder interpolation for step text.

``{{config.<key>}}`` resolves against the run configuration and
``{{<key>}}`` against runtime variables. Configuration is always
substituted first. Placeholders with no matching key stay as written.
"""

import json
from typing import Any

from .context import ExecutionContext


def render_value(value: Any) -> str:
    """Render a variable value as placeholder text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def interpolate(text: str, context: ExecutionContext) -> str:
    """Replace every known placeholder in ``text``. Never fails."""
    if not text or "{{" not in text:
        return text

    result = text
    for key, value in context.config.items():
        result = result.replace(f"{{{{config.{key}}}}}", value)

    for key, value in context.variables.items():
        result = result.replace(f"{{{{{key}}}}}", render_value(value))

    return result


def interpolate_value(value: Any, context: ExecutionContext) -> Any:
    """Interpolate the string leaves of a nested dict/list value."""
    if isinstance(value, str):
        return interpolate(value, context)
    elif isinstance(value, dict):
        return {k: interpolate_value(v, context) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [interpolate_value(v, context) for v in value]
    return value
