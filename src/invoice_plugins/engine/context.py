"""Execution context shared by every step of a run."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


@dataclass
class ExecutionContext:
    """
    Configuration and variables for one plugin run.

    ``config`` is fixed when the context is built. ``variables`` is written
    by extraction steps and read by later ones; entries are only ever added
    or overwritten.
    """
    config: Mapping[str, str] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.config = MappingProxyType({str(k): str(v) for k, v in self.config.items()})

    def set_variable(self, name: str, value: Any) -> None:
        """
        Store a variable.

        Dict values are also flattened into ``name.key`` entries so that
        placeholders like ``{{invoice.id}}`` resolve. Entries flattened from
        the previous value that the new value lacks are reset to None.
        """
        stale = _flatten(name, self.variables.get(name))
        fresh = _flatten(name, value)

        self.variables[name] = value
        for key in stale.keys() - fresh.keys():
            self.variables[key] = None
        self.variables.update(fresh)

    def get_variable(self, name: str, default: Optional[Any] = None) -> Any:
        return self.variables.get(name, default)


def _flatten(name: str, value: Any) -> dict[str, Any]:
    """``name.key`` entries for a dict value, recursively."""
    if not isinstance(value, dict):
        return {}

    entries: dict[str, Any] = {}
    for key, item in value.items():
        entries[f"{name}.{key}"] = item
        entries.update(_flatten(f"{name}.{key}", item))
    return entries
