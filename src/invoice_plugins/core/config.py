"""Configuration and plugin loading."""

import os
import json
from pathlib import Path
from typing import Any, Optional
from dataclasses import dataclass, field

import yaml
import jsonschema
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ..engine.steps import Step, parse_steps
from .errors import ConfigError, PluginLoadError


class RunnerSettings(BaseModel):
    """Runtime settings for the plugin runner."""
    headless: bool = Field(default=False)
    default_timeout_ms: int = Field(default=30000, ge=100)
    poll_interval_ms: int = Field(default=500, ge=10, le=10000)
    network_idle_wait_ms: int = Field(default=2000, ge=0)
    viewport_width: int = Field(default=1280, ge=320)
    viewport_height: int = Field(default=720, ge=240)
    user_agent: Optional[str] = Field(default=None)

    # Paths
    output_dir: str = Field(default="./data/documents")
    user_data_dir: str = Field(default="./data/browser")

    # Logging
    log_format: str = Field(default="console", pattern="^(console|json)$")
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "RunnerSettings":
        """Build settings from ``PLUGIN_RUNNER_*`` environment variables."""
        load_dotenv(env_file)

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"PLUGIN_RUNNER_{name.upper()}")
            if raw is not None:
                values[name] = raw
        if "log_format" not in values and os.getenv("LOG_FORMAT"):
            values["log_format"] = os.getenv("LOG_FORMAT")

        try:
            return cls(**values)
        except Exception as e:
            raise ConfigError(f"Invalid runner settings: {e}")


@dataclass(frozen=True)
class ConfigOption:
    """A selectable value for a configuration field."""
    label: str
    value: str


@dataclass(frozen=True)
class ConfigField:
    """A configuration field a plugin asks the user for."""
    type: str
    title: str
    description: str = ""
    required: bool = False
    default: Any = None
    options: tuple[ConfigOption, ...] = ()


@dataclass(frozen=True)
class Plugin:
    """A loaded plugin definition."""
    id: str
    name: str
    description: str = ""
    homepage: str = ""
    schema: str = ""
    config_schema: dict[str, ConfigField] = field(default_factory=dict)

    # Phases
    check_auth: tuple[Step, ...] = ()
    start_auth: tuple[Step, ...] = ()
    get_config_options: tuple[Step, ...] = ()
    get_documents: tuple[Step, ...] = ()

    autofill: Any = None


_STEP_LIST = {"type": "array", "items": {"$ref": "#/$defs/step"}}

PLUGIN_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "homepage": {"type": "string"},
        "configSchema": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "options": {
                        "type": "array",
                        "items": {"type": "object"},
                    },
                },
            },
        },
        "checkAuth": _STEP_LIST,
        "startAuth": _STEP_LIST,
        "getConfigOptions": _STEP_LIST,
        "getDocuments": _STEP_LIST,
    },
    "$defs": {
        "step": {
            "type": "object",
            "required": ["action"],
            "properties": {
                "action": {"type": "string"},
                "timeout": {"type": "number", "minimum": 0},
                "duration": {"type": "number", "minimum": 0},
                "forEach": _STEP_LIST,
                "then": _STEP_LIST,
                "else": _STEP_LIST,
            },
        },
    },
}


class ConfigLoader:
    """Loads plugin definitions and configuration value files."""

    def load_plugin(self, path: str) -> Plugin:
        """Load and structurally validate a plugin JSON file."""
        path = Path(path)
        if not path.exists():
            raise PluginLoadError(f"Plugin file not found: {path}", plugin_path=str(path))

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise PluginLoadError(f"Cannot read plugin: {e}", plugin_path=str(path)) from e
        except json.JSONDecodeError as e:
            raise PluginLoadError(f"Invalid JSON: {e}", plugin_path=str(path)) from e

        try:
            jsonschema.validate(data, PLUGIN_SCHEMA)
        except jsonschema.ValidationError as e:
            location = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise PluginLoadError(
                f"Invalid plugin at {location}: {e.message}",
                plugin_path=str(path),
            ) from e

        try:
            return self._build_plugin(data)
        except (ValueError, TypeError, AttributeError, OverflowError) as e:
            raise PluginLoadError(f"Invalid plugin: {e}", plugin_path=str(path)) from e

    def load_config_values(self, path: str) -> dict[str, str]:
        """
        Load a flat configuration file (JSON or YAML).

        Scalar values are coerced to strings; nested values are rejected.
        """
        path = Path(path)
        data = self._load_file(path)

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain an object", config_path=str(path))

        values: dict[str, str] = {}
        for key, value in data.items():
            if isinstance(value, (dict, list)):
                raise ConfigError(
                    f"Config value for '{key}' must be a scalar",
                    config_path=str(path),
                )
            if isinstance(value, bool):
                value = "true" if value else "false"
            values[str(key)] = "" if value is None else str(value)
        return values

    def _load_file(self, path: Path) -> Any:
        """Load YAML or JSON file."""
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}", config_path=str(path))

        try:
            content = path.read_text(encoding="utf-8")

            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(content) or {}
            return json.loads(content)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read config: {e}", config_path=str(path)) from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", config_path=str(path)) from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON: {e}", config_path=str(path)) from e

    def _build_plugin(self, data: dict[str, Any]) -> Plugin:
        config_schema = {
            name: ConfigField(
                type=str(spec.get("type", "string")),
                title=str(spec.get("title", name)),
                description=str(spec.get("description", "")),
                required=bool(spec.get("required", False)),
                default=spec.get("default"),
                options=tuple(
                    ConfigOption(label=str(opt.get("label", "")), value=str(opt.get("value", "")))
                    for opt in spec.get("options", [])
                ),
            )
            for name, spec in (data.get("configSchema") or {}).items()
        }

        return Plugin(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            homepage=data.get("homepage", ""),
            schema=data.get("$schema", ""),
            config_schema=config_schema,
            check_auth=parse_steps(data.get("checkAuth")),
            start_auth=parse_steps(data.get("startAuth")),
            get_config_options=parse_steps(data.get("getConfigOptions")),
            get_documents=parse_steps(data.get("getDocuments")),
            autofill=data.get("autofill"),
        )
