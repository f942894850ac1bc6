"""
Command line entry point.

Loads a plugin and optional configuration, opens the browser and runs the
plugin's phases: checkAuth, startAuth (when needed), getDocuments.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer

from . import __version__
from .browser.manager import DEFAULT_USER_AGENT, BrowserManager
from .core.config import ConfigLoader, RunnerSettings
from .core.errors import PluginRunnerError
from .engine.context import ExecutionContext
from .engine.documents import DocumentStore
from .engine.executor import StepExecutor
from .engine.waits import WaitStrategy
from .runner import PluginRunner


USAGE = """\
Usage: invoice-plugins --plugin <plugin.json> [--config <config.json>] [--check-auth]

Options:
  --plugin PATH         Path to the plugin JSON file (required)
  --config PATH         Path to configuration JSON file with plugin settings (optional)
  --check-auth          Only check if already authenticated, don't run full plugin

Example:
  invoice-plugins --plugin plugins/plausible.json
"""

app = typer.Typer(
    name="invoice-plugins",
    help="Run invoice retrieval plugins in a browser.",
    add_completion=False,
)

logger = structlog.get_logger()


def configure_logging(log_format: str = "console", level: str = "INFO") -> None:
    """Configure structlog on top of stdlib logging."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper(), force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"invoice-plugins {__version__}")
        raise typer.Exit()


@app.command()
def run(
    plugin: Optional[Path] = typer.Option(None, "--plugin", "-p", help="Path to the plugin JSON file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to configuration JSON/YAML file"),
    check_auth: bool = typer.Option(False, "--check-auth", help="Only check authentication"),
    list_config_options: bool = typer.Option(
        False, "--list-config-options", help="Run getConfigOptions and print the result"
    ),
    headless: Optional[bool] = typer.Option(None, "--headless/--no-headless", help="Run the browser headless"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Where documents are saved"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="console or json"),
    version: bool = typer.Option(
        False, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Run a plugin: check authentication, log in if needed, fetch documents."""
    if plugin is None:
        typer.echo(USAGE)
        raise typer.Exit(1)

    try:
        settings = RunnerSettings.from_env()
        overrides = {
            "headless": headless,
            "output_dir": str(output_dir) if output_dir else None,
            "log_format": log_format,
        }
        settings = RunnerSettings(**{
            **settings.model_dump(),
            **{k: v for k, v in overrides.items() if v is not None},
        })
    except (PluginRunnerError, ValueError) as e:
        typer.echo(f"Invalid settings: {e}", err=True)
        raise typer.Exit(1)

    configure_logging(settings.log_format, settings.log_level)

    loader = ConfigLoader()
    try:
        logger.info("plugin_loading", path=str(plugin))
        definition = loader.load_plugin(str(plugin))
        logger.info("plugin_loaded", plugin_id=definition.id, name=definition.name)
        logger.info("plugin_description", description=definition.description)

        values: dict[str, str] = {}
        if config is not None:
            values = loader.load_config_values(str(config))
            logger.info("config_loaded", values=len(values))
    except PluginRunnerError as e:
        logger.error("load_failed", **e.to_dict())
        raise typer.Exit(1)

    try:
        with BrowserManager(
            headless=settings.headless,
            user_data_dir=settings.user_data_dir,
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            user_agent=settings.user_agent or DEFAULT_USER_AGENT,
            default_timeout=settings.default_timeout_ms,
        ) as browser:
            executor = StepExecutor(
                browser.session,
                waits=WaitStrategy(
                    poll_interval_ms=settings.poll_interval_ms,
                    network_idle_wait_ms=settings.network_idle_wait_ms,
                ),
                documents=DocumentStore(settings.output_dir),
            )
            runner = PluginRunner(executor, ExecutionContext(config=values))

            if list_config_options:
                options = runner.list_config_options(definition)
                typer.echo(json.dumps(options, indent=2, default=str))
                return

            result = runner.run(definition, auth_only=check_auth)
    except PluginRunnerError as e:
        logger.error("plugin_failed", **e.to_dict())
        raise typer.Exit(1)
    except Exception:
        logger.exception("plugin_error")
        raise typer.Exit(1)

    if check_auth:
        logger.info("check_auth_completed", authenticated=result.authenticated)
        return

    logger.info(
        "plugin_completed",
        plugin_id=result.plugin_id,
        documents=len(result.documents),
        duration_ms=round(result.duration_ms, 1),
    )
    for document in result.documents:
        typer.echo(str(document.path))


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
