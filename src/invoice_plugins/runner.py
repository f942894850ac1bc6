"""Plugin runner - runs a plugin's phases in order."""

import time
from dataclasses import dataclass, field
from typing import Any, Optional
import structlog

from .core.config import Plugin
from .core.errors import PhaseError, StepError
from .engine.context import ExecutionContext
from .engine.documents import Document
from .engine.executor import StepExecutor


logger = structlog.get_logger()


@dataclass
class RunResult:
    """Outcome of a plugin run."""
    plugin_id: str
    authenticated: bool
    auth_started: bool = False
    documents: list[Document] = field(default_factory=list)
    variables: dict[str, Any] = field(default_factory=dict)
    auth_error: Optional[str] = None
    duration_ms: float = 0


class PluginRunner:
    """
    Runs the phases of one plugin against one executor.

    Flow:
    1. checkAuth - a failure here is a signal, not an error
    2. startAuth - only when checkAuth failed and not in auth-only mode
    3. getDocuments - skipped in auth-only mode

    A failed startAuth or getDocuments raises PhaseError.
    """

    def __init__(self, executor: StepExecutor, context: ExecutionContext):
        self.executor = executor
        self.context = context

    def run(self, plugin: Plugin, auth_only: bool = False) -> RunResult:
        """
        Run ``plugin``.

        Args:
            plugin: Loaded plugin definition
            auth_only: Stop after checking authentication

        Raises:
            PhaseError: startAuth or getDocuments failed
        """
        start_time = time.monotonic()
        result = RunResult(plugin_id=plugin.id, authenticated=True)

        if plugin.check_auth:
            logger.info("phase_started", phase="checkAuth", steps=len(plugin.check_auth))
            try:
                self.executor.execute_sequence(plugin.check_auth, self.context)
                logger.info("already_authenticated", plugin_id=plugin.id)
            except StepError as e:
                result.authenticated = False
                result.auth_error = str(e)
                logger.warning("auth_check_failed", plugin_id=plugin.id, error=str(e))

                if not auth_only:
                    self._start_auth(plugin, result)

        if auth_only:
            logger.info("auth_check_completed", authenticated=result.authenticated)
            return self._finish(result, start_time)

        if plugin.get_documents:
            logger.info("phase_started", phase="getDocuments", steps=len(plugin.get_documents))
            try:
                self.executor.execute_sequence(plugin.get_documents, self.context)
            except StepError as e:
                raise PhaseError(f"Failed to fetch documents: {e}", phase="getDocuments") from e
            logger.info("documents_fetched", count=len(self.executor.documents.documents))

        return self._finish(result, start_time)

    def list_config_options(self, plugin: Plugin) -> dict[str, Any]:
        """
        Run getConfigOptions and return the variables it produced.

        Raises:
            PhaseError: getConfigOptions failed
        """
        logger.info("phase_started", phase="getConfigOptions", steps=len(plugin.get_config_options))
        try:
            self.executor.execute_sequence(plugin.get_config_options, self.context)
        except StepError as e:
            raise PhaseError(f"Failed to get config options: {e}", phase="getConfigOptions") from e
        return dict(self.context.variables)

    def _start_auth(self, plugin: Plugin, result: RunResult) -> None:
        if not plugin.start_auth:
            return

        logger.info("phase_started", phase="startAuth", steps=len(plugin.start_auth))
        try:
            self.executor.execute_sequence(plugin.start_auth, self.context)
        except StepError as e:
            raise PhaseError(f"Authentication failed: {e}", phase="startAuth") from e

        result.auth_started = True
        result.authenticated = True
        logger.info("authentication_successful", plugin_id=plugin.id)

    def _finish(self, result: RunResult, start_time: float) -> RunResult:
        result.documents = list(self.executor.documents.documents)
        result.variables = dict(self.context.variables)
        result.duration_ms = (time.monotonic() - start_time) * 1000
        return result
