"""Gated execution of allowed dependency lifecycle scripts."""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from pathlib import Path

from .errors import ScriptExecutionError
from .models import (
    DEPENDENCY_EVENTS,
    PROJECT_EVENTS,
    LifecycleScriptGroups,
    Location,
    ScriptResult,
)
from .runner import ScriptRunner
from .trace import SCOPE_EVENT, SCOPE_LOCATION, SCOPE_PROJECT, TraceEventEmitter

__all__ = ["GatedExecutor"]

LOGGER = logging.getLogger(__name__)


class GatedExecutor:
    """Run allowed lifecycle scripts one event at a time, then the project's own.

    Every ``preinstall`` across all allowed locations finishes before any
    ``install`` starts, and so on. Invocations are strictly sequential and the
    first failure aborts the run.
    """

    def __init__(self, runner: ScriptRunner, *, emitter: TraceEventEmitter | None = None) -> None:
        self._runner = runner
        self._emitter = emitter or TraceEventEmitter()

    @property
    def emitter(self) -> TraceEventEmitter:
        return self._emitter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def execute(
        self,
        groups: LifecycleScriptGroups,
        allowed: Collection[str],
        project_path: Path | str,
    ) -> tuple[ScriptResult, ...]:
        results: list[ScriptResult] = []
        if allowed:
            locations = groups.locations_for(frozenset(allowed))
            for event in DEPENDENCY_EVENTS:
                results.extend(self.run_event(event, locations))
        else:
            LOGGER.info("no allowed scripts found in configuration")

        results.extend(self.run_project_lifecycle(project_path))
        return tuple(results)

    def run_event(self, event: str, locations: Sequence[Location]) -> list[ScriptResult]:
        LOGGER.info('running lifecycle scripts for event "%s"', event)
        pending = [location for location in locations if location.declares(event)]
        self._emitter.emit(
            "lifecycle_event_start",
            scope_type=SCOPE_EVENT,
            scope_id=event,
            payload={"locations": len(pending)},
        )
        results: list[ScriptResult] = []
        for location in pending:
            LOGGER.info("- %s", location.qualified_name)
            results.append(
                self._invoke(
                    event,
                    location.path,
                    scope_type=SCOPE_LOCATION,
                    scope_id=location.qualified_name,
                )
            )
        return results

    def run_project_lifecycle(self, project_path: Path | str) -> list[ScriptResult]:
        """Run the top-level package's own lifecycle; never gated by policy."""

        path = Path(project_path)
        LOGGER.info("running lifecycle scripts for top level package")
        self._emitter.emit(
            "project_lifecycle_start",
            scope_type=SCOPE_PROJECT,
            scope_id=str(path),
            payload={"events": PROJECT_EVENTS},
        )
        return [
            self._invoke(event, path, scope_type=SCOPE_PROJECT, scope_id=str(path))
            for event in PROJECT_EVENTS
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _invoke(self, event: str, path: Path, *, scope_type: str, scope_id: str) -> ScriptResult:
        self._emitter.emit(
            "script_start",
            scope_type=scope_type,
            scope_id=scope_id,
            payload={"event": event, "path": path},
        )
        try:
            result = self._runner.run_script(event=event, path=path)
            if result.exit_code != 0:
                raise ScriptExecutionError(event, path, result.exit_code)
        except ScriptExecutionError as exc:
            self._emitter.emit(
                "script_failed",
                scope_type=scope_type,
                scope_id=scope_id,
                payload={"event": event, "path": path, "exit_code": exc.exit_code},
            )
            raise
        self._emitter.emit(
            "script_complete",
            scope_type=scope_type,
            scope_id=scope_id,
            payload={"event": event, "path": path, "skipped": result.skipped},
        )
        return result
