"""Exception hierarchy shared by the scanner, reconciler and executor."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import LifecycleScriptGroups, ReconciliationResult

__all__ = [
    "ConfigError",
    "ManifestCorruptionError",
    "ManifestError",
    "ManifestNotFoundError",
    "PolicyValueError",
    "ScriptExecutionError",
    "ScriptGateError",
    "TreeLoadError",
    "UnconfiguredDependencyError",
]


class ScriptGateError(RuntimeError):
    """Base class for every error raised by scriptgate."""


class ConfigError(ScriptGateError):
    """Raised when ``.scriptgate.yaml`` or an environment override is invalid."""


class TreeLoadError(ScriptGateError):
    """Raised when the project manifest or lockfile cannot be loaded."""


class ManifestError(ScriptGateError):
    """Raised when a package manifest cannot be read."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class ManifestNotFoundError(ManifestError):
    """The manifest file does not exist at the given location."""


class ManifestCorruptionError(ManifestError):
    """A required manifest is absent, unparseable or not a JSON object."""


class PolicyValueError(ScriptGateError):
    """Raised when policy entries hold values other than ``true``/``false``."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = tuple(keys)
        listed = ", ".join(repr(key) for key in self.keys)
        super().__init__(f"policy values must be true or false; malformed entries: {listed}")


class UnconfiguredDependencyError(ScriptGateError):
    """Dependencies with lifecycle scripts have no policy entry."""

    def __init__(
        self,
        result: ReconciliationResult,
        groups: LifecycleScriptGroups | None = None,
    ) -> None:
        self.result = result
        self.groups = groups
        self.missing = tuple(result.missing)
        super().__init__(
            f"{len(self.missing)} package(s) with lifecycle scripts have no configuration: "
            + ", ".join(self.missing)
        )


class ScriptExecutionError(ScriptGateError):
    """A lifecycle script exited with a failure status."""

    def __init__(self, event: str, path: Path, exit_code: int | None, detail: str = "") -> None:
        self.event = event
        self.path = Path(path)
        self.exit_code = exit_code
        message = f"lifecycle script '{event}' failed at {self.path}"
        if exit_code is not None:
            message += f" with exit code {exit_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
