"""Core data models for the lifecycle script policy engine.

Everything handed back to callers is immutable: groups are exposed through
``MappingProxyType`` and tuples so that a scan result cannot be altered
between reconciliation and execution.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

DEPENDENCY_EVENTS: tuple[str, ...] = ("preinstall", "install", "postinstall")
PROJECT_EVENTS: tuple[str, ...] = ("install", "postinstall", "prepublish", "prepare")


@dataclass(frozen=True, slots=True)
class DependencyNode:
    """One installed package instance in the resolved dependency graph."""

    location: str
    path: Path
    name: str
    version: str | None = None
    resolved: str | None = None
    optional: bool = False
    parent: str | None = None


@dataclass(frozen=True, slots=True)
class NodeVisit:
    """A node together with its ancestor chain (top-level first, node last)."""

    node: DependencyNode
    branch: tuple[DependencyNode, ...]

    @property
    def branch_is_optional(self) -> bool:
        return any(member.optional for member in self.branch)


@dataclass(frozen=True, slots=True)
class Location:
    """Filesystem location of one install of a package with lifecycle scripts."""

    qualified_name: str
    path: Path
    scripts: Mapping[str, str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "scripts", MappingProxyType(dict(self.scripts)))

    def declares(self, event: str) -> bool:
        return event in self.scripts


class LifecycleScriptGroups(Mapping[str, tuple[Location, ...]]):
    """Read-only grouping of :class:`Location` records by qualified name.

    Iteration follows the order in which qualified names were first seen
    during the scan.
    """

    __slots__ = ("_groups",)

    def __init__(self, groups: Mapping[str, Sequence[Location]] | None = None) -> None:
        frozen = {name: tuple(locations) for name, locations in (groups or {}).items()}
        self._groups: Mapping[str, tuple[Location, ...]] = MappingProxyType(frozen)

    def __getitem__(self, key: str) -> tuple[Location, ...]:
        return self._groups[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        return f"LifecycleScriptGroups({dict(self._groups)!r})"

    def location_count(self, qualified_name: str) -> int:
        return len(self._groups.get(qualified_name, ()))

    def locations_for(self, names: Sequence[str] | frozenset[str]) -> tuple[Location, ...]:
        """Concatenate locations of every group named in ``names`` in scan order."""

        wanted = frozenset(names)
        collected: list[Location] = []
        for name, locations in self._groups.items():
            if name in wanted:
                collected.extend(locations)
        return tuple(collected)


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """The four canonical policy sets derived from a scan and a policy."""

    allowed: tuple[str, ...] = ()
    disallowed: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()
    excess: tuple[str, ...] = ()

    @property
    def is_configured(self) -> bool:
        return not self.missing

    @property
    def needs_sync(self) -> bool:
        return bool(self.missing or self.excess)

    def to_payload(self, groups: LifecycleScriptGroups | None = None) -> dict[str, Any]:
        """Serialise the result to a JSON-compatible payload."""

        def _entries(names: tuple[str, ...]) -> list[dict[str, Any]]:
            return [
                {
                    "name": name,
                    "locations": groups.location_count(name) if groups is not None else 0,
                }
                for name in names
            ]

        return {
            "allowed": _entries(self.allowed),
            "disallowed": _entries(self.disallowed),
            "missing": _entries(self.missing),
            "excess": _entries(self.excess),
        }


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of folding missing/excess entries back into a policy."""

    policy: Mapping[str, Any]
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    changed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "policy", MappingProxyType(dict(self.policy)))


@dataclass(frozen=True, slots=True)
class ScriptResult:
    """Outcome of a single lifecycle event invocation."""

    event: str
    path: Path
    command: str | None
    exit_code: int = 0

    @property
    def skipped(self) -> bool:
        return self.command is None


__all__ = [
    "DEPENDENCY_EVENTS",
    "PROJECT_EVENTS",
    "DependencyNode",
    "LifecycleScriptGroups",
    "Location",
    "NodeVisit",
    "ReconciliationResult",
    "ScriptResult",
    "SyncResult",
]
