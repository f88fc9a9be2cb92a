"""Classify dependency nodes by the install-time lifecycle events they declare."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from .errors import ManifestCorruptionError, ManifestNotFoundError
from .identity import qualified_name
from .manifest import declared_scripts, read_manifest
from .models import DEPENDENCY_EVENTS, LifecycleScriptGroups, Location, NodeVisit
from .tree import DependencyTree, each_node_in_tree

__all__ = ["ManifestReader", "scan"]

LOGGER = logging.getLogger(__name__)

ManifestReader = Callable[[Path], dict[str, Any]]

_Outcome = tuple[NodeVisit, dict[str, Any] | ManifestNotFoundError]


def _read_one(read: ManifestReader, visit: NodeVisit) -> _Outcome:
    try:
        return visit, read(visit.node.path)
    except ManifestNotFoundError as exc:
        return visit, exc


def _outcomes(
    visits: list[NodeVisit], read: ManifestReader, max_workers: int | None
) -> Iterator[_Outcome]:
    if not max_workers or max_workers <= 1 or len(visits) <= 1:
        for visit in visits:
            yield _read_one(read, visit)
        return
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scriptgate-scan") as pool:
        # map() yields in submission order, keeping the grouping deterministic.
        yield from pool.map(lambda visit: _read_one(read, visit), visits)


def scan(
    tree: DependencyTree,
    *,
    read: ManifestReader = read_manifest,
    max_workers: int | None = None,
) -> LifecycleScriptGroups:
    """Group every node declaring ``preinstall``/``install``/``postinstall``.

    A node whose manifest is absent is skipped when any package on its branch
    is optional; otherwise the absence is treated as corruption and raised.
    Manifests that exist but cannot be parsed always raise.
    """

    visits = list(each_node_in_tree(tree))
    grouped: dict[str, list[Location]] = {}

    for visit, outcome in _outcomes(visits, read, max_workers):
        node = visit.node
        if isinstance(outcome, ManifestNotFoundError):
            if visit.branch_is_optional:
                LOGGER.debug("skipping optional dependency without manifest: %s", node.location)
                continue
            raise ManifestCorruptionError(
                f"manifest missing for required dependency '{node.name}' at {node.path}",
                outcome.path,
            ) from outcome

        scripts = declared_scripts(outcome)
        if not any(event in scripts for event in DEPENDENCY_EVENTS):
            continue

        name = qualified_name(node)
        grouped.setdefault(name, []).append(
            Location(qualified_name=name, path=node.path, scripts=scripts)
        )

    LOGGER.debug(
        "scanned %d node(s); %d package(s) declare lifecycle scripts", len(visits), len(grouped)
    )
    return LifecycleScriptGroups(grouped)
