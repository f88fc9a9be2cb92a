"""Dependency tree loading and traversal.

The tree is built from the ``packages`` section of ``package-lock.json``
(lockfile v2/v3) when present. Projects without a usable lockfile fall back
to walking ``node_modules`` on disk.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .errors import ManifestError, TreeLoadError
from .manifest import read_manifest
from .models import DependencyNode, NodeVisit

__all__ = ["DependencyTree", "each_node_in_tree", "load_tree"]

LOGGER = logging.getLogger(__name__)

_LOCKFILE_NAMES = ("npm-shrinkwrap.json", "package-lock.json")
_NODE_MODULES = "node_modules"
_SEGMENT = f"{_NODE_MODULES}/"


@dataclass(frozen=True, slots=True)
class DependencyTree:
    """Resolved dependency graph rooted at a project directory."""

    root: DependencyNode
    manifest: Mapping[str, Any]
    nodes: Mapping[str, DependencyNode]
    source: str


def load_tree(project_dir: Path | str, *, use_lockfile: bool = True) -> DependencyTree:
    """Load the project manifest and its resolved dependency graph."""

    project_path = Path(project_dir).expanduser().resolve()
    try:
        manifest = read_manifest(project_path)
    except ManifestError as exc:
        raise TreeLoadError(f"cannot load project manifest: {exc}") from exc

    root = DependencyNode(
        location="",
        path=project_path,
        name=str(manifest.get("name") or project_path.name),
        version=manifest.get("version"),
    )

    packages = _read_lockfile_packages(project_path) if use_lockfile else None
    if packages is not None:
        nodes = _nodes_from_lockfile(project_path, packages)
        source = "lockfile"
    else:
        nodes = _nodes_from_disk(project_path, manifest)
        source = "node_modules"

    LOGGER.debug("loaded %d dependency node(s) from %s", len(nodes), source)
    ordered = dict(sorted(nodes.items(), key=lambda item: item[0]))
    return DependencyTree(
        root=root,
        manifest=MappingProxyType(dict(manifest)),
        nodes=MappingProxyType(ordered),
        source=source,
    )


def each_node_in_tree(tree: DependencyTree) -> Iterator[NodeVisit]:
    """Yield every dependency node once, with its branch from the top level down.

    The root project itself is not yielded.
    """

    for location, node in tree.nodes.items():
        branch: list[DependencyNode] = [node]
        parent = node.parent
        seen = {location}
        while parent and parent not in seen:
            seen.add(parent)
            ancestor = tree.nodes.get(parent)
            if ancestor is None:
                break
            branch.append(ancestor)
            parent = ancestor.parent
        branch.reverse()
        yield NodeVisit(node=node, branch=tuple(branch))


# ---------------------------------------------------------------------------
# Lockfile loading
# ---------------------------------------------------------------------------
def _read_lockfile_packages(project_path: Path) -> Mapping[str, Any] | None:
    for filename in _LOCKFILE_NAMES:
        lock_path = project_path / filename
        if not lock_path.is_file():
            continue
        try:
            data = json.loads(lock_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TreeLoadError(f"failed to parse lockfile {lock_path}: {exc}") from exc
        packages = data.get("packages") if isinstance(data, dict) else None
        if isinstance(packages, dict):
            return packages
        LOGGER.warning(
            "%s has no 'packages' section (lockfileVersion %s); scanning node_modules instead",
            filename,
            data.get("lockfileVersion") if isinstance(data, dict) else "?",
        )
        return None
    return None


def _name_from_location(location: str) -> str:
    tail = location.rsplit(_SEGMENT, 1)[-1]
    return tail


def _parent_location(location: str) -> str:
    head, sep, _ = location.rpartition(f"/{_SEGMENT}")
    return head if sep else ""


def _nodes_from_lockfile(
    project_path: Path, packages: Mapping[str, Any]
) -> dict[str, DependencyNode]:
    nodes: dict[str, DependencyNode] = {}
    for location, entry in packages.items():
        if not location or not (location.startswith(_SEGMENT) or f"/{_SEGMENT}" in location):
            continue
        if not isinstance(entry, dict):
            raise TreeLoadError(f"lockfile entry for '{location}' must be an object")
        if entry.get("link"):
            continue
        nodes[location] = DependencyNode(
            location=location,
            path=project_path / location,
            name=str(entry.get("name") or _name_from_location(location)),
            version=entry.get("version"),
            resolved=entry.get("resolved"),
            optional=bool(entry.get("optional")),
            parent=_parent_location(location),
        )
    return nodes


# ---------------------------------------------------------------------------
# node_modules walking
# ---------------------------------------------------------------------------
def _optional_names(manifest: Mapping[str, Any]) -> frozenset[str]:
    optional = manifest.get("optionalDependencies") or {}
    if not isinstance(optional, dict):
        return frozenset()
    return frozenset(str(name) for name in optional)


def _iter_package_dirs(modules_dir: Path) -> Iterator[tuple[str, Path]]:
    if not modules_dir.is_dir():
        return
    for entry in sorted(modules_dir.iterdir()):
        if entry.name.startswith(".") or entry.is_symlink() or not entry.is_dir():
            continue
        if entry.name.startswith("@"):
            for scoped in sorted(entry.iterdir()):
                if scoped.name.startswith(".") or scoped.is_symlink() or not scoped.is_dir():
                    continue
                yield f"{entry.name}/{scoped.name}", scoped
        else:
            yield entry.name, entry


def _nodes_from_disk(project_path: Path, root_manifest: Mapping[str, Any]) -> dict[str, DependencyNode]:
    nodes: dict[str, DependencyNode] = {}
    pending: list[tuple[Path, str, frozenset[str]]] = [
        (project_path / _NODE_MODULES, "", _optional_names(root_manifest))
    ]
    while pending:
        modules_dir, parent, optional_names = pending.pop(0)
        for name, package_dir in _iter_package_dirs(modules_dir):
            location = package_dir.relative_to(project_path).as_posix()
            manifest: Mapping[str, Any]
            try:
                manifest = read_manifest(package_dir)
            except ManifestError:
                # Left for the scanner to classify against the branch.
                manifest = {}
            nodes[location] = DependencyNode(
                location=location,
                path=package_dir,
                name=str(manifest.get("name") or name),
                version=manifest.get("version"),
                resolved=manifest.get("_resolved"),
                optional=name in optional_names,
                parent=parent,
            )
            nested = package_dir / _NODE_MODULES
            if nested.is_dir():
                pending.append((nested, location, _optional_names(manifest)))
    return nodes
