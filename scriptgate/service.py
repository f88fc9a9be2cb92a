"""Entry points for running, syncing and listing lifecycle script policy."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .bootstrap import setup_project
from .config import ScriptGateConfig, load_config
from .executor import GatedExecutor
from .manifest import read_manifest
from .models import LifecycleScriptGroups, ReconciliationResult, ScriptResult, SyncResult
from .policy import apply_sync, ensure_configured, extract_policy, reconcile, write_policy
from .runner import ScriptRunner, SubprocessScriptRunner
from .scanner import ManifestReader, scan
from .trace import TraceEventEmitter
from .tree import DependencyTree, load_tree

__all__ = [
    "PackageConfigurations",
    "list_packages",
    "load_package_configurations",
    "run",
    "set_default",
    "setup",
]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PackageConfigurations:
    """Everything derived from one project for a single invocation."""

    project_path: Path
    config: ScriptGateConfig
    tree: DependencyTree
    policy: Mapping[str, Any]
    groups: LifecycleScriptGroups
    result: ReconciliationResult


def load_package_configurations(
    project_dir: Path | str,
    *,
    config: ScriptGateConfig | None = None,
    read: ManifestReader = read_manifest,
) -> PackageConfigurations:
    """Load the tree, scan it and reconcile it against the project's policy."""

    project_path = Path(project_dir).expanduser().resolve()
    settings = config or load_config(project_path)
    tree = load_tree(project_path, use_lockfile=settings.use_lockfile)
    groups = scan(tree, read=read, max_workers=settings.scan_workers)
    policy = extract_policy(tree.manifest, settings.policy_path)
    result = reconcile(groups, policy)
    LOGGER.debug(
        "reconciled policy: %d allowed, %d disallowed, %d missing, %d excess",
        len(result.allowed),
        len(result.disallowed),
        len(result.missing),
        len(result.excess),
    )
    return PackageConfigurations(
        project_path=project_path,
        config=settings,
        tree=tree,
        policy=policy,
        groups=groups,
        result=result,
    )


def run(
    project_dir: Path | str,
    *,
    runner: ScriptRunner | None = None,
    config: ScriptGateConfig | None = None,
    emitter: TraceEventEmitter | None = None,
) -> tuple[ScriptResult, ...]:
    """Run allowed dependency scripts, then the project's own lifecycle.

    Nothing executes while any dependency with lifecycle scripts lacks a
    policy entry; :class:`UnconfiguredDependencyError` lists all of them.
    """

    loaded = load_package_configurations(project_dir, config=config)
    ensure_configured(loaded.result, loaded.groups)

    script_runner = runner or SubprocessScriptRunner(
        shell=loaded.config.shell,
        timeout_s=loaded.config.timeout_s,
    )
    executor = GatedExecutor(script_runner, emitter=emitter)
    return executor.execute(loaded.groups, loaded.result.allowed, loaded.project_path)


def set_default(
    project_dir: Path | str,
    *,
    config: ScriptGateConfig | None = None,
) -> SyncResult:
    """Deny newly seen packages, drop stale entries and persist the policy."""

    loaded = load_package_configurations(project_dir, config=config)
    sync = apply_sync(loaded.policy, loaded.result)
    if sync.changed:
        write_policy(
            loaded.project_path,
            loaded.tree.manifest,
            sync.policy,
            loaded.config.policy_path,
        )
    return sync


def list_packages(
    project_dir: Path | str,
    *,
    config: ScriptGateConfig | None = None,
) -> PackageConfigurations:
    return load_package_configurations(project_dir, config=config)


def setup(project_dir: Path | str) -> list[Path]:
    return setup_project(Path(project_dir).expanduser().resolve())
