"""Human readable rendering of reconciliation and sync results."""

from __future__ import annotations

from collections.abc import Sequence

from .models import LifecycleScriptGroups, ReconciliationResult, SyncResult

__all__ = ["render_missing", "render_report", "render_sync"]


def _entries(names: Sequence[str], groups: LifecycleScriptGroups) -> list[str]:
    return [f"- {name} [{groups.location_count(name)} location(s)]" for name in names]


def render_report(result: ReconciliationResult, groups: LifecycleScriptGroups) -> str:
    lines: list[str] = ["", "# allowed packages"]
    lines.extend(_entries(result.allowed, groups) or ["  (none)"])

    lines.extend(["", "# disallowed packages"])
    lines.extend(_entries(result.disallowed, groups) or ["  (none)"])

    if result.missing:
        lines.extend(["", "# unconfigured packages!"])
        lines.extend(_entries(result.missing, groups))

    if result.excess:
        lines.extend(
            ["", "# packages that dont need configuration (missing or no lifecycle scripts)"]
        )
        lines.extend(_entries(result.excess, groups))

    return "\n".join(lines)


def render_missing(result: ReconciliationResult, groups: LifecycleScriptGroups) -> str:
    """Notice printed when ``run`` refuses to execute."""

    lines = [
        "",
        "scriptgate has detected dependencies without configuration. "
        "explicit configuration required.",
        'run "scriptgate auto" to automatically populate the configuration.',
        "",
        "packages missing configuration:",
    ]
    lines.extend(_entries(result.missing, groups))
    return "\n".join(lines)


def render_sync(sync: SyncResult) -> str:
    lines = ["", "scriptgate automatically updating configuration"]
    if not sync.changed:
        lines.extend(["", "configuration looks good as is, no changes necessary"])
        return "\n".join(lines)

    if sync.added:
        lines.extend(["", "adding configuration for missing packages:"])
        lines.extend(f"- {name}" for name in sync.added)
    if sync.removed:
        lines.extend(["", "removing unneeded configuration for packages:"])
        lines.extend(f"- {name}" for name in sync.removed)
    return "\n".join(lines)
