"""Policy loading, reconciliation and sync for lifecycle script allowlists."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from .errors import PolicyValueError, UnconfiguredDependencyError
from .manifest import MANIFEST_FILENAME
from .models import LifecycleScriptGroups, ReconciliationResult, SyncResult

__all__ = [
    "POLICY_SCHEMA",
    "apply_sync",
    "ensure_configured",
    "extract_policy",
    "malformed_entries",
    "reconcile",
    "write_policy",
]

LOGGER = logging.getLogger(__name__)

POLICY_SCHEMA: Mapping[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": {"type": "boolean"},
}

_POLICY_VALIDATOR = Draft202012Validator(POLICY_SCHEMA)


def malformed_entries(policy: Mapping[str, Any]) -> tuple[str, ...]:
    """Return keys of ``policy`` whose value is not a JSON boolean."""

    keys: list[str] = []
    for error in _POLICY_VALIDATOR.iter_errors(dict(policy)):
        if error.validator == "type" and error.path:
            keys.append(str(error.path[0]))
    ordered = [key for key in policy if key in keys]
    return tuple(ordered)


def extract_policy(
    manifest: Mapping[str, Any],
    policy_path: Sequence[str] = ("lavamoat", "allowScripts"),
) -> dict[str, bool]:
    """Read the allowlist object out of a project manifest.

    Missing containers yield an empty policy. Any entry whose value is not
    ``true`` or ``false`` is rejected with :class:`PolicyValueError`.
    """

    current: Any = manifest
    for key in policy_path:
        if not isinstance(current, Mapping):
            current = None
            break
        current = current.get(key)
        if current is None:
            break

    if current is None:
        return {}
    if not isinstance(current, Mapping):
        raise PolicyValueError([".".join(policy_path)])

    malformed = malformed_entries(current)
    if malformed:
        raise PolicyValueError(malformed)
    return {str(name): value for name, value in current.items()}


def reconcile(
    groups: LifecycleScriptGroups | Mapping[str, Any],
    policy: Mapping[str, Any],
) -> ReconciliationResult:
    """Compare scanned lifecycle script groups with a policy mapping.

    ``allowed`` and ``disallowed`` follow policy order and only take values
    that are exactly ``True`` or ``False``. ``missing`` follows scan order and
    depends on key absence alone; ``excess`` follows policy order.
    """

    allowed = tuple(name for name, value in policy.items() if value is True)
    disallowed = tuple(name for name, value in policy.items() if value is False)
    missing = tuple(name for name in groups if name not in policy)
    excess = tuple(name for name in policy if name not in groups)
    return ReconciliationResult(
        allowed=allowed,
        disallowed=disallowed,
        missing=missing,
        excess=excess,
    )


def apply_sync(policy: Mapping[str, Any], result: ReconciliationResult) -> SyncResult:
    """Deny every missing package and drop every excess entry.

    ``policy`` itself is left untouched; the updated mapping is returned in
    the :class:`SyncResult`.
    """

    if not result.needs_sync:
        return SyncResult(policy=dict(policy), changed=False)

    updated = dict(policy)
    added: list[str] = []
    removed: list[str] = []
    for name in result.missing:
        if name not in updated:
            updated[name] = False
            added.append(name)
    for name in result.excess:
        if name in updated:
            del updated[name]
            removed.append(name)

    return SyncResult(
        policy=updated,
        added=tuple(added),
        removed=tuple(removed),
        changed=bool(added or removed),
    )


def write_policy(
    project_dir: Path | str,
    manifest: Mapping[str, Any],
    policy: Mapping[str, Any],
    policy_path: Sequence[str] = ("lavamoat", "allowScripts"),
) -> Path:
    """Persist ``policy`` into the project's ``package.json``."""

    if not policy_path:
        raise ValueError("policy_path must not be empty")

    document: dict[str, Any] = copy.deepcopy(dict(manifest))
    container = document
    for key in policy_path[:-1]:
        child = container.get(key)
        if not isinstance(child, dict):
            child = {}
            container[key] = child
        container = child
    container[policy_path[-1]] = dict(policy)

    manifest_path = Path(project_dir) / MANIFEST_FILENAME
    text = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    manifest_path.write_text(text, encoding="utf-8")
    LOGGER.debug("wrote %d policy entr(ies) to %s", len(policy), manifest_path)
    return manifest_path


def ensure_configured(result: ReconciliationResult, groups: LifecycleScriptGroups) -> None:
    """Refuse to continue while any package with lifecycle scripts is unconfigured."""

    if result.missing:
        raise UnconfiguredDependencyError(result, groups)
