"""Reading ``package.json`` manifests from installed package directories."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import ManifestCorruptionError, ManifestNotFoundError

__all__ = ["MANIFEST_FILENAME", "declared_scripts", "read_manifest"]

MANIFEST_FILENAME = "package.json"


def read_manifest(package_dir: Path | str) -> dict[str, Any]:
    """Load the manifest of the package installed at ``package_dir``.

    A missing file raises :class:`ManifestNotFoundError` so callers can tell
    an absent optional package apart from a broken one. Any other read or
    parse failure raises :class:`ManifestCorruptionError`.
    """

    manifest_path = Path(package_dir) / MANIFEST_FILENAME
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestNotFoundError(f"manifest not found: {manifest_path}", manifest_path) from exc
    except NotADirectoryError as exc:
        raise ManifestNotFoundError(f"manifest not found: {manifest_path}", manifest_path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestCorruptionError(
            f"failed to read manifest {manifest_path}: {exc}", manifest_path
        ) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestCorruptionError(
            f"failed to parse manifest {manifest_path}: {exc}", manifest_path
        ) from exc

    if not isinstance(data, dict):
        raise ManifestCorruptionError(
            f"manifest {manifest_path} must contain a JSON object, got {type(data).__name__}",
            manifest_path,
        )
    return data


def declared_scripts(manifest: dict[str, Any]) -> dict[str, str]:
    scripts = manifest.get("scripts") or {}
    if not isinstance(scripts, dict):
        return {}
    return {str(name): str(command) for name, command in scripts.items() if command is not None}
