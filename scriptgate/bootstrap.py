"""Configure package managers so dependency lifecycle scripts never run implicitly."""

from __future__ import annotations

import logging
from pathlib import Path

__all__ = ["RC_SETTINGS", "setup_project"]

LOGGER = logging.getLogger(__name__)

# rc filename -> (setting key, full line to append)
RC_SETTINGS: dict[str, tuple[str, str]] = {
    ".npmrc": ("ignore-scripts", "ignore-scripts=true"),
    ".yarnrc": ("ignore-scripts", "ignore-scripts true"),
}


def _already_configured(lines: list[str], key: str) -> bool:
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(("#", ";")):
            continue
        if stripped.replace("=", " ").split(" ", 1)[0] == key:
            return True
    return False


def setup_project(project_dir: Path | str) -> list[Path]:
    """Add ``ignore-scripts`` to ``.npmrc`` and ``.yarnrc`` in ``project_dir``.

    Files that already carry an ``ignore-scripts`` setting are left alone,
    whatever its value. Returns the files that were written.
    """

    root = Path(project_dir)
    written: list[Path] = []
    for filename, (key, setting) in RC_SETTINGS.items():
        rc_path = root / filename
        existing = rc_path.read_text(encoding="utf-8") if rc_path.is_file() else ""
        if _already_configured(existing.splitlines(), key):
            LOGGER.info("%s already sets %s; leaving it unchanged", filename, key)
            continue
        prefix = existing if not existing or existing.endswith("\n") else existing + "\n"
        rc_path.write_text(f"{prefix}{setting}\n", encoding="utf-8")
        LOGGER.info("added '%s' to %s", setting, filename)
        written.append(rc_path)
    return written
