"""Run a package's lifecycle script as an external process."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import ScriptExecutionError
from .manifest import MANIFEST_FILENAME, declared_scripts, read_manifest
from .models import ScriptResult

__all__ = ["ScriptRunner", "SubprocessScriptRunner"]

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class ScriptRunner(Protocol):
    """Executes one lifecycle event for the package installed at ``path``."""

    def run_script(self, *, event: str, path: Path) -> ScriptResult:
        """Run ``event`` and return its result, raising on failure."""


class SubprocessScriptRunner:
    """Run lifecycle scripts through the shell the way npm does.

    The package's ``node_modules/.bin`` directories (and those of every parent
    directory) are prepended to ``PATH`` and the ``npm_lifecycle_*`` variables
    are exported. Events the manifest does not declare are skipped, except
    ``install`` which falls back to ``node-gyp rebuild`` for packages shipping
    a ``binding.gyp``.
    """

    def __init__(
        self,
        *,
        shell: str | None = None,
        timeout_s: float | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._shell = shell
        self._timeout_s = timeout_s
        self._environ = dict(os.environ if environ is None else environ)

    def run_script(self, *, event: str, path: Path) -> ScriptResult:
        package_dir = Path(path)
        manifest = read_manifest(package_dir)
        scripts = declared_scripts(manifest)
        command = scripts.get(event)
        if command is None and event == "install":
            command = _implicit_install_command(package_dir, manifest, scripts)
        if not command:
            LOGGER.debug("no '%s' script declared at %s", event, package_dir)
            return ScriptResult(event=event, path=package_dir, command=None)

        name = manifest.get("name") or package_dir.name
        version = manifest.get("version") or ""
        LOGGER.info("\n> %s@%s %s\n> %s\n", name, version, event, command)

        env = self._build_env(package_dir, event=event, command=command, manifest=manifest)
        try:
            completed = subprocess.run(  # noqa: S602 - lifecycle scripts are shell commands
                command,
                shell=True,
                cwd=package_dir,
                env=env,
                executable=self._shell,
                timeout=self._timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ScriptExecutionError(
                event, package_dir, None, f"timed out after {self._timeout_s}s"
            ) from exc
        except OSError as exc:
            raise ScriptExecutionError(event, package_dir, None, str(exc)) from exc

        if completed.returncode != 0:
            raise ScriptExecutionError(event, package_dir, completed.returncode)
        return ScriptResult(event=event, path=package_dir, command=command, exit_code=0)

    def _build_env(
        self,
        package_dir: Path,
        *,
        event: str,
        command: str,
        manifest: Mapping[str, object],
    ) -> dict[str, str]:
        env = dict(self._environ)
        bin_dirs = [
            str(directory / "node_modules" / ".bin")
            for directory in (package_dir, *package_dir.parents)
        ]
        existing = env.get("PATH", "")
        env["PATH"] = os.pathsep.join([*bin_dirs, existing] if existing else bin_dirs)
        env["npm_lifecycle_event"] = event
        env["npm_lifecycle_script"] = command
        env["npm_package_json"] = str(package_dir / MANIFEST_FILENAME)
        if isinstance(manifest.get("name"), str):
            env["npm_package_name"] = str(manifest["name"])
        if isinstance(manifest.get("version"), str):
            env["npm_package_version"] = str(manifest["version"])
        return env


def _implicit_install_command(
    package_dir: Path, manifest: Mapping[str, object], scripts: Mapping[str, str]
) -> str | None:
    if "preinstall" in scripts or manifest.get("gypfile") is False:
        return None
    if (package_dir / "binding.gyp").is_file():
        return "node-gyp rebuild"
    return None
