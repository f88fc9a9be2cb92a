"""Project-level configuration for scriptgate.

Settings come from an optional ``.scriptgate.yaml`` in the project root and
may be overridden through ``SCRIPTGATE_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from .errors import ConfigError

__all__ = ["CONFIG_FILENAME", "ScriptGateConfig", "load_config"]

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAME = ".scriptgate.yaml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

_CONFIG_SCHEMA: Mapping[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "policy_path": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
            "minItems": 1,
        },
        "use_lockfile": {"type": "boolean"},
        "scan_workers": {"type": "integer", "minimum": 1},
        "shell": {"type": ["string", "null"]},
        "timeout_s": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "log_level": {"enum": list(_LOG_LEVELS)},
    },
}

_CONFIG_VALIDATOR = Draft202012Validator(_CONFIG_SCHEMA)


def _env_true(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ScriptGateConfig:
    """Resolved settings for one project."""

    policy_path: tuple[str, ...] = ("lavamoat", "allowScripts")
    use_lockfile: bool = True
    scan_workers: int = 1
    shell: str | None = None
    timeout_s: float | None = None
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: str = "<mapping>") -> ScriptGateConfig:
        errors = sorted(_CONFIG_VALIDATOR.iter_errors(dict(data)), key=lambda err: list(err.path))
        if errors:
            details = "; ".join(
                f"{'/'.join(str(part) for part in err.path) or '<root>'}: {err.message}"
                for err in errors
            )
            raise ConfigError(f"invalid configuration in {source}: {details}")

        defaults = cls()
        return cls(
            policy_path=tuple(data.get("policy_path", defaults.policy_path)),
            use_lockfile=data.get("use_lockfile", defaults.use_lockfile),
            scan_workers=data.get("scan_workers", defaults.scan_workers),
            shell=data.get("shell", defaults.shell),
            timeout_s=data.get("timeout_s", defaults.timeout_s),
            log_level=data.get("log_level", defaults.log_level),
        )

    def with_env(self, environ: Mapping[str, str] | None = None) -> ScriptGateConfig:
        env = os.environ if environ is None else environ
        updated = self

        level = env.get("SCRIPTGATE_LOG_LEVEL")
        if level:
            normalized = level.strip().upper()
            if normalized not in _LOG_LEVELS:
                raise ConfigError(f"SCRIPTGATE_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
            updated = replace(updated, log_level=normalized)

        workers = env.get("SCRIPTGATE_SCAN_WORKERS")
        if workers:
            try:
                count = int(workers)
            except ValueError as exc:
                raise ConfigError("SCRIPTGATE_SCAN_WORKERS must be an integer") from exc
            if count < 1:
                raise ConfigError("SCRIPTGATE_SCAN_WORKERS must be at least 1")
            updated = replace(updated, scan_workers=count)

        lockfile = env.get("SCRIPTGATE_USE_LOCKFILE")
        if lockfile is not None and lockfile.strip():
            updated = replace(updated, use_lockfile=_env_true(lockfile))

        return updated


def load_config(
    project_dir: Path | str,
    *,
    environ: Mapping[str, str] | None = None,
) -> ScriptGateConfig:
    """Load ``.scriptgate.yaml`` from ``project_dir`` and apply env overrides."""

    config_path = Path(project_dir) / CONFIG_FILENAME
    config = ScriptGateConfig()
    if config_path.is_file():
        try:
            with config_path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"failed to read {config_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse YAML in {config_path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"expected mapping in {config_path}, got {type(data).__name__}"
            )
        config = ScriptGateConfig.from_mapping(data, source=str(config_path))
        LOGGER.debug("loaded configuration from %s", config_path)
    return config.with_env(environ)
