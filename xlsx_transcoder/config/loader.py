from __future__ import annotations

import dataclasses
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_LOGS_DIR, DEFAULT_OUTPUT_PREFIX, TranscoderConfig

"""Config loader.

Responsibilities:
- Load the YAML config file (default config/transcoder.yml)
- Validate it against config_schema.json (shipped next to this module)
- Apply defaults, then environment overrides
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_PATH_ENV",
    "SCHEMA_PATH",
    "load_config",
    "apply_env_overrides",
    "resolve_config_path",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/transcoder.yml")

CONFIG_PATH_ENV = "XLSX_TRANSCODER_CONFIG"
WORKERS_ENV = "XLSX_TRANSCODER_WORKERS"
LOGS_DIR_ENV = "XLSX_TRANSCODER_LOGS_DIR"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def resolve_config_path(environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    return Path(environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def load_config(path: Path) -> TranscoderConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    return TranscoderConfig(
        upload_root=data["upload_root"],
        skip_rows=data.get("skip_rows", 0),
        workers=data.get("workers"),
        logs_dir=data.get("logs_dir", DEFAULT_LOGS_DIR),
        output_prefix=data.get("output_prefix", DEFAULT_OUTPUT_PREFIX),
    )


def apply_env_overrides(
    cfg: TranscoderConfig, environ: Mapping[str, str] | None = None
) -> TranscoderConfig:
    """Overlay XLSX_TRANSCODER_* environment variables on ``cfg``.

    Raises:
        ConfigError: XLSX_TRANSCODER_WORKERS is not a positive integer
    """
    environ = os.environ if environ is None else environ
    changes: dict[str, Any] = {}

    raw_workers = environ.get(WORKERS_ENV)
    if raw_workers:
        try:
            workers = int(raw_workers)
        except ValueError as e:
            raise ConfigError(f"{WORKERS_ENV} must be an integer: {raw_workers!r}") from e
        if workers < 1:
            raise ConfigError(f"{WORKERS_ENV} must be >= 1: {workers}")
        changes["workers"] = workers

    logs_dir = environ.get(LOGS_DIR_ENV)
    if logs_dir:
        changes["logs_dir"] = logs_dir

    return dataclasses.replace(cfg, **changes) if changes else cfg
