"""
Application configuration for the rulekit CLI.

Layers, later ones winning key by key:
  1. ``config/default.toml`` (or the file given with ``--config``)
  2. ``local.toml`` in the same directory, if present (gitignored)
  3. ``RULEKIT_*`` environment variables, after ``.env`` is loaded

Every section rejects unknown keys, so a misspelt setting such as
``id_feild`` fails validation instead of being silently ignored.

Entry point: ``load_config(config_path=None) -> AppConfig``. The engine itself
takes plain arguments; only the CLI and ``RuleEngine.from_config`` read an
``AppConfig``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "default.toml"

_SECTION = ConfigDict(frozen=True, extra="forbid")


# ── Sections ──────────────────────────────────────────────────────────────────


class EngineConfig(BaseModel):
    """How the engine identifies records and runs bulk requests."""

    model_config = _SECTION

    id_field: str = "id"
    share_candidate_matches: bool = True

    @field_validator("id_field")
    @classmethod
    def validate_id_field(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id_field must be a non-empty string.")
        return v


class DataConfig(BaseModel):
    """Catalog, rule set and report locations (relative to the working dir)."""

    model_config = _SECTION

    products_file: str = "data/products.json"
    rule_sets_file: str = "config/rule_sets.json"
    output_dir: str = "data/outputs/recommendations"

    @field_validator("products_file")
    @classmethod
    def validate_products_suffix(cls, v: str) -> str:
        if Path(v).suffix.lower() not in (".json", ".parquet"):
            raise ValueError(f"products_file must be .json or .parquet, got '{v}'.")
        return v


class LoggingConfig(BaseModel):
    model_config = _SECTION

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{v}'.")
        return level


class AppConfig(BaseModel):
    model_config = _SECTION

    engine: EngineConfig = EngineConfig()
    data: DataConfig = DataConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Environment overrides ─────────────────────────────────────────────────────


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# env var → (section or None for top level, key, converter)
ENV_OVERRIDES: dict[str, tuple[Optional[str], str, Callable[[str], Any]]] = {
    "RULEKIT_ID_FIELD":                ("engine",  "id_field",                str),
    "RULEKIT_SHARE_CANDIDATE_MATCHES": ("engine",  "share_candidate_matches", _as_bool),
    "RULEKIT_PRODUCTS_FILE":           ("data",    "products_file",           str),
    "RULEKIT_RULE_SETS_FILE":          ("data",    "rule_sets_file",          str),
    "RULEKIT_OUTPUT_DIR":              ("data",    "output_dir",              str),
    "RULEKIT_LOG_LEVEL":               ("logging", "level",                   str),
    "RULEKIT_LOG_JSON":                ("logging", "json_format",             _as_bool),
    "RULEKIT_DEBUG":                   (None,      "debug",                   _as_bool),
}


def env_layer(environ: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """Translate set ``RULEKIT_*`` variables into a config layer.

    Empty values are treated as unset.
    """
    environ = os.environ if environ is None else environ
    layer: dict[str, Any] = {}
    for var, (section, key, convert) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        target = layer if section is None else layer.setdefault(section, {})
        target[key] = convert(value)
    return layer


# ── Loading ───────────────────────────────────────────────────────────────────


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _overlay(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``layer`` applied; sections merge key by key."""
    merged = dict(base)
    for key, value in layer.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Build the ``AppConfig`` from TOML files and the environment.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If a value is invalid or a key is unknown.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Create config/default.toml or pass --config."
        )

    load_dotenv(PROJECT_ROOT / ".env", override=False)

    layers = [_read_toml(path)]
    local = path.with_name("local.toml")
    if local.exists():
        layers.append(_read_toml(local))
    layers.append(env_layer())

    raw: dict[str, Any] = {}
    for layer in layers:
        raw = _overlay(raw, layer)
    return AppConfig.model_validate(raw)
