"""Process-wide registry configuration

Settings live in one YAML file (config/config.yaml unless $NFT_REGISTRY_CONFIG
or an explicit path says otherwise) and are checked against the pydantic
schema in config_schema before anything reads them. The first accessor to
run loads the file; tests call reset_config() to start over.

Two views of the same settings are kept side by side:
- get("logging.output_file"): raw dot-path lookup, returns a default for
  missing keys
- get_validated_config(): typed AppConfig, every field present
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .config_schema import AppConfig, validate_config_dict

load_dotenv()

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "NFT_REGISTRY_CONFIG"

DEFAULT_CONFIG_PATH: Path = Path(__file__).parent.parent / "config" / "config.yaml"

# Loaded state: raw mapping, its validated form, and where it came from
_raw: dict[str, Any] | None = None
_typed: AppConfig | None = None
_source: Path | None = None


def _resolve_path(config_path: str | Path | None) -> Path:
    if config_path:
        return Path(config_path)
    override = os.getenv(CONFIG_ENV_VAR)
    return Path(override) if override else DEFAULT_CONFIG_PATH


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path) as f:
        data: Any = yaml.safe_load(f)
    # An empty file means "all defaults"
    return data if isinstance(data, dict) else {}


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Read, validate and install a config file.

    Nothing is installed unless the whole file validates, so a bad file
    leaves the previous config in place.

    Args:
        config_path: Explicit file. Falls back to $NFT_REGISTRY_CONFIG, then
            config/config.yaml next to the package.

    Returns:
        The raw settings mapping.

    Raises:
        FileNotFoundError: The file does not exist
        pydantic.ValidationError: A key is unknown or a value is out of range
    """
    global _raw, _typed, _source

    path = _resolve_path(config_path)
    raw = _read_yaml(path)
    typed = validate_config_dict(raw)

    _raw, _typed, _source = raw, typed, path
    logger.debug("config loaded from %s", path)
    return raw


def _ensure_loaded() -> tuple[dict[str, Any], AppConfig]:
    if _raw is None or _typed is None:
        load_config()
    if _raw is None or _typed is None:
        raise RuntimeError("Config failed to load. Call load_config() first.")
    return _raw, _typed


def get_config() -> dict[str, Any]:
    """Raw settings mapping, loading the default file on first use."""
    return _ensure_loaded()[0]


def get_validated_config() -> AppConfig:
    """Typed settings, loading the default file on first use."""
    return _ensure_loaded()[1]


def config_source() -> Path | None:
    """File the current config was loaded from, or None if nothing is loaded."""
    return _source


def get(key: str, default: Any = None) -> Any:
    """Look up a value by dot path, e.g. get("checkpoint.file").

    Only keys present in the file are found; schema defaults are not, so
    callers pass their own default.
    """
    node: Any = get_config()
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_config_value(key: str, value: Any) -> None:
    """Override one dot-path value at runtime.

    The override is applied to a copy and validated first; an invalid value
    raises pydantic.ValidationError and the live config is unchanged.
    """
    global _raw, _typed

    current, _ = _ensure_loaded()
    candidate = copy.deepcopy(current)

    *parents, leaf = key.split(".")
    node = candidate
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value

    _typed = validate_config_dict(candidate)
    _raw = candidate
    logger.debug("config override %s=%r", key, value)


def reset_config() -> None:
    """Drop the loaded config so the next accessor reloads it."""
    global _raw, _typed, _source
    _raw = _typed = None
    _source = None


def configure_logging(level: str | None = None) -> None:
    """Set the level of every nft_registry logger (default: logging.level)."""
    resolved = level or get_validated_config().logging.level
    logging.getLogger("nft_registry").setLevel(resolved)
