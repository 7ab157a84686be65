"""Config loading and normalization helpers for the CLI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import msgspec

from cli.config_models import RootConfig
from cli.config_source import ConfigSource, ConfigValue, ConfigWithSources
from core_types import JsonValue
from serde_msgspec import validation_error_payload
from utils.file_io import read_toml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "handlerpack.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_TABLE = "handlerpack"


class ConfigError(ValueError):
    """Raised when a configuration file is missing, unreadable or invalid."""


@dataclass(frozen=True)
class ConfigResolution:
    """Resolved configuration plus source tracking.

    ``base_dir`` is the directory relative config paths are resolved
    against: the directory of the first contributing file, or the start
    directory when no file was found.
    """

    config: RootConfig
    sources: ConfigWithSources
    base_dir: Path


def resolve_config(
    config_file: str | Path | None = None,
    *,
    start: Path | None = None,
) -> ConfigResolution:
    """Load the effective configuration.

    An explicit ``config_file`` is used on its own. Otherwise
    ``handlerpack.toml`` and ``[tool.handlerpack]`` in ``pyproject.toml``
    are searched from ``start`` upwards; values from ``handlerpack.toml``
    win key by key.

    Returns
    -------
    ConfigResolution
        Decoded config, per-key sources and the base directory.

    Raises
    ------
    ConfigError
        Raised when an explicit file is missing or any file is invalid.
    """
    start_dir = (start or Path.cwd()).resolve()
    values: dict[str, ConfigValue] = {}
    base_dirs: list[Path] = []
    if config_file is not None:
        path = Path(config_file)
        if not path.is_absolute():
            path = start_dir / path
        if not path.is_file():
            msg = f"Config file not found: {str(config_file)!r}."
            raise ConfigError(msg)
        raw, location = _resolve_explicit_payload(path)
        root = _decode_root_config(raw, location=location)
        _apply_config_values(values, root, location, source=ConfigSource.EXPLICIT)
        base_dirs.append(path.parent)
    else:
        base_dirs.extend(_load_default_configs(values, start_dir))
    sources = ConfigWithSources(values=values)
    config = _decode_root_config(sources.to_flat_dict(), location="merged configuration")
    return ConfigResolution(
        config=config,
        sources=sources,
        base_dir=base_dirs[0] if base_dirs else start_dir,
    )


def config_to_mapping(config: RootConfig) -> dict[str, JsonValue]:
    """Return builtin values for a config, omitting unset keys.

    Returns
    -------
    dict[str, JsonValue]
        JSON-compatible configuration payload.
    """
    payload = msgspec.to_builtins(config, str_keys=True)
    return cast("dict[str, JsonValue]", payload)


def _find_in_parents(filename: str, start: Path) -> Path | None:
    path = start
    while True:
        candidate = path / filename
        if candidate.is_file():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _load_default_configs(values: dict[str, ConfigValue], start: Path) -> list[Path]:
    base_dirs: list[Path] = []
    config_path = _find_in_parents(CONFIG_FILENAME, start)
    if config_path is not None:
        location = str(config_path)
        root = _decode_root_config(_read_toml(config_path), location=location)
        _apply_config_values(values, root, location, source=ConfigSource.CONFIG_FILE)
        base_dirs.append(config_path.parent)

    pyproject_path = _find_in_parents(PYPROJECT_FILENAME, start)
    if pyproject_path is None:
        return base_dirs
    nested = _extract_tool_config(_read_toml(pyproject_path))
    if nested is None:
        return base_dirs
    location = f"{pyproject_path}:tool.{TOOL_TABLE}"
    root = _decode_root_config(nested, location=location)
    _apply_config_values(
        values,
        root,
        location,
        source=ConfigSource.PYPROJECT,
        skip_existing=True,
    )
    base_dirs.append(pyproject_path.parent)
    return base_dirs


def _read_toml(path: Path) -> dict[str, JsonValue]:
    try:
        payload = read_toml(path)
    except (OSError, msgspec.DecodeError, TypeError) as exc:
        msg = f"Cannot read config file {path}: {exc}"
        raise ConfigError(msg) from exc
    return cast("dict[str, JsonValue]", dict(payload))


def _apply_config_values(
    values: dict[str, ConfigValue],
    raw: RootConfig,
    location: str,
    *,
    source: ConfigSource,
    skip_existing: bool = False,
) -> None:
    for key, value in config_to_mapping(raw).items():
        if skip_existing and key in values:
            logger.debug("Config key %r from %s is shadowed", key, location)
            continue
        values[key] = ConfigValue(
            key=key,
            value=value,
            source=source,
            location=location,
        )


def _decode_root_config(raw: Mapping[str, JsonValue], *, location: str) -> RootConfig:
    try:
        return msgspec.convert(dict(raw), type=RootConfig, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ConfigError(msg) from exc


def _resolve_explicit_payload(path: Path) -> tuple[Mapping[str, JsonValue], str]:
    raw = _read_toml(path)
    if path.name != PYPROJECT_FILENAME:
        return raw, str(path)
    nested = _extract_tool_config(raw)
    if nested is None:
        msg = f"Config validation failed for {path}: missing [tool.{TOOL_TABLE}] section."
        raise ConfigError(msg)
    return nested, f"{path}:tool.{TOOL_TABLE}"


def _extract_tool_config(raw: Mapping[str, JsonValue]) -> dict[str, JsonValue] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(TOOL_TABLE)
    if not isinstance(nested, dict):
        return None
    return cast("dict[str, JsonValue]", nested)


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ConfigResolution",
    "config_to_mapping",
    "resolve_config",
]
