"""Per-key provenance of configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core_types import JsonValue


class ConfigSource(StrEnum):
    """Where a top-level configuration key was read from."""

    CONFIG_FILE = "config_file"
    PYPROJECT = "pyproject"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class ConfigValue:
    """One top-level key with the file it came from.

    Parameters
    ----------
    key
        Top-level configuration key.
    value
        Builtin value as decoded from TOML.
    source
        Kind of file the key was read from.
    location
        File path, suffixed with ``:tool.handlerpack`` for pyproject tables.
    """

    key: str
    value: JsonValue
    source: ConfigSource
    location: str | None = None

    def to_dict(self) -> dict[str, object]:
        entry: dict[str, object] = {"value": self.value, "source": str(self.source)}
        if self.location:
            entry["location"] = self.location
        return entry


@dataclass(frozen=True)
class ConfigWithSources:
    """All contributing keys, keyed by name."""

    values: dict[str, ConfigValue]

    def to_display_dict(self) -> dict[str, dict[str, object]]:
        """Return ``{key: {value, source, location}}`` sorted by key.

        Returns
        -------
        dict[str, dict[str, object]]
            Display payload for ``config show --with-sources``.
        """
        return {key: self.values[key].to_dict() for key in sorted(self.values)}

    def to_flat_dict(self) -> dict[str, JsonValue]:
        return {key: entry.value for key, entry in self.values.items()}


__all__ = ["ConfigSource", "ConfigValue", "ConfigWithSources"]
