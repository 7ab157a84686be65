"""Typed configuration models for handlerpack."""

from __future__ import annotations

from bundling.esbuild import BundleFormat
from core_types import LogLevel, PositiveFloat, PositiveInt
from serde_msgspec import StructBaseStrict


class BundleConfig(StructBaseStrict, frozen=True):
    """Bundler configuration values."""

    esbuild_bin: str | None = None
    target: str | None = None
    format: BundleFormat | None = None
    minify: bool | None = None
    timeout_s: PositiveFloat | None = None
    runtime_dir: str | None = None
    externals: tuple[str, ...] | None = None


class LayerConfig(StructBaseStrict, frozen=True):
    """Dependency layer configuration values."""

    max_workers: PositiveInt | None = None
    previous_fingerprint: str | None = None


class DiscoveryConfig(StructBaseStrict, frozen=True):
    """Handler discovery configuration values."""

    kinds: tuple[str, ...] | None = None
    exclude_dirs: tuple[str, ...] | None = None
    max_workers: PositiveInt | None = None


class RootConfig(StructBaseStrict, frozen=True):
    """Root configuration payload for handlerpack."""

    project_dir: str | None = None
    handlers: tuple[str, ...] | None = None
    output_dir: str | None = None
    log_level: LogLevel | None = None

    bundle: BundleConfig | None = None
    layer: LayerConfig | None = None
    discovery: DiscoveryConfig | None = None


__all__ = [
    "BundleConfig",
    "DiscoveryConfig",
    "LayerConfig",
    "RootConfig",
]
