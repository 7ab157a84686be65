"""Entry-point generation and bundling for handler exports."""

from bundling.entry_points import EntryPointError, entry_source_path, generate_entry_point
from bundling.esbuild import (
    ALWAYS_EXTERNAL,
    BundleArtifact,
    BundleError,
    BundleOptions,
    bundle,
    bundle_handler,
)

__all__ = [
    "ALWAYS_EXTERNAL",
    "BundleArtifact",
    "BundleError",
    "BundleOptions",
    "EntryPointError",
    "bundle",
    "bundle_handler",
    "entry_source_path",
    "generate_entry_point",
]
