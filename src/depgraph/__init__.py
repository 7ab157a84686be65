"""Dependency closure, lockfile fingerprinting, and layer reuse decisions."""

from depgraph.closure import DependencyClosure, collect_dependency_closure
from depgraph.fingerprint import (
    FingerprintError,
    LayerReuseDecision,
    compute_fingerprint,
    decide_layer_reuse,
)
from depgraph.manifests import ManifestError, read_project_manifest
from depgraph.resolver import resolve_package

__all__ = [
    "DependencyClosure",
    "FingerprintError",
    "LayerReuseDecision",
    "ManifestError",
    "collect_dependency_closure",
    "compute_fingerprint",
    "decide_layer_reuse",
    "read_project_manifest",
    "resolve_package",
]
