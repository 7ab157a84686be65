"""Run context for CLI command injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cli.config_loader import resolve_config
from cli.config_models import BundleConfig, DiscoveryConfig, LayerConfig, RootConfig
from cli.config_source import ConfigWithSources
from cli.path_utils import resolve_path

DEFAULT_OUTPUT_DIR = "dist"


@dataclass(frozen=True)
class RunContext:
    """Injected run context for CLI commands.

    Parameters
    ----------
    log_level
        Logging level applied to the invocation.
    config
        Effective configuration.
    config_sources
        Per-key configuration sources for display.
    base_dir
        Directory relative config paths are resolved against.
    """

    log_level: str
    config: RootConfig = field(default_factory=RootConfig)
    config_sources: ConfigWithSources | None = None
    base_dir: Path = field(default_factory=Path.cwd)

    @property
    def bundle(self) -> BundleConfig:
        return self.config.bundle or BundleConfig()

    @property
    def layer(self) -> LayerConfig:
        return self.config.layer or LayerConfig()

    @property
    def discovery(self) -> DiscoveryConfig:
        return self.config.discovery or DiscoveryConfig()

    def project_dir(self, override: Path | None = None) -> Path:
        """Return the project directory, preferring a command-line override.

        Returns
        -------
        Path
            Absolute project directory.
        """
        if override is not None:
            return override.resolve()
        configured = resolve_path(self.base_dir, self.config.project_dir)
        return (configured or self.base_dir).resolve()

    def output_dir(self, project_dir: Path, override: Path | None = None) -> Path:
        """Return the directory archives are written to.

        Returns
        -------
        Path
            ``override``, else the configured directory, else
            ``<project>/dist``.
        """
        if override is not None:
            return override.resolve()
        configured = resolve_path(self.base_dir, self.config.output_dir)
        return (configured or project_dir / DEFAULT_OUTPUT_DIR).resolve()


def ensure_run_context(run_context: RunContext | None) -> RunContext:
    """Return ``run_context`` or one built from the default config search.

    Returns
    -------
    RunContext
        Context for commands invoked outside the meta launcher.
    """
    if run_context is not None:
        return run_context
    resolution = resolve_config(None)
    return RunContext(
        log_level=resolution.config.log_level or "INFO",
        config=resolution.config,
        config_sources=resolution.sources,
        base_dir=resolution.base_dir,
    )


__all__ = ["DEFAULT_OUTPUT_DIR", "RunContext", "ensure_run_context"]
