"""Build command: bundle one handler export into a function archive."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from archive.packages import build_function_archive
from archive.static_files import resolve_static_files
from bundling.esbuild import BundleOptions, bundle_handler
from cli.context import RunContext, ensure_run_context
from cli.groups import bundle_group, output_group, project_group
from cli.path_utils import display_path, resolve_path
from cli.result import CliResult
from depgraph.closure import closure_externals, collect_dependency_closure
from extract.discovery import locate_handler
from extract.handler_configs import DEFAULT_EXPORT
from utils.hashing import hash_sha256_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundleOverrides:
    """Command-line overrides for the ``[bundle]`` config table."""

    external: Annotated[
        tuple[str, ...],
        Parameter(
            name=["--external", "-e"],
            help="Extra package to leave external (repeatable).",
            group=bundle_group,
        ),
    ] = ()
    with_layer_externals: Annotated[
        bool,
        Parameter(
            name="--with-layer-externals",
            help="Leave every package of the dependency layer external.",
            group=bundle_group,
        ),
    ] = False
    minify: Annotated[
        bool | None,
        Parameter(name="--minify", help="Minify the bundle.", group=bundle_group),
    ] = None
    runtime_dir: Annotated[
        str | None,
        Parameter(
            name="--runtime-dir",
            help="Directory holding the runtime adapter modules.",
            group=bundle_group,
        ),
    ] = None


_DEFAULT_OVERRIDES = BundleOverrides()


def bundle_options(context: RunContext, overrides: BundleOverrides) -> BundleOptions:
    """Merge ``[bundle]`` config values and overrides into esbuild options.

    Returns
    -------
    BundleOptions
        Options with unset values left at their defaults.
    """
    configured = context.bundle
    defaults = BundleOptions()
    esbuild_bin = configured.esbuild_bin
    if esbuild_bin is not None and "/" in esbuild_bin:
        esbuild_bin = str(resolve_path(context.base_dir, esbuild_bin))
    minify = overrides.minify if overrides.minify is not None else configured.minify
    return BundleOptions(
        esbuild_bin=esbuild_bin,
        target=configured.target or defaults.target,
        format=configured.format or defaults.format,
        minify=defaults.minify if minify is None else minify,
        timeout_s=configured.timeout_s or defaults.timeout_s,
    )


def archive_name(file: Path, export_name: str) -> str:
    """Return the function archive filename for one export.

    Returns
    -------
    str
        ``<export>.zip``; default exports use the source file stem.
    """
    stem = file.name.split(".", 1)[0] if export_name == DEFAULT_EXPORT else export_name
    return f"{stem}.zip"


def build_command(
    file: Path,
    *,
    export: Annotated[
        str,
        Parameter(name=["--export", "-x"], help="Export name.", group=project_group),
    ] = DEFAULT_EXPORT,
    kind: Annotated[
        str | None,
        Parameter(
            name=["--kind", "-k"],
            help="Handler kind (default: inferred from the definer call).",
            group=project_group,
        ),
    ] = None,
    project_dir: Annotated[
        Path | None,
        Parameter(name=["--project-dir", "-C"], help="Project root.", group=project_group),
    ] = None,
    out_dir: Annotated[
        Path | None,
        Parameter(
            name=["--out-dir", "-o"],
            help="Directory for the archive (default: configured output_dir, then <project>/dist).",
            group=output_group,
        ),
    ] = None,
    overrides: Annotated[BundleOverrides, Parameter(name="*")] = _DEFAULT_OVERRIDES,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Bundle one handler export and write its function archive.

    The archive holds the bundled module as ``index.mjs`` followed by the
    export's static files.

    Returns
    -------
    CliResult
        Archive path, SHA-256 digest and entry counts.
    """
    context = ensure_run_context(run_context)
    root = context.project_dir(project_dir)
    source = file if file.is_absolute() else Path.cwd() / file
    descriptor = locate_handler(source, export, kind)

    externals = [*(context.bundle.externals or ()), *overrides.external]
    if overrides.with_layer_externals:
        closure = collect_dependency_closure(root, max_workers=context.layer.max_workers)
        externals.extend(closure_externals(closure))

    artifact = bundle_handler(
        root,
        source,
        descriptor.export_name,
        descriptor.handler_kind,
        externals,
        options=bundle_options(context, overrides),
        runtime_dir=overrides.runtime_dir or context.bundle.runtime_dir,
    )
    static_files = resolve_static_files(descriptor.static_globs, root)
    data = build_function_archive(artifact.code, static_files)

    target_dir = context.output_dir(root, out_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / archive_name(source, descriptor.export_name)
    target.write_bytes(data)
    logger.info("Wrote %s (%d bytes)", target, len(data))
    return CliResult.success(
        summary=f"Built {descriptor.handler_kind} handler {descriptor.export_name!r}",
        artifacts={"function": Path(display_path(target, root))},
        details={
            "sha256": hash_sha256_hex(data),
            "static files": str(len(static_files)),
            "externals": str(len(artifact.externals)),
        },
    )


__all__ = ["BundleOverrides", "archive_name", "build_command", "bundle_options"]
