"""Dependency layer and fingerprint commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from archive.packages import build_layer_archive
from cli.context import RunContext, ensure_run_context
from cli.groups import output_group, project_group
from cli.path_utils import display_path
from cli.result import CliResult
from depgraph.closure import collect_dependency_closure
from depgraph.fingerprint import compute_fingerprint, decide_layer_reuse
from utils.hashing import hash_sha256_hex

logger = logging.getLogger(__name__)


def layer_archive_name(fingerprint: str) -> str:
    return f"layer-{fingerprint}.zip"


def layer_command(
    *,
    project_dir: Annotated[
        Path | None,
        Parameter(name=["--project-dir", "-C"], help="Project root.", group=project_group),
    ] = None,
    out_dir: Annotated[
        Path | None,
        Parameter(
            name=["--out-dir", "-o"],
            help="Directory for the layer archive.",
            group=output_group,
        ),
    ] = None,
    previous_fingerprint: Annotated[
        str | None,
        Parameter(
            name="--previous-fingerprint",
            help="Fingerprint of the layer currently deployed; skip the build when unchanged.",
            group=output_group,
        ),
    ] = None,
    force: Annotated[
        bool,
        Parameter(
            name="--force",
            help="Build even when the layer can be reused.",
            group=output_group,
        ),
    ] = False,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Collect the production dependency closure and write the layer archive.

    Returns
    -------
    CliResult
        Fingerprint, reuse decision and, when built, the archive path.
    """
    context = ensure_run_context(run_context)
    root = context.project_dir(project_dir)
    closure = collect_dependency_closure(root, max_workers=context.layer.max_workers)
    fingerprint = compute_fingerprint(root, closure=closure)
    decision = decide_layer_reuse(
        previous_fingerprint or context.layer.previous_fingerprint,
        fingerprint,
    )
    details = {
        "fingerprint": fingerprint,
        "packages": str(len(closure.included_packages)),
        "skipped": ", ".join(closure.skipped_packages) or "none",
    }
    if decision.reuse and not force:
        logger.info("Layer %s is unchanged; skipping build", fingerprint)
        return CliResult.success(
            summary=f"Layer unchanged ({decision.reason}); reuse the deployed layer",
            details=details,
        )

    layer = build_layer_archive(closure)
    target_dir = context.output_dir(root, out_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / layer_archive_name(fingerprint)
    target.write_bytes(layer.data)
    logger.info("Wrote %s (%d bytes)", target, len(layer.data))
    details["sha256"] = hash_sha256_hex(layer.data)
    return CliResult.success(
        summary=f"Built dependency layer ({decision.reason})",
        artifacts={"layer": Path(display_path(target, root))},
        details=details,
    )


def fingerprint_command(
    *,
    project_dir: Annotated[
        Path | None,
        Parameter(name=["--project-dir", "-C"], help="Project root.", group=project_group),
    ] = None,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Print the dependency fingerprint of the project.

    Returns
    -------
    int
        Exit status code.
    """
    context = ensure_run_context(run_context)
    root = context.project_dir(project_dir)
    closure = collect_dependency_closure(root, max_workers=context.layer.max_workers)
    sys.stdout.write(compute_fingerprint(root, closure=closure) + "\n")
    return 0


__all__ = ["fingerprint_command", "layer_archive_name", "layer_command"]
