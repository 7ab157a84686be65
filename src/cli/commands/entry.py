"""Print the generated entry module for one handler export."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from bundling.entry_points import entry_source_path, generate_entry_point
from cli.context import RunContext, ensure_run_context
from cli.groups import bundle_group, project_group
from extract.discovery import locate_handler
from extract.handler_configs import DEFAULT_EXPORT


def entry_command(
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
    runtime_dir: Annotated[
        str | None,
        Parameter(
            name="--runtime-dir",
            help="Directory holding the runtime adapter modules.",
            group=bundle_group,
        ),
    ] = None,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Write the entry module text to stdout.

    Returns
    -------
    int
        Exit status code.
    """
    context = ensure_run_context(run_context)
    root = context.project_dir(project_dir)
    source = file if file.is_absolute() else Path.cwd() / file
    descriptor = locate_handler(source, export, kind)
    entry = generate_entry_point(
        entry_source_path(source, root),
        descriptor.export_name,
        descriptor.handler_kind,
        runtime_dir=runtime_dir or context.bundle.runtime_dir,
    )
    sys.stdout.write(entry)
    return 0


__all__ = ["entry_command"]
