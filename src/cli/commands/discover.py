"""Discover handler exports across project files."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from cli.context import RunContext, ensure_run_context
from cli.exit_codes import ExitCode
from cli.groups import project_group
from extract.discovery import DEFAULT_HANDLER_PATTERNS, discover_handlers, find_handler_files
from extract.pathspec_filters import DEFAULT_EXCLUDE_DIRS
from serde_msgspec import dumps_json


def discover_command(
    *patterns: str,
    kind: Annotated[
        tuple[str, ...],
        Parameter(
            name=["--kind", "-k"],
            help="Handler kind to look for (repeatable; default: every kind).",
            group=project_group,
        ),
    ] = (),
    project_dir: Annotated[
        Path | None,
        Parameter(
            name=["--project-dir", "-C"],
            help="Project root (default: configured project_dir, then the config directory).",
            group=project_group,
        ),
    ] = None,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Print the descriptors of every matching handler export as JSON.

    Patterns default to the configured ``handlers`` globs.

    Returns
    -------
    int
        ``0``, or the extraction exit code when any export failed.
    """
    context = ensure_run_context(run_context)
    root = context.project_dir(project_dir)
    globs = patterns or context.config.handlers or DEFAULT_HANDLER_PATTERNS
    discovery = context.discovery
    files = find_handler_files(
        globs,
        root,
        exclude_dirs=discovery.exclude_dirs or DEFAULT_EXCLUDE_DIRS,
    )
    result = discover_handlers(
        files,
        kind or discovery.kinds or None,
        max_workers=discovery.max_workers,
    )
    sys.stdout.write(dumps_json(result, pretty=True).decode("utf-8") + "\n")
    if result.failures:
        return ExitCode.EXTRACTION_ERROR
    return ExitCode.SUCCESS


__all__ = ["discover_command"]
