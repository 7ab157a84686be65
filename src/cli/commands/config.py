"""Configuration management commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from cli.config_loader import CONFIG_FILENAME, config_to_mapping
from cli.context import RunContext, ensure_run_context
from cli.groups import admin_group

_TEMPLATE = """# handlerpack.toml

# project_dir = "."
handlers = ["src/**/*.ts"]
output_dir = "dist"
log_level = "INFO"

[bundle]
target = "node22"
format = "esm"
minify = false
timeout_s = 120
# esbuild_bin = "node_modules/.bin/esbuild"
# runtime_dir = "~/runtime"
# externals = []

[layer]
# max_workers = 8
# previous_fingerprint = ""

[discovery]
# kinds = ["http", "table", "app", "static_site", "fifo_queue", "bucket", "mailer"]
exclude_dirs = ["node_modules", ".git"]
# max_workers = 4
"""


def show_config(
    *,
    with_sources: Annotated[
        bool,
        Parameter(
            name="--with-sources",
            help="Show the source of each configuration value.",
        ),
    ] = False,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Show the effective configuration payload.

    Returns:
    -------
    int
        Exit status code.
    """
    context = ensure_run_context(run_context)
    if with_sources and context.config_sources is not None:
        payload = json.dumps(context.config_sources.to_display_dict(), indent=2, sort_keys=True)
    else:
        payload = json.dumps(config_to_mapping(context.config), indent=2, sort_keys=True)
    sys.stdout.write(payload + "\n")
    return 0


def validate_config(
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Validate the effective configuration.

    Decoding already validates every key; this also checks that handler
    kinds named under ``[discovery]`` are registered.

    Returns:
    -------
    int
        Exit status code.
    """
    from handler_registry import parse_kind

    context = ensure_run_context(run_context)
    for kind in context.discovery.kinds or ():
        parse_kind(kind)
    return 0


def init_config(
    *,
    path: Annotated[
        Path | None,
        Parameter(
            name="--path",
            help=f"Path to write the configuration template (default: {CONFIG_FILENAME}).",
        ),
    ] = None,
    force: Annotated[
        bool,
        Parameter(
            name="--force",
            help="Overwrite existing config file.",
            group=admin_group,
        ),
    ] = False,
) -> int:
    """Write a configuration template to disk.

    Returns:
    -------
    int
        Exit status code.

    Raises:
    ------
    FileExistsError
        Raised when the target path exists and ``force`` is false.
    """
    target_path = path if path is not None else Path(CONFIG_FILENAME)
    if target_path.exists() and not force:
        msg = f"Config file already exists: {target_path}."
        raise FileExistsError(msg)
    target_path.write_text(_TEMPLATE, encoding="utf-8")
    return 0


__all__ = ["init_config", "show_config", "validate_config"]
