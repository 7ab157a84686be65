"""Shared help-panel groups for the handlerpack CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Session options: configuration file and log level.",
    sort_key=0,
)

project_group = Group(
    "Project",
    help="Select the project and the handlers to work on.",
    sort_key=1,
)

output_group = Group(
    "Output",
    help="Configure where archives are written.",
    sort_key=2,
)

bundle_group = Group(
    "Bundling",
    help="Control esbuild invocation and external packages.",
    sort_key=3,
)

admin_group = Group(
    "Admin",
    help="Administrative commands and help.",
    sort_key=99,
)

__all__ = [
    "admin_group",
    "bundle_group",
    "output_group",
    "project_group",
    "session_group",
]
