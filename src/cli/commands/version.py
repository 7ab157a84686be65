"""Version reporting for the handlerpack CLI."""

from __future__ import annotations

import json
import platform
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from handler_registry import registry_version


def get_version() -> str:
    """Get the handlerpack package version string.

    Returns:
    -------
    str
        Version string, or "0.0.0-dev" if not installed.
    """
    return _package_version("handlerpack") or "0.0.0-dev"


def get_version_info() -> dict[str, object]:
    """Get detailed version information.

    Returns:
    -------
    dict[str, object]
        Structured version payload.
    """
    return {
        "handlerpack": get_version(),
        "handler_registry": registry_version(),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "dependencies": {
            name: _package_version(name)
            for name in ("cyclopts", "msgspec", "pathspec", "tree-sitter", "tree-sitter-typescript")
        },
    }


def version_command() -> int:
    """Show version, registry digest and dependency versions.

    Returns:
    -------
    int
        Exit status code.
    """
    payload = json.dumps(get_version_info(), indent=2, sort_keys=True)
    sys.stdout.write(payload + "\n")
    return 0


def _package_version(name: str) -> str | None:
    try:
        return pkg_version(name)
    except PackageNotFoundError:
        return None


__all__ = ["get_version", "get_version_info", "version_command"]
