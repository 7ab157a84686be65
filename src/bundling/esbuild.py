"""Bundle generated entry modules with the esbuild executable."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from bundling.entry_points import entry_source_path, generate_entry_point
from handler_registry import HandlerKind

logger = logging.getLogger(__name__)

ALWAYS_EXTERNAL: tuple[str, ...] = ("@aws-sdk/*",)
ESBUILD_LOCAL_BIN = Path("node_modules") / ".bin" / "esbuild"
ENTRY_SOURCEFILE = "handler-entry.ts"

type BundleFormat = Literal["esm", "cjs"]


class BundleError(RuntimeError):
    """Raised when the bundler fails; the message is the compiler diagnostic."""


@dataclass(frozen=True)
class BundleOptions:
    """Configure esbuild invocation."""

    esbuild_bin: str | None = None
    target: str = "node22"
    format: BundleFormat = "esm"
    minify: bool = False
    timeout_s: float | None = 120.0
    extra_args: Sequence[str] = ()


@dataclass(frozen=True)
class BundleArtifact:
    """Bundled module text plus the specifiers left unresolved."""

    code: str
    externals: tuple[str, ...]


def merge_externals(externals: Iterable[str]) -> tuple[str, ...]:
    """Return the always-external namespace merged with caller externals.

    Returns
    -------
    tuple[str, ...]
        Sorted, de-duplicated external specifiers.
    """
    merged = {name for name in externals if name}
    merged.update(ALWAYS_EXTERNAL)
    return tuple(sorted(merged))


def resolve_esbuild_bin(project_dir: Path, configured: str | None = None) -> str:
    """Return the esbuild executable to run.

    Returns
    -------
    str
        Configured executable, the project-local binary, or the one on PATH.

    Raises
    ------
    BundleError
        Raised when no executable can be found.
    """
    if configured:
        return configured
    local = project_dir / ESBUILD_LOCAL_BIN
    if local.is_file():
        return str(local)
    found = shutil.which("esbuild")
    if found is None:
        msg = (
            "esbuild executable not found; install esbuild in the project "
            "or set bundle.esbuild_bin."
        )
        raise BundleError(msg)
    return found


def _esbuild_command(
    binary: str,
    *,
    externals: Sequence[str],
    options: BundleOptions,
) -> list[str]:
    cmd: list[str] = [
        binary,
        "--bundle",
        "--platform=node",
        f"--target={options.target}",
        f"--format={options.format}",
        "--loader=ts",
        f"--sourcefile={ENTRY_SOURCEFILE}",
        "--log-level=error",
        "--charset=utf8",
    ]
    if options.minify:
        cmd.append("--minify")
    cmd.extend(f"--external:{name}" for name in externals)
    cmd.extend(list(options.extra_args))
    return cmd


def bundle(
    entry_text: str,
    project_dir: Path,
    externals: Iterable[str] = (),
    *,
    options: BundleOptions | None = None,
) -> BundleArtifact:
    """Bundle an in-memory entry module into one self-contained module.

    Parameters
    ----------
    entry_text
        Entry module source, fed to esbuild on stdin.
    project_dir
        Directory module resolution starts from.
    externals
        Package names supplied at runtime by the shared layer.
    options
        esbuild invocation options.

    Returns
    -------
    BundleArtifact
        Complete module text and the externals used.

    Raises
    ------
    BundleError
        Raised when esbuild is missing, fails, times out, or writes nothing.
    """
    opts = options or BundleOptions()
    root = project_dir.resolve()
    merged = merge_externals(externals)
    binary = resolve_esbuild_bin(root, opts.esbuild_bin)
    cmd = _esbuild_command(binary, externals=merged, options=opts)
    logger.debug("Running esbuild in %s with %d externals", root, len(merged))
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(root),
            input=entry_text,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
            timeout=opts.timeout_s,
        )
    except FileNotFoundError as exc:
        msg = f"esbuild executable not found: {cmd[0]}"
        raise BundleError(msg) from exc
    except subprocess.TimeoutExpired as exc:
        msg = f"esbuild timed out after {opts.timeout_s}s"
        raise BundleError(msg) from exc
    if proc.returncode != 0:
        diagnostic = proc.stderr.strip() or proc.stdout.strip()
        raise BundleError(diagnostic or f"esbuild exited with status {proc.returncode}")
    if not proc.stdout.strip():
        msg = "esbuild produced no output"
        raise BundleError(msg)
    return BundleArtifact(code=proc.stdout, externals=merged)


def bundle_handler(
    project_dir: Path,
    file: Path,
    export_name: str,
    kind: HandlerKind | str,
    externals: Iterable[str] = (),
    *,
    options: BundleOptions | None = None,
    runtime_dir: str | None = None,
) -> BundleArtifact:
    """Generate the entry for one handler export and bundle it.

    Returns
    -------
    BundleArtifact
        Bundled module for the handler.
    """
    entry = generate_entry_point(
        entry_source_path(file, project_dir),
        export_name,
        kind,
        runtime_dir=runtime_dir,
    )
    return bundle(entry, project_dir, externals, options=options)


__all__ = [
    "ALWAYS_EXTERNAL",
    "BundleArtifact",
    "BundleError",
    "BundleFormat",
    "BundleOptions",
    "bundle",
    "bundle_handler",
    "merge_externals",
    "resolve_esbuild_bin",
]
