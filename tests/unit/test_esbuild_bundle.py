"""Tests for esbuild invocation."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest

from bundling import esbuild
from bundling.esbuild import (
    ALWAYS_EXTERNAL,
    BundleError,
    BundleOptions,
    bundle,
    bundle_handler,
    merge_externals,
    resolve_esbuild_bin,
)

_FAKE_BIN = BundleOptions(esbuild_bin="esbuild-test")


class _FakeRun:
    def __init__(self, result: subprocess.CompletedProcess[str] | BaseException) -> None:
        self.result = result
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append((cmd, kwargs))
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


def _completed(
    returncode: int = 0,
    stdout: str = "",
    stderr: str = "",
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(
        args=["esbuild-test"],
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


def test_merge_externals_adds_sdk_namespace() -> None:
    """Ensure the cloud SDK namespace is always external."""
    merged = merge_externals(["pkg-b", "pkg-a", "pkg-a", ""])
    assert merged == ("@aws-sdk/*", "pkg-a", "pkg-b")
    assert merge_externals([]) == ALWAYS_EXTERNAL


def test_bundle_feeds_entry_on_stdin(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure esbuild receives the entry text, flags and externals."""
    fake = _FakeRun(_completed(stdout="export const handler = 1;\n"))
    monkeypatch.setattr(esbuild.subprocess, "run", fake)

    artifact = bundle("import x from './x';\n", project_root, ["pkg-a"], options=_FAKE_BIN)

    assert artifact.code == "export const handler = 1;\n"
    assert artifact.externals == ("@aws-sdk/*", "pkg-a")
    ((cmd, kwargs),) = fake.calls
    assert cmd[0] == "esbuild-test"
    assert {"--bundle", "--platform=node", "--format=esm", "--target=node22"} <= set(cmd)
    assert "--external:@aws-sdk/*" in cmd
    assert "--external:pkg-a" in cmd
    assert "--minify" not in cmd
    assert kwargs["input"] == "import x from './x';\n"
    assert kwargs["cwd"] == str(project_root)


def test_bundle_options_shape_command(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure format, target, minify and extra arguments reach esbuild."""
    fake = _FakeRun(_completed(stdout="module.exports = {};\n"))
    monkeypatch.setattr(esbuild.subprocess, "run", fake)
    options = BundleOptions(
        esbuild_bin="esbuild-test",
        target="node20",
        format="cjs",
        minify=True,
        extra_args=("--tree-shaking=true",),
    )

    bundle("export {};\n", project_root, options=options)

    ((cmd, _kwargs),) = fake.calls
    assert {"--format=cjs", "--target=node20", "--minify", "--tree-shaking=true"} <= set(cmd)


def test_bundle_failure_reports_diagnostic(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure a failing build raises with the compiler diagnostic only."""
    diagnostic = 'X [ERROR] Could not resolve "./missing"'
    fake = _FakeRun(_completed(returncode=1, stdout="partial", stderr=f"{diagnostic}\n"))
    monkeypatch.setattr(esbuild.subprocess, "run", fake)

    with pytest.raises(BundleError) as excinfo:
        bundle("import './missing';\n", project_root, options=_FAKE_BIN)
    assert str(excinfo.value) == diagnostic


def test_bundle_rejects_empty_output(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure an empty successful build is treated as a failure."""
    monkeypatch.setattr(esbuild.subprocess, "run", _FakeRun(_completed(stdout="  \n")))
    with pytest.raises(BundleError, match="no output"):
        bundle("export {};\n", project_root, options=_FAKE_BIN)


@pytest.mark.parametrize(
    ("error", "match"),
    [
        (subprocess.TimeoutExpired(cmd="esbuild-test", timeout=1.0), "timed out"),
        (FileNotFoundError("esbuild-test"), "not found"),
    ],
)
def test_bundle_process_errors(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
    error: BaseException,
    match: str,
) -> None:
    """Ensure process failures surface as bundle errors."""
    monkeypatch.setattr(esbuild.subprocess, "run", _FakeRun(error))
    with pytest.raises(BundleError, match=match):
        bundle("export {};\n", project_root, options=_FAKE_BIN)


def test_resolve_esbuild_bin_order(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure configured, project-local, then PATH executables are used."""
    monkeypatch.setattr(esbuild.shutil, "which", lambda _name: None)
    with pytest.raises(BundleError, match="not found"):
        resolve_esbuild_bin(project_root)

    local = project_root / "node_modules" / ".bin" / "esbuild"
    local.parent.mkdir(parents=True)
    local.write_text("#!/bin/sh\n", encoding="utf-8")
    assert resolve_esbuild_bin(project_root) == str(local)
    assert resolve_esbuild_bin(project_root, "/usr/bin/esbuild") == "/usr/bin/esbuild"


def test_bundle_handler_generates_entry(
    project_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure the generated entry for the export is what esbuild receives."""
    fake = _FakeRun(_completed(stdout="export const handler = 1;\n"))
    monkeypatch.setattr(esbuild.subprocess, "run", fake)

    bundle_handler(project_root, project_root / "src" / "api.ts", "api", "http", options=_FAKE_BIN)

    ((_cmd, kwargs),) = fake.calls
    assert kwargs["input"].startswith('import { api } from "./src/api.ts";\n')
    assert "export const handler = wrapHttp(api);" in kwargs["input"]


@pytest.mark.esbuild
def test_real_esbuild_bundle(project_root: Path) -> None:
    """Ensure a real esbuild run produces one self-contained module."""
    if shutil.which("esbuild") is None:
        pytest.skip("esbuild is not installed")
    (project_root / "src").mkdir()
    (project_root / "src" / "api.ts").write_text(
        "export const api = async (event: unknown) => ({ status: 200, event });\n",
        encoding="utf-8",
    )
    (project_root / "runtime").mkdir()
    (project_root / "runtime" / "wrap-http.ts").write_text(
        "export function wrapHttp<T>(fn: T): T {\n  return fn;\n}\n",
        encoding="utf-8",
    )

    artifact = bundle_handler(
        project_root,
        Path("src/api.ts"),
        "api",
        "http",
        ["left-pad"],
        runtime_dir="./runtime",
    )

    assert "wrapHttp" in artifact.code
    assert "import " not in artifact.code
    assert artifact.externals == ("@aws-sdk/*", "left-pad")
