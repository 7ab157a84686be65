"""Tests for synthetic entry module generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bundling.entry_points import EntryPointError, entry_source_path, generate_entry_point

if TYPE_CHECKING:
    from pathlib import Path


def test_named_export_entry() -> None:
    """Ensure named exports are imported by name and wrapped by the adapter."""
    text = generate_entry_point("./src/api.ts", "api", "http")
    assert text == (
        'import { api } from "./src/api.ts";\n'
        'import { wrapHttp } from "~/runtime/wrap-http";\n'
        "export const handler = wrapHttp(api);\n"
    )


def test_default_export_entry() -> None:
    """Ensure default exports use the default-import form."""
    text = generate_entry_point("./src/site.tsx", "default", "static_site")
    assert text == (
        'import __handler from "./src/site.tsx";\n'
        'import { wrapMiddleware } from "~/runtime/wrap-middleware";\n'
        "export const handler = wrapMiddleware(__handler);\n"
    )


@pytest.mark.parametrize("export_name", ["handler", "wrapTableStream"])
def test_colliding_export_names_are_aliased(export_name: str) -> None:
    """Ensure exports named like generated bindings are imported under an alias."""
    text = generate_entry_point("./src/stream.ts", export_name, "table")
    assert f"import {{ {export_name} as __handler }}" in text
    assert text.endswith("export const handler = wrapTableStream(__handler);\n")


def test_runtime_dir_override() -> None:
    """Ensure the adapter import honors a runtime directory override."""
    text = generate_entry_point("./q.ts", "queue", "fifo-queue", runtime_dir="./runtime")
    assert 'import { wrapFifoQueue } from "./runtime/wrap-fifo-queue";' in text


def test_kind_without_adapter_is_rejected() -> None:
    """Ensure handler kinds without a runtime adapter cannot be wrapped."""
    with pytest.raises(EntryPointError, match="no runtime adapter"):
        generate_entry_point("./mail.ts", "mailer", "mailer")


def test_invalid_export_name_is_rejected() -> None:
    """Ensure export names must be identifiers."""
    with pytest.raises(EntryPointError, match="not a valid identifier"):
        generate_entry_point("./api.ts", "my-export", "http")


def test_entry_source_path(project_root: Path, tmp_path: Path) -> None:
    """Ensure sources inside the project become relative specifiers."""
    source = project_root / "src" / "api.ts"
    assert entry_source_path(source, project_root) == "./src/api.ts"
    assert entry_source_path(source.relative_to(project_root), project_root) == "./src/api.ts"
    outside = tmp_path.resolve() / "shared" / "util.ts"
    assert entry_source_path(outside, project_root) == outside.as_posix()
