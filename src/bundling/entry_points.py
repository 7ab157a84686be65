"""Generate the synthetic entry module that wraps a handler export."""

from __future__ import annotations

import json
from pathlib import Path

from handler_registry import HandlerKind, definition_for

DEFAULT_EXPORT = "default"
DEFAULT_IMPORT_NAME = "__handler"
HANDLER_BINDING = "handler"


class EntryPointError(ValueError):
    """Raised when an entry point cannot be generated for a handler."""


def _js_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _is_identifier(name: str) -> bool:
    return name.replace("$", "_").isidentifier()


def entry_source_path(file: Path, project_dir: Path) -> str:
    """Return the import specifier for a handler source file.

    Files inside the project become ``./relative/path`` specifiers resolved
    from the project root. Files outside it keep their absolute path.

    Returns
    -------
    str
        Import specifier using POSIX separators.
    """
    root = project_dir.resolve()
    target = file if file.is_absolute() else root / file
    target = target.resolve()
    try:
        relative = target.relative_to(root)
    except ValueError:
        return target.as_posix()
    return f"./{relative.as_posix()}"


def generate_entry_point(
    source_path: str,
    export_name: str,
    kind: HandlerKind | str,
    *,
    runtime_dir: str | None = None,
) -> str:
    """Return entry module text for one handler export.

    The module imports the user export (default or named), imports the
    runtime adapter registered for ``kind`` and exports ``handler`` bound to
    the adapter applied to the export.

    Parameters
    ----------
    source_path
        Import specifier of the handler source file.
    export_name
        Export to wrap, or ``"default"``.
    kind
        Handler kind selecting the runtime adapter.
    runtime_dir
        Optional replacement for the ``~/runtime`` root.

    Returns
    -------
    str
        Entry module source text.

    Raises
    ------
    EntryPointError
        Raised when the kind has no runtime adapter or the export name is not
        an identifier.
    """
    definition = definition_for(kind)
    if not definition.has_adapter or definition.adapter_function is None:
        msg = f"Handler kind {definition.kind.value!r} has no runtime adapter."
        raise EntryPointError(msg)
    if export_name != DEFAULT_EXPORT and not _is_identifier(export_name):
        msg = f"Export name {export_name!r} is not a valid identifier."
        raise EntryPointError(msg)
    adapter = definition.adapter_function
    adapter_path = definition.adapter_specifier(runtime_dir)
    if export_name == DEFAULT_EXPORT:
        import_name = DEFAULT_IMPORT_NAME
        import_stmt = f"import {DEFAULT_IMPORT_NAME} from {_js_string(source_path)};"
    elif export_name in {HANDLER_BINDING, adapter}:
        import_name = DEFAULT_IMPORT_NAME
        import_stmt = (
            f"import {{ {export_name} as {DEFAULT_IMPORT_NAME} }} from {_js_string(source_path)};"
        )
    else:
        import_name = export_name
        import_stmt = f"import {{ {export_name} }} from {_js_string(source_path)};"
    return (
        f"{import_stmt}\n"
        f"import {{ {adapter} }} from {_js_string(adapter_path)};\n"
        f"export const {HANDLER_BINDING} = {adapter}({import_name});\n"
    )


__all__ = [
    "DEFAULT_EXPORT",
    "HANDLER_BINDING",
    "EntryPointError",
    "entry_source_path",
    "generate_entry_point",
]
