"""Turn command return values into exit codes for cyclopts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console

from cli.exit_codes import ExitCode
from cli.result import CliResult

if TYPE_CHECKING:
    from cyclopts import App


def _render(console: Console, result: CliResult) -> None:
    if result.summary:
        console.print(result.summary, style="green" if result.ok else "red")
    for role, path in sorted(result.artifacts.items()):
        console.print(f"  [bold]{role}[/bold]: {path}")
    for label, value in result.details.items():
        console.print(f"  {label}: {value}")


def cli_result_action(app: App, cmd: object, result: Any) -> int:
    """Return the exit code for a command's return value.

    Commands that print to stdout return ``int`` (or ``None``); archive
    builders return a ``CliResult``, which is rendered on stderr so that
    stdout stays machine-readable.

    Returns
    -------
    int
        Exit code for the process.
    """
    del app, cmd
    if result is None:
        return ExitCode.SUCCESS
    if isinstance(result, int):
        return result
    console = Console(stderr=True)
    if isinstance(result, CliResult):
        _render(console, result)
        return int(result.exit_code)
    console.print(f"Unexpected command return type: {type(result).__name__} (value: {result!r})")
    return ExitCode.GENERAL_ERROR


__all__ = ["cli_result_action"]
