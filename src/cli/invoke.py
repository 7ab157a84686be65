"""Parse, inject the run context and execute one command."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from cyclopts import App
from cyclopts.bind import normalize_tokens
from cyclopts.exceptions import CycloptsError

from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.result_action import cli_result_action

_LOGGER = logging.getLogger(__name__)

_PARSE_STAGES: dict[str, str] = {
    "UnknownCommandError": "command_resolve",
    "UnknownOptionError": "binding",
    "MissingArgumentError": "binding",
    "RepeatArgumentError": "binding",
    "CoercionError": "coercion",
    "ValidationError": "validation",
}


@dataclass(frozen=True)
class CliInvokeEvent:
    """Timing and outcome of one command invocation."""

    command: str
    exit_code: int
    parse_ms: float
    exec_ms: float = 0.0
    error_stage: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def invoke_command(
    app: App,
    tokens: list[str] | None,
    *,
    run_context: RunContext | None,
) -> tuple[int, CliInvokeEvent]:
    """Run the command named by ``tokens``.

    Commands declaring a ``run_context`` parameter receive ``run_context``.
    Exceptions raised by a command are logged and mapped to an exit code
    with ``ExitCode.from_exception``; they are not re-raised.

    Returns
    -------
    tuple[int, CliInvokeEvent]
        Exit code and the invocation event.
    """
    t0 = time.perf_counter()
    command_name = tokens[0] if tokens else "<none>"
    normalized = normalize_tokens(tokens)
    overrides: dict[str, object] = {"print_error": True, "exit_on_error": False}
    try:
        with app.app_stack(normalized, overrides):
            command, bound, ignored = app.parse_args(
                normalized,
                exit_on_error=False,
                print_error=True,
            )
    except CycloptsError as exc:
        event = CliInvokeEvent(
            command=command_name,
            exit_code=ExitCode.from_exception(exc),
            parse_ms=_elapsed_ms(t0),
            error_stage=_PARSE_STAGES.get(exc.__class__.__name__, "parse"),
            error_message=str(exc),
        )
        _LOGGER.debug("Could not parse %r: %s", command_name, exc)
        return event.exit_code, event
    parse_ms = _elapsed_ms(t0)
    command_name = getattr(command, "__name__", command_name)
    if run_context is not None and "run_context" in ignored:
        bound.arguments["run_context"] = run_context

    t1 = time.perf_counter()
    try:
        result = command(*bound.args, **bound.kwargs)
    except Exception as exc:
        _LOGGER.error("%s", exc)
        _LOGGER.debug("Command %s failed", command_name, exc_info=True)
        event = CliInvokeEvent(
            command=command_name,
            exit_code=ExitCode.from_exception(exc),
            parse_ms=parse_ms,
            exec_ms=_elapsed_ms(t1),
            error_stage="execution",
            error_message=str(exc),
        )
        return event.exit_code, event
    exit_code = cli_result_action(app, command, result)
    event = CliInvokeEvent(
        command=command_name,
        exit_code=exit_code,
        parse_ms=parse_ms,
        exec_ms=_elapsed_ms(t1),
    )
    _LOGGER.debug(
        "Command %s finished in %.1fms (exit %d)",
        command_name,
        event.exec_ms,
        exit_code,
    )
    return exit_code, event


__all__ = ["CliInvokeEvent", "invoke_command"]
