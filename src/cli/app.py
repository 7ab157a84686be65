"""Main application setup for the handlerpack CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from cyclopts import App, Parameter

from cli.commands.version import get_version
from cli.config_loader import ConfigError, resolve_config
from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.groups import session_group
from cli.invoke import invoke_command
from cli.result_action import cli_result_action
from core_types import LogLevel

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_LOGGER = logging.getLogger(__name__)

_HELP_EPILOGUE = """
Examples:
  handlerpack discover 'src/**/*.ts'        List handler descriptors as JSON
  handlerpack entry src/api.ts --export api Print the generated entry module
  handlerpack build src/api.ts --export api Bundle and archive one handler
  handlerpack layer                         Build the shared dependency layer
  handlerpack fingerprint                   Print the dependency fingerprint

Environment Variables:
  HANDLERPACK_LOG_LEVEL      Default log level (DEBUG, INFO, WARNING, ERROR)

Configuration:
  handlerpack.toml or [tool.handlerpack] in pyproject.toml, searched from the
  working directory upwards. Use `handlerpack config show --with-sources`.
"""

app = App(
    name="handlerpack",
    help="Package declarative serverless handlers into deployable archives.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
    result_action=cli_result_action,
    exit_on_error=True,
    print_error=True,
    help_on_error=False,
)

app.meta.group_parameters = session_group


@dataclass(frozen=True)
class SessionOptions:
    """Session-level configuration parameters."""

    config_file: Annotated[
        str | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        LogLevel | None,
        Parameter(
            name="--log-level",
            help="Logging verbosity level (default: config value, then INFO).",
            env_var="HANDLERPACK_LOG_LEVEL",
            group=session_group,
        ),
    ] = None


_DEFAULT_SESSION_OPTIONS = SessionOptions()


@app.meta.default
def meta_launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    session: Annotated[SessionOptions, Parameter(name="*")] = _DEFAULT_SESSION_OPTIONS,
) -> int:
    """Meta launcher for config selection and context injection.

    Returns
    -------
    int
        Exit status code from command execution.
    """
    try:
        resolution = resolve_config(session.config_file)
    except ConfigError as exc:
        logging.basicConfig(level=session.log_level or DEFAULT_LOG_LEVEL, format=LOG_FORMAT)
        _LOGGER.error("%s", exc)
        return ExitCode.CONFIG_ERROR

    log_level = session.log_level or resolution.config.log_level or DEFAULT_LOG_LEVEL
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    run_context = RunContext(
        log_level=log_level,
        config=resolution.config,
        config_sources=resolution.sources,
        base_dir=resolution.base_dir,
    )
    exit_code, _event = invoke_command(app, list(tokens), run_context=run_context)
    return exit_code


# Lazy-loaded commands with aliases
app.command("cli.commands.discover:discover_command", name="discover", alias="d")
app.command("cli.commands.entry:entry_command", name="entry", alias="e")
app.command("cli.commands.build:build_command", name="build", alias="b")
app.command("cli.commands.layer:layer_command", name="layer", alias="l")
app.command("cli.commands.layer:fingerprint_command", name="fingerprint", alias="fp")

# Config subapp with alias
_config_app = App(name="config", help="Configuration management.")
_config_app.command("cli.commands.config:show_config", name="show")
_config_app.command("cli.commands.config:validate_config", name="validate")
_config_app.command("cli.commands.config:init_config", name="init")
app.command(_config_app, alias="cfg")
app.command("cli.commands.version:version_command", name="version", alias="v")


def main() -> None:
    """Run the handlerpack CLI."""
    app.meta()


__all__ = ["LOG_LEVELS", "app", "main"]
