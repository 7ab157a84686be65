"""Process exit codes for handlerpack commands."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes, grouped by where the run stopped.

    ``1``-``9`` cover argument parsing and configuration; ``10``-``19``
    name the pipeline stage that failed.
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    PARSE_ERROR = 2
    VALIDATION_ERROR = 3
    CONFIG_ERROR = 4

    EXTRACTION_ERROR = 10
    BUNDLE_ERROR = 11
    DEPENDENCY_ERROR = 12
    ARCHIVE_ERROR = 13

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Return the exit code for an exception raised during a run.

        Command-line errors from cyclopts are checked first, then config
        errors by name, then the pipeline package that defines the
        exception class, then a few builtin types.

        Returns
        -------
        ExitCode
            Matching code, or ``GENERAL_ERROR``.
        """
        for classify in (_cyclopts_code, _config_code, _stage_code, _builtin_code):
            code = classify(exc)
            if code is not None:
                return code
        return cls.GENERAL_ERROR


def _cyclopts_code(exc: BaseException) -> ExitCode | None:
    if not exc.__class__.__module__.startswith("cyclopts"):
        return None
    if exc.__class__.__name__ == "ValidationError":
        return ExitCode.VALIDATION_ERROR
    return ExitCode.PARSE_ERROR


def _config_code(exc: BaseException) -> ExitCode | None:
    if exc.__class__.__name__ in {"ConfigError", "TOMLDecodeError"}:
        return ExitCode.CONFIG_ERROR
    return None


# Pipeline packages, keyed by top-level module name.
_STAGE_EXIT_CODES: dict[str, ExitCode] = {
    "extract": ExitCode.EXTRACTION_ERROR,
    "bundling": ExitCode.BUNDLE_ERROR,
    "depgraph": ExitCode.DEPENDENCY_ERROR,
    "archive": ExitCode.ARCHIVE_ERROR,
}


def _stage_code(exc: BaseException) -> ExitCode | None:
    return _STAGE_EXIT_CODES.get(exc.__class__.__module__.split(".", 1)[0])


def _builtin_code(exc: BaseException) -> ExitCode | None:
    if isinstance(exc, (ValueError, TypeError)):
        return ExitCode.VALIDATION_ERROR
    if isinstance(exc, (FileNotFoundError, FileExistsError, PermissionError)):
        return ExitCode.CONFIG_ERROR
    return None


__all__ = ["ExitCode"]
