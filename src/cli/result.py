"""Structured return value for commands that write archives."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from cli.exit_codes import ExitCode

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class CliResult:
    """Outcome of a build or layer command.

    Parameters
    ----------
    exit_code
        Process exit code.
    summary
        One-line outcome shown first.
    artifacts
        Archives written, keyed by role (``function``, ``layer``).
    details
        Labelled values such as digests, fingerprints and package counts.
    """

    exit_code: int
    summary: str | None = None
    artifacts: Mapping[str, Path] = field(default_factory=dict)
    details: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        *,
        summary: str | None = None,
        artifacts: Mapping[str, Path] | None = None,
        details: Mapping[str, str] | None = None,
    ) -> CliResult:
        return cls(
            exit_code=ExitCode.SUCCESS,
            summary=summary,
            artifacts=artifacts or {},
            details=details or {},
        )

    @classmethod
    def from_exception(cls, exc: BaseException, *, summary: str | None = None) -> CliResult:
        """Return a failed result whose exit code reflects the failing stage.

        Returns
        -------
        CliResult
            Result carrying ``ExitCode.from_exception(exc)``.
        """
        return cls(
            exit_code=int(ExitCode.from_exception(exc)),
            summary=summary or str(exc),
        )

    @property
    def ok(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS


__all__ = ["CliResult"]
