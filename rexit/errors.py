"""Exception hierarchy for rexit.

Every error that reaches the command line is a ``RexitError`` so the entry
point can print a single ``Error: ...`` line for it.
"""
from __future__ import annotations

from typing import Sequence


class RexitError(Exception):
    """Base class for all rexit errors."""


class ConfigError(RexitError):
    """The theme file could not be read or parsed."""


class SetupError(RexitError):
    """The terminal could not be prepared for the menu."""


class TerminalError(RexitError):
    """Drawing, polling or reading the terminal failed mid-session."""


class ExecError(RexitError):
    """Spawning the external command for an action failed."""

    def __init__(self, argv: Sequence[str], cause: BaseException):
        self.argv = tuple(argv)
        self.cause = cause
        super().__init__(f"Failed to execute command: {' '.join(self.argv)} ({cause})")


class TeardownError(RexitError):
    """One or more terminal restoration steps failed."""

    def __init__(self, failures: Sequence[str]):
        self.failures = list(failures)
        super().__init__("Failed to restore terminal: " + "; ".join(self.failures))
