"""Shared exception types for cross-module use."""
from __future__ import annotations

from typing import Iterable


class SimulationError(RuntimeError):
    """Base class for errors raised by the simulation core."""


class ConfigurationError(SimulationError, ValueError):
    """Raised when teams, players, schedules or tuning values are malformed.

    The check happens before any game is played so a bad league never
    produces partial results.
    """

    def __init__(self, message: str, problems: Iterable[str] | None = None):
        self.problems = list(problems or [])
        if self.problems:
            message += ": " + "; ".join(self.problems)
        super().__init__(message)


class InvariantViolation(SimulationError, AssertionError):
    """Raised when a finished game or season does not add up.

    These indicate a logic bug inside the engine rather than bad input.
    """


__all__ = ["SimulationError", "ConfigurationError", "InvariantViolation"]
