"""
Error taxonomy for the experiment runtime.

None of these are fatal to the process: each one maps to a recoverable
session state (a re-prompt, the LoadError phase, or an operator notice).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ExperimentError(Exception):
    """Base class for all experiment runtime errors."""


class ValidationFailure(ExperimentError, ValueError):
    """Participant input was rejected; the caller re-prompts."""


class LoadFailure(ExperimentError):
    """The stimulus set could not be acquired from the word-list service."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class LoadCancelled(LoadFailure):
    """Loading was aborted because the session was torn down."""


class SubmissionFailure(ExperimentError):
    """The results service did not accept the payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        backup_path: Optional[Path] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.backup_path = backup_path


class TimerError(ExperimentError, RuntimeError):
    """A latency was requested without a matching stimulus onset."""


class InvalidTransition(ExperimentError):
    """An operation was invoked in a phase that does not allow it."""
