"""Errors raised while bootstrapping the development environment."""
from typing import Sequence


class BootstrapError(Exception):
    """Base class for every error that halts a bootstrap run."""

    exit_code = 1


class UnsupportedEnvironmentError(BootstrapError):
    """The OS family has no supported package manager."""


class ConfirmationDeclined(BootstrapError):
    """The user did not give the answer required to proceed."""


class NonInteractiveError(BootstrapError):
    """A prompt needed an answer but no input could be read."""


class StepFailed(BootstrapError):
    """An action failed."""


class CommandFailed(StepFailed):
    """An external command exited non-zero or could not be found."""

    def __init__(self, command: Sequence[str], exit_code: int):
        self.command = list(command)
        self.exit_code = exit_code
        super().__init__(f"`{' '.join(self.command)}` failed with exit code {exit_code}")
