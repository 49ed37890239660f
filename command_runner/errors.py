from __future__ import annotations


class CommandRunnerError(RuntimeError):
    """Base class for errors raised by command_runner."""


class InterpolationError(CommandRunnerError, ValueError):
    """Raised when a template names a value the substitution map lacks."""


class NoCommandError(CommandRunnerError):
    """Raised when a command could not be found or launched at all."""


class PipeError(CommandRunnerError):
    """Raised when reading or writing a child's standard streams fails."""


class BackendUnavailableError(CommandRunnerError):
    """Raised when no usable backend exists on this platform."""


class WorkingDirectoryError(CommandRunnerError):
    """Raised when the requested working directory does not exist."""
