"""Run external commands with interpolated, shell-escaped arguments."""

from command_runner.backends import (
    Backend,
    BackticksBackend,
    FakeBackend,
    PosixSpawnBackend,
    SpawnBackend,
    best_backend,
    get_backend,
)
from command_runner.config import BackendDefaults, RunnerSettings, defaults
from command_runner.errors import (
    BackendUnavailableError,
    CommandRunnerError,
    InterpolationError,
    NoCommandError,
    PipeError,
    WorkingDirectoryError,
)
from command_runner.interpolate import escape, resolve
from command_runner.message import Message
from command_runner.models import Options
from command_runner.runner import Runner

__all__ = [
    "Backend",
    "BackendDefaults",
    "BackendUnavailableError",
    "BackticksBackend",
    "CommandRunnerError",
    "FakeBackend",
    "InterpolationError",
    "Message",
    "NoCommandError",
    "Options",
    "PipeError",
    "PosixSpawnBackend",
    "Runner",
    "RunnerSettings",
    "SpawnBackend",
    "WorkingDirectoryError",
    "best_backend",
    "defaults",
    "escape",
    "get_backend",
    "resolve",
]
