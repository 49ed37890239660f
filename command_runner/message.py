from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from command_runner.errors import NoCommandError


def command_line(command: str, arguments: Sequence[str]) -> str:
    return f"{command} {' '.join(arguments)}"


def elapsed(start: float, end: float) -> float:
    return abs(start - end)


@dataclass(frozen=True, slots=True)
class Message:
    """Outcome of a single command invocation.

    ``executed`` is false only when the command could not be found or launched;
    a command that ran and failed has ``executed`` set and a non-zero
    ``exit_code``.
    """

    process_id: int | None
    exit_code: int | None
    finished: bool
    elapsed_time: float
    environment: Mapping[str, str]
    options: Mapping[str, Any]
    stdout: bytes
    stderr: bytes
    command_line: str
    executed: bool
    raw_status: int | None = field(default=None)

    @classmethod
    def not_found(
        cls,
        command: str,
        arguments: Sequence[str],
        environment: Mapping[str, str] | None = None,
        options: Mapping[str, Any] | None = None,
        elapsed_time: float = 0.0,
        stderr: bytes = b"",
    ) -> Message:
        return cls(
            process_id=None,
            exit_code=None,
            finished=True,
            elapsed_time=elapsed_time,
            environment=dict(environment or {}),
            options=dict(options or {}),
            stdout=b"",
            stderr=stderr,
            command_line=command_line(command, arguments),
            executed=False,
        )

    @property
    def line(self) -> str:
        return self.command_line

    @property
    def time(self) -> float:
        return self.elapsed_time

    @property
    def no_command(self) -> bool:
        return not self.executed

    @property
    def successful(self) -> bool:
        return self.executed and self.exit_code == 0

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    def ensure_executed(self) -> Message:
        if not self.executed:
            raise NoCommandError(f"Command could not be executed: {self.command_line}")
        return self

    def __str__(self) -> str:
        return self.text
