from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future
from dataclasses import dataclass, field

from command_runner.errors import WorkingDirectoryError
from command_runner.message import Message, command_line
from command_runner.models import Options

logger = logging.getLogger(__name__)

Callback = Callable[[Message], object]
CallResult = Message | Future[Message]

SHELL = "/bin/sh"
SHELL_NOT_FOUND_EXIT_CODE = 127


def shell_argv(line: str) -> list[str]:
    return [SHELL, "-c", line]


def check_working_directory(options: Options) -> None:
    if options.cwd is not None and not os.path.isdir(options.cwd):
        raise WorkingDirectoryError(f"Working directory does not exist: {options.cwd}")


def deliver(future: Future[Message], build: Callable[[], Message], on_complete: Callback | None) -> None:
    """Resolve ``future`` with the message ``build`` returns.

    ``on_complete`` runs once, before the future resolves. An exception from
    either step is set on the future instead of escaping the worker.
    """
    if not future.set_running_or_notify_cancel():
        # Cancelled before the worker started; the process still has to be reaped.
        logger.debug("delivery cancelled, discarding result")
        try:
            build()
        except Exception as exc:  # noqa: BLE001
            logger.debug("cancelled delivery failed while reaping: %s", exc)
        return
    try:
        message = build()
        if on_complete is not None:
            on_complete(message)
    except Exception as exc:  # noqa: BLE001
        future.set_exception(exc)
        return
    future.set_result(message)


def deliver_in_thread(
    build: Callable[[], Message],
    on_complete: Callback | None,
    name: str = "command-runner",
) -> Future[Message]:
    future: Future[Message] = Future()
    worker = threading.Thread(target=deliver, args=(future, build, on_complete), name=name, daemon=True)
    worker.start()
    return future


def resolved(message: Message, on_complete: Callback | None) -> Future[Message]:
    future: Future[Message] = Future()
    deliver(future, lambda: message, on_complete)
    return future


class Backend:
    """A strategy for launching one process and reporting its outcome."""

    name = "base"

    @classmethod
    def available(cls) -> bool:
        return True

    def call(
        self,
        command: str,
        arguments: Sequence[str],
        env: Mapping[str, str] | None = None,
        options: Options | Mapping[str, object] | None = None,
        on_complete: Callback | None = None,
    ) -> CallResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


@dataclass(slots=True)
class FakeCall:
    command: str
    arguments: list[str]
    env: dict[str, str]
    options: Options


@dataclass
class FakeBackend(Backend):
    """Pretends to run commands; nothing reaches the operating system."""

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = 0
    executed: bool = True
    calls: list[FakeCall] = field(default_factory=list)

    name = "fake"

    def call(
        self,
        command: str,
        arguments: Sequence[str],
        env: Mapping[str, str] | None = None,
        options: Options | Mapping[str, object] | None = None,
        on_complete: Callback | None = None,
    ) -> Future[Message]:
        resolved_options = Options.coerce(options)
        environment = dict(env or {})
        self.calls.append(FakeCall(command, list(arguments), environment, resolved_options))
        logger.debug("fake backend received %s", command_line(command, arguments))

        if not self.executed:
            message = Message.not_found(command, arguments, environment, resolved_options.residual())
        else:
            message = Message(
                process_id=None,
                exit_code=self.exit_code,
                finished=True,
                elapsed_time=0.0,
                environment=environment,
                options=resolved_options.residual(),
                stdout=self.stdout,
                stderr=self.stderr,
                command_line=command_line(command, arguments),
                executed=True,
                raw_status=self.exit_code,
            )
        return resolved(message, on_complete)
