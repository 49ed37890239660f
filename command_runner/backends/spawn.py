from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import Future

from command_runner.backends.base import (
    SHELL_NOT_FOUND_EXIT_CODE,
    Backend,
    Callback,
    check_working_directory,
    deliver_in_thread,
    resolved,
)
from command_runner.backends.pipes import PipeSet
from command_runner.message import Message, command_line, elapsed
from command_runner.models import Options

logger = logging.getLogger(__name__)


class SpawnBackend(Backend):
    """Launches processes with :class:`subprocess.Popen`.

    ``on_complete`` is called from a worker thread. With ``unsafe`` the line
    runs through ``/bin/sh`` and an exit status of 127 is reported as
    ``executed=False``, even when a program that ran exits with 127 itself.
    A missing ``cwd`` raises :class:`~command_runner.errors.WorkingDirectoryError`.
    """

    name = "spawn"

    @classmethod
    def available(cls) -> bool:
        return os.name == "posix"

    def call(
        self,
        command: str,
        arguments: Sequence[str],
        env: Mapping[str, str] | None = None,
        options: Options | Mapping[str, object] | None = None,
        on_complete: Callback | None = None,
    ) -> Future[Message]:
        resolved_options = Options.coerce(options)
        check_working_directory(resolved_options)
        environment = dict(env or {})
        residual = resolved_options.residual()
        line = command_line(command, arguments)

        pipes = PipeSet.open()
        start_time = time.monotonic()
        try:
            process = self.spawn(environment, command, arguments, resolved_options, pipes)
        except (FileNotFoundError, PermissionError, NotADirectoryError) as exc:
            pipes.close()
            logger.debug("spawn backend could not launch %s: %s", command, exc)
            message = Message.not_found(
                command,
                arguments,
                environment,
                residual,
                elapsed_time=elapsed(start_time, time.monotonic()),
            )
            return resolved(message, on_complete)
        except BaseException:
            pipes.close()
            raise
        pipes.close_child_ends()
        logger.debug("spawn backend started pid %s: %s", process.pid, line)

        def build() -> Message:
            try:
                with pipes:
                    stdout, stderr = pipes.communicate(resolved_options.input)
            finally:
                returncode = process.wait()
            end_time = time.monotonic()
            duration = elapsed(start_time, end_time)
            if resolved_options.unsafe and returncode == SHELL_NOT_FOUND_EXIT_CODE:
                return Message.not_found(
                    command, arguments, environment, residual, elapsed_time=duration, stderr=stderr
                )
            return Message(
                process_id=process.pid,
                exit_code=returncode if returncode >= 0 else None,
                finished=True,
                elapsed_time=duration,
                environment=environment,
                options=residual,
                stdout=stdout,
                stderr=stderr,
                command_line=line,
                executed=True,
                raw_status=returncode,
            )

        return deliver_in_thread(build, on_complete, name=f"spawn-{process.pid}")

    def spawn(
        self,
        env: Mapping[str, str],
        command: str,
        arguments: Sequence[str],
        options: Options,
        pipes: PipeSet,
    ) -> subprocess.Popen[bytes]:
        stdin, stdout, stderr = pipes.child_ends
        target: str | list[str]
        if options.unsafe:
            target = command_line(command, arguments)
        else:
            target = [command, *arguments]
        return subprocess.Popen(
            target,
            shell=options.unsafe,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            env={**os.environ, **env},
            cwd=options.cwd,
        )
