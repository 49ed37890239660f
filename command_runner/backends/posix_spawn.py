from __future__ import annotations

import logging
import os
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import Future

from command_runner.backends.base import (
    SHELL_NOT_FOUND_EXIT_CODE,
    Backend,
    Callback,
    deliver_in_thread,
    resolved,
    shell_argv,
)
from command_runner.backends.pipes import PipeSet
from command_runner.backends.spawn import SpawnBackend
from command_runner.message import Message, command_line, elapsed
from command_runner.models import Options

logger = logging.getLogger(__name__)


def _exit_code(status: int) -> int | None:
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    return None


class PosixSpawnBackend(Backend):
    """Launches processes with :func:`os.posix_spawnp` and reaps them with :func:`os.waitpid`.

    Under ``unsafe`` an exit status of 127 from ``/bin/sh`` is reported as
    ``executed=False``, like :class:`SpawnBackend`.
    """

    name = "posix_spawn"

    @classmethod
    def available(cls) -> bool:
        return os.name == "posix" and hasattr(os, "posix_spawnp")

    def call(
        self,
        command: str,
        arguments: Sequence[str],
        env: Mapping[str, str] | None = None,
        options: Options | Mapping[str, object] | None = None,
        on_complete: Callback | None = None,
    ) -> Future[Message]:
        resolved_options = Options.coerce(options)
        if resolved_options.cwd is not None:
            # posix_spawn has no portable chdir file action.
            logger.debug("posix_spawn backend delegating %s to spawn for cwd", command)
            return SpawnBackend().call(command, arguments, env, resolved_options, on_complete)
        environment = dict(env or {})
        residual = resolved_options.residual()
        line = command_line(command, arguments)

        pipes = PipeSet.open()
        start_time = time.monotonic()
        try:
            process_id = self.spawn(environment, command, arguments, resolved_options, pipes)
        except (FileNotFoundError, PermissionError, NotADirectoryError) as exc:
            pipes.close()
            logger.debug("posix_spawn backend could not launch %s: %s", command, exc)
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
        logger.debug("posix_spawn backend started pid %s: %s", process_id, line)

        def build() -> Message:
            try:
                with pipes:
                    stdout, stderr = pipes.communicate(resolved_options.input)
            finally:
                _, status = self.wait(process_id)
            end_time = time.monotonic()
            duration = elapsed(start_time, end_time)
            exit_code = _exit_code(status)
            if resolved_options.unsafe and exit_code == SHELL_NOT_FOUND_EXIT_CODE:
                return Message.not_found(
                    command, arguments, environment, residual, elapsed_time=duration, stderr=stderr
                )
            return Message(
                process_id=process_id,
                exit_code=exit_code,
                finished=True,
                elapsed_time=duration,
                environment=environment,
                options=residual,
                stdout=stdout,
                stderr=stderr,
                command_line=line,
                executed=True,
                raw_status=status,
            )

        return deliver_in_thread(build, on_complete, name=f"posix-spawn-{process_id}")

    def spawn(
        self,
        env: Mapping[str, str],
        command: str,
        arguments: Sequence[str],
        options: Options,
        pipes: PipeSet,
    ) -> int:
        if options.unsafe:
            argv = shell_argv(command_line(command, arguments))
        else:
            argv = [command, *arguments]

        stdin, stdout, stderr = pipes.child_ends
        file_actions: list[tuple[int, ...]] = [
            (os.POSIX_SPAWN_DUP2, stdin, 0),
            (os.POSIX_SPAWN_DUP2, stdout, 1),
            (os.POSIX_SPAWN_DUP2, stderr, 2),
        ]
        return os.posix_spawnp(argv[0], argv, {**os.environ, **env}, file_actions=file_actions)

    def wait(self, process_id: int) -> tuple[int, int]:
        return os.waitpid(process_id, 0)
