from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence

from command_runner.backends.base import (
    SHELL_NOT_FOUND_EXIT_CODE,
    Backend,
    Callback,
    check_working_directory,
)
from command_runner.message import Message, command_line, elapsed
from command_runner.models import Options

logger = logging.getLogger(__name__)


class BackticksBackend(Backend):
    """Runs the joined command line through the shell and waits for it.

    Arguments are not quoted again, so values should be interpolated with
    escaping. The call blocks and returns a :class:`Message` directly. An exit
    status of 127 from the shell is reported as ``executed=False``.
    """

    name = "backticks"

    @classmethod
    def available(cls) -> bool:
        if os.name == "nt":
            return shutil.which("cmd") is not None
        return shutil.which("sh") is not None

    def call(
        self,
        command: str,
        arguments: Sequence[str],
        env: Mapping[str, str] | None = None,
        options: Options | Mapping[str, object] | None = None,
        on_complete: Callback | None = None,
    ) -> Message:
        resolved_options = Options.coerce(options)
        check_working_directory(resolved_options)
        environment = dict(env or {})
        residual = resolved_options.residual()
        line = command_line(command, arguments)

        start_time = time.monotonic()
        try:
            with subprocess.Popen(
                line,
                shell=True,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env={**os.environ, **environment},
                cwd=resolved_options.cwd,
            ) as process:
                stdout, stderr = process.communicate(resolved_options.input)
        except (FileNotFoundError, NotADirectoryError) as exc:
            logger.debug("backticks backend could not launch %s: %s", line, exc)
            message = Message.not_found(
                command,
                arguments,
                environment,
                residual,
                elapsed_time=elapsed(start_time, time.monotonic()),
            )
        else:
            end_time = time.monotonic()
            duration = elapsed(start_time, end_time)
            if process.returncode == SHELL_NOT_FOUND_EXIT_CODE:
                logger.debug("backticks backend found no command for %s", line)
                message = Message.not_found(
                    command, arguments, environment, residual, elapsed_time=duration, stderr=stderr
                )
            else:
                message = Message(
                    process_id=process.pid,
                    exit_code=process.returncode if process.returncode >= 0 else None,
                    finished=True,
                    elapsed_time=duration,
                    environment=environment,
                    options=residual,
                    stdout=stdout,
                    stderr=stderr,
                    command_line=line,
                    executed=True,
                    raw_status=process.returncode,
                )

        if on_complete is not None:
            on_complete(message)
        return message
