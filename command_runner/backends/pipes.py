from __future__ import annotations

import os
import selectors
from dataclasses import dataclass, field

from command_runner.errors import PipeError

_READ_SIZE = 32768
_WRITE_SIZE = 4096


@dataclass(slots=True)
class PipeSet:
    """The stdin, stdout and stderr pipes of one invocation.

    The child ends (``stdin_r``, ``stdout_w``, ``stderr_w``) are handed to the
    launched process; the parent keeps the other three. Every descriptor is
    closed at most once, and :meth:`close` releases whatever is still open.
    """

    stdin_r: int
    stdin_w: int
    stdout_r: int
    stdout_w: int
    stderr_r: int
    stderr_w: int
    _closed: set[int] = field(default_factory=set)

    @classmethod
    def open(cls) -> PipeSet:
        descriptors: list[int] = []
        try:
            for _ in range(3):
                descriptors.extend(os.pipe())
        except OSError as exc:
            for fd in descriptors:
                os.close(fd)
            raise PipeError(f"Unable to create pipes: {exc}") from exc
        stdin_r, stdin_w, stdout_r, stdout_w, stderr_r, stderr_w = descriptors
        return cls(stdin_r, stdin_w, stdout_r, stdout_w, stderr_r, stderr_w)

    def __enter__(self) -> PipeSet:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def child_ends(self) -> tuple[int, int, int]:
        return self.stdin_r, self.stdout_w, self.stderr_w

    def close_fd(self, fd: int) -> None:
        if fd in self._closed:
            return
        self._closed.add(fd)
        os.close(fd)

    def close_child_ends(self) -> None:
        for fd in self.child_ends:
            self.close_fd(fd)

    def close(self) -> None:
        for fd in (
            self.stdin_r,
            self.stdin_w,
            self.stdout_r,
            self.stdout_w,
            self.stderr_r,
            self.stderr_w,
        ):
            self.close_fd(fd)

    def communicate(self, data: bytes | None = None) -> tuple[bytes, bytes]:
        """Feed ``data`` to stdin, then close it, while draining stdout and stderr.

        Returns once both output pipes reach end of file, which happens after
        the child exits and every write end is closed. Must be called after
        :meth:`close_child_ends`.
        """
        chunks: dict[int, list[bytes]] = {self.stdout_r: [], self.stderr_r: []}
        payload = memoryview(data or b"")
        offset = 0

        try:
            with selectors.DefaultSelector() as selector:
                if payload:
                    os.set_blocking(self.stdin_w, False)
                    selector.register(self.stdin_w, selectors.EVENT_WRITE)
                else:
                    self.close_fd(self.stdin_w)
                selector.register(self.stdout_r, selectors.EVENT_READ)
                selector.register(self.stderr_r, selectors.EVENT_READ)

                while selector.get_map():
                    for key, _ in selector.select():
                        fd = key.fd
                        if fd == self.stdin_w:
                            try:
                                offset += os.write(fd, payload[offset : offset + _WRITE_SIZE])
                            except BlockingIOError:
                                continue
                            except BrokenPipeError:
                                offset = len(payload)
                            if offset >= len(payload):
                                selector.unregister(fd)
                                self.close_fd(fd)
                            continue

                        chunk = os.read(fd, _READ_SIZE)
                        if chunk:
                            chunks[fd].append(chunk)
                        else:
                            selector.unregister(fd)
                            self.close_fd(fd)
        except OSError as exc:
            raise PipeError(f"Pipe I/O failed: {exc}") from exc

        return b"".join(chunks[self.stdout_r]), b"".join(chunks[self.stderr_r])
