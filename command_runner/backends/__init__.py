"""Process-launch strategies and backend selection."""

from __future__ import annotations

import logging

from command_runner.backends.backticks import BackticksBackend
from command_runner.backends.base import Backend, FakeBackend, FakeCall
from command_runner.backends.posix_spawn import PosixSpawnBackend
from command_runner.backends.spawn import SpawnBackend
from command_runner.errors import BackendUnavailableError

logger = logging.getLogger(__name__)

# Most preferred first. FakeBackend is never picked automatically.
RANKED_BACKENDS: tuple[type[Backend], ...] = (PosixSpawnBackend, SpawnBackend, BackticksBackend)

BACKENDS: dict[str, type[Backend]] = {
    backend.name: backend for backend in (*RANKED_BACKENDS, FakeBackend)
}


def best_backend() -> Backend:
    for backend in RANKED_BACKENDS:
        if backend.available():
            logger.debug("selected %s backend", backend.name)
            return backend()
    raise BackendUnavailableError(
        "No backend is available on this platform. Tried: "
        + ", ".join(backend.name for backend in RANKED_BACKENDS)
    )


def get_backend(name: str) -> Backend:
    if name == "auto":
        return best_backend()
    backend = BACKENDS.get(name)
    if backend is None:
        supported = ", ".join(["auto", *BACKENDS])
        raise BackendUnavailableError(f"Unknown backend '{name}'. Try one of: {supported}")
    if not backend.available():
        raise BackendUnavailableError(f"Backend '{name}' is not available on this platform")
    return backend()


__all__ = [
    "BACKENDS",
    "RANKED_BACKENDS",
    "Backend",
    "BackticksBackend",
    "FakeBackend",
    "FakeCall",
    "PosixSpawnBackend",
    "SpawnBackend",
    "best_backend",
    "get_backend",
]
