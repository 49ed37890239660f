from __future__ import annotations

from collections.abc import Iterator

import pytest

from command_runner.backends import FakeBackend
from command_runner.config import defaults


@pytest.fixture(autouse=True)
def fake_default_backend(monkeypatch: pytest.MonkeyPatch) -> Iterator[FakeBackend]:
    monkeypatch.delenv("COMMAND_RUNNER_BACKEND", raising=False)
    defaults.reset()
    backend = FakeBackend()
    defaults.backend = backend
    yield backend
    defaults.reset()
