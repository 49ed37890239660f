from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from command_runner.backends import FakeBackend, SpawnBackend
from command_runner.config import BackendDefaults, RunnerSettings, load_settings, settings_from_env
from command_runner.errors import BackendUnavailableError


def test_settings_default_to_auto() -> None:
    assert settings_from_env() == RunnerSettings(backend="auto")


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COMMAND_RUNNER_BACKEND", " Fake ")

    assert settings_from_env().backend == "fake"


def test_settings_reject_unknown_backend() -> None:
    with pytest.raises(ValidationError):
        RunnerSettings(backend="telepathy")


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "runner.yaml"
    path.write_text("backend: fake\nenv:\n  LANG: C\n", encoding="utf-8")

    settings = load_settings(path)

    assert settings.backend == "fake"
    assert settings.env == {"LANG": "C"}


def test_load_settings_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "runner.yaml"
    path.write_text("- fake\n", encoding="utf-8")

    with pytest.raises(ValueError, match="YAML object"):
        load_settings(path)


def test_empty_settings_file(tmp_path: Path) -> None:
    path = tmp_path / "runner.yaml"
    path.write_text("", encoding="utf-8")

    assert load_settings(path) == RunnerSettings()


def test_defaults_resolve_lazily_and_cache() -> None:
    defaults = BackendDefaults(RunnerSettings(backend="fake"))

    first = defaults.backend

    assert isinstance(first, FakeBackend)
    assert defaults.backend is first


def test_defaults_reset_rereads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    defaults = BackendDefaults()
    monkeypatch.setenv("COMMAND_RUNNER_BACKEND", "fake")
    assert isinstance(defaults.backend, FakeBackend)

    monkeypatch.setattr(SpawnBackend, "available", classmethod(lambda cls: True))
    monkeypatch.setenv("COMMAND_RUNNER_BACKEND", "spawn")
    defaults.reset()

    assert isinstance(defaults.backend, SpawnBackend)


def test_assigning_settings_drops_cached_backend() -> None:
    defaults = BackendDefaults(RunnerSettings(backend="fake"))
    first = defaults.backend

    defaults.settings = RunnerSettings(backend="fake")

    assert defaults.backend is not first


def test_unavailable_configured_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(SpawnBackend, "available", classmethod(lambda cls: False))
    defaults = BackendDefaults(RunnerSettings(backend="spawn"))

    with pytest.raises(BackendUnavailableError):
        _ = defaults.backend
