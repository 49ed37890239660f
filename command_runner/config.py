from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from command_runner.backends import BACKENDS, Backend, get_backend

logger = logging.getLogger(__name__)

BACKEND_ENV_VAR = "COMMAND_RUNNER_BACKEND"


class RunnerSettings(BaseModel):
    backend: str = "auto"
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized != "auto" and normalized not in BACKENDS:
            supported = ", ".join(["auto", *BACKENDS])
            raise ValueError(f"Unsupported backend '{value}'. Try one of: {supported}")
        return normalized


def settings_from_env() -> RunnerSettings:
    raw = os.environ.get(BACKEND_ENV_VAR, "").strip()
    if not raw:
        return RunnerSettings()
    return RunnerSettings(backend=raw)


def load_settings(path: Path) -> RunnerSettings:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return RunnerSettings()
    if not isinstance(raw, dict):
        raise ValueError(f"Settings at {path} must be a YAML object")
    return RunnerSettings.model_validate(raw)


class BackendDefaults:
    """Process-wide default backend used by runners without their own.

    The backend is resolved from the settings the first time it is needed and
    cached until :meth:`reset` is called or another backend is assigned.
    """

    def __init__(self, settings: RunnerSettings | None = None) -> None:
        self._settings = settings
        self._backend: Backend | None = None

    @property
    def settings(self) -> RunnerSettings:
        if self._settings is None:
            self._settings = settings_from_env()
        return self._settings

    @settings.setter
    def settings(self, value: RunnerSettings) -> None:
        self._settings = value
        self._backend = None

    @property
    def backend(self) -> Backend:
        if self._backend is None:
            self._backend = get_backend(self.settings.backend)
            logger.debug("default backend resolved to %r", self._backend)
        return self._backend

    @backend.setter
    def backend(self, value: Backend) -> None:
        self._backend = value

    def reset(self) -> None:
        self._settings = None
        self._backend = None


defaults = BackendDefaults()
