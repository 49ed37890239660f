from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CONSUMED_FIELDS = {"input", "unsafe"}


class Options(BaseModel):
    """Per-invocation execution options.

    ``input`` and ``unsafe`` are consumed by the backend that launches the
    process; everything else is echoed back on the resulting message through
    :meth:`residual`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    input: bytes | None = None
    unsafe: bool = False
    env: dict[str, str] = Field(default_factory=dict)
    cwd: Path | None = None

    @field_validator("input", mode="before")
    @classmethod
    def encode_input(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    @field_validator("env", mode="before")
    @classmethod
    def stringify_env(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {str(key): str(item) for key, item in value.items()}
        return value

    @classmethod
    def coerce(cls, value: Options | Mapping[str, Any] | None) -> Options:
        if value is None:
            return cls()
        if isinstance(value, Options):
            return value
        return cls.model_validate(dict(value))

    def residual(self) -> dict[str, Any]:
        return self.model_dump(exclude=_CONSUMED_FIELDS, exclude_none=True)

    def merged(self, env: Mapping[str, str]) -> Options:
        """Return a copy whose ``env`` layers this object's entries over ``env``."""
        return self.model_copy(update={"env": {**env, **self.env}})
