from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Future
from typing import Any

from command_runner.backends import Backend, best_backend
from command_runner.backends.base import CallResult, Callback
from command_runner.config import BackendDefaults, defaults
from command_runner.interpolate import interpolate_arguments, split_arguments, split_template
from command_runner.message import Message
from command_runner.models import Options

logger = logging.getLogger(__name__)


class Runner:
    """A command plus an argument template that can be executed repeatedly.

    ``arguments`` is split on whitespace once, at construction, and each token
    is interpolated on every call. ``{name}`` substitutes an escaped value and
    ``{{name}}`` substitutes it verbatim.
    """

    def __init__(
        self,
        command: str,
        arguments: str = "",
        *,
        backend: Backend | None = None,
        values: Mapping[str, Any] | None = None,
        options: Options | Mapping[str, Any] | None = None,
        config: BackendDefaults | None = None,
    ) -> None:
        self.command = command
        self.arguments = arguments
        self.values = dict(values or {})
        self.options = Options.coerce(options)
        self._tokens = split_arguments(arguments)
        self._backend = backend
        self._config = config if config is not None else defaults

    @classmethod
    def from_template(cls, template: str, **kwargs: Any) -> Runner:
        command, arguments = split_template(template)
        return cls(command, arguments, **kwargs)

    @property
    def backend(self) -> Backend:
        if self._backend is not None:
            return self._backend
        return self._config.backend

    @backend.setter
    def backend(self, value: Backend | None) -> None:
        self._backend = value

    def contents(self, values: Mapping[str, Any] | None = None) -> tuple[str, list[str]]:
        merged = {**self.values, **(values or {})}
        return self.command, interpolate_arguments(self._tokens, merged)

    def execute(
        self,
        values: Mapping[str, Any] | None = None,
        options: Options | Mapping[str, Any] | None = None,
        on_complete: Callback | None = None,
    ) -> CallResult:
        command, arguments = self.contents(values)
        resolved = self._resolve_options(options)
        backend = self.backend
        logger.debug("executing %s with %r", command, backend)
        try:
            return backend.call(command, arguments, resolved.env, resolved, on_complete)
        except FileNotFoundError:
            logger.debug("%r raised for missing command %s", backend, command)
            message = Message.not_found(command, arguments, resolved.env, resolved.residual())
            if on_complete is not None:
                on_complete(message)
            return message

    def run(
        self,
        values: Mapping[str, Any] | None = None,
        options: Options | Mapping[str, Any] | None = None,
        on_complete: Callback | None = None,
    ) -> Message:
        """Execute and wait for the resulting :class:`Message`."""
        result = self.execute(values, options, on_complete)
        if isinstance(result, Future):
            return result.result()
        return result

    def run_checked(
        self,
        values: Mapping[str, Any] | None = None,
        options: Options | Mapping[str, Any] | None = None,
        on_complete: Callback | None = None,
    ) -> Message:
        return self.run(values, options, on_complete).ensure_executed()

    def _resolve_options(self, options: Options | Mapping[str, Any] | None) -> Options:
        call_options = Options.coerce(options)
        base = self.options.merged(self._config.settings.env)
        update: dict[str, Any] = {"env": {**base.env, **call_options.env}}
        for name in call_options.model_fields_set - {"env"}:
            update[name] = getattr(call_options, name)
        return base.model_copy(update=update)

    def __repr__(self) -> str:
        return f"Runner(command={self.command!r}, arguments={self.arguments!r})"


__all__ = ["Runner", "best_backend"]
