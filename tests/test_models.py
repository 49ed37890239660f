from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from command_runner.errors import NoCommandError
from command_runner.message import Message, command_line, elapsed
from command_runner.models import Options


def test_options_encode_text_input() -> None:
    options = Options(input="héllo")

    assert options.input == "héllo".encode("utf-8")


def test_options_reject_unknown_keys() -> None:
    with pytest.raises(ValidationError):
        Options.coerce({"inptu": b"typo"})


def test_options_are_frozen() -> None:
    options = Options()

    with pytest.raises(ValidationError):
        options.unsafe = True  # type: ignore[misc]


def test_options_coerce_accepts_none_mapping_and_instance() -> None:
    existing = Options(unsafe=True)

    assert Options.coerce(None) == Options()
    assert Options.coerce({"env": {"A": 1}}).env == {"A": "1"}
    assert Options.coerce(existing) is existing


def test_residual_drops_consumed_options_without_mutation() -> None:
    options = Options(input=b"data", unsafe=True, env={"A": "1"}, cwd=Path("/tmp"))

    residual = options.residual()

    assert residual == {"env": {"A": "1"}, "cwd": Path("/tmp")}
    assert options.input == b"data"
    assert options.unsafe is True


def test_merged_layers_own_env_over_base() -> None:
    options = Options(env={"A": "mine"})

    merged = options.merged({"A": "base", "B": "base"})

    assert merged.env == {"A": "mine", "B": "base"}
    assert options.env == {"A": "mine"}


def test_command_line_keeps_trailing_space_without_arguments() -> None:
    assert command_line("some-non-existant-command", []) == "some-non-existant-command "
    assert command_line("echo", ["a", "b"]) == "echo a b"


def test_elapsed_is_absolute() -> None:
    assert elapsed(5.0, 2.0) == 3.0
    assert elapsed(2.0, 5.0) == 3.0


def _message(**overrides: object) -> Message:
    fields: dict[str, object] = {
        "process_id": 42,
        "exit_code": 0,
        "finished": True,
        "elapsed_time": 0.5,
        "environment": {},
        "options": {},
        "stdout": b"out\n",
        "stderr": b"",
        "command_line": "echo out",
        "executed": True,
        "raw_status": 0,
    }
    fields.update(overrides)
    return Message(**fields)  # type: ignore[arg-type]


def test_message_predicates() -> None:
    message = _message()

    assert message.successful is True
    assert message.no_command is False
    assert message.line == "echo out"
    assert message.time == 0.5
    assert message.text == "out\n"
    assert str(message) == "out\n"
    assert message.ensure_executed() is message


def test_failed_message_is_not_successful() -> None:
    message = _message(exit_code=3, raw_status=3)

    assert message.successful is False
    assert message.no_command is False


def test_not_found_message() -> None:
    message = Message.not_found("missing", ["a"], {"A": "1"}, {"env": {"A": "1"}})

    assert message.executed is False
    assert message.finished is True
    assert message.process_id is None
    assert message.exit_code is None
    assert message.no_command is True
    assert message.command_line == "missing a"
    with pytest.raises(NoCommandError):
        message.ensure_executed()


def test_message_is_immutable() -> None:
    message = _message()

    with pytest.raises(AttributeError):
        message.exit_code = 1  # type: ignore[misc]
