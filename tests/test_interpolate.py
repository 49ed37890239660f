from __future__ import annotations

import pytest

from command_runner.errors import InterpolationError
from command_runner.interpolate import (
    escape,
    interpolate_argument,
    placeholders,
    resolve,
    split_template,
)


def test_resolves_command_and_arguments() -> None:
    command, arguments = resolve("echo some {interpolation}", {"interpolation": "test"})

    assert command == "echo"
    assert arguments == ["some", "test"]


def test_escapes_single_brace_values() -> None:
    _, arguments = resolve("echo some {x}", {"x": "`bad value`"})

    assert arguments == ["some", "\\`bad\\ value\\`"]


def test_double_brace_values_are_verbatim() -> None:
    _, arguments = resolve("echo some {{x}}", {"x": "`bad value`"})

    assert arguments == ["some", "`bad value`"]


def test_substituted_values_are_not_rescanned() -> None:
    assert interpolate_argument("{x}", {"x": "{other}", "other": "hi"}) == "\\{other\\}"
    assert interpolate_argument("{{x}}", {"x": "{other}", "other": "hi"}) == "{other}"


@pytest.mark.parametrize("token", ["{{x}", "{x}}", "{{x", "x}}", "{}", "{1x}"])
def test_malformed_placeholders_pass_through(token: str) -> None:
    assert interpolate_argument(token, {"x": "value"}) == token


def test_values_never_add_argument_boundaries() -> None:
    _, arguments = resolve("printf {{x}} tail", {"x": "a b c"})

    assert arguments == ["a b c", "tail"]


def test_command_is_not_interpolated() -> None:
    command, arguments = resolve("{x} {x}", {"x": "value"})

    assert command == "{x}"
    assert arguments == ["value"]


def test_mixed_text_and_placeholders() -> None:
    token = "--name={name}@{{host}}:{port}"

    result = interpolate_argument(token, {"name": "a;b", "host": "h$1", "port": 22})

    assert result == "--name=a\\;b@h$1:22"


def test_missing_value_fails() -> None:
    with pytest.raises(InterpolationError, match="missing"):
        resolve("echo {missing}", {})


def test_missing_value_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        interpolate_argument("{{missing}}", {})


def test_empty_template_fails() -> None:
    with pytest.raises(InterpolationError):
        split_template("   ")


def test_split_template_keeps_argument_text() -> None:
    assert split_template("echo\tsome  {x}") == ("echo", "some  {x}")
    assert split_template("true") == ("true", "")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain-value_1.2,3:4+5/6@7", "plain-value_1.2,3:4+5/6@7"),
        ("", "''"),
        ("a b", "a\\ b"),
        ("$(rm -rf /)", "\\$\\(rm\\ -rf\\ /\\)"),
        ("it's", "it\\'s"),
        ("line\nbreak", "line'\n'break"),
    ],
)
def test_escape(value: str, expected: str) -> None:
    assert escape(value) == expected


def test_placeholders_lists_names_once() -> None:
    assert placeholders("{a} {{b}} {a} {{c} {d}}") == ["a", "b"]
