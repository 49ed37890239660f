from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from command_runner.errors import InterpolationError

_TOKEN_PATTERN = re.compile(r"(\{{1,2})([A-Za-z_][A-Za-z0-9_]*)(\}{1,2})")
_UNSAFE_CHARACTERS = re.compile(r"([^A-Za-z0-9_\-.,:+/@\n])")


def escape(value: str) -> str:
    """Escape ``value`` so a POSIX shell reads it back as one word."""
    if not value:
        return "''"
    escaped = _UNSAFE_CHARACTERS.sub(r"\\\1", value)
    return escaped.replace("\n", "'\n'")


def split_arguments(text: str) -> list[str]:
    return text.split()


def placeholders(text: str) -> list[str]:
    names: list[str] = []
    for match in _TOKEN_PATTERN.finditer(text):
        opening, name, closing = match.groups()
        if len(opening) == len(closing) and name not in names:
            names.append(name)
    return names


def interpolate_argument(token: str, values: Mapping[str, Any]) -> str:
    def replace(match: re.Match[str]) -> str:
        opening, name, closing = match.groups()
        if len(opening) != len(closing):
            return match.group(0)
        if name not in values:
            raise InterpolationError(f"Unresolved placeholder '{name}' in '{token}'")
        value = str(values[name])
        if len(opening) == 2:
            return value
        return escape(value)

    return _TOKEN_PATTERN.sub(replace, token)


def interpolate_arguments(tokens: Iterable[str], values: Mapping[str, Any]) -> list[str]:
    return [interpolate_argument(token, values) for token in tokens]


def split_template(template: str) -> tuple[str, str]:
    parts = template.split(maxsplit=1)
    if not parts:
        raise InterpolationError("Template must name a command")
    command = parts[0]
    arguments = parts[1] if len(parts) > 1 else ""
    return command, arguments


def resolve(template: str, values: Mapping[str, Any] | None = None) -> tuple[str, list[str]]:
    """Split ``template`` into a command and its interpolated arguments.

    The command is the first whitespace-separated segment and is never
    interpolated. Splitting happens before substitution, so a value can not
    introduce a new argument boundary.
    """
    command, arguments = split_template(template)
    return command, interpolate_arguments(split_arguments(arguments), values or {})
