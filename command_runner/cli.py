from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click
import yaml

from command_runner.backends import BACKENDS, RANKED_BACKENDS, get_backend
from command_runner.config import BackendDefaults, load_settings, settings_from_env
from command_runner.errors import CommandRunnerError
from command_runner.interpolate import placeholders
from command_runner.message import Message
from command_runner.runner import Runner


def _parse_pairs(pairs: tuple[str, ...], flag: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, separator, value = pair.partition("=")
        if not separator or not key:
            raise click.ClickException(f"{flag} expects KEY=VALUE, got '{pair}'")
        parsed[key] = value
    return parsed


def _load_values(vars_file: Path | None, pairs: tuple[str, ...]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if vars_file is not None:
        raw = yaml.safe_load(vars_file.read_text(encoding="utf-8"))
        if raw is not None and not isinstance(raw, dict):
            raise click.ClickException(f"Variables at {vars_file} must be a YAML object")
        values.update(raw or {})
    values.update(_parse_pairs(pairs, "--var"))
    return values


def _build_config(config_path: Path | None, backend_name: str | None) -> BackendDefaults:
    try:
        settings = load_settings(config_path) if config_path else settings_from_env()
        if backend_name:
            settings = settings.model_copy(update={"backend": backend_name})
        config = BackendDefaults(settings)
        config.backend = get_backend(settings.backend)
    except (CommandRunnerError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    return config


def _emit_result(message: Message) -> None:
    status = "success" if message.successful else "failed"
    if message.no_command:
        status = "no_command"
    click.echo(f"STATUS={status}")
    click.echo(f"LINE={message.command_line}")
    if message.exit_code is not None:
        click.echo(f"EXIT_CODE={message.exit_code}")
    if message.process_id is not None:
        click.echo(f"PID={message.process_id}")
    click.echo(f"ELAPSED={message.elapsed_time:.3f}s")


@click.group(help="Run external commands with interpolated, shell-escaped arguments.")
@click.option("verbose", "--verbose", "-v", is_flag=True, default=False)
def app(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command("contents")
@click.argument("template", type=str)
@click.option("pairs", "--var", multiple=True, help="Substitution value as KEY=VALUE.")
@click.option("vars_file", "--vars-file", type=click.Path(exists=True, path_type=Path), default=None)
def contents(template: str, pairs: tuple[str, ...], vars_file: Path | None) -> None:
    values = _load_values(vars_file, pairs)
    try:
        runner = Runner.from_template(template)
        command, arguments = runner.contents(values)
    except CommandRunnerError as exc:
        needed = ", ".join(placeholders(template)) or "none"
        raise click.ClickException(f"{exc} (placeholders: {needed})") from exc
    click.echo(json.dumps([command, arguments]))


@app.command("exec")
@click.argument("template", type=str)
@click.option("pairs", "--var", multiple=True, help="Substitution value as KEY=VALUE.")
@click.option("vars_file", "--vars-file", type=click.Path(exists=True, path_type=Path), default=None)
@click.option("env_pairs", "--env", multiple=True, help="Extra child environment as KEY=VALUE.")
@click.option(
    "backend_name",
    "--backend",
    type=click.Choice(["auto", *BACKENDS], case_sensitive=False),
    default=None,
)
@click.option("config_path", "--config", type=click.Path(exists=True, path_type=Path), default=None)
@click.option("unsafe", "--unsafe", is_flag=True, default=False)
@click.option("input_text", "--input", type=str, default=None)
@click.option("cwd", "--cwd", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None)
def execute(
    template: str,
    pairs: tuple[str, ...],
    vars_file: Path | None,
    env_pairs: tuple[str, ...],
    backend_name: str | None,
    config_path: Path | None,
    unsafe: bool,
    input_text: str | None,
    cwd: Path | None,
) -> None:
    values = _load_values(vars_file, pairs)
    config = _build_config(config_path, backend_name.lower() if backend_name else None)
    options: dict[str, Any] = {
        "env": _parse_pairs(env_pairs, "--env"),
        "unsafe": unsafe,
        "input": input_text,
        "cwd": cwd,
    }
    try:
        message = Runner.from_template(template, config=config).run(values, options)
    except CommandRunnerError as exc:
        raise click.ClickException(str(exc)) from exc

    if message.no_command:
        raise click.ClickException(f"Command not found: {message.command_line.strip()}")

    click.echo(message.stdout.decode("utf-8", errors="replace"), nl=False)
    if message.stderr:
        click.echo(message.stderr.decode("utf-8", errors="replace"), nl=False, err=True)
    _emit_result(message)
    if not message.successful:
        raise SystemExit(message.exit_code or 1)


@app.command("backends")
def backends() -> None:
    selected = None
    for backend in RANKED_BACKENDS:
        ok = backend.available()
        if ok and selected is None:
            selected = backend.name
        click.echo(f"{'PASS' if ok else 'FAIL'} {backend.name}")
    click.echo(f"SELECTED={selected or 'none'}")
    if selected is None:
        raise click.ClickException("No backend is available on this platform")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
