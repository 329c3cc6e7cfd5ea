"""Cell Explorer preferences CLI.

This module provides the command-line interface for inspecting, validating
and creating Cell Explorer preference files.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Final

import typer
import yaml
from pydantic import BaseModel

from cellexplorer import __version__
from cellexplorer.settings import (
    Settings,
    dump_settings,
    load_default_settings,
    load_settings,
    settings_to_yaml,
)

# ── CLI setup ────────────────────────────────────────────────────────────────
app = typer.Typer(help="Cell Explorer preferences CLI", add_completion=False)
config_app = typer.Typer(help="Preference file helpers")
app.add_typer(config_app, name="config")

logger: Final = logging.getLogger(__name__)  # Will be "cellexplorer.cli"

CONFIG_OPTION = typer.Option(
    None, "--config", "-c", exists=True, dir_okay=False, help="Preferences YAML to apply"
)
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")
DST_ARGUMENT = typer.Argument(..., help="Output preferences YAML")
FORCE_OPTION = typer.Option(False, "--force", "-f", help="Overwrite an existing file")
KEY_ARGUMENT = typer.Argument(..., help="Dotted setting name, e.g. tSNE.Perplexity")
METRICS_ARGUMENT = typer.Argument(..., help="Metric names present in the metrics table")


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _load_or_exit(config: Path | None) -> Settings:
    try:
        return load_settings(config)
    except (FileNotFoundError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _to_plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, tuple):
        return [_to_plain(item) for item in value]
    return value


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


# ───────────────────────── config sub-commands ───────────────────────────────
@config_app.command("show")
def show(config: Path | None = CONFIG_OPTION, debug: bool = DEBUG_OPTION) -> None:
    """Print the effective preferences as YAML."""
    _configure_logging(debug)
    typer.echo(settings_to_yaml(_load_or_exit(config)), nl=False)


@config_app.command("get")
def get(
    key: str = KEY_ARGUMENT,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Print a single setting."""
    _configure_logging(debug)
    settings = _load_or_exit(config)
    try:
        value = _to_plain(settings.get(key))
    except KeyError as exc:
        typer.secho(f"Unknown setting: {key}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if isinstance(value, (list, dict)):
        typer.echo(yaml.safe_dump(value, sort_keys=False), nl=False)
    else:
        typer.echo(value)


@config_app.command("validate")
def validate_config(file: Path):
    """Validate a preferences YAML file."""
    try:
        load_settings(file)
        typer.echo("✅ Preferences valid")
    except (FileNotFoundError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@config_app.command("init")
def init(dst: Path = DST_ARGUMENT, force: bool = FORCE_OPTION):
    """Write the default preferences to a YAML file."""
    if dst.exists() and not force:
        typer.secho(f"{dst} already exists (use --force to overwrite)", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    dump_settings(load_default_settings(), dst)
    typer.secho(f"Preferences written to {dst}", fg=typer.colors.GREEN)


@config_app.command("check-metrics")
def check_metrics(
    metrics: list[str] = METRICS_ARGUMENT,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Check that every metric the preferences refer to is available."""
    _configure_logging(debug)
    missing = _load_or_exit(config).missing_metrics(metrics)
    for name in missing:
        logger.warning("Referenced metric %s is not in the metrics table", name)

    if missing:
        typer.secho(f"{len(missing)} referenced metric(s) missing", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo("✅ All referenced metrics available")


# ───────────────────────── module entrypoint ────────────────────────────────
if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)
