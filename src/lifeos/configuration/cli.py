"""CLI commands for managing LifeOS pattern engine settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from lifeos.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    Settings,
    bootstrap_settings,
    load_settings,
)
from lifeos.errors import ConfigurationError


config_app = typer.Typer(help="Manage LifeOS configuration")


@config_app.command("init")
def init_config(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config file"),
    timezone: Optional[str] = typer.Option(None, help="IANA timezone for calendar features"),
    seed: Optional[int] = typer.Option(None, help="Seed for K-means clustering"),
    require_seed: Optional[bool] = typer.Option(
        None, "--require-seed/--no-require-seed", help="Fail when no clustering seed is set"
    ),
    force: bool = typer.Option(False, "--force", help="Replace an existing config with defaults"),
) -> None:
    """Initialize the LifeOS settings file."""

    if force and config_path.exists():
        config_path.unlink()

    overrides = {}
    if timezone:
        overrides.setdefault("analysis", {}).setdefault("features", {})["timezone"] = timezone
    if seed is not None:
        overrides.setdefault("analysis", {}).setdefault("clustering", {})["seed"] = seed
    if require_seed is not None:
        overrides.setdefault("analysis", {}).setdefault("clustering", {})[
            "require_seed"
        ] = require_seed

    try:
        settings = bootstrap_settings(path=config_path, overrides=overrides)
    except ConfigurationError as e:
        typer.echo(f"❌ {e.user_message}: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Configuration initialized at {config_path}")
    typer.echo(_summarize_settings(settings))


@config_app.command("show")
def show_config(config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config")) -> None:
    """Display the configuration stored on disk."""

    try:
        settings = load_settings(config_path)
    except FileNotFoundError:
        typer.echo(f"❌ No configuration at {config_path}; run 'lifeos config init'", err=True)
        raise typer.Exit(code=1)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration invalid: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(_summarize_settings(settings))


@config_app.command("validate")
def validate_config(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config file"),
) -> None:
    """Validate configuration file for correctness."""

    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        typer.echo(f"❌ Configuration invalid: {e}", err=True)
        raise typer.Exit(code=1)
    analysis = settings.analysis
    typer.echo(f"✅ Configuration valid at {config_path}")
    typer.echo(f"   Timezone: {analysis.features.timezone}")
    typer.echo(f"   Clustering: k={analysis.clustering.k} seed={analysis.clustering.seed}")
    typer.echo(f"   Prediction horizon: {analysis.prediction.horizon}")


def _summarize_settings(settings: Settings) -> str:
    data = settings.model_dump(mode="json")
    return json.dumps(data, indent=2)
