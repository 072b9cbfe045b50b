"""Command line entry points for the LifeOS pattern engine."""

from typer import Typer

from ..configuration.cli import config_app
from .analyze import analyze_app
from .feedback import feedback_app


cli = Typer(help="LifeOS pattern engine command line tools")
cli.add_typer(analyze_app, name="analyze")
cli.add_typer(feedback_app, name="feedback")
cli.add_typer(config_app, name="config")

__all__ = ["cli", "analyze_app", "feedback_app", "config_app"]
