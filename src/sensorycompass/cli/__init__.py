"""Command line entry points for SensoryCompass."""

import logging

from typer import Option, Typer

from .analyze import analyze_app
from ..configuration.cli import config_app


cli = Typer(help="SensoryCompass analytics command line tools")
cli.add_typer(analyze_app, name="analyze")
cli.add_typer(config_app, name="config")


@cli.callback()
def main(verbose: bool = Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["cli", "analyze_app", "config_app"]
