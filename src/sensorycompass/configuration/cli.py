"""CLI commands for managing analytics configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from sensorycompass.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    PRESETS,
    AnalyticsConfiguration,
    ConfigurationProvider,
    bootstrap_configuration,
)
from sensorycompass.errors import ConfigurationError, InvalidConfigError
from sensorycompass.errors.user_messages import format_error_for_cli


console = Console()
config_app = typer.Typer(help="Manage analytics configuration")


def _open_provider(config_path: Path) -> ConfigurationProvider:
    config = bootstrap_configuration(path=config_path)
    return ConfigurationProvider(config, path=config_path)


def _parse_value(raw: str) -> Any:
    """Interpret CLI text as JSON where possible, else keep the string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _render(config: AnalyticsConfiguration) -> Table:
    table = Table(title="Analytics Configuration")
    table.add_column("Section", style="cyan")
    table.add_column("Setting")
    table.add_column("Value", justify="right", style="green")
    for section_name, values in config.model_dump(mode="json").items():
        for index, (field_name, value) in enumerate(values.items()):
            table.add_row(section_name if index == 0 else "", field_name, str(value))
    return table


def _fail(error: ConfigurationError) -> None:
    console.print(f"[red]{format_error_for_cli(error)}[/red]")
    raise typer.Exit(code=1)


@config_app.command("show")
def show_config(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Display the effective configuration."""

    try:
        provider = _open_provider(config_path)
    except ConfigurationError as exc:
        _fail(exc)
        return
    if json_output:
        typer.echo(provider.export_config())
    else:
        console.print(_render(provider.get_config()))


@config_app.command("preset")
def apply_preset(
    name: str = typer.Argument(..., help=f"Preset name ({', '.join(PRESETS)})"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
) -> None:
    """Switch to a named preset."""

    try:
        provider = _open_provider(config_path)
        provider.set_preset(name)
    except ConfigurationError as exc:
        _fail(exc)
        return
    preset = PRESETS[name]
    console.print(f"[green]Applied preset {preset.name}[/green]: {preset.description}")


@config_app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Setting key, e.g. pattern_analysis.min_data_points"),
    value: str = typer.Argument(..., help="New value"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
) -> None:
    """Update a single configuration value."""

    section, _, field_name = key.partition(".")
    try:
        if not field_name:
            raise InvalidConfigError(f"Key must look like section.field, got '{key}'")
        provider = _open_provider(config_path)
        provider.update({section: {field_name: _parse_value(value)}})
    except ConfigurationError as exc:
        _fail(exc)
        return
    console.print(f"Updated {key}")


@config_app.command("reset")
def reset_config(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
) -> None:
    """Restore the default configuration."""

    try:
        provider = _open_provider(config_path)
    except ConfigurationError:
        # A broken file is exactly what reset is for
        provider = ConfigurationProvider(path=config_path)
    provider.reset_to_defaults()
    console.print(f"Configuration reset at {config_path}")


__all__ = ["config_app"]
