"""CLI: llmchat config show|set"""

import click
from rich.console import Console
from rich.table import Table

from llmchat.config import CONFIG_FILE, ClientSettings, load_config, save_config, load_settings

console = Console()

SETTABLE = {
    "base-url": "base_url",
    "token": "token",
    "model": "default_model",
    "persona": "default_persona",
    "timeout": "timeout",
    "stream-timeout": "stream_timeout",
}


@click.group()
def config():
    """Client settings."""


@config.command("show")
def config_show():
    """Show effective settings (file + environment)."""
    settings = load_settings()
    table = Table(title=str(CONFIG_FILE))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        if key == "token" and value:
            value = value[:4] + "…"
        if isinstance(value, list):
            value = " ".join(value)
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@config.command("set")
@click.argument("key", type=click.Choice(sorted(SETTABLE)))
@click.argument("value")
def config_set(key: str, value: str):
    """Set a value in the config file."""
    cfg = load_config()
    cfg[SETTABLE[key]] = value
    try:
        ClientSettings.model_validate(cfg)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=key)
    save_config(cfg)
    console.print(f"[green]{key} saved to {CONFIG_FILE}[/green]")
