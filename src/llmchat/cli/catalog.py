"""CLI: llmchat models, llmchat personas"""

import json

import click
from rich.console import Console
from rich.table import Table

from llmchat.errors import DirectoryUnavailable

console = Console()


def _get_client():
    from llmchat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from llmchat.cli.main import _run
    return _run(coro)


@click.command("models")
@click.option("--json-output", "--json", is_flag=True)
def models_cmd(json_output: bool):
    """List available models."""

    async def _list():
        async with _get_client() as client:
            try:
                models = await client.list_models()
            except DirectoryUnavailable as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
        if json_output:
            click.echo(json.dumps([m.model_dump() for m in models], indent=2))
            return
        for m in models:
            console.print(f"[bold]{m.name}[/bold]" + (f"  [dim]{m.description}[/dim]" if m.description else ""))

    _run(_list())


@click.command("personas")
@click.option("--json-output", "--json", is_flag=True)
def personas_cmd(json_output: bool):
    """List available personas."""

    async def _list():
        async with _get_client() as client:
            try:
                personas = await client.list_personas()
            except DirectoryUnavailable as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
        if json_output:
            click.echo(json.dumps([p.model_dump() for p in personas], indent=2))
            return
        table = Table(title="Personas")
        table.add_column("Name", style="bold")
        table.add_column("Prompt")
        for p in personas:
            table.add_row(p.name, p.content[:80])
        console.print(table)

    _run(_list())
