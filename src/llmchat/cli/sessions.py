"""CLI: llmchat sessions list|create|delete|history"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from llmchat.errors import DirectoryUnavailable
from llmchat.render import format_relative, render

console = Console()


def _get_client():
    from llmchat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from llmchat.cli.main import _run
    return _run(coro)


@click.group()
def sessions():
    """Session management."""


@sessions.command("list")
@click.option("--json-output", "--json", is_flag=True)
def sessions_list(json_output):
    """List sessions."""

    async def _list():
        async with _get_client() as client:
            try:
                result = await client.refresh_sessions()
            except DirectoryUnavailable as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
        if json_output:
            click.echo(json.dumps([s.model_dump(mode="json") for s in result], indent=2))
            return
        table = Table(title=f"Sessions ({len(result)})")
        table.add_column("ID", style="bold")
        table.add_column("Title")
        table.add_column("Persona")
        table.add_column("Messages", justify="right")
        table.add_column("Last activity")
        for s in result:
            table.add_row(s.id, s.title, s.persona or "", str(s.message_count), format_relative(s.last_activity))
        console.print(table)

    _run(_list())


@sessions.command("create")
@click.option("-m", "--model", "model_name", default=None, help="Model name (defaults to config)")
@click.option("-p", "--persona", default=None)
def sessions_create(model_name: Optional[str], persona: Optional[str]):
    """Create a new session."""

    async def _create():
        async with _get_client() as client:
            try:
                with console.status("Creating session..."):
                    session = await client.create_session(model_name, persona)
            except (DirectoryUnavailable, ValueError) as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
        console.print(f"[green]Session created: {session.id}[/green]")

    _run(_create())


@sessions.command("delete")
@click.argument("session_id")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
def sessions_delete(session_id, yes):
    """Delete a session."""
    if not yes:
        click.confirm(f"Delete session {session_id}? This cannot be undone.", abort=True)

    async def _delete():
        async with _get_client() as client:
            try:
                with console.status("Deleting..."):
                    await client.delete_session(session_id)
            except DirectoryUnavailable as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
        console.print(f"[green]Session {session_id} deleted.[/green]")

    _run(_delete())


@sessions.command("history")
@click.argument("session_id")
def sessions_history(session_id):
    """Show the stored transcript of a session."""

    async def _history():
        async with _get_client() as client:
            try:
                await client.switch_session(session_id)
            except DirectoryUnavailable as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
            for m in client.snapshot().messages:
                console.print(f"[bold cyan]{m.role.value}[/bold cyan]")
                console.print(render(m.content))

    _run(_history())
