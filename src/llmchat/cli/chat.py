"""CLI: llmchat chat, llmchat send"""

import json
from typing import Any, Optional

import click
from rich.console import Console
from rich.live import Live

from llmchat.client import AsyncChatClient
from llmchat.errors import DirectoryUnavailable, ValidationError
from llmchat.models.message import Role, TurnResult, TurnState
from llmchat.render import render

console = Console()

HELP = "Commands: /attach PATH, /files, /unstage ID, /quit"


def _get_client():
    from llmchat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from llmchat.cli.main import _run
    return _run(coro)


async def _open_session(client: AsyncChatClient, session_id: Optional[str], quiet: bool = False) -> str:
    await client.refresh_sessions()
    if session_id:
        await client.switch_session(session_id)
        return session_id
    with console.status("Creating session..."):
        session = await client.create_session()
    if not quiet:
        console.print(f"[dim]Session: {session.id}[/dim]")
    return session.id


async def _stream_turn(client: AsyncChatClient, text: str) -> Optional[TurnResult]:
    """Send a turn and redraw the assistant reply as deltas arrive."""
    with Live(console=console, refresh_per_second=12, transient=False) as live:
        def on_change(kind: str, payload: dict[str, Any]) -> None:
            if kind not in ("delta", "finalized"):
                return
            message = client.store.find(payload["message_id"])
            if message is not None and message.role == Role.ASSISTANT:
                live.update(render(message.content))

        remove = client.subscribe(on_change)
        try:
            result = await client.send(text)
        finally:
            remove()
    return result


def _report(result: Optional[TurnResult]) -> None:
    if result is None:
        console.print("[yellow]Nothing sent (empty message or a reply is still streaming).[/yellow]")
        return
    for name in result.failed_uploads:
        console.print(f"[red]Upload failed: {name}[/red]")
    if result.state == TurnState.FAILED:
        console.print(f"[red]{result.error}[/red]")
    elif result.state == TurnState.ABANDONED:
        console.print("[dim][reply abandoned][/dim]")


def _stage(client: AsyncChatClient, path: str) -> None:
    try:
        attachment = client.stage(path)
    except ValidationError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[dim]Staged {attachment.name} ({attachment.size} bytes) id={attachment.id[:8]}[/dim]")


@click.command("chat")
@click.argument("session_id", required=False)
def chat_cmd(session_id: Optional[str]):
    """Interactive chat."""

    async def _chat():
        async with _get_client() as client:
            try:
                await _open_session(client, session_id)
            except (DirectoryUnavailable, ValueError) as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
            for m in client.snapshot().messages:
                style = "cyan" if m.role == Role.USER else "green"
                console.print(f"[{style}]{m.role.value}:[/{style}]")
                console.print(render(m.content))
            console.print(f"[cyan]Type your message (Ctrl+C to exit). {HELP}[/cyan]\n")
            try:
                while True:
                    msg = click.prompt("You", prompt_suffix=": ")
                    if msg.lower() in ("/quit", "/exit"):
                        break
                    if msg.startswith("/attach "):
                        _stage(client, msg[len("/attach "):].strip())
                        continue
                    if msg == "/files":
                        for a in client.attachments.staged:
                            console.print(f"  {a.id[:8]}  {a.name}  {a.size} bytes")
                        continue
                    if msg.startswith("/unstage "):
                        prefix = msg[len("/unstage "):].strip()
                        for a in client.attachments.staged:
                            if a.id.startswith(prefix):
                                client.unstage(a.id)
                        continue
                    console.print("[green]Assistant:[/green]")
                    _report(await _stream_turn(client, msg))
            except (KeyboardInterrupt, EOFError, click.Abort):
                pass

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("-s", "--session", "session_id", default=None)
@click.option("-a", "--attach", "attachments", multiple=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, session_id: Optional[str], attachments: tuple[str, ...], json_output: bool):
    """Send a one-shot message."""

    async def _send():
        async with _get_client() as client:
            try:
                sid = await _open_session(client, session_id, quiet=json_output)
            except (DirectoryUnavailable, ValueError) as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
            for path in attachments:
                _stage(client, path)
            if json_output:
                result = await client.send(message)
                click.echo(json.dumps({"session_id": sid, **(result.model_dump(mode="json") if result else {})}))
            else:
                result = await _stream_turn(client, message)
                _report(result)
        if result is None or result.state == TurnState.FAILED:
            raise SystemExit(1)

    _run(_send())
