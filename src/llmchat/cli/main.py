"""
llmchat CLI — `llmchat` command.

Commands:
  llmchat config show|set        Client settings (~/.llmchat/config.json)
  llmchat models                 Available models
  llmchat personas               Available personas
  llmchat sessions <cmd>         Session list/create/delete/history
  llmchat chat [session-id]      Interactive REPL chat
  llmchat send <message>         One-shot turn
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install llmchat-client[cli]")

from llmchat.client import AsyncChatClient
from llmchat.config import load_settings

console = Console()


def _get_client() -> AsyncChatClient:
    return AsyncChatClient(settings=load_settings())


def _run(coro):
    return asyncio.run(coro)


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logging")
def main(verbose: int):
    """llmchat — chat with an LLM backend from the terminal."""
    _setup_logging(verbose)


# Register subcommands from separate modules
from llmchat.cli.config import config
from llmchat.cli.catalog import models_cmd, personas_cmd
from llmchat.cli.chat import chat_cmd, send_cmd
from llmchat.cli.sessions import sessions

main.add_command(config)
main.add_command(models_cmd)
main.add_command(personas_cmd)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(sessions)


if __name__ == "__main__":
    main()
