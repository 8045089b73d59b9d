"""Interactive shell loop."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.prompt import Prompt

from zammy import __version__

if TYPE_CHECKING:
    from zammy.host import ZammyHost


def shell_command(host: ZammyHost) -> None:
    """Run the interactive shell until /exit or end of input."""
    host.console.print(
        Panel.fit(
            f"[bold cyan]zammy[/bold cyan] v{__version__}\n"
            "Type /help for commands, /exit to quit",
            border_style="cyan",
        )
    )
    asyncio.run(_async_shell(host))


async def _async_shell(host: ZammyHost) -> None:
    await host.start()

    try:
        while host.running:
            try:
                line = await asyncio.to_thread(
                    Prompt.ask, "\n[bold cyan]zammy[/bold cyan]", console=host.console
                )
            except (EOFError, KeyboardInterrupt):
                break

            if not line.strip():
                continue

            # One command runs to completion before the next prompt
            await host.dispatcher.dispatch(line)
    finally:
        await host.shutdown()

    host.console.print("\n[cyan]Goodbye![/cyan]")


async def run_once(host: ZammyHost, line: str) -> bool:
    """Start the host, run a single command line, and shut down."""
    await host.start()
    try:
        return await host.dispatcher.dispatch(line)
    finally:
        await host.shutdown()
