"""Terminal front-end: renders display events and feeds user input."""

from __future__ import annotations

import asyncio
import json
import logging
import signal

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.panel import Panel

from streamchat import __version__
from streamchat.config import ChatConfig, load_config
from streamchat.core.orchestrator import ToolCallOrchestrator
from streamchat.errors import ConversationBusyError
from streamchat.events.bus import EventBus
from streamchat.store import HistoryStore
from streamchat.tools.builtin import register_builtins
from streamchat.tools.registry import ToolRegistry
from streamchat.types import DisplayEvent, EventType, Role

console = Console()


class StreamingDisplay:
    """Renders conversation events to the terminal in real time."""

    def __init__(self, con: Console):
        self.con = con
        self._streaming = False
        self._thinking = False

    def handle(self, event: DisplayEvent):
        data = event.data

        if event.type == EventType.REASONING_DELTA:
            if not self._thinking:
                self._flush()
                self._thinking = True
                self.con.print("[dim italic]thinking: [/dim italic]", end="")
            self.con.print(f"[dim italic]{data['text']}[/dim italic]", end="", highlight=False)

        elif event.type == EventType.CONTENT_DELTA:
            if not self._streaming:
                self._flush()
                self._streaming = True
            self.con.print(data["text"], end="", highlight=False, markup=False)

        elif event.type == EventType.TOOL_CALL_STARTED:
            self._flush()
            args = json.dumps(data.get("arguments", {}))
            if len(args) > 120:
                args = args[:120] + "..."
            self.con.print(f"[yellow]> {data['name']}[/yellow] [dim]{args}[/dim]")

        elif event.type == EventType.TOOL_RESULT:
            ok = data.get("status") == "SUCCESS"
            icon = "[green]OK[/green]" if ok else "[red]FAIL[/red]"
            out = json.dumps(data.get("data", {}), indent=2)
            if len(out) > 600:
                out = out[:600] + "\n..."
            self.con.print(Panel(out, title=f"{icon} {data.get('name', '')}",
                                 border_style="dim", expand=False))

        elif event.type == EventType.STREAM_ERROR:
            self._flush()
            self.con.print(f"[bold red]Error ({data['kind']}):[/bold red] {data['message']}")

        elif event.type == EventType.CONTEXT_EVICTED:
            self._flush()
            self.con.print(f"[magenta]~ dropped {data['count']} oldest messages to fit the context window[/magenta]")

        elif event.type == EventType.STREAM_COMPLETE:
            self._flush()

    def _flush(self):
        if self._streaming or self._thinking:
            self.con.print()
            self._streaming = False
            self._thinking = False


def _print_stats(orchestrator: ToolCallOrchestrator):
    stats = orchestrator.token_stats
    console.print(
        f"[dim]tokens: {stats.window_tokens}/{orchestrator.config.context_window} "
        f"({stats.percentage_of_window}%), reasoning {stats.reasoning_tokens}, "
        f"total {stats.total}[/dim]"
    )


def _print_history(orchestrator: ToolCallOrchestrator):
    for msg in orchestrator.history:
        if msg.role == Role.USER:
            console.print(f"[bold green]you>[/bold green] {msg.content}", highlight=False)
        elif msg.role == Role.TOOL:
            console.print(f"[dim]{msg.tool_name}: {msg.content[:80]}[/dim]", highlight=False)
        elif msg.is_tool_call:
            console.print(f"[yellow]{msg.content}[/yellow]", highlight=False)
        else:
            console.print(msg.content, highlight=False, markup=False)


async def _handle_command(cmd: str, orchestrator: ToolCallOrchestrator) -> bool:
    """Handle a slash command.  Returns False to exit the REPL."""
    if cmd in ("/exit", "/quit"):
        return False
    if cmd == "/clear":
        await orchestrator.clear()
        console.print("[dim]History cleared.[/dim]")
    elif cmd == "/stats":
        _print_stats(orchestrator)
    elif cmd == "/history":
        _print_history(orchestrator)
    else:
        console.print("[dim]Commands: /clear /stats /history /exit[/dim]")
    return True


async def _submit(orchestrator: ToolCallOrchestrator, text: str):
    """Run one turn with Ctrl+C bound to :meth:`ToolCallOrchestrator.cancel`."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
        bound = True
    except (NotImplementedError, RuntimeError):
        # No loop signal support (Windows); KeyboardInterrupt still ends the turn.
        bound = False
    try:
        await orchestrator.submit_user_message(text)
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
    finally:
        if bound:
            loop.remove_signal_handler(signal.SIGINT)


async def _repl(orchestrator: ToolCallOrchestrator):
    session: PromptSession[str] = PromptSession()
    while True:
        try:
            with patch_stdout():
                text = await session.prompt_async("❯ ")
        except (EOFError, KeyboardInterrupt):
            return
        text = text.strip()
        if not text:
            continue
        if text.startswith("/"):
            if not await _handle_command(text, orchestrator):
                return
            continue

        try:
            await _submit(orchestrator, text)
        except ConversationBusyError as e:
            console.print(f"[red]{e}[/red]")


async def _run(config: ChatConfig, message: str | None, persist: bool):
    bus = EventBus()
    display = StreamingDisplay(console)
    bus.subscribe("*", display.handle)

    registry = ToolRegistry()
    register_builtins(registry)

    store = HistoryStore(config.history_path) if persist else None
    orchestrator = ToolCallOrchestrator(config, registry=registry, event_bus=bus, store=store)
    try:
        if orchestrator.history and orchestrator.history[-1].role == Role.TOOL:
            console.print("[dim]Resuming after pending tool result...[/dim]")
            await orchestrator.resume()

        if message:
            await _submit(orchestrator, message)
        else:
            await _repl(orchestrator)
    finally:
        await orchestrator.close()
        if store is not None:
            store.close()


@click.command()
@click.option("--config", "-c", "config_path", default=None,
              help="Path to streamchat.yaml (auto-detected from CWD or ~/.config/streamchat/)")
@click.option("--message", "-m", default=None, help="Send one message non-interactively and exit")
@click.option("--model", default=None, help="Override the configured model")
@click.option("--no-history", is_flag=True, help="Do not load or save conversation history")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def main(config_path: str | None, message: str | None, model: str | None,
         no_history: bool, verbose: bool):
    """streamchat - streaming chat with tool calling."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    config = load_config(config_path)
    if model:
        config.model = model

    console.print(
        f"[bold cyan]streamchat[/bold cyan] [dim]v{__version__} · {config.model} @ {config.base_url}[/dim]"
    )
    if not message:
        console.print("[dim]Type /help for commands[/dim]\n")

    asyncio.run(_run(config, message, persist=not no_history))


if __name__ == "__main__":
    main()
