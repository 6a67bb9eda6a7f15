# Terminal UI helpers shared by the chat loops.
# Created: 2026-09-15
#
# Panels, prompts and message display built on rich. Prompts raise
# PromptCancelled on Ctrl+C / Ctrl+D so loops can end gracefully.

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from codev.chat.models import Message, MessageRole
from codev.render.markdown import render_markdown

console = Console()


class PromptCancelled(Exception):
    """The user interrupted a prompt."""


def panel(
    body: str | Text,
    *,
    title: str | None = None,
    style: str = "cyan",
    title_align: str = "center",
) -> Panel:
    """Rounded box around ``body`` (strings are read as rich markup)."""
    return Panel(
        body,
        title=title,
        title_align=title_align,
        border_style=style,
        padding=(1, 2),
        expand=False,
    )


def ansi_panel(rendered: str, *, title: str, style: str) -> Panel:
    """Box around text that already carries ANSI styling."""
    return panel(Text.from_ansi(rendered), title=title, style=style, title_align="left")


def print_error(message: str) -> None:
    console.print(panel(Text(f"Error: {message}", style="red"), style="red"))


def ask_text(message: str, *, min_length: int = 1, too_short: str | None = None) -> str:
    """Prompt until a long enough, non-blank answer is given."""
    while True:
        try:
            value = Prompt.ask(message, console=console)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptCancelled() from e
        value = (value or "").strip()
        if not value:
            console.print("[yellow]Message cannot be empty[/yellow]")
            continue
        if len(value) < min_length:
            hint = too_short or f"Please enter at least {min_length} characters"
            console.print(f"[yellow]{hint}[/yellow]")
            continue
        return value


def ask_confirm(message: str, *, default: bool = False) -> bool:
    try:
        return Confirm.ask(message, default=default, console=console)
    except (KeyboardInterrupt, EOFError) as e:
        raise PromptCancelled() from e


def ask_choice(message: str, options: Sequence[tuple[str, str, str]], default: str) -> str:
    """Numbered single-choice menu. ``options`` are (value, label, hint)."""
    table = Table.grid(padding=(0, 2))
    for index, (_, label, hint) in enumerate(options, start=1):
        table.add_row(f"[cyan]{index}[/cyan]", f"[bold]{label}[/bold]", f"[dim]{hint}[/dim]")
    console.print(table)

    choices = [str(i) for i in range(1, len(options) + 1)]
    default_index = next(
        (str(i) for i, (value, _, _) in enumerate(options, start=1) if value == default), "1"
    )
    try:
        picked = Prompt.ask(message, choices=choices, default=default_index, console=console)
    except (KeyboardInterrupt, EOFError) as e:
        raise PromptCancelled() from e
    return options[int(picked) - 1][0]


def ask_multi_choice(message: str, options: Sequence[tuple[str, str, str]]) -> list[str]:
    """Numbered multi-choice menu; answer like ``1,3``. Empty answer selects nothing."""
    table = Table.grid(padding=(0, 2))
    for index, (_, label, hint) in enumerate(options, start=1):
        table.add_row(f"[cyan]{index}[/cyan]", f"[bold]{label}[/bold]", f"[dim]{hint}[/dim]")
    console.print(table)

    while True:
        try:
            answer = Prompt.ask(message, default="", show_default=False, console=console)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptCancelled() from e
        try:
            return parse_multi_choice(answer, len(options), [value for value, _, _ in options])
        except ValueError as e:
            console.print(f"[yellow]{e}[/yellow]")


def parse_multi_choice(answer: str, count: int, values: Sequence[str]) -> list[str]:
    """Turn ``"1, 3"`` into the matching values, in menu order, without duplicates."""
    picked: set[int] = set()
    for part in answer.replace(" ", ",").split(","):
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= count:
            raise ValueError(f"Pick numbers between 1 and {count}, separated by commas")
        picked.add(int(part))
    return [values[i - 1] for i in sorted(picked)]


def display_messages(messages: Sequence[Message], assistant_title: str = "Assistant") -> None:
    """Print stored messages; assistant replies are rendered as Markdown."""
    for message in messages:
        content = message.content if isinstance(message.content, str) else str(message.content)
        if message.role == MessageRole.USER:
            console.print(panel(Text(content), title="You", style="blue", title_align="left"))
        elif message.role == MessageRole.ASSISTANT:
            console.print(
                ansi_panel(render_markdown(content), title=assistant_title, style="green")
            )
