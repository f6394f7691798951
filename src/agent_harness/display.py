# display.py
# All terminal output for the agent harness.
#
# This module owns presentation entirely. The executor never formats strings;
# the CLI passes render() as the executor's on_event callback.
#
# Colour language:
#   cyan     run / turn boundaries
#   magenta  tool calls in flight
#   green    success / completed
#   yellow   incomplete by design (step limit, cancellation)
#   red      failures

import json

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from agent_harness.models import (
    AgentConfig,
    ExecutorEvent,
    RunFinished,
    RunResult,
    RunStatus,
    StepStarted,
    TextChunk,
    ToolCallFinished,
    ToolCallStarted,
    ToolStatus,
)

console = Console()

_STATUS_STYLE = {
    RunStatus.COMPLETED: ("COMPLETED ✓", "green"),
    RunStatus.STEP_LIMIT_REACHED: ("STEP LIMIT REACHED", "yellow"),
    RunStatus.CANCELLED: ("CANCELLED", "yellow"),
    RunStatus.FAILED: ("FAILED ✗", "red"),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Run entry
# ---------------------------------------------------------------------------


def banner(config: AgentConfig, tool_ids: list[str], max_steps: int) -> None:
    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]{escape(config.name)}[/bold cyan]\n"
            f"[dim]Model     :[/dim] [white]{escape(config.provider + '/' + config.model)}[/white]\n"
            f"[dim]Tools     :[/dim] [white]{', '.join(tool_ids) or 'none'}[/white]\n"
            f"[dim]Max steps :[/dim] [white]{max_steps}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def prompt_received(prompt: str) -> None:
    console.print()
    console.print(Rule("[cyan]NEW REQUEST[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(prompt)}[/white]",
            title=_label("USER PROMPT", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Streaming events
# ---------------------------------------------------------------------------


def turn_started(turn: int) -> None:
    console.print()
    console.print(f"[bold cyan]  TURN {turn}[/bold cyan]")


def text_chunk(text: str) -> None:
    console.print(text, end="", style="white", markup=False, highlight=False)


def tool_call_started(event: ToolCallStarted) -> None:
    console.print()
    console.print(
        f"  [magenta]Step {event.step}[/magenta]  [bold white]{event.tool_id}[/bold white]"
        f"  [dim]{escape(_mono(json.dumps(event.input), 100))}[/dim]"
    )


def tool_call_finished(event: ToolCallFinished) -> None:
    record = event.record
    if record.status == ToolStatus.SUCCESS:
        message = (record.output or {}).get("message", "ok")
        console.print(f"  [bold green]✓[/bold green] [dim]{escape(_mono(str(message), 120))}[/dim]")
    else:
        console.print(f"  [bold red]✗[/bold red] [red]{escape(_mono(record.error or '', 120))}[/red]")


def render(event: ExecutorEvent) -> None:
    """on_event callback: draw one executor event."""
    if isinstance(event, StepStarted):
        turn_started(event.turn)
    elif isinstance(event, TextChunk):
        text_chunk(event.text)
    elif isinstance(event, ToolCallStarted):
        tool_call_started(event)
    elif isinstance(event, ToolCallFinished):
        tool_call_finished(event)
    elif isinstance(event, RunFinished):
        console.print()


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def execution_summary(result: RunResult) -> None:
    if not result.records:
        return
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Step", justify="center", width=6)
    table.add_column("Tool", width=20)
    table.add_column("Status", justify="center", width=8)
    table.add_column("Input / Error", style="dim white")

    for record in result.records:
        ok = record.status == ToolStatus.SUCCESS
        table.add_row(
            str(record.step),
            record.tool_id,
            "[bold green]✓[/bold green]" if ok else "[bold red]✗[/bold red]",
            escape(_mono(json.dumps(record.input) if ok else record.error or "", 60)),
        )

    console.print(
        Panel(table, title="[dim]EXECUTION SUMMARY[/dim]", border_style="dim", padding=(0, 1))
    )


def final_result(result: RunResult) -> None:
    tag, color = _STATUS_STYLE[result.status]
    body = escape(result.text) if result.text else "[dim](no text)[/dim]"
    if result.status == RunStatus.FAILED:
        reason = result.failure_reason.value if result.failure_reason else "unknown"
        body = f"[bold white]{escape(result.error or '')}[/bold white]\n[dim]reason: {reason}[/dim]"
    elif result.status == RunStatus.STEP_LIMIT_REACHED:
        body += (
            "\n\n[dim]The run stopped at its step limit. Files changed so far are kept; "
            "resume with a new run to continue.[/dim]"
        )
    console.print()
    console.print(
        Panel(
            body,
            title=_label(tag, color),
            border_style=color,
            padding=(1, 2),
        )
    )
    console.print()


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(reason)}[/bold white]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
