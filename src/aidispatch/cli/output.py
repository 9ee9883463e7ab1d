"""
Rich rendering for CLI results.

Commands hand over domain objects (responses, health records, provider
rows) and this module decides how they look on the terminal.
"""

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from aidispatch.providers import AIResponse, ProviderHealth

console = Console()

_MARKS = {
    "success": "[green]✓[/green]",
    "error": "[red]✗[/red]",
    "warning": "[yellow]![/yellow]",
    "info": "[blue]i[/blue]",
}


def _mark(kind: str, message: str) -> None:
    # Only the mark is markup; message text is printed as-is
    line = Text.from_markup(f"{_MARKS[kind]} ")
    line.append(message)
    console.print(line)


def print_success(message: str) -> None:
    _mark("success", message)


def print_error(message: str) -> None:
    _mark("error", message)


def print_warning(message: str) -> None:
    _mark("warning", message)


def print_info(message: str) -> None:
    _mark("info", message)


def format_cost(cost: float | None) -> str:
    """Format a USD cost, or a dash when unpriced."""
    if cost is None:
        return "-"
    return f"${cost:.6f}"


def format_tokens(tokens: int | None) -> str:
    return "-" if tokens is None else str(tokens)


def print_response(response: AIResponse) -> None:
    """Show a dispatch result: content panel and stats, or the error."""
    if not response.success:
        print_error(response.error or "Unknown error")
        if len(response.providers_tried) > 1:
            console.print(Text(f"tried: {', '.join(response.providers_tried)}", style="dim"))
        return

    title = Text(f"{response.provider} - {response.model}")
    console.print(Panel(Text(response.content), title=title))
    console.print(
        Text(
            f"tokens: {format_tokens(response.tokens_used)}"
            f"  cost: {format_cost(response.cost)}"
            f"  time: {response.processing_time_ms:.0f}ms",
            style="dim",
        )
    )


def print_health(result: ProviderHealth) -> None:
    """Show one health check result."""
    if result.error is not None:
        print_error(f"{result.model}: {result.status.value} - {result.error}")
        return

    print_success(
        f"{result.model} via {result.provider}: "
        f"{result.response_preview!r} ({result.processing_time_ms:.0f}ms, "
        f"cost {format_cost(result.cost)})"
    )


def print_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str | None = None,
) -> None:
    """Print rows under the given column headers."""
    table = Table(title=title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*(Text(str(cell)) for cell in row))
    console.print(table)
