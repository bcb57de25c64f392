"""Rich console utilities for styled terminal output.

This module provides a consistent interface for all installer output
using the Rich library. Errors go to stderr, everything else to stdout.
"""

from collections.abc import Generator, Iterable, Sequence
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
        "step": "magenta",
    }
)

_BANNER = r"""
  _____ _      ____ _   _ ___
 | ____| |    / ___| | | |_ _|
 |  _| | |   | |   | |_| || |
 | |___| |___| |___|  _  || |
 |_____|_____|\____|_| |_|___|
"""

# Shared console instances
console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message.

    Args:
        message: The message to display.

    """
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: The message to display.

    """
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message to stderr.

    Args:
        message: The message to display.

    """
    err_console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message.

    Args:
        message: The message to display.

    """
    console.print(f"[muted]•[/muted] {message}")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


def step_header(current: int, total: int, title: str) -> None:
    """Print a numbered pipeline step header.

    Args:
        current: One-based index of the step.
        total: Total number of steps in the pipeline.
        title: Short description of the step.

    """
    console.print()
    console.print(Rule(f"[info]▶ [Step {current}/{total}] {title}[/info]", style="step", align="left"))


def banner(subtitle: str, *, style: str = "cyan") -> None:
    """Print the Elchi banner with a subtitle underneath."""
    console.print(Panel(f"[{style}]{_BANNER}[/{style}]\n[bold]{subtitle}[/bold]", border_style=style, expand=False))


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while performing an operation.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def create_download_progress() -> Progress:
    """Create a progress bar configured for file downloads.

    Returns:
        A configured Progress instance for download operations.

    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console,
    )


def summary_panel(title: str, items: dict[str, str], *, border_style: str = "green") -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.
        border_style: Rich style for the panel border.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style=border_style))


def bullet_list(title: str, entries: Iterable[str], *, marker: str = "•") -> None:
    """Print a titled list of entries.

    Args:
        title: Heading printed above the entries.
        entries: Lines to print, one per entry.
        marker: Prefix for each entry.

    """
    if title:
        console.print(f"[info]{title}[/info]")
    for entry in entries:
        console.print(f"  {marker} {entry}")


def resource_table(title: str, columns: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
    """Print a table of cluster resources (nodes, pods, services).

    Args:
        title: Table title.
        columns: Column headers.
        rows: Row values, one sequence per resource.

    """
    table = Table(title=title, title_justify="left", header_style="bold")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def newline() -> None:
    """Print an empty line."""
    console.print()
