"""Rich console building blocks for pipeline loggers.

``BasePipelineLogger`` routes plain messages through Python logging and
draws structured output (per-collection blocks, end-of-run summary panels)
on the shared rich console.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generator

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sticker_drive.utils.logging import console

if TYPE_CHECKING:
    from typing import Self


class StructuredBlock:
    """Indented key-value block printed under a bold title.

    Usage:
        with logger.block("Campaign Stickers") as block:
            block.field("folder ID", "1AbC...")
            block.result("synced 12 stickers")

    Output:
        Campaign Stickers
            folder ID: 1AbC...
            ✓ synced 12 stickers
    """

    def __init__(self, title: str, parent: "BasePipelineLogger") -> None:
        self.title = title
        self.console = parent.console

    def __enter__(self) -> "Self":
        self.console.print(f"\n[bold]{self.title}[/bold]")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        pass

    def field(self, key: str, value: Any, color: str | None = None) -> None:
        shown = f"[{color}]{value}[/{color}]" if color else f"{value}"
        self.console.print(f"    [dim]{key}:[/dim] {shown}")

    def result(self, message: str, success: bool = True) -> None:
        icon = "[green]✓[/green]" if success else "[red]✗[/red]"
        self.console.print(f"    {icon} {message}")

    def skip(self, reason: str) -> None:
        self.console.print(f"    [dim]Skipped: {reason}[/dim]")


class BasePipelineLogger(ABC):
    """Shared console plus level methods; subclasses add domain events."""

    def __init__(self, logger_name: str | None = None) -> None:
        self.console: Console = console
        self._logger = logging.getLogger(logger_name or self.__class__.__module__)

    @contextmanager
    def block(self, title: str) -> Generator[StructuredBlock, None, None]:
        with StructuredBlock(title, self) as block:
            yield block

    # -------------------------------------------------------------------------
    # Standard Logging (goes through Python logging)
    # -------------------------------------------------------------------------

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    # -------------------------------------------------------------------------
    # Summary Panel
    # -------------------------------------------------------------------------

    def print_summary(
        self,
        pipeline_name: str,
        *,
        elapsed: float,
        stats: dict[str, int | str],
        style: str = "cyan",
    ) -> None:
        """Print a ``<pipeline_name> Complete`` panel of stats plus elapsed time."""
        table = Table.grid(padding=(0, 2))
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="green")
        for label, value in stats.items():
            table.add_row(label, f"{value:,}" if isinstance(value, int) else str(value))
        table.add_row("Time elapsed", f"{elapsed:.1f}s")

        self.console.print()
        self.console.print(
            Panel(
                table,
                title=f"[bold]{pipeline_name} Complete[/bold]",
                border_style=style,
                padding=(1, 2),
            )
        )

    @abstractmethod
    def summary(self, **kwargs: Any) -> None:
        """Print the end-of-run summary."""
        ...
