"""
Batch Progress Tracker - live batch-level progress display

Features:
- Rich progress bar with a statistics panel
- Plain log-line output when rich display is turned off
  (non-interactive terminals, CI logs)
- Time remaining estimation
"""
from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    BarColumn,
    TextColumn,
    TimeRemainingColumn,
    TimeElapsedColumn,
)
from rich.table import Table

logger = logging.getLogger(__name__)


class BatchProgressTracker:
    """
    Tracks and displays progress for one batch

    The scheduler calls start(), update_window_started(),
    update_item_completed() and stop(); everything else is display.
    """

    def __init__(
        self,
        total_items: int,
        batch_name: str = "Batch",
        use_rich: bool = True,
        console: Optional[Console] = None,
    ):
        """
        Initialize progress tracker

        Args:
            total_items: Total number of items in the batch
            batch_name: Name shown in the display
            use_rich: Use a live rich display (default: True)
            console: Rich console to draw on (created if not provided)
        """
        self.total_items = total_items
        self.batch_name = batch_name
        self.use_rich = use_rich

        self.successful_items = 0
        self.failed_items = 0
        self.start_time: Optional[float] = None
        self.current_window: Optional[int] = None
        self.total_windows: Optional[int] = None
        self.last_error: Optional[str] = None

        self.console = (console or Console()) if use_rich else None
        self.progress: Optional[Progress] = None
        self.task_id = None
        self.live: Optional[Live] = None

    @property
    def finished_items(self) -> int:
        return self.successful_items + self.failed_items

    @property
    def success_rate(self) -> float:
        finished = self.finished_items
        return (self.successful_items / finished * 100) if finished > 0 else 0.0

    def start(self) -> None:
        """Start tracking batch progress"""
        self.start_time = time.time()

        if self.use_rich:
            self.progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                TextColumn("•"),
                TextColumn("{task.completed}/{task.total} items"),
                TimeElapsedColumn(),
                TextColumn("•"),
                TimeRemainingColumn(),
            )
            self.task_id = self.progress.add_task(
                f"[cyan]{self.batch_name}",
                total=self.total_items,
            )
            self.live = Live(
                self._generate_display(),
                refresh_per_second=4,
                console=self.console,
            )
            self.live.start()
        else:
            logger.info(f"Processing {self.total_items} items: {self.batch_name}")

    def stop(self) -> None:
        """Stop tracking and display final summary"""
        if self.live:
            self.live.stop()
            self.live = None

        self._print_summary()

    def update_window_started(self, window: int, total_windows: int, size: int) -> None:
        """
        Update progress when a window starts

        Args:
            window: Window number (1-based)
            total_windows: Number of windows in the batch
            size: Items in this window
        """
        self.current_window = window
        self.total_windows = total_windows

        if self.use_rich:
            self._refresh()
        else:
            logger.info(f"Processing window {window}/{total_windows} ({size} items)")

    def update_item_completed(self, index: int, success: bool, error: Optional[str] = None) -> None:
        """
        Update progress when an item settles

        Args:
            index: Item index
            success: Whether the item succeeded
            error: Final error message for a failed item
        """
        if success:
            self.successful_items += 1
        else:
            self.failed_items += 1
            self.last_error = f"Item {index + 1}: {error}"

        if self.use_rich and self.progress:
            self.progress.update(self.task_id, advance=1)
            self._refresh()
        elif not self.use_rich:
            if success:
                logger.info(f"Item {index + 1} done ({self.finished_items}/{self.total_items})")
            else:
                logger.warning(
                    f"Item {index + 1} failed: {error} ({self.finished_items}/{self.total_items})"
                )

    def _refresh(self) -> None:
        if self.live:
            self.live.update(self._generate_display())

    def _generate_display(self) -> Layout:
        """Generate rich display layout"""
        layout = Layout()
        layout.split_column(
            Layout(name="progress", size=3),
            Layout(name="stats", size=6),
            Layout(name="current", size=4),
        )

        layout["progress"].update(self.progress)

        stats_table = Table(show_header=False, box=None, padding=(0, 2))
        stats_table.add_column("Label", style="cyan")
        stats_table.add_column("Value", style="bold")
        stats_table.add_row("✓ Successful:", f"{self.successful_items}")
        stats_table.add_row("❌ Failed:", f"{self.failed_items}")
        stats_table.add_row("📊 Success Rate:", f"{self.success_rate:.1f}%")

        layout["stats"].update(Panel(stats_table, title="Statistics", border_style="green"))

        if self.current_window is not None:
            current_info = (
                f"[bold cyan]Window:[/bold cyan] {self.current_window}/{self.total_windows}"
            )
        else:
            current_info = "[dim]Waiting for first window...[/dim]"
        if self.last_error:
            current_info += f"\n[dim red]Last error: {escape(self.last_error)}[/dim red]"

        layout["current"].update(Panel(current_info, title="Status", border_style="blue"))

        return layout

    def _print_summary(self) -> None:
        """Print final summary"""
        if not self.start_time:
            return

        duration_str = str(timedelta(seconds=int(time.time() - self.start_time)))

        if self.use_rich:
            summary_table = Table(title="Batch Summary", show_header=False, box=None)
            summary_table.add_column("Label", style="cyan")
            summary_table.add_column("Value", style="bold")

            summary_table.add_row("Total Items:", str(self.total_items))
            summary_table.add_row("Successful:", str(self.successful_items))
            summary_table.add_row("Failed:", str(self.failed_items))
            summary_table.add_row("Success Rate:", f"{self.success_rate:.1f}%")
            summary_table.add_row("Duration:", duration_str)

            self.console.print()
            self.console.print(summary_table)
            self.console.print()
        else:
            logger.info(
                f"Batch summary: {self.successful_items} successful, "
                f"{self.failed_items} failed of {self.total_items} "
                f"({self.success_rate:.1f}%) in {duration_str}"
            )

    def get_estimated_time_remaining(self) -> Optional[float]:
        """
        Estimate time remaining based on current progress

        Returns:
            Estimated seconds remaining, or None if not enough data
        """
        if not self.start_time or self.finished_items == 0:
            return None

        elapsed = time.time() - self.start_time
        avg_time_per_item = elapsed / self.finished_items
        remaining_items = self.total_items - self.finished_items

        return avg_time_per_item * remaining_items
