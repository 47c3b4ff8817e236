"""CLI utilities for Voice Collector.

This module provides the themed Rich console and the tables and progress
displays shared by the commands.
"""

import os
from contextlib import contextmanager
from typing import Iterable, List

from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table
from rich.theme import Theme

from voice_collector.core.log import SyncRecord

# Create themed console for consistent output
_theme = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
        "debug": "dim white",
    }
)

console = Console(theme=_theme)


def make_device_table(devices: List[dict]) -> Table:
    """Build a Rich Table from the device list returned by RecordingEngine.list_devices()."""
    table = Table(show_header=True, header_style="bold", show_lines=False, expand=False)
    table.add_column("ID", style="cyan", width=4, justify="right")
    table.add_column("Name", min_width=30)
    table.add_column("Driver", style="dim", width=8)
    table.add_column("Ch", justify="right", style="dim", width=4)
    table.add_column("Rate", justify="right", style="dim", width=12)
    table.add_column("", width=9)

    for d in devices:
        table.add_row(
            str(d["id"]),
            d["name"],
            d.get("driver", "").upper(),
            str(d.get("channels", "")),
            f"{d.get('rate', '')} Hz",
            "[bold green]DEFAULT[/bold green]" if d.get("is_default") else "",
        )
    return table


def make_sync_table(records: Iterable[SyncRecord]) -> Table:
    """Build a table of queued samples and their sync state."""
    table = Table(show_header=True, header_style="bold", expand=False)
    table.add_column("File", min_width=18)
    table.add_column("Item", style="cyan")
    table.add_column("Run", justify="right")
    table.add_column("Captured", style="dim")
    table.add_column("Synced", justify="center")

    for record in records:
        table.add_row(
            record.filename,
            record.item,
            str(record.repetition),
            record.timestamp,
            "[green]yes[/green]" if record.is_synced else "[yellow]no[/yellow]",
        )
    return table


def make_recordings_table(student_id: str, names: List[str]) -> Table:
    table = Table(show_header=True, header_style="bold", title=f"Recordings for student {student_id}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Filename")
    for index, name in enumerate(names, start=1):
        table.add_row(str(index), name)
    return table


def make_level_progress() -> Progress:
    """Create a Rich Progress instance showing the remaining capture time and input level.

    Usage::

        with make_level_progress() as progress:
            task = progress.add_task("capture", total=5.0, db_text="-- dB")
            while recording:
                progress.update(task, completed=elapsed, db_text=f"{db_level:.1f} dB")
                time.sleep(0.1)
    """
    return Progress(
        TextColumn("🎙 Recording"),
        BarColumn(
            bar_width=40,
            complete_style="red",
            finished_style="red",
        ),
        TextColumn("[bold]{task.fields[db_text]}[/bold]"),
        console=console,
        transient=True,
        expand=False,
    )


@contextmanager
def suppress_stderr():
    """Context manager to suppress stderr output from libraries like ALSA, JACK.

    PortAudio prints backend probing noise straight to file descriptor 2, so
    the descriptor itself is redirected rather than ``sys.stderr``.
    """
    original_stderr_fd = os.dup(2)
    try:
        null_fd = os.open(os.devnull, os.O_WRONLY)
        os.dup2(null_fd, 2)
        os.close(null_fd)
        yield
    finally:
        os.dup2(original_stderr_fd, 2)
        os.close(original_stderr_fd)


__all__ = [
    "console",
    "suppress_stderr",
    "make_device_table",
    "make_sync_table",
    "make_recordings_table",
    "make_level_progress",
]
