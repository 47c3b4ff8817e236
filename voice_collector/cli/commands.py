"""CLI commands for Voice Collector.

This module provides all command-line interface commands using Typer.
"""

import sys
import time
from typing import Optional

import typer
import uvicorn
from loguru import logger
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from voice_collector.cli.utils import (
    console,
    make_device_table,
    make_level_progress,
    make_recordings_table,
    make_sync_table,
    suppress_stderr,
)
from voice_collector.core.api_client import RecordingsClient
from voice_collector.core.capture import CaptureController, CaptureState
from voice_collector.core.config import AppConfig
from voice_collector.core.errors import CaptureFailed, DeviceUnavailable, RecorderError
from voice_collector.core.filenames import is_valid_subject_id
from voice_collector.core.recording import MicrophoneDevice, RecordingEngine
from voice_collector.core.session import RecordingSession
from voice_collector.core.sync_queue import SyncQueue
from voice_collector.server import create_app

app = typer.Typer(help="Collect spoken letter and command samples and sync them to a recordings server")

app_config = AppConfig()
default_host = str(app_config.get("host"))
default_port = int(app_config.get("port"))
default_upload_dir = str(app_config.get("upload_dir"))
default_max_file_size = int(app_config.get("max_file_size"))
default_time_limit_ms = int(app_config.get("time_limit_ms"))


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _make_client() -> RecordingsClient:
    return RecordingsClient.from_dict(app_config.as_dict())


def _print_notice(message: str) -> None:
    console.print(f"[info]ℹ {message}[/info]")


def _require_student_id(student_id: str) -> None:
    if not is_valid_subject_id(student_id):
        console.print(f"[error]✗ Invalid student ID: {student_id} (digits only)[/error]")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option(default_host, help="Interface to bind"),
    port: int = typer.Option(default_port, help="Port to listen on"),
    upload_dir: str = typer.Option(default_upload_dir, help="Directory recordings are stored in"),
    max_file_size: int = typer.Option(default_max_file_size, help="Largest accepted upload in bytes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
):
    """Run the recordings server."""
    _configure_logging(verbose)
    app_config.set("upload_dir", upload_dir)
    app_config.set("max_file_size", max_file_size)

    server_app = create_app(app_config)
    console.print(f"[info]Server running on port {port}, storing recordings in {upload_dir}[/info]")
    uvicorn.run(server_app, host=host, port=port, log_level="debug" if verbose else "info")


@app.command()
def list_devices(
    driver: Optional[str] = typer.Option(
        None, help="Filter by driver type: pulse, alsa, jack, usb, default"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output from audio libraries"
    ),
):
    """List all available input audio devices."""
    if verbose:
        devices = RecordingEngine.list_devices(driver_filter=driver)
    else:
        with suppress_stderr():
            devices = RecordingEngine.list_devices(driver_filter=driver)

    title = "Available Input Devices"
    if driver:
        title += f" (filtered by: {driver})"
    console.print(Panel(make_device_table(devices), title=f"[bold]{title}[/bold]"))


def _capture_slot(rec_session: RecordingSession, device: MicrophoneDevice, time_limit_ms: int, verbose: bool) -> None:
    """Record the current slot while showing the remaining time and input level."""
    if verbose:
        rec_session.start_capture()
    else:
        with suppress_stderr():
            rec_session.start_capture()

    limit = time_limit_ms / 1000
    started = time.monotonic()
    with make_level_progress() as progress:
        task = progress.add_task("capture", total=limit, db_text="-- dB")
        while rec_session.controller.state is CaptureState.RECORDING:
            progress.update(
                task,
                completed=min(limit, time.monotonic() - started),
                db_text=f"{device.get_current_db_level():.1f} dB",
            )
            time.sleep(0.1)

    rec_session.finish_capture(timeout=limit + 10)


@app.command()
def session(
    student_id: str = typer.Argument(..., help="Digits-only student ID"),
    device_id: Optional[int] = typer.Option(
        None, help="Audio device ID to use. Leave empty for the system default."
    ),
    gain: float = typer.Option(
        1.0, help="Input gain/amplification factor (1.0=no change, 2.0=+6dB, 0.5=-6dB)"
    ),
    time_limit_ms: int = typer.Option(default_time_limit_ms, help="Length of each recording in milliseconds"),
    upload: bool = typer.Option(
        True,
        "--upload/--no-upload",
        help="Upload each sample as it is recorded; use --no-upload to keep samples local.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output from audio libraries"
    ),
):
    """Record every letter and command word for a student."""
    _configure_logging(verbose)
    _require_student_id(student_id)

    client = _make_client() if upload else None
    queue = SyncQueue(student_id, app_config.get_queue_dir(), client=client, on_notice=_print_notice)
    if client is not None and queue.check_server():
        console.print(f"[success]✓ Connected to {client.base_url}[/success]")

    device = MicrophoneDevice(
        device_id=device_id,
        rate=int(app_config.get("sample_rate")),
        gain_factor=gain,
    )
    controller = CaptureController(device, time_limit_ms=time_limit_ms)
    rec_session = RecordingSession(student_id, controller, queue)
    catalogue = rec_session.catalogue

    console.print(Panel(
        f"Student ID: {student_id}\n"
        f"{catalogue.items_per_run} items x {catalogue.runs} runs, {time_limit_ms / 1000:g}s each",
        title="[bold]🎙 Voice Recording Session[/bold]",
        border_style="green",
    ))

    try:
        while not rec_session.is_complete:
            console.rule(
                f"[bold cyan]{rec_session.current_item}[/bold cyan]  "
                f"Run {rec_session.current_run} of {catalogue.runs}  "
                f"[dim]{rec_session.progress():.0f}% done[/dim]"
            )
            choices = ["r", "u", "q"] if rec_session.can_redo else ["r", "q"]
            choice = Prompt.ask(
                "[r]ecord, [u]ndo previous, [q]uit", choices=choices, default="r", console=console
            )
            if choice == "q":
                break
            if choice == "u":
                discarded = rec_session.redo()
                if discarded is not None:
                    console.print(f"[warning]↺ Discarded {discarded.filename}[/warning]")
                continue

            item, run = rec_session.current_item, rec_session.current_run
            try:
                _capture_slot(rec_session, device, time_limit_ms, verbose)
            except (DeviceUnavailable, CaptureFailed) as e:
                console.print(f"[error]✗ {e.message} Press r to try again.[/error]")
                continue
            except OSError as e:
                logger.error(f"Could not save '{item}' (Run {run}) locally: {e}")
                console.print(f"[error]✗ Could not save the recording: {e}. Press r to try again.[/error]")
                continue
            console.print(f"[success]✓ '{item}' (Run {run}) saved.[/success]")
    except KeyboardInterrupt:
        controller.stop()
        raise
    finally:
        queue.flush(timeout=30.0)
        if client is not None:
            client.close()

    if rec_session.is_complete:
        console.print("[success]✓ All runs are complete. Thank you![/success]")
    pending = queue.pending()
    if pending:
        console.print(
            f"[warning]{len(pending)} sample(s) are stored locally but not synced. "
            f"Run `voice-collector resync {student_id}` when the server is reachable.[/warning]"
        )


@app.command()
def resync(
    student_id: str = typer.Argument(..., help="Digits-only student ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
):
    """Upload every locally queued sample the server has not confirmed."""
    _configure_logging(verbose)
    _require_student_id(student_id)

    with _make_client() as client:
        queue = SyncQueue(
            student_id, app_config.get_queue_dir(), client=client, on_notice=_print_notice, background=False
        )
        pending = len(queue.pending())
        if not pending:
            console.print("[success]✓ Nothing to resync[/success]")
            return
        synced = queue.resync()

    console.print(make_sync_table(queue.records()))
    if synced == pending:
        console.print(f"[success]✓ Synced {synced} sample(s)[/success]")
    else:
        console.print(f"[warning]Synced {synced} of {pending} sample(s)[/warning]")
        raise typer.Exit(1)


@app.command()
def recordings(
    student_id: str = typer.Argument(..., help="Digits-only student ID"),
):
    """List the recordings the server holds for a student."""
    _require_student_id(student_id)
    try:
        with _make_client() as client:
            names = client.list_recordings(student_id)
    except RecorderError as e:
        console.print(f"[error]✗ {e.message}[/error]")
        raise typer.Exit(1)
    console.print(make_recordings_table(student_id, names))


@app.command()
def delete(
    filename: str = typer.Argument(..., help="Recording filename, e.g. 42_1A.webm"),
):
    """Delete one recording from the server."""
    try:
        with _make_client() as client:
            client.delete_recording(filename)
    except RecorderError as e:
        console.print(f"[error]✗ {e.message}[/error]")
        raise typer.Exit(1)
    console.print(f"[success]✓ Deleted {filename}[/success]")


@app.command()
def status(
    student_id: Optional[str] = typer.Argument(None, help="Also show the local queue for this student"),
):
    """Show server reachability and, optionally, a student's local sync queue."""
    console.rule("[bold]📋 Voice Collector Status[/bold]")

    with _make_client() as client:
        online = client.check_server()
        if online:
            console.print(f"[info]Server available at {client.base_url}[/info]")
        else:
            console.print(f"[warning]Server not reachable at {client.base_url}[/warning]")

    if student_id is None:
        return
    _require_student_id(student_id)

    queue = SyncQueue(student_id, app_config.get_queue_dir())
    records = queue.records()
    summary = Table.grid(padding=(0, 1))
    summary.add_column(style="dim", justify="right")
    summary.add_column()
    summary.add_row("Queued:", str(len(records)))
    summary.add_row("Synced:", str(sum(1 for r in records if r.is_synced)))
    summary.add_row("Pending:", str(sum(1 for r in records if not r.is_synced)))
    console.print(Panel(summary, title=f"[bold]Student {student_id}[/bold]"))
    if records:
        console.print(make_sync_table(records))
