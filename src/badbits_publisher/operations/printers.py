"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands stay thin.
"""
from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import PublishReport, PublishStatus

_console = Console(soft_wrap=True)
_err_console = Console(stderr=True, soft_wrap=True)


def print_publish_report(report: PublishReport, as_json: bool = False) -> None:
    """
    Print the outcome of a publish cycle.

    Args:
        report: Report returned by the publisher
        as_json: Emit the report as one JSON document instead
    """
    if as_json:
        typer.echo(report.model_dump_json())
        return

    if report.status == PublishStatus.UNCHANGED:
        _console.print(f"[bold]Unchanged:[/] version {report.version} still current")
        return

    _console.print(f"[bold green]Published[/] version {report.version}")
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Previous", report.previous_version or "-")
    table.add_row("Hashes", str(report.hash_count))
    table.add_row("Segments", str(report.segment_count))
    table.add_row("Reclaimed keys", str(report.reclaimed_keys))
    if report.reclaim_errors:
        table.add_row("Reclaim errors", f"[yellow]{report.reclaim_errors}[/]")
    table.add_row("ETag", report.etag or "-")
    table.add_row("Duration", f"{report.duration_ms}ms")
    _console.print(table)


def print_status(status) -> None:
    """
    Print what the store currently serves.

    Args:
        status: DenylistStatus from Operations.status()
    """
    if status.version is None:
        _console.print(f"[dim]No denylist published under prefix {status.prefix}[/]")
        return
    _console.print(f"[bold]Prefix:[/] {status.prefix}")
    _console.print(f"[bold]Version:[/] {status.version}")
    _console.print(f"[bold]Segments:[/] {status.segment_count}")
    _console.print(f"[bold]Stored versions:[/] {status.stored_versions}")
    _console.print(f"[bold]ETag:[/] {status.etag or '-'}")


def print_check_result(value: str, denied: bool) -> None:
    if denied:
        _console.print(f"[bold red]DENIED[/] {value}")
    else:
        _console.print(f"[green]allowed[/] {value}")


def print_error(exc: BaseException) -> None:
    """Print a one-line error summary to stderr."""
    phase = getattr(exc, "phase", None)
    where = f" during {phase}" if phase else ""
    _err_console.print(f"[bold red]Error{where}:[/] {escape(str(exc))}", highlight=False)
