"""
Bad bits publisher CLI

Implements the operator and host-facing verbs:
- publish: Run one publish cycle (cron/host trigger); non-zero exit on failure
- run: Publish on a fixed interval in-process
- status: Show the current version and stored versions
- dump: Print every hash of the current version
- check: Check whether a CID is denylisted
"""
from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .cli_context import CLIContext
from .operations import Operations, run_and_exit
from .operations.printers import print_check_result, print_publish_report, print_status

app = typer.Typer(name="badbits-publisher", help="Bad bits denylist publisher")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
) -> None:
    """Republish the bad bits denylist into a size-limited key-value store."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _operations() -> Operations:
    return Operations(CLIContext.from_env())


@app.command()
def publish(
    source_file: Optional[str] = typer.Option(
        None, "--source-file", help="Publish from a local denylist file instead of the configured URL"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the run report as JSON"),
) -> None:
    """Run one publish cycle."""

    def _publish() -> None:
        ops = _operations()
        try:
            if source_file:
                ops.use_source_file(source_file)
            report = ops.publish()
        finally:
            ops.context.close()
        print_publish_report(report, as_json=as_json)

    run_and_exit(_publish)


@app.command()
def run(
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between cycles (default: BADBITS_INTERVAL)"),
    max_cycles: Optional[int] = typer.Option(None, "--max-cycles", help="Stop after this many cycles"),
    source_file: Optional[str] = typer.Option(
        None, "--source-file", help="Publish from a local denylist file instead of the configured URL"
    ),
) -> None:
    """Publish on a fixed interval until interrupted."""

    def _run() -> None:
        if interval is not None and interval <= 0:
            raise ValueError("--interval must be positive")
        ops = _operations()
        try:
            if source_file:
                ops.use_source_file(source_file)
            failures = ops.run(interval_s=interval, max_cycles=max_cycles)
        except KeyboardInterrupt:
            typer.echo("Stopped")
            return
        finally:
            ops.context.close()
        if failures:
            typer.echo(f"{failures} publish cycles failed")

    run_and_exit(_run)


@app.command()
def status() -> None:
    """Show the current denylist version."""

    def _status() -> None:
        print_status(_operations().status())

    run_and_exit(_status)


@app.command()
def dump() -> None:
    """Print every hash of the current version, one per line."""

    def _dump() -> None:
        for value in _operations().dump():
            typer.echo(value)

    run_and_exit(_dump)


@app.command()
def check(
    value: str = typer.Argument(..., help="CID to check"),
    entry: bool = typer.Option(False, "--entry", help="Treat VALUE as a raw double-hash entry"),
) -> None:
    """Check whether a CID is on the published denylist."""

    def _check() -> None:
        denied = _operations().check(value, raw_entry=entry)
        print_check_result(value, denied)

    run_and_exit(_check)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
