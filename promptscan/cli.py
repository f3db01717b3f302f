"""
CLI Interface
=============
Command-line interface for the prompt scan engine.

Usage:
    promptscan scan <source> [options]
    promptscan copy <source> <button_text> | pbcopy
    promptscan serve [options]

<source> is a .docx, .pdf or .json snapshot path, or the base URL of a
remote document service.
"""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .classifier import HEADING_STYLE_PREFIX
from .clipboard import copy_payload, find_button
from .engine import LOG_LEVELS, ScanConfig, ScanEngine
from .models import ButtonDirective, CopyStatus, ScanResult, ScanStatus
from .sources import open_document

console = Console()
err_console = Console(stderr=True)

PREVIEW_LENGTH = 60


@click.group()
@click.version_option(version=__version__, prog_name="promptscan")
def cli():
    """Prompt Scan: turn marked document headings into copyable prompts."""
    pass


def _run_scan(
    source: str,
    heading_prefix: str,
    timeout: float,
    log_level: str,
    log_file: str = None,
) -> ScanResult:
    """Open a source and scan it; exits 1 on unsupported sources."""
    try:
        service = open_document(source, timeout=timeout)
    except ValueError as e:
        err_console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    config = ScanConfig(
        heading_style_prefix=heading_prefix,
        log_level=log_level,
        log_file=log_file,
    )
    return ScanEngine(service, config).scan_sync()


@cli.command()
@click.argument("source")
@click.option(
    "--heading-prefix",
    default=HEADING_STYLE_PREFIX,
    help="Style-name prefix that marks heading paragraphs",
)
@click.option(
    "--timeout",
    default=30.0,
    type=float,
    help="Request timeout for remote document services (seconds)",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(LOG_LEVELS),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def scan(
    source: str,
    heading_prefix: str,
    timeout: float,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Scan a document and list its labels and buttons."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"
        result = _run_scan(source, heading_prefix, timeout, log_level, log_file)
        click.echo(json.dumps(
            result.model_dump(mode="json"),
            indent=2,
            ensure_ascii=False,
        ))
        if result.status == ScanStatus.FAILED:
            sys.exit(1)
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Prompt Scan v{__version__}[/]\n"
            f"[dim]Scanning: {source}[/]",
            border_style="cyan",
        )
    )
    console.print()

    with console.status("Scanning document..."):
        result = _run_scan(source, heading_prefix, timeout, log_level, log_file)

    if result.status == ScanStatus.FAILED:
        console.print(f"[red]Error:[/] {result.reason}")
        sys.exit(1)

    _display_result(result)


@cli.command("copy")
@click.argument("source")
@click.argument("button_text")
@click.option("--heading-prefix", default=HEADING_STYLE_PREFIX, help="Heading style prefix")
@click.option("--timeout", default=30.0, type=float, help="Request timeout")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(LOG_LEVELS),
    help="Logging level",
)
def copy_command(
    source: str,
    button_text: str,
    heading_prefix: str,
    timeout: float,
    log_level: str,
):
    """Write one button's payload to stdout, ready to pipe to a clipboard tool."""

    result = _run_scan(source, heading_prefix, timeout, log_level)

    if result.status == ScanStatus.FAILED:
        err_console.print(f"[red]Error:[/] {result.reason}")
        sys.exit(1)

    button = find_button(result, button_text)
    if button is None:
        err_console.print(f"[red]Error:[/] No button named {button_text!r}")
        sys.exit(1)

    outcome = copy_payload(button, lambda text: click.echo(text, nl=False))

    if outcome.status == CopyStatus.EMPTY_PAYLOAD:
        err_console.print(f"[yellow]{outcome.message}[/]")
    elif outcome.status == CopyStatus.FAILED:
        err_console.print(f"[red]Error:[/] {outcome.message}")
        sys.exit(1)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
@click.option(
    "--document",
    default=None,
    type=click.Path(exists=True),
    help="Document served by the /api/document endpoints",
)
def serve(host: str, port: int, debug: bool, document: str):
    """Start the HTTP service."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Prompt Scan Service[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug, document_path=document)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _preview(payload: str) -> str:
    flat = " ".join(payload.split())
    if len(flat) > PREVIEW_LENGTH:
        return flat[:PREVIEW_LENGTH - 1] + "…"
    return flat


def _display_result(result: ScanResult):
    """Render the directive panel and the scan report."""
    if result.status != ScanStatus.DIRECTIVES:
        console.print(f"[yellow]{result.message}[/]")
        console.print()
        if result.report:
            _display_report(result.report.model_dump())
        return

    for directive in result.directives:
        if isinstance(directive, ButtonDirective):
            line = Text("  ")
            line.append(f" {directive.text} ", style="reverse")
            line.append("  ")
            if directive.payload:
                line.append(_preview(directive.payload), style="dim")
            else:
                line.append("(empty)", style="yellow")
            console.print(line)
        else:
            console.print()
            console.print(Text(directive.text, style="bold cyan"))

    console.print()
    if result.report:
        _display_report(result.report.model_dump())


def _display_report(report: dict):
    """Display the scan report as a rich table."""
    table = Table(title="Scan Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[yellow]⚠[/]"

    table.add_row("Paragraphs", str(report.get("paragraph_count", 0)), "")

    headings = report.get("heading_count", 0)
    table.add_row(
        "Headings",
        str(headings),
        "[green]✓[/]" if headings > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Unmarked Headings",
        str(report.get("unmarked_heading_count", 0)),
        "",
    )
    table.add_row("Labels", str(report.get("label_count", 0)), "")
    table.add_row("Buttons", str(report.get("button_count", 0)), "")
    table.add_row("Range Round Trips", str(report.get("round_trips", 0)), "")

    empty = report.get("empty_payload_buttons", [])
    table.add_row("Empty Payloads", str(len(empty)), status_icon(len(empty)))

    dupes = report.get("duplicate_button_texts", [])
    table.add_row("Duplicate Button Texts", str(len(dupes)), status_icon(len(dupes)))

    console.print(table)
    console.print()


# ─── Entry point (for python -m promptscan.cli) ───────────────────────────────


if __name__ == "__main__":
    cli()
