"""
Rich-based terminal dashboard for speed-test results.

All formatting helpers live in ``cfspeed.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from cfspeed.latency import LatencyResult
from cfspeed.metadata import Metadata
from cfspeed.runner import SpeedTestResult
from cfspeed.stats import format_bytes, format_latency, format_speed

console = Console()


# ---------------------------------------------------------------------------
# Histogram helper
# ---------------------------------------------------------------------------

_BARS = "▁▂▃▄▅▆▇█"


def create_histogram(values: List[float]) -> str:
    """Return a single-line Unicode bar-chart."""
    if not values:
        return "No data"

    lo, hi = min(values), max(values)
    span = hi - lo if hi > lo else 1.0
    return "".join(_BARS[int((v - lo) / span * (len(_BARS) - 1))] for v in values)


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Cloudflare Speed Test[/bold cyan]\n"
            "[dim]Latency and per-payload throughput against speed.cloudflare.com[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_metadata(metadata: Metadata) -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("City:", metadata.city)
    table.add_row("Country:", metadata.country)
    table.add_row("IP:", metadata.ip)
    table.add_row("ASN:", metadata.asn)
    table.add_row("Colo:", metadata.colo)
    console.print(Panel(table, title="[bold]Connection[/bold]", border_style="blue"))


def print_latency_details(result: LatencyResult) -> None:
    """Print latency statistics and a histogram."""
    if not result.samples:
        console.print("[yellow]No latency samples[/yellow]")
        return

    table = Table(title="Latency", box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Min", format_latency(result.min))
    table.add_row("Max", format_latency(result.max))
    table.add_row("Avg", f"[bold yellow]{format_latency(result.mean)}[/bold yellow]")
    table.add_row("Samples", str(len(result.samples)))
    console.print(table)

    console.print(
        Panel(
            f"[cyan]{create_histogram(result.samples)}[/cyan]",
            title="Latency Histogram",
        )
    )


def print_payload_summary(result: SpeedTestResult) -> None:
    """Per-payload-size throughput table."""
    by_payload = result.summary_by_payload()
    if not by_payload:
        return

    table = Table(title="Throughput by Payload Size", box=box.ROUNDED)
    table.add_column("Test", style="bold")
    table.add_column("Payload", justify="right")
    table.add_column("Runs", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Samples")

    colors: Dict[str, str] = {"Download": "green", "Upload": "blue"}
    for (test_type, size), s in by_payload.items():
        color = colors.get(str(test_type), "white")
        samples = [m.mbit for m in result.of_type(test_type) if m.payload_size == size]
        table.add_row(
            str(test_type),
            format_bytes(size),
            str(s.count),
            format_speed(s.min),
            f"[bold {color}]{format_speed(s.mean)}[/bold {color}]",
            format_speed(s.max),
            f"[{color}]{create_histogram(samples)}[/{color}]",
        )

    console.print(table)


def print_final_results(result: SpeedTestResult) -> None:
    lines = [
        f"[bold cyan]Colo:[/bold cyan] {result.metadata.colo} "
        f"({result.metadata.city}, {result.metadata.country})\n",
        f"[bold white]   Latency:[/bold white]  "
        f"[bold yellow]{format_latency(result.latency.mean)}[/bold yellow]",
    ]
    colors = {"Download": "green", "Upload": "blue"}
    for test_type, s in result.summary_by_type().items():
        color = colors.get(str(test_type), "white")
        lines.append(
            f"[bold white]   {test_type}:[/bold white]  "
            f"[bold {color}]{format_speed(s.mean)}[/bold {color}]  "
            f"[dim](min {format_speed(s.min)}, max {format_speed(s.max)})[/dim]"
        )

    console.print()
    console.print(
        Panel.fit("\n".join(lines), title="[bold]Results[/bold]", border_style="cyan")
    )
    console.print()


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

class ProgressDisplay:
    """Manages a ``rich`` progress bar, one task per phase / payload batch."""

    def __init__(self) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description:<9}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TextColumn("[bold cyan]{task.fields[status]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id: Optional[TaskID] = None
        self._phase: Optional[str] = None

    def start(self) -> None:
        self.progress.start()

    def update(self, phase: str, index: int, total: int, status: str) -> None:
        """Record that run *index* (0-based) of *total* in *phase* finished."""
        if self._task_id is None or self._phase != phase or index == 0:
            self._task_id = self.progress.add_task(phase, total=total, status="")
            self._phase = phase
        self.progress.update(self._task_id, completed=index + 1, status=status)

    def stop(self) -> None:
        self.progress.stop()
