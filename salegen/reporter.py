from __future__ import annotations

from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from salegen.verification import VerificationResult


def _human_bytes(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    mb = value / (1024 * 1024)
    if mb >= 1024:
        return f"{mb / 1024:.2f} GB"
    return f"{mb:.2f} MB"


def print_report(report: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a generation report as a rich table.
    """
    console = console or Console()

    table = Table(title="Sales CSV Generation", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    table.add_row("Output file", report.get("final_path", "N/A"))
    control = report.get("control_path")
    if control:
        table.add_row("Control file", control)
    else:
        table.add_row("Control file", f"[red]not written: {report.get('control_error')}[/red]")
    table.add_row("Rows", f"{report.get('rows', 0):,}")
    table.add_row("Total amount", str(report.get("total_amount", "0")))
    table.add_row("Total quantity", f"{report.get('total_quantity', 0):,}")
    table.add_row("Bytes written", f"{report.get('bytes_written', 0):,}")
    table.add_row(
        "Workers",
        f"{report.get('workers', 0)} {report.get('executor', '')}".strip(),
    )
    partitions = report.get("partitions") or []
    if partitions:
        table.add_row("Partition sizes", ", ".join(f"{count:,}" for count in partitions))
    table.add_row("Duration (s)", f"{report.get('duration_seconds', 0.0):.2f}")
    table.add_row("Throughput (rows/s)", f"{report.get('throughput_rows_per_sec', 0.0):,.2f}")
    table.add_row("Peak memory", _human_bytes(report.get("peak_rss_bytes")))
    cpu = report.get("cpu_percent")
    table.add_row("CPU %", f"{cpu:.1f}" if cpu is not None else "N/A")

    console.print(table)


def print_verification(result: VerificationResult, console: Optional[Console] = None) -> None:
    """
    Render a verification result; problems are listed below the summary.
    """
    console = console or Console()

    status = "[bold green]OK[/bold green]" if result.ok else "[bold red]MISMATCH[/bold red]"
    table = Table(title=f"Verification {status}", box=box.ROUNDED)
    table.add_column("Total", style="cyan")
    table.add_column("CSV", justify="right", style="magenta")
    table.add_column("Control", justify="right", style="yellow")

    declared = result.declared
    recomputed = result.recomputed
    table.add_row(
        "Rows",
        f"{recomputed.total_rows:,}",
        f"{declared.total_rows:,}" if declared else "N/A",
    )
    table.add_row(
        "Amount",
        str(recomputed.total_amount),
        str(declared.total_amount) if declared else "N/A",
    )
    table.add_row(
        "Quantity",
        f"{recomputed.total_quantity:,}",
        f"{declared.total_quantity:,}" if declared else "N/A",
    )
    console.print(table)

    for problem in result.problems:
        console.print(f"[red]- {problem}[/red]")
