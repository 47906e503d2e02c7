"""Shared formatting and file utilities for commands."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from opstack_conformance.conformance.results import ConformanceSummary

# Shared console instance
console = Console()


def format_value(value: Any, length: int = 18) -> str:
    """
    Format a hash or integer for table display.

    Args:
        value: bytes (shown as shortened hex) or anything printable
        length: Total visible characters for hashes (default: 18)

    Returns:
        Formatted value like "0x56e81f...e363b421"
    """
    if value is None:
        return "N/A"
    if isinstance(value, (bytes, bytearray)):
        text = "0x" + bytes(value).hex()
        if len(text) <= length:
            return text
        return f"{text[:8]}...{text[-8:]}"
    return str(value)


def save_json_output(
    data: Dict[str, Any],
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Args:
        data: Data to save
        filename: Output filename (can include subdirectories)
        output_dir: Base output directory (default: 'output')
        print_path: Whether to print the saved file path

    Returns:
        Full path to saved file
    """
    output_path = Path(output_dir)
    filepath = output_path / filename
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)


def generate_timestamped_filename(prefix: str, extension: str = "json") -> str:
    """
    Generate a filename with timestamp.

    Args:
        prefix: Filename prefix
        extension: File extension (without dot)

    Returns:
        Filename like "prefix_20240315_123456.json"
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def create_summary_table(summary: ConformanceSummary) -> Table:
    """
    Create a Rich table with one row per property and variant.

    Args:
        summary: Summary returned by ConformanceChecker.run

    Returns:
        Populated Rich Table
    """
    table = Table(
        title=(
            f"Block {summary.block_number} "
            f"(assumed {summary.assumed_variant.label})"
        ),
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Check", width=14)
    table.add_column("Variant", width=12)
    table.add_column("Computed", width=22, justify="right")
    table.add_column("Observed", width=22, justify="right")
    table.add_column("Match", width=6, justify="center")
    table.add_column("Expected", width=8, justify="center")

    for report in summary.reports:
        for result in (report.assumed, report.opposite):
            if result is None:
                continue
            expected_match = result.variant is report.assumed_variant
            ok = result.matches == expected_match
            table.add_row(
                report.check,
                result.variant.label,
                format_value(result.expected),
                format_value(result.observed),
                "yes" if result.matches else "no",
                "[green]ok[/green]" if ok else "[bold red]FAIL[/bold red]",
            )
    return table
