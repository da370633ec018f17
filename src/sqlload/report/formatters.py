"""
Run summary formatting and export utilities.

This module renders the dictionary produced by `LoadRun.to_dict()` (or
`RunSummary.to_dict()`) as JSON or as a console table, and reads saved
summaries back for the `report` command.
"""

import json
from typing import Any

PHASE_ORDER = ("create", "save", "commit")


def export_summary_json(summary: dict[str, Any], output_path: str) -> None:
    """
    Export summary to JSON file

    Args:
        summary: Summary dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(summary, f, indent=2)


def load_summary_json(input_path: str) -> dict[str, Any]:
    """
    Load a summary previously written by `export_summary_json`

    Raises:
        ValueError: If the file does not hold a summary object
    """
    with open(input_path) as f:
        summary = json.load(f)

    if not isinstance(summary, dict) or "dispatched" not in summary:
        raise ValueError(f"{input_path} does not contain a run summary")
    return summary


def _format_seconds(value: float) -> str:
    return f"{value * 1000:.3f} ms"


def format_summary_console(summary: dict[str, Any]) -> str:
    """
    Format summary for console output

    Args:
        summary: Summary dictionary

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("LOAD RUN SUMMARY")
    lines.append("=" * 80)
    lines.append(f"State: {summary.get('state', 'unknown')}")
    if summary.get("started_at"):
        lines.append(f"Started: {summary['started_at']}")
    if summary.get("finished_at"):
        lines.append(f"Finished: {summary['finished_at']}")
    lines.append(f"Duration: {summary.get('duration_seconds', 0):.3f} s")
    lines.append(f"Dispatched: {summary['dispatched']:,}")
    lines.append(f"Succeeded: {summary['succeeded']:,}")
    lines.append(f"Failed: {summary['failed']:,}")
    lines.append(f"Abandoned: {summary.get('abandoned', 0):,}")
    lines.append(f"Throughput: {summary.get('throughput_per_second', 0):.2f} tx/s")
    lines.append("")

    means = summary.get("mean_latency", {})
    p95 = summary.get("p95_latency", {})
    counts = summary.get("sample_counts", {})
    phases = [p for p in PHASE_ORDER if p in means] + [p for p in means if p not in PHASE_ORDER]

    if phases:
        lines.append("LATENCY")
        lines.append("-" * 80)
        lines.append(f"{'Phase':<10}{'Samples':>12}{'Mean':>18}{'p95':>18}")
        for phase in phases:
            lines.append(
                f"{phase.capitalize():<10}"
                f"{counts.get(phase, 0):>12,}"
                f"{_format_seconds(means[phase]):>18}"
                f"{_format_seconds(p95.get(phase, 0.0)):>18}"
            )
        lines.append("")

    account = summary.get("account")
    if account:
        lines.append("ACCOUNT")
        lines.append("-" * 80)
        lines.append(f"Id: {account['id']}")
        lines.append(f"Initial Balance: {account['initial_balance']}")
        lines.append(f"Cached Balance: {account['cached_balance']}")
        lines.append(f"Store Balance: {account['store_balance']}")
        if "drained" in summary:
            lines.append(f"Drained: {summary['drained']}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
