"""Export the cached sender analysis to CSV or JSON."""

import csv
import json

from .models import AnalysisResult

FIELDNAMES = [
    "email",
    "name",
    "total_count",
    "unread_count",
    "is_bulk_mail",
    "unsubscribe_link",
    "last_message_time",
]


def _row(sender) -> dict:
    return {
        "email": sender.email,
        "name": sender.name or "",
        "total_count": sender.total_count,
        "unread_count": sender.unread_count,
        "is_bulk_mail": sender.is_bulk_mail,
        "unsubscribe_link": sender.unsubscribe_link or "",
        "last_message_time": sender.last_message_time.isoformat() if sender.last_message_time else "",
    }


def export_analysis(analysis: AnalysisResult, format: str, output_path: str) -> None:
    """Export sender records to a file.

    Args:
        analysis: The analysis to export.
        format: Output format, either 'csv' or 'json'.
        output_path: Path to write the output file.
    """
    rows = [_row(s) for s in analysis.senders]

    if format == "csv":
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            writer.writerows(rows)
    elif format == "json":
        with open(output_path, "w") as f:
            json.dump(rows, f, indent=2)
    else:
        raise ValueError(f"Unsupported export format: {format}")
