"""Display layer -- Rich dashboard and output formatters."""

from .dashboard import (
    ProgressDisplay,
    console,
    create_histogram,
    print_final_results,
    print_header,
    print_latency_details,
    print_metadata,
    print_payload_summary,
)
from .output import (
    create_result_json,
    format_csv,
    format_csv_header,
    format_csv_row,
    format_json,
    format_text_result,
)

__all__ = [
    "ProgressDisplay",
    "console",
    "create_histogram",
    "create_result_json",
    "format_csv",
    "format_csv_header",
    "format_csv_row",
    "format_json",
    "format_text_result",
    "print_final_results",
    "print_header",
    "print_latency_details",
    "print_metadata",
    "print_payload_summary",
]
