"""
Output formatting -- JSON export, plain text, and CSV.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from cfspeed.runner import SpeedTestResult
from cfspeed.stats import format_bytes, format_latency, format_speed
from cfspeed.throughput import Measurement


def create_result_json(result: SpeedTestResult) -> Dict[str, Any]:
    """JSON-serialisable dict of a whole run."""
    return result.to_dict()


def format_json(result: SpeedTestResult, pretty: bool = False) -> str:
    return json.dumps(
        create_result_json(result),
        indent=2 if pretty else None,
        ensure_ascii=False,
    )


# ---------------------------------------------------------------------------
# Plain-text / CSV helpers
# ---------------------------------------------------------------------------

def format_text_result(result: SpeedTestResult) -> str:
    sep = "=" * 50
    mid = "-" * 50
    md = result.metadata
    lines: List[str] = [
        sep,
        "Cloudflare Speed Test Results",
        sep,
        f"City: {md.city}",
        f"Country: {md.country}",
        f"IP: {md.ip}",
        f"ASN: {md.asn}",
        f"Colo: {md.colo}",
        mid,
        f"Latency: {format_latency(result.latency.mean)} "
        f"(min: {result.latency.min:.2f} ms, max: {result.latency.max:.2f} ms)",
    ]

    by_payload = result.summary_by_payload()
    if by_payload:
        lines.append(mid)
        for (test_type, size), s in by_payload.items():
            lines.append(
                f"{test_type} {format_bytes(size)}: avg {format_speed(s.mean)} "
                f"(min {s.min:.2f}, max {s.max:.2f}, n={s.count})"
            )

    by_type = result.summary_by_type()
    if by_type:
        lines.append(mid)
        for test_type, s in by_type.items():
            lines.append(f"{test_type}: {format_speed(s.mean)}")

    lines.append(sep)
    return "\n".join(lines)


def _csv_escape(value: str) -> str:
    """Quote a CSV field if it contains a comma, quote, or newline."""
    if any(c in value for c in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_csv_header() -> str:
    return "test_type,payload_size,mbit"


def format_csv_row(measurement: Measurement) -> str:
    return ",".join(
        _csv_escape(field)
        for field in (
            str(measurement.test_type),
            str(measurement.payload_size),
            f"{measurement.mbit:.3f}",
        )
    )


def format_csv(measurements: Iterable[Measurement]) -> str:
    """Header plus one row per measurement, in issue order."""
    rows = [format_csv_header()]
    rows.extend(format_csv_row(m) for m in measurements)
    return "\n".join(rows)
