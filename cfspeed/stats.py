"""
Measurement statistics and formatting.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Sequence, Tuple

from .errors import EmptyInputError

if TYPE_CHECKING:
    from .throughput import Measurement, TestType


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Summary:
    """Min / max / mean of a batch of values."""

    min: float
    max: float
    mean: float
    count: int

    @classmethod
    def of(cls, values: Sequence[float]) -> Summary:
        if not values:
            raise EmptyInputError("Cannot summarize an empty sequence")
        return cls(
            min=min(values),
            max=max(values),
            mean=statistics.mean(values),
            count=len(values),
        )

    def to_dict(self) -> dict:
        return {
            "min": round(self.min, 3),
            "max": round(self.max, 3),
            "avg": round(self.mean, 3),
            "count": self.count,
        }


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def summarize(measurements: Sequence[Measurement]) -> Summary:
    """Summarize the throughput of *measurements*.

    Raises ``EmptyInputError`` when there is nothing to summarize.
    """
    return Summary.of([m.mbit for m in measurements])


def summarize_by_type(
    measurements: Iterable[Measurement],
) -> Dict[TestType, Summary]:
    """One summary per test type, all payload sizes combined."""
    groups: Dict[TestType, List[Measurement]] = {}
    for m in measurements:
        groups.setdefault(m.test_type, []).append(m)
    return {tt: summarize(ms) for tt, ms in groups.items()}


def summarize_by_payload(
    measurements: Iterable[Measurement],
) -> Dict[Tuple[TestType, int], Summary]:
    """One summary per ``(test type, payload size)``, in first-seen order."""
    groups: Dict[Tuple[TestType, int], List[Measurement]] = {}
    for m in measurements:
        groups.setdefault((m.test_type, m.payload_size), []).append(m)
    return {key: summarize(ms) for key, ms in groups.items()}


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_bytes(size: int) -> str:
    """Compact decimal size: ``500 bytes``, ``100KB``, ``25MB``."""
    if 1_000 <= size < 1_000_000:
        return f"{size // 1_000}KB"
    if 1_000_000 <= size < 1_000_000_000:
        return f"{size // 1_000_000}MB"
    return f"{size} bytes"


def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"
