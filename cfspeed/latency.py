"""
HTTP latency measurement against the Cloudflare speed-test endpoint.

Each probe is a zero-byte download.  The edge reports how long it spent on
the request in the ``Server-Timing`` header::

    Server-Timing: cfRequestDuration;dur=12.345

Subtracting that from the client-observed round trip approximates pure
network latency.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .constants import (
    BASE_URL,
    DEFAULT_NR_LATENCY_TESTS,
    DOWNLOAD_PATH,
    SERVER_TIMING_HEADER,
    SERVER_TIMING_PATTERN,
)
from .errors import ProtocolError
from .stats import Summary, format_latency
from .transport import Request, TimedResponse, Transport

logger = logging.getLogger(__name__)

_SERVER_TIMING_RE = re.compile(SERVER_TIMING_PATTERN)

# (index, total, status line)
ProgressCallback = Callable[[int, int, str], None]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class LatencyResult:
    """Corrected latency samples and their summary."""

    samples: List[float] = field(default_factory=list)
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0

    def calculate(self) -> None:
        """Fill in min/max/mean; raises ``EmptyInputError`` without samples."""
        summary = Summary.of(self.samples)
        self.min = summary.min
        self.max = summary.max
        self.mean = summary.mean

    def to_dict(self) -> dict:
        return {
            "samples": [round(s, 3) for s in self.samples],
            "min": round(self.min, 3),
            "max": round(self.max, 3),
            "avg": round(self.mean, 3),
            "count": len(self.samples),
        }


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def parse_server_timing(value: Optional[str]) -> float:
    """Extract ``cfRequestDuration`` (ms) from a ``Server-Timing`` value."""
    if value is None:
        raise ProtocolError("Response has no Server-Timing header")
    m = _SERVER_TIMING_RE.search(value)
    if not m:
        raise ProtocolError(f"Unparseable Server-Timing header: {value!r}")
    return float(m.group(1))


def correct_latency(client_ms: float, server_ms: float) -> float:
    """Client round trip minus server processing time, floored at zero.

    Server-reported duration can exceed the observed one through clock
    skew; a negative latency is reported as 0.
    """
    return max(0.0, client_ms - server_ms)


def sample_from_response(resp: TimedResponse) -> float:
    server_ms = parse_server_timing(resp.header(SERVER_TIMING_HEADER))
    return correct_latency(resp.elapsed_ms, server_ms)


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class LatencyTester:
    """Sequential zero-byte probes, corrected by ``Server-Timing``."""

    def __init__(
        self,
        transport: Transport,
        base_url: str = BASE_URL,
        sample_count: int = DEFAULT_NR_LATENCY_TESTS,
    ) -> None:
        self.transport = transport
        self.base_url = base_url
        self.sample_count = sample_count
        self.on_progress: Optional[ProgressCallback] = None

    async def probe(self) -> LatencyResult:
        """Run exactly ``sample_count`` probes.

        A malformed response aborts the whole probe with ``ProtocolError``.
        """
        result = LatencyResult()
        url = f"{self.base_url}{DOWNLOAD_PATH}?bytes=0"

        for i in range(self.sample_count):
            resp = await self.transport.send(Request("GET", url))
            sample = sample_from_response(resp)
            result.samples.append(sample)

            logger.debug("latency sample %d/%d: %.3f ms", i + 1, self.sample_count, sample)
            if self.on_progress:
                self.on_progress(i, self.sample_count, f"{format_latency(sample)} -> {resp.status}")

        result.calculate()
        logger.info("Average latency: %.2f ms over %d samples", result.mean, len(result.samples))
        return result
