"""
Download / upload throughput sampling.

For every payload size a fixed number of transfers is run back to back,
one request in flight at a time, and each transfer becomes one
``Measurement``.  Concurrent probes would compete for bandwidth and
invalidate single-request readings.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .constants import (
    BASE_URL,
    DEFAULT_NR_TESTS,
    DOWNLOAD_PATH,
    UPLOAD_FILL_BYTE,
    UPLOAD_PATH,
)
from .errors import ProtocolError
from .stats import format_bytes
from .transport import Request, TimedResponse, Transport

logger = logging.getLogger(__name__)

# (index, total, status line)
ProgressCallback = Callable[[int, int, str], None]


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

class TestType(enum.Enum):
    DOWNLOAD = "Download"
    UPLOAD = "Upload"

    __test__ = False  # not a pytest test class

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Measurement:
    """Throughput of one timed transfer."""

    test_type: TestType
    payload_size: int
    mbit: float

    def to_dict(self) -> dict:
        return {
            "test_type": self.test_type.value,
            "payload_size": self.payload_size,
            "mbit": round(self.mbit, 3),
        }


def compute_mbit(payload_size: int, elapsed_seconds: float) -> float:
    """Megabits per second for *payload_size* bytes in *elapsed_seconds*."""
    if elapsed_seconds <= 0:
        raise ProtocolError(f"Non-positive transfer time: {elapsed_seconds!r}s")
    return payload_size * 8 / 1_000_000 / elapsed_seconds


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class ThroughputTester:
    """Sequential fixed-size transfers against ``__down`` / ``__up``."""

    def __init__(self, transport: Transport, base_url: str = BASE_URL) -> None:
        self.transport = transport
        self.base_url = base_url
        self.on_progress: Optional[ProgressCallback] = None

    def build_request(self, test_type: TestType, payload_size: int) -> Request:
        if test_type is TestType.DOWNLOAD:
            return Request("GET", f"{self.base_url}{DOWNLOAD_PATH}?bytes={payload_size}")
        return Request(
            "POST",
            f"{self.base_url}{UPLOAD_PATH}",
            body=UPLOAD_FILL_BYTE * payload_size,
        )

    async def run(
        self,
        test_type: TestType,
        payload_sizes: Sequence[int],
        runs_per_size: int = DEFAULT_NR_TESTS,
    ) -> List[Measurement]:
        """Return ``len(payload_sizes) * runs_per_size`` measurements in issue order."""
        measurements: List[Measurement] = []

        for payload_size in payload_sizes:
            request = self.build_request(test_type, payload_size)
            logger.info(
                "%s test: %d x %s", test_type, runs_per_size, format_bytes(payload_size)
            )

            for i in range(runs_per_size):
                resp = await self.transport.send(request)
                if test_type is TestType.DOWNLOAD and resp.size != payload_size:
                    logger.warning(
                        "Expected %d bytes from %s, got %d", payload_size, request.url, resp.size
                    )
                measurement = Measurement(
                    test_type=test_type,
                    payload_size=payload_size,
                    mbit=compute_mbit(payload_size, resp.elapsed),
                )
                measurements.append(measurement)

                if self.on_progress:
                    self.on_progress(i, runs_per_size, self._status_line(test_type, measurement, resp))

        return measurements

    @staticmethod
    def _status_line(test_type: TestType, m: Measurement, resp: TimedResponse) -> str:
        verb = "get" if test_type is TestType.DOWNLOAD else "post"
        return (
            f"{m.mbit:.2f} mbit/s with {format_bytes(m.payload_size)} "
            f"in {resp.elapsed_ms:.0f}ms -> {verb}: {resp.status}"
        )
