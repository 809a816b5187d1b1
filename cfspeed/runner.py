"""
Sequential speed-test orchestration.

metadata -> latency -> download batch -> upload batch, each step blocking
until complete.  Any ``SpeedTestError`` aborts the whole run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import SpeedTestConfig
from .latency import LatencyResult, LatencyTester
from .metadata import Metadata, fetch_metadata
from .stats import Summary, summarize_by_payload, summarize_by_type
from .throughput import Measurement, TestType, ThroughputTester
from .transport import Transport

logger = logging.getLogger(__name__)

# (phase, index, total, status line); phase is "Latency" or a TestType value
RunProgressCallback = Callable[[str, int, int, str], None]


@dataclass
class SpeedTestResult:
    """Everything one run produced."""

    metadata: Metadata
    latency: LatencyResult
    measurements: List[Measurement] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def of_type(self, test_type: TestType) -> List[Measurement]:
        return [m for m in self.measurements if m.test_type is test_type]

    def summary_by_type(self) -> Dict[TestType, Summary]:
        return summarize_by_type(self.measurements)

    def summary_by_payload(self) -> Dict[Tuple[TestType, int], Summary]:
        return summarize_by_payload(self.measurements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "metadata": self.metadata.to_dict(),
            "latency": self.latency.to_dict(),
            "summary": {
                str(tt): s.to_dict() for tt, s in self.summary_by_type().items()
            },
            "payloads": [
                {"test_type": str(tt), "payload_size": size, **s.to_dict()}
                for (tt, size), s in self.summary_by_payload().items()
            ],
            "measurements": [m.to_dict() for m in self.measurements],
        }


async def run_speed_test(
    transport: Transport,
    config: SpeedTestConfig,
    on_progress: Optional[RunProgressCallback] = None,
) -> SpeedTestResult:
    """Run the full measurement sequence described by *config*."""

    def _relay(phase: str):
        if on_progress is None:
            return None
        return lambda i, total, status: on_progress(phase, i, total, status)

    metadata = await fetch_metadata(transport, config.base_url)

    latency_tester = LatencyTester(transport, config.base_url, config.latency_samples)
    latency_tester.on_progress = _relay("Latency")
    latency = await latency_tester.probe()

    result = SpeedTestResult(metadata=metadata, latency=latency)

    throughput_tester = ThroughputTester(transport, config.base_url)
    for test_type in config.test_types:
        throughput_tester.on_progress = _relay(str(test_type))
        batch = await throughput_tester.run(
            test_type, config.payload_sizes, config.runs_per_size
        )
        result.measurements.extend(batch)

    logger.info("Speed test finished with %d measurements", len(result.measurements))
    return result
