"""Cloudflare speed-test engine -- transport, probes, and statistics."""

from .config import SpeedTestConfig
from .errors import EmptyInputError, ProtocolError, SpeedTestError, TransportError
from .latency import LatencyResult, LatencyTester, correct_latency, parse_server_timing
from .metadata import Metadata, fetch_metadata
from .runner import SpeedTestResult, run_speed_test
from .stats import (
    Summary,
    format_bytes,
    format_latency,
    format_speed,
    summarize,
    summarize_by_payload,
    summarize_by_type,
)
from .throughput import Measurement, TestType, ThroughputTester, compute_mbit
from .transport import AiohttpTransport, Request, TimedResponse, Transport

__all__ = [
    "AiohttpTransport",
    "EmptyInputError",
    "LatencyResult",
    "LatencyTester",
    "Measurement",
    "Metadata",
    "ProtocolError",
    "Request",
    "SpeedTestConfig",
    "SpeedTestError",
    "SpeedTestResult",
    "Summary",
    "TestType",
    "ThroughputTester",
    "TimedResponse",
    "Transport",
    "TransportError",
    "compute_mbit",
    "correct_latency",
    "fetch_metadata",
    "format_bytes",
    "format_latency",
    "format_speed",
    "parse_server_timing",
    "run_speed_test",
    "summarize",
    "summarize_by_payload",
    "summarize_by_type",
]
