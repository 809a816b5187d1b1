"""
Shared constants used across all cfspeed modules.

Centralises the endpoint contract, default tunables, and option limits so
they live in exactly one place.
"""

# ---------------------------------------------------------------------------
# Cloudflare speed-test endpoint
# ---------------------------------------------------------------------------

BASE_URL = "http://speed.cloudflare.com"
DOWNLOAD_PATH = "/__down"
UPLOAD_PATH = "/__up"

USER_AGENT = "cfspeed/0.1.0"

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Encoding": "identity",
}

# ---------------------------------------------------------------------------
# Response headers
# ---------------------------------------------------------------------------

SERVER_TIMING_HEADER = "server-timing"
SERVER_TIMING_PATTERN = r"cfRequestDuration;dur=([0-9]+(?:\.[0-9]+)?)"

# (header, sentinel label) in display order
META_HEADERS = (
    ("cf-meta-city", "City"),
    ("cf-meta-country", "Country"),
    ("cf-meta-ip", "IP"),
    ("cf-meta-asn", "ASN"),
    ("cf-meta-colo", "Colo"),
)

# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

PAYLOAD_SIZES = (100_000, 1_000_000, 10_000_000, 25_000_000, 100_000_000)
DEFAULT_MAX_PAYLOAD_SIZE = 25_000_000
UPLOAD_FILL_BYTE = b"\x01"

# ---------------------------------------------------------------------------
# Run counts / limits
# ---------------------------------------------------------------------------

DEFAULT_NR_TESTS = 10
DEFAULT_NR_LATENCY_TESTS = 25
MIN_NR_TESTS = 1
MAX_NR_TESTS = 1000
MIN_NR_LATENCY_TESTS = 1
MAX_NR_LATENCY_TESTS = 1000

MIN_TIMEOUT = 1.0
MAX_TIMEOUT = 3600.0

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 256 * 1024          # 256 KB read size when draining bodies

# ---------------------------------------------------------------------------
# Output formats
# ---------------------------------------------------------------------------

OUTPUT_FORMATS = ("stdout", "text", "csv", "json", "json-pretty")
DEFAULT_OUTPUT_FORMAT = "stdout"
