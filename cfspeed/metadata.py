"""
Connection metadata reported by the speed-test edge.

A zero-byte download carries ``cf-meta-*`` headers describing where the
client appears to be and which data center (colo) served it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .constants import BASE_URL, DOWNLOAD_PATH, META_HEADERS
from .transport import Request, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metadata:
    """Geographic / network metadata for the current connection."""

    city: str
    country: str
    ip: str
    asn: str
    colo: str

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Metadata:
        """Build from response headers, substituting ``"<Label> N/A"``."""
        lowered = {k.lower(): v for k, v in headers.items()}
        values = [
            lowered.get(header, f"{label} N/A") for header, label in META_HEADERS
        ]
        return cls(*values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "city": self.city,
            "country": self.country,
            "ip": self.ip,
            "asn": self.asn,
            "colo": self.colo,
        }


async def fetch_metadata(transport: Transport, base_url: str = BASE_URL) -> Metadata:
    """Issue one zero-byte download and extract the ``cf-meta-*`` headers."""
    resp = await transport.send(Request("GET", f"{base_url}{DOWNLOAD_PATH}?bytes=0"))
    metadata = Metadata.from_headers(resp.headers)
    logger.info("Connected via colo %s (%s, %s)", metadata.colo, metadata.city, metadata.country)
    return metadata
