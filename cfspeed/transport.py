"""
HTTP transport adapter.

All network I/O of the measurement engine goes through a ``Transport``:
``send(request) -> TimedResponse``.  The real implementation wraps a single
``aiohttp.ClientSession`` managed via async-context-manager protocol
(``async with AiohttpTransport() as transport: ...``).  Tests substitute a
fake object with the same ``send`` coroutine.
"""
from __future__ import annotations

import asyncio
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import aiohttp

from .constants import CHUNK_SIZE, COMMON_HEADERS
from .errors import TransportError

logger = logging.getLogger(__name__)

# local address per bind family; port 0 lets the OS pick
_BIND_ADDRESSES = {
    "ipv4": ("0.0.0.0", socket.AF_INET),
    "ipv6": ("::", socket.AF_INET6),
}


# ---------------------------------------------------------------------------
# Request / response
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Request:
    """A fully constructed request."""

    method: str
    url: str
    body: Optional[bytes] = None


@dataclass
class TimedResponse:
    """Outcome of one timed exchange."""

    status: int
    elapsed: float              # seconds, dispatch until body drained
    size: int                   # response body bytes
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())


class Transport(Protocol):
    async def send(self, request: Request) -> TimedResponse:
        ...


# ---------------------------------------------------------------------------
# aiohttp implementation
# ---------------------------------------------------------------------------

class AiohttpTransport:
    """Async context-manager sending timed requests over one aiohttp session."""

    def __init__(
        self,
        bind: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if bind is not None and bind not in _BIND_ADDRESSES:
            raise ValueError(f"Unknown bind family: {bind!r}")
        self.bind = bind
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> AiohttpTransport:
        connector_kwargs: dict = {"limit": 1, "force_close": False}
        if self.bind is not None:
            host, family = _BIND_ADDRESSES[self.bind]
            connector_kwargs["local_addr"] = (host, 0)
            connector_kwargs["family"] = family

        self._session = aiohttp.ClientSession(
            headers=COMMON_HEADERS,
            connector=aiohttp.TCPConnector(**connector_kwargs),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            auto_decompress=False,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "AiohttpTransport must be used as an async context manager "
                "(async with AiohttpTransport() as transport: ...)"
            )
        return self._session

    # -- Public methods -----------------------------------------------------

    async def send(self, request: Request) -> TimedResponse:
        """Send *request*, drain the body, and time the whole exchange."""
        session = self._ensure_session()
        size = 0

        start = time.perf_counter()
        try:
            async with session.request(
                request.method, request.url, data=request.body
            ) as resp:
                async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                    size += len(chunk)
                elapsed = time.perf_counter() - start
                status = resp.status
                # repeated fields (e.g. Server-Timing) are joined per RFC 9110
                headers = {k: ", ".join(resp.headers.getall(k)) for k in resp.headers.keys()}
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"{request.method} {request.url} timed out after {self.timeout}s"
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}") from exc

        logger.debug(
            "%s %s -> %d, %d bytes in %.1f ms",
            request.method, request.url, status, size, elapsed * 1000,
        )
        return TimedResponse(status=status, elapsed=elapsed, size=size, headers=headers)
