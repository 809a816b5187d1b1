"""
Error taxonomy for the measurement engine.

Every error is fatal for the run: nothing in ``cfspeed`` retries.
"""
from __future__ import annotations


class SpeedTestError(Exception):
    """Base class for all measurement failures."""


class TransportError(SpeedTestError):
    """The request could not be sent or the response could not be read."""


class ProtocolError(SpeedTestError):
    """A response did not match the endpoint contract (missing/bad header)."""


class EmptyInputError(SpeedTestError, ValueError):
    """Aggregation was attempted over zero measurements."""
