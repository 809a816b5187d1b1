"""
Run configuration and user configuration file support.

``SpeedTestConfig`` is the explicit configuration injected into the runner.
Defaults for the CLI are read from ``~/.cfspeed/config.json``.

Supported keys::

    nr_tests = 10                 # runs per payload size
    nr_latency_tests = 25
    max_payload_size = 25000000   # bytes, one of PAYLOAD_SIZES
    timeout_secs = null           # per-request timeout
    output_format = "stdout"
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .constants import (
    BASE_URL,
    DEFAULT_MAX_PAYLOAD_SIZE,
    DEFAULT_NR_LATENCY_TESTS,
    DEFAULT_NR_TESTS,
    DEFAULT_OUTPUT_FORMAT,
    PAYLOAD_SIZES,
)
from .throughput import TestType

logger = logging.getLogger(__name__)

_CONFIG_DIR = os.path.join(Path.home(), ".cfspeed")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------

@dataclass
class SpeedTestConfig:
    """Everything a single speed-test run needs to know."""

    base_url: str = BASE_URL
    payload_sizes: Tuple[int, ...] = field(
        default_factory=lambda: tuple(s for s in PAYLOAD_SIZES if s <= DEFAULT_MAX_PAYLOAD_SIZE)
    )
    runs_per_size: int = DEFAULT_NR_TESTS
    latency_samples: int = DEFAULT_NR_LATENCY_TESTS
    test_types: Tuple[TestType, ...] = (TestType.DOWNLOAD, TestType.UPLOAD)
    timeout: Optional[float] = None
    bind: Optional[str] = None   # "ipv4", "ipv6" or None

    @classmethod
    def from_options(
        cls,
        *,
        nr_tests: int = DEFAULT_NR_TESTS,
        nr_latency_tests: int = DEFAULT_NR_LATENCY_TESTS,
        max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE,
        download_only: bool = False,
        upload_only: bool = False,
        timeout: Optional[float] = None,
        bind: Optional[str] = None,
        base_url: str = BASE_URL,
    ) -> SpeedTestConfig:
        if download_only and upload_only:
            raise ValueError("download-only and upload-only are mutually exclusive")

        if download_only:
            test_types: Tuple[TestType, ...] = (TestType.DOWNLOAD,)
        elif upload_only:
            test_types = (TestType.UPLOAD,)
        else:
            test_types = (TestType.DOWNLOAD, TestType.UPLOAD)

        return cls(
            base_url=base_url.rstrip("/"),
            payload_sizes=payload_sizes_up_to(max_payload_size),
            runs_per_size=nr_tests,
            latency_samples=nr_latency_tests,
            test_types=test_types,
            timeout=timeout,
            bind=bind,
        )


def payload_sizes_up_to(max_payload_size: int) -> Tuple[int, ...]:
    """Return the standard payload sizes not larger than *max_payload_size*."""
    sizes = tuple(s for s in PAYLOAD_SIZES if s <= max_payload_size)
    if not sizes:
        raise ValueError(
            f"Max payload size must be at least {PAYLOAD_SIZES[0]} bytes"
        )
    return sizes


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "nr_tests": DEFAULT_NR_TESTS,
    "nr_latency_tests": DEFAULT_NR_LATENCY_TESTS,
    "max_payload_size": DEFAULT_MAX_PAYLOAD_SIZE,
    "timeout_secs": None,
    "output_format": DEFAULT_OUTPUT_FORMAT,
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Return ``DEFAULTS`` overlaid with the known keys of the config file.

    A missing file yields the defaults; an unreadable one is logged too.
    """
    config = dict(DEFAULTS)
    path = _config_path()
    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            stored = json.load(fh)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return config

    if not isinstance(stored, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", path)
        return config

    unknown = sorted(set(stored) - set(DEFAULTS))
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
    config.update((k, v) for k, v in stored.items() if k in DEFAULTS)
    return config


def save_config(options: Dict[str, Any]) -> str:
    """Persist the known keys of *options*.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    stored = {k: options[k] for k in DEFAULTS if k in options}
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(stored, fh, indent=2)

    return path


def config_path() -> str:
    return _config_path()
