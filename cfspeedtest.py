#!/usr/bin/env python3
"""
Cloudflare speed test CLI -- latency and per-payload throughput.

Usage::

    python cfspeedtest.py                          # rich dashboard
    python cfspeedtest.py --output-format text     # plain text
    python cfspeedtest.py --output-format csv      # one CSV row per run
    python cfspeedtest.py --output-format json-pretty
    python cfspeedtest.py --nr-tests 5 --max-payload-size 10MB
    python cfspeedtest.py --download-only --ipv4 --timeout-secs 30
    python cfspeedtest.py --nr-tests 3 --save-config   # remember as defaults
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from cfspeed.config import SpeedTestConfig, config_path, load_config, save_config
from cfspeed.constants import (
    DEFAULT_MAX_PAYLOAD_SIZE,
    MAX_NR_LATENCY_TESTS,
    MAX_NR_TESTS,
    MAX_TIMEOUT,
    MIN_NR_LATENCY_TESTS,
    MIN_NR_TESTS,
    MIN_TIMEOUT,
    OUTPUT_FORMATS,
    PAYLOAD_SIZES,
)
from cfspeed.errors import SpeedTestError
from cfspeed.runner import SpeedTestResult, run_speed_test
from cfspeed.stats import format_bytes
from cfspeed.transport import AiohttpTransport
from display.dashboard import (
    ProgressDisplay,
    console,
    print_final_results,
    print_header,
    print_latency_details,
    print_metadata,
    print_payload_summary,
)
from display.output import format_csv, format_json, format_text_result

logger = logging.getLogger("cfspeedtest")


# ---------------------------------------------------------------------------
# Parameter parsing / validation
# ---------------------------------------------------------------------------

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([km]?)b?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "k": 1_000, "m": 1_000_000}


def _parse_payload_size(value: str) -> int:
    """Parse ``25MB`` / ``100k`` / ``1000000`` into bytes."""
    m = _SIZE_RE.match(value)
    if not m:
        raise argparse.ArgumentTypeError(f"Invalid payload size: {value!r}")
    size = int(m.group(1)) * _SIZE_UNITS[m.group(2).lower()]
    if size not in PAYLOAD_SIZES:
        choices = ", ".join(format_bytes(s) for s in PAYLOAD_SIZES)
        raise argparse.ArgumentTypeError(f"Payload size must be one of: {choices}")
    return size


def _validate(
    nr_tests: int,
    nr_latency_tests: int,
    timeout_secs: Optional[float],
    max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE,
) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    if max_payload_size not in PAYLOAD_SIZES:
        choices = ", ".join(format_bytes(s) for s in PAYLOAD_SIZES)
        raise ValueError(f"Max payload size must be one of: {choices}")
    if not MIN_NR_TESTS <= nr_tests <= MAX_NR_TESTS:
        raise ValueError(f"Number of tests must be between {MIN_NR_TESTS} and {MAX_NR_TESTS}")
    if not MIN_NR_LATENCY_TESTS <= nr_latency_tests <= MAX_NR_LATENCY_TESTS:
        raise ValueError(
            f"Number of latency tests must be between "
            f"{MIN_NR_LATENCY_TESTS} and {MAX_NR_LATENCY_TESTS}"
        )
    if timeout_secs is not None and not MIN_TIMEOUT <= timeout_secs <= MAX_TIMEOUT:
        raise ValueError(f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} s")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run(config: SpeedTestConfig, output_format: str) -> SpeedTestResult:
    """Execute the speed test and render it in *output_format*."""
    show_ui = output_format == "stdout"

    if show_ui:
        print_header()
        console.print("Starting Cloudflare speed test")

    async with AiohttpTransport(bind=config.bind, timeout=config.timeout) as transport:
        if show_ui:
            progress = ProgressDisplay()
            progress.start()
            try:
                result = await run_speed_test(transport, config, on_progress=progress.update)
            finally:
                progress.stop()
        else:
            result = await run_speed_test(transport, config)

    if show_ui:
        print_metadata(result.metadata)
        print_latency_details(result.latency)
        print_payload_summary(result)
        print_final_results(result)
    elif output_format == "text":
        print(format_text_result(result))
    elif output_format == "csv":
        print(format_csv(result.measurements))
    else:
        print(format_json(result, pretty=output_format == "json-pretty"))

    return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    defaults = load_config()

    parser = argparse.ArgumentParser(
        description="Cloudflare speed test -- latency and per-payload throughput",
    )
    # Test parameters
    parser.add_argument("--nr-tests", "-n", type=int, default=defaults["nr_tests"], metavar="N", help="Runs per payload size (default: %(default)s)")
    parser.add_argument("--nr-latency-tests", type=int, default=defaults["nr_latency_tests"], metavar="N", help="Number of latency probes (default: %(default)s)")
    parser.add_argument("--max-payload-size", "-m", type=_parse_payload_size, default=defaults["max_payload_size"], metavar="SIZE", help="Largest payload to test, e.g. 10MB (default: 25MB)")

    direction = parser.add_mutually_exclusive_group()
    direction.add_argument("--download-only", action="store_true", help="Skip the upload test")
    direction.add_argument("--upload-only", action="store_true", help="Skip the download test")

    # Connection
    family = parser.add_mutually_exclusive_group()
    family.add_argument("--ipv4", action="store_true", help="Bind to an IPv4 local address")
    family.add_argument("--ipv6", action="store_true", help="Bind to an IPv6 local address")
    parser.add_argument("--timeout-secs", type=float, default=defaults["timeout_secs"], metavar="SECS", help="Per-request timeout in seconds")

    # Output
    parser.add_argument("--output-format", "-o", choices=OUTPUT_FORMATS, default=defaults["output_format"], help="Output format (default: %(default)s)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--save-config", action="store_true", help="Save these options as defaults")

    return parser


def main(argv: Optional[list] = None) -> None:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    bind = "ipv4" if args.ipv4 else "ipv6" if args.ipv6 else None
    try:
        _validate(
            nr_tests=args.nr_tests,
            nr_latency_tests=args.nr_latency_tests,
            timeout_secs=args.timeout_secs,
            max_payload_size=args.max_payload_size,
        )
        config = SpeedTestConfig.from_options(
            nr_tests=args.nr_tests,
            nr_latency_tests=args.nr_latency_tests,
            max_payload_size=args.max_payload_size,
            download_only=args.download_only,
            upload_only=args.upload_only,
            timeout=args.timeout_secs,
            bind=bind,
        )
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if args.save_config:
        path = save_config({
            "nr_tests": args.nr_tests,
            "nr_latency_tests": args.nr_latency_tests,
            "max_payload_size": args.max_payload_size,
            "timeout_secs": args.timeout_secs,
            "output_format": args.output_format,
        })
        console.print(f"[green]Defaults saved to:[/green] {path}")

    logger.debug("Using %r (config file: %s)", config, config_path())

    try:
        asyncio.run(run(config, args.output_format))
    except KeyboardInterrupt:
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except SpeedTestError as exc:
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
