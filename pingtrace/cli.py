"""
Command-line entry point: option parsing, signal wiring, mode selection.

    pingtrace example.com
    pingtrace -r -C 20 -n 192.0.2.10
    pingtrace --tui example.com
"""

from __future__ import annotations
from typing import Optional
import argparse
import logging
import signal
import sys

from .diagnostics import setup_logging
from .errors import ResolutionError
from .icmp import MAX_HOP_LIMIT
from .models import IPAddress
from .prober import HopProber, Prober
from .render import LiveRenderer, ReportRenderer
from .resolver import resolve_target
from .scheduler import CancelToken, CycleScheduler, SchedulerConfig

logger = logging.getLogger("pingtrace")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pingtrace",
        description="Continuous traceroute + ping: live per-hop loss and latency.",
        epilog=(
            "Examples:\n"
            "  pingtrace example.com\n"
            "  pingtrace -r -C 20 example.com\n"
            "  pingtrace -n -i 1000 -m 20 192.0.2.10\n"
            "  pingtrace --demo --tui 192.0.2.10\n"
            "\n"
            "Sending raw ICMP needs root or CAP_NET_RAW.\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("target", help="Target hostname or IP address")

    parser.add_argument("-c", "--count", type=int, default=0,
                        help="Number of cycles to run (0 = until interrupted)")
    parser.add_argument("-i", "--interval", type=int, default=500,
                        help="Interval between cycles in milliseconds")
    parser.add_argument("-m", "--max-ttl", type=int, default=30,
                        help="Maximum number of hops (TTL)")
    parser.add_argument("-n", "--no-dns", action="store_true",
                        help="Do not resolve hostnames")
    parser.add_argument("-r", "--report", action="store_true",
                        help="Report mode: no live display, print final report")
    parser.add_argument("-C", "--report-cycles", type=int, default=10,
                        help="Cycles to run in report mode")
    parser.add_argument("-t", "--timeout", type=int, default=500,
                        help="Per-probe timeout in milliseconds")

    parser.add_argument("--tui", action="store_true",
                        help="Interactive terminal UI instead of the live table")
    parser.add_argument("--demo", action="store_true",
                        help="Probe a simulated path (no raw sockets needed)")
    parser.add_argument("--json", action="store_true",
                        help="Final report as JSON (implies --report)")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Info-level log output to stderr")
    parser.add_argument("--debug", action="store_true",
                        help="Debug-level log output to stderr")
    parser.add_argument("--log", default=None,
                        help="Write debug log to file")
    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if not 1 <= args.max_ttl <= MAX_HOP_LIMIT:
        parser.error(f"--max-ttl must be between 1 and {MAX_HOP_LIMIT}")
    if args.timeout <= 0:
        parser.error("--timeout must be positive")
    if args.count < 0:
        parser.error("--count must not be negative")
    if args.interval < 0:
        parser.error("--interval must not be negative")
    if args.report_cycles < 1:
        parser.error("--report-cycles must be at least 1")
    if args.tui and (args.report or args.json):
        parser.error("--tui cannot be combined with --report or --json")


def config_from_args(args: argparse.Namespace) -> SchedulerConfig:
    return SchedulerConfig(
        count=args.count,
        interval_ms=args.interval,
        max_ttl=args.max_ttl,
        resolve_names=not args.no_dns,
        report=args.report or args.json,
        report_cycles=args.report_cycles,
        timeout_ms=args.timeout,
    )


def _build_prober(args: argparse.Namespace, address: IPAddress) -> Prober:
    if args.demo:
        from .simulate import SimulatedTransport
        return HopProber(SimulatedTransport())
    from .icmp import ScapyTransport
    return HopProber(ScapyTransport(ipv6=address.version == 6))


def install_signal_handlers(token: CancelToken) -> dict:
    """SIGINT/SIGTERM flip the token. Returns the previous handlers."""

    def _handler(signum, frame):
        logger.info(f"Signal {signum} received, stopping after this cycle")
        token.cancel()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)

    setup_logging(log_file=args.log, debug=args.debug, verbose=args.verbose)

    try:
        address = resolve_target(args.target)
    except ResolutionError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    config = config_from_args(args)
    prober = _build_prober(args, address)
    token = CancelToken()

    previous = install_signal_handlers(token)
    try:
        if args.tui:
            _run_tui(args.target, address, config, prober, token)
        else:
            if config.report:
                renderer = ReportRenderer(args.target, address,
                                          config.resolve_names,
                                          json_output=args.json)
            else:
                renderer = LiveRenderer(args.target, address, config.resolve_names)
            CycleScheduler(config, prober, renderer, address, token=token).run()
    finally:
        restore_signal_handlers(previous)

    return 0


def _run_tui(target: str, address: IPAddress, config: SchedulerConfig,
             prober: Prober, token: CancelToken) -> None:
    from .app import PingTraceApp

    app = PingTraceApp(target, address, config, prober, token=token)
    app.run()
    app.join(timeout=config.timeout_ms / 1000.0 + 5.0)
    print()
    ReportRenderer(target, address, config.resolve_names).final(
        app.scheduler.snapshot()
    )


if __name__ == "__main__":
    sys.exit(main())
