"""CLI interface for attr_stats."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Any

from . import __version__
from .config import build_request, load_config
from .errors import StatsError

logger = logging.getLogger(__name__)


def _stats_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Nested config overrides for the options given on the command line."""
    options = {
        ("source", "endpoint"): args.endpoint,
        ("source", "username"): args.username,
        ("source", "password"): args.password,
        ("sampler", "resource"): args.resource,
        ("sampler", "attributes"): args.attributes,
        ("sampler", "interval_ms"): args.interval,
        ("sampler", "lines_heading"): args.lines,
        ("sampler", "timestamp"): args.timestamp,
        ("sampler", "unix_time"): args.unix,
        ("output", "path"): args.output,
    }
    overrides: dict[str, Any] = {}
    for (section, key), value in options.items():
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    return overrides


def _cmd_stats(args: argparse.Namespace) -> None:
    """Sample attributes until interrupted."""
    cfg = load_config(args.config, overrides=_stats_overrides(args))
    request = build_request(cfg)

    from .converter import default_converter
    from .output import RowWriter
    from .sampler import Sampler
    from .source import create_source

    source = create_source(cfg.source)
    source.validate_resource(request.resource)
    converter = default_converter(
        cfg.converter.key_value_separator,
        cfg.converter.entry_separator,
    )

    with RowWriter.open(cfg.output.path) as writer:
        sampler = Sampler(request, source, writer, converter)

        def _handle_signal(_sig: int, _frame: object) -> None:
            sampler.stop()

        previous = {
            sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            sampler.run()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"attr_stats {__version__}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attr-stats",
        description="Sample management attributes and print them as a tab-separated table",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to attr_stats.yaml")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Log debug output")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    sub = parser.add_subparsers(dest="command")

    # stats
    stats_p = sub.add_parser("stats", help="Collect statistics from an attribute source")
    stats_p.add_argument(
        "--endpoint", "-s", default=None,
        help="Jolokia URL (http://host:8778/jolokia) or 'local' for this host",
    )
    stats_p.add_argument(
        "--resource", "-o", default=None,
        help="Object name, e.g. java.lang:type=Memory, or system / process:<pid>",
    )
    stats_p.add_argument(
        "--attributes", "-a", default=None,
        help="The attribute name, or a list of comma-separated attribute names",
    )
    stats_p.add_argument("--username", "-u", default=None, help="Username for the endpoint")
    stats_p.add_argument("--password", "-p", default=None, help="Password for the endpoint")
    stats_p.add_argument(
        "--interval", "-i", type=int, default=None,
        help="Sampling interval in milliseconds (minimum is 250, 0 samples once)",
    )
    stats_p.add_argument(
        "--lines", "-l", type=int, default=None,
        help="Number of samples between header lines (0 = header only once)",
    )
    stats_p.add_argument(
        "--timestamp", "-t", action="store_true", default=None,
        help="Display a timestamp (ms since start) for each row",
    )
    stats_p.add_argument(
        "--unix", action="store_true", default=None,
        help="Display the timestamp in unix time (ms since 1 Jan 1970)",
    )
    stats_p.add_argument("--output", default=None, help="Output file ('-' for stdout)")
    stats_p.set_defaults(func=_cmd_stats)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the attr-stats CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except StatsError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(exc.exit_code)


if __name__ == "__main__":
    main()
