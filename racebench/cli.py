import sys
import logging
import argparse

import uvloop
from aiohttp import web

from racebench.configuration import (
    KEY_PREFIX,
    HOST,
    PORT,
    DEFAULT_OBJECT_SIZE_BYTES,
    DEFAULT_OBJECT_COUNT,
    DEFAULT_CONCURRENCY,
    DEFAULT_PROVIDER_A,
    DEFAULT_PROVIDER_B,
    DEFAULT_PLOTS_DIR,
    DEFAULT_METRICS_PORT,
    PASS_TIMEOUT_SECONDS,
    SUPPORTED_PROVIDERS,
)
from racebench.errors import RaceBenchError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure root logging (only if not already configured)."""
    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s',
        )


def log_race_event(event: str, payload: dict):
    """Observer that writes race events to the log."""
    if event == 'progress':
        logger.info(f"{payload['provider']} {payload['op']}: {payload['done']}/{payload['total']}")
    elif event == 'phase':
        logger.info(f"Phase: {payload['phase']}")
    elif event == 'error':
        logger.error(f"Race error: {payload['message']}")


class RaceBenchCLI:
    """CLI interface for racing two object storage providers."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description='Object storage race benchmark CLI',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Race AWS S3 against Backblaze B2 with 8 x 16 MiB objects
  racebench race --provider-a aws --provider-b b2 --count 8 --size-bytes 16777216

  # Race with 4 concurrent transfers, 16 MB parts, and save charts
  racebench race --concurrency 4 --part-mb 16 --plot-dir plots

  # Serve the live race endpoint (Server-Sent Events) on port 3000
  racebench serve --port 3000

  # Check that both providers are reachable
  racebench check --provider-a aws --provider-b r2
            """
        )
        parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        def add_provider_args(sub):
            sub.add_argument('--provider-a', choices=SUPPORTED_PROVIDERS, default=DEFAULT_PROVIDER_A,
                             help=f'First provider (default: {DEFAULT_PROVIDER_A})')
            sub.add_argument('--provider-b', choices=SUPPORTED_PROVIDERS, default=DEFAULT_PROVIDER_B,
                             help=f'Second provider (default: {DEFAULT_PROVIDER_B})')

        # Race command
        race_parser = subparsers.add_parser('race', help='Run one upload/download race')
        add_provider_args(race_parser)
        race_parser.add_argument('--size-bytes', type=int, default=DEFAULT_OBJECT_SIZE_BYTES,
                                 help=f'Object size in bytes (default: {DEFAULT_OBJECT_SIZE_BYTES})')
        race_parser.add_argument('--count', type=int, default=DEFAULT_OBJECT_COUNT,
                                 help=f'Objects per provider (default: {DEFAULT_OBJECT_COUNT})')
        race_parser.add_argument('--concurrency', type=int, default=DEFAULT_CONCURRENCY,
                                 help=f'Concurrent transfers per provider (default: {DEFAULT_CONCURRENCY})')
        race_parser.add_argument('--part-mb', type=int, default=None,
                                 help='Multipart part size in MB (default: size/10 clamped to 8-64 MB)')
        race_parser.add_argument('--prefix', type=str, default=KEY_PREFIX,
                                 help=f'Object key prefix (default: {KEY_PREFIX})')
        race_parser.add_argument('--pass-timeout', type=float, default=PASS_TIMEOUT_SECONDS,
                                 help=f'Timeout per pass in seconds (default: {PASS_TIMEOUT_SECONDS:g})')
        race_parser.add_argument('--plot-dir', type=str, nargs='?', const=DEFAULT_PLOTS_DIR, default=None,
                                 help=f'Write comparison charts to this directory (default when given: {DEFAULT_PLOTS_DIR})')
        race_parser.add_argument('--metrics-port', type=int, nargs='?', const=DEFAULT_METRICS_PORT, default=None,
                                 help=f'Expose Prometheus metrics on this port (default when given: {DEFAULT_METRICS_PORT})')

        # Serve command
        serve_parser = subparsers.add_parser('serve', help='Serve the live race endpoint')
        serve_parser.add_argument('--host', type=str, default=HOST, help=f'Bind address (default: {HOST})')
        serve_parser.add_argument('--port', type=int, default=PORT, help=f'Port (default: {PORT})')
        serve_parser.add_argument('--metrics-port', type=int, nargs='?', const=DEFAULT_METRICS_PORT, default=None,
                                  help=f'Expose Prometheus metrics on this port (default when given: {DEFAULT_METRICS_PORT})')

        # Check command
        check_parser = subparsers.add_parser('check', help='Verify provider connectivity')
        add_provider_args(check_parser)

        return parser

    def _create_exporter(self, metrics_port):
        if metrics_port is None:
            return None
        from racebench.observability.prom import PrometheusExporter

        exporter = PrometheusExporter(port=metrics_port)
        exporter.start_server()
        return exporter

    async def run_race(self, args):
        """Run one race and print the comparison."""
        from racebench.algorithms.race import run_race
        from racebench.common.records import BenchmarkRequest
        from racebench.common.storage_factory import create_storage_system
        from racebench.visualizations.summary import format_summary

        logger.info("=== Storage Race ===")

        try:
            request = BenchmarkRequest(
                object_size_bytes=args.size_bytes,
                object_count=args.count,
                concurrency=args.concurrency,
                key_prefix=args.prefix,
                part_size_mb=args.part_mb,
            )
            exporter = self._create_exporter(args.metrics_port)

            async with create_storage_system(args.provider_a) as provider_a, \
                    create_storage_system(args.provider_b) as provider_b:
                result = await run_race(
                    request,
                    provider_a,
                    provider_b,
                    observer=log_race_event,
                    exporter=exporter,
                    pass_timeout_seconds=args.pass_timeout,
                )
        except RaceBenchError as e:
            logger.error(f"Race failed: {e}")
            return 1

        print()
        print(format_summary(result))

        if args.plot_dir:
            from racebench.visualizations.race_plots import RacePlotter

            plots = RacePlotter.from_result(result, args.plot_dir).create_all_plots()
            for plot in plots:
                logger.info(f"  - {plot}")
        return 0

    async def run_check(self, args):
        """Verify both providers answer a cheap list call."""
        from racebench.common.storage_factory import create_storage_system

        logger.info("=== Connectivity Check ===")

        all_ok = True
        for name in (args.provider_a, args.provider_b):
            async with create_storage_system(name) as system:
                all_ok = await system.verify_connection() and all_ok
        return 0 if all_ok else 1

    def run_serve(self, args):
        """Run the HTTP server until interrupted."""
        from racebench.server import create_app

        logger.info(f"=== Serving on {args.host}:{args.port} ===")
        app = create_app(exporter=self._create_exporter(args.metrics_port))
        web.run_app(app, host=args.host, port=args.port, loop=uvloop.new_event_loop())
        return 0

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)
        setup_logging(parsed_args.verbose)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == 'race':
                return uvloop.run(self.run_race(parsed_args))
            elif parsed_args.command == 'check':
                return uvloop.run(self.run_check(parsed_args))
            elif parsed_args.command == 'serve':
                return self.run_serve(parsed_args)
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            return 1


def main():
    """Main entry point."""
    cli = RaceBenchCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
