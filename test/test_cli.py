"""
Tests for CLI argument parsing.
"""

import unittest

from racebench.cli import RaceBenchCLI
from racebench.configuration import (
    DEFAULT_METRICS_PORT,
    DEFAULT_PLOTS_DIR,
    DEFAULT_PROVIDER_A,
    DEFAULT_PROVIDER_B,
)


class TestRaceBenchCLI(unittest.TestCase):
    """Test subcommand parsing."""

    def setUp(self):
        self.parser = RaceBenchCLI().parser

    def test_race_defaults(self):
        args = self.parser.parse_args(['race'])
        self.assertEqual(args.command, 'race')
        self.assertEqual(args.provider_a, DEFAULT_PROVIDER_A)
        self.assertEqual(args.provider_b, DEFAULT_PROVIDER_B)
        self.assertIsNone(args.part_mb)
        self.assertIsNone(args.plot_dir)
        self.assertIsNone(args.metrics_port)

    def test_race_options(self):
        args = self.parser.parse_args([
            'race', '--provider-a', 'r2', '--provider-b', 'aws', '--count', '3',
            '--size-bytes', '2048', '--concurrency', '4', '--part-mb', '16', '--plot-dir',
        ])
        self.assertEqual((args.provider_a, args.provider_b), ('r2', 'aws'))
        self.assertEqual(args.count, 3)
        self.assertEqual(args.size_bytes, 2048)
        self.assertEqual(args.part_mb, 16)
        self.assertEqual(args.plot_dir, DEFAULT_PLOTS_DIR)

    def test_unknown_provider_rejected(self):
        with self.assertRaises(SystemExit):
            self.parser.parse_args(['race', '--provider-a', 'gcs'])

    def test_serve(self):
        args = self.parser.parse_args(['serve', '--port', '8080'])
        self.assertEqual(args.port, 8080)
        self.assertIsNone(args.metrics_port)

    def test_metrics_port_flag_uses_default_port(self):
        args = self.parser.parse_args(['serve', '--metrics-port'])
        self.assertEqual(args.metrics_port, DEFAULT_METRICS_PORT)
        args = self.parser.parse_args(['race', '--metrics-port', '9200'])
        self.assertEqual(args.metrics_port, 9200)

    def test_no_command_prints_help(self):
        self.assertEqual(RaceBenchCLI().run([]), 1)

    def test_invalid_request_returns_error(self):
        self.assertEqual(RaceBenchCLI().run(['race', '--count', '0']), 1)


if __name__ == '__main__':
    unittest.main()
