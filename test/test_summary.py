"""
Tests for race result tables and charts.
"""

import math
import os
import tempfile
import unittest

from racebench.common.metrics_utils import compute_pass_metrics
from racebench.common.records import DOWNLOAD, UPLOAD, PassResult, RaceResult
from racebench.configuration import BYTES_PER_MB
from racebench.visualizations.race_plots import RacePlotter
from racebench.visualizations.summary import (
    COLUMNS,
    compare_providers,
    format_summary,
    results_frame,
)


def make_pass(provider, operation, duration_ms):
    return PassResult(
        provider=provider,
        operation=operation,
        count=4,
        metrics=compute_pass_metrics([10.0, 20.0, 30.0, 40.0], 4 * BYTES_PER_MB, duration_ms),
        concurrency=2,
    )


def make_result():
    return RaceResult((
        make_pass("aws", UPLOAD, 1000.0),   # 4 MB/s
        make_pass("b2", UPLOAD, 2000.0),    # 2 MB/s
        make_pass("aws", DOWNLOAD, 4000.0), # 1 MB/s
        make_pass("b2", DOWNLOAD, 500.0),   # 8 MB/s
    ))


class TestSummary(unittest.TestCase):
    """Test pandas summaries."""

    def test_results_frame(self):
        data = results_frame(make_result())
        self.assertEqual(list(data.columns), COLUMNS)
        self.assertEqual(len(data), 4)
        self.assertEqual(list(data['provider']), ["aws", "b2", "aws", "b2"])
        self.assertAlmostEqual(data.iloc[0]['throughput_mbps'], 4.0)
        self.assertAlmostEqual(data.iloc[1]['duration_s'], 2.0)

    def test_compare_providers(self):
        winners = compare_providers(results_frame(make_result())).set_index('operation')
        self.assertEqual(winners.loc[UPLOAD, 'winner'], "aws")
        self.assertAlmostEqual(winners.loc[UPLOAD, 'speedup'], 2.0)
        self.assertEqual(winners.loc[DOWNLOAD, 'winner'], "b2")
        self.assertEqual(winners.loc[DOWNLOAD, 'loser'], "aws")
        self.assertAlmostEqual(winners.loc[DOWNLOAD, 'speedup'], 8.0)

    def test_speedup_nan_when_loser_idle(self):
        result = RaceResult((
            make_pass("aws", UPLOAD, 1000.0),
            make_pass("b2", UPLOAD, 0.0),
            make_pass("aws", DOWNLOAD, 1000.0),
            make_pass("b2", DOWNLOAD, 1000.0),
        ))
        winners = compare_providers(results_frame(result)).set_index('operation')
        self.assertTrue(math.isnan(winners.loc[UPLOAD, 'speedup']))

    def test_format_summary(self):
        text = format_summary(make_result())
        self.assertIn("upload: aws is 2.00x faster than b2", text)
        self.assertIn("download: b2 is 8.00x faster than aws", text)


class TestRacePlotter(unittest.TestCase):
    """Test chart files are written."""

    def test_create_all_plots(self):
        with tempfile.TemporaryDirectory() as output_dir:
            plots = RacePlotter.from_result(make_result(), output_dir).create_all_plots()

            self.assertEqual(
                [os.path.basename(p) for p in plots],
                ['race_throughput.png', 'race_latency.png'],
            )
            for plot in plots:
                self.assertTrue(os.path.getsize(plot) > 0)


if __name__ == '__main__':
    unittest.main()
