"""
Bar charts comparing the two providers of a race.
"""

import logging
import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from racebench.common.records import RaceResult
from racebench.visualizations.summary import results_frame

logger = logging.getLogger(__name__)

PERCENTILE_COLUMNS = ['p50_ms', 'p95_ms', 'p99_ms']


class RacePlotter:
    """Plotter for the throughput and latency comparison of one race."""

    def __init__(self, data: pd.DataFrame, output_dir: str):
        self.data = data
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    @classmethod
    def from_result(cls, result: RaceResult, output_dir: str) -> 'RacePlotter':
        return cls(results_frame(result), output_dir)

    def get_provider_colors(self):
        """Generate color map for providers."""
        providers = list(self.data['provider'].unique())
        colors = plt.cm.Set1(range(len(providers)))
        return dict(zip(providers, colors))

    def create_throughput_chart(self):
        """Grouped bars of throughput per operation and provider."""
        if self.data is None or len(self.data) == 0:
            logger.warning("No data available for throughput chart")
            return None

        table = self.data.pivot(index='operation', columns='provider', values='throughput_mbps')
        colors = self.get_provider_colors()

        fig, ax = plt.subplots(figsize=(10, 6))
        table.plot(kind='bar', ax=ax, color=[colors[p] for p in table.columns], rot=0)
        ax.set_title('Throughput by Operation', fontsize=14)
        ax.set_xlabel('Operation', fontsize=12)
        ax.set_ylabel('Throughput (MB/s)', fontsize=12)
        ax.grid(True, axis='y', alpha=0.3)
        ax.legend(title='Provider')
        fig.tight_layout()

        output_file = os.path.join(self.output_dir, 'race_throughput.png')
        fig.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        logger.info(f"Created throughput chart: {output_file}")
        return output_file

    def create_latency_chart(self):
        """One panel per operation with p50/p95/p99 bars per provider."""
        if self.data is None or len(self.data) == 0:
            logger.warning("No data available for latency chart")
            return None

        operations = list(self.data['operation'].unique())
        colors = self.get_provider_colors()

        fig, axes = plt.subplots(1, len(operations), figsize=(7 * len(operations), 6), squeeze=False)
        for ax, operation in zip(axes[0], operations):
            subset = self.data[self.data['operation'] == operation].set_index('provider')
            table = subset[PERCENTILE_COLUMNS].T
            table.plot(kind='bar', ax=ax, color=[colors[p] for p in table.columns], rot=0)
            ax.set_title(f'{operation.capitalize()} latency', fontsize=14)
            ax.set_xlabel('Percentile', fontsize=12)
            ax.set_ylabel('Latency (ms)', fontsize=12)
            ax.grid(True, axis='y', alpha=0.3)
        fig.tight_layout()

        output_file = os.path.join(self.output_dir, 'race_latency.png')
        fig.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        logger.info(f"Created latency chart: {output_file}")
        return output_file

    def create_all_plots(self):
        """Create every chart and return the paths that were written."""
        plots = [self.create_throughput_chart(), self.create_latency_chart()]
        return [plot for plot in plots if plot]
