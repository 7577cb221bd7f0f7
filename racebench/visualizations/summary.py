"""
Tabular summaries of a race result.
"""

import logging

import pandas as pd

from racebench.common.records import RaceResult
from racebench.configuration import MS_PER_SECOND

logger = logging.getLogger(__name__)

COLUMNS = [
    'provider',
    'operation',
    'count',
    'total_mb',
    'duration_s',
    'throughput_mbps',
    'p50_ms',
    'p95_ms',
    'p99_ms',
]


def results_frame(result: RaceResult) -> pd.DataFrame:
    """One row per pass, in race order."""
    rows = []
    for pass_result in result.results:
        metrics = pass_result.metrics
        rows.append({
            'provider': pass_result.provider,
            'operation': pass_result.operation,
            'count': pass_result.count,
            'total_mb': metrics.total_mb,
            'duration_s': metrics.duration_ms / MS_PER_SECOND,
            'throughput_mbps': metrics.throughput_mbps,
            'p50_ms': metrics.p50_ms,
            'p95_ms': metrics.p95_ms,
            'p99_ms': metrics.p99_ms,
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def compare_providers(data: pd.DataFrame) -> pd.DataFrame:
    """
    Pick the faster provider for each operation.

    The speedup is the winner's throughput divided by the loser's; it is NaN
    when the loser moved no data.

    Args:
        data: Frame produced by results_frame()

    Returns:
        DataFrame with operation, winner, loser and speedup columns
    """
    rows = []
    for operation, group in data.groupby('operation', sort=False):
        ranked = group.sort_values('throughput_mbps', ascending=False)
        best = ranked.iloc[0]
        other = ranked.iloc[-1]
        if other['throughput_mbps'] > 0:
            speedup = best['throughput_mbps'] / other['throughput_mbps']
        else:
            speedup = float('nan')
        rows.append({
            'operation': operation,
            'winner': best['provider'],
            'loser': other['provider'],
            'speedup': speedup,
        })
    return pd.DataFrame(rows, columns=['operation', 'winner', 'loser', 'speedup'])


def format_summary(result: RaceResult) -> str:
    """Human readable results and winners table."""
    data = results_frame(result)
    winners = compare_providers(data)

    lines = [data.to_string(index=False, float_format=lambda value: f"{value:.1f}"), ""]
    for _, row in winners.iterrows():
        if pd.isna(row['speedup']):
            lines.append(f"{row['operation']}: {row['winner']} wins")
        else:
            lines.append(
                f"{row['operation']}: {row['winner']} is {row['speedup']:.2f}x faster than {row['loser']}"
            )
    return "\n".join(lines)
