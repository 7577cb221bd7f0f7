"""
Shared utilities for pass metrics: nearest-rank percentiles and throughput.
"""

import math
import logging
from typing import Sequence

from racebench.common.records import PassMetrics
from racebench.configuration import BYTES_PER_MB, MS_PER_SECOND

logger = logging.getLogger(__name__)


def percentile(samples: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile of ``samples`` without interpolation.

    The samples are sorted ascending and the value at index
    ``floor((p / 100) * (len - 1))``, clamped to the valid range, is returned.

    Args:
        samples: Latency samples in any order
        p: Percentile between 0 and 100

    Returns:
        The selected sample, or 0 for an empty sample set
    """
    if not samples:
        return 0
    ordered = sorted(samples)
    index = math.floor((p / 100) * (len(ordered) - 1))
    index = max(0, min(len(ordered) - 1, index))
    return ordered[index]


def bytes_to_mb(total_bytes: float) -> float:
    """Convert bytes to MiB."""
    return total_bytes / BYTES_PER_MB


def calculate_throughput_mbps(total_bytes: float, duration_ms: float) -> float:
    """
    Calculate throughput in MiB per second from bytes and a duration in milliseconds.

    A zero or negative duration yields 0.0 rather than a non-finite value.
    """
    if duration_ms <= 0:
        return 0.0
    return bytes_to_mb(total_bytes) / (duration_ms / MS_PER_SECOND)


def compute_pass_metrics(
    samples: Sequence[float], total_bytes: int, duration_ms: float
) -> PassMetrics:
    """
    Build the metrics of a completed pass.

    Args:
        samples: Per-object latencies in milliseconds for this pass only
        total_bytes: Bytes moved by the pass
        duration_ms: Wall-clock time from first dispatch to last completion

    Returns:
        PassMetrics, all zero when there are no samples
    """
    if not samples:
        return PassMetrics(
            total_bytes=0,
            duration_ms=0.0,
            throughput_mbps=0.0,
            p50_ms=0,
            p95_ms=0,
            p99_ms=0,
        )

    return PassMetrics(
        total_bytes=total_bytes,
        duration_ms=duration_ms,
        throughput_mbps=calculate_throughput_mbps(total_bytes, duration_ms),
        p50_ms=percentile(samples, 50),
        p95_ms=percentile(samples, 95),
        p99_ms=percentile(samples, 99),
    )
