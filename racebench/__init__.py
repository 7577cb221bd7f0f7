"""
Race two object storage providers: upload a batch of objects to both, then
download them back, measuring per-object latency and aggregate throughput.
"""

from racebench.algorithms.race import RaceOrchestrator, run_race
from racebench.common.records import BenchmarkRequest, PassMetrics, PassResult, RaceResult

__version__ = "0.1.0"

__all__ = [
    'BenchmarkRequest',
    'PassMetrics',
    'PassResult',
    'RaceOrchestrator',
    'RaceResult',
    'run_race',
]
