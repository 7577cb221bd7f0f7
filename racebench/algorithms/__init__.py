"""
Upload/download passes and the two-provider race.
"""

from .benchmark_runner import BenchmarkRunner
from .race import RaceOrchestrator, run_race

__all__ = ['BenchmarkRunner', 'RaceOrchestrator', 'run_race']
