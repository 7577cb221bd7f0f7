"""
Common utilities for the storage race.
"""

from .scheduler import BoundedScheduler
from .progress import ProgressReporter

__all__ = ['BoundedScheduler', 'ProgressReporter']
