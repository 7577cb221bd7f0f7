"""
Tests for single-shot vs. chunked upload selection.
"""

from racebench.common.transfer_strategy import (
    CHUNKED,
    SINGLE_SHOT,
    compute_part_size,
    select_transfer_strategy,
)
from racebench.configuration import BYTES_PER_MB, MAX_PART_SIZE_BYTES, MIN_PART_SIZE_BYTES


def test_small_object_single_shot():
    strategy = select_transfer_strategy(4 * BYTES_PER_MB)
    assert strategy.mode == SINGLE_SHOT
    assert not strategy.is_chunked


def test_threshold_is_inclusive():
    """Exactly 5 MiB goes multipart."""
    strategy = select_transfer_strategy(5 * BYTES_PER_MB)
    assert strategy.mode == CHUNKED
    assert strategy.chunk_size_bytes == MIN_PART_SIZE_BYTES


def test_just_below_threshold():
    assert select_transfer_strategy(5 * BYTES_PER_MB - 1).mode == SINGLE_SHOT


def test_part_size_is_tenth_of_object():
    strategy = select_transfer_strategy(100 * BYTES_PER_MB)
    assert strategy.mode == CHUNKED
    assert strategy.chunk_size_bytes == 10 * BYTES_PER_MB


def test_part_size_clamped():
    assert compute_part_size(10 * BYTES_PER_MB) == MIN_PART_SIZE_BYTES
    assert compute_part_size(2048 * BYTES_PER_MB) == MAX_PART_SIZE_BYTES


def test_part_size_hint_used_verbatim():
    strategy = select_transfer_strategy(100 * BYTES_PER_MB, part_size_mb=16)
    assert strategy.chunk_size_bytes == 16 * BYTES_PER_MB


def test_hint_does_not_force_multipart():
    assert select_transfer_strategy(1 * BYTES_PER_MB, part_size_mb=16).mode == SINGLE_SHOT


def test_streaming_body_always_chunked():
    assert select_transfer_strategy(1024, streaming=True).mode == CHUNKED


def test_deterministic():
    assert select_transfer_strategy(64 * BYTES_PER_MB) == select_transfer_strategy(64 * BYTES_PER_MB)
