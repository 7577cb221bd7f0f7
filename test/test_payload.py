"""
Tests for random payload generation.
"""

import pytest

from racebench.common.payload import RandomPayload


def test_iteration_yields_exact_length():
    payload = RandomPayload(10_000, chunk_size=3_000)
    chunks = list(payload)

    assert [len(chunk) for chunk in chunks] == [3_000, 3_000, 3_000, 1_000]
    assert payload.remaining == 0
    assert len(payload) == 10_000


def test_read_all():
    payload = RandomPayload(4096)
    assert len(payload.read_all()) == 4096
    assert payload.read_all() == b""


def test_consumed_payload_is_empty():
    payload = RandomPayload(100, chunk_size=60)
    next(payload)
    assert len(payload.read_all()) == 40
    assert list(payload) == []


def test_empty_payload():
    assert list(RandomPayload(0)) == []


def test_invalid_arguments():
    with pytest.raises(ValueError):
        RandomPayload(-1)
    with pytest.raises(ValueError):
        RandomPayload(10, chunk_size=0)
