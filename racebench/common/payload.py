"""
Random payload generation for upload passes.
"""

import random
import logging

from racebench.configuration import PAYLOAD_CHUNK_BYTES

logger = logging.getLogger(__name__)


class RandomPayload:
    """One-shot source of ``total_bytes`` random bytes.

    Iterating yields chunks of at most ``chunk_size`` bytes until the
    payload is exhausted, so large objects never sit in memory at once.
    ``read_all()`` returns whatever is left as a single buffer. Either way
    the bytes are produced once; a consumed payload yields nothing more.
    """

    def __init__(self, total_bytes: int, chunk_size: int = PAYLOAD_CHUNK_BYTES):
        if total_bytes < 0:
            raise ValueError(f"Payload length must be non-negative, got {total_bytes}")
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")

        self.total_bytes = total_bytes
        self.chunk_size = chunk_size
        self.remaining = total_bytes

    def __len__(self) -> int:
        return self.total_bytes

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        if self.remaining <= 0:
            raise StopIteration
        size = min(self.chunk_size, self.remaining)
        self.remaining -= size
        return random.randbytes(size)

    def read_all(self) -> bytes:
        """Produce the rest of the payload as one buffer."""
        size = self.remaining
        self.remaining = 0
        return random.randbytes(size)

    def __repr__(self) -> str:
        return f"RandomPayload(total={self.total_bytes}, remaining={self.remaining})"
