"""
Upload strategy selection: single PutObject vs. multipart upload.
"""

from dataclasses import dataclass
from typing import Optional

from racebench.configuration import (
    BYTES_PER_MB,
    MULTIPART_THRESHOLD_BYTES,
    MIN_PART_SIZE_BYTES,
    MAX_PART_SIZE_BYTES,
    PART_SIZE_DIVISOR,
)

SINGLE_SHOT = "single-shot"
CHUNKED = "chunked"


@dataclass(frozen=True)
class TransferStrategy:
    mode: str
    chunk_size_bytes: int

    @property
    def is_chunked(self) -> bool:
        return self.mode == CHUNKED


def compute_part_size(size_bytes: int, part_size_mb: Optional[int] = None) -> int:
    """Part size in bytes: the operator hint verbatim, else size/10 clamped to [8 MiB, 64 MiB]."""
    if part_size_mb:
        return part_size_mb * BYTES_PER_MB
    return max(MIN_PART_SIZE_BYTES, min(MAX_PART_SIZE_BYTES, size_bytes // PART_SIZE_DIVISOR))


def select_transfer_strategy(
    size_bytes: int, part_size_mb: Optional[int] = None, streaming: bool = False
) -> TransferStrategy:
    """Decide how an object of ``size_bytes`` should be written.

    Objects under the multipart threshold go out in one request. Objects at
    or above it, and any body supplied as a chunk stream, use a multipart
    upload. Pure and deterministic.

    Args:
        size_bytes: Declared object size
        part_size_mb: Optional operator override for the part size
        streaming: True when the body is a chunk producer rather than a buffer

    Returns:
        TransferStrategy with mode and chunk size in bytes
    """
    chunk_size = compute_part_size(size_bytes, part_size_mb)
    if size_bytes >= MULTIPART_THRESHOLD_BYTES or streaming:
        return TransferStrategy(CHUNKED, chunk_size)
    return TransferStrategy(SINGLE_SHOT, chunk_size)
