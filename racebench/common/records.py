"""
Data structures exchanged by the race engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from racebench.configuration import BYTES_PER_MB
from racebench.errors import InvalidRequest

UPLOAD = "upload"
DOWNLOAD = "download"


def _require_positive_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidRequest(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class BenchmarkRequest:
    """Parameters of one race. Validated on construction."""

    object_size_bytes: int
    object_count: int
    concurrency: int
    key_prefix: str
    part_size_mb: Optional[int] = None

    def __post_init__(self):
        _require_positive_int("object_size_bytes", self.object_size_bytes)
        _require_positive_int("object_count", self.object_count)
        _require_positive_int("concurrency", self.concurrency)
        if self.part_size_mb is not None:
            _require_positive_int("part_size_mb", self.part_size_mb)
        if not isinstance(self.key_prefix, str) or not self.key_prefix.strip("/"):
            raise InvalidRequest(f"key_prefix must be a non-empty string, got {self.key_prefix!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sizeBytes": self.object_size_bytes,
            "count": self.object_count,
            "concurrency": self.concurrency,
            "partMB": self.part_size_mb,
            "prefix": self.key_prefix,
        }


@dataclass(frozen=True)
class ObjectDescriptor:
    """An object created by an upload pass and read back by the download pass."""

    key: str
    size_bytes: int


@dataclass(frozen=True)
class TransferSample:
    """Latency and size of one completed object transfer."""

    latency_ms: float
    nbytes: int


@dataclass(frozen=True)
class PassMetrics:
    """Aggregate metrics of one pass."""

    total_bytes: int
    duration_ms: float
    throughput_mbps: float
    p50_ms: float
    p95_ms: float
    p99_ms: float

    @property
    def total_mb(self) -> float:
        return self.total_bytes / BYTES_PER_MB

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalBytes": self.total_bytes,
            "totalMB": self.total_mb,
            "durationMs": self.duration_ms,
            "throughputMBps": self.throughput_mbps,
            "p50ms": self.p50_ms,
            "p95ms": self.p95_ms,
            "p99ms": self.p99_ms,
        }


@dataclass(frozen=True)
class PassResult:
    """Outcome of one upload or download pass against one provider."""

    provider: str
    operation: str
    count: int
    metrics: PassMetrics
    concurrency: int
    objects: Tuple[ObjectDescriptor, ...] = ()
    size_bytes: Optional[int] = None
    part_size_mb: Optional[int] = None

    @property
    def object_keys(self) -> Tuple[str, ...]:
        return tuple(obj.key for obj in self.objects)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "provider": self.provider,
            "op": self.operation,
            "count": self.count,
            "concurrency": self.concurrency,
            "metrics": self.metrics.to_dict(),
        }
        if self.operation == UPLOAD:
            data["sizeBytes"] = self.size_bytes
            data["partMB"] = self.part_size_mb
            data["keys"] = list(self.object_keys)
        return data


@dataclass(frozen=True)
class RaceResult:
    """The four passes of a race.

    Order: provider A upload, provider B upload, provider A download,
    provider B download.
    """

    results: Tuple[PassResult, PassResult, PassResult, PassResult]

    def __post_init__(self):
        if len(self.results) != 4:
            raise ValueError(f"A race has exactly four passes, got {len(self.results)}")

    @property
    def uploads(self) -> Tuple[PassResult, PassResult]:
        return self.results[0], self.results[1]

    @property
    def downloads(self) -> Tuple[PassResult, PassResult]:
        return self.results[2], self.results[3]

    def to_dict(self) -> Dict[str, Any]:
        return {"results": [result.to_dict() for result in self.results]}


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of a pass after one more object completed."""

    provider: str
    operation: str
    completed: int
    total: int
    last_ms: float = field(default=0.0, compare=False)

    @property
    def is_terminal(self) -> bool:
        return self.completed == self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "op": self.operation,
            "done": self.completed,
            "total": self.total,
        }
