"""
Upload and download passes against a single storage provider.
"""

import asyncio
import functools
import logging
import time
import uuid
from typing import List, Optional, Sequence, Tuple

from racebench.common.metrics_utils import compute_pass_metrics
from racebench.common.payload import RandomPayload
from racebench.common.progress import ProgressReporter
from racebench.common.records import (
    DOWNLOAD,
    UPLOAD,
    ObjectDescriptor,
    PassResult,
    ProgressEvent,
    TransferSample,
)
from racebench.common.scheduler import BoundedScheduler
from racebench.common.transfer_strategy import select_transfer_strategy
from racebench.configuration import KEY_PREFIX, MS_PER_SECOND, PASS_TIMEOUT_SECONDS
from racebench.errors import AggregateFailure, PassTimeout, TransferFailure
from racebench.systems.base import StorageCapability

logger = logging.getLogger(__name__)


def make_key(prefix: str = KEY_PREFIX) -> str:
    """Unique object key: nanosecond timestamp plus a short random suffix."""
    return f"{prefix.strip('/')}/{time.time_ns()}_{uuid.uuid4().hex[:8]}.bin"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * MS_PER_SECOND


class BenchmarkRunner:
    """Runs upload and download passes for one provider.

    Every pass fans its objects out through a BoundedScheduler, records one
    TransferSample per object, reports progress after each completion and
    aggregates the samples into a PassResult. The runner never deletes the
    objects it creates.
    """

    def __init__(
        self,
        provider: str,
        storage: StorageCapability,
        concurrency: int,
        reporter: Optional[ProgressReporter] = None,
        exporter=None,
        pass_timeout_seconds: float = PASS_TIMEOUT_SECONDS,
    ):
        self.provider = provider
        self.storage = storage
        self.concurrency = concurrency
        self.reporter = reporter
        self.exporter = exporter
        self.pass_timeout_seconds = pass_timeout_seconds

    async def run_upload(
        self,
        object_count: int,
        object_size_bytes: int,
        key_prefix: str = KEY_PREFIX,
        part_size_mb: Optional[int] = None,
    ) -> PassResult:
        """Upload ``object_count`` freshly generated objects of ``object_size_bytes``."""
        objects = [
            ObjectDescriptor(key=make_key(key_prefix), size_bytes=object_size_bytes)
            for _ in range(object_count)
        ]
        transfer = functools.partial(self._upload_one, part_size_mb=part_size_mb)
        samples, duration_ms = await self._run_pass(UPLOAD, objects, transfer)

        return self._build_result(
            UPLOAD,
            objects,
            samples,
            duration_ms,
            size_bytes=object_size_bytes,
            part_size_mb=part_size_mb,
        )

    async def run_download(
        self, objects: Sequence[ObjectDescriptor]
    ) -> PassResult:
        """Read back every object in ``objects``, draining each body completely."""
        objects = list(objects)
        samples, duration_ms = await self._run_pass(DOWNLOAD, objects, self._download_one)
        return self._build_result(DOWNLOAD, objects, samples, duration_ms)

    async def _upload_one(
        self, obj: ObjectDescriptor, part_size_mb: Optional[int] = None
    ) -> Tuple[float, int]:
        """Write one fresh object and time it.

        The clock starts before any payload bytes exist in both modes, so
        generating the random body counts toward latency either way.
        """
        strategy = select_transfer_strategy(obj.size_bytes, part_size_mb)
        payload = RandomPayload(obj.size_bytes)

        start = time.perf_counter()
        if strategy.is_chunked:
            await self.storage.write(
                obj.key, payload, obj.size_bytes, part_size=strategy.chunk_size_bytes
            )
        else:
            await self.storage.write(obj.key, payload.read_all(), obj.size_bytes)

        return _elapsed_ms(start), obj.size_bytes

    async def _download_one(self, obj: ObjectDescriptor) -> Tuple[float, int]:
        start = time.perf_counter()
        nbytes = 0
        async for chunk in self.storage.read(obj.key):
            nbytes += len(chunk)
        return _elapsed_ms(start), nbytes

    async def _run_pass(
        self, operation: str, objects: List[ObjectDescriptor], transfer
    ) -> Tuple[List[TransferSample], float]:
        """Drive ``transfer`` over ``objects`` under the concurrency bound.

        Returns:
            Samples of every completed transfer and the pass wall-clock duration

        Raises:
            AggregateFailure: at least one transfer failed
            PassTimeout: the pass exceeded its time budget
        """
        total = len(objects)
        samples: List[TransferSample] = []

        logger.info(
            f"Starting {self.provider} {operation} pass: {total} objects, "
            f"concurrency {self.concurrency}"
        )

        async def unit(obj: ObjectDescriptor):
            try:
                latency_ms, nbytes = await transfer(obj)
            except Exception as e:
                if self.exporter:
                    self.exporter.record_failure(self.provider, operation)
                logger.error(f"{self.provider} {operation} of {obj.key} failed: {e!r}")
                raise TransferFailure(
                    self.provider, operation, obj.key, str(e) or type(e).__name__
                ) from e

            samples.append(TransferSample(latency_ms=latency_ms, nbytes=nbytes))
            logger.debug(f"{self.provider} {operation} {obj.key}: {nbytes} bytes in {latency_ms:.1f} ms")
            if self.exporter:
                self.exporter.record_transfer(self.provider, operation, latency_ms, nbytes)
            if self.reporter:
                self.reporter.progress(
                    ProgressEvent(
                        provider=self.provider,
                        operation=operation,
                        completed=len(samples),
                        total=total,
                        last_ms=latency_ms,
                    )
                )

        scheduler = BoundedScheduler(self.concurrency)
        start = time.perf_counter()
        try:
            await asyncio.wait_for(
                scheduler.run([functools.partial(unit, obj) for obj in objects]),
                timeout=self.pass_timeout_seconds,
            )
        except TransferFailure as e:
            raise AggregateFailure(
                self.provider, operation, e, len(scheduler.failures), total
            ) from e
        except asyncio.TimeoutError as e:
            raise PassTimeout(self.provider, operation, self.pass_timeout_seconds) from e

        return samples, _elapsed_ms(start)

    def _build_result(
        self,
        operation: str,
        objects: List[ObjectDescriptor],
        samples: List[TransferSample],
        duration_ms: float,
        size_bytes: Optional[int] = None,
        part_size_mb: Optional[int] = None,
    ) -> PassResult:
        metrics = compute_pass_metrics(
            [sample.latency_ms for sample in samples],
            sum(sample.nbytes for sample in samples),
            duration_ms,
        )
        result = PassResult(
            provider=self.provider,
            operation=operation,
            count=len(objects),
            metrics=metrics,
            concurrency=self.concurrency,
            objects=tuple(objects),
            size_bytes=size_bytes,
            part_size_mb=part_size_mb,
        )

        logger.info(
            f"{self.provider} {operation} completed: {metrics.throughput_mbps:.1f} MB/s, "
            f"{metrics.total_mb:.1f} MB in {metrics.duration_ms / MS_PER_SECOND:.2f}s, "
            f"p50={metrics.p50_ms:.0f}ms p95={metrics.p95_ms:.0f}ms p99={metrics.p99_ms:.0f}ms"
        )
        if self.exporter:
            self.exporter.record_pass(result)
        return result
