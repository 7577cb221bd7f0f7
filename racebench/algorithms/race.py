"""
Two-provider, two-phase storage race: uploads first, then downloads.
"""

import asyncio
import logging
from typing import Optional, Tuple

from racebench.algorithms.benchmark_runner import BenchmarkRunner
from racebench.common.progress import Observer, ProgressReporter
from racebench.common.records import BenchmarkRequest, PassResult, RaceResult
from racebench.configuration import PASS_TIMEOUT_SECONDS
from racebench.errors import InvalidRequest
from racebench.systems.base import StorageCapability

logger = logging.getLogger(__name__)

DOWNLOADS_START = "downloads-start"


async def _settle_phase(pass_a, pass_b) -> Tuple[PassResult, PassResult]:
    """Wait for both passes of a phase and raise the first failure, if any."""
    results = await asyncio.gather(pass_a, pass_b, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results[0], results[1]


class RaceOrchestrator:
    """Races two storage providers against each other.

    Phase one uploads to both providers concurrently. Once both upload
    passes finished, phase two downloads from both providers concurrently,
    each provider reading back only the objects it stored itself.
    """

    def __init__(
        self,
        request: BenchmarkRequest,
        provider_a: StorageCapability,
        provider_b: StorageCapability,
        reporter: Optional[ProgressReporter] = None,
        exporter=None,
        pass_timeout_seconds: float = PASS_TIMEOUT_SECONDS,
    ):
        self.request = request
        self.reporter = reporter or ProgressReporter()
        self.runners = [
            BenchmarkRunner(
                provider.name,
                provider,
                request.concurrency,
                reporter=self.reporter,
                exporter=exporter,
                pass_timeout_seconds=pass_timeout_seconds,
            )
            for provider in (provider_a, provider_b)
        ]

    async def run(self) -> RaceResult:
        """Execute both phases and assemble the four pass results.

        Raises:
            InvalidRequest: both providers have the same name
            RaceBenchError: a pass failed or timed out; no partial result is produced
        """
        request = self.request
        runner_a, runner_b = self.runners
        if runner_a.provider == runner_b.provider:
            message = f"Cannot race provider '{runner_a.provider}' against itself"
            logger.error(message)
            self.reporter.error(message)
            raise InvalidRequest(message)

        self.reporter.start(request)
        logger.info(
            f"Starting race {runner_a.provider} vs {runner_b.provider}: "
            f"{request.object_count} x {request.object_size_bytes} bytes, "
            f"concurrency {request.concurrency}"
        )

        try:
            logger.info("=== Phase 1: Uploads ===")
            upload_a, upload_b = await _settle_phase(
                *(
                    runner.run_upload(
                        request.object_count,
                        request.object_size_bytes,
                        request.key_prefix,
                        request.part_size_mb,
                    )
                    for runner in self.runners
                )
            )

            self.reporter.phase(DOWNLOADS_START)
            logger.info("=== Phase 2: Downloads ===")
            download_a, download_b = await _settle_phase(
                runner_a.run_download(upload_a.objects),
                runner_b.run_download(upload_b.objects),
            )
        except Exception as e:
            logger.error(f"Race failed: {e}")
            self.reporter.error(str(e) or "race failed")
            raise

        result = RaceResult((upload_a, upload_b, download_a, download_b))
        self.reporter.done(result)
        logger.info("Race completed")
        return result


async def run_race(
    request: BenchmarkRequest,
    provider_a: StorageCapability,
    provider_b: StorageCapability,
    observer: Optional[Observer] = None,
    exporter=None,
    pass_timeout_seconds: float = PASS_TIMEOUT_SECONDS,
) -> RaceResult:
    """Run one race and relay its lifecycle and progress to ``observer``."""
    orchestrator = RaceOrchestrator(
        request,
        provider_a,
        provider_b,
        reporter=ProgressReporter(observer),
        exporter=exporter,
        pass_timeout_seconds=pass_timeout_seconds,
    )
    return await orchestrator.run()
