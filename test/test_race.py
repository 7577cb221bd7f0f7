"""
End-to-end race tests with in-memory providers.
"""

import unittest

from racebench.algorithms.race import DOWNLOADS_START, RaceOrchestrator, run_race
from racebench.common.progress import DONE, ERROR, PHASE, PROGRESS, START
from racebench.common.records import DOWNLOAD, UPLOAD, BenchmarkRequest
from racebench.configuration import BYTES_PER_MB
from racebench.errors import AggregateFailure, InvalidRequest

from fakes import InMemoryStorage, RecordingObserver


class TestRace(unittest.IsolatedAsyncioTestCase):
    """Test the two-phase race."""

    def setUp(self):
        self.request = BenchmarkRequest(
            object_size_bytes=1 * BYTES_PER_MB,
            object_count=4,
            concurrency=2,
            key_prefix="perf-ui",
        )

    async def test_full_race(self):
        aws = InMemoryStorage("aws", latency=0.002)
        b2 = InMemoryStorage("b2", latency=0.002)
        observer = RecordingObserver()

        result = await run_race(self.request, aws, b2, observer=observer)

        self.assertEqual(
            [(r.provider, r.operation) for r in result.results],
            [("aws", UPLOAD), ("b2", UPLOAD), ("aws", DOWNLOAD), ("b2", DOWNLOAD)],
        )
        for pass_result in result.results:
            self.assertEqual(pass_result.count, 4)
            self.assertEqual(pass_result.metrics.total_bytes, 4 * BYTES_PER_MB)
            self.assertGreater(pass_result.metrics.throughput_mbps, 0)
            self.assertLessEqual(pass_result.metrics.p50_ms, pass_result.metrics.p95_ms)
            self.assertLessEqual(pass_result.metrics.p95_ms, pass_result.metrics.p99_ms)

        self.assertLessEqual(aws.peak_in_flight, 2)
        self.assertLessEqual(b2.peak_in_flight, 2)

        names = observer.names()
        self.assertEqual(names[0], START)
        self.assertEqual(names[-1], DONE)
        self.assertIn(PROGRESS, names)
        phase_index = names.index(PHASE)
        self.assertEqual(observer.events[phase_index][1], {"phase": DOWNLOADS_START})
        self.assertEqual(len(observer.events[-1][1]["results"]), 4)

    async def test_each_provider_reads_its_own_objects(self):
        aws = InMemoryStorage("aws")
        b2 = InMemoryStorage("b2")

        result = await run_race(self.request, aws, b2)

        self.assertEqual(sorted(aws.reads), sorted(result.results[0].object_keys))
        self.assertEqual(sorted(b2.reads), sorted(result.results[1].object_keys))
        self.assertTrue(set(aws.reads).isdisjoint(b2.reads))

    async def test_downloads_start_after_both_uploads(self):
        aws = InMemoryStorage("aws", latency=0.001)
        b2 = InMemoryStorage("b2", latency=0.02)
        order = []

        original_write, original_read = aws.write, aws.read

        async def write(key, body, size_hint, part_size=None):
            await original_write(key, body, size_hint, part_size)
            order.append("aws-write")

        def read(key):
            order.append("aws-read")
            return original_read(key)

        aws.write, aws.read = write, read
        original_b2_write = b2.write

        async def b2_write(key, body, size_hint, part_size=None):
            await original_b2_write(key, body, size_hint, part_size)
            order.append("b2-write")

        b2.write = b2_write

        await run_race(self.request, aws, b2)

        last_write = max(i for i, item in enumerate(order) if item.endswith("write"))
        first_read = order.index("aws-read")
        self.assertLess(last_write, first_read)

    async def test_upload_failure_aborts_race(self):
        aws = InMemoryStorage("aws", fail_writes=True)
        b2 = InMemoryStorage("b2", latency=0.005)
        observer = RecordingObserver()

        with self.assertRaises(AggregateFailure) as ctx:
            await run_race(self.request, aws, b2, observer=observer)

        self.assertEqual(ctx.exception.provider, "aws")
        # B's upload pass was allowed to finish, its downloads never started
        self.assertEqual(len(b2.objects), 4)
        self.assertEqual(b2.reads, [])
        self.assertEqual(aws.reads, [])

        names = observer.names()
        self.assertEqual(names[-1], ERROR)
        self.assertNotIn(DONE, names)
        self.assertNotIn(PHASE, names)
        self.assertIn("aws", observer.events[-1][1]["message"])

    async def test_download_failure(self):
        aws = InMemoryStorage("aws")
        b2 = InMemoryStorage("b2", fail_reads=True)
        observer = RecordingObserver()

        with self.assertRaises(AggregateFailure) as ctx:
            await run_race(self.request, aws, b2, observer=observer)
        self.assertEqual(ctx.exception.operation, DOWNLOAD)
        self.assertEqual(observer.names()[-1], ERROR)

    async def test_broken_observer_does_not_abort(self):
        def broken(event, payload):
            raise RuntimeError("socket closed")

        result = await run_race(self.request, InMemoryStorage("aws"), InMemoryStorage("b2"), observer=broken)
        self.assertEqual(len(result.results), 4)

    async def test_same_provider_rejected(self):
        aws = InMemoryStorage("aws")
        with self.assertRaises(InvalidRequest):
            await RaceOrchestrator(self.request, aws, InMemoryStorage("aws")).run()
        self.assertEqual(aws.writes, [])

    async def test_same_provider_reports_error(self):
        observer = RecordingObserver()

        with self.assertRaises(InvalidRequest):
            await run_race(self.request, InMemoryStorage("aws"), InMemoryStorage("aws"), observer=observer)

        self.assertEqual(observer.names(), [ERROR])
        self.assertIn("aws", observer.events[-1][1]["message"])


if __name__ == '__main__':
    unittest.main()
