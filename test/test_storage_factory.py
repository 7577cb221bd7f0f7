"""
Tests for provider construction.
"""

import unittest

from racebench.common.storage_factory import create_storage_system
from racebench.systems import AWSSystem, B2System, R2System


class TestStorageFactory(unittest.TestCase):
    """Test provider names map to the right system and addressing style."""

    def test_supported_providers(self):
        for name, cls in (("aws", AWSSystem), ("b2", B2System), ("R2", R2System)):
            with self.subTest(name=name):
                system = create_storage_system(name)
                self.assertIsInstance(system, cls)
                self.assertEqual(system.name, name.lower())
                self.assertIsNone(system.client)

    def test_path_style_addressing(self):
        self.assertEqual(create_storage_system("aws").addressing_style, "virtual")
        self.assertEqual(create_storage_system("b2").addressing_style, "path")
        self.assertEqual(create_storage_system("r2").addressing_style, "path")

    def test_retries_configured(self):
        config = create_storage_system("aws")._config
        self.assertEqual(config.retries["mode"], "adaptive")

    def test_unknown_provider(self):
        with self.assertRaises(ValueError):
            create_storage_system("gcs")


class TestWriteWithoutClient(unittest.IsolatedAsyncioTestCase):

    async def test_requires_context_manager(self):
        system = create_storage_system("aws")
        with self.assertRaises(RuntimeError):
            await system.write("perf/a.bin", b"data", 4)


class TestMultipartUpload(unittest.IsolatedAsyncioTestCase):
    """Test part splitting and abort against a mocked S3 client."""

    def setUp(self):
        from unittest.mock import AsyncMock

        self.system = create_storage_system("b2")
        self.client = AsyncMock()
        self.client.create_multipart_upload.return_value = {"UploadId": "upload-1"}
        self.client.upload_part.side_effect = lambda **kwargs: {"ETag": f"etag-{kwargs['PartNumber']}"}
        self.system.client = self.client

    async def test_parts_split_on_part_size(self):
        chunks = [b"a" * 4, b"b" * 4, b"c" * 3]
        await self.system.write("perf/a.bin", iter(chunks), 11, part_size=5)

        parts = sorted(
            (call.kwargs["PartNumber"], call.kwargs["Body"])
            for call in self.client.upload_part.call_args_list
        )
        self.assertEqual(parts, [(1, b"aaaab"), (2, b"bbbcc"), (3, b"c")])

        completed = self.client.complete_multipart_upload.call_args.kwargs
        self.assertEqual(completed["UploadId"], "upload-1")
        self.assertEqual(
            [part["PartNumber"] for part in completed["MultipartUpload"]["Parts"]], [1, 2, 3]
        )
        self.client.abort_multipart_upload.assert_not_called()

    async def test_failed_part_aborts_upload(self):
        self.client.upload_part.side_effect = IOError("connection reset")

        with self.assertRaises(IOError):
            await self.system.write("perf/a.bin", b"x" * 12, 12, part_size=5)

        self.client.abort_multipart_upload.assert_called_once()
        self.client.complete_multipart_upload.assert_not_called()

    async def test_single_put(self):
        await self.system.write("perf/a.bin", b"data", 4)
        kwargs = self.client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Body"], b"data")
        self.assertEqual(kwargs["ContentLength"], 4)


if __name__ == '__main__':
    unittest.main()
