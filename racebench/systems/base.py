"""
Async base class for S3-compatible object storage systems.
"""

import asyncio
import logging
from typing import AsyncIterator, Iterable, Optional, Protocol, Union

import aioboto3
from aiohttp.client_exceptions import ClientPayloadError
from botocore.config import Config
from botocore.exceptions import ClientError

from racebench.configuration import (
    CONNECT_TIMEOUT_SECONDS,
    DOWNLOAD_CHUNK_BYTES,
    MAX_ATTEMPTS,
    MAX_POOL_CONNECTIONS,
    MULTIPART_QUEUE_SIZE,
    READY_TIMEOUT_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

Body = Union[bytes, bytearray, Iterable[bytes]]


class StorageCapability(Protocol):
    """What the race engine needs from a provider."""

    name: str

    async def write(
        self, key: str, body: Body, size_hint: int, part_size: Optional[int] = None
    ) -> None:
        ...

    def read(self, key: str) -> AsyncIterator[bytes]:
        ...


def describe_client_error(error: ClientError) -> str:
    """Short description of a botocore ClientError: code and HTTP status."""
    error_code = error.response.get("Error", {}).get("Code", "Unknown")
    status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return f"{error_code} (HTTP {status_code})"


class ObjectStorageSystem:
    """Async S3 client bound to one provider endpoint and bucket.

    Use as an async context manager; the client lives for the duration of
    the ``async with`` block and is shared by every concurrent transfer.
    """

    name = "s3"

    def __init__(
        self,
        endpoint: str,
        bucket_name: str,
        credentials: dict,
        addressing_style: str = "virtual",
        multipart_queue_size: int = MULTIPART_QUEUE_SIZE,
    ):
        self.endpoint = endpoint
        self.bucket_name = bucket_name
        self.credentials = credentials
        self.addressing_style = addressing_style
        self.multipart_queue_size = multipart_queue_size

        # Single source of truth for config
        self._config = self._create_config()

        self.session = aioboto3.Session(
            aws_access_key_id=credentials.get("access_key_id") or None,
            aws_secret_access_key=credentials.get("secret_access_key") or None,
            aws_session_token=credentials.get("session_token") or None,
            region_name=credentials.get("region_name", "auto"),
        )

        self.client = None
        self._client_cm = None

        logger.debug(
            f"Initialized async storage for {endpoint or 'default endpoint'} "
            f"bucket={bucket_name} (max_pool_connections={self._config.max_pool_connections})"
        )

    def _create_config(self) -> Config:
        """Create the botocore config shared by every request of this system."""
        return Config(
            max_pool_connections=MAX_POOL_CONNECTIONS,
            connect_timeout=CONNECT_TIMEOUT_SECONDS,
            read_timeout=REQUEST_TIMEOUT_SECONDS,
            # Retries are the SDK's job, the race engine never retries
            retries={
                "max_attempts": MAX_ATTEMPTS,
                "mode": "adaptive",
            },
            s3={
                "addressing_style": self.addressing_style,
            },
            tcp_keepalive=True,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self._client_cm = self.session.client(
            "s3",
            endpoint_url=self.endpoint or None,
            config=self._config,
        )
        self.client = await self._client_cm.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._client_cm:
            await self._client_cm.__aexit__(exc_type, exc_val, exc_tb)
        self.client = None
        self._client_cm = None

    def _require_client(self):
        if not self.client:
            raise RuntimeError("Storage client not initialized. Use async context manager.")

    async def write(
        self, key: str, body: Body, size_hint: int, part_size: Optional[int] = None
    ) -> None:
        """Write one object.

        Args:
            key: Object key
            body: Buffer for a single PutObject, or iterable of chunks for multipart
            size_hint: Declared object size in bytes
            part_size: Part size for a multipart upload; None means single PutObject

        Raises:
            ClientError, asyncio.TimeoutError or transport errors from the SDK
        """
        self._require_client()

        try:
            if part_size is None:
                await asyncio.wait_for(
                    self.client.put_object(
                        Bucket=self.bucket_name,
                        Key=key,
                        Body=bytes(body),
                        ContentLength=size_hint,
                    ),
                    timeout=REQUEST_TIMEOUT_SECONDS,
                )
            else:
                await self._multipart_upload(key, body, part_size)
        except ClientError as e:
            self._log_client_error(e, f"writing {key}")
            raise

    async def _multipart_upload(self, key: str, body: Body, part_size: int) -> None:
        """Upload ``body`` as a multipart upload with a bounded pool of part workers."""
        if isinstance(body, (bytes, bytearray)):
            body = [bytes(body)]

        response = await self.client.create_multipart_upload(
            Bucket=self.bucket_name, Key=key
        )
        upload_id = response["UploadId"]

        # Bounded so at most queue_size parts wait in memory
        parts_queue: asyncio.Queue = asyncio.Queue(maxsize=self.multipart_queue_size)
        parts_results = {}
        upload_errors = []

        async def upload_worker():
            """Uploads parts from the queue until it sees the shutdown signal."""
            while True:
                item = await parts_queue.get()
                try:
                    if item is None:  # Shutdown signal
                        return
                    if upload_errors:
                        continue
                    part_number, part_bytes = item
                    result = await asyncio.wait_for(
                        self.client.upload_part(
                            Bucket=self.bucket_name,
                            Key=key,
                            PartNumber=part_number,
                            UploadId=upload_id,
                            Body=part_bytes,
                        ),
                        timeout=REQUEST_TIMEOUT_SECONDS,
                    )
                    parts_results[part_number] = {
                        "ETag": result["ETag"],
                        "PartNumber": part_number,
                    }
                except Exception as e:
                    upload_errors.append(e)
                finally:
                    parts_queue.task_done()

        workers = [
            asyncio.create_task(upload_worker()) for _ in range(self.multipart_queue_size)
        ]

        try:
            part_number = 1
            buffer = bytearray()
            for chunk in body:
                buffer += chunk
                while len(buffer) >= part_size and not upload_errors:
                    await parts_queue.put((part_number, bytes(buffer[:part_size])))
                    del buffer[:part_size]
                    part_number += 1
                if upload_errors:
                    break

            # Final short part, or the only part of an empty object
            if not upload_errors and (buffer or part_number == 1):
                await parts_queue.put((part_number, bytes(buffer)))

            for _ in workers:
                await parts_queue.put(None)
            await asyncio.gather(*workers)

            if upload_errors:
                raise upload_errors[0]

            parts = [parts_results[number] for number in sorted(parts_results)]
            await self.client.complete_multipart_upload(
                Bucket=self.bucket_name,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
            logger.debug(f"Uploaded {key} in {len(parts)} parts of {part_size} bytes")

        except BaseException:
            for worker in workers:
                worker.cancel()
            await self._abort_multipart_upload(key, upload_id)
            raise

    async def _abort_multipart_upload(self, key: str, upload_id: str) -> None:
        try:
            await self.client.abort_multipart_upload(
                Bucket=self.bucket_name, Key=key, UploadId=upload_id
            )
        except Exception as e:
            logger.warning(f"Failed to abort multipart upload of {key}: {e}")

    async def read(self, key: str) -> AsyncIterator[bytes]:
        """Stream an object's content in chunks.

        Args:
            key: Object key

        Yields:
            Chunks of the object body until it is exhausted
        """
        self._require_client()

        try:
            response = await asyncio.wait_for(
                self.client.get_object(Bucket=self.bucket_name, Key=key),
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except ClientError as e:
            self._log_client_error(e, f"reading {key}")
            raise

        body = response["Body"]
        try:
            async for chunk in body.iter_chunks(DOWNLOAD_CHUNK_BYTES):
                yield chunk
        except ClientPayloadError:
            body.close()
            logger.warning(
                f"Incomplete payload for {key}: connection closed before all data was received"
            )
            raise
        except BaseException:
            body.close()
            raise

    async def verify_connection(self) -> bool:
        """Cheap list call proving credentials and reachability of the bucket."""
        if not self.client:
            logger.error("Client not initialized. Use async context manager.")
            return False

        if not self.bucket_name:
            logger.error(f"No bucket configured for {self.name}")
            return False

        try:
            await asyncio.wait_for(
                self.client.list_objects_v2(Bucket=self.bucket_name, MaxKeys=1),
                timeout=READY_TIMEOUT_SECONDS,
            )
            logger.info(f"✓ {self.name}: bucket {self.bucket_name} reachable")
            return True
        except Exception as e:
            logger.error(f"✗ {self.name}: connection verification failed: {e}")
            return False

    def _log_client_error(self, error: ClientError, action: str) -> None:
        status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        # Highlight throttling errors
        if status_code in (429, 503):
            logger.error(f"{self.name.upper()} THROTTLING DETECTED while {action}: {describe_client_error(error)}")
        else:
            logger.error(f"{self.name} error while {action}: {describe_client_error(error)}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoint={self.endpoint!r}, bucket={self.bucket_name!r})"
