"""
Backblaze B2 (S3 compatible API) object storage system implementation.
"""

from racebench.systems.base import ObjectStorageSystem
from racebench.configuration import B2_ENDPOINT, B2_S3_BUCKET
import logging

logger = logging.getLogger(__name__)


class B2System(ObjectStorageSystem):
    """Backblaze B2 object storage system, addressed path-style."""

    name = "b2"

    def __init__(self, credentials: dict = None, bucket_name: str = None):
        if credentials is None:
            credentials = {}

        super().__init__(
            endpoint=B2_ENDPOINT,
            bucket_name=bucket_name or B2_S3_BUCKET,
            credentials=credentials,
            addressing_style="path",
        )
        logger.info("Initialized B2 system")
