"""
Cloudflare R2 object storage system implementation.
"""

from racebench.systems.base import ObjectStorageSystem
from racebench.configuration import R2_ENDPOINT, R2_BUCKET
import logging

logger = logging.getLogger(__name__)


class R2System(ObjectStorageSystem):
    """Cloudflare R2 object storage system."""

    name = "r2"

    def __init__(self, credentials: dict = None, bucket_name: str = None):
        if credentials is None:
            credentials = {}

        super().__init__(
            endpoint=R2_ENDPOINT,
            bucket_name=bucket_name or R2_BUCKET,
            credentials=credentials,
            addressing_style="path",
        )
        logger.info("Initialized R2 system")
