"""
AWS S3 object storage system implementation.
"""

from racebench.systems.base import ObjectStorageSystem
from racebench.configuration import S3_ENDPOINT, AWS_S3_BUCKET
import logging

logger = logging.getLogger(__name__)


class AWSSystem(ObjectStorageSystem):
    """AWS S3 object storage system."""

    name = "aws"

    def __init__(self, credentials: dict = None, bucket_name: str = None):
        if credentials is None:
            credentials = {}

        super().__init__(
            endpoint=S3_ENDPOINT,
            bucket_name=bucket_name or AWS_S3_BUCKET,
            credentials=credentials
        )
        logger.info("Initialized AWS S3 system")
