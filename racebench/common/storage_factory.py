"""
Factory module for creating storage system instances.
"""

import logging

# CRITICAL: Suppress boto3/botocore logging BEFORE importing any boto3-related modules
logging.getLogger('botocore').setLevel(logging.CRITICAL)
logging.getLogger('botocore.credentials').setLevel(logging.CRITICAL)
logging.getLogger('boto3').setLevel(logging.CRITICAL)
logging.getLogger('aioboto3').setLevel(logging.CRITICAL)
logging.getLogger('aiobotocore').setLevel(logging.CRITICAL)
logging.getLogger('urllib3').setLevel(logging.CRITICAL)
logging.getLogger('s3transfer').setLevel(logging.CRITICAL)

from racebench.systems.aws import AWSSystem
from racebench.systems.b2 import B2System
from racebench.systems.r2 import R2System
from racebench.configuration import (
    AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY,
    AWS_SESSION_TOKEN,
    AWS_REGION,
    B2_ACCESS_KEY_ID,
    B2_SECRET_ACCESS_KEY,
    B2_REGION,
    R2_ACCESS_KEY_ID,
    R2_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)


def create_storage_system(storage_type: str):
    """Create and return the appropriate storage system based on type.

    Args:
        storage_type: Storage type ('aws', 'b2' or 'r2')

    Returns:
        Storage system instance (AWSSystem, B2System or R2System)

    Raises:
        ValueError: If storage_type is not supported
    """
    storage_type = storage_type.lower()

    if storage_type == "aws":
        credentials = {
            "access_key_id": AWS_ACCESS_KEY_ID,
            "secret_access_key": AWS_SECRET_ACCESS_KEY,
            "session_token": AWS_SESSION_TOKEN,
            "region_name": AWS_REGION,
        }
        return AWSSystem(credentials)

    elif storage_type == "b2":
        credentials = {
            "access_key_id": B2_ACCESS_KEY_ID,
            "secret_access_key": B2_SECRET_ACCESS_KEY,
            "region_name": B2_REGION,
        }
        return B2System(credentials)

    elif storage_type == "r2":
        credentials = {
            "access_key_id": R2_ACCESS_KEY_ID,
            "secret_access_key": R2_SECRET_ACCESS_KEY,
            "region_name": "auto",
        }
        return R2System(credentials)

    else:
        raise ValueError(f"Unsupported storage type: {storage_type}. Must be 'aws', 'b2' or 'r2'.")
