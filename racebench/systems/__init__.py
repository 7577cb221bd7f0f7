"""
S3-compatible storage providers raced against each other.
"""

from .base import ObjectStorageSystem, StorageCapability
from .aws import AWSSystem
from .b2 import B2System
from .r2 import R2System

__all__ = ['ObjectStorageSystem', 'StorageCapability', 'AWSSystem', 'B2System', 'R2System']
