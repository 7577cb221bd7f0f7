"""
Configuration constants for the storage race benchmark.

This module contains all configuration parameters including:
- Cloud credentials, endpoints and buckets per provider
- Transfer strategy thresholds and part sizes
- Race defaults (object size, count, concurrency)
- Timeouts, progress throttling and HTTP server settings
"""

import os
from typing import Dict

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# CLOUD STORAGE CONFIGURATION
# =============================================================================

# AWS S3 credentials and configuration
S3_ENDPOINT: str = os.getenv("S3_ENDPOINT", "")
AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")
AWS_SESSION_TOKEN: str = os.getenv("AWS_SESSION_TOKEN", "")
AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
AWS_S3_BUCKET: str = os.getenv("AWS_S3_BUCKET", "")

# Backblaze B2 (S3 compatible) credentials and configuration
B2_ENDPOINT: str = os.getenv("B2_ENDPOINT", "")
B2_REGION: str = os.getenv("B2_REGION", "us-east-005")
B2_ACCESS_KEY_ID: str = os.getenv("B2_ACCESS_KEY_ID", "")
B2_SECRET_ACCESS_KEY: str = os.getenv("B2_SECRET_ACCESS_KEY", "")
B2_S3_BUCKET: str = os.getenv("B2_S3_BUCKET", "")

# Cloudflare R2 credentials and configuration
R2_ENDPOINT: str = os.getenv("R2_ENDPOINT", "")
R2_ACCESS_KEY_ID: str = os.getenv("R2_ACCESS_KEY_ID", "")
R2_SECRET_ACCESS_KEY: str = os.getenv("R2_SECRET_ACCESS_KEY", "")
R2_BUCKET: str = os.getenv("R2_BUCKET", "")

SUPPORTED_PROVIDERS = ("aws", "b2", "r2")

# Bucket lookup used by readiness checks
BUCKET_BY_PROVIDER: Dict[str, str] = {
    "aws": AWS_S3_BUCKET,
    "b2": B2_S3_BUCKET,
    "r2": R2_BUCKET,
}

# =============================================================================
# FILE SIZE CONSTANTS
# =============================================================================

BYTES_PER_MB: int = 1024 * 1024
MS_PER_SECOND: int = 1000

# =============================================================================
# TRANSFER STRATEGY
# =============================================================================

# Objects below this size are sent with a single PutObject
MULTIPART_THRESHOLD_BYTES: int = 5 * BYTES_PER_MB

# Bounds for the computed part size (size / 10, clamped)
MIN_PART_SIZE_BYTES: int = 8 * BYTES_PER_MB
MAX_PART_SIZE_BYTES: int = 64 * BYTES_PER_MB
PART_SIZE_DIVISOR: int = 10

# Number of concurrent part uploads per object
MULTIPART_QUEUE_SIZE: int = int(os.getenv("MULTIPART_QUEUE_SIZE", "8"))

# Size of each chunk produced by the random payload generator
PAYLOAD_CHUNK_BYTES: int = 1 * BYTES_PER_MB

# Size of each chunk pulled while draining a download
DOWNLOAD_CHUNK_BYTES: int = 1 * BYTES_PER_MB

# =============================================================================
# RACE DEFAULTS
# =============================================================================

KEY_PREFIX: str = os.getenv("KEY_PREFIX", "perf-ui")
DEFAULT_OBJECT_SIZE_BYTES: int = 16 * BYTES_PER_MB
DEFAULT_OBJECT_COUNT: int = 8
DEFAULT_CONCURRENCY: int = 8
DEFAULT_PROVIDER_A: str = "aws"
DEFAULT_PROVIDER_B: str = "b2"

# =============================================================================
# ERROR HANDLING AND TIMEOUTS
# =============================================================================

MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "3"))  # Retries belong to botocore
CONNECT_TIMEOUT_SECONDS: int = int(os.getenv("CONNECT_TIMEOUT_SECONDS", "10"))
REQUEST_TIMEOUT_SECONDS: int = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "300"))
PASS_TIMEOUT_SECONDS: float = float(os.getenv("PASS_TIMEOUT_SECONDS", "900"))
READY_TIMEOUT_SECONDS: float = 2.0
MAX_POOL_CONNECTIONS: int = int(os.getenv("MAX_POOL_CONNECTIONS", "1024"))

# =============================================================================
# PROGRESS REPORTING
# =============================================================================

PROGRESS_MIN_INTERVAL_MS: int = 150  # Minimum gap between two progress events
HEARTBEAT_INTERVAL_SECONDS: float = 15.0  # SSE keepalive comment interval

# =============================================================================
# HTTP SERVER
# =============================================================================

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))

# =============================================================================
# CLI DEFAULTS
# =============================================================================

DEFAULT_PLOTS_DIR: str = "plots"
DEFAULT_METRICS_PORT: int = 9100
