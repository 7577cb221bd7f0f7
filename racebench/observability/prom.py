"""
Simple Prometheus metrics exporter for storage races.
"""

import logging
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from racebench.common.records import PassResult
from racebench.configuration import DEFAULT_METRICS_PORT

logger = logging.getLogger(__name__)


class PrometheusExporter:
    """Exports per-transfer and per-pass metrics labelled by provider and operation."""

    def __init__(self, port: int = DEFAULT_METRICS_PORT, registry: Optional[CollectorRegistry] = None):
        self.port = port
        self.registry = registry or REGISTRY
        self.server_started = False

        labels = ['provider', 'operation']
        self.transfers_total = Counter(
            'racebench_transfers_total', 'Completed object transfers',
            labels + ['status'], registry=self.registry,
        )
        self.transfer_duration = Histogram(
            'racebench_transfer_duration_seconds', 'Object transfer duration',
            labels, registry=self.registry,
        )
        self.bytes_transferred = Counter(
            'racebench_bytes_transferred_total', 'Total bytes transferred',
            labels, registry=self.registry,
        )
        self.pass_throughput = Gauge(
            'racebench_pass_throughput_mbps', 'Throughput of the last pass in MiB/s',
            labels, registry=self.registry,
        )

    def start_server(self):
        """Start the Prometheus HTTP server."""
        if not self.server_started:
            try:
                start_http_server(self.port, registry=self.registry)
                self.server_started = True
                logger.info(f"Prometheus server started on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus server: {e}")

    def record_transfer(self, provider: str, operation: str, latency_ms: float, nbytes: int):
        """Record one successful object transfer."""
        self.transfers_total.labels(provider=provider, operation=operation, status='ok').inc()
        self.transfer_duration.labels(provider=provider, operation=operation).observe(latency_ms / 1000)
        self.bytes_transferred.labels(provider=provider, operation=operation).inc(nbytes)

    def record_failure(self, provider: str, operation: str):
        """Record one failed object transfer."""
        self.transfers_total.labels(provider=provider, operation=operation, status='error').inc()

    def record_pass(self, result: PassResult):
        """Publish the throughput of a completed pass."""
        self.pass_throughput.labels(
            provider=result.provider, operation=result.operation
        ).set(result.metrics.throughput_mbps)
