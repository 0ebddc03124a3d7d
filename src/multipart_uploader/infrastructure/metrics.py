"""Prometheus metrics for the multipart uploader."""

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY


class UploaderMetrics:
    """Metrics collector for multipart uploads."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        # Upload lifecycle
        self.uploads_started = Counter(
            "multipart_uploader_uploads_started_total",
            "Total multipart uploads initiated",
            registry=registry,
        )
        self.uploads_completed = Counter(
            "multipart_uploader_uploads_completed_total",
            "Total multipart uploads completed",
            registry=registry,
        )
        self.uploads_failed = Counter(
            "multipart_uploader_uploads_failed_total",
            "Total multipart uploads that failed",
            ["phase"],
            registry=registry,
        )

        # Parts
        self.parts_uploaded = Counter(
            "multipart_uploader_parts_uploaded_total",
            "Total parts transferred successfully",
            registry=registry,
        )
        self.bytes_uploaded = Counter(
            "multipart_uploader_bytes_uploaded_total",
            "Total part bytes transferred successfully",
            registry=registry,
        )
        self.transfer_retries = Counter(
            "multipart_uploader_transfer_retries_total",
            "Total part transfer retries",
            ["reason"],
            registry=registry,
        )

        # Latency
        self.upload_duration = Histogram(
            "multipart_uploader_upload_duration_seconds",
            "End-to-end multipart upload duration",
            buckets=[0.1, 0.5, 1.0, 5.0, 30.0, 120.0, 600.0],
            registry=registry,
        )
        self.hash_duration = Histogram(
            "multipart_uploader_hash_duration_seconds",
            "Time spent hashing all parts of a file",
            buckets=[0.01, 0.1, 0.5, 1.0, 5.0, 30.0],
            registry=registry,
        )


_metrics: UploaderMetrics | None = None


def get_metrics() -> UploaderMetrics:
    """Get the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = UploaderMetrics()
    return _metrics
