"""Dependency injection container for the multipart uploader."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import structlog
from opentelemetry import trace

from multipart_uploader.infrastructure.config import Config, get_config
from multipart_uploader.infrastructure.logging import setup_logging_from_config
from multipart_uploader.infrastructure.metrics import UploaderMetrics, get_metrics
from multipart_uploader.infrastructure.tracing import setup_tracing

if TYPE_CHECKING:
    from multipart_uploader.application.multipart_upload import MultipartUpload
    from multipart_uploader.ports.outbound import CompleteUploadAction, StartUploadAction


@dataclass
class Container:
    """Dependency injection container for uploader components."""

    config: Config
    logger: structlog.BoundLogger
    tracer: trace.Tracer
    metrics: UploaderMetrics

    _instance: ClassVar["Container | None"] = None

    @classmethod
    def create(cls) -> "Container":
        """Create and initialize the container with all dependencies."""
        if cls._instance is not None:
            return cls._instance

        config = get_config()
        logger = setup_logging_from_config(config.observability)
        tracer = setup_tracing(config.observability)
        metrics = get_metrics()

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
        )

        logger.info(
            "multipart_uploader_container_initialized",
            environment=config.observability.environment,
            algorithm=config.upload.algorithm,
            retries=config.retry.retries,
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        cls._instance = None

    def create_uploader(
        self,
        start_upload_action: StartUploadAction[Any],
        complete_upload_action: CompleteUploadAction[Any],
        **kwargs: Any,
    ) -> MultipartUpload[Any]:
        """Build an uploader wired to this container's config and metrics."""
        from multipart_uploader.application.multipart_upload import MultipartUpload

        kwargs.setdefault("metrics", self.metrics)
        return MultipartUpload(
            start_upload_action,
            complete_upload_action,
            self.config,
            **kwargs,
        )


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
