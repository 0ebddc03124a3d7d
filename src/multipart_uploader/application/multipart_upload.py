"""Multipart upload orchestrator.

Drives one file through the S3 multipart upload protocol:

    start action ──> hash parts ──> PUT every part concurrently ──> complete action

The control plane (start/complete) belongs to the caller; this module only
coordinates it with hashing, the data plane transfers and progress.
"""

from __future__ import annotations

import asyncio
import os
import time
from typing import Any, Generic, Mapping, Optional, TypeVar

import structlog
from pydantic import ValidationError

from multipart_uploader.adapters.outbound.http_transport import HttpxPartTransport, RetryPolicy
from multipart_uploader.domain.entities.part import HashResult, MultipartFile, UploadedPart
from multipart_uploader.domain.entities.session import UploadSession
from multipart_uploader.domain.entities.source_file import SourceFile
from multipart_uploader.domain.services import progress as checkpoints
from multipart_uploader.domain.services.part_hasher import hash_parts
from multipart_uploader.domain.value_objects.hash_algorithm import (
    CHECKSUM_ALGORITHM_HEADER,
    HashAlgorithm,
)
from multipart_uploader.infrastructure.config import Config, get_config
from multipart_uploader.infrastructure.logging import get_logger
from multipart_uploader.infrastructure.metrics import UploaderMetrics, get_metrics
from multipart_uploader.infrastructure.tracing import get_tracer, phase_span
from multipart_uploader.ports.inbound import FileLike, ProgressListener
from multipart_uploader.ports.outbound import (
    CompleteUploadAction,
    PartTransferError,
    PartTransferPort,
    PresignedPart,
    StartUploadAction,
    StartUploadResponse,
)

logger = get_logger(__name__)

METADATA = TypeVar("METADATA")


class MultipartUpload(Generic[METADATA]):
    """Uploads files through caller-supplied start and complete actions.

    Configuration is fixed at construction. One instance can run any
    number of sequential or concurrent uploads of distinct files.
    """

    def __init__(
        self,
        start_upload_action: StartUploadAction[METADATA],
        complete_upload_action: CompleteUploadAction[METADATA],
        config: Config | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        transport: PartTransferPort | None = None,
        metrics: UploaderMetrics | None = None,
    ) -> None:
        """Create the uploader.

        Args:
            start_upload_action: Creates the upload and its presigned part URLs.
            complete_upload_action: Completes the upload from the uploaded parts.
            config: Uploader configuration, environment defaults if omitted.
            retry_policy: Overrides the configured part retry policy.
            transport: Overrides the default httpx transport.
            metrics: Metrics collector, the process-wide one if omitted.

        Raises:
            UnsupportedAlgorithmError: If the configured algorithm has no
                S3 checksum counterpart.
        """
        config = config or get_config()

        self._algorithm = HashAlgorithm.parse(config.upload.algorithm)
        self._checksum_algorithm = self._algorithm.checksum_name
        self._max_part_size = config.upload.max_part_size
        self._max_concurrent_parts = config.upload.max_concurrent_parts

        self._start_upload_action = start_upload_action
        self._complete_upload_action = complete_upload_action
        self._metrics = metrics or get_metrics()
        self._tracer = get_tracer()
        self._transport: PartTransferPort = transport or HttpxPartTransport(
            retry_policy=retry_policy or RetryPolicy.from_config(config.retry),
            config=config.transport,
            metrics=self._metrics,
        )
        self._progress_listener: Optional[ProgressListener] = None

    @property
    def algorithm(self) -> HashAlgorithm:
        return self._algorithm

    @property
    def max_part_size(self) -> int:
        return self._max_part_size

    def set_progress_listener(self, listener: Optional[ProgressListener]) -> None:
        """Register the progress listener, replacing the previous one."""
        self._progress_listener = listener

    def _notify_progress(self, id: str, progress: float) -> None:
        if self._progress_listener is not None:
            self._progress_listener(id, progress)

    async def upload(self, id: str, file: FileLike, metadata: METADATA) -> None:
        """Upload ``file`` as a multipart upload and complete it.

        Args:
            id: Caller's identifier of the file, echoed to the listener.
            file: Source file or a path to it.
            metadata: Passed untouched to the start and complete actions.

        Raises:
            PartRangeError: If a part's range cannot be read.
            PartTransferError: If a part could not be stored.
            Any exception raised by the start or complete action.
        """
        source = file if isinstance(file, SourceFile) else SourceFile.from_path(os.fspath(file))
        session = UploadSession(
            id=id,
            source=source,
            algorithm=self._algorithm,
            max_part_size=self._max_part_size,
        )
        started = time.perf_counter()
        self._metrics.uploads_started.inc()

        with structlog.contextvars.bound_contextvars(file_id=id):
            logger.info("multipart_upload_started", size=source.size, content_type=source.content_type)
            with self._tracer.start_as_current_span(
                "multipart_upload",
                attributes={"upload.file_id": id, "upload.size": source.size},
            ):
                phase = "initiate"
                try:
                    start_response = await self._initiate(session, metadata)

                    phase = "hash"
                    hash_result = await self._hash(session, start_response)

                    phase = "transfer"
                    uploaded_parts = await self._transfer(session, start_response, hash_result)

                    phase = "complete"
                    with phase_span(self._tracer, phase, **{"upload.id": session.upload_id}):
                        await self._complete_upload_action(
                            id, start_response.upload_id, uploaded_parts, metadata
                        )
                except Exception as exc:
                    self._metrics.uploads_failed.labels(phase=phase).inc()
                    logger.error(
                        "multipart_upload_failed",
                        phase=phase,
                        upload_id=session.upload_id,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    raise

            self._notify_progress(id, checkpoints.COMPLETED)
            self._metrics.uploads_completed.inc()
            self._metrics.upload_duration.observe(time.perf_counter() - started)
            logger.info(
                "multipart_upload_completed",
                upload_id=session.upload_id,
                parts=len(uploaded_parts),
                composite_hash=hash_result.hash,
                elapsed_seconds=round(session.elapsed_seconds, 3),
            )

    async def _initiate(self, session: UploadSession, metadata: METADATA) -> StartUploadResponse:
        self._notify_progress(session.id, checkpoints.INITIATING)
        with phase_span(self._tracer, "initiate"):
            raw = await self._start_upload_action(
                session.id, session.max_part_size, session.source.size, metadata
            )
        response = self._parse_start_response(raw)
        session.upload_id = response.upload_id
        logger.info("multipart_upload_initiated", upload_id=response.upload_id, parts=len(response.parts))
        self._notify_progress(session.id, checkpoints.INITIATED)
        return response

    @staticmethod
    def _parse_start_response(raw: StartUploadResponse | Mapping[str, Any]) -> StartUploadResponse:
        if isinstance(raw, StartUploadResponse):
            return raw
        try:
            return StartUploadResponse.model_validate(raw)
        except ValidationError:
            logger.error("start_upload_response_invalid")
            raise

    async def _hash(self, session: UploadSession, start_response: StartUploadResponse) -> HashResult:
        started = time.perf_counter()
        with phase_span(self._tracer, "hash", **{"upload.parts": len(start_response.parts)}):
            result = await hash_parts(
                session.algorithm,
                MultipartFile(
                    id=session.id,
                    parts=[part.descriptor() for part in start_response.parts],
                    source=session.source,
                ),
            )
        self._metrics.hash_duration.observe(time.perf_counter() - started)
        logger.debug("multipart_upload_hashed", composite_hash=result.hash)
        self._notify_progress(session.id, checkpoints.HASHED)
        return result

    async def _transfer(
        self,
        session: UploadSession,
        start_response: StartUploadResponse,
        hash_result: HashResult,
    ) -> list[UploadedPart]:
        parts = start_response.sorted_parts()
        session.progress.allocate(part.descriptor() for part in parts)

        semaphore = (
            asyncio.Semaphore(self._max_concurrent_parts) if self._max_concurrent_parts else None
        )

        async def bounded(part: PresignedPart) -> UploadedPart:
            if semaphore is None:
                return await self._upload_part(session, part, hash_result.hash_for(part.part_number))
            async with semaphore:
                return await self._upload_part(session, part, hash_result.hash_for(part.part_number))

        with phase_span(self._tracer, "transfer", **{"upload.parts": len(parts)}):
            # Siblings keep running after the first failure; their results are dropped.
            return list(await asyncio.gather(*(bounded(part) for part in parts)))

    async def _upload_part(
        self,
        session: UploadSession,
        part: PresignedPart,
        part_hash: str,
    ) -> UploadedPart:
        data = await asyncio.to_thread(session.source.read_range, part.start, part.end)
        headers = {
            "Content-Type": session.source.content_type,
            CHECKSUM_ALGORITHM_HEADER: self._checksum_algorithm,
            session.algorithm.checksum_header: part_hash,
        }

        def on_progress(loaded: int, total: int | None) -> None:
            overall = session.progress.update_part(part.part_number, loaded, total or part.size)
            self._notify_progress(session.id, overall)

        try:
            etag = await self._transport.put_part(part.url, data, headers, on_progress)
        except PartTransferError as exc:
            exc.part_number = part.part_number
            logger.warning(
                "part_transfer_failed",
                part_number=part.part_number,
                status_code=exc.status_code,
                attempts=exc.attempts,
            )
            raise

        self._notify_progress(session.id, session.progress.complete_part(part.part_number))
        self._metrics.parts_uploaded.inc()
        self._metrics.bytes_uploaded.inc(part.size)

        return UploadedPart(
            part_number=part.part_number,
            hash=part_hash,
            size=part.size,
            etag=UploadedPart.clean_etag(etag),
        )

    async def aclose(self) -> None:
        """Close the transport's connection pool."""
        await self._transport.aclose()

    async def __aenter__(self) -> MultipartUpload[METADATA]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
