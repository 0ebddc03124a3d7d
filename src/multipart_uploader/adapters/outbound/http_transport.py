"""HTTP part transport adapter.

Implements PartTransferPort with an ``httpx.AsyncClient``. The part body is
streamed in fixed-size chunks with an explicit Content-Length, so progress
is reported as the connection consumes bytes rather than when the request
is built.

Usage:
    transport = HttpxPartTransport(retry_policy=RetryPolicy(retries=5))
    etag = await transport.put_part(url, data, {"Content-Type": "video/mp4"})
    await transport.aclose()

Retries:
    Transport errors and 408/429/5xx responses are retried with an
    exponential delay. Other responses fail immediately, since a 4xx on a
    presigned URL (expired signature, bad checksum) will not heal.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Mapping

import httpx

from multipart_uploader.infrastructure.config import RetryConfig, TransportConfig
from multipart_uploader.infrastructure.logging import get_logger
from multipart_uploader.infrastructure.metrics import UploaderMetrics
from multipart_uploader.ports.outbound import PartTransferError, ProgressCallback

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def exponential_delay(attempt: int, base_delay: float = 0.1) -> float:
    """Delay before retry number ``attempt`` (1-based).

    ``2**attempt * base_delay`` plus up to 20% random jitter.
    """
    delay = (2 ** attempt) * base_delay
    return delay + delay * 0.2 * random.random()


def no_delay(attempt: int) -> float:
    return 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """How a failed part PUT is retried.

    Attributes:
        retries: Retries after the first attempt.
        retry_delay: Seconds to wait before retry number ``n`` (1-based).
    """

    retries: int = 3
    retry_delay: Callable[[int], float] = field(default=exponential_delay)

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        base_delay = config.base_delay
        return cls(
            retries=config.retries,
            retry_delay=lambda attempt: exponential_delay(attempt, base_delay),
        )

    @staticmethod
    def is_retryable_status(status_code: int) -> bool:
        return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


class HttpxPartTransport:
    """PartTransferPort backed by httpx."""

    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        config: TransportConfig | None = None,
        client: httpx.AsyncClient | None = None,
        metrics: UploaderMetrics | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            retry_policy: Retry policy, 3 retries with exponential delay by default.
            config: Timeouts, pool size and streaming chunk size.
            client: Preconfigured client, e.g. one with a mock transport.
            metrics: Metrics collector for retry counts.
        """
        config = config or TransportConfig()
        self._retry = retry_policy or RetryPolicy()
        self._chunk_size = config.stream_chunk_size
        self._metrics = metrics
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            limits=httpx.Limits(max_connections=config.max_connections),
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    async def _stream(
        self,
        data: bytes,
        on_progress: ProgressCallback | None,
    ) -> AsyncIterator[bytes]:
        total = len(data)
        view = memoryview(data)
        sent = 0
        while sent < total:
            chunk = bytes(view[sent:sent + self._chunk_size])
            yield chunk
            sent += len(chunk)
            if on_progress is not None:
                on_progress(sent, total)

    async def put_part(
        self,
        url: str,
        data: bytes,
        headers: Mapping[str, str],
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """PUT one part, retrying per the policy.

        Returns:
            The ETag header of the successful response.

        Raises:
            PartTransferError: On a non-retryable response, a missing ETag,
                or once the retries are exhausted.
        """
        request_headers = {**headers, "Content-Length": str(len(data))}
        attempts = self._retry.retries + 1
        attempt = 0

        while True:
            attempt += 1
            try:
                response = await self._client.put(
                    url,
                    content=self._stream(data, on_progress),
                    headers=request_headers,
                )
            except httpx.TransportError as exc:
                reason = type(exc).__name__
                failure = PartTransferError(f"PUT failed: {exc!r}", attempts=attempt)
                failure.__cause__ = exc
            else:
                if response.is_success:
                    etag = response.headers.get("etag")
                    if not etag:
                        raise PartTransferError(
                            "Response carries no ETag header",
                            status_code=response.status_code,
                            attempts=attempt,
                        )
                    return etag

                failure = PartTransferError(
                    f"PUT returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    attempts=attempt,
                )
                if not self._retry.is_retryable_status(response.status_code):
                    raise failure
                reason = str(response.status_code)

            if attempt >= attempts:
                raise failure

            delay = self._retry.retry_delay(attempt)
            logger.warning(
                "part_transfer_retry",
                attempt=attempt,
                max_attempts=attempts,
                reason=reason,
                delay_seconds=round(delay, 3),
            )
            if self._metrics is not None:
                self._metrics.transfer_retries.labels(reason=reason).inc()
            await asyncio.sleep(delay)

    async def aclose(self) -> None:
        await self._client.aclose()
