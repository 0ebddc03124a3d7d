"""Outbound adapters."""

from multipart_uploader.adapters.outbound.http_transport import (
    HttpxPartTransport,
    RetryPolicy,
    exponential_delay,
    no_delay,
)

__all__ = [
    "HttpxPartTransport",
    "RetryPolicy",
    "exponential_delay",
    "no_delay",
]
