"""Inbound ports - API contract of the multipart uploader.

Example:
    uploader = MultipartUpload(start_upload, complete_upload)
    uploader.set_progress_listener(lambda id, progress: print(id, progress))
    await uploader.upload("report-2024", "/data/report.parquet", {"bucket": "reports"})
"""

from __future__ import annotations

import os
from abc import abstractmethod
from typing import Callable, Optional, Protocol, TypeVar, Union

from multipart_uploader.domain.entities.source_file import SourceFile

METADATA = TypeVar("METADATA", contravariant=True)

ProgressListener = Callable[[str, float], None]
"""Receives (file id, progress in percent from 0 to 100)."""

FileLike = Union[SourceFile, str, os.PathLike]


class MultipartUploadPort(Protocol[METADATA]):
    """Protocol for uploading one file as an S3 multipart upload.

    Concurrency:
        One instance may run several uploads of distinct files at once;
        each call keeps its own session state.

    Failure:
        ``upload`` either completes the whole upload or raises. It never
        reports partial success, and never completes a partial upload.
    """

    @abstractmethod
    async def upload(self, id: str, file: FileLike, metadata: METADATA) -> None:
        """Upload ``file`` and complete the multipart upload.

        Args:
            id: Caller's identifier of the file, echoed to listeners.
            file: Source file or a path to it.
            metadata: Passed to the start and complete actions.
        """
        ...

    @abstractmethod
    def set_progress_listener(self, listener: Optional[ProgressListener]) -> None:
        """Register the single progress listener, replacing any previous one."""
        ...
