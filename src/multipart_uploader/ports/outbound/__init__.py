"""Outbound ports - External collaborators of the multipart uploader.

The uploader does not talk to the storage control plane itself. Starting
and completing a multipart upload are actions supplied by the caller,
and the part PUTs go through a transfer port.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, TypeVar, Union

from pydantic import BaseModel, Field, model_validator

from multipart_uploader.domain.entities.part import PartDescriptor, UploadedPart

METADATA = TypeVar("METADATA", contravariant=True)


# =============================================================================
# Control Plane Port
# =============================================================================


class PresignedPart(BaseModel):
    """One part returned by the start-upload action."""

    part_number: int = Field(ge=1)
    url: str
    start: int = Field(ge=0)
    end: int

    @model_validator(mode="after")
    def _check_range(self) -> PresignedPart:
        if self.end <= self.start:
            raise ValueError(f"part {self.part_number}: end {self.end} <= start {self.start}")
        return self

    @property
    def size(self) -> int:
        return self.end - self.start

    def descriptor(self) -> PartDescriptor:
        """Byte range of this part."""
        return PartDescriptor(part_number=self.part_number, start=self.start, end=self.end)


class StartUploadResponse(BaseModel):
    """Response of the start-upload action.

    Attributes:
        upload_id: Multipart upload id assigned by S3.
        parts: Presigned URL and byte range for every part.
    """

    upload_id: str
    parts: list[PresignedPart] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_unique_parts(self) -> StartUploadResponse:
        numbers = [part.part_number for part in self.parts]
        if len(numbers) != len(set(numbers)):
            raise ValueError("part numbers must be unique")
        return self

    def sorted_parts(self) -> list[PresignedPart]:
        return sorted(self.parts, key=lambda part: part.part_number)

    @property
    def total_size(self) -> int:
        return sum(part.size for part in self.parts)


class StartUploadAction(Protocol[METADATA]):
    """Creates the multipart upload and the presigned part URLs."""

    def __call__(
        self,
        id: str,
        max_part_size: int,
        file_size: int,
        metadata: METADATA,
    ) -> Awaitable[Union[StartUploadResponse, Mapping[str, Any]]]:
        """Start the upload.

        Args:
            id: Caller's identifier of the file.
            max_part_size: Upper bound for a part, in bytes.
            file_size: Size of the whole file, in bytes.
            metadata: Caller metadata, passed through untouched.

        Returns:
            The upload id and the parts covering the whole file.
        """
        ...


class CompleteUploadAction(Protocol[METADATA]):
    """Completes the multipart upload once every part is stored."""

    def __call__(
        self,
        id: str,
        upload_id: str,
        parts: list[UploadedPart],
        metadata: METADATA,
    ) -> Awaitable[None]:
        """Complete the upload.

        Called at most once per upload, with the parts in ascending
        part number order.
        """
        ...


# =============================================================================
# Part Transfer Port
# =============================================================================


ProgressCallback = Callable[[int, Optional[int]], None]


class PartTransferError(Exception):
    """Raised when a part could not be stored after all retries."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 1,
        part_number: int | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts
        self.part_number = part_number

    def __str__(self) -> str:
        message = super().__str__()
        if self.part_number is not None:
            return f"part {self.part_number}: {message}"
        return message


class PartTransferPort(Protocol):
    """Protocol for the data plane PUT of one part.

    Implementations apply their own retry policy before giving up and
    report byte progress as the body is sent.
    """

    @abstractmethod
    async def put_part(
        self,
        url: str,
        data: bytes,
        headers: Mapping[str, str],
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """Upload one part.

        Args:
            url: Presigned URL accepting a raw-byte PUT.
            data: Part bytes.
            headers: Request headers, checksum headers included.
            on_progress: Called with (bytes sent, total bytes or None).

        Returns:
            The ETag header returned by the backend, as sent.

        Raises:
            PartTransferError: If the part could not be stored.
        """
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release pooled connections."""
        ...
