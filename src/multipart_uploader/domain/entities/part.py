"""Part entities for multipart uploads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from multipart_uploader.domain.entities.source_file import SourceFile


class PartLayoutError(ValueError):
    """Raised when part descriptors do not describe a valid layout."""


@dataclass(frozen=True)
class PartDescriptor:
    """Byte range ``[start, end)`` of the file uploaded as one part."""

    part_number: int
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.part_number < 1:
            raise PartLayoutError(f"Part number must be >= 1, got {self.part_number}")
        if self.start < 0 or self.start >= self.end:
            raise PartLayoutError(
                f"Part {self.part_number} has an empty or negative range "
                f"[{self.start}, {self.end})"
            )

    @property
    def size(self) -> int:
        """Number of bytes in the part."""
        return self.end - self.start


def sort_parts(parts: Iterable[PartDescriptor]) -> list[PartDescriptor]:
    """Return the parts in ascending part number order.

    Raises:
        PartLayoutError: If two parts share a part number.
    """
    ordered = sorted(parts, key=lambda part: part.part_number)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.part_number == current.part_number:
            raise PartLayoutError(f"Duplicate part number {current.part_number}")
    return ordered


@dataclass(frozen=True)
class HashedPart:
    """Base64 checksum of one part."""

    part_number: int
    hash: str


@dataclass(frozen=True)
class HashResult:
    """Per-part checksums plus the composite checksum of a file."""

    id: str
    parts: list[HashedPart]
    hash: str  # SHA-256 over the concatenated raw part digests

    def hash_for(self, part_number: int) -> str:
        """Checksum of the given part."""
        for part in self.parts:
            if part.part_number == part_number:
                return part.hash
        raise KeyError(part_number)


@dataclass(frozen=True)
class UploadedPart:
    """A part accepted by the storage backend."""

    part_number: int
    hash: str
    size: int
    etag: str

    @staticmethod
    def clean_etag(etag: str) -> str:
        """Strip the quote characters S3 wraps ETags in."""
        return etag.replace('"', "")

    def to_completed_part(self) -> dict[str, object]:
        """Entry for an S3 ``CompleteMultipartUpload`` request."""
        return {
            "PartNumber": self.part_number,
            "ETag": self.etag,
            "ChecksumSHA256": self.hash,
        }


@dataclass
class MultipartFile:
    """A file together with the parts it is uploaded in."""

    id: str
    parts: list[PartDescriptor] = field(default_factory=list)
    source: SourceFile | None = None
