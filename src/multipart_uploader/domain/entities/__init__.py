"""Domain entities."""

from multipart_uploader.domain.entities.part import (
    HashedPart,
    HashResult,
    MultipartFile,
    PartDescriptor,
    PartLayoutError,
    UploadedPart,
    sort_parts,
)
from multipart_uploader.domain.entities.source_file import PartRangeError, SourceFile
from multipart_uploader.domain.entities.session import UploadSession

__all__ = [
    "HashedPart",
    "HashResult",
    "MultipartFile",
    "PartDescriptor",
    "PartLayoutError",
    "PartRangeError",
    "SourceFile",
    "UploadSession",
    "UploadedPart",
    "sort_parts",
]
