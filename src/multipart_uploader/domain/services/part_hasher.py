"""Per-part and composite checksums for multipart uploads.

Each part gets a base64 digest of its own bytes, which S3 verifies on the
part PUT. The composite checksum is the SHA-256 of the concatenated *raw*
part digests in ascending part number order, so it fingerprints the file
together with its part layout. The composite hasher is fed one digest at a
time, which keeps memory at one digest regardless of the part count.
"""

from __future__ import annotations

import asyncio
import hashlib

from multipart_uploader.domain.entities.part import (
    HashedPart,
    HashResult,
    MultipartFile,
    PartDescriptor,
    sort_parts,
)
from multipart_uploader.domain.entities.source_file import SourceFile
from multipart_uploader.domain.value_objects.hash_algorithm import HashAlgorithm, to_base64


def _digest_part(algorithm: HashAlgorithm, source: SourceFile, part: PartDescriptor) -> bytes:
    hasher = algorithm.new()
    for block in source.iter_range(part.start, part.end):
        hasher.update(block)
    return hasher.digest()


async def hash_parts(algorithm: HashAlgorithm | str, file: MultipartFile) -> HashResult:
    """Hash every part of ``file`` and the file as a whole.

    Parts are processed strictly one after another in ascending part number
    order, whatever order ``file.parts`` is in. The caller's list is left
    untouched.

    Args:
        algorithm: Digest for the per-part checksums.
        file: File id, part descriptors and the source file.

    Returns:
        Hashed parts in ascending order and the composite checksum.

    Raises:
        UnsupportedAlgorithmError: If ``algorithm`` is not supported.
        PartLayoutError: If two parts share a part number.
        PartRangeError: If a part's byte range cannot be read.
    """
    algorithm = HashAlgorithm.parse(algorithm)
    if file.source is None:
        raise ValueError(f"Multipart file {file.id} has no source")

    hashed_parts: list[HashedPart] = []
    composite = hashlib.sha256()

    for part in sort_parts(file.parts):
        digest = await asyncio.to_thread(_digest_part, algorithm, file.source, part)
        hashed_parts.append(HashedPart(part_number=part.part_number, hash=to_base64(digest)))
        composite.update(digest)

    return HashResult(id=file.id, parts=hashed_parts, hash=to_base64(composite.digest()))
