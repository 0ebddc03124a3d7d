"""Domain value objects for the multipart uploader.

Value objects are immutable objects without identity, such as the digest
algorithm used for part checksums.
"""

from multipart_uploader.domain.value_objects.hash_algorithm import (
    CHECKSUM_ALGORITHM_HEADER,
    HashAlgorithm,
    UnsupportedAlgorithmError,
    to_base64,
)

__all__ = [
    "CHECKSUM_ALGORITHM_HEADER",
    "HashAlgorithm",
    "UnsupportedAlgorithmError",
    "to_base64",
]
