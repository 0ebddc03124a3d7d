"""Digest algorithms accepted for part checksums.

S3 verifies a part against the ``x-amz-checksum-<name>`` header, where the
algorithm is spelled in the backend's own vocabulary ("SHA256"), while
callers configure it with the conventional name ("SHA-256").
"""

from __future__ import annotations

import base64
import hashlib
from enum import Enum


class UnsupportedAlgorithmError(ValueError):
    """Raised when a digest algorithm has no S3 checksum counterpart."""


class HashAlgorithm(Enum):
    """Supported part digest algorithms."""
    SHA_256 = "SHA-256"

    @classmethod
    def parse(cls, value: HashAlgorithm | str) -> HashAlgorithm:
        """Resolve an algorithm from its enum member or its name.

        Raises:
            UnsupportedAlgorithmError: If the name is unknown.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedAlgorithmError(f"Unsupported algorithm: {value}") from None

    @property
    def checksum_name(self) -> str:
        """Algorithm name in the storage backend's vocabulary."""
        return _CHECKSUM_NAMES[self]

    @property
    def checksum_header(self) -> str:
        """Header carrying the base64 checksum of a part."""
        return f"x-amz-checksum-{self.checksum_name.lower()}"

    def new(self) -> "hashlib._Hash":
        """Create a fresh incremental hasher."""
        return hashlib.new(_HASHLIB_NAMES[self])

    def digest(self, data: bytes) -> bytes:
        """Raw digest of ``data``."""
        return hashlib.new(_HASHLIB_NAMES[self], data).digest()


_CHECKSUM_NAMES = {
    HashAlgorithm.SHA_256: "SHA256",
}

_HASHLIB_NAMES = {
    HashAlgorithm.SHA_256: "sha256",
}

CHECKSUM_ALGORITHM_HEADER = "x-amz-sdk-checksum-algorithm"


def to_base64(digest: bytes) -> str:
    """Encode a raw digest the way S3 expects checksums."""
    return base64.b64encode(digest).decode("ascii")
