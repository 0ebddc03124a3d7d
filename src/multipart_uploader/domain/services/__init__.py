"""Domain services."""

from multipart_uploader.domain.services.progress import ProgressTracker
from multipart_uploader.domain.services.part_hasher import hash_parts

__all__ = [
    "ProgressTracker",
    "hash_parts",
]
