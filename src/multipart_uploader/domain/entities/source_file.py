"""Read-only access to the local file being uploaded."""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

DEFAULT_CONTENT_TYPE = "application/octet-stream"
READ_BLOCK_SIZE = 1024 * 1024


class PartRangeError(Exception):
    """Raised when a byte range cannot be read from the source file."""


@dataclass(frozen=True)
class SourceFile:
    """A local file read by byte ranges.

    Every read opens its own handle, so concurrent part reads never share
    a file position.
    """

    path: Path
    size: int
    content_type: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def from_path(cls, path: str | os.PathLike[str], content_type: str | None = None) -> SourceFile:
        """Describe the file at ``path``, guessing its content type."""
        path = Path(path)
        if content_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            content_type = guessed or DEFAULT_CONTENT_TYPE
        return cls(path=path, size=path.stat().st_size, content_type=content_type)

    def _check_range(self, start: int, end: int) -> None:
        if start < 0 or end > self.size or start > end:
            raise PartRangeError(
                f"Range [{start}, {end}) is outside {self.path} ({self.size} bytes)"
            )

    def read_range(self, start: int, end: int) -> bytes:
        """Read exactly the bytes in ``[start, end)``.

        Raises:
            PartRangeError: If the range is out of bounds or the file is short.
        """
        self._check_range(start, end)
        with open(self.path, "rb") as f:
            f.seek(start)
            data = f.read(end - start)
        if len(data) != end - start:
            raise PartRangeError(
                f"Short read from {self.path}: wanted {end - start} bytes at {start}, got {len(data)}"
            )
        return data

    def iter_range(self, start: int, end: int, block_size: int = READ_BLOCK_SIZE) -> Iterator[bytes]:
        """Yield the bytes in ``[start, end)`` in blocks of at most ``block_size``."""
        self._check_range(start, end)
        remaining = end - start
        with open(self.path, "rb") as f:
            f.seek(start)
            while remaining > 0:
                block = f.read(min(block_size, remaining))
                if not block:
                    raise PartRangeError(
                        f"Unexpected end of {self.path} with {remaining} bytes left in [{start}, {end})"
                    )
                remaining -= len(block)
                yield block
