"""Upload session entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from multipart_uploader.domain.entities.source_file import SourceFile
from multipart_uploader.domain.services.progress import ProgressTracker
from multipart_uploader.domain.value_objects.hash_algorithm import HashAlgorithm


@dataclass
class UploadSession:
    """State of a single ``upload`` call. Never persisted or shared."""

    id: str
    source: SourceFile
    algorithm: HashAlgorithm
    max_part_size: int
    progress: ProgressTracker = field(default_factory=ProgressTracker)
    upload_id: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()
