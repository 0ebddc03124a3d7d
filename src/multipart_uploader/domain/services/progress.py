"""Aggregate progress of one multipart upload.

Progress is a single 0-100 scalar built from fixed checkpoints plus a
transfer band shared by the parts in proportion to their size::

    0 ── 1 (initiating) ── 2 (initiated) ── 10 (hashed) ── 95 (all parts) ── 100 (completed)
                                             └──── 85 transfer band ────┘
"""

from __future__ import annotations

from typing import Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from multipart_uploader.domain.entities.part import PartDescriptor

INITIATING = 1.0
INITIATED = 2.0
HASHED = 10.0
TRANSFER_BAND = 85.0
COMPLETED = 100.0


class ProgressTracker:
    """Per-part progress slots reduced to one overall value.

    Each slot is written only by the transfer of its own part. Slots never
    shrink, so a transfer restarted by a retry does not pull the overall
    value back.
    """

    def __init__(self) -> None:
        self._shares: dict[int, float] = {}
        self._slots: dict[int, float] = {}

    def allocate(self, parts: Iterable[PartDescriptor]) -> None:
        """Split the transfer band across ``parts`` by byte size."""
        parts = list(parts)
        total = sum(part.size for part in parts)
        self._shares = {
            part.part_number: TRANSFER_BAND * part.size / total for part in parts
        } if total else {}
        self._slots = {}

    def share(self, part_number: int) -> float:
        """Width of the band reserved for one part."""
        return self._shares[part_number]

    def update_part(self, part_number: int, loaded: int, total: int) -> float:
        """Record ``loaded`` of ``total`` bytes sent for a part.

        Returns:
            The overall progress after the update.
        """
        fraction = min(loaded / total, 1.0) if total > 0 else 0.0
        self._raise_slot(part_number, fraction * self._shares[part_number])
        return self.current()

    def complete_part(self, part_number: int) -> float:
        """Fix a finished part at its full share.

        Returns:
            The overall progress after the update.
        """
        self._raise_slot(part_number, self._shares[part_number])
        return self.current()

    def _raise_slot(self, part_number: int, value: float) -> None:
        self._slots[part_number] = max(self._slots.get(part_number, 0.0), value)

    def current(self) -> float:
        """Hashed checkpoint plus every part's contribution so far."""
        return HASHED + sum(list(self._slots.values()))
