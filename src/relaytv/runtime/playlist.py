"""
Filler playlist model.

A playlist is a fixed, cyclic sequence of filler entries. An entry is either
a single video (SimpleEntry) or a virtual video made of several sequential
parts (CompositeEntry) that plays as one logical item. Viewers only ever see
the active part's reference.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Union

from ..infra.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimpleEntry:
    """A single filler video."""

    reference_id: str
    duration_sec: int

    def __post_init__(self) -> None:
        if not self.reference_id:
            raise ConfigurationError("reference_id must be a non-empty string")
        if isinstance(self.duration_sec, bool) or not isinstance(self.duration_sec, int):
            raise ConfigurationError(
                f"duration_sec must be an integer, got {self.duration_sec!r} for {self.reference_id}"
            )
        if self.duration_sec <= 0:
            raise ConfigurationError(
                f"duration_sec must be positive, got {self.duration_sec} for {self.reference_id}"
            )


@dataclass(frozen=True)
class CompositeEntry:
    """A virtual video composed of sequential parts, treated as one long video."""

    parts: tuple[SimpleEntry, ...]

    def __post_init__(self) -> None:
        if not self.parts:
            raise ConfigurationError("composite entry must have at least one part")
        # Accept any sequence but store a tuple so the entry stays hashable
        object.__setattr__(self, "parts", tuple(self.parts))

    @property
    def duration_sec(self) -> int:
        return sum(part.duration_sec for part in self.parts)


PlaylistEntry = Union[SimpleEntry, CompositeEntry]


@dataclass(frozen=True)
class ResolvedPart:
    """The playable unit at a given offset into an entry."""

    reference_id: str
    part_index: int
    offset_within_part_sec: int


def resolve(entry: PlaylistEntry, elapsed_sec: float) -> ResolvedPart:
    """
    Resolve an elapsed offset into an entry to the part that is playing.

    For a simple entry the offset is returned as-is (floored). Callers must
    not pass ``elapsed_sec >= entry.duration_sec``; the fallback scheduler
    guarantees this by wrapping at the boundary.

    For a composite entry the parts are walked in order. An out-of-range
    offset resolves to the start of part 0 instead of failing.
    """
    elapsed = math.floor(elapsed_sec)
    if isinstance(entry, SimpleEntry):
        return ResolvedPart(entry.reference_id, 0, elapsed)

    remaining = elapsed
    for index, part in enumerate(entry.parts):
        if remaining < part.duration_sec:
            return ResolvedPart(part.reference_id, index, remaining)
        remaining -= part.duration_sec

    logger.warning(
        "Offset %s out of range for composite entry (%ss); clamping to part 0",
        elapsed_sec,
        entry.duration_sec,
    )
    return ResolvedPart(entry.parts[0].reference_id, 0, 0)


class Playlist:
    """Ordered, non-empty, immutable cyclic sequence of filler entries."""

    def __init__(self, entries: Sequence[PlaylistEntry]):
        if not entries:
            raise ConfigurationError("playlist must contain at least one entry")
        for entry in entries:
            if not isinstance(entry, (SimpleEntry, CompositeEntry)):
                raise ConfigurationError(f"invalid playlist entry: {entry!r}")
        self._entries: tuple[PlaylistEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> PlaylistEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[PlaylistEntry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Playlist):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"Playlist({list(self._entries)!r})"

    @property
    def total_duration_sec(self) -> int:
        """Length of one full cycle through the playlist."""
        return sum(entry.duration_sec for entry in self._entries)

    def next_index(self, index: int) -> int:
        """Index of the entry after ``index``, wrapping to 0 after the last."""
        return (index + 1) % len(self._entries)
