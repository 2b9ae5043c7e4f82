"""
Fallback scheduler.

Owns the fallback timeline clock: advances ``ChannelState.fallback_position``
one second per tick, wraps to the next playlist entry at the end of the
current one, and decides when a change is worth telling viewers about.

A tick is not a notification. Viewers are only notified on a boundary event,
i.e. when the visible (reference, part) pair changes.
"""

from __future__ import annotations

import random

from ..infra.logging import get_logger
from ..shared.schemas import UpdateSnapshot
from .playlist import Playlist, ResolvedPart, resolve
from .state import ChannelState, FallbackPosition
from .viewers import build_snapshot

logger = get_logger(__name__)


class FallbackScheduler:
    """
    Advances the fallback position and emits boundary notifications.

    The scheduler mutates only ``fallback_position``, ``active_reference_id``
    and the last-notified fields of the shared state. It is driven exclusively
    by the orchestrator, which serializes all calls.
    """

    def __init__(
        self,
        playlist: Playlist,
        state: ChannelState,
        rng: random.Random | None = None,
    ):
        self.playlist = playlist
        self.state = state
        self._rng = rng or random.Random()

    def start(self, resume_from: FallbackPosition | None = None) -> UpdateSnapshot:
        """
        Start (or restart) fallback playback and return the initial snapshot.

        ``resume_from`` is adopted verbatim once it has been checked against the
        playlist (see ``check_position``). Without it, an existing position is
        kept; with no position at all a random entry is chosen at offset 0.
        The returned snapshot is unconditional so that resuming always yields
        a fresh notification.
        """
        if resume_from is not None:
            self.check_position(resume_from)
            self.state.fallback_position = resume_from
        elif self.state.fallback_position is None:
            self.state.fallback_position = FallbackPosition(
                self._rng.randrange(len(self.playlist)), 0
            )

        self.state.clear_last_notified()
        snapshot = self._notify(self.current_part())
        position = self.state.fallback_position
        logger.info(
            "fallback_start",
            entry_index=position.entry_index,
            offset_sec=position.offset_sec,
            reference_id=snapshot.reference_id,
            part_offset_sec=snapshot.offset_sec,
            resumed=resume_from is not None,
        )
        return snapshot

    def tick(self) -> UpdateSnapshot | None:
        """Advance one second; return a snapshot only on a boundary event."""
        position = self._require_position()
        offset = position.offset_sec + 1
        entry_index = position.entry_index

        if offset >= self.playlist[entry_index].duration_sec:
            entry_index = self.playlist.next_index(entry_index)
            offset = 0
            self.state.clear_last_notified()
            logger.info("fallback_cycled", entry_index=entry_index)

        self.state.fallback_position = FallbackPosition(entry_index, offset)
        part = self.current_part()

        if (
            part.reference_id == self.state.last_notified_reference_id
            and part.part_index == self.state.last_notified_part_index
        ):
            return None

        snapshot = self._notify(part)
        logger.info(
            "fallback_boundary",
            reference_id=part.reference_id,
            part_index=part.part_index,
            part_offset_sec=part.offset_within_part_sec,
        )
        return snapshot

    def check_position(self, position: FallbackPosition) -> None:
        """Raise ValueError unless ``position`` lies inside the playlist."""
        if position.entry_index >= len(self.playlist):
            raise ValueError(
                f"entry index {position.entry_index} outside playlist of {len(self.playlist)}"
            )
        duration = self.playlist[position.entry_index].duration_sec
        if position.offset_sec >= duration:
            raise ValueError(
                f"offset {position.offset_sec}s past the end of entry "
                f"{position.entry_index} ({duration}s)"
            )

    def current_part(self) -> ResolvedPart:
        """Resolve the current fallback position without mutating anything."""
        position = self._require_position()
        return resolve(self.playlist[position.entry_index], position.offset_sec)

    def _notify(self, part: ResolvedPart) -> UpdateSnapshot:
        self.state.active_reference_id = part.reference_id
        self.state.last_notified_reference_id = part.reference_id
        self.state.last_notified_part_index = part.part_index
        return build_snapshot(self.state, part.offset_within_part_sec)

    def _require_position(self) -> FallbackPosition:
        position = self.state.fallback_position
        if position is None:
            raise RuntimeError("fallback scheduler has not been started")
        return position
