"""
Canonical channel state.

There is exactly one ChannelState per process. It is mutated only by the
PlaybackOrchestrator (and the FallbackScheduler acting on its behalf) while
processing one event at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FallbackPosition:
    """Where the fallback timeline is: seconds elapsed into ``playlist[entry_index]``."""

    entry_index: int
    offset_sec: int = 0

    def __post_init__(self) -> None:
        if self.entry_index < 0:
            raise ValueError("entry_index must be non-negative")
        if self.offset_sec < 0:
            raise ValueError("offset_sec must be non-negative")


@dataclass
class ChannelState:
    """Single mutable source of truth for the channel.

    The orchestrator creates it holding a fallback position. The position is
    optional here only so a FallbackScheduler can pick one on its first start.
    """

    fallback_position: FallbackPosition | None = None
    is_live: bool = False
    active_reference_id: str | None = None
    live_source_index: int | None = None
    live_started_at: datetime | None = None
    saved_fallback_position: FallbackPosition | None = None
    last_notified_reference_id: str | None = None
    last_notified_part_index: int | None = None

    def clear_last_notified(self) -> None:
        """Forget the last notified unit so the next resolve counts as a change."""
        self.last_notified_reference_id = None
        self.last_notified_part_index = None
