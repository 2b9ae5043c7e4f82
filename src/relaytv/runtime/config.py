"""
Channel configuration data structures.

Defines ChannelConfig (live source candidates, filler playlist and timer
intervals) and the built-in default channel. Configuration is read once at
startup; invalid configuration raises ConfigurationError so the process
refuses to start.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..infra.exceptions import ConfigurationError
from ..shared.schemas import ChannelFileSchema, CompositeEntrySchema, SimpleEntrySchema
from .live_arbitrator import LiveSource, candidates_from_names
from .playlist import CompositeEntry, Playlist, PlaylistEntry, SimpleEntry

DEFAULT_POLL_INTERVAL_SEC = 60.0
DEFAULT_TICK_INTERVAL_SEC = 1.0


@dataclass(frozen=True)
class ChannelConfig:
    """Static configuration for the channel."""

    candidates: tuple[LiveSource, ...]
    playlist: Playlist
    poll_interval_sec: float = DEFAULT_POLL_INTERVAL_SEC
    tick_interval_sec: float = DEFAULT_TICK_INTERVAL_SEC

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ConfigurationError("at least one live source candidate is required")
        if self.poll_interval_sec <= 0:
            raise ConfigurationError("poll_interval_sec must be positive")
        if self.tick_interval_sec <= 0:
            raise ConfigurationError("tick_interval_sec must be positive")

    @property
    def source_names(self) -> list[str]:
        return [candidate.name for candidate in self.candidates]

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        poll_interval_sec: float | None = None,
        tick_interval_sec: float | None = None,
    ) -> ChannelConfig:
        """
        Deserialize from dict (e.g. loaded from JSON or YAML).

        Intervals missing from ``data`` fall back to the keyword arguments,
        then to the module defaults.

        Raises:
            ConfigurationError: If the data is not a valid channel definition
        """
        try:
            parsed = ChannelFileSchema.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid channel configuration: {e}") from e

        names = [s if isinstance(s, str) else s.name for s in parsed.sources]
        entries = [_entry_from_schema(entry) for entry in parsed.playlist]

        return cls(
            candidates=candidates_from_names(names),
            playlist=Playlist(entries),
            poll_interval_sec=_first_set(
                parsed.poll_interval_sec, poll_interval_sec, DEFAULT_POLL_INTERVAL_SEC
            ),
            tick_interval_sec=_first_set(
                parsed.tick_interval_sec, tick_interval_sec, DEFAULT_TICK_INTERVAL_SEC
            ),
        )

    def with_intervals(
        self, poll_interval_sec: float | None = None, tick_interval_sec: float | None = None
    ) -> ChannelConfig:
        return ChannelConfig(
            candidates=self.candidates,
            playlist=self.playlist,
            poll_interval_sec=poll_interval_sec or self.poll_interval_sec,
            tick_interval_sec=tick_interval_sec or self.tick_interval_sec,
        )


def _first_set(*values: float | None) -> float:
    for value in values:
        if value is not None:
            return value
    raise ValueError("no value set")


def _entry_from_schema(entry: SimpleEntrySchema | CompositeEntrySchema) -> PlaylistEntry:
    if isinstance(entry, SimpleEntrySchema):
        return SimpleEntry(entry.reference_id, entry.duration_sec)

    composite = CompositeEntry(
        tuple(SimpleEntry(p.reference_id, p.duration_sec) for p in entry.parts)
    )
    if entry.duration_sec is not None and entry.duration_sec != composite.duration_sec:
        raise ConfigurationError(
            f"composite duration {entry.duration_sec} does not match sum of parts "
            f"{composite.duration_sec}"
        )
    return composite


# Built-in channel used when no channel file is configured
DEFAULT_CHANNEL_CONFIG = ChannelConfig(
    candidates=candidates_from_names(
        [
            "nickjfuentes",
            "joeldavis",
            "chaotichermes",
            "thelillypad",
            "EpicDanger",
            "therealtuber",
        ]
    ),
    playlist=Playlist(
        [
            SimpleEntry("v5fw85g", 1662),
            SimpleEntry("v6rdsa1", 2564),
            CompositeEntry(
                (
                    SimpleEntry("v4qrqb0", 3676),
                    SimpleEntry("v4qskxc", 3765),
                    SimpleEntry("v4qsxvl", 2393),
                    SimpleEntry("v4qvssz", 6398),
                    SimpleEntry("v4qy1kq", 3204),
                    SimpleEntry("v4qycwe", 3599),
                    SimpleEntry("v4qytxc", 4110),
                    SimpleEntry("v4ryw8q", 7513),
                    SimpleEntry("v4ryx1w", 6970),
                    SimpleEntry("v4s31he", 2142),
                )
            ),
        ]
    ),
)


__all__ = [
    "ChannelConfig",
    "DEFAULT_CHANNEL_CONFIG",
    "DEFAULT_POLL_INTERVAL_SEC",
    "DEFAULT_TICK_INTERVAL_SEC",
]
