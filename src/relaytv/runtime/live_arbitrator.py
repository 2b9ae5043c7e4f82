"""
Live arbitrator.

Polls an ordered list of candidate live sources through a LiveSourceProbe and
decides whether the channel should enter, switch, leave, or stay in live mode.
Index 0 is the highest priority; candidates are probed in order and the scan
stops at the first hit, so a candidate is only probed when every
higher-priority candidate reported "not live" this round.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol, Sequence, Union

from ..infra.exceptions import ConfigurationError
from ..infra.logging import get_logger
from .state import ChannelState

logger = get_logger(__name__)


@dataclass(frozen=True)
class LiveSource:
    """A candidate live source. Lower ``priority`` wins."""

    name: str
    priority: int


def candidates_from_names(names: Sequence[str]) -> tuple[LiveSource, ...]:
    """Build the candidate list, assigning priority by position."""
    if not names:
        raise ConfigurationError("at least one live source candidate is required")
    seen: set[str] = set()
    for name in names:
        if not name:
            raise ConfigurationError("live source names must be non-empty")
        if name in seen:
            raise ConfigurationError(f"duplicate live source: {name}")
        seen.add(name)
    return tuple(LiveSource(name=name, priority=index) for index, name in enumerate(names))


class LiveSourceProbe(Protocol):
    """Tells whether a named source is live right now."""

    async def probe(self, source_name: str) -> str | None:
        """
        Return a playable reference if ``source_name`` is live, else None.

        May raise on network or parse failures; callers treat that as None.
        """
        ...


# ----------------------------------------------------------------------
# Outcomes
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class LiveWinner:
    """Result of one scan: the highest-priority live candidate."""

    source_index: int
    reference_id: str


@dataclass(frozen=True)
class EnterOrSwitchLive:
    source_index: int
    reference_id: str


@dataclass(frozen=True)
class ExitLive:
    pass


@dataclass(frozen=True)
class NoChange:
    pass


Outcome = Union[EnterOrSwitchLive, ExitLive, NoChange]


class LiveArbitrator:
    """Priority-ordered live/fallback decision maker."""

    def __init__(
        self,
        candidates: Sequence[LiveSource],
        probe: LiveSourceProbe,
        probe_timeout_sec: float = 15.0,
    ):
        if not candidates:
            raise ConfigurationError("at least one live source candidate is required")
        self.candidates = tuple(sorted(candidates, key=lambda c: c.priority))
        self.probe = probe
        self.probe_timeout_sec = probe_timeout_sec

    async def scan(self) -> LiveWinner | None:
        """Probe candidates in priority order and return the first live one."""
        for index, candidate in enumerate(self.candidates):
            reference_id = await self._probe_one(candidate)
            if reference_id:
                return LiveWinner(source_index=index, reference_id=reference_id)
        return None

    def decide(self, winner: LiveWinner | None, state: ChannelState) -> Outcome:
        """Turn a scan result into a transition against the current state."""
        if winner is not None:
            if state.is_live and state.active_reference_id == winner.reference_id:
                return NoChange()
            return EnterOrSwitchLive(winner.source_index, winner.reference_id)
        if state.is_live:
            return ExitLive()
        return NoChange()

    async def _probe_one(self, candidate: LiveSource) -> str | None:
        try:
            return await asyncio.wait_for(
                self.probe.probe(candidate.name), timeout=self.probe_timeout_sec
            )
        except asyncio.TimeoutError:
            logger.warning(
                "probe_failed",
                source=candidate.name,
                reason="timeout",
                timeout_sec=self.probe_timeout_sec,
            )
        except Exception as e:
            logger.warning("probe_failed", source=candidate.name, reason=str(e))
        return None
