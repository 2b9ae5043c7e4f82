"""
Playback orchestrator.

The sole owner and mutator of ChannelState. Three kinds of events reach it:

- FallbackTick: the one-second fallback ticker fired
- PollCompleted: a live scan finished (the probing itself happens outside)
- ViewerJoined: a viewer connected and needs a personalized snapshot

Events are queued and processed by a single consumer task, one at a time and
to completion, so a tick and a poll outcome can never interleave.

The orchestrator also owns the two timer handles. The fallback ticker is fully
stopped while live and freshly started on return to fallback; stopping a
ticker bumps a generation number and ticks from an older generation are
dropped.
The poll timer runs for the whole lifetime of the orchestrator.
"""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import dataclass
from typing import Union

from ..infra.exceptions import ConfigurationError
from ..infra.logging import get_logger
from ..shared.schemas import UpdateSnapshot
from .clock import Clock, MasterClock
from .config import ChannelConfig
from .fallback_scheduler import FallbackScheduler
from .live_arbitrator import (
    EnterOrSwitchLive,
    ExitLive,
    LiveArbitrator,
    LiveSourceProbe,
    LiveWinner,
    NoChange,
    Outcome,
)
from .state import ChannelState, FallbackPosition
from .timers import PeriodicTimer, Timer, TimerFactory
from .viewers import ViewerChannel, ViewerHandle, build_snapshot

logger = get_logger(__name__)


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FallbackTick:
    generation: int


@dataclass(frozen=True)
class PollCompleted:
    winner: LiveWinner | None


@dataclass(frozen=True)
class ViewerJoined:
    viewer: ViewerHandle


ChannelEvent = Union[FallbackTick, PollCompleted, ViewerJoined]


class PlaybackOrchestrator:
    """
    Single owner of the channel timeline.

    Usage in a running event loop::

        orchestrator = PlaybackOrchestrator(config, probe, registry)
        await orchestrator.start()
        ...
        await orchestrator.stop()

    The fallback position is chosen at construction: ``initial_position`` if
    given (ConfigurationError when it lies outside the playlist), otherwise a
    random entry at offset 0. A stopped orchestrator can be started again and
    continues in fallback from where it stood.

    Without a running consumer (``start`` not awaited) ``submit`` processes
    events inline on the caller's stack, which keeps the orchestrator usable
    from synchronous code and tests. ``bootstrap`` performs the startup
    sequence without needing an event loop when a synchronous timer factory
    is supplied.
    """

    def __init__(
        self,
        config: ChannelConfig,
        probe: LiveSourceProbe,
        channel: ViewerChannel,
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        probe_timeout_sec: float = 15.0,
        timer_factory: TimerFactory = PeriodicTimer,
        initial_position: FallbackPosition | None = None,
    ):
        self.config = config
        self.channel = channel
        self.clock: Clock = clock or MasterClock()
        rng = rng or random.Random()
        if initial_position is None:
            initial_position = FallbackPosition(rng.randrange(len(config.playlist)), 0)
        self.state = ChannelState(fallback_position=initial_position)
        self.scheduler = FallbackScheduler(config.playlist, self.state, rng)
        try:
            self.scheduler.check_position(self.state.fallback_position)
        except ValueError as e:
            raise ConfigurationError(f"invalid initial position: {e}") from e
        self.arbitrator = LiveArbitrator(config.candidates, probe, probe_timeout_sec)
        self._timer_factory = timer_factory

        self._queue: asyncio.Queue[ChannelEvent] | None = None
        self._consumer: asyncio.Task | None = None
        self._ticker: Timer | None = None
        self._ticker_generation = 0
        self._poll_timer: Timer | None = None
        self._bootstrapped = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def ticker_generation(self) -> int:
        return self._ticker_generation

    @property
    def ticker_running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    @property
    def poll_timer_running(self) -> bool:
        return self._poll_timer is not None and self._poll_timer.running

    async def start(self) -> None:
        """Start the event consumer, fallback playback and the poll timer."""
        if self._consumer is not None:
            return
        self._queue = asyncio.Queue()
        self._consumer = asyncio.get_running_loop().create_task(
            self._consume(), name="orchestrator"
        )
        self.bootstrap()

    async def stop(self) -> None:
        """Stop both timers and the event consumer."""
        self._stop_ticker()
        if self._poll_timer is not None:
            self._poll_timer.stop()
            self._poll_timer = None
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        self._queue = None
        self._bootstrapped = False
        logger.info("orchestrator_stopped")

    def bootstrap(self) -> None:
        """Start fallback playback, then poll immediately and periodically.

        After a stop, playback picks up from the saved fallback position if the
        channel was stopped while live, otherwise from where fallback stood.
        """
        if self._bootstrapped:
            return
        self._bootstrapped = True
        self._start_fallback(self.state.saved_fallback_position)
        self.state.saved_fallback_position = None
        self._poll_timer = self._timer_factory(
            "live-poll",
            self.config.poll_interval_sec,
            self._poll,
            run_immediately=True,
        )
        self._poll_timer.start()
        logger.info(
            "orchestrator_started",
            sources=[c.name for c in self.config.candidates],
            playlist_entries=len(self.config.playlist),
            poll_interval_sec=self.config.poll_interval_sec,
            tick_interval_sec=self.config.tick_interval_sec,
        )

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def submit(self, event: ChannelEvent) -> None:
        """Queue an event for the owner task (or process inline if none runs)."""
        if self._queue is None:
            self.dispatch(event)
            return
        self._queue.put_nowait(event)

    async def join(self) -> None:
        """Wait until every queued event has been processed."""
        if self._queue is not None:
            await self._queue.join()

    def dispatch(self, event: ChannelEvent) -> None:
        """Process one event to completion. Failures are logged, never raised."""
        try:
            if isinstance(event, FallbackTick):
                self._on_tick(event)
            elif isinstance(event, PollCompleted):
                self._on_poll(event)
            elif isinstance(event, ViewerJoined):
                self._on_join(event)
            else:
                raise TypeError(f"unknown event: {event!r}")
        except Exception:
            logger.exception("event_failed", event_type=type(event).__name__)

    async def _consume(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            event = await queue.get()
            try:
                self.dispatch(event)
            finally:
                queue.task_done()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _on_tick(self, event: FallbackTick) -> None:
        if self.state.is_live or event.generation != self._ticker_generation:
            return
        snapshot = self.scheduler.tick()
        if snapshot is not None:
            self.channel.send_to_all(snapshot)

    def _on_poll(self, event: PollCompleted) -> None:
        outcome = self.arbitrator.decide(event.winner, self.state)
        self.apply(outcome)

    def _on_join(self, event: ViewerJoined) -> None:
        snapshot = self.join_snapshot()
        self.channel.send_to_one(event.viewer, snapshot)
        logger.info(
            "viewer_join",
            client=event.viewer.address,
            reference_id=snapshot.reference_id,
            video_time_sec=snapshot.offset_sec,
            is_live=snapshot.is_live,
            at=self.clock.now_utc().isoformat(),
        )

    def apply(self, outcome: Outcome) -> None:
        """Apply an arbitration outcome to the channel state."""
        if isinstance(outcome, EnterOrSwitchLive):
            self._enter_live(outcome)
        elif isinstance(outcome, ExitLive):
            self._exit_live()
        elif isinstance(outcome, NoChange):
            return
        else:
            raise TypeError(f"unknown outcome: {outcome!r}")

    def _enter_live(self, outcome: EnterOrSwitchLive) -> None:
        state = self.state
        if not state.is_live:
            state.saved_fallback_position = state.fallback_position
            position = state.saved_fallback_position
            logger.info(
                "fallback_saved",
                entry_index=position.entry_index,
                offset_sec=position.offset_sec,
            )

        self._stop_ticker()
        state.is_live = True
        state.live_source_index = outcome.source_index
        state.active_reference_id = outcome.reference_id
        state.live_started_at = self.clock.now_utc()
        state.last_notified_reference_id = outcome.reference_id
        state.last_notified_part_index = None

        self.channel.send_to_all(build_snapshot(state, 0))
        logger.info(
            "live_start",
            source=self.arbitrator.candidates[outcome.source_index].name,
            priority=outcome.source_index,
            reference_id=outcome.reference_id,
        )

    def _exit_live(self) -> None:
        state = self.state
        logger.info("live_end", reference_id=state.active_reference_id)
        self._start_fallback(state.saved_fallback_position)
        state.saved_fallback_position = None

    def _start_fallback(self, resume: FallbackPosition | None) -> None:
        state = self.state
        state.is_live = False
        state.live_source_index = None
        state.live_started_at = None
        snapshot = self.scheduler.start(resume)
        self.channel.send_to_all(snapshot)
        self._start_ticker()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def join_snapshot(self) -> UpdateSnapshot:
        """Snapshot for a viewer joining now. Does not mutate state."""
        state = self.state
        if state.is_live:
            offset = 0
            if state.live_started_at is not None:
                offset = math.floor(self.clock.seconds_since(state.live_started_at))
            return build_snapshot(state, offset)

        return build_snapshot(state, self.scheduler.current_part().offset_within_part_sec)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _start_ticker(self) -> None:
        self._stop_ticker()
        generation = self._ticker_generation
        self._ticker = self._timer_factory(
            "fallback-ticker",
            self.config.tick_interval_sec,
            lambda: self.submit(FallbackTick(generation)),
        )
        self._ticker.start()

    def _stop_ticker(self) -> None:
        # Ticks already queued by the old handle carry the old generation
        self._ticker_generation += 1
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    async def _poll(self) -> None:
        try:
            winner = await self.arbitrator.scan()
        except Exception:
            logger.exception("poll_failed")
            return
        self.submit(PollCompleted(winner))
