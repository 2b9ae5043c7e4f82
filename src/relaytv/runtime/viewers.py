"""
Viewer notification.

Builds outbound snapshots and delivers them either to one joining viewer or to
every connected viewer. Delivery is fire-and-forget: the caller never waits
for a viewer, and a viewer whose transport is closed is skipped.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from ..infra.exceptions import TransportError
from ..infra.logging import get_logger
from ..shared.schemas import UpdateSnapshot
from .state import ChannelState

logger = get_logger(__name__)


@runtime_checkable
class ViewerHandle(Protocol):
    """A connected viewer as seen by the registry."""

    @property
    def address(self) -> str: ...

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, message: str) -> None:
        """Send one message. Raises TransportError when the viewer is gone."""
        ...


class ViewerChannel(Protocol):
    """Outbound side of the viewer transport."""

    def send_to_all(self, snapshot: UpdateSnapshot) -> None: ...

    def send_to_one(self, viewer: ViewerHandle, snapshot: UpdateSnapshot) -> None: ...


def build_snapshot(state: ChannelState, offset_sec: int) -> UpdateSnapshot:
    """Build the wire snapshot for the active reference at ``offset_sec``."""
    if state.active_reference_id is None:
        raise ValueError("channel has no active reference yet")
    return UpdateSnapshot(
        is_live=state.is_live,
        reference_id=state.active_reference_id,
        offset_sec=max(0, int(offset_sec)),
    )


class ViewerRegistry:
    """
    Set of connected viewers, implementing ViewerChannel.

    Sends are scheduled as tasks on the running loop and never awaited by
    the caller. A failed send drops the viewer from the registry.
    """

    def __init__(self) -> None:
        self._viewers: set[ViewerHandle] = set()
        self._pending: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._viewers)

    def __contains__(self, viewer: object) -> bool:
        return viewer in self._viewers

    def register(self, viewer: ViewerHandle) -> None:
        self._viewers.add(viewer)
        logger.debug("viewer_registered", client=viewer.address, viewers=len(self._viewers))

    def unregister(self, viewer: ViewerHandle) -> None:
        self._viewers.discard(viewer)
        logger.debug("viewer_unregistered", client=viewer.address, viewers=len(self._viewers))

    def send_to_all(self, snapshot: UpdateSnapshot) -> None:
        message = snapshot.to_json()
        for viewer in list(self._viewers):
            self._dispatch(viewer, message)

    def send_to_one(self, viewer: ViewerHandle, snapshot: UpdateSnapshot) -> None:
        self._dispatch(viewer, snapshot.to_json())

    async def drain(self) -> None:
        """Wait for every in-flight send to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _dispatch(self, viewer: ViewerHandle, message: str) -> None:
        if not viewer.is_open:
            return
        task = asyncio.get_running_loop().create_task(self._deliver(viewer, message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, viewer: ViewerHandle, message: str) -> None:
        try:
            await viewer.send_text(message)
        except TransportError as e:
            logger.info("viewer_send_failed", client=viewer.address, reason=str(e))
            self.unregister(viewer)
        except Exception as e:
            logger.warning(
                "viewer_send_failed", client=viewer.address, reason=str(e), exc_info=True
            )
            self.unregister(viewer)
