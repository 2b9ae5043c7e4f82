"""
Tests for viewer notification and the viewer registry.
"""

from __future__ import annotations

import asyncio
import json

import pytest

from relaytv.runtime.state import ChannelState
from relaytv.runtime.viewers import ViewerRegistry, build_snapshot
from relaytv.shared.schemas import UpdateSnapshot

from fixtures.fakes import FakeViewer

SNAPSHOT = UpdateSnapshot(is_live=True, reference_id="LIVE-A", offset_sec=0)


def deliver(registry: ViewerRegistry, action) -> None:
    async def run():
        action()
        await registry.drain()

    asyncio.run(run())


class TestSnapshotShape:
    def test_wire_shape_is_stable(self):
        snapshot = UpdateSnapshot(is_live=False, reference_id="v5fw85g", offset_sec=12)
        assert snapshot.to_wire() == {
            "type": "update",
            "isLive": False,
            "referenceId": "v5fw85g",
            "offsetSec": 12,
        }
        assert json.loads(snapshot.to_json()) == snapshot.to_wire()

    def test_negative_offset_rejected(self):
        with pytest.raises(ValueError):
            UpdateSnapshot(is_live=False, reference_id="x", offset_sec=-1)

    def test_build_snapshot_from_state(self):
        state = ChannelState(is_live=True, active_reference_id="LIVE-A")
        snapshot = build_snapshot(state, 45)
        assert (snapshot.is_live, snapshot.reference_id, snapshot.offset_sec) == (True, "LIVE-A", 45)

    def test_build_snapshot_clamps_negative_offset(self):
        state = ChannelState(active_reference_id="E0")
        assert build_snapshot(state, -3).offset_sec == 0

    def test_build_snapshot_requires_active_reference(self):
        with pytest.raises(ValueError):
            build_snapshot(ChannelState(), 0)


class TestViewerRegistry:
    def setup_method(self):
        self.registry = ViewerRegistry()

    def test_send_to_all_reaches_every_open_viewer(self):
        viewers = [FakeViewer(f"10.0.0.{i}:1") for i in range(3)]
        for viewer in viewers:
            self.registry.register(viewer)

        deliver(self.registry, lambda: self.registry.send_to_all(SNAPSHOT))

        for viewer in viewers:
            assert [json.loads(m) for m in viewer.sent] == [SNAPSHOT.to_wire()]

    def test_closed_viewer_is_skipped(self):
        open_viewer = FakeViewer("a")
        closed_viewer = FakeViewer("b", is_open=False)
        self.registry.register(open_viewer)
        self.registry.register(closed_viewer)

        deliver(self.registry, lambda: self.registry.send_to_all(SNAPSHOT))

        assert len(open_viewer.sent) == 1
        assert closed_viewer.sent == []

    def test_failed_viewer_is_dropped_without_affecting_others(self):
        healthy = FakeViewer("a")
        broken = FakeViewer("b", fail=True)
        self.registry.register(healthy)
        self.registry.register(broken)

        deliver(self.registry, lambda: self.registry.send_to_all(SNAPSHOT))

        assert len(healthy.sent) == 1
        assert broken not in self.registry
        assert healthy in self.registry
        assert len(self.registry) == 1

    def test_send_to_one_targets_only_that_viewer(self):
        joining = FakeViewer("a")
        existing = FakeViewer("b")
        self.registry.register(joining)
        self.registry.register(existing)

        deliver(self.registry, lambda: self.registry.send_to_one(joining, SNAPSHOT))

        assert len(joining.sent) == 1
        assert existing.sent == []

    def test_unregister_stops_delivery(self):
        viewer = FakeViewer()
        self.registry.register(viewer)
        self.registry.unregister(viewer)
        self.registry.unregister(viewer)

        deliver(self.registry, lambda: self.registry.send_to_all(SNAPSHOT))

        assert viewer.sent == []
        assert len(self.registry) == 0
