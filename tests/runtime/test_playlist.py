"""
Tests for the filler playlist model and offset resolution.
"""

from __future__ import annotations

import pytest

from relaytv.infra.exceptions import ConfigurationError
from relaytv.runtime.playlist import (
    CompositeEntry,
    Playlist,
    ResolvedPart,
    SimpleEntry,
    resolve,
)


class TestSimpleEntry:
    def test_resolve_returns_part_zero_and_floored_offset(self):
        entry = SimpleEntry("A", 100)
        for t in (0, 1, 42, 99):
            assert resolve(entry, t) == ResolvedPart("A", 0, t)

    def test_resolve_floors_fractional_offsets(self):
        entry = SimpleEntry("A", 100)
        assert resolve(entry, 12.9).offset_within_part_sec == 12
        assert resolve(entry, 0.4).offset_within_part_sec == 0

    @pytest.mark.parametrize("duration", [0, -5])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ConfigurationError):
            SimpleEntry("A", duration)

    def test_non_integer_duration_rejected(self):
        with pytest.raises(ConfigurationError):
            SimpleEntry("A", 1.5)  # type: ignore[arg-type]

    def test_empty_reference_rejected(self):
        with pytest.raises(ConfigurationError):
            SimpleEntry("", 10)


class TestCompositeEntry:
    def setup_method(self):
        self.entry = CompositeEntry(
            (SimpleEntry("P0", 10), SimpleEntry("P1", 20), SimpleEntry("P2", 30))
        )

    def test_duration_is_sum_of_parts(self):
        assert self.entry.duration_sec == 60

    def test_every_offset_selects_exactly_one_part(self):
        """Parts before the selected one plus the in-part offset equal the elapsed time."""
        durations = [p.duration_sec for p in self.entry.parts]
        for t in range(self.entry.duration_sec):
            part = resolve(self.entry, t)
            assert 0 <= part.part_index < len(durations)
            assert part.reference_id == self.entry.parts[part.part_index].reference_id
            assert part.offset_within_part_sec < durations[part.part_index]
            assert sum(durations[: part.part_index]) + part.offset_within_part_sec == t

    def test_part_boundaries(self):
        assert resolve(self.entry, 9) == ResolvedPart("P0", 0, 9)
        assert resolve(self.entry, 10) == ResolvedPart("P1", 1, 0)
        assert resolve(self.entry, 29) == ResolvedPart("P1", 1, 19)
        assert resolve(self.entry, 30) == ResolvedPart("P2", 2, 0)
        assert resolve(self.entry, 59) == ResolvedPart("P2", 2, 29)

    def test_out_of_range_offset_clamps_to_first_part(self):
        assert resolve(self.entry, 60) == ResolvedPart("P0", 0, 0)
        assert resolve(self.entry, 1000) == ResolvedPart("P0", 0, 0)

    def test_empty_composite_rejected(self):
        with pytest.raises(ConfigurationError):
            CompositeEntry(())

    def test_parts_list_is_stored_as_tuple(self):
        entry = CompositeEntry([SimpleEntry("X", 5)])  # type: ignore[arg-type]
        assert entry.parts == (SimpleEntry("X", 5),)
        hash(entry)


class TestPlaylist:
    def test_empty_playlist_rejected(self):
        with pytest.raises(ConfigurationError):
            Playlist([])

    def test_invalid_entry_rejected(self):
        with pytest.raises(ConfigurationError):
            Playlist([{"reference_id": "A", "duration_sec": 10}])  # type: ignore[list-item]

    def test_next_index_wraps(self):
        playlist = Playlist([SimpleEntry("A", 1), SimpleEntry("B", 1), SimpleEntry("C", 1)])
        assert playlist.next_index(0) == 1
        assert playlist.next_index(2) == 0

    def test_single_entry_wraps_onto_itself(self):
        playlist = Playlist([SimpleEntry("A", 10)])
        assert playlist.next_index(0) == 0

    def test_total_duration(self):
        playlist = Playlist(
            [SimpleEntry("A", 10), CompositeEntry((SimpleEntry("B", 5), SimpleEntry("C", 7)))]
        )
        assert playlist.total_duration_sec == 22
        assert len(playlist) == 2
        assert [e.duration_sec for e in playlist] == [10, 12]
