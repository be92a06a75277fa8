"""Tests for the transcript chunker."""

import pytest

from autoclipper.analyzers.chunker import chunk_segments
from autoclipper.models import TimedSegment

from conftest import make_segments


class TestChunkSegmentsBasic:
    def test_empty_input(self):
        assert chunk_segments([], 180, 20) == []

    def test_short_transcript_is_one_chunk(self):
        segments = [
            TimedSegment(0, 5, "a"),
            TimedSegment(5, 35, "b"),
            TimedSegment(35, 65, "c"),
        ]
        chunks = chunk_segments(segments, 180, 20)

        assert len(chunks) == 1
        assert chunks[0].segments == segments
        assert chunks[0].text == "a b c"
        assert chunks[0].start_time == 0
        assert chunks[0].end_time == 65

    def test_single_segment_longer_than_window(self):
        segments = [TimedSegment(0, 500, "long monologue")]
        chunks = chunk_segments(segments, 180, 20)
        assert len(chunks) == 1
        assert chunks[0].segments == segments

    def test_segments_are_shared_not_copied(self):
        segments = make_segments((0, 10), (10, 20))
        chunks = chunk_segments(segments, 180, 20)
        assert chunks[0].segments[0] is segments[0]

    def test_invalid_window(self):
        with pytest.raises(ValueError, match="window_seconds"):
            chunk_segments(make_segments((0, 1)), 0, 0)

    def test_negative_overlap(self):
        with pytest.raises(ValueError, match="overlap_seconds"):
            chunk_segments(make_segments((0, 1)), 10, -1)


class TestChunkSegmentsWindows:
    """Ten 10-second segments with a 30s window and 10s overlap."""

    SEGMENTS = make_segments(*[(i * 10.0, i * 10.0 + 10) for i in range(10)])

    def test_window_ends_on_segment_crossing_target(self):
        chunks = chunk_segments(self.SEGMENTS, 30, 10)
        # First window targets 30s; segment [20, 30] reaches it.
        assert chunks[0].start_time == 0
        assert chunks[0].end_time == 30

    def test_windows_overlap(self):
        chunks = chunk_segments(self.SEGMENTS, 30, 10)
        # Next cursor is the first segment starting at >= 30 - 10.
        assert chunks[1].start_time == 20
        assert chunks[1].start_time < chunks[0].end_time

    def test_every_segment_covered(self):
        chunks = chunk_segments(self.SEGMENTS, 30, 10)
        covered = {id(s) for c in chunks for s in c.segments}
        assert all(id(s) in covered for s in self.SEGMENTS)

    def test_terminates_within_segment_count(self):
        chunks = chunk_segments(self.SEGMENTS, 30, 10)
        assert len(chunks) <= len(self.SEGMENTS)
        assert chunks[-1].end_time == 100

    def test_overlap_larger_than_window_still_progresses(self):
        chunks = chunk_segments(self.SEGMENTS, 10, 50)
        assert len(chunks) == len(self.SEGMENTS)
        assert [c.start_time for c in chunks] == [s.start for s in self.SEGMENTS]

    def test_no_overlap(self):
        chunks = chunk_segments(self.SEGMENTS, 30, 0)
        assert [(c.start_time, c.end_time) for c in chunks] == [
            (0, 30), (30, 60), (60, 90), (90, 100),
        ]


class TestChunkSegmentsText:
    def test_blank_windows_skipped(self):
        segments = [
            TimedSegment(0, 10, "   "),
            TimedSegment(10, 20, "hello"),
        ]
        chunks = chunk_segments(segments, 5, 0)
        assert len(chunks) == 1
        assert chunks[0].text == "hello"

    def test_no_chunk_has_empty_text(self):
        segments = [TimedSegment(i, i + 1, "" if i % 2 else "word") for i in range(20)]
        chunks = chunk_segments(segments, 3, 1)
        assert chunks
        assert all(c.text for c in chunks)

    def test_time_overlapping_segments_not_skipped(self):
        segments = [
            TimedSegment(0, 30, "a"),
            TimedSegment(1, 2, "b"),
            TimedSegment(2, 40, "c"),
        ]
        chunks = chunk_segments(segments, 10, 5)
        covered = {s.text for c in chunks for s in c.segments}
        assert covered == {"a", "b", "c"}
