"""Split a timed transcript into overlapping windows for the model."""

from typing import Sequence

from autoclipper.models import TimedSegment, TranscriptChunk


def _next_cursor(
    segments: Sequence[TimedSegment], cursor: int, last: int, overlap_seconds: float
) -> int:
    """Index where the next window starts.

    The earliest segment starting at or after (window end - overlap), never
    past ``last + 1`` so no segment is skipped, and always beyond *cursor*.
    """
    threshold = segments[last].end - overlap_seconds
    following = last + 1
    nxt = next(
        (i for i in range(cursor, following) if segments[i].start >= threshold),
        following,
    )
    return nxt if nxt > cursor else following


def chunk_segments(
    segments: Sequence[TimedSegment],
    window_seconds: float,
    overlap_seconds: float,
) -> list[TranscriptChunk]:
    """Split time-ordered segments into overlapping windows.

    Each window starts at the cursor segment and extends until a segment ends
    at or beyond ``start + window_seconds`` (so it ends on a segment boundary
    and may overrun the nominal size). A single segment longer than the
    window becomes its own chunk. Windows with no text are skipped.

    Segment objects are shared with the input, not copied.
    """
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")
    if overlap_seconds < 0:
        raise ValueError("overlap_seconds must not be negative")

    chunks: list[TranscriptChunk] = []
    n = len(segments)
    cursor = 0

    while cursor < n:
        target_end = segments[cursor].start + window_seconds
        last = cursor
        while last + 1 < n and segments[last].end < target_end:
            last += 1

        members = list(segments[cursor:last + 1])
        text = " ".join(s.text.strip() for s in members if s.text.strip())
        if text:
            chunks.append(TranscriptChunk(text=text, segments=members))

        cursor = _next_cursor(segments, cursor, last, overlap_seconds)

    return chunks
