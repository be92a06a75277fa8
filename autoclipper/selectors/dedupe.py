"""Drop duplicate clip proposals coming from overlapping chunks."""

from typing import Iterable

from autoclipper.models import ClipCandidate

OVERLAP_THRESHOLD = 5.0


def _nested(inner: ClipCandidate, outer: ClipCandidate, threshold: float) -> bool:
    return (
        inner.start_time >= outer.start_time
        and inner.end_time <= outer.end_time + threshold
    )


def is_duplicate(
    candidate: ClipCandidate, existing: ClipCandidate, threshold: float = OVERLAP_THRESHOLD
) -> bool:
    """True if two clips start within *threshold* seconds or one nests in the other.

    Nesting is checked in both directions, so deduplicating an already
    deduplicated list removes nothing.
    """
    if abs(candidate.start_time - existing.start_time) < threshold:
        return True
    return _nested(candidate, existing, threshold) or _nested(existing, candidate, threshold)


def dedupe_clips(
    candidates: Iterable[ClipCandidate], threshold: float = OVERLAP_THRESHOLD
) -> list[ClipCandidate]:
    """Drop duplicates in arrival order (first seen wins), then sort by start time."""
    unique: list[ClipCandidate] = []
    for candidate in candidates:
        if any(is_duplicate(candidate, u, threshold) for u in unique):
            continue
        unique.append(candidate)
    return sorted(unique, key=lambda c: c.start_time)
