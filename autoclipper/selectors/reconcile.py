"""Clip count reconciler — fits the deduplicated clips to the user's request.

When the model produced too few clips, long clips are split in half and,
if that is still not enough, filler clips are generated from the remainder
of the video. Every pass returns a new list rather than editing in place.
"""

import logging
from dataclasses import replace
from typing import Sequence

from autoclipper.analyzers.extractor import duration_bounds
from autoclipper.models import ClipCandidate, ClipPolicy, DurationBounds, TimedSegment

log = logging.getLogger(__name__)

AI_PICK_MAX = 3
MIN_FINAL_SECONDS = 2.0
SPLIT_FACTOR = 1.5
SPLIT_BUDGET_FACTOR = 3
DEFAULT_FILLER_SECONDS = 30.0


def desired_count(policy: ClipPolicy, available: int) -> int:
    """Number of clips the user should get, given *available* unique clips."""
    if policy.mode == "userChoice":
        if policy.desired_count == "max":
            return available
        return max(int(policy.desired_count), 0)
    return min(available, AI_PICK_MAX)


def _within_video(clip: ClipCandidate, total_duration: float) -> bool:
    if clip.start_time < 0 or clip.start_time >= clip.end_time:
        return False
    return clip.end_time <= total_duration


def _by_start(clips: Sequence[ClipCandidate]) -> list[ClipCandidate]:
    return sorted(clips, key=lambda c: c.start_time)


def split_clip(clip: ClipCandidate, min_part: float = 0.0) -> list[ClipCandidate]:
    """Split *clip* at its midpoint into "(Part A)" and "(Part B)".

    A half shorter than *min_part* seconds is discarded.
    """
    mid = (clip.start_time + clip.end_time) / 2
    reason = f"{clip.reason} (Split to meet count)"
    halves = [
        replace(clip, title=f"{clip.title} (Part A)", reason=reason, end_time=mid),
        replace(clip, title=f"{clip.title} (Part B)", reason=reason, start_time=mid),
    ]
    return [h for h in halves if h.duration >= min_part]


def split_pass(
    clips: Sequence[ClipCandidate], target: int, target_min: float
) -> list[ClipCandidate]:
    """Split the longest splittable clip until *target* is reached or none qualify."""
    result = _by_start(clips)
    budget = target * SPLIT_BUDGET_FACTOR
    attempts = 0

    while len(result) < target and attempts < budget:
        splittable = [c for c in result if c.duration >= SPLIT_FACTOR * target_min]
        if not splittable:
            break
        attempts += 1

        longest = max(splittable, key=lambda c: c.duration)
        idx = result.index(longest)
        parts = split_clip(longest, min_part=target_min / 2)
        log.debug("Split '%s' into %d part(s)", longest.title, len(parts))
        result = _by_start(result[:idx] + parts + result[idx + 1:])

    return result


def _snap_start(segments: Sequence[TimedSegment], t: float) -> float:
    return next((s.start for s in segments if s.start >= t), t)


def _snap_end(segments: Sequence[TimedSegment], t: float, total_duration: float) -> float:
    return next((s.end for s in segments if s.end >= t), total_duration)


def filler_pass(
    clips: Sequence[ClipCandidate],
    target: int,
    target_min: float,
    total_duration: float,
    segments: Sequence[TimedSegment],
    clip_seconds: float,
) -> list[ClipCandidate]:
    """Append "Auto-Generated Clip N" entries after the last clip until *target*.

    Fillers are laid end to end from the last clip's end (or the first
    segment's start), snapped outward to segment boundaries, and stop once
    less than half the minimum duration of video remains.
    """
    result = list(clips)
    if len(result) >= target or total_duration <= 0:
        return result

    if result:
        cursor = max(c.end_time for c in result)
    else:
        cursor = segments[0].start if segments else 0.0

    n = 1
    while len(result) < target:
        if total_duration - cursor < target_min / 2:
            break

        window_end = min(cursor + clip_seconds, total_duration)
        if segments:
            start = _snap_start(segments, cursor)
            end = min(_snap_end(segments, window_end, total_duration), total_duration)
        else:
            start, end = cursor, window_end
        if end <= start:
            break

        result.append(
            ClipCandidate(
                title=f"Auto-Generated Clip {n}",
                description="Automatically selected section of the video.",
                start_time=start,
                end_time=end,
                reason="Generated to meet the requested clip count.",
            )
        )
        n += 1
        cursor = end
        if end >= total_duration:
            break

    return result


def final_filter(clips: Sequence[ClipCandidate], total_duration: float) -> list[ClipCandidate]:
    return [
        c for c in clips
        if _within_video(c, total_duration) and c.duration >= MIN_FINAL_SECONDS
    ]


def reconcile_clips(
    unique: Sequence[ClipCandidate],
    policy: ClipPolicy,
    total_duration: float,
    segments: Sequence[TimedSegment] = (),
    bounds: DurationBounds | None = None,
) -> list[ClipCandidate]:
    """Select, split or synthesize clips so the result matches *policy*.

    *unique* must be time-sorted and deduplicated. The result never holds
    more clips than requested; if zero candidates exist nothing is
    fabricated and an empty list is returned.
    """
    bounds = bounds or duration_bounds(policy.desired_duration)
    candidates = [
        c for c in unique
        if bounds.contains(c.duration) and _within_video(c, total_duration)
    ]
    target = desired_count(policy, len(unique))

    if target == 0:
        return final_filter(candidates, total_duration)

    if len(candidates) >= target:
        return final_filter(candidates[:target], total_duration)

    if not candidates:
        log.warning("No viable clips found; %d were requested", target)
        return []

    log.info("Only %d of %d requested clips found; splitting and filling", len(candidates), target)
    clips = split_pass(candidates, target, bounds.min)
    clips = filler_pass(
        clips,
        target,
        bounds.min,
        total_duration,
        segments,
        clip_seconds=policy.desired_duration or DEFAULT_FILLER_SECONDS,
    )
    return final_filter(clips[:target], total_duration)
