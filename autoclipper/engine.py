"""Orchestrator — runs the clip detection pipeline over a transcript."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from autoclipper.analyzers.chunker import chunk_segments
from autoclipper.analyzers.extractor import duration_bounds, extract_candidates
from autoclipper.editors.materialize import ClipMaterializer
from autoclipper.llm import Completer
from autoclipper.models import ClipCandidate, ClipPolicy, ClipSelection, Transcript
from autoclipper.selectors.dedupe import dedupe_clips
from autoclipper.selectors.reconcile import reconcile_clips
from autoclipper.settings import ChunkingConfig

log = logging.getLogger(__name__)

NO_CLIPS_WARNING = "No viable clips were found in this video."


class SourceNotFoundError(FileNotFoundError):
    pass


@dataclass
class DetectResult:
    clips: list[ClipSelection] = field(default_factory=list)
    candidates_found: int = 0
    selected: int = 0
    warning: str | None = None

    def to_dict(self) -> dict:
        data = {"clips": [c.to_dict() for c in self.clips]}
        if self.warning:
            data["warning"] = self.warning
        return data


def find_candidates(
    transcript: Transcript,
    policy: ClipPolicy,
    complete: Completer,
    chunking: ChunkingConfig,
    on_progress: Callable[[str, float], None] | None = None,
) -> list[ClipCandidate]:
    """Chunk the transcript and collect deduplicated model candidates."""
    bounds = duration_bounds(policy.desired_duration)
    chunks = chunk_segments(
        transcript.segments, chunking.window_seconds, chunking.overlap_seconds
    )
    log.info("Split transcript into %d chunk(s)", len(chunks))

    candidates: list[ClipCandidate] = []
    for i, chunk in enumerate(chunks):
        if on_progress:
            on_progress(f"Analyzing chunk {i + 1}/{len(chunks)}", 0.1 + 0.6 * i / len(chunks))
        candidates.extend(extract_candidates(chunk, bounds, complete))

    unique = dedupe_clips(candidates)
    log.info("%d candidate(s), %d after dedup", len(candidates), len(unique))
    return unique


def detect_clips(
    transcript: Transcript,
    source_path: Path,
    policy: ClipPolicy,
    complete: Completer,
    materializer: ClipMaterializer,
    chunking: ChunkingConfig | None = None,
    on_progress: Callable[[str, float], None] | None = None,
) -> DetectResult:
    """Propose, select and cut highlight clips.

    Args:
        transcript: Timed transcript of the source video.
        source_path: The uploaded video the clips are cut from.
        policy: Requested clip count and duration.
        complete: Completion collaborator.
        materializer: Cuts the selected clips.
        chunking: Window sizes; defaults to ChunkingConfig().
        on_progress: Optional callback(stage_name, fraction_complete).

    Raises:
        ValueError: The transcript has no text.
        SourceNotFoundError: The source video no longer exists.
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    if not transcript.text.strip():
        raise ValueError("No transcript available for clip detection")
    if not Path(source_path).exists():
        raise SourceNotFoundError(f"Original video file not found: {source_path}")

    _progress("Chunking transcript", 0.05)
    unique = find_candidates(
        transcript, policy, complete, chunking or ChunkingConfig(), on_progress=on_progress
    )

    _progress("Selecting clips", 0.75)
    selected = reconcile_clips(
        unique, policy, transcript.duration, segments=transcript.segments
    )

    _progress(f"Cutting {len(selected)} clip(s)", 0.8)
    clips = materializer.materialize_all(selected, Path(source_path))

    warning = None
    if not clips:
        warning = NO_CLIPS_WARNING
        log.warning("Clip detection produced no clips for %s", source_path)

    _progress("Done", 1.0)
    return DetectResult(
        clips=clips,
        candidates_found=len(unique),
        selected=len(selected),
        warning=warning,
    )


def cut_single_clip(
    source_path: Path,
    title: str,
    start: float,
    end: float,
    materializer: ClipMaterializer,
) -> ClipSelection:
    """Cut one user-specified span. Raises ffutil.CutError on failure."""
    if not Path(source_path).exists():
        raise SourceNotFoundError(f"Original video file not found: {source_path}")
    if start < 0 or end <= start:
        raise ValueError("startTimeSeconds must be >= 0 and before endTimeSeconds")

    clip = ClipCandidate(
        title=title, description="", start_time=start, end_time=end, reason="Cut on request"
    )
    return materializer.materialize(clip, Path(source_path))
