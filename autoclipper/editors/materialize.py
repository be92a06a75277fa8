"""Cut selected clips out of the source video."""

import itertools
import logging
import re
import time
from pathlib import Path
from typing import Callable, Iterable, Iterator

from autoclipper import ffutil
from autoclipper.models import ClipCandidate, ClipSelection

log = logging.getLogger(__name__)

# (input_path, start, end, output_path) -> output_path, raises ffutil.CutError
Cutter = Callable[[Path, float, float, Path], Path]


def sanitize_title(title: str) -> str:
    """Lowercase *title* and keep only [a-z0-9._-], collapsing runs of dashes."""
    slug = re.sub(r"[^A-Za-z0-9._-]", "-", title)
    slug = re.sub(r"-+", "-", slug).strip("-").lower()
    return slug or "clip"


def timestamp_ids(clock: Callable[[], float] = time.time) -> Iterator[str]:
    """Yield millisecond timestamps, bumped so no two ids are equal."""
    last = 0
    while True:
        now = int(clock() * 1000)
        last = now if now > last else last + 1
        yield str(last)


def counter_ids(start: int = 1) -> Iterator[str]:
    return (str(i) for i in itertools.count(start))


class ClipMaterializer:
    """Cut clips into *clips_dir* under collision-free filenames.

    Args:
        clips_dir: Directory the clip files are written to.
        cutter: Cutting function; defaults to :func:`ffutil.cut_clip`.
        ids: Iterator of unique filename suffixes (timestamps by default).
        url_for: Maps an output filename to its download URL.
    """

    def __init__(
        self,
        clips_dir: Path,
        cutter: Cutter | None = None,
        ids: Iterator[str] | None = None,
        url_for: Callable[[str], str] | None = None,
    ):
        self.clips_dir = Path(clips_dir)
        self.cutter = cutter or ffutil.cut_clip
        self.ids = ids or timestamp_ids()
        self.url_for = url_for or (lambda name: f"/clips/{name}")

    def filename_for(self, title: str, source_path: Path) -> str:
        ext = Path(source_path).suffix or ".mp4"
        return f"{sanitize_title(title)}_clip_{next(self.ids)}{ext}"

    def materialize(self, clip: ClipCandidate, source_path: Path) -> ClipSelection:
        """Cut one clip. Raises ffutil.CutError on failure."""
        self.clips_dir.mkdir(parents=True, exist_ok=True)
        filename = self.filename_for(clip.title, source_path)
        output_path = self.clips_dir / filename

        if not Path(source_path).exists():
            raise ffutil.CutError(f"Source video not found: {source_path}")

        self.cutter(Path(source_path), clip.start_time, clip.end_time, output_path)
        log.info("Cut clip '%s' (%.2f-%.2f) to %s", clip.title, clip.start_time, clip.end_time, filename)
        return ClipSelection.from_candidate(
            clip, download_url=self.url_for(filename), filename=filename
        )

    def materialize_all(
        self, clips: Iterable[ClipCandidate], source_path: Path
    ) -> list[ClipSelection]:
        """Cut every clip in order; clips whose cut fails are left out."""
        results: list[ClipSelection] = []
        for clip in clips:
            try:
                results.append(self.materialize(clip, source_path))
            except ffutil.CutError as e:
                log.error(
                    "Skipping clip '%s' due to cutting error: %s %s",
                    clip.title, e, e.stderr,
                )
        return results
