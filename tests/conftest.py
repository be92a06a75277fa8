"""Shared test fixtures."""

from pathlib import Path

import pytest

from autoclipper.models import ClipCandidate, TimedSegment

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_segments(*spans: tuple[float, float]) -> list[TimedSegment]:
    return [TimedSegment(start=s, end=e, text=f"segment {i}") for i, (s, e) in enumerate(spans)]


def make_clip(start: float, end: float, title: str = "Clip") -> ClipCandidate:
    return ClipCandidate(
        title=title, description="desc", start_time=start, end_time=end, reason="reason"
    )


@pytest.fixture
def sample_settings_path() -> Path:
    return FIXTURES_DIR / "sample_settings.json"


@pytest.fixture
def source_video(tmp_path) -> Path:
    path = tmp_path / "input.mp4"
    path.write_bytes(b"fake video data")
    return path
