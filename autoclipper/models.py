"""Shared data types used across AutoClipper."""

from dataclasses import asdict, dataclass, field
from typing import Literal


@dataclass(frozen=True)
class TimedSegment:
    """A span of transcript text with its timing in seconds."""

    start: float
    end: float
    text: str


@dataclass
class Transcript:
    """Full transcription result: plain text plus timed segments."""

    text: str
    segments: list[TimedSegment] = field(default_factory=list)
    language: str | None = None

    @property
    def duration(self) -> float:
        """Total video duration, taken from the last segment's end."""
        return self.segments[-1].end if self.segments else 0.0

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "language": self.language,
            "segments": [asdict(s) for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transcript":
        segments = [
            TimedSegment(start=float(s["start"]), end=float(s["end"]), text=str(s.get("text", "")))
            for s in data.get("segments") or []
        ]
        return cls(
            text=data.get("text") or "",
            segments=segments,
            language=data.get("language"),
        )


@dataclass
class TranscriptChunk:
    """A contiguous window of segments sent to the model in one call."""

    text: str
    segments: list[TimedSegment]

    @property
    def start_time(self) -> float:
        return self.segments[0].start

    @property
    def end_time(self) -> float:
        return self.segments[-1].end


@dataclass(frozen=True)
class ClipCandidate:
    """A proposed highlight clip."""

    title: str
    description: str
    start_time: float
    end_time: float
    reason: str

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class ClipSelection:
    """A clip that was cut from the source, with a retrieval reference."""

    title: str
    description: str
    start_time: float
    end_time: float
    reason: str
    download_url: str | None = None
    filename: str | None = None

    @classmethod
    def from_candidate(cls, clip: ClipCandidate, **extra) -> "ClipSelection":
        return cls(
            title=clip.title,
            description=clip.description,
            start_time=clip.start_time,
            end_time=clip.end_time,
            reason=clip.reason,
            **extra,
        )

    def to_dict(self) -> dict:
        data = {
            "title": self.title,
            "description": self.description,
            "startTimeSeconds": self.start_time,
            "endTimeSeconds": self.end_time,
            "reason": self.reason,
        }
        if self.download_url is not None:
            data["downloadUrl"] = self.download_url
        return data


@dataclass(frozen=True)
class DurationBounds:
    """Inclusive clip duration limits in seconds."""

    min: float
    max: float

    def contains(self, duration: float) -> bool:
        return self.min <= duration <= self.max


@dataclass
class ClipPolicy:
    """How many clips the user wants, and how long."""

    mode: Literal["aiPick", "userChoice"] = "aiPick"
    desired_count: int | Literal["max"] = "max"
    desired_duration: float | None = None
