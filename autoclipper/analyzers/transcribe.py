"""Speech-to-text analyzer: hosted Whisper API or a local Whisper model."""

import logging
import subprocess
import tempfile
from pathlib import Path

import openai
from openai import OpenAI

from autoclipper import ffutil
from autoclipper.models import TimedSegment, Transcript
from autoclipper.settings import TranscriptionConfig

log = logging.getLogger(__name__)


class TranscriptionError(RuntimeError):
    pass


class TranscriptionTimeout(TranscriptionError):
    pass


def _field(item, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def segments_from_raw(raw_segments) -> list[TimedSegment]:
    """Normalize provider segments into time-ordered TimedSegments.

    Zero-length or inverted segments are dropped.
    """
    segments: list[TimedSegment] = []
    for seg in raw_segments or []:
        start = float(_field(seg, "start", 0.0))
        end = float(_field(seg, "end", 0.0))
        if start < 0 or end <= start:
            continue
        segments.append(
            TimedSegment(start=start, end=end, text=(_field(seg, "text", "") or "").strip())
        )
    segments.sort(key=lambda s: s.start)
    return segments


def _transcribe_openai(audio_path: Path, config: TranscriptionConfig, client: OpenAI | None) -> Transcript:
    client = client or OpenAI(api_key=config.api_key, timeout=config.timeout, max_retries=1)
    kwargs = {}
    if config.language:
        kwargs["language"] = config.language

    try:
        with open(audio_path, "rb") as f:
            result = client.audio.transcriptions.create(
                model=config.model,
                file=f,
                response_format="verbose_json",
                **kwargs,
            )
    except openai.APITimeoutError as e:
        raise TranscriptionTimeout(f"Transcription timed out after {config.timeout}s") from e
    except openai.OpenAIError as e:
        raise TranscriptionError(f"Transcription request failed: {e}") from e

    return Transcript(
        text=(_field(result, "text", "") or "").strip(),
        segments=segments_from_raw(_field(result, "segments")),
        language=_field(result, "language"),
    )


def _transcribe_local(audio_path: Path, config: TranscriptionConfig) -> Transcript:
    import whisper

    model = whisper.load_model(config.local_model)
    result = model.transcribe(str(audio_path), language=config.language)

    return Transcript(
        text=result.get("text", "").strip(),
        segments=segments_from_raw(result["segments"]),
        language=result.get("language"),
    )


def transcribe(
    input_path: Path,
    config: TranscriptionConfig,
    client: OpenAI | None = None,
) -> Transcript:
    """Extract audio from *input_path*, run speech-to-text, and return the transcript.

    The temporary audio file is always removed.
    """
    with tempfile.TemporaryDirectory(prefix="autoclipper_audio_") as tmpdir:
        audio_path = Path(tmpdir) / "audio.mp3"
        log.info("Extracting audio from %s", input_path)
        try:
            ffutil.extract_audio(input_path, audio_path)
        except subprocess.CalledProcessError as e:
            stderr = ffutil.stderr_text(e.stderr)
            raise TranscriptionError(f"ffmpeg failed to extract audio: {stderr[-300:]}") from e

        log.info("Transcribing with %s provider", config.provider)
        if config.provider == "local":
            transcript = _transcribe_local(audio_path, config)
        elif config.provider == "openai":
            transcript = _transcribe_openai(audio_path, config, client)
        else:
            raise ValueError(f"Unknown transcription provider: {config.provider!r}")

    log.info(
        "Transcription complete: %d segments, %.1fs",
        len(transcript.segments),
        transcript.duration,
    )
    return transcript
