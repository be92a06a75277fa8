"""Unit tests for the transcription analyzer."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from autoclipper.analyzers.transcribe import (
    TranscriptionError,
    TranscriptionTimeout,
    segments_from_raw,
    transcribe,
)
from autoclipper.models import TimedSegment
from autoclipper.settings import TranscriptionConfig


def _fake_extract(input_path, output_path, sample_rate=16000):
    output_path.write_bytes(b"mp3")
    return output_path


class TestSegmentsFromRaw:
    def test_dicts(self):
        raw = [{"start": 0, "end": 2.5, "text": " hi "}, {"start": 2.5, "end": 4, "text": "there"}]
        assert segments_from_raw(raw) == [
            TimedSegment(0.0, 2.5, "hi"),
            TimedSegment(2.5, 4.0, "there"),
        ]

    def test_objects(self):
        raw = [MagicMock(start=1.0, end=2.0, text="obj")]
        assert segments_from_raw(raw) == [TimedSegment(1.0, 2.0, "obj")]

    def test_drops_zero_length_and_sorts(self):
        raw = [
            {"start": 5, "end": 6, "text": "b"},
            {"start": 3, "end": 3, "text": "empty"},
            {"start": 1, "end": 2, "text": "a"},
        ]
        assert [s.text for s in segments_from_raw(raw)] == ["a", "b"]

    def test_none(self):
        assert segments_from_raw(None) == []


class TestTranscribeOpenAI:
    @patch("autoclipper.analyzers.transcribe.ffutil.extract_audio", side_effect=_fake_extract)
    def test_verbose_json(self, mock_extract):
        client = MagicMock()
        client.audio.transcriptions.create.return_value = MagicMock(
            text=" hello world ",
            language="english",
            segments=[{"start": 0, "end": 3, "text": "hello world"}],
        )

        transcript = transcribe(Path("video.mp4"), TranscriptionConfig(), client=client)

        assert transcript.text == "hello world"
        assert transcript.segments == [TimedSegment(0.0, 3.0, "hello world")]
        assert transcript.duration == 3.0
        kwargs = client.audio.transcriptions.create.call_args[1]
        assert kwargs["model"] == "whisper-1"
        assert kwargs["response_format"] == "verbose_json"

    @patch("autoclipper.analyzers.transcribe.ffutil.extract_audio", side_effect=_fake_extract)
    def test_timeout(self, mock_extract):
        client = MagicMock()
        request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
        client.audio.transcriptions.create.side_effect = openai.APITimeoutError(request=request)
        with pytest.raises(TranscriptionTimeout):
            transcribe(Path("video.mp4"), TranscriptionConfig(), client=client)

    @patch("autoclipper.analyzers.transcribe.ffutil.extract_audio", side_effect=_fake_extract)
    def test_api_failure(self, mock_extract):
        client = MagicMock()
        request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
        client.audio.transcriptions.create.side_effect = openai.APIConnectionError(request=request)
        with pytest.raises(TranscriptionError):
            transcribe(Path("video.mp4"), TranscriptionConfig(), client=client)


class TestTranscribeErrors:
    @patch("autoclipper.analyzers.transcribe.ffutil.extract_audio")
    def test_audio_extraction_failure(self, mock_extract):
        mock_extract.side_effect = subprocess.CalledProcessError(1, "ffmpeg", stderr=b"no audio")
        with pytest.raises(TranscriptionError, match="extract audio"):
            transcribe(Path("video.mp4"), TranscriptionConfig(), client=MagicMock())

    @patch("autoclipper.analyzers.transcribe.ffutil.extract_audio", side_effect=_fake_extract)
    def test_unknown_provider(self, mock_extract):
        with pytest.raises(ValueError, match="Unknown transcription provider"):
            transcribe(Path("video.mp4"), TranscriptionConfig(provider="carrier-pigeon"))
