"""Tests for settings loading and request policy parsing."""

import json
from pathlib import Path

import pytest

from autoclipper.models import ClipPolicy
from autoclipper.settings import (
    ChunkingConfig,
    CompletionConfig,
    Settings,
    TranscriptionConfig,
    load_settings,
    parse_policy,
)


class TestDefaults:
    def test_chunking(self):
        cfg = ChunkingConfig()
        assert cfg.window_seconds == 180.0
        assert cfg.overlap_seconds == 20.0

    def test_completion(self):
        cfg = CompletionConfig()
        assert cfg.model == "gpt-4o"
        assert cfg.max_tokens == 1500
        assert cfg.json_mode is False

    def test_transcription(self):
        cfg = TranscriptionConfig()
        assert cfg.provider == "openai"
        assert cfg.model == "whisper-1"

    def test_settings(self):
        s = Settings()
        assert s.server.clips_dir is None
        assert s.server.max_upload_bytes == 200 * 1024 * 1024


class TestLoadSettings:
    def test_no_file(self):
        s = load_settings(env={})
        assert s.chunking.window_seconds == 180.0
        assert s.completion.api_key is None

    def test_load_sample(self, sample_settings_path: Path):
        s = load_settings(sample_settings_path, env={})
        assert s.chunking.window_seconds == 120.0
        assert s.completion.model == "gpt-4o-mini"
        assert s.completion.max_tokens == 1500
        assert s.transcription.provider == "local"
        assert s.server.clips_dir == Path("clips")
        assert s.server.request_timeout == 90.0

    def test_load_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_settings(bad, env={})

    def test_load_non_object(self, tmp_path: Path):
        bad = tmp_path / "list.json"
        bad.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_settings(bad, env={})

    def test_env_overrides(self):
        s = load_settings(env={
            "OPENAI_API_KEY": "sk-test",
            "AUTOCLIPPER_LLM_MODEL": "gpt-4o-mini",
            "AUTOCLIPPER_TRANSCRIPTION_PROVIDER": "local",
            "AUTOCLIPPER_REQUEST_TIMEOUT": "42",
        })
        assert s.completion.api_key == "sk-test"
        assert s.transcription.api_key == "sk-test"
        assert s.completion.model == "gpt-4o-mini"
        assert s.transcription.provider == "local"
        assert s.server.request_timeout == 42.0

    def test_file_api_key_wins_over_env(self, tmp_path: Path):
        path = tmp_path / "s.json"
        path.write_text('{"completion": {"api_key": "from-file"}}')
        s = load_settings(path, env={"OPENAI_API_KEY": "from-env"})
        assert s.completion.api_key == "from-file"
        assert s.transcription.api_key == "from-env"


class TestParsePolicy:
    def test_defaults(self):
        assert parse_policy({}) == ClipPolicy(mode="aiPick", desired_count="max", desired_duration=None)
        assert parse_policy(None) == ClipPolicy()

    def test_user_choice(self):
        policy = parse_policy({
            "clipOption": "userChoice",
            "desiredClipCount": "4",
            "desiredClipDuration": 30,
        })
        assert policy == ClipPolicy(mode="userChoice", desired_count=4, desired_duration=30.0)

    def test_max(self):
        assert parse_policy({"desiredClipCount": "max"}).desired_count == "max"

    def test_bad_option(self):
        with pytest.raises(ValueError, match="clipOption"):
            parse_policy({"clipOption": "everything"})

    def test_bad_count(self):
        with pytest.raises(ValueError, match="desiredClipCount"):
            parse_policy({"desiredClipCount": "lots"})

    def test_negative_count(self):
        with pytest.raises(ValueError, match="negative"):
            parse_policy({"desiredClipCount": -1})

    def test_bad_duration(self):
        with pytest.raises(ValueError, match="desiredClipDuration"):
            parse_policy({"desiredClipDuration": "long"})

    def test_zero_duration_means_unset(self):
        assert parse_policy({"desiredClipDuration": 0}).desired_duration is None
