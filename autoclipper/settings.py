"""Settings schema and request policy parsing."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from autoclipper.models import ClipPolicy

CLIP_OPTIONS = ("aiPick", "userChoice")


@dataclass
class ChunkingConfig:
    """Transcript windowing for bounded-context model calls."""

    window_seconds: float = 180.0
    overlap_seconds: float = 20.0


@dataclass
class CompletionConfig:
    """Configuration for the chat-completion model that proposes clips."""

    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 1500
    timeout: float = 60.0
    json_mode: bool = False
    api_key: str | None = None
    base_url: str | None = None


@dataclass
class TranscriptionConfig:
    """Configuration for speech-to-text, hosted or local Whisper."""

    provider: str = "openai"
    model: str = "whisper-1"
    local_model: str = "base"
    language: str | None = None
    timeout: float = 300.0
    api_key: str | None = None


@dataclass
class ServerConfig:
    clips_dir: Path | None = None
    max_upload_bytes: int = 200 * 1024 * 1024
    request_timeout: float = 300.0
    cut_timeout: float = 120.0


@dataclass
class Settings:
    """Top-level settings."""

    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def load_settings(path: str | Path | None = None, env: dict | None = None) -> Settings:
    """Load settings from an optional JSON file, then apply environment overrides."""
    data: dict = {}
    if path is not None:
        data = json.loads(Path(path).read_text())
        if not isinstance(data, dict):
            raise ValueError("Settings file must contain a JSON object")

    server = dict(data.get("server", {}))
    if server.get("clips_dir"):
        server["clips_dir"] = Path(server["clips_dir"])

    settings = Settings(
        chunking=ChunkingConfig(**data["chunking"]) if "chunking" in data else ChunkingConfig(),
        completion=CompletionConfig(**data["completion"]) if "completion" in data else CompletionConfig(),
        transcription=(
            TranscriptionConfig(**data["transcription"]) if "transcription" in data else TranscriptionConfig()
        ),
        server=ServerConfig(**server),
    )
    return apply_env(settings, os.environ if env is None else env)


def apply_env(settings: Settings, env) -> Settings:
    api_key = env.get("OPENAI_API_KEY")
    if api_key:
        settings.completion.api_key = settings.completion.api_key or api_key
        settings.transcription.api_key = settings.transcription.api_key or api_key

    if env.get("AUTOCLIPPER_LLM_MODEL"):
        settings.completion.model = env["AUTOCLIPPER_LLM_MODEL"]
    if env.get("AUTOCLIPPER_TRANSCRIPTION_PROVIDER"):
        settings.transcription.provider = env["AUTOCLIPPER_TRANSCRIPTION_PROVIDER"]
    if env.get("AUTOCLIPPER_REQUEST_TIMEOUT"):
        settings.server.request_timeout = float(env["AUTOCLIPPER_REQUEST_TIMEOUT"])
    return settings


def parse_policy(data: dict | None) -> ClipPolicy:
    """Build a ClipPolicy from the user-facing request fields.

    Accepts ``clipOption`` ("aiPick" or "userChoice"), ``desiredClipCount``
    (a positive integer or "max") and ``desiredClipDuration`` (seconds).
    Raises ValueError on anything else.
    """
    data = data or {}

    mode = data.get("clipOption", "aiPick")
    if mode not in CLIP_OPTIONS:
        raise ValueError(f"clipOption must be one of {', '.join(CLIP_OPTIONS)}")

    raw_count = data.get("desiredClipCount", "max")
    if raw_count == "max" or raw_count is None:
        count = "max"
    else:
        try:
            count = int(raw_count)
        except (TypeError, ValueError):
            raise ValueError("desiredClipCount must be an integer or 'max'") from None
        if count < 0:
            raise ValueError("desiredClipCount must not be negative")

    raw_duration = data.get("desiredClipDuration")
    duration = None
    if raw_duration not in (None, ""):
        try:
            duration = float(raw_duration)
        except (TypeError, ValueError):
            raise ValueError("desiredClipDuration must be a number of seconds") from None
        if duration <= 0:
            duration = None

    return ClipPolicy(mode=mode, desired_count=count, desired_duration=duration)
