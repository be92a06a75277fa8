"""FFmpeg subprocess helpers."""

import logging
import shutil
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class CutError(RuntimeError):
    """Raised when ffmpeg fails to cut a clip."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg is not on PATH."""
    if shutil.which("ffmpeg") is None:
        raise FFmpegNotFoundError("ffmpeg not found on PATH")


def stderr_text(stderr) -> str:
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        return stderr.decode(errors="replace")
    return stderr


def extract_audio(
    input_path: Path, output_path: Path, sample_rate: int = 16000
) -> Path:
    """Extract audio as mono MP3 at the given sample rate (for Whisper)."""
    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-vn",
        "-ac", "1",
        "-ar", str(sample_rate),
        "-acodec", "libmp3lame",
        "-q:a", "2",
        str(output_path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    return output_path


def cut_clip(
    input_path: Path,
    start: float,
    end: float,
    output_path: Path,
    timeout: float | None = None,
) -> Path:
    """Stream-copy the span [start, end] of *input_path* into *output_path*.

    On failure any partial output is removed and CutError is raised.
    """
    if end <= start:
        raise CutError(f"Invalid clip span {start}-{end}")

    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-ss", f"{start:.3f}",
        "-to", f"{end:.3f}",
        "-c", "copy",
        str(output_path),
    ]
    try:
        subprocess.run(cmd, capture_output=True, check=True, timeout=timeout)
    except subprocess.CalledProcessError as e:
        output_path.unlink(missing_ok=True)
        stderr = stderr_text(e.stderr)
        raise CutError(f"ffmpeg exited with status {e.returncode}", stderr=stderr[-500:]) from e
    except subprocess.TimeoutExpired as e:
        output_path.unlink(missing_ok=True)
        raise CutError(f"ffmpeg timed out after {timeout}s") from e
    except FileNotFoundError as e:
        raise FFmpegNotFoundError("ffmpeg not found on PATH") from e

    log.debug("Cut %.2f-%.2f from %s into %s", start, end, input_path, output_path)
    return output_path
