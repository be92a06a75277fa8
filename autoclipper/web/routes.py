"""Web API routes for AutoClipper."""

import logging
import shutil
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import partial
from pathlib import Path

from flask import (
    Blueprint,
    current_app,
    jsonify,
    request,
    send_from_directory,
)

from autoclipper import ffutil
from autoclipper.analyzers.transcribe import (
    TranscriptionError,
    TranscriptionTimeout,
    transcribe,
)
from autoclipper.editors.materialize import ClipMaterializer
from autoclipper.engine import SourceNotFoundError, cut_single_clip, detect_clips
from autoclipper.llm import OpenAICompleter
from autoclipper.models import Transcript
from autoclipper.settings import parse_policy

log = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="autoclipper")


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _materializer() -> ClipMaterializer:
    settings = current_app.config["SETTINGS"]
    base = request.host_url.rstrip("/")
    return ClipMaterializer(
        current_app.config["CLIPS_DIR"],
        cutter=partial(ffutil.cut_clip, timeout=settings.server.cut_timeout),
        url_for=lambda name: f"{base}/clips/{name}",
    )


def _completer():
    return current_app.config["COMPLETER"] or OpenAICompleter(
        current_app.config["SETTINGS"].completion
    )


def _run_detection(job: dict, *args, **kwargs):
    """Run detect_clips on a worker and record the outcome on *job*.

    The job is updated even when the request that started it has already
    given up waiting.
    """
    try:
        result = detect_clips(*args, **kwargs)
    except Exception as e:
        job["status"] = "error"
        job["error"] = str(e)
        raise
    job["clips"] = [c.to_dict() for c in result.clips]
    job["status"] = "done"
    return result


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return _error("No file uploaded.", 400)

    f = request.files["file"]
    if not f.filename:
        return _error("Empty filename", 400)

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or ".mp4"
    input_path = job_dir / f"input{ext}"
    f.save(input_path)
    log.info("Received %s as job %s", f.filename, job_id)

    settings = current_app.config["SETTINGS"]
    try:
        transcript = transcribe(input_path, settings.transcription)
    except TranscriptionTimeout as e:
        shutil.rmtree(job_dir, ignore_errors=True)
        log.error("Transcription timed out for job %s: %s", job_id, e)
        return _error("Transcription timed out. Try a shorter video.", 504)
    except TranscriptionError as e:
        shutil.rmtree(job_dir, ignore_errors=True)
        log.error("Transcription failed for job %s: %s", job_id, e)
        return _error("Failed to process video for transcription.", 502)
    except (ValueError, OSError, ffutil.FFmpegNotFoundError):
        # Unknown provider or ffmpeg missing on the server
        shutil.rmtree(job_dir, ignore_errors=True)
        log.exception("Transcription could not run for job %s", job_id)
        return _error("Failed to process video for transcription.", 500)

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "transcript": transcript,
        "status": "transcribed",
    }

    return jsonify({
        "job_id": job_id,
        "filename": f.filename,
        "transcript": transcript.to_dict(),
    })


@bp.route("/api/jobs/<job_id>/detect-clips", methods=["POST"])
def detect(job_id: str):
    if job_id not in _jobs:
        return _error("Job not found", 404)

    job = _jobs[job_id]
    body = request.get_json(silent=True) or {}

    try:
        policy = parse_policy(body)
        transcript = (
            Transcript.from_dict(body["transcript"]) if body.get("transcript") else job["transcript"]
        )
    except (ValueError, KeyError, TypeError) as e:
        return _error(f"Invalid request: {e}", 400)

    if not transcript.text.strip():
        return _error("No transcript available for clip detection.", 400)
    if not job["input_path"].exists():
        return _error("Original video file not found on server. Please re-upload the video.", 404)

    settings = current_app.config["SETTINGS"]
    job["status"] = "detecting"
    future = _executor.submit(
        _run_detection,
        job,
        transcript,
        job["input_path"],
        policy,
        _completer(),
        _materializer(),
        chunking=settings.chunking,
    )

    try:
        result = future.result(timeout=settings.server.request_timeout)
    except FutureTimeoutError:
        log.error("Clip detection for job %s timed out; still running in background", job_id)
        return _error("Clip detection timed out.", 504)
    except SourceNotFoundError:
        return _error("Original video file not found on server. Please re-upload the video.", 404)
    except ValueError as e:
        return _error(str(e), 400)
    except Exception:
        log.exception("Clip detection failed for job %s", job_id)
        return _error("Failed to detect and cut clips due to an internal error.", 500)

    return jsonify(result.to_dict())


@bp.route("/api/jobs/<job_id>/cut-clip", methods=["POST"])
def cut_clip(job_id: str):
    if job_id not in _jobs:
        return _error("Job not found", 404)

    body = request.get_json(silent=True) or {}
    title = body.get("clipTitle")
    start = body.get("startTimeSeconds")
    end = body.get("endTimeSeconds")
    if not title or start is None or end is None:
        return _error("Missing clip cutting parameters.", 400)

    try:
        clip = cut_single_clip(
            _jobs[job_id]["input_path"],
            str(title),
            float(start),
            float(end),
            _materializer(),
        )
    except SourceNotFoundError:
        return _error("Original video file not found on server. Please re-upload the video.", 404)
    except (TypeError, ValueError) as e:
        return _error(f"Invalid clip span: {e}", 400)
    except ffutil.CutError as e:
        log.error("Cutting '%s' failed: %s %s", title, e, e.stderr)
        return _error("Failed to cut video clip due to an internal server error.", 500)

    return jsonify({"message": "Clip cut successfully", "downloadUrl": clip.download_url})


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    if job_id not in _jobs:
        return _error("Job not found", 404)

    job = _jobs[job_id]
    resp = {"status": job["status"], "filename": job.get("filename")}
    if job["status"] == "done":
        resp["clips"] = job.get("clips", [])
    elif job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)


@bp.route("/clips/<path:filename>")
def serve_clip(filename: str):
    return send_from_directory(current_app.config["CLIPS_DIR"], filename)
