"""Thin CLI entry point — transcribe a video, detect clips, or run the web API."""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from autoclipper.settings import load_settings, parse_policy


def _count(value: str):
    return value if value == "max" else int(value)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="autoclipper",
        description="AutoClipper — transcribe a video and cut AI-picked highlight clips.",
    )
    parser.add_argument("--settings", "-s", type=Path, help="Path to a JSON settings file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    trans = sub.add_parser("transcribe", help="Transcribe a video and print the transcript JSON")
    trans.add_argument("video", type=Path, help="Input video file")

    proc = sub.add_parser("process", help="Transcribe a video and cut highlight clips")
    proc.add_argument("video", type=Path, help="Input video file")
    proc.add_argument("--output-dir", "-o", type=Path, help="Directory for the cut clips")
    proc.add_argument("--mode", choices=["aiPick", "userChoice"], default="aiPick", help="Clip selection mode")
    proc.add_argument("--count", type=_count, default="max", help="Number of clips, or 'max'")
    proc.add_argument("--duration", type=float, default=None, help="Desired clip duration (seconds)")

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=5000, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    settings = load_settings(args.settings)

    if args.command == "serve":
        from autoclipper.web import create_app
        app = create_app(settings=settings)
        print(f"AutoClipper API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    if not args.video.exists():
        print(f"Error: {args.video} does not exist.", file=sys.stderr)
        sys.exit(1)

    from autoclipper import ffutil
    from autoclipper.analyzers.transcribe import TranscriptionError, transcribe

    ffutil.check_ffmpeg()
    try:
        transcript = transcribe(args.video, settings.transcription)
    except TranscriptionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "transcribe":
        print(json.dumps(transcript.to_dict(), indent=2))
        return

    from autoclipper.editors.materialize import ClipMaterializer
    from autoclipper.engine import detect_clips
    from autoclipper.llm import OpenAICompleter

    policy = parse_policy({
        "clipOption": args.mode,
        "desiredClipCount": args.count,
        "desiredClipDuration": args.duration,
    })
    output_dir = args.output_dir or args.video.with_name(args.video.stem + "_clips")
    materializer = ClipMaterializer(
        output_dir,
        url_for=lambda name: str(output_dir / name),
    )

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    result = detect_clips(
        transcript,
        args.video,
        policy,
        OpenAICompleter(settings.completion),
        materializer,
        chunking=settings.chunking,
        on_progress=on_progress,
    )

    print()
    if result.warning:
        print(f"Warning: {result.warning}")
    print(f"Done! {len(result.clips)} clip(s) in {output_dir}")
    for clip in result.clips:
        print(f"  {clip.start_time:7.2f}s - {clip.end_time:7.2f}s  {clip.title}")
        print(f"      {clip.download_url}")
