"""Candidate extractor: asks the model for highlight clips in one chunk.

Model output is unreliable: it may be wrapped in prose or code fences, be a
single object instead of a list, be truncated, or be empty. Parsing is split
into two pure steps so each can be tested on its own:

* :func:`parse_response` turns raw text into a :class:`Parsed` variant.
* :func:`coerce_items` turns that variant into a list of raw items.

:func:`validate_items` then keeps only well-formed clips that fit the chunk
and the requested duration bounds.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Union

from autoclipper.llm import CompletionError, Completer
from autoclipper.models import ClipCandidate, DurationBounds, TranscriptChunk

log = logging.getLogger(__name__)

DEFAULT_BOUNDS = DurationBounds(min=10.0, max=60.0)
ABSOLUTE_MIN_SECONDS = 5.0
ABSOLUTE_MAX_SECONDS = 120.0

SYSTEM_PROMPT = (
    "You are an AI video clipper assistant. Your output MUST be a JSON array "
    "of clip objects. Only return the JSON array. DO NOT include any text "
    "before or after the JSON."
)


def duration_bounds(target: float | None) -> DurationBounds:
    """Clip duration limits for an optional requested clip length.

    With a target D the bounds are [max(5, D-5), min(120, D+15)]; without
    one they are [10, 60]. The minimum never exceeds the maximum.
    """
    if target is None or target <= 0:
        return DEFAULT_BOUNDS
    upper = min(ABSOLUTE_MAX_SECONDS, target + 15)
    lower = min(max(ABSOLUTE_MIN_SECONDS, target - 5), upper)
    return DurationBounds(min=lower, max=upper)


def build_prompt(chunk: TranscriptChunk, bounds: DurationBounds) -> str:
    listing = "\n".join(
        f"[{s.start:.2f}s - {s.end:.2f}s] {s.text}" for s in chunk.segments
    )
    return f"""
You are an AI video editor. Identify 1-2 short video clips ({bounds.min:g} to {bounds.max:g} seconds each, \
adjusted to natural breaks in speech) from the following transcript excerpt.
The excerpt covers {chunk.start_time:.2f}s to {chunk.end_time:.2f}s of the video. Clip timestamps must \
fall inside that range.

Provide ONLY a JSON array of objects. Each object MUST have exactly these keys:
- "title": string
- "description": string
- "startTimeSeconds": number
- "endTimeSeconds": number
- "reason": string

If nothing in the excerpt qualifies, return an empty JSON array: [].
Do not include markdown code fences or any explanation outside the JSON array.

Transcript:
{chunk.text}

Segments (use these for precise timing):
{listing}
""".strip()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParsedArray:
    items: list


@dataclass(frozen=True)
class ParsedObject:
    value: dict


@dataclass(frozen=True)
class ParsedOther:
    value: Any


Parsed = Union[ParsedArray, ParsedObject, ParsedOther]


def find_json_array(text: str) -> str | None:
    """Return the first balanced ``[{...}]`` substring of *text*, if any.

    Brackets inside JSON strings are ignored. An array whose brackets never
    balance is not returned.
    """
    start = text.find("[")
    while start != -1:
        rest = text[start + 1:].lstrip()
        if rest.startswith("{"):
            end = _matching_bracket(text, start)
            if end is not None:
                return text[start:end + 1]
        start = text.find("[", start + 1)
    return None


def _matching_bracket(text: str, open_idx: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for i in range(open_idx, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if depth == 0:
                return i
    return None


def parse_response(raw: str | None) -> Parsed:
    """Decode raw model text into a Parsed variant.

    Raises ValueError (usually json.JSONDecodeError) when nothing decodable
    is found.
    """
    if raw is None or not raw.strip():
        raw = "[]"

    snippet = find_json_array(raw)
    value = json.loads(snippet if snippet is not None else raw)

    if isinstance(value, list):
        return ParsedArray(value)
    if isinstance(value, dict):
        return ParsedObject(value)
    return ParsedOther(value)


def _is_number(value) -> bool:
    """True for finite ints and floats that fit in a float (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def is_clip_shaped(item) -> bool:
    """True when *item* has every clip key with the right type."""
    if not isinstance(item, dict):
        return False
    return (
        isinstance(item.get("title"), str)
        and isinstance(item.get("description"), str)
        and _is_number(item.get("startTimeSeconds"))
        and _is_number(item.get("endTimeSeconds"))
        and isinstance(item.get("reason"), str)
    )


def coerce_items(parsed: Parsed) -> list:
    """Normalize a Parsed variant to a plain list of raw items.

    A single clip-shaped object becomes a one-item list, and an object with a
    ``clips`` list (JSON-object response mode) yields that list. Anything
    else becomes an empty list.
    """
    if isinstance(parsed, ParsedArray):
        return list(parsed.items)
    if isinstance(parsed, ParsedObject):
        if isinstance(parsed.value.get("clips"), list):
            return list(parsed.value["clips"])
        if is_clip_shaped(parsed.value):
            return [parsed.value]
        log.warning("Model returned a JSON object that is not a clip; ignoring it")
        return []
    log.warning("Model returned JSON that is neither an array nor an object; ignoring it")
    return []


def validate_items(
    items: list, chunk: TranscriptChunk, bounds: DurationBounds
) -> list[ClipCandidate]:
    candidates: list[ClipCandidate] = []
    for item in items:
        if not is_clip_shaped(item):
            continue
        start = float(item["startTimeSeconds"])
        end = float(item["endTimeSeconds"])
        if start >= end:
            continue
        if not bounds.contains(end - start):
            continue
        if start < chunk.start_time or end > chunk.end_time:
            continue
        candidates.append(
            ClipCandidate(
                title=item["title"],
                description=item["description"],
                start_time=start,
                end_time=end,
                reason=item["reason"],
            )
        )
    return candidates


def candidates_from_response(
    raw: str | None, chunk: TranscriptChunk, bounds: DurationBounds
) -> list[ClipCandidate]:
    """Run the full defensive parse chain over one raw model reply."""
    try:
        parsed = parse_response(raw)
    except ValueError as e:
        log.warning("Could not parse model output as JSON (%s); skipping chunk", e)
        return []
    return validate_items(coerce_items(parsed), chunk, bounds)


def extract_candidates(
    chunk: TranscriptChunk,
    bounds: DurationBounds,
    complete: Completer,
) -> list[ClipCandidate]:
    """Ask the model for clips in *chunk*.

    Completion failures degrade to an empty list for this chunk.
    """
    try:
        raw = complete(SYSTEM_PROMPT, build_prompt(chunk, bounds))
    except CompletionError as e:
        log.warning(
            "Completion failed for chunk %.2f-%.2f: %s", chunk.start_time, chunk.end_time, e
        )
        return []

    log.debug("Raw model output for chunk %.2f-%.2f: %s", chunk.start_time, chunk.end_time, raw)
    candidates = candidates_from_response(raw, chunk, bounds)
    log.info(
        "Chunk %.2f-%.2f: %d valid candidate(s)",
        chunk.start_time, chunk.end_time, len(candidates),
    )
    return candidates
