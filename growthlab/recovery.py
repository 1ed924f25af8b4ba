"""Recover experiment candidates from raw model text.

The model is a text channel, not a typed API. Each stage below handles one
known way its output drifts from the requested contract:

    strip_code_fence    -> whole answer wrapped in ```json ... ```
    slice_json_object   -> prose before or after the JSON object
    parse_json          -> not JSON at all (terminal, no partial recovery)
    extract_entries     -> array at top level, or no "experiments" wrapper
    cap_entries         -> more than five experiments
    normalize_candidate -> missing or drifting field names

Stages are pure and run in this order from ``recover_experiments``.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from growthlab.errors import MalformedModelOutputError
from growthlab.models.generation import ExperimentCandidate, GenerationResult
from growthlab.prompts import EXPERIMENTS_PER_BATCH

logger = structlog.get_logger()

RETRY_MESSAGE = "The AI returned an invalid format. Try generating again."

_FENCED = re.compile(r"\A```[\w+.-]*[ \t]*\r?\n?(.*?)\s*```\Z", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Return the fence interior when the entire text is one fenced block."""
    text = text.strip()
    match = _FENCED.match(text)
    if match is None:
        return text
    return match.group(1).strip()


def slice_json_object(text: str) -> str:
    """Cut from the first ``{`` to the last ``}``; unchanged if there is no such span."""
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first : last + 1]
    return text


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Model output is not valid JSON", error=str(exc), preview=text[:500])
        raise MalformedModelOutputError(RETRY_MESSAGE) from exc


def extract_entries(parsed: Any) -> list[Any]:
    """Find the experiment list in whatever shape the model produced."""
    if isinstance(parsed, dict) and isinstance(parsed.get("experiments"), list):
        return list(parsed["experiments"])
    if isinstance(parsed, list):
        return list(parsed)
    if isinstance(parsed, dict):
        return [value for value in parsed.values() if isinstance(value, dict)]
    return []


def cap_entries(entries: list[Any], limit: int = EXPERIMENTS_PER_BATCH) -> list[Any]:
    if len(entries) > limit:
        logger.info("Model over-produced experiments", received=len(entries), kept=limit)
    return entries[:limit]


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def _target(value: Any) -> int | float | str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float | str):
        return value
    return None


def normalize_candidate(entry: dict[str, Any]) -> ExperimentCandidate:
    """Give every candidate the same shape; absent fields become empty or null."""
    title = _text(entry.get("title"))
    hypothesis = entry.get("hypothesis")
    if hypothesis is None:
        hypothesis = entry.get("title")
    cutoff = entry.get("cutoff_line")
    return ExperimentCandidate(
        title=title,
        hypothesis=_text(hypothesis),
        metric=_text(entry.get("metric")),
        target=_target(entry.get("target")),
        cutoff_line=None if cutoff is None else _text(cutoff),
        ice_score=entry.get("ice_score"),
    )


def strategic_vision_of(parsed: Any) -> str:
    if isinstance(parsed, dict) and isinstance(parsed.get("strategic_vision"), str):
        return parsed["strategic_vision"]
    return ""


def recover_experiments(raw_text: str) -> GenerationResult:
    """Turn raw model text into at most five normalized candidates.

    Raises:
        MalformedModelOutputError: the text holds no parsable JSON, or no
            experiment objects could be found in it.
    """
    text = slice_json_object(strip_code_fence(raw_text))
    parsed = parse_json(text)

    entries = cap_entries(extract_entries(parsed))

    candidates = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("Dropping non-object experiment entry", index=index)
            continue
        candidates.append(normalize_candidate(entry))

    if not candidates:
        logger.error("Model output holds no experiments", preview=text[:500])
        raise MalformedModelOutputError(RETRY_MESSAGE)

    return GenerationResult(strategic_vision=strategic_vision_of(parsed), candidates=candidates)
