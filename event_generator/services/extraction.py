"""
Extraction of JSON payloads from free-form model text.

Strategies are tried in a fixed order and never revisited:

1. A fenced block tagged ``json``
2. The first fenced block of any kind
3. The first ``{`` through the last ``}`` (greedy)
4. The whole text

The first candidate that parses wins. A closing fence only counts at the
start of a line, so backticks inside JSON strings do not end a block.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(
    r"```[ \t]*json[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL | re.IGNORECASE
)
_ANY_FENCE_RE = re.compile(r"```[^\n`]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL)
_BRACES_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class ExtractionFailure:
    """Marker returned when no strategy yields parseable JSON."""

    error: str
    success: bool = False


def _json_fenced_block(text: str) -> Optional[str]:
    match = _JSON_FENCE_RE.search(text)
    return match.group(1) if match else None


def _first_fenced_block(text: str) -> Optional[str]:
    match = _ANY_FENCE_RE.search(text)
    return match.group(1) if match else None


def _brace_span(text: str) -> Optional[str]:
    match = _BRACES_RE.search(text)
    return match.group(0) if match else None


def _whole_text(text: str) -> Optional[str]:
    return text


EXTRACTION_STRATEGIES: list[tuple[str, Callable[[str], Optional[str]]]] = [
    ("json_fence", _json_fenced_block),
    ("generic_fence", _first_fenced_block),
    ("brace_span", _brace_span),
    ("whole_text", _whole_text),
]


def extract_json(text: Optional[str]) -> Any:
    """
    Extract a JSON value from raw model output.

    Args:
        text: Raw text returned by the model backend

    Returns:
        The parsed JSON value, or an ExtractionFailure marker

    Example:
        >>> extract_json('Here you go:\\n```json\\n{"a": 1}\\n```')
        {'a': 1}
        >>> extract_json("no json here")
        ExtractionFailure(error='Failed to parse model response', success=False)
    """
    if not text or not text.strip():
        return ExtractionFailure(error="Empty model response")

    for name, strategy in EXTRACTION_STRATEGIES:
        candidate = strategy(text)
        if candidate is None:
            continue

        try:
            value = json.loads(candidate.strip())
        except json.JSONDecodeError as e:
            logger.debug(f"Extraction strategy '{name}' produced unparseable JSON: {e}")
            continue

        logger.debug(f"Extracted JSON using strategy '{name}'")
        return value

    logger.warning("No extraction strategy produced parseable JSON")
    return ExtractionFailure(error="Failed to parse model response")


def is_extraction_failure(value: Any) -> bool:
    return isinstance(value, ExtractionFailure)
