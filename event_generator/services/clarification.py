"""
Merging of clarification answers into a partially built event.

Answers are keyed by field path. A path is dot-separated; a segment written
`name[idx]` addresses index `idx` of the list `name`, and a purely numeric
segment is an index as well:

    organizer                   -> base_event["organizer"]
    faq.items[2].answer         -> content of the "faq" section, items[2]["answer"]
    sections[0].title           -> sections[0]["title"]

Intermediate containers are created on demand and lists are padded with
empty dicts, so applying the same answers twice gives the same structure.
"""

import logging
import re
from typing import Any, Literal, Optional, Union

from event_generator.agents.state import PendingAnalysis
from event_generator.exceptions import ClarificationError
from event_generator.services.normalization import default_section_title, normalize_content

logger = logging.getLogger(__name__)

PathToken = Union[str, int]
Phase = Literal["base", "sections"]

_SEGMENT_RE = re.compile(r"^([^\[\]]*)((?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")

# Content key holding the item list for section types addressed as `type[idx]`
SECTION_LIST_KEYS = {
    "speakers": "speakers",
    "sponsors": "sponsors",
    "agenda": "items",
    "faq": "items",
}


# =============================================================================
# Path handling
# =============================================================================


def parse_path(path: str) -> list[PathToken]:
    """
    Split a field path into dict keys (str) and list indexes (int).

    Example:
        >>> parse_path("faq.items[2].answer")
        ['faq', 'items', 2, 'answer']

    Raises:
        ClarificationError: If a segment is malformed
    """
    tokens: list[PathToken] = []
    for segment in path.split("."):
        if segment.isdigit():
            tokens.append(int(segment))
            continue

        match = _SEGMENT_RE.match(segment)
        if not match or (not match.group(1) and not match.group(2)):
            raise ClarificationError(f"Invalid field path: '{path}'", details={"field": path})

        name, indexes = match.groups()
        if name:
            tokens.append(name)
        tokens.extend(int(index) for index in _INDEX_RE.findall(indexes))

    return tokens


def _pad(items: list, index: int) -> None:
    while len(items) <= index:
        items.append({})


def _child(container: Any, token: PathToken, next_token: PathToken) -> Any:
    """Return the child at token, creating it with the shape next_token needs."""
    expected = list if isinstance(next_token, int) else dict

    if isinstance(container, list):
        index = int(token)
        _pad(container, index)
        if not isinstance(container[index], expected):
            container[index] = expected()
        return container[index]

    key = str(token)
    if not isinstance(container.get(key), expected):
        container[key] = expected()
    return container[key]


def set_path(target: dict, path: str | list[PathToken], value: Any) -> dict:
    """
    Assign value at path inside target, creating containers as needed.

    Returns:
        The same target dict, modified in place
    """
    tokens = parse_path(path) if isinstance(path, str) else list(path)
    if not tokens:
        raise ClarificationError("Empty field path")

    current: Any = target
    for token, next_token in zip(tokens, tokens[1:]):
        current = _child(current, token, next_token)

    last = tokens[-1]
    if isinstance(current, list):
        _pad(current, int(last))
        current[int(last)] = value
    else:
        current[str(last)] = value
    return target


# =============================================================================
# Section-scoped answers
# =============================================================================


def _find_or_create_section(
    sections: list[dict],
    section_type: str,
    rejected_types: set[str],
) -> Optional[dict]:
    for section in sections:
        if isinstance(section, dict) and section.get("type") == section_type:
            return section

    if section_type in rejected_types:
        logger.info(f"Dropping answer for rejected '{section_type}' section")
        return None

    logger.info(f"Synthesizing missing '{section_type}' section for clarification answer")
    section = {
        "type": section_type,
        "title": default_section_title(section_type),
        "content": {},
    }
    sections.append(section)
    return section


def _apply_section_answer(
    sections: list[dict],
    tokens: list[PathToken],
    value: str,
    rejected_types: set[str],
) -> None:
    section_type = str(tokens[0])
    rest = tokens[1:]

    # "speakers[1].bio" addresses the section's item list directly
    if isinstance(rest[0], int):
        rest = [SECTION_LIST_KEYS.get(section_type, section_type), *rest]

    section = _find_or_create_section(sections, section_type, rejected_types)
    if section is None:
        return

    if not isinstance(section.get("content"), dict):
        section["content"] = normalize_content(
            section_type, section.get("content")
        ).model_dump(by_alias=True)

    set_path(section["content"], rest, value)


# =============================================================================
# Public API
# =============================================================================


def apply_answers(
    pending: PendingAnalysis,
    answers: dict[str, str],
    phase: Phase,
) -> PendingAnalysis:
    """
    Apply clarification answers to a copy of the pending analysis.

    Base phase: every answer targets the base event.
    Sections phase: a key without a dot targets the base event, a key
    starting with "sections" targets the sections payload, and any other key
    is "<sectionType>.<path>" inside that section's content. A section that
    does not exist yet is created with a title-cased default title, unless
    its type was already rejected by policy, in which case the answer is
    dropped.

    Args:
        pending: Current pending analysis (not modified)
        answers: Field path -> answer
        phase: "base" or "sections"

    Returns:
        New PendingAnalysis with the answers merged

    Example:
        >>> merged = apply_answers(pending, {"faq.items[2].answer": "Yes"}, "sections")
        >>> merged.sections[-1]["content"]
        {'items': [{}, {}, {'answer': 'Yes'}]}
    """
    merged = pending.model_copy(deep=True)
    rejected_types = {entry.type for entry in pending.rejected_sections}

    for field, value in answers.items():
        tokens = parse_path(field)
        head = tokens[0]

        if head == "event" and len(tokens) > 1:
            set_path(merged.base_event, tokens[1:], value)
        elif phase == "base" or len(tokens) == 1:
            set_path(merged.base_event, tokens, value)
        elif head == "sections":
            wrapper = {"sections": merged.sections}
            set_path(wrapper, tokens, value)
            merged.sections = wrapper["sections"]
        else:
            _apply_section_answer(merged.sections, tokens, value, rejected_types)

        logger.debug(f"Applied clarification answer for '{field}'")

    return merged
