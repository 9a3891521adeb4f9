"""
Routing logic for the event generation graph.

Contains decision functions that determine workflow paths based on state.
These functions are used with LangGraph's conditional edges.
"""

from typing import Literal
import logging

from event_generator.agents.state import EventGenerationState, GenerationState

logger = logging.getLogger(__name__)


def _has_open_questions(state: EventGenerationState) -> bool:
    pending = state.get("pending")
    return bool(pending is not None and pending.questions)


def _failed(state: EventGenerationState) -> bool:
    return state.get("stage") == GenerationState.FAILED


def route_entry(
    state: EventGenerationState,
) -> Literal["validate_prompt", "apply_base_answers", "apply_section_answers", "end"]:
    """
    Pick the first node of a run from the current stage.

    Routing Logic:
    - IDLE -> validate_prompt (new prompt)
    - CLARIFYING_BASE -> apply_base_answers
    - CLARIFYING_SECTIONS -> apply_section_answers
    - Anything else -> end (nothing to do)
    """
    session_id = state.get("session_id", "unknown")
    stage = state.get("stage", GenerationState.IDLE)

    if stage == GenerationState.IDLE:
        return "validate_prompt"
    if stage == GenerationState.CLARIFYING_BASE:
        return "apply_base_answers"
    if stage == GenerationState.CLARIFYING_SECTIONS:
        return "apply_section_answers"

    logger.warning(f"[{session_id}] Nothing to run from stage {stage}")
    return "end"


def route_after_validation(
    state: EventGenerationState,
) -> Literal["generate_base", "end"]:
    """Prompt rejected -> end, otherwise generate the base event."""
    session_id = state.get("session_id", "unknown")

    if _failed(state):
        logger.info(f"[{session_id}] Routing to end: prompt rejected")
        return "end"

    return "generate_base"


def route_after_base(
    state: EventGenerationState,
) -> Literal["clarification", "generate_sections", "end"]:
    """
    Route after base generation (or after base answers were merged).

    Routing Logic:
    - Failed -> end
    - Open base questions -> clarification
    - Otherwise -> generate_sections

    Base clarification is always resolved before sections are generated.
    """
    session_id = state.get("session_id", "unknown")

    if _failed(state):
        error = state.get("error")
        logger.warning(
            f"[{session_id}] Base phase failed, terminating: "
            f"{error.message if error else 'unknown error'}"
        )
        return "end"

    if _has_open_questions(state):
        count = len(state["pending"].questions)
        logger.info(f"[{session_id}] Routing to clarification: {count} base field(s) missing")
        return "clarification"

    logger.info(f"[{session_id}] Routing to generate_sections: base event complete")
    return "generate_sections"


def route_after_sections(
    state: EventGenerationState,
) -> Literal["clarification", "finalize", "end"]:
    """
    Route after sections generation (or after section answers were merged).

    Routing Logic:
    - Failed -> end
    - Open section questions -> clarification
    - Otherwise -> finalize
    """
    session_id = state.get("session_id", "unknown")

    if _failed(state):
        error = state.get("error")
        logger.warning(
            f"[{session_id}] Sections phase failed, terminating: "
            f"{error.message if error else 'unknown error'}"
        )
        return "end"

    if _has_open_questions(state):
        count = len(state["pending"].questions)
        logger.info(
            f"[{session_id}] Routing to clarification: {count} section field(s) missing"
        )
        return "clarification"

    logger.info(f"[{session_id}] Routing to finalize")
    return "finalize"
