"""
Node implementations for the event generation graph.

Each node:
1. Extracts inputs from state (and dependencies from the run config)
2. Invokes the model backend or the pure services
3. Creates an audit log entry
4. Returns a partial state update
5. Handles errors gracefully

Nodes never raise exceptions - errors are captured in state.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from langchain_core.runnables import RunnableConfig

from event_generator.agents.backend import ModelBackend
from event_generator.agents.prompts import build_base_request, build_sections_request
from event_generator.agents.state import (
    ErrorInfo,
    EventGenerationState,
    GenerationState,
    PendingAnalysis,
)
from event_generator.exceptions import (
    EventGenerationError,
    PromptValidationError,
    ResponseParseError,
    TransportError,
)
from event_generator.models.events import (
    CanonicalEvent,
    ClarificationQuestion,
    RejectedSection,
)
from event_generator.services.clarification import apply_answers
from event_generator.services.constraints import ConstraintFilter
from event_generator.services.extraction import extract_json, is_extraction_failure
from event_generator.services.normalization import normalize_date, normalize_section

logger = logging.getLogger(__name__)

DEFAULT_MIN_PROMPT_LENGTH = 10

TRANSPORT_ERROR_MESSAGE = "Failed to generate event content"
PARSE_ERROR_MESSAGE = "Could not parse model response"
UNEXPECTED_ERROR_MESSAGE = "Event generation failed unexpectedly"

# Questions asked for required fields the model left empty without asking
DEFAULT_QUESTIONS = {
    "name": "What is the name of this event?",
    "title": "What is the title of this event?",
    "description": "Can you describe this event?",
    "startDate": "When does this event start?",
    "endDate": "When does this event end?",
    "location": "Where will this event take place?",
    "organizer": "Who is organizing this event?",
}

MODEL_REJECTION_REASON = "Rejected by content policy"


def _create_audit_entry(
    step: str,
    stage: GenerationState,
    explanation: str,
) -> dict[str, Any]:
    """Create standardized audit log entry."""
    return {
        "step": step,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "stage": stage,
        "explanation": explanation,
    }


def _create_error(
    error_type: str,
    step: str,
    message: str,
    details: dict | None = None,
) -> ErrorInfo:
    """Create standardized error entry."""
    return ErrorInfo(
        error_type=error_type,
        step=step,
        message=message,
        details=details or {},
    )


def _failed(
    state: EventGenerationState,
    step: str,
    error: ErrorInfo,
) -> dict[str, Any]:
    """Partial update for a terminal failure; the pending analysis is discarded."""
    audit_entry = _create_audit_entry(
        step=step,
        stage=GenerationState.FAILED,
        explanation=error.message,
    )
    return {
        "stage": GenerationState.FAILED,
        "pending": None,
        "questions": [],
        "error": error,
        "audit_log": [*state.get("audit_log", []), audit_entry],
    }


def _failed_from_exception(
    state: EventGenerationState,
    step: str,
    exc: Exception,
) -> dict[str, Any]:
    if isinstance(exc, EventGenerationError):
        error = _create_error(
            error_type=exc.error_type,
            step=step,
            message=exc.message,
            details=exc.details,
        )
    else:
        error = _create_error(
            error_type="generation_error",
            step=step,
            message=UNEXPECTED_ERROR_MESSAGE,
            details={"exception": str(exc)},
        )
    return _failed(state, step, error)


def _configurable(config: Optional[RunnableConfig]) -> dict[str, Any]:
    return (config or {}).get("configurable", {})


def _get_backend(config: Optional[RunnableConfig]) -> ModelBackend:
    backend = _configurable(config).get("backend")
    if backend is None:
        raise TransportError("No model backend configured")
    return backend


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


async def _call_backend(config: Optional[RunnableConfig], request) -> Any:
    """
    Call the model backend and extract JSON from its text.

    Raises:
        TransportError: Backend failed
        ResponseParseError: No JSON could be extracted
    """
    backend = _get_backend(config)

    try:
        text = await backend.generate(request)
    except TransportError as e:
        # Adapter messages may carry provider detail; callers see the generic one
        raise TransportError(
            TRANSPORT_ERROR_MESSAGE,
            details={"reason": e.message, **e.details},
            original_error=e,
        ) from e
    except Exception as e:
        raise TransportError(
            TRANSPORT_ERROR_MESSAGE,
            details={"exception": str(e)},
            original_error=e,
        ) from e

    data = extract_json(text)
    if is_extraction_failure(data):
        raise ResponseParseError(PARSE_ERROR_MESSAGE, details={"reason": data.error})
    return data


def _questions_from_summary(summary: Any) -> list[ClarificationQuestion]:
    """Read analysisSummary.missingInformation into questions."""
    if not isinstance(summary, dict):
        return []

    raw_items = summary.get("missingInformation") or []
    if not isinstance(raw_items, list):
        return []

    questions = []
    for item in raw_items:
        if isinstance(item, str) and item.strip():
            field = item.strip()
            questions.append(
                ClarificationQuestion(field=field, question=default_question(field))
            )
        elif isinstance(item, dict) and not _is_blank(item.get("field")):
            field = _as_text(item["field"]).strip()
            question = _as_text(item.get("question")).strip() or default_question(field)
            questions.append(ClarificationQuestion(field=field, question=question))
    return questions


def _dedupe_questions(questions: list[ClarificationQuestion]) -> list[ClarificationQuestion]:
    seen: set[str] = set()
    unique = []
    for question in questions:
        if question.field not in seen:
            seen.add(question.field)
            unique.append(question)
    return unique


def default_question(field: str) -> str:
    """Question asked for a field when none was supplied."""
    return DEFAULT_QUESTIONS.get(field, f"Please provide a value for {field}.")


def missing_required_questions(
    base_event: dict[str, Any],
    required_fields: list[str],
) -> list[ClarificationQuestion]:
    """Default questions for required fields absent or empty in the base event."""
    return [
        ClarificationQuestion(field=field, question=default_question(field))
        for field in required_fields
        if _is_blank(base_event.get(field))
    ]


# =============================================================================
# Prompt Validation Node
# =============================================================================


def validate_prompt_node(
    state: EventGenerationState,
    config: RunnableConfig,
) -> dict[str, Any]:
    """
    Validate the prompt against policy before any model call.

    Rejects prompts shorter than the minimum length (after trimming) and
    prompts containing banned words or keywords. On success a fresh
    PendingAnalysis is created with a snapshot of the constraints.

    Returns partial state update with:
    - stage: AWAITING_BASE or FAILED
    - pending: New PendingAnalysis (replaces any previous one)
    - audit_log: Appended audit entry
    """
    session_id = state.get("session_id", "unknown")
    logger.info(f"[{session_id}] Executing prompt validation node")

    try:
        options = _configurable(config)
        constraint_filter: ConstraintFilter = options.get("constraint_filter") or ConstraintFilter()
        min_length = options.get("min_prompt_length")
        if min_length is None:
            min_length = DEFAULT_MIN_PROMPT_LENGTH

        prompt = (state.get("prompt") or "").strip()

        if len(prompt) < min_length:
            raise PromptValidationError(
                "Please provide a more detailed description of your event "
                f"(at least {min_length} characters)",
                details={"min_length": min_length, "length": len(prompt)},
            )

        constraint_filter.initialize()
        banned = constraint_filter.has_banned_content(prompt)
        if banned.has_banned:
            raise PromptValidationError(
                f"Your prompt contains banned content: {', '.join(banned.banned_terms)}",
                details={"banned_terms": banned.banned_terms},
            )

        pending = PendingAnalysis(
            prompt=prompt,
            constraints=constraint_filter.snapshot(),
        )

        audit_entry = _create_audit_entry(
            step="validate_prompt",
            stage=GenerationState.AWAITING_BASE,
            explanation=f"Prompt accepted ({len(prompt)} characters)",
        )

        logger.info(f"[{session_id}] Prompt validation passed")

        return {
            "stage": GenerationState.AWAITING_BASE,
            "prompt": prompt,
            "pending": pending,
            "answers": {},
            "questions": [],
            "event": None,
            "rejected_sections": [],
            "error": None,
            "audit_log": [*state.get("audit_log", []), audit_entry],
        }

    except PromptValidationError as e:
        logger.warning(f"[{session_id}] Prompt rejected: {e.message}")
        return _failed_from_exception(state, "validate_prompt", e)

    except Exception as e:
        logger.error(f"[{session_id}] Prompt validation failed: {e}", exc_info=True)
        return _failed_from_exception(state, "validate_prompt", e)


# =============================================================================
# Base Phase Nodes
# =============================================================================


def _base_event_from_envelope(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ResponseParseError(
            PARSE_ERROR_MESSAGE,
            details={"reason": f"Expected a JSON object, got {type(data).__name__}"},
        )

    event = data.get("event")
    if not isinstance(event, dict):
        # Some models answer with the bare event object
        event = data if ("name" in data or "title" in data) else {}

    base_event = {key: value for key, value in event.items() if key != "sections"}
    return base_event


async def generate_base_node(
    state: EventGenerationState,
    config: RunnableConfig,
) -> dict[str, Any]:
    """
    Generate top-level event metadata from the prompt.

    Missing fields are the union of the model's missingInformation and the
    required fields that are absent or empty, deduplicated by field with the
    model's question winning.

    Returns partial state update with:
    - pending: base_event, base_summary and questions filled in
    - stage: AWAITING_SECTIONS when nothing is missing, else AWAITING_BASE
    - audit_log: Appended audit entry
    """
    session_id = state.get("session_id", "unknown")
    logger.info(f"[{session_id}] Executing base generation node")

    try:
        pending: PendingAnalysis = state["pending"]
        required_fields = pending.constraints.required_fields

        request = build_base_request(pending.prompt, required_fields)
        data = await _call_backend(config, request)

        base_event = _base_event_from_envelope(data)
        summary = data.get("analysisSummary") or {}

        questions = _dedupe_questions(
            _questions_from_summary(summary)
            + missing_required_questions(base_event, required_fields)
        )

        updated = pending.model_copy(
            update={
                "base_event": base_event,
                "base_summary": summary if isinstance(summary, dict) else {},
                "questions": questions,
            }
        )

        next_stage = (
            GenerationState.AWAITING_BASE if questions else GenerationState.AWAITING_SECTIONS
        )

        if questions:
            explanation = f"Base event missing {len(questions)} field(s): " + ", ".join(
                q.field for q in questions
            )
        else:
            explanation = f"Base event complete: '{_as_text(base_event.get('title'))}'"

        audit_entry = _create_audit_entry(
            step="generate_base",
            stage=next_stage,
            explanation=explanation,
        )

        logger.info(f"[{session_id}] Base generation completed: {len(questions)} missing field(s)")

        return {
            "stage": next_stage,
            "pending": updated,
            "audit_log": [*state.get("audit_log", []), audit_entry],
        }

    except EventGenerationError as e:
        logger.error(f"[{session_id}] Base generation failed: {e.message}", exc_info=True)
        return _failed_from_exception(state, "generate_base", e)

    except Exception as e:
        logger.error(f"[{session_id}] Base generation failed: {e}", exc_info=True)
        return _failed_from_exception(state, "generate_base", e)


def request_base_clarification_node(state: EventGenerationState) -> dict[str, Any]:
    """Emit the outstanding base questions and wait for the user."""
    session_id = state.get("session_id", "unknown")
    pending: PendingAnalysis = state["pending"]
    questions = list(pending.questions)

    logger.info(
        f"[{session_id}] Requesting base clarification: "
        f"{', '.join(q.field for q in questions)}"
    )

    audit_entry = _create_audit_entry(
        step="request_base_clarification",
        stage=GenerationState.CLARIFYING_BASE,
        explanation=f"Asked {len(questions)} question(s) about the base event",
    )

    return {
        "stage": GenerationState.CLARIFYING_BASE,
        "questions": questions,
        "answers": {},
        "audit_log": [*state.get("audit_log", []), audit_entry],
    }


def apply_base_answers_node(state: EventGenerationState) -> dict[str, Any]:
    """
    Merge base clarification answers into the base event.

    Questions left unanswered and required fields still empty stay
    outstanding; otherwise the run moves on to the sections phase.
    """
    session_id = state.get("session_id", "unknown")
    logger.info(f"[{session_id}] Executing base answers node")

    try:
        pending: PendingAnalysis = state["pending"]
        answers = state.get("answers", {})

        merged = apply_answers(pending, answers, "base")

        unanswered = [q for q in merged.questions if q.field not in answers]
        questions = _dedupe_questions(
            unanswered
            + missing_required_questions(merged.base_event, merged.constraints.required_fields)
        )
        merged.questions = questions

        next_stage = (
            GenerationState.AWAITING_BASE if questions else GenerationState.AWAITING_SECTIONS
        )

        audit_entry = _create_audit_entry(
            step="apply_base_answers",
            stage=next_stage,
            explanation=(
                f"Applied {len(answers)} answer(s); "
                f"{len(questions)} base question(s) still open"
            ),
        )

        return {
            "stage": next_stage,
            "pending": merged,
            "answers": {},
            "audit_log": [*state.get("audit_log", []), audit_entry],
        }

    except Exception as e:
        logger.error(f"[{session_id}] Applying base answers failed: {e}", exc_info=True)
        return _failed_from_exception(state, "apply_base_answers", e)


# =============================================================================
# Sections Phase Nodes
# =============================================================================


def _sections_from_envelope(data: Any) -> tuple[list[Any], dict[str, Any]]:
    if isinstance(data, list):
        return data, {}

    if not isinstance(data, dict):
        raise ResponseParseError(
            PARSE_ERROR_MESSAGE,
            details={"reason": f"Expected a JSON object, got {type(data).__name__}"},
        )

    sections = data.get("sections")
    if sections is None and isinstance(data.get("event"), dict):
        sections = data["event"].get("sections")

    summary = data.get("analysisSummary")
    return (
        sections if isinstance(sections, list) else [],
        summary if isinstance(summary, dict) else {},
    )


def _section_text(raw: dict[str, Any]) -> str:
    content = raw.get("content")
    if not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False, default=str)
    return f"{_as_text(raw.get('title'))}\n{content}"


def _model_rejections(summary: dict[str, Any]) -> list[RejectedSection]:
    """Rejections reported by the model, reasons aligned by index or keyed by type."""
    rejected = summary.get("rejectedSections") or []
    reasons = summary.get("rejectionReasons") or []
    if not isinstance(rejected, list):
        return []

    results = []
    for index, entry in enumerate(rejected):
        section_type = _as_text(entry.get("type") if isinstance(entry, dict) else entry)
        section_type = section_type.strip().lower()
        if not section_type:
            continue

        reason = None
        if isinstance(entry, dict):
            reason = entry.get("reason")
        if reason is None and isinstance(reasons, dict):
            reason = reasons.get(section_type)
        elif reason is None and isinstance(reasons, list) and index < len(reasons):
            reason = reasons[index]

        results.append(
            RejectedSection(
                type=section_type,
                reason=_as_text(reason).strip() or MODEL_REJECTION_REASON,
            )
        )
    return results


def _check_section(
    section_type: str,
    raw: dict[str, Any],
    constraint_filter: ConstraintFilter,
) -> Optional[RejectedSection]:
    """Policy verdict for one section: None if accepted, else the rejection."""
    if not constraint_filter.is_section_allowed(section_type):
        return RejectedSection(
            type=section_type,
            reason=f"Section type '{section_type}' is not allowed",
        )

    banned = constraint_filter.has_banned_content(_section_text(raw))
    if banned.has_banned:
        return RejectedSection(
            type=section_type,
            reason=f"Section contains banned content: {', '.join(banned.banned_terms)}",
        )
    return None


def filter_sections(
    raw_sections: list[Any],
    constraint_filter: ConstraintFilter,
) -> tuple[list[dict[str, Any]], list[RejectedSection]]:
    """
    Split raw sections into accepted (normalized) and rejected ones.

    A section is rejected when its type is not allowed or its title or
    content contains banned terms.
    """
    accepted: list[dict[str, Any]] = []
    rejected: list[RejectedSection] = []

    for raw in raw_sections:
        if not isinstance(raw, dict):
            logger.debug(f"Skipping non-object section entry: {raw!r}")
            continue

        section_type = _as_text(raw.get("type")).strip().lower()

        rejection = _check_section(section_type, raw, constraint_filter)
        if rejection:
            rejected.append(rejection)
            continue

        section = normalize_section({**raw, "type": section_type})
        accepted.append(section.model_dump(by_alias=True))

    return accepted, rejected


async def generate_sections_node(
    state: EventGenerationState,
    config: RunnableConfig,
) -> dict[str, Any]:
    """
    Generate content sections with the confirmed base event as context.

    Sections are filtered against the constraints snapshot and normalized.
    Model-reported rejections are appended to the rejected list.

    Returns partial state update with:
    - pending: sections, rejected_sections, sections_summary, questions
    - stage: AWAITING_SECTIONS (routing decides clarification or finalize)
    - audit_log: Appended audit entry
    """
    session_id = state.get("session_id", "unknown")
    logger.info(f"[{session_id}] Executing sections generation node")

    try:
        pending: PendingAnalysis = state["pending"]
        constraint_filter = ConstraintFilter.from_policy(pending.constraints)

        request = build_sections_request(pending.prompt, pending.base_event, pending.constraints)
        data = await _call_backend(config, request)

        raw_sections, summary = _sections_from_envelope(data)
        accepted, rejected = filter_sections(raw_sections, constraint_filter)

        known = {entry.type for entry in rejected}
        for entry in _model_rejections(summary):
            if entry.type not in known:
                known.add(entry.type)
                rejected.append(entry)

        questions = _dedupe_questions(_questions_from_summary(summary))

        updated = pending.model_copy(
            update={
                "sections": accepted,
                "rejected_sections": rejected,
                "sections_summary": summary,
                "questions": questions,
            }
        )

        audit_entry = _create_audit_entry(
            step="generate_sections",
            stage=GenerationState.AWAITING_SECTIONS,
            explanation=(
                f"Accepted {len(accepted)} section(s), rejected {len(rejected)}, "
                f"{len(questions)} missing field(s)"
            ),
        )

        logger.info(
            f"[{session_id}] Sections generation completed: "
            f"accepted={len(accepted)}, rejected={len(rejected)}, missing={len(questions)}"
        )

        return {
            "stage": GenerationState.AWAITING_SECTIONS,
            "pending": updated,
            "rejected_sections": rejected,
            "audit_log": [*state.get("audit_log", []), audit_entry],
        }

    except EventGenerationError as e:
        logger.error(f"[{session_id}] Sections generation failed: {e.message}", exc_info=True)
        return _failed_from_exception(state, "generate_sections", e)

    except Exception as e:
        logger.error(f"[{session_id}] Sections generation failed: {e}", exc_info=True)
        return _failed_from_exception(state, "generate_sections", e)


def request_sections_clarification_node(state: EventGenerationState) -> dict[str, Any]:
    """Emit the outstanding section questions and wait for the user."""
    session_id = state.get("session_id", "unknown")
    pending: PendingAnalysis = state["pending"]
    questions = list(pending.questions)

    logger.info(
        f"[{session_id}] Requesting sections clarification: "
        f"{', '.join(q.field for q in questions)}"
    )

    audit_entry = _create_audit_entry(
        step="request_sections_clarification",
        stage=GenerationState.CLARIFYING_SECTIONS,
        explanation=f"Asked {len(questions)} question(s) about the sections",
    )

    return {
        "stage": GenerationState.CLARIFYING_SECTIONS,
        "questions": questions,
        "answers": {},
        "audit_log": [*state.get("audit_log", []), audit_entry],
    }


def apply_section_answers_node(state: EventGenerationState) -> dict[str, Any]:
    """Merge section clarification answers; unanswered questions stay open."""
    session_id = state.get("session_id", "unknown")
    logger.info(f"[{session_id}] Executing section answers node")

    try:
        pending: PendingAnalysis = state["pending"]
        answers = state.get("answers", {})

        merged = apply_answers(pending, answers, "sections")
        merged.questions = [q for q in merged.questions if q.field not in answers]

        audit_entry = _create_audit_entry(
            step="apply_section_answers",
            stage=GenerationState.AWAITING_SECTIONS,
            explanation=(
                f"Applied {len(answers)} answer(s); "
                f"{len(merged.questions)} section question(s) still open"
            ),
        )

        return {
            "stage": GenerationState.AWAITING_SECTIONS,
            "pending": merged,
            "answers": {},
            "audit_log": [*state.get("audit_log", []), audit_entry],
        }

    except Exception as e:
        logger.error(f"[{session_id}] Applying section answers failed: {e}", exc_info=True)
        return _failed_from_exception(state, "apply_section_answers", e)


# =============================================================================
# Finalize Node
# =============================================================================


def _optional_text(value: Any) -> Optional[str]:
    return None if _is_blank(value) else _as_text(value).strip()


def build_canonical_event(
    pending: PendingAnalysis,
) -> tuple[CanonicalEvent, list[RejectedSection]]:
    """
    Assemble the canonical event from a pending analysis.

    Sections are normalized and checked against policy again, since
    clarification answers may have added sections or content after the
    sections phase filtered them.
    """
    constraint_filter = ConstraintFilter.from_policy(pending.constraints)
    base = pending.base_event
    rejected = list(pending.rejected_sections)

    sections = []
    for raw in pending.sections:
        section = normalize_section(raw)
        rejection = _check_section(
            section.type, section.model_dump(by_alias=True), constraint_filter
        )
        if rejection:
            rejected.append(rejection)
        else:
            sections.append(section)

    event = CanonicalEvent(
        name=_as_text(base.get("name")),
        title=_as_text(base.get("title")),
        description=_as_text(base.get("description")),
        start_date=normalize_date(base.get("startDate")),
        end_date=normalize_date(base.get("endDate")),
        location=_optional_text(base.get("location")),
        organizer=_optional_text(base.get("organizer")),
        sections=sections,
    )
    return event, rejected


def finalize_node(state: EventGenerationState) -> dict[str, Any]:
    """
    Emit the canonical event and discard the pending analysis.

    Returns partial state update with:
    - stage: COMPLETE
    - event: CanonicalEvent
    - rejected_sections: Sections dropped by policy, with reasons
    """
    session_id = state.get("session_id", "unknown")
    logger.info(f"[{session_id}] Executing finalize node")

    try:
        event, rejected = build_canonical_event(state["pending"])

        audit_entry = _create_audit_entry(
            step="finalize",
            stage=GenerationState.COMPLETE,
            explanation=(
                f"Event '{event.title}' completed with {len(event.sections)} section(s)"
            ),
        )

        logger.info(
            f"[{session_id}] Event completed: sections={len(event.sections)}, "
            f"rejected={len(rejected)}"
        )

        return {
            "stage": GenerationState.COMPLETE,
            "event": event,
            "rejected_sections": rejected,
            "pending": None,
            "questions": [],
            "audit_log": [*state.get("audit_log", []), audit_entry],
        }

    except Exception as e:
        logger.error(f"[{session_id}] Finalize failed: {e}", exc_info=True)
        return _failed_from_exception(state, "finalize", e)
