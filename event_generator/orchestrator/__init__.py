"""
LangGraph orchestrator for event generation.

This module provides the two-phase state machine that turns a free-text
event description into a CanonicalEvent:

- Validates the prompt against policy before any model call
- Generates the base event, asking for missing required fields
- Generates content sections with the confirmed base event as context
- Filters and normalizes sections, asking for missing section details
- Logs every step for the audit trail

One graph run advances a session until it must stop: a clarification,
completion or failure. Clarification answers start the next run.

Usage:
    from event_generator.orchestrator import EventGenerationOrchestrator

    orchestrator = EventGenerationOrchestrator(backend, constraint_filter)

    outcome = await orchestrator.start("Make a workshop on June 1 2025 about AI")
    if outcome.state == GenerationState.CLARIFYING_BASE:
        outcome = await orchestrator.submit_answers({"organizer": "Acme"})
"""

import inspect
import logging
import uuid
from typing import Any, Callable, Optional

from langgraph.graph import END, START, StateGraph

from event_generator.agents.backend import ModelBackend
from event_generator.agents.state import (
    ErrorInfo,
    EventGenerationState,
    GenerationOutcome,
    GenerationState,
    PendingAnalysis,
)
from event_generator.exceptions import ClarificationError
from event_generator.models.events import (
    CanonicalEvent,
    ClarificationQuestion,
    RejectedSection,
)
from event_generator.orchestrator.nodes import (
    DEFAULT_QUESTIONS,
    apply_base_answers_node,
    apply_section_answers_node,
    finalize_node,
    generate_base_node,
    generate_sections_node,
    request_base_clarification_node,
    request_sections_clarification_node,
    validate_prompt_node,
)
from event_generator.orchestrator.routing import (
    route_after_base,
    route_after_sections,
    route_after_validation,
    route_entry,
)
from event_generator.services.constraints import ConstraintFilter

logger = logging.getLogger(__name__)

ClarificationCallback = Callable[[list[ClarificationQuestion]], Any]

# Module-level compiled graph (singleton)
_compiled_graph = None


def build_generation_graph():
    """
    Build the LangGraph state machine for event generation.

    Returns:
        Compiled StateGraph ready for invocation

    Graph Structure:
        START -> [route on stage]
            IDLE -> Validate Prompt -> Generate Base -> [routing decision]
            CLARIFYING_BASE -> Apply Base Answers -> [routing decision]
                -> Request Base Clarification -> END
                -> Generate Sections -> [routing decision]
            CLARIFYING_SECTIONS -> Apply Section Answers -> [routing decision]
                -> Request Sections Clarification -> END
                -> Finalize -> END
        Any failure -> END
    """
    logger.info("Building event generation graph")

    graph = StateGraph(EventGenerationState)

    graph.add_node("validate_prompt", validate_prompt_node)
    graph.add_node("generate_base", generate_base_node)
    graph.add_node("request_base_clarification", request_base_clarification_node)
    graph.add_node("apply_base_answers", apply_base_answers_node)
    graph.add_node("generate_sections", generate_sections_node)
    graph.add_node("request_sections_clarification", request_sections_clarification_node)
    graph.add_node("apply_section_answers", apply_section_answers_node)
    graph.add_node("finalize", finalize_node)

    # Entry depends on where the session stopped last time
    graph.add_conditional_edges(
        START,
        route_entry,
        {
            "validate_prompt": "validate_prompt",
            "apply_base_answers": "apply_base_answers",
            "apply_section_answers": "apply_section_answers",
            "end": END,
        },
    )

    graph.add_conditional_edges(
        "validate_prompt",
        route_after_validation,
        {
            "generate_base": "generate_base",
            "end": END,
        },
    )

    # Base phase: both generation and merged answers route the same way
    base_routes = {
        "clarification": "request_base_clarification",
        "generate_sections": "generate_sections",
        "end": END,
    }
    graph.add_conditional_edges("generate_base", route_after_base, base_routes)
    graph.add_conditional_edges("apply_base_answers", route_after_base, base_routes)

    sections_routes = {
        "clarification": "request_sections_clarification",
        "finalize": "finalize",
        "end": END,
    }
    graph.add_conditional_edges("generate_sections", route_after_sections, sections_routes)
    graph.add_conditional_edges("apply_section_answers", route_after_sections, sections_routes)

    # Terminal edges
    graph.add_edge("request_base_clarification", END)
    graph.add_edge("request_sections_clarification", END)
    graph.add_edge("finalize", END)

    compiled = graph.compile()

    logger.info("Event generation graph built successfully")
    return compiled


def get_generation_graph():
    """
    Get or create the singleton generation graph.

    Dependencies travel in the run config, so one compiled graph serves
    every session.
    """
    global _compiled_graph

    if _compiled_graph is None:
        _compiled_graph = build_generation_graph()

    return _compiled_graph


def initialize_state(session_id: str, prompt: str = "") -> EventGenerationState:
    """Initial (idle) state for a session."""
    return EventGenerationState(
        session_id=session_id,
        prompt=prompt,
        stage=GenerationState.IDLE,
        pending=None,
        answers={},
        questions=[],
        event=None,
        rejected_sections=[],
        error=None,
        audit_log=[],
    )


class EventGenerationOrchestrator:
    """
    Drives one session through the generation state machine.

    One orchestrator serves one session and holds at most one
    PendingAnalysis. Calling start() while a run is in flight or waiting
    for answers discards the current analysis; a superseded run's results
    are dropped when its model call returns.
    """

    def __init__(
        self,
        backend: ModelBackend,
        constraint_filter: ConstraintFilter,
        *,
        session_id: str | None = None,
        on_clarification: ClarificationCallback | None = None,
        min_prompt_length: int | None = None,
        graph=None,
    ):
        """
        Initialize the orchestrator.

        Args:
            backend: Model backend used for both phases
            constraint_filter: Policy filter; initialized on first start()
            session_id: Session identifier (generated if not provided)
            on_clarification: Called with the questions once per transition
                into a clarifying state
            min_prompt_length: Minimum trimmed prompt length. If None,
                MIN_PROMPT_LENGTH from settings.
            graph: Compiled graph. If None, the shared singleton.
        """
        if min_prompt_length is None:
            from event_generator.config import get_settings

            min_prompt_length = get_settings().min_prompt_length

        self.session_id = session_id or str(uuid.uuid4())
        self._backend = backend
        self._constraint_filter = constraint_filter
        self._on_clarification = on_clarification
        self._min_prompt_length = min_prompt_length
        self._graph = graph or get_generation_graph()

        self._values: EventGenerationState = initialize_state(self.session_id)
        self._run_id = 0

    # =========================================================================
    # State accessors
    # =========================================================================

    @property
    def state(self) -> GenerationState:
        return self._values.get("stage", GenerationState.IDLE)

    @property
    def pending(self) -> Optional[PendingAnalysis]:
        return self._values.get("pending")

    @property
    def outstanding_questions(self) -> list[ClarificationQuestion]:
        """Most recent question set; empty unless a clarification is outstanding."""
        if not self.state.is_clarifying:
            return []
        return list(self._values.get("questions", []))

    @property
    def event(self) -> Optional[CanonicalEvent]:
        return self._values.get("event")

    @property
    def rejected_sections(self) -> list[RejectedSection]:
        return list(self._values.get("rejected_sections", []))

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._values.get("error")

    @property
    def audit_log(self) -> list[dict[str, Any]]:
        return list(self._values.get("audit_log", []))

    def outcome(self) -> GenerationOutcome:
        """Snapshot of the session as a caller sees it."""
        return GenerationOutcome(
            session_id=self.session_id,
            state=self.state,
            questions=self.outstanding_questions,
            event=self.event,
            rejected_sections=self.rejected_sections,
            error=self.error,
        )

    # =========================================================================
    # Operations
    # =========================================================================

    async def start(self, prompt: str) -> GenerationOutcome:
        """
        Start generating an event from a prompt.

        Any analysis in progress is discarded first.

        Returns:
            Outcome in CLARIFYING_BASE, CLARIFYING_SECTIONS, COMPLETE or FAILED
        """
        if self.state != GenerationState.IDLE:
            logger.info(
                f"[{self.session_id}] New prompt supersedes run in state {self.state.value}"
            )

        self._run_id += 1
        run_id = self._run_id

        logger.info(f"[{self.session_id}] Starting generation: '{prompt[:50]}...'")

        self._values = initialize_state(self.session_id, prompt)
        return await self._run(dict(self._values), run_id)

    async def submit_answers(self, answers: dict[str, str]) -> GenerationOutcome:
        """
        Submit answers to the outstanding clarification questions.

        Any subset of the outstanding fields may be answered; unanswered
        questions are asked again.

        Raises:
            ClarificationError: No clarification is outstanding, or an answer
                key is not an outstanding question field. State is unchanged.
        """
        if not self.state.is_clarifying:
            raise ClarificationError(
                "No clarification is outstanding",
                details={"state": self.state.value},
            )

        if not answers:
            raise ClarificationError("No answers provided")

        outstanding = {question.field for question in self.outstanding_questions}
        unknown = sorted(field for field in answers if field not in outstanding)
        if unknown:
            raise ClarificationError(
                f"Answers do not match the outstanding questions: {', '.join(unknown)}",
                details={
                    "unknown_fields": unknown,
                    "outstanding_fields": sorted(outstanding),
                },
            )

        self._run_id += 1
        run_id = self._run_id

        logger.info(
            f"[{self.session_id}] Applying {len(answers)} answer(s) in state {self.state.value}"
        )

        state = {**self._values, "answers": {field: str(value) for field, value in answers.items()}}
        return await self._run(state, run_id)

    def reset(self) -> None:
        """Discard any analysis and return to IDLE."""
        logger.info(f"[{self.session_id}] Resetting session")
        self._run_id += 1
        self._values = initialize_state(self.session_id)

    # =========================================================================
    # Graph execution
    # =========================================================================

    async def _run(self, state: dict[str, Any], run_id: int) -> GenerationOutcome:
        config = {
            "configurable": {
                "backend": self._backend,
                "constraint_filter": self._constraint_filter,
                "min_prompt_length": self._min_prompt_length,
            }
        }

        async for values in self._graph.astream(state, config=config, stream_mode="values"):
            if run_id != self._run_id:
                logger.info(f"[{self.session_id}] Discarding results of superseded run")
                return self.outcome()
            self._values = values

        logger.info(f"[{self.session_id}] Run finished in state {self.state.value}")

        if self.state.is_clarifying:
            await self._notify(self.outstanding_questions)

        return self.outcome()

    async def _notify(self, questions: list[ClarificationQuestion]) -> None:
        if self._on_clarification is None:
            return

        result = self._on_clarification(questions)
        if inspect.isawaitable(result):
            await result


__all__ = [
    "DEFAULT_QUESTIONS",
    "EventGenerationOrchestrator",
    "build_generation_graph",
    "get_generation_graph",
    "initialize_state",
]
