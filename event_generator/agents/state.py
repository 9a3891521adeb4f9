"""
LangGraph state schema definitions for event generation.

Design rationale:
- TypedDict root state for LangGraph compatibility and partial updates
- Pydantic models for nested structures to provide validation
- The in-progress event lives in a single PendingAnalysis owned by the run
- ISO 8601 datetime strings for JSON serialization
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TypedDict

from pydantic import BaseModel, Field

from event_generator.models.events import (
    CanonicalEvent,
    ClarificationQuestion,
    RejectedSection,
)
from event_generator.models.policy import PolicyData


# ============================================================================
# Generation State Machine
# ============================================================================

class GenerationState(str, Enum):
    """Orchestrator states for one generation run."""

    IDLE = "idle"
    AWAITING_BASE = "awaiting_base"
    CLARIFYING_BASE = "clarifying_base"
    AWAITING_SECTIONS = "awaiting_sections"
    CLARIFYING_SECTIONS = "clarifying_sections"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_clarifying(self) -> bool:
        return self in (GenerationState.CLARIFYING_BASE, GenerationState.CLARIFYING_SECTIONS)

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationState.COMPLETE, GenerationState.FAILED)


# ============================================================================
# Pending Analysis
# ============================================================================

class PendingAnalysis(BaseModel):
    """
    In-progress generation data for one prompt.

    Created on start, mutated only by the orchestrator nodes and the
    clarification merger, discarded on completion, failure or a new prompt.

    base_event and sections stay as loosely-typed dicts until completion so
    that clarification answers can be merged by field path.
    """

    prompt: str
    constraints: PolicyData
    base_event: dict[str, Any] = Field(default_factory=dict)
    sections: list[dict[str, Any]] = Field(default_factory=list)
    rejected_sections: list[RejectedSection] = Field(default_factory=list)
    base_summary: dict[str, Any] = Field(default_factory=dict)
    sections_summary: dict[str, Any] = Field(default_factory=dict)
    questions: list[ClarificationQuestion] = Field(default_factory=list)


# ============================================================================
# Error Tracking
# ============================================================================

class ErrorInfo(BaseModel):
    """Error information."""

    error_type: str  # validation_error, transport_error, parse_error, ...
    step: str  # Which node failed
    message: str  # User-facing message
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )  # ISO 8601


# ============================================================================
# Outcome
# ============================================================================

class GenerationOutcome(BaseModel):
    """What a caller sees after start() or submit_answers()."""

    session_id: str
    state: GenerationState
    questions: list[ClarificationQuestion] = Field(default_factory=list)
    event: Optional[CanonicalEvent] = None
    rejected_sections: list[RejectedSection] = Field(default_factory=list)
    error: Optional[ErrorInfo] = None


# ============================================================================
# Root State Definition (TypedDict)
# ============================================================================

class EventGenerationState(TypedDict, total=False):
    """
    Root state for LangGraph orchestration.

    One graph run advances a session from its current stage to the next
    point where it must stop: a clarification, completion or failure.

    Example usage:
        >>> state = EventGenerationState(
        ...     session_id="sess_1a2b3c4d",
        ...     stage=GenerationState.IDLE,
        ...     prompt="Make a workshop on June 1 2025 about AI",
        ...     pending=None,
        ...     answers={},
        ...     questions=[],
        ...     audit_log=[],
        ... )
    """

    # === Session ===
    session_id: str
    prompt: str  # Prompt submitted with start()

    # === Workflow Control ===
    stage: GenerationState

    # === In-progress Data ===
    pending: Optional[PendingAnalysis]
    answers: dict[str, str]  # Answers submitted for the current clarification

    # === Outputs ===
    questions: list[ClarificationQuestion]  # Set when entering a clarifying stage
    event: Optional[CanonicalEvent]
    rejected_sections: list[RejectedSection]
    error: Optional[ErrorInfo]

    # === Metadata ===
    audit_log: list[dict[str, Any]]  # Workflow step history
