"""
Pydantic request and response models for the event generator API.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from event_generator.agents.state import GenerationOutcome


# =============================================================================
# Request Models
# =============================================================================


class GenerateEventRequest(BaseModel):
    """Request to generate an event from a free-text description."""

    prompt: str = Field(
        ...,
        description="Free-text event description",
        max_length=5000,
        examples=["Make a workshop on June 1 2025 about AI"],
    )
    session_id: Optional[str] = Field(
        None,
        description="Existing session to restart with this prompt (created if unknown)",
    )


class ClarificationRequest(BaseModel):
    """Answers to the outstanding clarification questions."""

    answers: dict[str, str] = Field(
        ...,
        description="Field path -> answer, keys from the outstanding questions",
        examples=[{"organizer": "Acme"}],
    )

    @field_validator("answers")
    @classmethod
    def validate_answers_not_empty(cls, v: dict[str, str]) -> dict[str, str]:
        if not v:
            raise ValueError("At least one answer is required")
        return v


# =============================================================================
# Response Models
# =============================================================================


class ErrorDetail(BaseModel):
    """Error information for a failed generation."""

    error_type: str = Field(..., description="validation_error, transport_error or parse_error")
    step: str = Field(..., description="Step that failed")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error details")


class GenerationResponse(BaseModel):
    """State of a generation session."""

    session_id: str = Field(..., description="Session identifier")
    state: str = Field(..., description="Generation state")
    questions: list[dict[str, str]] = Field(
        default_factory=list,
        description="Outstanding clarification questions ({field, question})",
    )
    event: Optional[dict[str, Any]] = Field(None, description="Canonical event once complete")
    rejected_sections: list[dict[str, str]] = Field(
        default_factory=list,
        description="Sections dropped by policy ({type, reason})",
    )
    error: Optional[ErrorDetail] = Field(None, description="Set when the generation failed")

    @classmethod
    def from_outcome(cls, outcome: GenerationOutcome) -> "GenerationResponse":
        """Build the wire response; event fields use the camelCase wire names."""
        error = None
        if outcome.error is not None:
            error = ErrorDetail(
                error_type=outcome.error.error_type,
                step=outcome.error.step,
                message=outcome.error.message,
                details=outcome.error.details,
            )

        return cls(
            session_id=outcome.session_id,
            state=outcome.state.value,
            questions=[q.model_dump(by_alias=True) for q in outcome.questions],
            event=outcome.event.model_dump(by_alias=True) if outcome.event else None,
            rejected_sections=[r.model_dump(by_alias=True) for r in outcome.rejected_sections],
            error=error,
        )


class DeleteSessionResponse(BaseModel):
    """Response for discarding a session."""

    success: bool = Field(..., description="Whether the session was discarded")
    session_id: str = Field(..., description="ID of the discarded session")
    message: str = Field(..., description="Status message")


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    policy_loaded: bool = Field(..., description="Policy data loaded successfully")
