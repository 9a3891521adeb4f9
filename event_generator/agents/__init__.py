"""
Agent module for the event generator.

Provides the LangGraph state definitions, the model backend protocol and
its LangChain adapter, and the prompt builders for both generation phases.
"""

from event_generator.agents.state import (
    # Root State
    EventGenerationState,
    # State Machine
    GenerationState,
    # In-progress Data
    PendingAnalysis,
    # Errors and Outcomes
    ErrorInfo,
    GenerationOutcome,
)

from event_generator.agents.backend import (
    ChatModelBackend,
    ModelBackend,
    ModelRequest,
    unwrap_content,
)

__all__ = [
    # State
    "EventGenerationState",
    "GenerationState",
    "PendingAnalysis",
    "ErrorInfo",
    "GenerationOutcome",
    # Model Backend
    "ModelBackend",
    "ModelRequest",
    "ChatModelBackend",
    "unwrap_content",
]
