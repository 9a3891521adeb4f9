"""
In-memory registry of generation sessions.

Each session owns one EventGenerationOrchestrator; sessions share the
model backend and the process-wide constraint filter. The registry holds
at most max_sessions orchestrators: when full, the oldest completed or
failed session is evicted first, then the oldest session of any state.
"""

import logging
from typing import Optional

from event_generator.agents.backend import ModelBackend
from event_generator.orchestrator import EventGenerationOrchestrator
from event_generator.services.constraints import ConstraintFilter

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1000


class SessionRegistry:
    """Maps session IDs to their orchestrators, oldest first."""

    def __init__(
        self,
        backend: ModelBackend,
        constraint_filter: ConstraintFilter,
        min_prompt_length: int | None = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        self.backend = backend
        self.constraint_filter = constraint_filter
        self.max_sessions = max_sessions
        self._min_prompt_length = min_prompt_length
        self._sessions: dict[str, EventGenerationOrchestrator] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[EventGenerationOrchestrator]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str | None = None) -> EventGenerationOrchestrator:
        """Return the session's orchestrator, creating the session if needed."""
        if session_id and session_id in self._sessions:
            return self._sessions[session_id]

        while len(self._sessions) >= self.max_sessions:
            self._evict_one()

        orchestrator = EventGenerationOrchestrator(
            self.backend,
            self.constraint_filter,
            session_id=session_id,
            min_prompt_length=self._min_prompt_length,
        )
        self._sessions[orchestrator.session_id] = orchestrator
        logger.info(f"[{orchestrator.session_id}] Session created")
        return orchestrator

    def delete(self, session_id: str) -> bool:
        """Discard a session. Returns False if it did not exist."""
        orchestrator = self._sessions.pop(session_id, None)
        if orchestrator is None:
            return False

        orchestrator.reset()
        logger.info(f"[{session_id}] Session discarded")
        return True

    def _evict_one(self) -> None:
        victim = next(
            (sid for sid, orch in self._sessions.items() if orch.state.is_terminal),
            next(iter(self._sessions)),
        )
        orchestrator = self._sessions.pop(victim)
        logger.info(
            f"[{victim}] Session evicted ({orchestrator.state.value}), "
            f"registry at capacity {self.max_sessions}"
        )
        orchestrator.reset()
