"""
FastAPI dependency injection providers.

Provides the constraint filter, the session registry and per-request
session lookup.
"""

import logging

from fastapi import Depends, HTTPException

from event_generator.agents.backend import ChatModelBackend
from event_generator.api.sessions import SessionRegistry
from event_generator.config import Settings, get_settings
from event_generator.orchestrator import EventGenerationOrchestrator
from event_generator.services.constraints import ConstraintFilter, JsonPolicyLoader

logger = logging.getLogger(__name__)

# Global instances (initialized at startup)
_constraint_filter: ConstraintFilter | None = None
_registry: SessionRegistry | None = None


def init_services(settings: Settings | None = None) -> None:
    """
    Initialize policy data and the session registry at application startup.

    Policy loading fails open. A missing model API key leaves the registry
    uninitialized, so generation endpoints answer 503.
    """
    global _constraint_filter, _registry
    settings = settings or get_settings()

    _constraint_filter = ConstraintFilter(JsonPolicyLoader(settings.policy_dir or None))
    _constraint_filter.initialize()

    try:
        backend = ChatModelBackend()
    except ValueError as e:
        logger.error(f"Model backend not configured: {e}")
        _registry = None
        return

    _registry = SessionRegistry(
        backend,
        _constraint_filter,
        min_prompt_length=settings.min_prompt_length,
        max_sessions=settings.max_sessions,
    )
    logger.info("Session registry initialized")


def get_constraint_filter() -> ConstraintFilter:
    """
    Dependency injection for the constraint filter.

    Raises:
        HTTPException: If services not initialized
    """
    if _constraint_filter is None:
        logger.error("Constraint filter not initialized")
        raise HTTPException(
            status_code=503,
            detail="Service temporarily unavailable - policy not initialized",
        )
    return _constraint_filter


def get_session_registry() -> SessionRegistry:
    """
    Dependency injection for the session registry.

    Raises:
        HTTPException: If the registry is not initialized
    """
    if _registry is None:
        logger.error("Session registry not initialized")
        raise HTTPException(
            status_code=503,
            detail="Service temporarily unavailable - model backend not configured",
        )
    return _registry


def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> EventGenerationOrchestrator:
    """
    Look up an existing session.

    Raises:
        HTTPException: 404 if the session does not exist
    """
    orchestrator = registry.get(session_id)
    if orchestrator is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return orchestrator
