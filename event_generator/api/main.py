"""
FastAPI application for the event generator.

This is the main entry point for the HTTP API, providing:
- Event generation from a free-text prompt
- Clarification answers for missing fields
- Session inspection and cleanup
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from event_generator import __version__
from event_generator.api.dependencies import (
    get_constraint_filter,
    get_session,
    get_session_registry,
    init_services,
)
from event_generator.api.middleware import RequestLoggingMiddleware, get_request_id
from event_generator.api.models import (
    ClarificationRequest,
    DeleteSessionResponse,
    GenerateEventRequest,
    GenerationResponse,
    HealthResponse,
)
from event_generator.api.sessions import SessionRegistry
from event_generator.config import get_settings
from event_generator.exceptions import ClarificationError
from event_generator.orchestrator import EventGenerationOrchestrator

logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    logging.getLogger().setLevel(settings.log_level)

    if settings.is_production:
        settings.validate_production_config()

    # Startup
    logger.info("Starting Event Generator API")
    init_services(settings)
    logger.info("Event Generator API started")

    yield

    # Shutdown
    logger.info("Shutting down Event Generator API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Event Generator API",
    description="""
# Event Generator API

Turns a free-text event description into a canonical structured event.

## Workflow
1. **POST /events/generate** - Submit a prompt
2. The base event is generated; missing required fields come back as questions
3. **POST /events/{session_id}/clarifications** - Answer the questions
4. Content sections are generated, filtered by policy and normalized
5. Missing section details come back as questions the same way
6. The completed event is returned with any rejected sections

## Error Handling

**Generation failures are not HTTP errors** - a rejected prompt or a model
failure returns 200 with `state="failed"` and an `error` object.

- **200** - Session state (including failed generations)
- **404** - Session not found
- **409** - Answers do not match the outstanding questions
- **422** - Invalid request format
- **503** - Model backend not configured
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": "http_error",
            "message": exc.detail,
            "retryable": exc.status_code >= 500,
        },
    )


@app.exception_handler(ClarificationError)
async def clarification_exception_handler(request, exc: ClarificationError):
    """Answers submitted out of turn or for unknown fields."""
    logger.warning(f"[{get_request_id()}] Clarification rejected: {exc.message}")
    return JSONResponse(
        status_code=409,
        content={
            "error_type": exc.error_type,
            "message": exc.message,
            "details": exc.details,
            "retryable": False,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"[{get_request_id()}] Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


# =============================================================================
# Health Endpoint
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
async def health_check():
    """
    Check API health status.

    Healthy once the session registry is ready; policy_loaded reports
    whether policy data loaded (the filter fails open otherwise).
    """
    try:
        policy_loaded = get_constraint_filter().is_initialized
    except HTTPException:
        policy_loaded = False

    try:
        registry_ready = get_session_registry() is not None
    except HTTPException:
        registry_ready = False

    return HealthResponse(
        status="healthy" if registry_ready else "unhealthy",
        version=__version__,
        policy_loaded=policy_loaded,
    )


# =============================================================================
# Generation Endpoints
# =============================================================================


@app.post(
    "/events/generate",
    response_model=GenerationResponse,
    summary="Generate event from a prompt",
    description="""
Start generating an event from a free-text description.

Passing an existing `session_id` discards that session's analysis in
progress and starts over with the new prompt.

## Response Behavior
- **state=clarifying_base / clarifying_sections**: answer `questions`
- **state=complete**: `event` holds the canonical event
- **state=failed**: `error` explains why (banned content, model failure)
    """,
    responses={
        200: {"description": "Session state after the run"},
        422: {"description": "Validation error"},
        503: {"description": "Service unavailable"},
    },
    tags=["Events"],
)
async def generate_event(
    request: GenerateEventRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> GenerationResponse:
    orchestrator = registry.get_or_create(request.session_id)
    outcome = await orchestrator.start(request.prompt)
    return GenerationResponse.from_outcome(outcome)


@app.post(
    "/events/{session_id}/clarifications",
    response_model=GenerationResponse,
    summary="Answer clarification questions",
    responses={
        200: {"description": "Session state after the run"},
        404: {"description": "Session not found"},
        409: {"description": "No clarification outstanding or unknown answer fields"},
    },
    tags=["Events"],
)
async def submit_clarifications(
    request: ClarificationRequest,
    orchestrator: EventGenerationOrchestrator = Depends(get_session),
) -> GenerationResponse:
    """Apply answers keyed by the outstanding questions' field paths."""
    outcome = await orchestrator.submit_answers(request.answers)
    return GenerationResponse.from_outcome(outcome)


@app.get(
    "/events/{session_id}",
    response_model=GenerationResponse,
    summary="Get session state",
    responses={404: {"description": "Session not found"}},
    tags=["Events"],
)
async def get_generation(
    orchestrator: EventGenerationOrchestrator = Depends(get_session),
) -> GenerationResponse:
    """Current state, including the outstanding questions on demand."""
    return GenerationResponse.from_outcome(orchestrator.outcome())


@app.delete(
    "/events/{session_id}",
    response_model=DeleteSessionResponse,
    summary="Discard session",
    responses={404: {"description": "Session not found"}},
    tags=["Events"],
)
async def delete_generation(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> DeleteSessionResponse:
    if not registry.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")

    return DeleteSessionResponse(
        success=True,
        session_id=session_id,
        message="Session discarded",
    )


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: str | None = None, port: int | None = None, reload: bool | None = None):
    """Run the API server with Uvicorn, defaulting to API_HOST/API_PORT/API_RELOAD."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "event_generator.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
