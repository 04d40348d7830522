"""Main FastAPI application for the recovery plan backend."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from recovery.api.routes.catalog import router as catalog_router
from recovery.api.routes.checkins import router as checkins_router
from recovery.api.routes.jobs import router as jobs_router
from recovery.api.routes.notifications import router as notifications_router
from recovery.api.routes.plans import router as plans_router
from recovery.api.routes.reminders import router as reminders_router
from recovery.core.config import settings
from recovery.core.errors import RecoveryError
from recovery.core.logging import configure_logging
from recovery.core.middleware import RequestIDMiddleware
from recovery.observability.client import init_opik
from recovery.observability.tracing import trace

configure_logging(log_level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(catalog_router)
app.include_router(plans_router)
app.include_router(checkins_router)
app.include_router(reminders_router)
app.include_router(jobs_router)
app.include_router(notifications_router)


@app.exception_handler(RecoveryError)
async def recovery_error_handler(request: Request, exc: RecoveryError) -> JSONResponse:
    """Render engine errors as JSON with their status and code."""
    request_id = getattr(request.state, "request_id", None)
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.code, "request_id": request_id or ""},
    )


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
