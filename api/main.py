"""
api/main.py -- FastAPI application entry point for the task server.

Run with:      python main.py
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware   -- adds CORS headers for allowed browser origins
  2. log_requests     -- one log line per request with status and latency

Lifespan opens the user and task stores on startup, publishes them on
app.state for route handlers, and disposes them on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, FieldError, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.tasks import router as tasks_router
from api.routes.tasks import status_router as task_status_router
from auth.store import UserStore
from core.config import get_settings
from core.errors import StorageFault, TaskServerError, ValidationError
from tasks.store import TaskStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskserver.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and close them on shutdown.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Handlers reach the stores through request.app.state, never
    through module globals, so tests can swap in their own.
    """
    logger.info("Task server starting up")
    db_url = _settings.resolved_database_url
    app.state.user_store = UserStore(db_url=db_url)
    app.state.task_store = TaskStore(db_url=db_url)
    if app.state.task_store.ping():
        logger.info("Connected to database %s", make_url(db_url).render_as_string(hide_password=True))
    else:
        logger.warning("Database ping returned an unexpected result")

    yield

    app.state.task_store.close()
    app.state.user_store.close()
    logger.info("Task server shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Task Server API",
    description="Task management with email/password accounts and bearer-token auth.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(tasks_router, tags=["Tasks"])
app.include_router(task_status_router, tags=["Tasks"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly: {"kind": ..., "message": ...}.
# ---------------------------------------------------------------------------


@app.exception_handler(TaskServerError)
async def task_server_error_handler(request: Request, exc: TaskServerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one FieldError per failed rule.

    The leading "body" / "path" segment of each location is dropped so the
    client sees the field name it sent.
    """
    errors = [
        FieldError(
            loc=".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            message=err["msg"],
            type=err["type"],
        )
        for err in exc.errors()
    ]
    error = ValidationError("Request validation failed.", errors=[e.model_dump() for e in errors])
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured body for router-level errors (unknown path, wrong method)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(kind=f"http_{exc.status_code}", message=str(exc.detail)).model_dump(exclude_none=True),
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Driver failures become a 500 storage_fault. The driver message stays in the log."""
    logger.exception("Storage fault on %s %s", request.method, request.url.path)
    fault = StorageFault("A storage error occurred.")
    return JSONResponse(status_code=fault.status_code, content=fault.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(kind="internal_error", message="An unexpected error occurred.").model_dump(
            exclude_none=True
        ),
    )


# ---------------------------------------------------------------------------
# Root banner and health
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "Task Server Ready"


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the database answers.

    No authentication -- load balancers and monitors must reach it.
    """
    try:
        database = "ok" if request.app.state.task_store.ping() else "error"
    except SQLAlchemyError:
        logger.warning("Health check: database ping failed")
        database = "error"
    return HealthResponse(version=__version__, components={"app": "ok", "database": database})
