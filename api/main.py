"""
api/main.py -- FastAPI application entry point for myFlix.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for the configured browser origins
  2. log_requests   -- one access-log line per request

Lifespan opens the user and movie stores on startup and disposes their
connection pools on shutdown.

Error mapping (all bodies are JSON):
  ValidationError             -> 422 {"errors": [{"field", "message"}]}
  RequestValidationError      -> 422 same shape
  AuthenticationError         -> 400 {"message": "Authentication failed: ..."}
  Unauthenticated/Invalid/ExpiredToken -> 401 one generic body, reason logged only
  HTTPException               -> {"error": {"code", "message"}}
  anything else               -> 500 generic body, traceback logged
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
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, FieldErrorItem, HealthResponse, ValidationErrorResponse
from api.routes.auth import router as auth_router
from api.routes.movies import router as movies_router
from api.routes.users import router as users_router
from auth.errors import AuthenticationError, TokenError, ValidationError
from auth.store import UserStore
from catalog.store import MovieStore
from core.config import get_settings

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("myflix.api")
access_logger = logging.getLogger("myflix.access")

_settings = get_settings()

if _settings.access_log_path:
    _file_handler = logging.FileHandler(_settings.access_log_path, encoding="utf-8")
    _file_handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    access_logger.addHandler(_file_handler)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the stores before the first request and dispose them after the last.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("myFlix API starting up")
    app.state.user_store = UserStore()
    app.state.movie_store = MovieStore()
    logger.info("Stores initialized (%s)", app.state.user_store.engine.url.get_backend_name())

    yield

    app.state.user_store.close()
    app.state.movie_store.close()
    logger.info("myFlix API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="myFlix API",
    description="Movie catalogue with user accounts, favourites and bearer-token authentication.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    access_logger.info(
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
app.include_router(users_router, tags=["Users"])
app.include_router(movies_router, tags=["Movies"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(ValidationError)
async def input_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Return 422 with every rejected field. Raised before any store call."""
    body = ValidationErrorResponse(errors=[FieldErrorItem(field=e.field, message=e.message) for e in exc.errors])
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 in the same shape as input_validation_handler.

    loc is ("body", "Birthday") for a body field, ("path", "movie_id") for a
    path parameter; the leading location segment is dropped when a field name
    follows it.
    """
    items = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc) or "request"
        items.append(FieldErrorItem(field=field, message=err.get("msg", "Invalid value")))
    return JSONResponse(status_code=422, content=ValidationErrorResponse(errors=items).model_dump())


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Bad credentials. Same body whether the username exists or not."""
    resp = JSONResponse(status_code=400, content={"message": f"Authentication failed: {exc}"})
    resp.headers["Cache-Control"] = "no-store"
    return resp


@app.exception_handler(TokenError)
async def token_error_handler(request: Request, exc: TokenError) -> JSONResponse:
    """Collapse missing, invalid and expired tokens into one 401.

    The specific reason goes to the log only; clients get no hint about which
    check failed.
    """
    logger.info("Token rejected on %s %s: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    resp = _error(401, "unauthorized", "Authentication required.")
    resp.headers["WWW-Authenticate"] = "Bearer"
    return resp


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a {"code", "message"} dict as
    detail. When detail is already a dict, use it directly as the error field.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    resp = _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        resp.headers.update(exc.headers)
    return resp


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors, storage failures included.

    The raw exception is logged, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "Welcome to myFlix app!"


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and a database round-trip check."""
    components = {"app": "ok"}
    try:
        ok = request.app.state.user_store.ping() and request.app.state.movie_store.ping()
        components["database"] = "ok" if ok else "error"
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        components["database"] = "error"
    status = "healthy" if components["database"] == "ok" else "degraded"
    return HealthResponse(status=status, version=API_VERSION, components=components)
