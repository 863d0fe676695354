import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import IntegrityError, ProgrammingError, SQLAlchemyError

from .api.router import router as api_router
from .config import settings
from .database import check_database_connection, engine
from .errors import (
    AppError,
    ConflictError,
    InternalError,
    ValidationError,
    error_for_status,
    error_payload,
)
from .infrastructure.redis import close_redis, init_redis
from .security.sessions import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
    build_session_manager,
)

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


log_level = _resolve_log_level(log_level_name)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
logger = logging.getLogger("progestor")
logger.setLevel(log_level)


def _health_response(status_text: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_text})


def _install_session_manager(app: FastAPI, store: SessionStore) -> None:
    app.state.session_manager = build_session_manager(
        store,
        secret=settings.session_secret,
        cookie_name=settings.session_cookie_name,
        max_age_seconds=settings.session_max_age_seconds,
        production=settings.is_production,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application (environment=%s)", settings.environment)
    if settings.debug:
        logger.warning("DEBUG=true, do not use in production")

    await check_database_connection(engine)

    if settings.is_production:
        redis_client = await init_redis(settings.redis_url)
        _install_session_manager(app, RedisSessionStore(redis_client))
        logger.info("Sessions stored in Redis")
    else:
        logger.info("Sessions stored in process memory")

    yield

    await close_redis()
    await engine.dispose()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
_install_session_manager(app, MemorySessionStore())

# Convert allowed_origins to a set for O(1) lookup performance in middleware
_allowed_origins_set = set(settings.allowed_origins)


class OptionsPreflightMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle OPTIONS preflight requests before they reach CORSMiddleware.
    Returns 204 for every OPTIONS request so disallowed origins never see a 400.
    Allowed origins still get proper CORS headers from this middleware.
    """
    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            origin = request.headers.get("origin")
            response = Response(status_code=status.HTTP_204_NO_CONTENT)

            if origin and origin in _allowed_origins_set:
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Credentials"] = "true"
                response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"

                # Echo requested headers back, otherwise fall back to a safe allowlist
                requested_headers = request.headers.get("access-control-request-headers")
                if requested_headers:
                    response.headers["Access-Control-Allow-Headers"] = requested_headers
                else:
                    response.headers["Access-Control-Allow-Headers"] = "content-type"

                response.headers["Access-Control-Max-Age"] = "600"
                response.headers["Vary"] = "Origin"

            return response

        return await call_next(request)


# Add CORSMiddleware first (runs last), then OptionsPreflightMiddleware (runs first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(OptionsPreflightMiddleware)

app.include_router(api_router)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: object = None,
    *,
    exc: Exception | None = None,
    log_message: str | None = None,
) -> JSONResponse:
    request_id = request.headers.get("x-request-id") or "n/a"
    line = f"[{code}] path={request.url.path} request_id={request_id} message={log_message or message}"
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(line, exc_info=exc)
    else:
        logger.warning(line, exc_info=exc)
    return JSONResponse(status_code=status_code, content=error_payload(code, message, details))


def _canonical_error(detail: object) -> dict[str, object] | None:
    """An ``{"error": {...}}`` body already in canonical shape, if ``detail`` is one."""
    error = detail.get("error") if isinstance(detail, dict) else None
    if not isinstance(error, dict):
        return None
    if not isinstance(error.get("code"), str) or not isinstance(error.get("message"), str):
        return None
    return error


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.code, exc.message, exc.details, exc=exc)


# Registered on Starlette's class so routing errors (404, 405) and FastAPI's
# HTTPException subclass share one handler.
@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error = _canonical_error(exc.detail)
    if error is not None:
        return _error_response(
            request, exc.status_code, error["code"], error["message"], error.get("details")
        )
    error_cls = error_for_status(exc.status_code)
    detail = exc.detail if isinstance(exc.detail, str) else None
    return _error_response(
        request,
        exc.status_code,
        error_cls.code,
        error_cls.message,
        exc.detail,
        log_message=detail.strip() if detail else None,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationError.code,
        "Request validation failed",
        jsonable_encoder(exc.errors()),
    )


@app.exception_handler(ValueError)
async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    reason = str(exc).strip() or "Invalid request"
    return _error_response(
        request, status.HTTP_400_BAD_REQUEST, ValidationError.code, "Invalid request", reason, exc=exc
    )


@app.exception_handler(IntegrityError)
async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    # Unique races that slip past the service-level existence checks
    return _error_response(
        request,
        status.HTTP_409_CONFLICT,
        ConflictError.code,
        "Request could not be completed due to a conflict",
        exc=exc,
    )


@app.exception_handler(ProgrammingError)
async def handle_programming_error(request: Request, exc: ProgrammingError) -> JSONResponse:
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.code,
        "Database not initialized. Run the migrations.",
        exc=exc,
    )


@app.exception_handler(Exception)
async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.code,
        InternalError.message,
        exc=exc,
    )


@app.get("/health", tags=["health"])
async def healthcheck() -> Response:
    try:
        await check_database_connection(engine)
    except SQLAlchemyError as exc:
        logger.error("Healthcheck database probe failed: %s", exc)
        return _health_response("error", status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.debug("Healthcheck passed")
    return _health_response("ok", status.HTTP_200_OK)
