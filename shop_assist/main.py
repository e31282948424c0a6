import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from shop_assist.api.router import api_router
from shop_assist.core.config import get_settings
from shop_assist.core.db import engine, init_db
from shop_assist.core.errors import ConflictError, ShopAssistError, TransientStoreError
from shop_assist.core.logging import configure_logging, get_logger

configure_logging()
settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)
    if settings.db_auto_create:
        await init_db()
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_request_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.debug("RID:%s START %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "RID:%s %s %s -> %s",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "N/A")


def _error_response(exc: ShopAssistError, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
        headers=headers,
    )


@app.exception_handler(ShopAssistError)
async def shop_assist_error_handler(request: Request, exc: ShopAssistError) -> JSONResponse:
    logger.info(
        "RID:%s %s on %s %s: %s",
        _request_id(request),
        exc.kind,
        request.method,
        request.url.path,
        exc.message,
    )
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    logger.info(
        "RID:%s Validation error on %s %s: %s",
        _request_id(request),
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "error": "validation_error"},
    )


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def transient_store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "RID:%s Data store unavailable during %s %s: %s",
        _request_id(request),
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return _error_response(TransientStoreError(), headers={"Retry-After": "1"})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "RID:%s Integrity error during %s %s: %s",
        _request_id(request),
        request.method,
        request.url.path,
        exc.orig,
    )
    return _error_response(ConflictError())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "RID:%s Unhandled exception during %s %s: %s",
        _request_id(request),
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred.", "error": "unexpected_error"},
    )


app.include_router(api_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
