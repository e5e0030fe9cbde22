"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.admin_routes import router as admin_router
from app.api.catalog_routes import router as catalog_router
from app.api.prep_routes import router as prep_router
from app.api.profile_routes import router as profile_router
from app.api.reading_routes import router as reading_router
from app.api.suggestion_routes import router as suggestion_router
from app.api.task_routes import router as task_router
from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    BookPrepperError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.infrastructure.database.connection import init_db

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting BookPrepper application")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down BookPrepper application")


app = FastAPI(
    title="BookPrepper",
    description="Reading prep catalog with reader feedback and moderated suggestions",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------
def _error_body(error: str, exc: BookPrepperError, details: dict | None = None) -> dict:
    return {"error": error, "message": exc.message, "details": details or {}}


_STATUS_BY_ERROR: list[tuple[type[BookPrepperError], int, str]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ConflictError, status.HTTP_409_CONFLICT, "conflict"),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "authentication_error"),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN, "permission_denied"),
]


@app.exception_handler(BookPrepperError)
async def bookprepper_error_handler(request: Request, exc: BookPrepperError) -> JSONResponse:
    for error_type, status_code, error in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code, error = status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"

    details = {"field": exc.field} if isinstance(exc, ValidationError) and exc.field else None
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.context)
    else:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=_error_body(error, exc, details), headers=headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "An unexpected error occurred", "details": {}},
    )


app.include_router(catalog_router)
app.include_router(prep_router)
app.include_router(suggestion_router)
app.include_router(profile_router)
app.include_router(reading_router)
app.include_router(admin_router)
app.include_router(task_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
