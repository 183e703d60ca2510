"""
FastAPI exception handlers that map repository-level exceptions to HTTP responses.

Repositories raise common_repository.exceptions.base.* exceptions; these handlers
produce stable JSON payloads (via .to_payload()) and HTTP codes (via .http_status()):

    DuplicateError     -> 409  {"detail": "...", "code": "duplicate", "fields": [...]}
    InvalidFieldError  -> 422
    NotFoundError      -> 404
    RepositoryError    -> 400 (or the status mapped from its error_code)

Register once in the app factory:

    app = FastAPI()
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging
from ..exceptions.base import (
    RepositoryError,
    DuplicateError,
    InvalidFieldError,
    NotFoundError
)

logger = logging.getLogger(__name__)


# Most specific first (DuplicateError, InvalidFieldError, NotFoundError).
# Mapping to status and body lives on the exception classes.

async def duplicate_error_handler(request: Request, exc: DuplicateError) -> JSONResponse:
    # Never log raw DB messages here, the exception no longer carries them
    logger.info("DuplicateError for %s %s", request.method, request.url.path, extra={"fields": exc.fields})
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def invalid_field_handler(request: Request, exc: InvalidFieldError) -> JSONResponse:
    logger.info("InvalidFieldError for %s %s", request.method, request.url.path, extra={"fields": exc.fields})
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("NotFoundError for %s %s", request.method, request.url.path, extra={"fields": exc.fields})
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """
    Fallback for general repository errors -> 400 by default (or code-defined status).
    """
    logger.warning("RepositoryError for %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DuplicateError, duplicate_error_handler)
    app.add_exception_handler(InvalidFieldError, invalid_field_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
