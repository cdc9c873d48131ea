"""
FastAPI exception handlers that map repository-level exceptions to HTTP responses.

Status codes and payloads come from the exceptions themselves
(`http_status()` / `to_payload()`); the handlers only log and wrap.

    ValidationError   -> 422  {"detail", "code", "fields", "errors"}
    NotFoundError     -> 404
    EditConflictError -> 409
    DuplicateError    -> 409
    StoreError        -> 500  (timeouts included; detail is generic)

Register from the app factory:

    app = FastAPI()
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from appletree.exceptions.base import (
    DuplicateError,
    EditConflictError,
    NotFoundError,
    RepositoryError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

INTERNAL_DETAIL = "The server encountered a problem and could not process your request"


def _respond(exc: RepositoryError, content: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status(), content=content or exc.to_payload())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("ValidationError for %s %s: fields=%s", request.method, request.url.path, exc.fields)
    return _respond(exc)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("NotFoundError for %s %s", request.method, request.url.path)
    return _respond(exc)


async def edit_conflict_handler(request: Request, exc: EditConflictError) -> JSONResponse:
    logger.info("EditConflictError for %s %s", request.method, request.url.path)
    return _respond(exc)


async def duplicate_error_handler(request: Request, exc: DuplicateError) -> JSONResponse:
    logger.info("DuplicateError for %s %s: fields=%s", request.method, request.url.path, exc.fields)
    return _respond(exc)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """
    500 for store failures. The message may name driver exception types, so
    it is logged but not returned.
    """
    logger.error(
        "StoreError for %s %s: %s", request.method, request.url.path, exc,
        exc_info=exc.__cause__,
    )
    return _respond(exc, {"detail": INTERNAL_DETAIL, "code": exc.error_code})


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Fallback for anything else in the taxonomy; status comes from error_code (400 if unknown)."""
    logger.warning("RepositoryError for %s %s: %s", request.method, request.url.path, exc)
    return _respond(exc)


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette resolves handlers along the MRO, so DuplicateError wins over StoreError
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(EditConflictError, edit_conflict_handler)
    app.add_exception_handler(DuplicateError, duplicate_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
