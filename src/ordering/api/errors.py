"""Maps ordering exceptions onto HTTP responses.

Every error body has the shape ``{"error": {"field": ["reason"]}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.exceptions import ValidationError as FieldValidationError

from ordering.exceptions import (
    NotFoundError,
    OrderingError,
    PersistenceConflictError,
    UnauthorizedOrderAccessError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (UnauthorizedOrderAccessError, 403),
    (PersistenceConflictError, 409),
)


def status_code_for(exc: OrderingError) -> int:
    for exc_cls, status_code in _STATUS_CODES:
        if isinstance(exc, exc_cls):
            return status_code
    return 400


async def _ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code == 409:
        logger.warning("Request failed on a persistent conflict", path=request.url.path, error=exc.messages)
    return JSONResponse(status_code=status_code, content={"error": exc.messages})


async def _field_validation_handler(request: Request, exc: FieldValidationError) -> JSONResponse:
    messages = exc.messages if isinstance(exc.messages, dict) else {"_entity": [str(exc)]}
    return JSONResponse(status_code=400, content={"error": messages})


async def _not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": {"_entity": [str(exc)]}})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderingError, _ordering_error_handler)
    app.add_exception_handler(FieldValidationError, _field_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, _not_found_handler)
