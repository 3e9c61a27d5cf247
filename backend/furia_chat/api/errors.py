"""
JSON:API error documents and application-wide exception handlers.
"""

import logging
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..models.schemas import ErrorDocument, ErrorObject

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_DETAIL = "An unexpected internal error occurred."


def status_title(status_code: int) -> str:
    """Human-readable status name, e.g. 503 -> "Service Unavailable"."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def json_api_error(status_code: int, detail: str, title: Optional[str] = None) -> JSONResponse:
    """Build a ``{"errors": [{status, title, detail}]}`` response."""
    document = ErrorDocument(errors=[
        ErrorObject(
            status=str(status_code),
            title=title or status_title(status_code),
            detail=detail,
        )
    ])
    return JSONResponse(status_code=status_code, content=document.model_dump())


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if first.get("type") == "missing":
        return f"Missing required parameter: {location or 'request body'}"
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON."
    if location:
        return f"Invalid parameter {location}: {first.get('msg', 'invalid value')}"
    return f"Invalid request body: {first.get('msg', 'invalid value')}"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = _describe_validation_error(exc)
    logger.warning(f"Rejected request {request.method} {request.url.path}: {detail}")
    return json_api_error(400, detail)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Full detail goes to the log only
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc!r}",
        exc_info=exc,
    )
    return json_api_error(500, UNEXPECTED_ERROR_DETAIL)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
