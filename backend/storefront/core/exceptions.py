"""
Domain exceptions and their HTTP handlers.

Services raise StorefrontError subclasses; the handlers registered by
register_exception_handlers() render them in the error envelope.
"""

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.core.responses import Message, error_response


class StorefrontError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    message: Message = Message.SERVER_ERROR

    def __init__(self, detail: Any = None) -> None:
        super().__init__(detail)
        self.detail = detail


class BadRequestError(StorefrontError):
    status_code = 400
    message = Message.VALIDATION_FAILED


class UnauthorizedError(StorefrontError):
    status_code = 401
    message = Message.UNAUTHORIZED


class ForbiddenError(StorefrontError):
    status_code = 403
    message = Message.FORBIDDEN


class NotFoundError(StorefrontError):
    status_code = 404
    message = Message.NOT_FOUND


class ConflictError(StorefrontError):
    status_code = 409
    message = Message.CONFLICT


class InsufficientStockError(StorefrontError):
    """Requested quantity exceeds what the product has in stock."""

    status_code = 400
    message = Message.INSUFFICIENT_STOCK


_HTTP_MESSAGES = {
    400: Message.VALIDATION_FAILED,
    401: Message.UNAUTHORIZED,
    403: Message.FORBIDDEN,
    404: Message.NOT_FOUND,
    409: Message.CONFLICT,
}


def _format_validation_errors(exc: RequestValidationError) -> list[str]:
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return errors


async def storefront_error_handler(
    request: Request, exc: StorefrontError
) -> ORJSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return error_response(exc.message, exc.status_code, exc.detail)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    message = _HTTP_MESSAGES.get(exc.status_code, Message.SERVER_ERROR)
    return error_response(message, exc.status_code, exc.detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    return error_response(
        Message.VALIDATION_FAILED, 400, _format_validation_errors(exc)
    )


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> ORJSONResponse:
    logger.opt(exception=exc).error(
        f"Unhandled error on {request.method} {request.url.path}"
    )
    return error_response(Message.SERVER_ERROR, 500, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach envelope-producing handlers to the application."""
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
