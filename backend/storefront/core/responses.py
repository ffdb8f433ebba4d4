"""
Uniform JSON envelope for every API response.

Success: {"success": true, "message", "data", "statusCode"}
Error:   {"success": false, "message", "error", "statusCode"}
"""

from enum import Enum
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import ORJSONResponse


class Message(str, Enum):
    """Standard response messages."""

    FETCH = "Data fetched successfully"
    CREATE = "Record created successfully"
    UPDATE = "Record updated successfully"
    DELETE = "Record deleted successfully"
    SERVER_ERROR = "Internal server error"
    NOT_FOUND = "Resource not found"
    VALIDATION_FAILED = "Validation failed"
    UNAUTHORIZED = "Unauthorized access"
    FORBIDDEN = "Access denied"
    CONFLICT = "Resource already exists"
    INSUFFICIENT_STOCK = "Insufficient stock"


def success_response(
    data: Any = None,
    message: Message | str = Message.FETCH,
    status_code: int = 200,
) -> ORJSONResponse:
    """Wrap a payload in the success envelope."""
    return ORJSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message.value if isinstance(message, Message) else message,
            "data": jsonable_encoder(data),
            "statusCode": status_code,
        },
    )


def error_response(
    message: Message | str,
    status_code: int,
    error: Any = None,
) -> ORJSONResponse:
    """Wrap an error detail in the error envelope."""
    return ORJSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message.value if isinstance(message, Message) else message,
            "error": jsonable_encoder(error),
            "statusCode": status_code,
        },
    )
