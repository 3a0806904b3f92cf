"""
Uniform JSON envelope for every endpoint.
Success: {success: true, message, data?, pagination?}. Failure: {success: false, message, error?}.
The front-end pattern-matches on `success`, so field names and messages are part of the contract.
"""
import math
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _envelope(success: bool, message: str, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": success, "message": message}
    for key, value in extra.items():
        if value is not None:
            body[key] = value
    return body


def pagination_meta(page: int, limit: int, total: int) -> dict:
    """{page, limit, total, totalPages} with totalPages = ceil(total / limit)."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit > 0 else 0,
    }


def send_success(message: str, data: Any = None, status_code: int = status.HTTP_200_OK, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(_envelope(True, message, data=data, **extra)))


def send_created(message: str, data: Any = None) -> JSONResponse:
    return send_success(message, data, status_code=status.HTTP_201_CREATED)


def send_paginated(message: str, data: list, page: int, limit: int, total: int) -> JSONResponse:
    body = _envelope(True, message, data=data, pagination=pagination_meta(page, limit, total))
    return JSONResponse(status_code=status.HTTP_200_OK, content=jsonable_encoder(body))


def send_error(message: str, error: str | None = None, status_code: int = status.HTTP_400_BAD_REQUEST, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(_envelope(False, message, error=error, **extra)))


def send_server_error(message: str = "Internal server error", error: str | None = None) -> JSONResponse:
    return send_error(message, error=error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def send_not_found(message: str = "Resource not found", **extra: Any) -> JSONResponse:
    return send_error(message, status_code=status.HTTP_404_NOT_FOUND, **extra)


def send_unauthorized(message: str = "Unauthorized access") -> JSONResponse:
    return send_error(message, status_code=status.HTTP_401_UNAUTHORIZED)


def send_forbidden(message: str = "Forbidden access") -> JSONResponse:
    return send_error(message, status_code=status.HTTP_403_FORBIDDEN)
