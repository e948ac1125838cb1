"""Uniform JSON envelopes for every API response.

All shapes carry a ``status`` discriminator (``success`` | ``error``).
"""

import math
from typing import Any


def format_success(data: Any, message: str = "Operation successful", status_code: int = 200) -> dict:
    return {
        "status": "success",
        "statusCode": status_code,
        "message": message,
        "data": data,
    }


def format_error(
    message: str = "Internal server error",
    status_code: int = 500,
    error: Any = None,
    debug: bool = False,
) -> dict:
    """Error envelope.

    ``error`` detail is only attached when ``debug`` is set (development
    mode), so internals never leak from production deployments.
    """
    response = {
        "status": "error",
        "statusCode": status_code,
        "message": message,
    }
    if error is not None and debug:
        response["error"] = error
    return response


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


def format_pagination(
    data: list,
    total: int,
    page: int,
    limit: int,
    message: str = "Data retrieved successfully",
) -> dict:
    response = {
        "status": "success",
        "statusCode": 200,
        "message": message,
        "results": len(data),
        "totalItems": total,
        "currentPage": page,
        "totalPages": total_pages(total, limit),
        "data": data,
    }
    return response
