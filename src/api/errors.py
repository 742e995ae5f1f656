"""
Translation of component validation errors into HTTP errors.
"""

from collections.abc import Iterable
from typing import Any, NoReturn

from fastapi import HTTPException, status

_CONFLICT_MARKERS = ("TAKEN", "EXISTS", "ALREADY", "INVALID_STATE", "INVALID_TRANSITION")


def status_for(code: str) -> int:
    upper = code.upper()
    if "NOT_FOUND" in upper:
        return status.HTTP_404_NOT_FOUND
    if upper in ("RATE_LIMIT", "RATE_LIMITED"):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if upper == "FORBIDDEN":
        return status.HTTP_403_FORBIDDEN
    if upper == "PAYMENT_UNAVAILABLE":
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if any(marker in upper for marker in _CONFLICT_MARKERS):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def error_dicts(errors: Iterable[Any]) -> list[dict[str, Any]]:
    return [
        {
            "code": getattr(e, "code", "error"),
            "message": getattr(e, "message", str(e)),
            "field": getattr(e, "field", None),
        }
        for e in errors
    ]


def raise_for_errors(errors: list[Any]) -> NoReturn:
    """Raise an HTTPException whose status follows the first error code."""
    code = getattr(errors[0], "code", "") if errors else ""
    raise HTTPException(status_code=status_for(code), detail={"errors": error_dicts(errors)})
