"""Translate application errors into HTTP errors."""

from fastapi import HTTPException

from aitasky.core.exceptions import AITaskyError, IntegrityError


def to_http_exception(error: AITaskyError) -> HTTPException:
    """
    Map an application error to an HTTPException with a user-safe detail.

    Integrity failures get a fixed message; the caller should re-enter the key.
    """
    if isinstance(error, IntegrityError):
        provider = error.context.get("provider")
        detail = "Stored API key could not be verified; please save it again"
        if provider:
            detail = f"Stored API key for {provider} could not be verified; please save it again"
        return HTTPException(status_code=error.status_code, detail=detail)

    return HTTPException(status_code=error.status_code, detail=error.message)
