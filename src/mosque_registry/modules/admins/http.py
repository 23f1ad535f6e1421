"""
HTTP mapping for lifecycle results.

Routers call ``raise_for_result`` on every TransitionResult; errors become
HTTPException with the usual ``{"error", "message"}`` detail plus the
error's context.
"""

from fastapi import HTTPException, Request

from mosque_registry.modules.admins.errors import LifecycleError
from mosque_registry.modules.admins.service import TransitionResult


def client_ip(request: Request) -> str | None:
    """Caller address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def error_to_http(error: LifecycleError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={
            "error": error.error_code,
            "message": error.message,
            **error.context,
        },
    )


def raise_for_result(result: TransitionResult) -> TransitionResult:
    """Return ``result`` unchanged, or raise its error as an HTTPException."""
    if result.error is not None:
        raise error_to_http(result.error)
    return result
