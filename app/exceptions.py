# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized error shapes for the gateway.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Handler groups own their own errors; only the failures produced by the
# gateway itself (CORS, body size, database availability) live here.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class GatewayException(Exception):
    """
    Base exception for the API gateway.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "GATEWAY_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        """Render as a JSON response (used by ASGI middleware outside the router)."""
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


# =============================================================================
# Transport Exceptions
# =============================================================================

class CorsOriginDeniedError(GatewayException):
    """Describes a cross-origin request from an origin the policy rejects."""

    def __init__(self, origin: str):
        super().__init__(
            message="Not allowed by CORS",
            code="CORS_ORIGIN_DENIED",
            status_code=403,
            suggestion="Add the origin to FRONTEND_URL or FRONTEND_DOMAIN",
            details={"origin": origin}
        )


class PayloadTooLargeError(GatewayException):
    """Describes a request body over the configured size limit."""

    def __init__(self, max_bytes: int):
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(
            message=f"Request body too large (max: {max_mb:g}MB)",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            suggestion=f"Send a request body smaller than {max_mb:g}MB",
            details={"max_bytes": max_bytes}
        )


# =============================================================================
# Database Exceptions
# =============================================================================

class DatabaseUnavailableError(GatewayException):
    """Raised when no pooled connection can be provided to a request."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Database unavailable: {error}",
            code="DATABASE_UNAVAILABLE",
            status_code=503,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def gateway_exception_handler(
    request: Request,
    exc: GatewayException
) -> JSONResponse:
    """
    Convert GatewayException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return exc.to_response()
