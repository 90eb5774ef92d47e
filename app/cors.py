# =============================================================================
# app/cors.py - Cross-Origin Policy
# =============================================================================
# Decides which browser origins may call the API.
#
# The allow-list is built once from settings into an immutable CorsConfig.
# CorsPolicy.evaluate() returns a plain ALLOW/DENY decision; the middleware
# is the only place that turns DENY into an HTTP error.
#
# Usage:
#   policy = CorsPolicy(CorsConfig.from_settings(settings))
#   policy.evaluate("http://localhost:3000")   # CorsDecision.ALLOW
# =============================================================================

import logging
from dataclasses import dataclass
from enum import Enum

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from app.config import Settings
from app.exceptions import CorsOriginDeniedError

logger = logging.getLogger(__name__)

LOCAL_DEVELOPMENT_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3001",
)

# Preview and production deployments on Vercel get fresh hostnames
TRUSTED_ORIGIN_SUBSTRINGS = ("vercel.app", "vercel.dev")

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization")


class CorsDecision(str, Enum):
    """Outcome of evaluating a request origin."""
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is CorsDecision.ALLOW


@dataclass(frozen=True)
class CorsConfig:
    """
    Immutable CORS configuration.

    Attributes:
        allowed_origins: Exact origins accepted (scheme + host[:port])
        allow_any_origin: Development bypass; accept every origin
        trusted_substrings: Origins containing any of these are accepted
    """
    allowed_origins: tuple[str, ...] = LOCAL_DEVELOPMENT_ORIGINS
    allow_any_origin: bool = False
    trusted_substrings: tuple[str, ...] = TRUSTED_ORIGIN_SUBSTRINGS

    @classmethod
    def from_settings(cls, settings: Settings) -> "CorsConfig":
        """
        Build the allow-list from settings.

        Deployment host and identifier are published without a scheme,
        so they are allowed as https:// origins. Unset values are dropped.
        """
        candidates = [
            *LOCAL_DEVELOPMENT_ORIGINS,
            settings.FRONTEND_URL,
            f"https://{settings.VERCEL_URL}" if settings.VERCEL_URL else None,
            f"https://{settings.VERCEL}" if settings.VERCEL else None,
            settings.FRONTEND_DOMAIN,
        ]
        origins = tuple(dict.fromkeys(origin for origin in candidates if origin))

        return cls(
            allowed_origins=origins,
            allow_any_origin=settings.cors_allow_any_origin,
        )


class CorsPolicy:
    """Evaluates request origins against a CorsConfig."""

    def __init__(self, config: CorsConfig):
        self.config = config
        self._allowed = frozenset(config.allowed_origins)

    def evaluate(self, origin: str | None) -> CorsDecision:
        """
        Decide whether a request from `origin` may proceed.

        Args:
            origin: Value of the Origin header, or None when absent

        Returns:
            CorsDecision.ALLOW or CorsDecision.DENY
        """
        # Non-browser clients (curl, mobile apps) send no Origin
        if not origin:
            return CorsDecision.ALLOW

        if origin in self._allowed:
            return CorsDecision.ALLOW

        if self.config.allow_any_origin:
            return CorsDecision.ALLOW

        if any(fragment in origin for fragment in self.config.trusted_substrings):
            return CorsDecision.ALLOW

        return CorsDecision.DENY


class CorsPolicyMiddleware(CORSMiddleware):
    """
    Starlette CORS middleware driven by a CorsPolicy.

    Starlette handles preflight and response headers; this subclass swaps its
    origin check for the policy and rejects denied origins with a 403 before
    the request reaches any route.
    """

    def __init__(self, app: ASGIApp, policy: CorsPolicy):
        super().__init__(
            app,
            allow_origins=(),
            allow_methods=ALLOWED_METHODS,
            allow_headers=ALLOWED_HEADERS,
            allow_credentials=True,
        )
        self.policy = policy

    def is_allowed_origin(self, origin: str) -> bool:
        return self.policy.evaluate(origin).allowed

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            origin = Headers(scope=scope).get("origin")
            if self.policy.evaluate(origin) is CorsDecision.DENY:
                logger.warning(f"Rejected cross-origin request from {origin} to {scope.get('path')}")
                response = CorsOriginDeniedError(origin).to_response()
                await response(scope, receive, send)
                return

        await super().__call__(scope, receive, send)
