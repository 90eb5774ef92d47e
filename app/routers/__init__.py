# =============================================================================
# app/routers/ - Built-in Route Definitions
# =============================================================================
# Routes the gateway serves itself:
# - health.py: Health check endpoint
#
# Business endpoints live in external handler groups, mounted by
# app/routing.py under their path prefixes.
# =============================================================================

from . import health

__all__ = [
    "health",
]
