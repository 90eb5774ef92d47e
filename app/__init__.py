# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the API gateway:
# - main.py: App factory, middleware setup, error handlers
# - config.py: Environment variable loading and settings
# - cors.py: Cross-origin policy and its middleware
# - routing.py: Route table, handler group loading, static uploads
# - middleware.py: Body size limit and request logging
# - routers/: Endpoints the gateway serves itself (health check)
#
# The app layer is thin - business endpoints come from external handler
# groups mounted under fixed prefixes.
# =============================================================================
