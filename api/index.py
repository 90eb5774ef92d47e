# =============================================================================
# api/index.py - Serverless Entry Point
# =============================================================================
# Vercel's Python runtime serves modules in api/ as functions and picks up
# the ASGI application named `app`.
# =============================================================================

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.main import app  # noqa: E402

__all__ = ["app"]
