# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the API gateway:
# - test_config.py: Settings parsing and derived values
# - test_cors.py: Origin policy decisions and CORS headers
# - test_routing.py: Route table resolution and handler group loading
# - test_database.py: Connection pool behaviour (with fake connections)
# - test_app.py: End-to-end requests through the assembled application
#
# Run tests with: pytest
# =============================================================================
