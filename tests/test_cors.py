# =============================================================================
# tests/test_cors.py - Cross-Origin Policy Tests
# =============================================================================
# Unit tests for allow-list construction and origin decisions.
# HTTP-level CORS behaviour is covered in test_app.py.
# =============================================================================

import pytest

from app.cors import (
    ALLOWED_HEADERS,
    ALLOWED_METHODS,
    LOCAL_DEVELOPMENT_ORIGINS,
    CorsConfig,
    CorsDecision,
    CorsPolicy,
)


# =============================================================================
# Allow-list Construction
# =============================================================================

class TestCorsConfig:
    """Tests for CorsConfig.from_settings."""

    def test_defaults_are_local_development_origins(self, make_settings):
        """Test that only the two localhost origins are allowed by default."""
        config = CorsConfig.from_settings(make_settings())

        assert config.allowed_origins == LOCAL_DEVELOPMENT_ORIGINS
        assert config.allow_any_origin is False

    def test_environment_origins_are_added(self, make_settings):
        """Test that frontend and deployment origins join the allow-list."""
        settings = make_settings(
            FRONTEND_URL="https://codevimarsh.example",
            FRONTEND_DOMAIN="https://www.codevimarsh.example",
            VERCEL_URL="codevimarsh-git-main.vercel.app",
            VERCEL="codevimarsh-prod",
        )

        config = CorsConfig.from_settings(settings)

        assert config.allowed_origins == (
            "http://localhost:3000",
            "http://localhost:3001",
            "https://codevimarsh.example",
            "https://codevimarsh-git-main.vercel.app",
            "https://codevimarsh-prod",
            "https://www.codevimarsh.example",
        )

    def test_empty_values_are_dropped(self, make_settings):
        """Test that blank settings don't produce allow-list entries."""
        settings = make_settings(FRONTEND_URL="", VERCEL_URL="", FRONTEND_DOMAIN=None)

        config = CorsConfig.from_settings(settings)

        assert config.allowed_origins == LOCAL_DEVELOPMENT_ORIGINS
        assert "https://" not in config.allowed_origins

    def test_duplicates_collapse(self, make_settings):
        """Test that an origin configured twice appears once."""
        settings = make_settings(FRONTEND_URL="http://localhost:3000")

        config = CorsConfig.from_settings(settings)

        assert config.allowed_origins.count("http://localhost:3000") == 1

    def test_development_mode_enables_bypass(self, make_settings):
        """Test that NODE_ENV=development turns the bypass on."""
        config = CorsConfig.from_settings(make_settings(NODE_ENV="development"))
        assert config.allow_any_origin is True

    def test_explicit_flag_overrides_mode(self, make_settings):
        """Test that CORS_ALLOW_ANY_ORIGIN wins over NODE_ENV."""
        dev_locked = make_settings(NODE_ENV="development", CORS_ALLOW_ANY_ORIGIN=False)
        prod_open = make_settings(NODE_ENV="production", CORS_ALLOW_ANY_ORIGIN=True)

        assert CorsConfig.from_settings(dev_locked).allow_any_origin is False
        assert CorsConfig.from_settings(prod_open).allow_any_origin is True

    def test_config_is_immutable(self):
        """Test that the config can't be changed after construction."""
        config = CorsConfig()
        with pytest.raises(AttributeError):
            config.allow_any_origin = True


# =============================================================================
# Origin Decisions
# =============================================================================

class TestCorsPolicy:
    """Tests for CorsPolicy.evaluate."""

    @pytest.fixture
    def policy(self):
        return CorsPolicy(CorsConfig(
            allowed_origins=(*LOCAL_DEVELOPMENT_ORIGINS, "https://codevimarsh.example"),
        ))

    @pytest.mark.parametrize("origin", [None, ""])
    def test_missing_origin_is_allowed(self, policy, origin):
        """Test that non-browser clients (no Origin) are allowed."""
        assert policy.evaluate(origin) is CorsDecision.ALLOW

    @pytest.mark.parametrize("origin", [
        "http://localhost:3000",
        "http://localhost:3001",
        "https://codevimarsh.example",
    ])
    def test_listed_origin_is_allowed(self, policy, origin):
        assert policy.evaluate(origin) is CorsDecision.ALLOW

    @pytest.mark.parametrize("origin", [
        "https://preview-123.vercel.app",
        "https://codevimarsh-git-feature.vercel.dev",
    ])
    def test_vercel_origin_is_allowed(self, policy, origin):
        """Test that Vercel deployments are trusted without being listed."""
        assert policy.evaluate(origin) is CorsDecision.ALLOW

    @pytest.mark.parametrize("origin", [
        "http://evil.example",
        "http://localhost:3002",
        "https://codevimarsh.example.evil.com",
        "null",
    ])
    def test_unlisted_origin_is_denied(self, policy, origin):
        assert policy.evaluate(origin) is CorsDecision.DENY

    def test_match_is_exact(self, policy):
        """Test that a trailing slash or different scheme doesn't match."""
        assert policy.evaluate("https://codevimarsh.example/") is CorsDecision.DENY
        assert policy.evaluate("http://codevimarsh.example") is CorsDecision.DENY

    def test_bypass_allows_any_origin(self):
        """Test that the development bypass accepts everything."""
        policy = CorsPolicy(CorsConfig(allow_any_origin=True))
        assert policy.evaluate("http://evil.example") is CorsDecision.ALLOW

    def test_decision_allowed_property(self):
        assert CorsDecision.ALLOW.allowed is True
        assert CorsDecision.DENY.allowed is False


def test_fixed_methods_and_headers():
    """Test the fixed method and header lists."""
    assert ALLOWED_METHODS == ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    assert ALLOWED_HEADERS == ("Content-Type", "Authorization")
