"""
Companion API — Application Envelope & CORS Tests
==================================================

What:  Behavior owned by main.py and the middleware chain rather than by any
       one handler: preflight, CORS headers, method checks, request ids,
       configuration errors, health.
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from companion_api.config import Settings
from companion_api.main import create_app
from tests.conftest import BASE_URL, SERVICE_KEY

ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"


class TestPreflight:
    """OPTIONS requests answered by the CORS middleware."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        ["/api/upload-banner", "/api/get-user-profile", "/api/send-message", "/api/initialize"],
    )
    async def test_options_short_circuits(self, test_client, fake_platform, path):
        """OPTIONS returns 200 with CORS headers and never reaches the platform."""
        response = await test_client.options(path)

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-headers"] == ALLOWED_HEADERS
        assert fake_platform.requests == []

    @pytest.mark.asyncio
    async def test_options_needs_no_token_on_unknown_path(self, test_client):
        """OPTIONS on an unrouted path is still a bare 200."""
        response = await test_client.options("/api/does-not-exist")
        assert response.status_code == 200


class TestMethodNotAllowed:
    """Methods outside a handler's set get the 405 envelope."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/upload-banner"),
            ("PUT", "/api/update-user-profile"),
            ("GET", "/api/send-message"),
            ("POST", "/api/delete-banner"),
            ("DELETE", "/api/get-companions"),
            ("GET", "/api/initialize"),
        ],
    )
    async def test_wrong_method_is_405_envelope(self, test_client, auth_headers, method, path):
        """Wrong methods return 405 with the failure envelope."""
        response = await test_client.request(method, path, headers=auth_headers)

        assert response.status_code == 405
        assert response.json() == {"success": False, "error": "Method not allowed"}
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_unknown_path_is_404_envelope(self, test_client):
        """Unknown paths return 404 with the failure envelope."""
        response = await test_client.get("/api/nope")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestResponseHeaders:
    """CORS and request-id headers on ordinary responses."""

    @pytest.mark.asyncio
    async def test_success_carries_cors_headers(self, test_client, auth_headers):
        """Successful responses carry the CORS headers."""
        response = await test_client.get("/api/get-banner", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-headers"] == ALLOWED_HEADERS

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        """A request id is generated when the client sends none."""
        response = await test_client.get("/health")
        assert len(response.headers["x-request-id"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        """A client-supplied request id is echoed back."""
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["x-request-id"] == "trace-42"


class TestConfiguration:
    """Settings resolution and missing-configuration handling."""

    @pytest.mark.asyncio
    async def test_missing_platform_settings_is_500(self, fake_platform):
        """Missing platform settings produce the configuration 500."""
        settings = Settings(_env_file=None, supabase_url=BASE_URL, supabase_service_role_key=SERVICE_KEY)
        app = create_app(settings, transport=httpx.MockTransport(fake_platform))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/get-banner", headers={"Authorization": "Bearer user-token"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Server configuration error: Missing required environment variables",
        }
        assert fake_platform.requests == []

    @pytest.mark.asyncio
    async def test_initialize_does_not_need_anon_key(self, fake_platform):
        """Setup endpoints run with only the service-role key."""
        settings = Settings(_env_file=None, supabase_url=BASE_URL, supabase_service_role_key=SERVICE_KEY)
        app = create_app(settings, transport=httpx.MockTransport(fake_platform))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/initialize")

        assert response.status_code == 200

    def test_bucket_resolution_order(self):
        """Specific bucket override beats the shared one, which beats the default."""
        settings = Settings(_env_file=None, storage_bucket="shared", banner_bucket="custom-banners")

        assert settings.bucket_for(settings.banner_bucket, "banners") == "custom-banners"
        assert settings.bucket_for(settings.avatar_bucket, "avatars") == "shared"
        assert Settings(_env_file=None).bucket_for(None, "avatars") == "avatars"

    def test_url_trailing_slash_stripped(self):
        """Trailing slashes are removed from the platform URL."""
        assert Settings(_env_file=None, supabase_url="https://x.test/ ").supabase_url == "https://x.test"

    def test_invalid_log_level_rejected(self):
        """Unknown log levels fail settings validation."""
        with pytest.raises(ValueError):
            Settings(_env_file=None, log_level="chatty")


class TestHealth:
    """The /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_configured(self, test_client):
        """Health reports healthy when the platform is configured."""
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["platform"] == "configured"
        assert body["uptime_seconds"] >= 0

    @pytest.mark.asyncio
    async def test_health_unconfigured(self, fake_platform):
        """Health reports degraded when platform settings are missing."""
        app = create_app(Settings(_env_file=None), transport=httpx.MockTransport(fake_platform))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")

        assert response.json()["status"] == "degraded"
