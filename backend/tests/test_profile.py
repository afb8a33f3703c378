"""
Companion API — Profile Tests
==============================

Test Strategy:
    ✅ Section selector parsing (default, unknown, last_active on read)
    ✅ Missing record reads as data: null
    ✅ Updates return the updated row; protected fields rejected
    ✅ last_active stamps user_profiles.last_active_at
"""

import pytest

from companion_api.exceptions import UpstreamError, ValidationError
from companion_api.schemas.requests import ProfileSection
from companion_api.services.profile_service import ProfileService, parse_section
from tests.conftest import USER_ID


class TestParseSection:
    """Parsing of the profile type selector."""

    def test_default_is_profile(self):
        """A missing type selects the profile section."""
        assert parse_section(None) is ProfileSection.PROFILE
        assert parse_section("") is ProfileSection.PROFILE

    def test_known_sections(self):
        """Known type names map to their sections."""
        assert parse_section("preferences") is ProfileSection.PREFERENCES
        assert parse_section("stats") is ProfileSection.STATS

    def test_unknown_section_rejected(self):
        """Unknown types are validation errors."""
        with pytest.raises(ValidationError, match="Invalid type 'settings'"):
            parse_section("settings")

    def test_last_active_only_for_updates(self):
        """last_active is accepted only for updates."""
        with pytest.raises(ValidationError):
            parse_section("last_active")
        assert parse_section("last_active", allow_last_active=True) is ProfileSection.LAST_ACTIVE


class TestProfileService:
    """ProfileService against the fake platform."""

    @pytest.mark.asyncio
    async def test_get_missing_profile_is_none(self, platform, caller):
        """A missing profile reads as None."""
        assert await ProfileService(platform).get(caller, ProfileSection.PROFILE) is None

    @pytest.mark.asyncio
    async def test_get_preferences_ensures_both_tables(self, platform, fake_platform, caller):
        """Reading preferences ensures the profile and preferences tables."""
        fake_platform.table("user_preferences").append({"user_id": USER_ID, "theme": "dark"})

        row = await ProfileService(platform).get(caller, ProfileSection.PREFERENCES)

        assert row["theme"] == "dark"
        rpc_paths = [r.url.path for r in fake_platform.requests_to("POST", "/rest/v1/rpc/")]
        assert rpc_paths == [
            "/rest/v1/rpc/create_table_user_profiles",
            "/rest/v1/rpc/create_table_user_preferences",
        ]

    @pytest.mark.asyncio
    async def test_ensure_failure_does_not_block_read(self, platform, fake_platform, caller):
        """A failed table ensure does not block the read."""
        fake_platform.missing_rpcs.add("create_table_user_profiles")
        fake_platform.table("user_profiles").append({"id": USER_ID, "display_name": "Sam"})

        row = await ProfileService(platform).get(caller, ProfileSection.PROFILE)

        assert row["display_name"] == "Sam"

    @pytest.mark.asyncio
    async def test_get_failure_surfaces_message(self, platform, fake_platform, caller):
        """Record errors surface with the section label."""
        fake_platform.fail("GET", "/rest/v1/user_stats", status=500, message="relation does not exist")

        with pytest.raises(UpstreamError, match="Failed to fetch user stats: relation does not exist"):
            await ProfileService(platform).get(caller, ProfileSection.STATS)

    @pytest.mark.asyncio
    async def test_update_returns_row(self, platform, fake_platform, caller):
        """Updates return and persist the changed row."""
        fake_platform.table("user_stats").append({"user_id": USER_ID, "streak": 1})

        row = await ProfileService(platform).update(caller, ProfileSection.STATS, {"streak": 2})

        assert row["streak"] == 2
        assert fake_platform.tables["user_stats"][0]["streak"] == 2

    @pytest.mark.asyncio
    async def test_update_without_row_fails(self, platform, caller):
        """Updating a missing row is an upstream error."""
        with pytest.raises(UpstreamError, match="Failed to update user preferences"):
            await ProfileService(platform).update(caller, ProfileSection.PREFERENCES, {"theme": "light"})

    @pytest.mark.asyncio
    async def test_protected_field_rejected(self, platform, fake_platform, caller):
        """Owner columns cannot be updated."""
        with pytest.raises(ValidationError, match="protected field"):
            await ProfileService(platform).update(caller, ProfileSection.PREFERENCES, {"user_id": "someone-else"})
        assert fake_platform.requests == []

    @pytest.mark.asyncio
    async def test_empty_updates_rejected(self, platform, caller):
        """An empty updates object is rejected."""
        with pytest.raises(ValidationError, match="updates"):
            await ProfileService(platform).update(caller, ProfileSection.PROFILE, {})

    @pytest.mark.asyncio
    async def test_touch_last_active(self, platform, fake_platform, caller):
        """last_active stamps last_active_at on the profile."""
        fake_platform.table("user_profiles").append({"id": USER_ID, "last_active_at": None})

        await ProfileService(platform).touch_last_active(caller)

        assert fake_platform.tables["user_profiles"][0]["last_active_at"] is not None


class TestProfileEndpoints:
    """get-user-profile and update-user-profile through the app."""

    @pytest.mark.asyncio
    async def test_get_profile_missing_is_data_null(self, test_client, auth_headers):
        """A missing profile returns data null."""
        response = await test_client.get("/api/get-user-profile", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": None}

    @pytest.mark.asyncio
    async def test_get_stats_by_query(self, test_client, auth_headers, fake_platform):
        """type=stats selects the stats section."""
        fake_platform.table("user_stats").append({"user_id": USER_ID, "matches": 4})

        response = await test_client.get("/api/get-user-profile?type=stats", headers=auth_headers)

        assert response.json()["data"]["matches"] == 4

    @pytest.mark.asyncio
    async def test_get_unknown_type_is_400(self, test_client, auth_headers):
        """An unknown type returns the 400 envelope."""
        response = await test_client.get("/api/get-user-profile?type=secrets", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_update_profile_via_patch(self, test_client, auth_headers, fake_platform):
        """PATCH updates the profile."""
        fake_platform.table("user_profiles").append({"id": USER_ID, "bio": ""})

        response = await test_client.patch(
            "/api/update-user-profile",
            headers=auth_headers,
            json={"type": "profile", "updates": {"bio": "hello"}},
        )

        assert response.status_code == 200
        assert response.json()["data"]["bio"] == "hello"

    @pytest.mark.asyncio
    async def test_update_last_active(self, test_client, auth_headers, fake_platform):
        """type=last_active returns the confirmation message."""
        fake_platform.table("user_profiles").append({"id": USER_ID})

        response = await test_client.post(
            "/api/update-user-profile", headers=auth_headers, json={"type": "last_active"}
        )

        assert response.json() == {"success": True, "message": "Last active updated"}
        assert "last_active_at" in fake_platform.tables["user_profiles"][0]

    @pytest.mark.asyncio
    async def test_update_invalid_json_is_400(self, test_client, auth_headers):
        """Malformed JSON returns the 400 envelope."""
        response = await test_client.post(
            "/api/update-user-profile",
            headers={**auth_headers, "Content-Type": "application/json"},
            content=b"{broken",
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid JSON body"}

    @pytest.mark.asyncio
    async def test_update_cannot_change_owner(self, test_client, auth_headers, fake_platform):
        """Changing the owner id is rejected and the row is untouched."""
        fake_platform.table("user_profiles").append({"id": USER_ID})

        response = await test_client.post(
            "/api/update-user-profile",
            headers=auth_headers,
            json={"updates": {"id": "hijack"}},
        )

        assert response.status_code == 400
        assert fake_platform.tables["user_profiles"][0]["id"] == USER_ID
