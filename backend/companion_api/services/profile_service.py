"""
Companion API — Profile Service
================================

What:  Reads and updates the caller's profile, preferences, and stats records.
How:   Each ProfileSection maps to one table keyed by the caller id. The
       section is chosen before any remote call; the owner column is never
       writable from a request body.
Who:   routes/profile.py

Sections:
    profile      → user_profiles     (id = caller)
    preferences  → user_preferences  (user_id = caller)
    stats        → user_stats        (user_id = caller)
    last_active  → stamps user_profiles.last_active_at (update only)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional

from companion_api.exceptions import UpstreamError, ValidationError
from companion_api.platform import PlatformClient, PlatformError
from companion_api.schemas.caller import Caller
from companion_api.schemas.requests import ProfileSection
from companion_api.services.schema_service import ensure_tables

logger = logging.getLogger(__name__)

PROFILE_TABLE = "user_profiles"


@dataclass(frozen=True)
class SectionSpec:
    label: str
    table: str
    owner_column: str
    protected_fields: FrozenSet[str]


SECTIONS: Dict[ProfileSection, SectionSpec] = {
    ProfileSection.PROFILE: SectionSpec(
        label="profile",
        table=PROFILE_TABLE,
        owner_column="id",
        protected_fields=frozenset({"id"}),
    ),
    ProfileSection.PREFERENCES: SectionSpec(
        label="preferences",
        table="user_preferences",
        owner_column="user_id",
        protected_fields=frozenset({"id", "user_id"}),
    ),
    ProfileSection.STATS: SectionSpec(
        label="stats",
        table="user_stats",
        owner_column="user_id",
        protected_fields=frozenset({"id", "user_id"}),
    ),
}


def parse_section(raw: Optional[str], allow_last_active: bool = False) -> ProfileSection:
    """
    Parse an operation selector; None/empty means PROFILE.

    Raises:
        ValidationError for unknown values (and for last_active on reads).
    """
    if not raw:
        return ProfileSection.PROFILE
    try:
        section = ProfileSection(raw)
    except ValueError:
        raise ValidationError(f"Invalid type '{raw}'", field="type")
    if section is ProfileSection.LAST_ACTIVE and not allow_last_active:
        raise ValidationError("Invalid type 'last_active' for this operation", field="type")
    return section


class ProfileService:
    """Caller-scoped profile record access."""

    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def get(self, caller: Caller, section: ProfileSection) -> Optional[Dict[str, Any]]:
        """The caller's record for `section`, or None when it does not exist yet."""
        spec = SECTIONS.get(section)
        if spec is None:
            raise ValidationError(f"Invalid type '{section.value}' for this operation", field="type")

        tables = [PROFILE_TABLE]
        if spec.table != PROFILE_TABLE:
            tables.append(spec.table)
        await ensure_tables(self.platform, *tables)

        try:
            return await self.platform.service().records.select_one(
                spec.table, eq={spec.owner_column: caller.id}
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch user {spec.label}: {exc.message}")

    async def update(
        self,
        caller: Caller,
        section: ProfileSection,
        updates: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        """
        Apply `updates` to the caller's record for `section` and return the row.

        Raises:
            ValidationError: no updates, or an attempt to change a protected field
            UpstreamError:   the store rejected the update or no row matched
        """
        spec = SECTIONS[section]
        if not updates:
            raise ValidationError("Missing required field: updates", field="updates")

        protected = sorted(spec.protected_fields.intersection(updates))
        if protected:
            raise ValidationError(
                f"Cannot update protected field(s): {', '.join(protected)}",
                field="updates",
                context={"protected": protected},
            )

        await ensure_tables(self.platform, spec.table)

        try:
            row = await self.platform.service().records.update_one(
                spec.table, dict(updates), eq={spec.owner_column: caller.id}
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to update user {spec.label}: {exc.message}")

        logger.info("Updated %s for %s (%s)", spec.table, caller.id, ", ".join(sorted(updates)))
        return row

    async def touch_last_active(self, caller: Caller) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            await self.platform.service().records.update(
                PROFILE_TABLE, {"last_active_at": now}, eq={"id": caller.id}
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to update last active: {exc.message}")
