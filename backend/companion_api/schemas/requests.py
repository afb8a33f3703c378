"""
Companion API — Request Schemas
================================

What:  Pydantic models for JSON request bodies and the operation selectors.
How:   Route handlers parse the body *after* the caller is authenticated
       (see routes/_body.py), so a malformed body from an anonymous client
       still gets 401, not 400.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProfileSection(str, Enum):
    """
    Operation selector for the profile handlers.

    PROFILE, PREFERENCES and STATS address one record each; LAST_ACTIVE is an
    update-only variant that stamps `user_profiles.last_active_at`.
    """
    PROFILE = "profile"
    PREFERENCES = "preferences"
    STATS = "stats"
    LAST_ACTIVE = "last_active"


class UpdateProfileRequest(BaseModel):
    """
    Body of POST/PATCH /api/update-user-profile.

    Example:
        {"type": "preferences", "updates": {"theme": "dark"}}
    """
    type: ProfileSection = Field(default=ProfileSection.PROFILE)
    updates: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Column → value map; not used by the last_active variant",
    )


class SendMessageRequest(BaseModel):
    """
    Body of POST /api/send-message.

    conversation_id and content are optional at the schema level so the
    service can report both as one "Missing required fields" message.
    """
    conversation_id: Optional[str] = Field(default=None)
    content: Optional[str] = Field(default=None)
    message_type: str = Field(default="text")
    metadata: Dict[str, Any] = Field(default_factory=dict)
