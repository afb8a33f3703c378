"""
Caller identity resolved from a verified bearer token.

Lives for one request. `id` is the only authorization key handlers use to
address the caller's own records.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Caller(BaseModel):
    id: str = Field(description="Platform user id of the caller")
    email: Optional[str] = Field(default=None)
    token: str = Field(description="Raw bearer token, forwarded for caller-credential storage calls", repr=False)
