"""
Companion API — Response Envelope Schemas
==========================================

What:  Pydantic models for the uniform JSON envelope every handler returns.
How:   Builders in responses.py instantiate these and serialize with
       `exclude_unset=True`, so a field appears only when the handler set it,
       and a field explicitly set to None is kept as `null`.

Shapes:
    success:  {"success": true, "data"?: ..., "url"?: ..., "key"?: ..., "message"?: ...}
    failure:  {"success": false, "error": "<message>"}
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SuccessEnvelope(BaseModel):
    """
    What:  Successful handler result.
    Who:   Every handler on the happy path, and "get" handlers on a missing row
           (`data: null` / `url: null`).
    """
    success: bool = Field(default=True)
    data: Any = Field(default=None, description="Record, list of records, or null")
    url: Optional[str] = Field(default=None, description="Public URL of a stored object")
    key: Optional[str] = Field(default=None, description="Storage key of a stored object")
    message: Optional[str] = Field(default=None, description="Human-readable note")


class ErrorEnvelope(BaseModel):
    """
    What:  Failure envelope for 400/401/403/405/500 responses.

    Example:
        {"success": false, "error": "File must be an image"}
    """
    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error description")


class InitializeResults(BaseModel):
    tables: Dict[str, str] = Field(default_factory=dict)
    buckets: Dict[str, str] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)


class InitializeResponse(BaseModel):
    """
    What:  Aggregate result of platform initialization.
    HTTP:  200 when `errors` is empty, 207 (Multi-Status) otherwise.
    """
    success: bool
    message: str
    results: InitializeResults
    timestamp: datetime


class HealthResponse(BaseModel):
    """Health check response: process status plus platform configuration."""
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    platform: str = Field(description="Platform configuration: configured, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")


class CreateTableResponse(BaseModel):
    """
    Example:
        {"success": true, "message": "Table user_banners created or already exists", "created": false}
    """
    success: bool = Field(default=True)
    message: str
    created: bool = Field(description="True only when this call created the table")
