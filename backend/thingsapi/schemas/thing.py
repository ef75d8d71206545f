"""
Things API: Pydantic Request/Response Schemas
===============================================

What:  Pydantic models defining the API contract.
How:   FastAPI validates request bodies against the *Params models; the
       response models document the JSON produced by the serializers in
       the generated OpenAPI document.

Request bodies may be flat (`{"name": "Widget"}`) or wrapped under the
singular root key (`{"thing": {"name": "Widget"}}`). Unknown keys are ignored,
so clients cannot set `id` or the timestamps.
"""

from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class WrappedParams(BaseModel):
    """Base for request bodies that accept an optional root key."""

    root_key: ClassVar[str] = ""

    @model_validator(mode="before")
    @classmethod
    def unwrap_root_key(cls, data: Any) -> Any:
        if (
            cls.root_key
            and isinstance(data, dict)
            and set(data) == {cls.root_key}
            and isinstance(data[cls.root_key], dict)
        ):
            return data[cls.root_key]
        return data


class ThingCreate(WrappedParams):
    """Body of POST /api/things."""

    root_key: ClassVar[str] = "thing"

    name: str = Field(max_length=255, description="Display name (required, not blank)")
    description: Optional[str] = Field(default=None, description="Free-form description")


class ThingUpdate(WrappedParams):
    """
    Body of PATCH/PUT /api/things/{id}.

    Both verbs apply a partial update: only keys present in the body change.
    """

    root_key: ClassVar[str] = "thing"

    name: Optional[str] = Field(default=None, max_length=255, description="New display name")
    description: Optional[str] = Field(default=None, description="New description")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ThingResponse(BaseModel):
    """JSON representation of a thing, in serializer key order."""

    id: Optional[int] = Field(description="Unique identifier (null for an unsaved thing)")
    name: Optional[str] = Field(description="Display name")
    description: Optional[str] = Field(default=None, description="Free-form description")
    created_at: Optional[str] = Field(description="Creation time, ISO 8601 UTC")
    updated_at: Optional[str] = Field(description="Last change, ISO 8601 UTC")
    url: Optional[str] = Field(description="Self link to this thing")


class RouteInfo(BaseModel):
    """One entry of GET /api/routes."""

    name: str
    verb: str
    path: str
    pattern: str
    action: str


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response.

    Example:
        {"error": "thing with ID '42' was not found", "request_id": "a1b2c3d4"}
    """
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class ValidationErrorResponse(BaseModel):
    """
    422 body with field-level messages.

    Example:
        {"error": {"name": ["can't be blank"]}, "request_id": "a1b2c3d4"}
    """
    error: Dict[str, List[str]] = Field(description="Messages keyed by field")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
