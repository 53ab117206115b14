"""
Sites API — Pydantic Request/Response Schemas
===============================================

What:  Pydantic models defining the API contract for site records.
Why:   Request bodies are validated at the boundary; malformed payloads are
       rejected with 400 before the data layer sees them.
How:   JSON uses camelCase (`provinceOrTerritoryCode`), Python uses
       snake_case. The alias generator maps between the two and
       `populate_by_name` lets services build models with Python names.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What clients send in bodies
# ══════════════════════════════════════════════════════════════════════════


class SiteCreate(BaseModel):
    """
    Body of POST /api/sites.

    Only `name` is required. Unknown keys are ignored so clients may send
    records they previously fetched (including `_id`) without error.
    """
    model_config = _CAMEL

    name: str = Field(min_length=1, max_length=255, description="Site name")
    description: Optional[str] = Field(default=None, description="Free-text description")
    year: Optional[int] = Field(default=None, description="Year associated with the site")
    town: Optional[str] = Field(default=None, max_length=255)
    province_or_territory_code: Optional[str] = Field(
        default=None, max_length=10, description="Province or territory code, e.g. ON"
    )
    image: Optional[str] = Field(default=None, max_length=512, description="Image URL")
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class SiteUpdate(BaseModel):
    """
    Body of PUT /api/sites/{id}.

    Every field is optional; only the keys present in the body are applied
    (`model_dump(exclude_unset=True)`).
    """
    model_config = _CAMEL

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    year: Optional[int] = None
    town: Optional[str] = Field(default=None, max_length=255)
    province_or_territory_code: Optional[str] = Field(default=None, max_length=10)
    image: Optional[str] = Field(default=None, max_length=512)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        """A site always has a name; an explicit null cannot clear it."""
        if v is None:
            raise ValueError("name cannot be null")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class SiteResponse(BaseModel):
    """
    Full representation of a site.
    Returned by POST /api/sites, GET /api/sites and GET /api/sites/{id}.
    """
    model_config = _CAMEL

    id: str = Field(alias="_id", description="Store-assigned identifier")
    name: str
    description: Optional[str] = None
    year: Optional[int] = None
    town: Optional[str] = None
    province_or_territory_code: Optional[str] = None
    image: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime = Field(description="When the site was created (UTC ISO 8601)")


class SiteUpdateResult(BaseModel):
    """
    Result of PUT /api/sites/{id}.

    matchedCount is 0 when no site has the identifier; the request still
    succeeds (the update is a no-op).
    """
    model_config = _CAMEL

    acknowledged: bool = True
    matched_count: int = 0
    modified_count: int = 0


# ══════════════════════════════════════════════════════════════════════════
# Administrative & Error Models
# ══════════════════════════════════════════════════════════════════════════


class RootResponse(BaseModel):
    """Static identification payload served at GET /."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    term: str
    student: str
    learn_id: str = Field(alias="learnID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    store_ready: bool = Field(description="Whether the sites store finished initializing")
    uptime_seconds: float = Field(description="Seconds since service started")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "page and perPage must be valid numbers",
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[List[dict]] = Field(default=None, description="Field-level problems")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
