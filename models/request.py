# models/request.py

from datetime import datetime
from typing import Annotated, FrozenSet, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import (
    RequestAction,
    RequestCategory,
    RequestPriority,
    RequestStatus,
    display_status,
)


def _parse_z(v):
    """Normalize timestamps like "2025-01-01T00:00:00Z"."""
    if isinstance(v, str) and v.endswith("Z"):
        return v.replace("Z", "+00:00")
    return v


# -------------------------------------------------
# Assignee: closed tagged union on `kind`
# -------------------------------------------------
class InternalUserAssignee(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["internal_user"] = "internal_user"
    id: str


class VendorAssignee(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["vendor"] = "vendor"
    id: str


Assignee = Annotated[
    Union[InternalUserAssignee, VendorAssignee],
    Field(discriminator="kind"),
]


# -------------------------------------------------
# Public link + feedback value objects
# -------------------------------------------------
class PublicLink(BaseModel):
    token: str
    expires_at: Optional[datetime] = None

    @field_validator("expires_at", mode="before")
    def parse_expires_at(cls, v):
        return _parse_z(v)


class Feedback(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    submitted_by: str
    submitted_at: datetime


# -------------------------------------------------
# Maintenance request (stored entity)
# -------------------------------------------------
class MaintenanceRequest(BaseModel):
    id: str
    property_id: str
    unit_id: Optional[str] = None     # None → property-wide request

    title: str
    description: Optional[str] = None
    status: RequestStatus = RequestStatus.new
    priority: RequestPriority = RequestPriority.medium
    category: RequestCategory = RequestCategory.general

    created_by: str
    assigned_to: Optional[Assignee] = None
    media: List[str] = Field(default_factory=list)
    public_link: Optional[PublicLink] = None
    feedback: Optional[Feedback] = None

    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    # Optimistic concurrency marker
    version: int = 1

    @field_validator("created_at", "updated_at", "resolved_at", mode="before")
    def parse_timestamps(cls, v):
        return _parse_z(v)

    @property
    def is_property_wide(self) -> bool:
        return self.unit_id is None


# -------------------------------------------------
# Create Request
# -------------------------------------------------
class RequestCreate(BaseModel):
    """
    Client sends this when creating a request.
    Backend sets id, status, created_by and timestamps.
    """
    property_id: str
    unit_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    priority: RequestPriority = RequestPriority.medium
    category: RequestCategory = RequestCategory.general
    media: List[str] = Field(default_factory=list)

    @field_validator("property_id", "title", mode="before")
    def strip_required(cls, v):
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    # Empty string → None (property-wide)
    @field_validator("unit_id", mode="before")
    def blank_unit_is_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @field_validator("priority", "category", mode="before")
    def lowercase_enums(cls, v):
        if isinstance(v, str):
            return v.strip().lower().replace(" ", "_")
        return v


# -------------------------------------------------
# Update Request (editable fields only)
# -------------------------------------------------
class RequestUpdate(BaseModel):
    """
    Partial edit. Status, assignee and public link have their own operations
    and are rejected here.
    """
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    priority: Optional[RequestPriority] = None
    category: Optional[RequestCategory] = None
    version: int

    @field_validator("priority", "category", mode="before")
    def lowercase_enums(cls, v):
        if isinstance(v, str):
            return v.strip().lower().replace(" ", "_")
        return v


# -------------------------------------------------
# Operation payloads
# -------------------------------------------------
class StatusTransition(BaseModel):
    status: RequestStatus
    version: int

    @field_validator("status", mode="before")
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower().replace(" ", "_")
        return v


class VersionedAction(BaseModel):
    """Body for the single-purpose transition endpoints."""
    version: int


class AssignPayload(BaseModel):
    assignee: Assignee
    version: int


class PublicLinkEnable(BaseModel):
    expires_in_days: Optional[int] = None
    version: Optional[int] = None


class PublicLinkDisable(BaseModel):
    version: Optional[int] = None


class MediaAdd(BaseModel):
    urls: List[str] = Field(..., min_length=1)
    version: int


class MediaRemove(BaseModel):
    url: str
    version: int


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    version: int


# -------------------------------------------------
# Public (token holder) view
# -------------------------------------------------
class PublicRequestView(BaseModel):
    """What an anonymous link holder may see. No link, no feedback, no creator."""
    id: str
    property_id: str
    unit_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: RequestStatus
    status_display: str
    priority: RequestPriority
    category: RequestCategory
    media: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_request(cls, request: MaintenanceRequest) -> "PublicRequestView":
        return cls(
            id=request.id,
            property_id=request.property_id,
            unit_id=request.unit_id,
            title=request.title,
            description=request.description,
            status=request.status,
            status_display=display_status(request.status),
            priority=request.priority,
            category=request.category,
            media=list(request.media),
            created_at=request.created_at,
            updated_at=request.updated_at,
        )


class PublicRequestAccess(BaseModel):
    """Result of verifying a public token: the request and what the holder may do."""
    model_config = ConfigDict(frozen=True)

    request: MaintenanceRequest
    capabilities: FrozenSet[RequestAction]

    def allows(self, action: RequestAction) -> bool:
        return action in self.capabilities
