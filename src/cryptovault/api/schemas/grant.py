"""Pydantic schemas for access grant endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from cryptovault.domain.models.enums import EntryType, GrantStatus
from cryptovault.api.schemas.profile import ProfileSummaryResponse


class AccessRequestCreate(BaseModel):
    """Request schema for asking another user to share their entries."""

    sharer_id: str = Field(..., description="User whose entries are requested")
    shared_types: list[EntryType] = Field(default_factory=list, description="Entry types to share")
    expires_at: Optional[datetime] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_pnl: Optional[Decimal] = None
    message: Optional[str] = Field(default=None, max_length=500)


class GrantResponse(BaseModel):
    """Response schema for a single grant."""

    model_config = {"from_attributes": True}

    id: str
    sharer_id: str
    viewer_id: str
    status: GrantStatus
    shared_types: list[EntryType]
    expires_at: Optional[datetime] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_pnl: Optional[Decimal] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sharer: Optional[ProfileSummaryResponse] = None
    viewer: Optional[ProfileSummaryResponse] = None


class GrantListResponse(BaseModel):
    """Grants involving the user, partitioned."""

    model_config = {"from_attributes": True}

    active: list[GrantResponse]
    incoming_pending: list[GrantResponse]
    outgoing_pending: list[GrantResponse]
