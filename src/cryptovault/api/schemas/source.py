"""Pydantic schemas for data source visibility endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from cryptovault.api.schemas.profile import ProfileSummaryResponse


class DataSourceResponse(BaseModel):
    """Own entries or one active grant, with its visibility toggle."""

    model_config = {"from_attributes": True}

    source_id: str
    label: str
    is_visible: bool
    is_shared: bool
    grant_id: Optional[str] = None
    sharer: Optional[ProfileSummaryResponse] = None
    expires_at: Optional[datetime] = None


class VisibilityUpdate(BaseModel):
    """Request schema for switching a source on or off."""

    is_visible: bool
