"""Pydantic schemas for profile summaries."""

from typing import Optional

from pydantic import BaseModel


class ProfileSummaryResponse(BaseModel):
    """Public profile bits attached to grants and shared entries."""

    model_config = {"from_attributes": True}

    user_id: str
    username: str
    avatar_url: Optional[str] = None
