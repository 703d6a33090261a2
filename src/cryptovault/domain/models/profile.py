"""User profile domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ProfileSummary:
    """Public bits of a profile attached to grants and shared entries."""

    user_id: str
    username: str
    avatar_url: Optional[str] = None


@dataclass
class Profile:
    """A registered user."""

    user_id: str
    username: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)

    def summary(self) -> ProfileSummary:
        return ProfileSummary(
            user_id=self.user_id,
            username=self.username,
            avatar_url=self.avatar_url,
        )
