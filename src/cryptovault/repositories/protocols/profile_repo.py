"""Profile repository protocol."""

from typing import Protocol, Optional

from cryptovault.domain.models import Profile


class ProfileRepository(Protocol):
    """Interface for user profile data access."""

    def create(self, profile: Profile) -> Profile:
        """Persist a new profile."""
        ...

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        """Retrieve profile by user ID."""
        ...

    def get_many(self, user_ids: list[str]) -> dict[str, Profile]:
        """Retrieve several profiles keyed by user ID."""
        ...
