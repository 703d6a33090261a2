"""Access grant repository protocol."""

from typing import Protocol, Optional

from cryptovault.domain.models import AccessGrant, GrantStatus


class GrantRepository(Protocol):
    """Interface for access grant data access."""

    def create(self, grant: AccessGrant) -> AccessGrant:
        """Persist a new grant."""
        ...

    def get_by_id(self, grant_id: str) -> Optional[AccessGrant]:
        """Retrieve grant by ID, with profile summaries attached."""
        ...

    def list_for_user(self, user_id: str) -> list[AccessGrant]:
        """List grants where the user is sharer or viewer, newest first."""
        ...

    def find_between(self, viewer_id: str, sharer_id: str) -> list[AccessGrant]:
        """List every grant for a (viewer, sharer) pair."""
        ...

    def update_status(self, grant_id: str, status: GrantStatus) -> AccessGrant:
        """Transition a grant to a new status."""
        ...
