"""View models for aggregated entries and data sources."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from cryptovault.domain.models import AccessGrant, Entry, ProfileSummary

OWN_SOURCE_ID = "own"


@dataclass
class SourcedEntry:
    """An entry tagged with the data source it was read from."""

    entry: Entry
    source_id: str = OWN_SOURCE_ID
    is_shared: bool = False
    sharer: Optional[ProfileSummary] = None

    @property
    def date(self) -> datetime:
        return self.entry.date


@dataclass
class DataSource:
    """Own entries or one active grant, with the user's visibility toggle."""

    source_id: str
    label: str
    is_visible: bool
    is_shared: bool = False
    grant_id: Optional[str] = None
    sharer: Optional[ProfileSummary] = None
    expires_at: Optional[datetime] = None


@dataclass
class GrantListing:
    """Grants involving one user, partitioned by status and side."""

    user_id: str
    active: list[AccessGrant] = field(default_factory=list)
    incoming_pending: list[AccessGrant] = field(default_factory=list)
    outgoing_pending: list[AccessGrant] = field(default_factory=list)

    @property
    def viewable(self) -> list[AccessGrant]:
        """Active grants through which the user can read someone else's entries."""
        return [g for g in self.active if g.viewer_id == self.user_id]
