"""Access grant domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from cryptovault.core.timezone import to_utc
from cryptovault.domain.models.enums import EntryType, GrantStatus
from cryptovault.domain.models.profile import ProfileSummary


@dataclass
class GrantFilters:
    """Filters a viewer asks for when requesting access."""

    shared_types: list[EntryType] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_pnl: Optional[Decimal] = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        self.shared_types = [EntryType(t) if isinstance(t, str) else t for t in self.shared_types]


@dataclass
class AccessGrant:
    """
    Permission for a viewer to read a sharer's entries.

    At most one outstanding (not denied/revoked) grant exists per
    (viewer, sharer) pair. Expiry is enforced at read time.
    """

    id: str
    sharer_id: str
    viewer_id: str
    status: GrantStatus
    shared_types: list[EntryType] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_pnl: Optional[Decimal] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    sharer: Optional[ProfileSummary] = None
    viewer: Optional[ProfileSummary] = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = GrantStatus(self.status)
        self.shared_types = [EntryType(t) if isinstance(t, str) else t for t in self.shared_types]

    def is_active(self, now: datetime) -> bool:
        """Return True if granted and not yet expired at `now`."""
        if self.status != GrantStatus.GRANTED:
            return False
        return self.expires_at is None or to_utc(self.expires_at) > to_utc(now)

    @property
    def is_outstanding(self) -> bool:
        """Pending and granted grants block a new request for the same pair."""
        return self.status not in (GrantStatus.DENIED, GrantStatus.REVOKED)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sharer_id, self.viewer_id)
