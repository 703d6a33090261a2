"""Combines own entries with entries shared through active grants."""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from cryptovault.core.exceptions import translate_store_errors
from cryptovault.core.timezone import now_utc, to_utc
from cryptovault.domain.models import AccessGrant, Entry
from cryptovault.domain.views import OWN_SOURCE_ID, SourcedEntry
from cryptovault.repositories.protocols import EntryRepository
from cryptovault.services.access_grant_service import AccessGrantService
from cryptovault.services.visibility_service import DataVisibilityService

logger = logging.getLogger(__name__)


def grant_allows(grant: AccessGrant, entry: Entry) -> bool:
    """True if the grant's filters admit this entry of the sharer."""
    if entry.owner_id != grant.sharer_id or entry.is_personal:
        return False
    if entry.entry_type not in grant.shared_types:
        return False
    date = to_utc(entry.date)
    if grant.date_from and date < to_utc(grant.date_from):
        return False
    if grant.date_to and date > to_utc(grant.date_to):
        return False
    if grant.min_pnl is not None and entry.pnl < grant.min_pnl:
        return False
    return True


def combine_sources(
    viewer_id: str,
    own_entries: list[Entry],
    shared_batches: dict[str, list[Entry]],
    grants: list[AccessGrant],
    visible_sources: set[str],
    now: datetime,
) -> list[SourcedEntry]:
    """
    Merge a snapshot of entries into one stream, newest first.

    Applies every access rule again regardless of how the batches were
    obtained: a batch is used only if its grant is active at ``now``,
    names the viewer and is visible, and each entry must pass the grant's
    filters.
    """
    combined: list[SourcedEntry] = []
    if OWN_SOURCE_ID in visible_sources:
        combined.extend(
            SourcedEntry(entry=e) for e in own_entries if e.owner_id == viewer_id
        )

    for grant in grants:
        if grant.viewer_id != viewer_id or not grant.is_active(now):
            continue
        if grant.id not in visible_sources:
            continue
        for entry in shared_batches.get(grant.id, []):
            if grant_allows(grant, entry):
                combined.append(
                    SourcedEntry(
                        entry=entry,
                        source_id=grant.id,
                        is_shared=True,
                        sharer=grant.sharer,
                    )
                )

    combined.sort(key=lambda s: to_utc(s.date), reverse=True)
    return combined


class SharedEntryCache:
    """
    In-process cache of shared entry batches per grant.

    Entries are keyed by grant id and the grant's filter values, so
    editing a grant's filters forces a refetch. Batches are only ever
    read back through combine_sources.
    """

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.time):
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._batches: dict[str, tuple[float, tuple, list[Entry]]] = {}

    @staticmethod
    def _signature(grant: AccessGrant) -> tuple:
        return (
            grant.sharer_id,
            tuple(sorted(t.value for t in grant.shared_types)),
            grant.date_from,
            grant.date_to,
            grant.min_pnl,
        )

    def get(self, grant: AccessGrant) -> Optional[list[Entry]]:
        with self._lock:
            cached = self._batches.get(grant.id)
            if cached is None:
                return None
            fetched_at, signature, entries = cached
            if signature != self._signature(grant) or self._clock() - fetched_at >= self._ttl:
                del self._batches[grant.id]
                return None
            return list(entries)

    def put(self, grant: AccessGrant, entries: list[Entry]) -> None:
        with self._lock:
            self._batches[grant.id] = (self._clock(), self._signature(grant), list(entries))

    def invalidate(self, grant_id: Optional[str] = None) -> None:
        with self._lock:
            if grant_id is None:
                self._batches.clear()
            else:
                self._batches.pop(grant_id, None)


class EntryAggregator:
    """
    Builds a user's combined entry stream from own and shared sources.

    Store calls gather a snapshot; combine_sources then decides what the
    user may see. A shared source whose query fails is skipped so the
    remaining sources still load.
    """

    def __init__(
        self,
        entry_repo: EntryRepository,
        grant_service: AccessGrantService,
        visibility_service: DataVisibilityService,
        shared_cache: Optional[SharedEntryCache] = None,
    ):
        self._entry_repo = entry_repo
        self._grant_service = grant_service
        self._visibility = visibility_service
        self._shared_cache = shared_cache or SharedEntryCache()

    def get_combined_entries(self, user_id: str, now: Optional[datetime] = None) -> list[SourcedEntry]:
        now = now or now_utc()
        grants = self._grant_service.list_grants(user_id, now).viewable
        visible = self._visibility.visible_source_ids(
            user_id, [OWN_SOURCE_ID] + [g.id for g in grants]
        )

        own_entries: list[Entry] = []
        if OWN_SOURCE_ID in visible:
            with translate_store_errors("list own entries"):
                own_entries = self._entry_repo.list_by_owner(user_id)

        shared_batches: dict[str, list[Entry]] = {}
        for grant in grants:
            if grant.id not in visible:
                continue
            batch = self._load_shared(grant)
            if batch is not None:
                shared_batches[grant.id] = batch

        return combine_sources(user_id, own_entries, shared_batches, grants, visible, now)

    def get_shared_entries(self, user_id: str, now: Optional[datetime] = None) -> list[SourcedEntry]:
        """Only the shared part of the combined stream."""
        return [s for s in self.get_combined_entries(user_id, now) if s.is_shared]

    def _load_shared(self, grant: AccessGrant) -> Optional[list[Entry]]:
        cached = self._shared_cache.get(grant)
        if cached is not None:
            return cached
        try:
            entries = self._entry_repo.query(
                owner_id=grant.sharer_id,
                entry_types=grant.shared_types,
                date_from=grant.date_from,
                date_to=grant.date_to,
                min_pnl=grant.min_pnl,
                include_personal=False,
            )
        except Exception:
            logger.exception("Failed to load entries shared through grant %s", grant.id)
            return None
        self._shared_cache.put(grant, entries)
        return entries
