"""Per-user visibility toggles for data sources."""

import logging
import threading
from datetime import datetime
from typing import Optional

from cryptovault.domain.views import OWN_SOURCE_ID, DataSource
from cryptovault.repositories.protocols import KeyValueRepository
from cryptovault.services.access_grant_service import AccessGrantService

logger = logging.getLogger(__name__)


class DataVisibilityService:
    """
    Lets a user hide a source from combined views without touching the grant.

    Toggles persist in key-value storage under ``visibility.<user_id>``.
    Own entries are visible by default; shared sources start hidden until
    the user switches them on.
    """

    # Shared by every instance: one is built per request
    _write_lock = threading.Lock()

    def __init__(self, storage: KeyValueRepository, grant_service: AccessGrantService):
        self._storage = storage
        self._grant_service = grant_service

    @staticmethod
    def _key(user_id: str) -> str:
        return f"visibility.{user_id}"

    @staticmethod
    def default_visibility(source_id: str) -> bool:
        return source_id == OWN_SOURCE_ID

    def _load(self, user_id: str) -> dict[str, bool]:
        data = self._storage.get(self._key(user_id))
        if not isinstance(data, dict):
            return {}
        return {str(k): bool(v) for k, v in data.items()}

    def is_visible(self, user_id: str, source_id: str) -> bool:
        return self._load(user_id).get(source_id, self.default_visibility(source_id))

    def visible_source_ids(self, user_id: str, source_ids: list[str]) -> set[str]:
        """Subset of source_ids the user currently has switched on."""
        toggles = self._load(user_id)
        return {s for s in source_ids if toggles.get(s, self.default_visibility(s))}

    def set_visible(self, user_id: str, source_id: str, visible: bool) -> bool:
        with self._write_lock:
            return self._update(user_id, source_id, lambda current: visible)

    def toggle(self, user_id: str, source_id: str) -> bool:
        with self._write_lock:
            return self._update(user_id, source_id, lambda current: not current)

    def _update(self, user_id: str, source_id: str, change) -> bool:
        toggles = self._load(user_id)
        visible = change(toggles.get(source_id, self.default_visibility(source_id)))
        toggles[source_id] = visible
        self._storage.set(self._key(user_id), toggles)
        logger.debug("User %s: source %s visible=%s", user_id, source_id, visible)
        return visible

    def list_sources(self, user_id: str, now: Optional[datetime] = None) -> list[DataSource]:
        """Own source plus one per active grant where the user is viewer."""
        listing = self._grant_service.list_grants(user_id, now)
        toggles = self._load(user_id)

        sources = [
            DataSource(
                source_id=OWN_SOURCE_ID,
                label="My entries",
                is_visible=toggles.get(OWN_SOURCE_ID, True),
            )
        ]
        for grant in listing.viewable:
            label = grant.sharer.username if grant.sharer else grant.sharer_id
            sources.append(
                DataSource(
                    source_id=grant.id,
                    label=f"Shared by {label}",
                    is_visible=toggles.get(grant.id, False),
                    is_shared=True,
                    grant_id=grant.id,
                    sharer=grant.sharer,
                    expires_at=grant.expires_at,
                )
            )
        return sources
