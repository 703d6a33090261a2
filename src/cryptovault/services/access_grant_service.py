"""Access grant lifecycle: request, approve, deny, revoke."""

import logging
import uuid
from datetime import datetime
from typing import Optional

from cryptovault.core.exceptions import (
    GrantRequestError,
    GrantRequestFailure,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
    translate_store_errors,
)
from cryptovault.core.timezone import now_utc, to_utc
from cryptovault.domain.models import AccessGrant, GrantFilters, GrantStatus
from cryptovault.domain.views import GrantListing
from cryptovault.repositories.protocols import GrantRepository, ProfileRepository

logger = logging.getLogger(__name__)


class AccessGrantService:
    """
    Resolves and mutates grants between users.

    Viewers create pending requests; only the sharer may approve, deny or
    revoke. Expiry is soft: an expired grant keeps status ``granted`` but
    is never reported as active.
    """

    def __init__(self, grant_repo: GrantRepository, profile_repo: ProfileRepository):
        self._grant_repo = grant_repo
        self._profile_repo = profile_repo

    def list_grants(self, user_id: str, now: Optional[datetime] = None) -> GrantListing:
        """Partition every grant involving the user by status and side."""
        now = now or now_utc()
        with translate_store_errors("list grants"):
            grants = self._grant_repo.list_for_user(user_id)

        listing = GrantListing(user_id=user_id)
        for grant in grants:
            if grant.is_active(now):
                listing.active.append(grant)
            elif grant.status == GrantStatus.PENDING:
                if grant.sharer_id == user_id:
                    listing.incoming_pending.append(grant)
                elif grant.viewer_id == user_id:
                    listing.outgoing_pending.append(grant)
        return listing

    def get_grant(self, user_id: str, grant_id: str) -> AccessGrant:
        """Get a grant the user is party to."""
        with translate_store_errors("get grant"):
            grant = self._grant_repo.get_by_id(grant_id)
        if not grant or not grant.involves(user_id):
            raise NotFoundError("Grant", grant_id)
        return grant

    def request_access(
        self,
        viewer_id: str,
        sharer_id: str,
        filters: GrantFilters,
        now: Optional[datetime] = None,
    ) -> AccessGrant:
        """
        Create a pending grant asking sharer_id to share with viewer_id.

        Raises GrantRequestError naming the failed check. Self-targeting is
        rejected before any store lookup.
        """
        now = now or now_utc()
        sharer_id = (sharer_id or "").strip()
        if not viewer_id or not sharer_id:
            raise GrantRequestError(GrantRequestFailure.INVALID_INPUT, "A target user is required")
        if sharer_id == viewer_id:
            raise GrantRequestError(
                GrantRequestFailure.SELF_TARGET,
                "You cannot request access to your own data",
            )
        self._validate_filters(filters, now)

        try:
            with translate_store_errors("request access"):
                if not self._profile_repo.get_by_id(sharer_id):
                    raise GrantRequestError(GrantRequestFailure.UNKNOWN_USER, f"User not found: {sharer_id}")

                existing = [g for g in self._grant_repo.find_between(viewer_id, sharer_id) if g.is_outstanding]
                if existing:
                    raise GrantRequestError(
                        GrantRequestFailure.DUPLICATE,
                        f"An access request to this user is already {existing[0].status.value}",
                    )

                grant = AccessGrant(
                    id=str(uuid.uuid4()),
                    sharer_id=sharer_id,
                    viewer_id=viewer_id,
                    status=GrantStatus.PENDING,
                    shared_types=list(dict.fromkeys(filters.shared_types)),
                    expires_at=filters.expires_at,
                    date_from=filters.date_from,
                    date_to=filters.date_to,
                    min_pnl=filters.min_pnl,
                    message=filters.message,
                    created_at=now,
                )
                created = self._grant_repo.create(grant)
        except StoreError as e:
            raise GrantRequestError(GrantRequestFailure.PERSISTENCE, e.message) from e

        logger.info("Access request %s: %s -> %s", created.id, viewer_id, sharer_id)
        return created

    def approve(self, acting_user_id: str, grant_id: str) -> AccessGrant:
        """Sharer accepts a pending request."""
        grant = self._load_as_sharer(acting_user_id, grant_id)
        self._require_status(grant, GrantStatus.PENDING, "approved")
        return self._transition(grant, GrantStatus.GRANTED)

    def deny(self, acting_user_id: str, grant_id: str) -> AccessGrant:
        """Sharer rejects a pending request."""
        grant = self._load_as_sharer(acting_user_id, grant_id)
        self._require_status(grant, GrantStatus.PENDING, "denied")
        return self._transition(grant, GrantStatus.DENIED)

    def revoke(self, acting_user_id: str, grant_id: str) -> AccessGrant:
        """Sharer withdraws previously granted access."""
        grant = self._load_as_sharer(acting_user_id, grant_id)
        self._require_status(grant, GrantStatus.GRANTED, "revoked")
        return self._transition(grant, GrantStatus.REVOKED)

    def cancel_request(self, acting_user_id: str, grant_id: str) -> AccessGrant:
        """Viewer withdraws their own pending request."""
        with translate_store_errors("load grant"):
            grant = self._grant_repo.get_by_id(grant_id)
        if not grant or not grant.involves(acting_user_id):
            raise NotFoundError("Grant", grant_id)
        if grant.viewer_id != acting_user_id:
            raise PermissionDeniedError("Only the requester can cancel an access request")
        self._require_status(grant, GrantStatus.PENDING, "cancelled")
        return self._transition(grant, GrantStatus.REVOKED)

    def _load_as_sharer(self, acting_user_id: str, grant_id: str) -> AccessGrant:
        with translate_store_errors("load grant"):
            grant = self._grant_repo.get_by_id(grant_id)
        if not grant or not grant.involves(acting_user_id):
            raise NotFoundError("Grant", grant_id)
        if grant.sharer_id != acting_user_id:
            raise PermissionDeniedError("Only the user sharing the data can change this grant")
        return grant

    @staticmethod
    def _require_status(grant: AccessGrant, status: GrantStatus, action: str) -> None:
        if grant.status != status:
            raise ValidationError(
                f"Only {status.value} grants can be {action} (grant is {grant.status.value})"
            )

    def _transition(self, grant: AccessGrant, status: GrantStatus) -> AccessGrant:
        with translate_store_errors("update grant"):
            updated = self._grant_repo.update_status(grant.id, status)
        logger.info("Grant %s: %s -> %s", grant.id, grant.status.value, status.value)
        return updated

    @staticmethod
    def _validate_filters(filters: GrantFilters, now: datetime) -> None:
        if not filters.shared_types:
            raise GrantRequestError(
                GrantRequestFailure.INVALID_INPUT,
                "Select at least one entry type to share",
            )
        if filters.date_from and filters.date_to and to_utc(filters.date_from) > to_utc(filters.date_to):
            raise GrantRequestError(
                GrantRequestFailure.INVALID_INPUT,
                "Start date must be before end date",
            )
        if filters.expires_at and to_utc(filters.expires_at) <= to_utc(now):
            raise GrantRequestError(
                GrantRequestFailure.INVALID_INPUT,
                "Expiry must be in the future",
            )
