"""SQLAlchemy implementation of GrantRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from cryptovault.core.timezone import to_naive_utc, from_naive_utc
from cryptovault.domain.models import AccessGrant, GrantStatus, ProfileSummary
from cryptovault.repositories.sqlalchemy.orm_models import AccessGrantORM, ProfileORM, utcnow_naive


def _summary(orm: ProfileORM) -> ProfileSummary:
    return ProfileSummary(user_id=orm.user_id, username=orm.username, avatar_url=orm.avatar_url)


class SqlAlchemyGrantRepository:
    """SQLAlchemy-backed access grant repository.

    Grants are returned with sharer/viewer profile summaries attached
    when the profiles exist.
    """

    def __init__(self, db: Session):
        self._db = db

    def create(self, grant: AccessGrant) -> AccessGrant:
        """Persist a new grant."""
        orm_grant = AccessGrantORM(
            id=grant.id,
            sharer_id=grant.sharer_id,
            viewer_id=grant.viewer_id,
            status=grant.status,
            shared_types=[t.value for t in grant.shared_types],
            expires_at=to_naive_utc(grant.expires_at),
            date_from=to_naive_utc(grant.date_from),
            date_to=to_naive_utc(grant.date_to),
            min_pnl=grant.min_pnl,
            message=grant.message,
            created_at=to_naive_utc(grant.created_at) or utcnow_naive(),
        )
        self._db.add(orm_grant)
        self._db.commit()
        self._db.refresh(orm_grant)
        return self._with_profiles([orm_grant])[0]

    def get_by_id(self, grant_id: str) -> Optional[AccessGrant]:
        """Retrieve grant by ID."""
        orm_grant = self._db.query(AccessGrantORM).filter(
            AccessGrantORM.id == grant_id
        ).first()
        return self._with_profiles([orm_grant])[0] if orm_grant else None

    def list_for_user(self, user_id: str) -> list[AccessGrant]:
        """List grants where the user is sharer or viewer, newest first."""
        orm_grants = (
            self._db.query(AccessGrantORM)
            .filter(
                or_(
                    AccessGrantORM.sharer_id == user_id,
                    AccessGrantORM.viewer_id == user_id,
                )
            )
            .order_by(AccessGrantORM.created_at.desc())
            .all()
        )
        return self._with_profiles(orm_grants)

    def find_between(self, viewer_id: str, sharer_id: str) -> list[AccessGrant]:
        """List every grant for a (viewer, sharer) pair."""
        orm_grants = (
            self._db.query(AccessGrantORM)
            .filter(
                AccessGrantORM.viewer_id == viewer_id,
                AccessGrantORM.sharer_id == sharer_id,
            )
            .order_by(AccessGrantORM.created_at.desc())
            .all()
        )
        return [self._to_domain(g) for g in orm_grants]

    def update_status(self, grant_id: str, status: GrantStatus) -> AccessGrant:
        """Transition a grant to a new status."""
        orm_grant = self._db.query(AccessGrantORM).filter(
            AccessGrantORM.id == grant_id
        ).first()
        if not orm_grant:
            raise ValueError(f"Grant not found: {grant_id}")

        orm_grant.status = status
        orm_grant.updated_at = utcnow_naive()
        self._db.commit()
        self._db.refresh(orm_grant)
        return self._with_profiles([orm_grant])[0]

    def _with_profiles(self, orm_grants: list[AccessGrantORM]) -> list[AccessGrant]:
        user_ids = {g.sharer_id for g in orm_grants} | {g.viewer_id for g in orm_grants}
        profiles = {}
        if user_ids:
            rows = self._db.query(ProfileORM).filter(ProfileORM.user_id.in_(user_ids)).all()
            profiles = {p.user_id: p for p in rows}

        grants = []
        for orm_grant in orm_grants:
            grant = self._to_domain(orm_grant)
            if orm_grant.sharer_id in profiles:
                grant.sharer = _summary(profiles[orm_grant.sharer_id])
            if orm_grant.viewer_id in profiles:
                grant.viewer = _summary(profiles[orm_grant.viewer_id])
            grants.append(grant)
        return grants

    @staticmethod
    def _to_domain(orm: AccessGrantORM) -> AccessGrant:
        """Convert ORM model to domain model."""
        return AccessGrant(
            id=orm.id,
            sharer_id=orm.sharer_id,
            viewer_id=orm.viewer_id,
            status=orm.status,
            shared_types=list(orm.shared_types or []),
            expires_at=from_naive_utc(orm.expires_at),
            date_from=from_naive_utc(orm.date_from),
            date_to=from_naive_utc(orm.date_to),
            min_pnl=Decimal(str(orm.min_pnl)) if orm.min_pnl is not None else None,
            message=orm.message,
            created_at=from_naive_utc(orm.created_at),
            updated_at=from_naive_utc(orm.updated_at),
        )
