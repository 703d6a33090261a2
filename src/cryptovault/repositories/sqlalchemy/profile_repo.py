"""SQLAlchemy implementation of ProfileRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from cryptovault.core.timezone import to_naive_utc, from_naive_utc
from cryptovault.domain.models import Profile
from cryptovault.repositories.sqlalchemy.orm_models import ProfileORM, utcnow_naive


class SqlAlchemyProfileRepository:
    """SQLAlchemy-backed profile repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, profile: Profile) -> Profile:
        """Persist a new profile."""
        orm_profile = ProfileORM(
            user_id=profile.user_id,
            username=profile.username,
            avatar_url=profile.avatar_url,
            created_at=to_naive_utc(profile.created_at) or utcnow_naive(),
        )
        self._db.add(orm_profile)
        self._db.commit()
        self._db.refresh(orm_profile)
        return self._to_domain(orm_profile)

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        """Retrieve profile by user ID."""
        orm_profile = self._db.query(ProfileORM).filter(
            ProfileORM.user_id == user_id
        ).first()
        return self._to_domain(orm_profile) if orm_profile else None

    def get_many(self, user_ids: list[str]) -> dict[str, Profile]:
        """Retrieve several profiles keyed by user ID."""
        if not user_ids:
            return {}
        rows = self._db.query(ProfileORM).filter(ProfileORM.user_id.in_(user_ids)).all()
        return {row.user_id: self._to_domain(row) for row in rows}

    @staticmethod
    def _to_domain(orm: ProfileORM) -> Profile:
        """Convert ORM model to domain model."""
        return Profile(
            user_id=orm.user_id,
            username=orm.username,
            avatar_url=orm.avatar_url,
            created_at=from_naive_utc(orm.created_at),
        )
