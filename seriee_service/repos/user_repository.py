"""Repository for user profile documents."""

import copy
import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from seriee_service.models import UserProfile

logger = logging.getLogger(__name__)


class UserRepository:
    """
    Repository for user profile documents.

    JSON columns are replaced, never mutated in place, so SQLAlchemy
    sees every change.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self.db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

    def create_profile(self, user_id: str, username: str, profile_pic_url: str | None = None) -> UserProfile:
        profile = UserProfile(
            user_id=user_id,
            username=username,
            profile_pic_url=profile_pic_url,
            following=[],
            star_series=[],
            selected_posters={},
            completed_seasons={},
            season_progress={},
            watched=[],
        )
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    # noinspection PyTypeChecker
    def find_by_username(self, username: str, limit: int = 3) -> list[UserProfile]:
        """Exact username match."""
        return (
            self.db.query(UserProfile)
            .filter(UserProfile.username == username)
            .limit(limit)
            .all()
        )

    def update_profile(self, profile: UserProfile, **fields) -> UserProfile:
        """
        Replace JSON/document fields on a profile.

        Args:
            profile: Profile to update
            **fields: Column name -> new value (copied before assignment)

        Returns:
            Updated profile
        """
        for key, value in fields.items():
            setattr(profile, key, copy.deepcopy(value))
        profile.updated_at = datetime.now(UTC)  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def set_following(self, user_id: str, following: list[str]) -> UserProfile | None:
        profile = self.get_profile(user_id)
        if profile is None:
            return None
        return self.update_profile(profile, following=following)
