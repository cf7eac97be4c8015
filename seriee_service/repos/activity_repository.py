"""Repository for the social activity log."""

import logging

from sqlalchemy.orm import Session

from seriee_service.models import UserActivity

logger = logging.getLogger(__name__)


class ActivityRepository:
    """
    Repository for the social activity log.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_activity(self, activity_data: dict) -> UserActivity:
        """
        Append an activity record.

        Args:
            activity_data: Dict with user_id, type and optional display fields

        Returns:
            UserActivity object
        """
        activity = UserActivity(**activity_data)
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        return activity

    # noinspection PyTypeChecker
    def get_for_user(self, user_id: str, limit: int = 30) -> list[UserActivity]:
        """Newest first."""
        return (
            self.db.query(UserActivity)
            .filter(UserActivity.user_id == user_id)
            .order_by(UserActivity.created_at.desc(), UserActivity.id.desc())
            .limit(limit)
            .all()
        )

    # noinspection PyTypeChecker
    def get_for_users(self, user_ids: list[str], limit: int = 50) -> list[UserActivity]:
        """Newest first across several users."""
        if not user_ids:
            return []

        return (
            self.db.query(UserActivity)
            .filter(UserActivity.user_id.in_(user_ids))
            .order_by(UserActivity.created_at.desc(), UserActivity.id.desc())
            .limit(limit)
            .all()
        )
