"""Social activity log feeding profile and friends feeds."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from seriee_service.models.base import Base

ACTIVITY_TYPES = (
    "watched_episode",
    "completed_season",
    "poster_updated",
    "rated_season",
    "watchlist_add",
    "liked_series",
)


class UserActivity(Base):
    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False)
    username = Column(String(100), nullable=True)
    user_profile_pic_url = Column(String(500), nullable=True)
    type = Column(String(32), nullable=False)

    series_id = Column(Integer, nullable=True)
    series_name = Column(String(255), nullable=True)
    season_number = Column(Integer, nullable=True)
    episode_number = Column(Integer, nullable=True)
    poster_path = Column(String(255), nullable=True)
    rating = Column(Float, nullable=True)
    custom_text = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("idx_activity_user_created", "user_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "user_profile_pic_url": self.user_profile_pic_url,
            "type": self.type,
            "series_id": self.series_id,
            "series_name": self.series_name,
            "season_number": self.season_number,
            "episode_number": self.episode_number,
            "poster_path": self.poster_path,
            "rating": self.rating,
            "custom_text": self.custom_text,
            "created_at": self.created_at,
        }

    def __repr__(self):
        return f"<UserActivity(user_id='{self.user_id}', type='{self.type}')>"
