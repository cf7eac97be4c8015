"""User profile document: social graph, poster choices and season progress."""
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, String

from seriee_service.models.base import Base


class UserProfile(Base):
    """One row per user.

    JSON columns hold the nested maps the app reads as a single document:
    selected_posters is keyed "{series_id}_{season_number}", completed_seasons
    and season_progress are keyed by str(series_id).
    """

    __tablename__ = "user_profiles"

    user_id = Column(String(128), primary_key=True)
    username = Column(String(100), nullable=False, index=True)
    profile_pic_url = Column(String(500), nullable=True)

    following = Column(JSON, nullable=True)
    star_series = Column(JSON, nullable=True)
    selected_posters = Column(JSON, nullable=True)
    completed_seasons = Column(JSON, nullable=True)
    season_progress = Column(JSON, nullable=True)
    watched = Column(JSON, nullable=True)  # legacy completion list

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "profile_pic_url": self.profile_pic_url,
            "following": list(self.following or []),
            "star_series": list(self.star_series or []),
            "selected_posters": dict(self.selected_posters or {}),
            "completed_seasons": dict(self.completed_seasons or {}),
            "season_progress": dict(self.season_progress or {}),
            "watched": list(self.watched or []),
        }

    def __repr__(self):
        return f"<UserProfile(user_id='{self.user_id}', username='{self.username}')>"
