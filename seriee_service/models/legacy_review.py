"""Read-only reviews imported from the legacy document store."""
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from seriee_service.models.base import Base


class LegacyReview(Base):
    """Legacy review document.

    tmdb_id is kept raw: legacy ids can look like "1396-S2".
    """

    __tablename__ = "legacy_reviews"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    tmdb_id = Column(String(64), nullable=True)
    name = Column(String(255), nullable=True)
    poster_path = Column(String(255), nullable=True)
    type = Column(String(32), nullable=True)
    season_number = Column(Integer, nullable=True)
    rating = Column(Float, nullable=True)
    is_season = Column(Boolean, default=False, nullable=False)
    is_episode = Column(Boolean, default=False, nullable=False)
    date = Column(String(32), nullable=True)
    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tmdb_id": self.tmdb_id,
            "name": self.name,
            "poster_path": self.poster_path,
            "type": self.type,
            "season_number": self.season_number,
            "rating": self.rating,
            "is_season": bool(self.is_season),
            "is_episode": bool(self.is_episode),
            "date": self.date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<LegacyReview(id='{self.id}', user_id='{self.user_id}')>"
