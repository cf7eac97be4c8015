"""Saved watchlist entry (series, season or single episode)."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, UniqueConstraint

from seriee_service.models.base import Base


class WatchlistItem(Base):
    """A saved watchlist entry.

    item_id is the client-facing id (series id for whole series, anything
    unique for episodes). Episodes carry season_number and episode_number.
    """

    __tablename__ = "watchlist_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False)
    item_id = Column(String(64), nullable=False)

    tmdb_id = Column(Integer, nullable=True)
    series_id = Column(Integer, nullable=True)
    season_number = Column(Integer, nullable=True)
    episode_number = Column(Integer, nullable=True)

    name = Column(String(255), nullable=False)
    poster_path = Column(String(255), nullable=True)
    season_poster = Column(String(255), nullable=True)
    media_type = Column(String(20), nullable=True)

    added_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_watchlist_user_item"),
        Index("idx_watchlist_user", "user_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.item_id,
            "tmdb_id": self.tmdb_id,
            "series_id": self.series_id,
            "season_number": self.season_number,
            "episode_number": self.episode_number,
            "name": self.name,
            "poster_path": self.poster_path,
            "season_poster": self.season_poster,
            "media_type": self.media_type,
            "added_at": self.added_at.isoformat() if self.added_at else None,
        }

    def __repr__(self):
        return f"<WatchlistItem(user_id='{self.user_id}', item_id='{self.item_id}')>"
