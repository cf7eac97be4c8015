"""Diary milestones (primary store)."""
from datetime import UTC, datetime

from sqlalchemy import Column, Date, DateTime, Float, Index, Integer, String, UniqueConstraint

from seriee_service.models.base import Base

SEASON_COMPLETED = "SEASON_COMPLETED"
SEASON_RATED = "SEASON_RATED"
SERIES_COMPLETED = "SERIES_COMPLETED"

ENTRY_TYPES = (SEASON_COMPLETED, SEASON_RATED, SERIES_COMPLETED)


class DiaryEntry(Base):
    """One milestone per (user, series, type, season)."""

    __tablename__ = "diary_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False)
    tmdb_id = Column(Integer, nullable=False)
    series_name = Column(String(255), nullable=True)
    poster_path = Column(String(255), nullable=True)
    entry_type = Column(String(32), nullable=False)
    season_number = Column(Integer, nullable=True)
    rating = Column(Float, nullable=True)
    watched_at = Column(Date, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "tmdb_id", "entry_type", "season_number", name="uq_diary_milestone"
        ),
        Index("idx_diary_user_watched", "user_id", "watched_at"),
    )

    def __repr__(self):
        return (
            f"<DiaryEntry(user_id='{self.user_id}', tmdb_id={self.tmdb_id}, "
            f"type='{self.entry_type}', season={self.season_number})>"
        )
