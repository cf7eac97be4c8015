"""Repository for diary milestones and legacy reviews."""

import logging

from sqlalchemy.orm import Session

from seriee_service.models import DiaryEntry, LegacyReview

logger = logging.getLogger(__name__)


class DiaryRepository:
    """
    Repository for diary milestones (primary store) and the read-only
    legacy review store used as a fallback.
    """

    def __init__(self, db: Session):
        self.db = db

    def upsert_entry(self, entry_data: dict) -> DiaryEntry:
        """
        Insert or update the milestone identified by
        (user_id, tmdb_id, entry_type, season_number).

        Args:
            entry_data: Dict with user_id, tmdb_id, entry_type, watched_at and
                optional series_name, poster_path, season_number, rating

        Returns:
            DiaryEntry object
        """
        season_number = entry_data.get("season_number")

        query = self.db.query(DiaryEntry).filter(
            DiaryEntry.user_id == entry_data["user_id"],
            DiaryEntry.tmdb_id == entry_data["tmdb_id"],
            DiaryEntry.entry_type == entry_data["entry_type"],
        )
        if season_number is None:
            query = query.filter(DiaryEntry.season_number.is_(None))
        else:
            query = query.filter(DiaryEntry.season_number == season_number)

        existing = query.first()

        if existing:
            existing.series_name = entry_data.get("series_name")  # type: ignore[assignment]
            existing.poster_path = entry_data.get("poster_path")  # type: ignore[assignment]
            existing.rating = entry_data.get("rating")  # type: ignore[assignment]
            existing.watched_at = entry_data["watched_at"]  # type: ignore[assignment]
            entry = existing
        else:
            entry = DiaryEntry(
                user_id=entry_data["user_id"],
                tmdb_id=entry_data["tmdb_id"],
                series_name=entry_data.get("series_name"),
                poster_path=entry_data.get("poster_path"),
                entry_type=entry_data["entry_type"],
                season_number=season_number,
                rating=entry_data.get("rating"),
                watched_at=entry_data["watched_at"],
            )
            self.db.add(entry)

        self.db.commit()
        self.db.refresh(entry)
        return entry

    # noinspection PyTypeChecker
    def get_entries(self, user_id: str) -> list[DiaryEntry]:
        """Get a user's milestones, most recent first."""
        return (
            self.db.query(DiaryEntry)
            .filter(DiaryEntry.user_id == user_id)
            .order_by(DiaryEntry.watched_at.desc(), DiaryEntry.id.desc())
            .all()
        )

    # noinspection PyTypeChecker
    def get_legacy_reviews(self, user_id: str) -> list[LegacyReview]:
        """Get a user's legacy reviews, most recently updated first."""
        return (
            self.db.query(LegacyReview)
            .filter(LegacyReview.user_id == user_id)
            .order_by(LegacyReview.updated_at.desc())
            .all()
        )

    def count_entries(self, user_id: str) -> int:
        return self.db.query(DiaryEntry).filter(DiaryEntry.user_id == user_id).count()
