"""Repository for a user's saved watchlist entries."""

import logging

from sqlalchemy.orm import Session

from seriee_service.models import WatchlistItem

logger = logging.getLogger(__name__)


class WatchlistRepository:
    """
    Repository for a user's saved watchlist entries.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_item(self, user_id: str, item_data: dict) -> WatchlistItem:
        """
        Store or update a watchlist entry.

        Args:
            user_id: Owner of the watchlist
            item_data: Dict with at least "id" (or "tmdb_id") and "name"

        Returns:
            WatchlistItem object
        """
        item_id = str(item_data.get("id") or item_data["tmdb_id"])

        existing = (
            self.db.query(WatchlistItem)
            .filter(WatchlistItem.user_id == user_id, WatchlistItem.item_id == item_id)
            .first()
        )

        fields = {
            "tmdb_id": item_data.get("tmdb_id"),
            "series_id": item_data.get("series_id"),
            "season_number": item_data.get("season_number"),
            "episode_number": item_data.get("episode_number"),
            "name": item_data["name"],
            "poster_path": item_data.get("poster_path"),
            "season_poster": item_data.get("season_poster"),
            "media_type": item_data.get("media_type"),
        }

        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
            item = existing
        else:
            item = WatchlistItem(user_id=user_id, item_id=item_id, **fields)
            self.db.add(item)

        self.db.commit()
        self.db.refresh(item)
        return item

    # noinspection PyTypeChecker
    def get_items(self, user_id: str) -> list[WatchlistItem]:
        """Get all entries for a user, oldest first."""
        return (
            self.db.query(WatchlistItem)
            .filter(WatchlistItem.user_id == user_id)
            .order_by(WatchlistItem.added_at.asc(), WatchlistItem.id.asc())
            .all()
        )

    def remove_item(self, user_id: str, item_id: str) -> bool:
        """
        Remove one entry by its item id.

        Entries saved without an id are keyed by their tmdb id, so a series id
        never matches the episodes or seasons saved under it.

        Returns:
            True if deleted, False if not found
        """
        count = (
            self.db.query(WatchlistItem)
            .filter(WatchlistItem.user_id == user_id, WatchlistItem.item_id == str(item_id))
            .delete(synchronize_session=False)
        )
        self.db.commit()

        return count > 0
