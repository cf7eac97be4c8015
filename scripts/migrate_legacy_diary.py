"""
Copy legacy diary data (reviews + watched list) into the primary diary store.
Users that already have primary diary entries are skipped.
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

from seriee_service.models import UserProfile
from seriee_service.models.database import SessionLocal
from seriee_service.services import DiaryService

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def get_all_user_ids(session_factory=None) -> list[str]:
    session_factory = session_factory or SessionLocal
    db = session_factory()
    try:
        return [row[0] for row in db.query(UserProfile.user_id).order_by(UserProfile.user_id).all()]
    finally:
        db.close()


def migrate_users(user_ids: list[str], diary_service: DiaryService) -> dict:
    """
    Migrate each user's legacy diary.

    Returns:
        {"users": <processed>, "migrated_users": <users with new entries>, "entries": <total>}
    """
    stats = {'users': 0, 'migrated_users': 0, 'entries': 0}
    for user_id in user_ids:
        count = diary_service.migrate_legacy_diary(user_id)
        stats['users'] += 1
        stats['entries'] += count
        if count:
            stats['migrated_users'] += 1
    return stats


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(description="Migrate legacy diary data to the primary store")
    parser.add_argument(
        "--user-id",
        action="append",
        default=None,
        help="Only migrate this user (repeatable; default: all users)",
    )

    args = parser.parse_args()

    logger.info("=" * 70)
    logger.info("MIGRATING LEGACY DIARY DATA")
    logger.info("=" * 70)

    try:
        user_ids = args.user_id or get_all_user_ids()
        stats = migrate_users(user_ids, DiaryService())

        logger.info(f"Users processed: {stats['users']}")
        logger.info(f"Users migrated: {stats['migrated_users']}")
        logger.info(f"✓ Entries written: {stats['entries']}")
    except Exception as e:
        logger.error(f"Error during migration: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
