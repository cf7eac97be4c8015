"""
Create the service tables.
Run once against a new database (safe to re-run; existing tables are kept).
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import logging

from seriee_service.models import Base
from seriee_service.models.database import engine

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def create_tables(db_engine=None) -> list[str]:
    """
    Create all model tables.

    Returns:
        Names of the tables known to the metadata
    """
    db_engine = db_engine or engine
    Base.metadata.create_all(db_engine)
    return sorted(Base.metadata.tables.keys())


def main():
    """Main execution function."""
    logger.info("=" * 70)
    logger.info("INITIALIZING DATABASE")
    logger.info("=" * 70)

    try:
        tables = create_tables()
        for table in tables:
            logger.info(f"  {table}")
        logger.info(f"✓ {len(tables)} tables ready")
    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
