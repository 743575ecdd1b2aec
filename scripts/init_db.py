#!/usr/bin/env python3
"""
Initialize the FitMeal Pro database
Creates every table; safe to run repeatedly
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("init_db")


def init_tables(drop_first: bool = False) -> bool:
    """Create (optionally after dropping) all tables"""
    from sqlalchemy import inspect
    from sqlalchemy.exc import SQLAlchemyError

    from domain.models.database import Base, engine, init_database

    try:
        if drop_first:
            import domain.models  # noqa: F401

            Base.metadata.drop_all(bind=engine)
            logger.warning("Dropped all tables")

        init_database()
        tables = inspect(engine).get_table_names()
        logger.info("Created %d tables: %s", len(tables), ", ".join(sorted(tables)))
        return True
    except SQLAlchemyError as e:
        logger.error("Failed to initialize database: %s", e)
        return False


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Create the FitMeal Pro database schema.")
    p.add_argument(
        "--drop",
        action="store_true",
        help="Drop every table before creating the schema (destroys data)",
    )
    args = p.parse_args(argv)

    logger.info("=" * 60)
    logger.info("FitMeal Pro Database Initialization")
    logger.info("=" * 60)

    if init_tables(drop_first=args.drop):
        logger.info("Database initialized successfully")
        return 0
    logger.error("Database initialization failed")
    return 1


if __name__ == "__main__":
    sys.exit(main())
