#!/usr/bin/env python3
"""
Cling Database Setup Script
===========================

Creates any missing tables before the API server starts.

Usage:
    python scripts/setup_database.py [--check-only]
"""

import sys
import logging
import argparse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from cling.db.session import engine
from cling.db.base import Base

# Registers every model on Base.metadata
from cling import models  # noqa: F401

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def test_connection() -> bool:
    logger.info("Testing database connection...")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    logger.info("Database connection successful")
    return True


def missing_tables() -> list:
    existing = set(inspect(engine).get_table_names())
    required = [table.name for table in Base.metadata.sorted_tables]
    return [name for name in required if name not in existing]


def create_tables() -> bool:
    logger.info("Creating database tables...")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create tables: {e}")
        return False
    logger.info(f"Tables present: {', '.join(inspect(engine).get_table_names())}")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description='Cling Database Setup')
    parser.add_argument('--check-only', action='store_true',
                        help='Only check if tables exist, do not create')
    args = parser.parse_args()

    if not test_connection():
        return 1

    missing = missing_tables()
    if not missing:
        logger.info("All required tables exist")
        return 0

    logger.warning(f"Missing tables: {missing}")
    if args.check_only:
        return 1
    return 0 if create_tables() else 1


if __name__ == "__main__":
    sys.exit(main())
