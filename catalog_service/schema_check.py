"""Versioned schema contract for the tables the services read.

Run ``python -m catalog_service.schema_check`` before a deploy; it exits with
status 1 when the live database is missing a table or column listed here.
"""

import logging
import sys
from typing import Dict, List

from sqlalchemy import inspect

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3

EXPECTED_COLUMNS: Dict[str, List[str]] = {
    "users": [
        "id", "full_name", "email", "password_hash", "mobile_number",
        "location", "created_at",
    ],
    "events": [
        "id", "name", "description", "icon", "features", "avg_budget",
        "duration", "team_size", "min_guests", "max_guests",
    ],
    "event_services": ["id", "event_id", "name", "price", "price_label", "category"],
    "event_packages": ["id", "event_id", "name", "price", "features", "service_ids"],
    "vendors": [
        "id", "name", "category", "rating", "events_count", "price",
        "price_label", "location", "availability", "portfolio_images",
        "status", "created_at", "updated_at",
    ],
    "community_stories": ["id", "event_type", "is_published"],
}


def live_columns(engine) -> Dict[str, List[str]]:
    """Column names per table as reported by the database."""
    inspector = inspect(engine)
    return {
        table: [column["name"] for column in inspector.get_columns(table)]
        for table in inspector.get_table_names()
    }


def verify_schema(engine) -> Dict[str, List[str]]:
    """
    Compares the live schema with EXPECTED_COLUMNS.

    Returns:
        {table: [missing columns]} for every table that drifted. A table that
        does not exist at all reports every expected column as missing.
    """
    columns = live_columns(engine)
    drift = {}
    for table, expected in EXPECTED_COLUMNS.items():
        present = set(columns.get(table, []))
        missing = [name for name in expected if name not in present]
        if missing:
            drift[table] = missing
    return drift


def main() -> int:
    from common.db import engine

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    if engine is None:
        logger.error("No database connection, cannot verify the schema.")
        return 1

    drift = verify_schema(engine)
    if drift:
        for table, missing in drift.items():
            logger.error(f"Schema v{SCHEMA_VERSION} drift in '{table}': missing {', '.join(missing)}")
        return 1

    logger.info(f"Schema matches contract v{SCHEMA_VERSION}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
