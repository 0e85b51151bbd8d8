#!/usr/bin/env python
"""Run Alembic migrations automatically on container startup."""

import logging
import sys

from alembic import command
from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def run_migrations() -> bool:
    """Run all pending Alembic migrations to bring database to latest schema."""
    try:
        logger.info("Running database migrations")
        command.upgrade(Config("alembic.ini"), "head")
        logger.info("Migrations complete - database schema is up to date")
        return True
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        return False


if __name__ == "__main__":
    sys.exit(0 if run_migrations() else 1)
