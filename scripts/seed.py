#!/usr/bin/env python
"""
Populate a migrated database with reference data.

Safe to re-run: every seeder skips data that already exists. Set
SEED_ADMIN_PASSWORD to also create the initial admin account.
"""

import asyncio
import logging
import sys

from fansite.seeding import run_seeders

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def main() -> bool:
    logger.info("Starting seeders")
    ok = await run_seeders()
    if ok:
        logger.info("All seeders completed successfully")
    else:
        logger.error("One or more seeders failed")
    return ok


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
