"""
Storage initialization script

Run once after deploying, or after importing data from an older version:
    python scripts/init_db.py

- Opens the configured backend (MongoDB, or the local storage file)
- Creates indexes
- Migrates legacy user ids and plaintext passwords
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables before settings are read
load_dotenv()

import logging

from umkm_registry.db.storage import open_storage, close_storage, UMKM_COLLECTION, USERS_COLLECTION
from umkm_registry.db.indexes import create_indexes
from umkm_registry.services.auth_service import normalize_identifiers

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  UMKM Registry Storage Setup")
    logger.info("=" * 60 + "\n")

    storage = await open_storage()
    logger.info(f"Backend: {storage.name}")

    try:
        counts = await normalize_identifiers()
        logger.info(f"Migrated user ids: {counts['users']}")
        logger.info(f"Rehashed passwords: {counts['passwords']}")
        logger.info(f"Migrated sessions: {counts['sessions']}")

        await create_indexes(storage)

        stats = {
            "umkm": len(await storage.find(UMKM_COLLECTION)),
            "users": len(await storage.find(USERS_COLLECTION)),
        }
        logger.info("\nCurrent documents:")
        logger.info(f"  Business profiles: {stats['umkm']}")
        logger.info(f"  Registered users: {stats['users']}")

        logger.info("\nStorage initialization complete!")

    finally:
        await close_storage()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
