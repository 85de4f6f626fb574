#!/usr/bin/env python3
"""
Apply database migrations (geo_cache, route_cache) using Alembic
"""
import os
import sys
import logging
from alembic.config import Config
from alembic import command
from dotenv import load_dotenv

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _alembic_config(db_url: str) -> Config:
    alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", db_url)
    return alembic_cfg


def run_migrations() -> bool:
    """Run all pending migrations"""
    try:
        load_dotenv()
        load_dotenv(".env.local")

        db_url = os.getenv("DATABASE_URL")
        if not db_url:
            logger.error("DATABASE_URL environment variable is not set")
            return False

        logger.info("🔄 Starting database migrations...")
        logger.info(f"📊 Database: {db_url.split('@')[1] if '@' in db_url else 'local'}")

        command.upgrade(_alembic_config(db_url), "head")
        logger.info("✅ Migrations completed successfully!")
        return True

    except Exception as e:
        logger.error(f"❌ Migration failed: {e}", exc_info=True)
        return False


def check_migrations_status():
    """Print current migration status"""
    try:
        load_dotenv()
        db_url = os.getenv("DATABASE_URL")
        if not db_url:
            logger.error("DATABASE_URL environment variable is not set")
            return

        logger.info("📋 Current migration status:")
        command.current(_alembic_config(db_url))

    except Exception as e:
        logger.error(f"❌ Failed to check migration status: {e}", exc_info=True)


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "status":
        check_migrations_status()
    else:
        success = run_migrations()
        sys.exit(0 if success else 1)
