"""
Lifespan startup and shutdown task functions.

Each function handles one step of the startup or shutdown sequence.
"""

import logging


async def initialize_logging(settings, log_config):
    """Setup logging configuration."""
    from core.logging_config import setup_logging

    setup_logging(log_config)
    logging.getLogger("main").info(
        f"🚀 Starting {settings.api.app_name} v{settings.api.app_version}..."
    )


async def log_cors_configuration(settings, logger):
    """Log CORS configuration for debugging."""
    logger.info(f"🔒 CORS Allowed Origins: {settings.cors.origins}")


async def initialize_database():
    """Create missing database tables."""
    from core.database import init_db

    logger = logging.getLogger("main")
    await init_db()
    logger.info("✅ Database initialized")


async def setup_default_data(session_factory):
    """Seed the bootstrap admin account."""
    from db.setup import setup_database_default_data

    logger = logging.getLogger("main")
    async with session_factory() as db:
        if await setup_database_default_data(db):
            logger.info("✅ Default data setup completed")
        else:
            logger.error("❌ Default data setup failed - check logs above")


async def shutdown_logging():
    """Flush and stop the file logging queue listener."""
    from core.logging_config import stop_queue_listener

    stop_queue_listener()


async def shutdown_database():
    """Close database connections."""
    from core.database import close_db

    logger = logging.getLogger("main")
    await close_db()
    logger.info("✅ Database connections closed")
