"""
LogiFlow API entry point.

    python server.py

Reads configuration from the environment (``.env`` is loaded), opens the
PostgreSQL pool, creates the schema unless SKIP_DB_INIT is set and serves
the FastAPI app with uvicorn.
"""
import os
import sys

import uvicorn

from logging_config import logger, setup_logging


def main() -> int:
    setup_logging()

    from app.api.api_server import create_api_app
    from app.core.config import load_settings
    from app.core.sentry_integration import init_sentry
    from database_pg_module import Database

    try:
        settings = load_settings()
    except ValueError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1

    init_sentry(environment=settings.environment)

    db = Database(settings.database_url)
    app = create_api_app(db, settings)

    host = os.getenv("HOST", "0.0.0.0")
    logger.info(f"🌐 Starting LogiFlow API on http://{host}:{settings.port}")
    try:
        uvicorn.run(app, host=host, port=settings.port, log_config=None, access_log=True)
    finally:
        db.close()
        logger.info("✅ Database pool closed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
