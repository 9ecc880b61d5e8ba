# =============================================================================
# app/__main__.py - Process Entry Point
# =============================================================================
# Starts the API server:
#   1. Configure logging
#   2. Load settings and run the startup checks
#   3. Create the database pool and the application
#   4. Serve with uvicorn on SERVER_PORT / PORT / 3000
#
# Startup is all-or-nothing: any failed check or unhandled error is logged
# and the process exits with status 1.
#
# Usage:
#   python -m app
# =============================================================================

import logging
import sys

import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError

from app.config import Settings, get_settings, validate_environment
from app.main import create_app
from lib.database import check_database_config, create_database

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("app")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


def run_startup_checks(settings: Settings) -> bool:
    """
    Run every configuration check, logging a diagnostic for each failure.

    Returns:
        True if the server may start
    """
    ok = True
    for check in (validate_environment(settings), check_database_config(settings)):
        if not check.ok:
            logger.error(check.message)
            if check.hint:
                logger.error(check.hint)
            ok = False

    if ok:
        logger.info("Environment validation passed")
    return ok


def main() -> int:
    """
    Start the server.

    Returns:
        Process exit status (non-zero when startup fails)
    """
    load_dotenv()
    configure_logging()

    try:
        settings = get_settings()
        configure_logging(settings.LOG_LEVEL)
    except (ValidationError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if not run_startup_checks(settings):
        return 1

    try:
        database = create_database(settings)
        app = create_app(settings, database=database)
        uvicorn.run(app, host="0.0.0.0", port=settings.server_port)
    except Exception:
        logger.exception("Failed to start server")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
