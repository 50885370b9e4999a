"""
Run the portal with uvicorn: ``python -m portal``.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from portal.app import create_app
from portal.config import get_settings
from portal.errors import ConfigurationError

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    settings = get_settings()
    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1

    logger.info(
        "Session secret: %s",
        "exists" if settings.session_secret_configured else "missing",
    )
    logger.info(
        "Server starting: port=%s project=%s database=%s service_account=%s",
        settings.port,
        settings.firebase_project_id,
        settings.database_url,
        settings.firebase_client_email,
    )
    logger.info("Health check URL: http://localhost:%s/health", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
