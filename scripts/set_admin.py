"""
Grant or revoke the admin flag on a portal account.

The change is picked up by the next /api/user call; the user does not need
to log in again.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal.config import get_settings
from portal.dependencies import (
    get_account_service,
    get_contact_store,
    get_identity_provider,
    get_probe_store,
    get_profile_store,
    get_session_store,
)

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Set the portal admin flag")
    parser.add_argument("username", help="Portal username")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Clear the admin flag instead of setting it",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    settings = get_settings()
    if settings.use_in_memory_backends:
        logger.error("Refusing to run against in-memory backends")
        return 1

    service = get_account_service(
        settings,
        get_identity_provider(settings),
        get_profile_store(settings),
        get_session_store(settings),
        get_contact_store(settings),
        get_probe_store(settings),
    )
    result = service.set_admin(args.username, not args.revoke)
    if not result.ok:
        logger.error("%s: %s", result.error, result.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
