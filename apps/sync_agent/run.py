from __future__ import annotations

import logging
import sys

from packages.core.config import SyncSettings
from packages.core.digest.sync import build_sync_service
from packages.core.errors import ConfigurationError, DigestError
from packages.core.logging_config import configure_logging


logger = logging.getLogger("thread_digest.sync")


def main() -> int:
    """Run a single sweep and exit; non-zero when the run could not start or a thread failed."""
    configure_logging()
    try:
        settings = SyncSettings.from_env()
        service = build_sync_service(settings)
    except ConfigurationError as exc:
        logger.error("sync_not_configured error=%s", exc)
        return 2

    try:
        stats = service.run()
    except DigestError as exc:
        logger.exception("sync_failed error=%s", exc)
        return 1
    finally:
        service.source.close()

    return 1 if stats.failed else 0


if __name__ == "__main__":
    sys.exit(main())
