import argparse
import sys
from typing import Optional, Sequence

import structlog

from sync_guesty.config import load_sync_config
from sync_guesty.db.engine import get_engine
from sync_guesty.logging_config import setup_logging
from sync_guesty.services.sync import ListingSyncOrchestrator

logger = structlog.get_logger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one listing sync from a scheduler (cron, k8s CronJob).

    Returns:
        int: Process exit code, 1 if the run failed
    """
    parser = argparse.ArgumentParser(description="Sync Guesty listings into the local mirror.")
    parser.add_argument("--listing-id", help="Sync a single listing and skip archival")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    orchestrator = ListingSyncOrchestrator(load_sync_config(), get_engine())
    result = orchestrator.run(listing_id=args.listing_id)

    logger.info("poller_finished", **result.to_response())
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
