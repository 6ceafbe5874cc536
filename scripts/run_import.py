#!/usr/bin/env python3
"""CLI script to run the order import of one shop right away, outside the worker."""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from order_sync_service.config import get_settings
from order_sync_service.exceptions import OrderSyncError
from order_sync_service.infrastructure.database.connection import get_sync_session
from order_sync_service.infrastructure.redis import get_sync_redis_client
from order_sync_service.services.configuration_store import ConfigurationStore
from order_sync_service.services.order_import import OrderImportService
from shared.logging import configure_logging

logger = structlog.get_logger()


def main() -> int:
    parser = argparse.ArgumentParser(description="Import the Magento orders of one shop")
    parser.add_argument("shop", help="Name of the shop configuration")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(debug=settings.debug, log_level=settings.log_level)

    with get_sync_session() as session:
        configuration = ConfigurationStore(session).get_by_name(args.shop)
        if configuration is None:
            logger.error("Shop configuration not found", shop=args.shop)
            return 1

        try:
            result = OrderImportService(session, redis_client=get_sync_redis_client()).run(configuration)
        except OrderSyncError as e:
            logger.error("Import failed", shop=args.shop, error=str(e))
            return 2

    logger.info("Import completed", shop=args.shop, **result.summary())
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
