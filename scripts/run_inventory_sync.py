"""
Run one inventory sheet sync from CLI.

Exit codes: 0 success, 75 retriable failure, 65 non-retriable failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import replace

from app.config import get_inventory_sync_settings
from app.domain.sync_errors import InventorySyncError
from app.services.inventory_sync_service import build_inventory_sync_service
from db.config import get_database_settings
from db.session import build_session_factory, create_db_engine

EXIT_OK = 0
EXIT_NON_RETRIABLE = 65
EXIT_RETRIABLE = 75


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync the inventory sheet into the products table.")
    parser.add_argument(
        "--batch-size",
        dest="batch_size",
        type=int,
        default=None,
        help="Override INVENTORY_SYNC_BATCH_SIZE for this run.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    sync_settings = get_inventory_sync_settings()
    if args.batch_size is not None:
        sync_settings = replace(sync_settings, batch_size=max(1, args.batch_size))

    engine = create_db_engine(get_database_settings())
    try:
        service = build_inventory_sync_service(
            build_session_factory(engine),
            sync_settings=sync_settings,
        )
        try:
            summary = service.run()
        except InventorySyncError as exc:
            print(json.dumps({"error": exc.to_dict()}, indent=2))
            return EXIT_RETRIABLE if exc.retriable else EXIT_NON_RETRIABLE
    finally:
        engine.dispose()

    print(json.dumps(summary.to_dict(), indent=2))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
