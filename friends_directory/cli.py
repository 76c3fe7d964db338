"""Command line entry for the Friends directory.

Usage:
    friends-directory [serve|migrate|reset|check]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

import uvicorn

from friends_directory.core.config import settings
from friends_directory.core.database import database_manager
from friends_directory.directory.bootstrap import prepare_store
from friends_directory.store.queries import all_nodes

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def prepare_shared_store() -> bool:
    """Reset, install schema and seed once for all workers.

    Returns False for a process-local store, which every worker prepares itself.
    """

    store = await database_manager.initialize()
    try:
        if not store.shared:
            return False
        await prepare_store(store, settings)
        logger.info("%s store prepared", store.name)
        return True
    finally:
        await database_manager.close()


def run_server() -> None:
    workers = settings.WORKERS
    if not asyncio.run(prepare_shared_store()) and workers > 1:
        logger.warning("The %s store is per process; running a single worker", settings.STORE_BACKEND)
        workers = 1

    logger.info("Running on %s:%s with %d worker(s)", settings.HOST, settings.PORT, workers)
    uvicorn.run(
        "friends_directory.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=workers,
        server_header=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


async def run_migrations() -> None:
    store = await database_manager.initialize()
    try:
        await store.apply_schema()
        logger.info("Schema is up to date")
    finally:
        await database_manager.close()


async def reset_store(confirm: bool) -> bool:
    if not confirm:
        response = input("This deletes every person and the schema. Continue? (yes/no): ")
        if response.lower() != "yes":
            logger.info("Reset cancelled.")
            return False

    store = await database_manager.initialize()
    try:
        await store.drop_all()
        await store.apply_schema()
        logger.info("Store wiped and schema reinstalled")
    finally:
        await database_manager.close()
    return True


async def check_store() -> bool:
    store = await database_manager.initialize()
    try:
        if not await store.ping():
            logger.error("%s store is unreachable", store.name)
            return False
        nodes = await store.query(all_nodes())
        logger.info("%s store reachable; %d named people", store.name, len(nodes))
        return True
    finally:
        await database_manager.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Friends directory service")
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "migrate", "reset", "check"],
        help="Command to execute (default: serve)",
    )
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt for reset")
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)

    if args.command == "serve":
        run_server()
        return 0
    if args.command == "migrate":
        asyncio.run(run_migrations())
        return 0
    if args.command == "reset":
        return 0 if asyncio.run(reset_store(args.yes)) else 1
    return 0 if asyncio.run(check_store()) else 1


if __name__ == "__main__":
    sys.exit(main())
