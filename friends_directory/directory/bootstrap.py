"""Startup sequence run before the server accepts traffic.

``prepare_store`` changes the store (reset, schema, seeds) and must run once
per deployment. ``build_service`` only reads and runs in every worker.
"""

from __future__ import annotations

import logging

from friends_directory.core.config import Settings
from friends_directory.directory.index import NameIndex
from friends_directory.directory.service import DirectoryService
from friends_directory.store import GraphStore

logger = logging.getLogger(__name__)


async def build_service(store: GraphStore) -> DirectoryService:
    """Scan the store into a fresh name index and open the readiness barrier.

    Requests that reach ``NameIndex.resolve`` earlier wait on that barrier.
    """

    index = NameIndex()
    await index.populate(store)
    index.mark_ready()
    return DirectoryService(store, index)


async def prepare_store(store: GraphStore, config: Settings) -> None:
    if config.RESET_ON_STARTUP:
        await store.drop_all()
    await store.apply_schema()

    if not config.SEED_PEOPLE:
        return
    service = await build_service(store)
    for name in config.SEED_PEOPLE:
        uid = await service.ensure_person(name)
        logger.info("Seeded %s as %s", name, uid)
