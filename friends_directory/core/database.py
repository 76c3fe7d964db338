"""Store connectivity layer."""

from __future__ import annotations

import logging
from typing import Optional

from friends_directory.core.config import Settings, settings
from friends_directory.store import GraphStore, InMemoryStore, Neo4jStore

logger = logging.getLogger(__name__)


def create_store(config: Settings) -> GraphStore:
    backend = config.STORE_BACKEND.lower()
    if backend == "neo4j":
        return Neo4jStore.from_settings(config)
    if backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown STORE_BACKEND {config.STORE_BACKEND!r}")


class DatabaseManager:
    """Owns the process-wide store adapter."""

    def __init__(self) -> None:
        self.store: Optional[GraphStore] = None

    async def initialize(self, store: Optional[GraphStore] = None) -> GraphStore:
        """Connect to the configured backend, or adopt ``store`` when given."""

        self.store = store or create_store(settings)
        logger.info("Database manager initialized with %s store", self.store.name)
        return self.store

    async def close(self) -> None:
        """Tear down connections gracefully."""

        if self.store is not None:
            logger.info("Closing %s store", self.store.name)
            await self.store.close()
            self.store = None


# Singleton instance used by the application lifespan
database_manager = DatabaseManager()
