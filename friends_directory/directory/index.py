"""Process-wide cache from display name to permanent identifier."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from friends_directory.store import GraphStore
from friends_directory.store.codec import decode_node
from friends_directory.store.queries import all_nodes

logger = logging.getLogger(__name__)


class NameIndex:
    """Name -> uid map built once from a full node scan.

    Names are not unique in the store, so a later node silently replaces an
    earlier one with the same name. The index is never refreshed from the
    store after startup; a miss does not mean the name is absent remotely.
    """

    def __init__(self) -> None:
        self._uids: Dict[str, str] = {}
        self._ready = asyncio.Event()

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    def __len__(self) -> int:
        return len(self._uids)

    async def populate(self, store: GraphStore) -> int:
        rows = await store.query(all_nodes())
        for row in rows:
            node = decode_node(row)
            previous = self._uids.get(node.name)
            if previous is not None and previous != node.uid:
                logger.warning("Name %r maps to several nodes; keeping %s over %s", node.name, node.uid, previous)
            self._uids[node.name] = node.uid
        logger.info("Name index populated with %d entries", len(self._uids))
        return len(self._uids)

    def mark_ready(self) -> None:
        self._ready.set()

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def resolve(self, name: str) -> Optional[str]:
        await self._ready.wait()
        return self._uids.get(name)

    def insert(self, name: str, uid: str) -> None:
        self._uids[name] = uid

    def rename(self, old_name: Optional[str], new_name: str, uid: str) -> None:
        if old_name is not None and self._uids.get(old_name) == uid:
            del self._uids[old_name]
        self._uids[new_name] = uid
