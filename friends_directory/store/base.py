"""Store adapter interface shared by the Neo4j and in-memory backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any, Dict, List, Optional, Type

from friends_directory.store.queries import ReadQuery


class MutationTransaction(ABC):
    """One write transaction.

    ``mutate`` may be called more than once before ``commit``. Leaving the
    ``async with`` block without committing rolls everything back.
    """

    def __init__(self) -> None:
        self.committed = False

    @abstractmethod
    async def mutate(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """Apply one JSON record and return ``{placeholder label: minted uid}``."""

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...

    async def __aenter__(self) -> "MutationTransaction":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if not self.committed:
            await self.rollback()


class GraphStore(ABC):
    """Transactional access to the people graph."""

    name: str = "store"
    # False when every process holds its own copy of the data.
    shared: bool = True

    @abstractmethod
    async def query(self, query: ReadQuery) -> List[Dict[str, Any]]:
        """Run a read-only query and return its rows as plain dicts."""

    @abstractmethod
    def transaction(self) -> MutationTransaction: ...

    @abstractmethod
    async def append_friend(self, uid: str, friend_uid: str) -> bool:
        """Atomically add one friend edge after the existing ones.

        Returns False when no person has ``uid``.
        """

    @abstractmethod
    async def drop_all(self) -> None:
        """Delete every node and the schema."""

    @abstractmethod
    async def apply_schema(self) -> None: ...

    @abstractmethod
    async def ping(self) -> bool: ...

    async def close(self) -> None:
        return None
