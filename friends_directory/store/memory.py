"""In-process graph store used for local development and tests."""

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any, Dict, List, Tuple

from friends_directory.core.exceptions import CommitFailure, QueryFailure
from friends_directory.models import is_placeholder, placeholder_label
from friends_directory.store.base import GraphStore, MutationTransaction
from friends_directory.store.queries import QueryKind, ReadQuery

logger = logging.getLogger(__name__)

_PROJECTED_FIELDS = ("uid", "name", "email", "discord", "instagram", "snapchat", "x", "school", "friends", "misc")


class InMemoryMutationTransaction(MutationTransaction):
    def __init__(self, store: "InMemoryStore") -> None:
        super().__init__()
        self._store = store
        self._labels: Dict[str, str] = {}
        self._pending: List[Tuple[str, Dict[str, Any]]] = []
        self._closed = False

    async def mutate(self, payload: Dict[str, Any]) -> Dict[str, str]:
        if self._closed:
            raise CommitFailure("Transaction is already finished")
        uid = payload.get("uid")
        if not uid:
            raise CommitFailure("Mutation payload carries no uid")

        minted: Dict[str, str] = {}
        if is_placeholder(uid):
            label = placeholder_label(uid)
            if label not in self._labels:
                self._labels[label] = self._store._mint()
                minted[label] = self._labels[label]
            uid = self._labels[label]

        self._pending.append((uid, copy.deepcopy(payload)))
        return minted

    async def commit(self) -> None:
        if self._closed:
            raise CommitFailure("Transaction is already finished")
        for uid, payload in self._pending:
            self._store._apply(uid, payload)
        self._closed = True
        self.committed = True
        logger.debug("Committed %d mutation(s) to the memory store", len(self._pending))

    async def rollback(self) -> None:
        self._pending.clear()
        self._closed = True


class InMemoryStore(GraphStore):
    """Dict-backed store with the same mutation semantics as the Neo4j adapter."""

    name = "memory"
    shared = False

    def __init__(self) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._counter = itertools.count(1)
        self.schema_applied = False

    def _mint(self) -> str:
        return f"0x{next(self._counter):x}"

    def _apply(self, uid: str, payload: Dict[str, Any]) -> None:
        document = self._documents.setdefault(uid, {"uid": uid})
        for key, value in payload.items():
            if key == "uid" or value is None:
                continue
            document[key] = copy.deepcopy(value)
            if key == "friends":
                for friend in value:
                    self._documents.setdefault(friend["uid"], {"uid": friend["uid"]})

    async def query(self, query: ReadQuery) -> List[Dict[str, Any]]:
        if query.kind is QueryKind.BY_NAME:
            matches = [doc for doc in self._documents.values() if doc.get("name") == query.params["name"]]
        elif query.kind is QueryKind.BY_UID:
            document = self._documents.get(query.params["uid"])
            matches = [document] if document is not None else []
        elif query.kind in (QueryKind.ALL, QueryKind.NODES):
            matches = [doc for doc in self._documents.values() if doc.get("name") is not None]
        else:
            raise QueryFailure(f"Unsupported query kind {query.kind!r}")

        if query.kind is QueryKind.NODES:
            return [{"uid": doc["uid"], "name": doc["name"]} for doc in matches]
        return [{key: copy.deepcopy(doc.get(key)) for key in _PROJECTED_FIELDS} for doc in matches]

    def transaction(self) -> MutationTransaction:
        return InMemoryMutationTransaction(self)

    async def append_friend(self, uid: str, friend_uid: str) -> bool:
        document = self._documents.get(uid)
        if document is None:
            return False
        document.setdefault("friends", []).append({"uid": friend_uid})
        self._documents.setdefault(friend_uid, {"uid": friend_uid})
        return True

    async def drop_all(self) -> None:
        self._documents.clear()
        self.schema_applied = False

    async def apply_schema(self) -> None:
        self.schema_applied = True

    async def ping(self) -> bool:
        return True
