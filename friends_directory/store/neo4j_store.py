"""Neo4j-backed store adapter using the async Bolt driver."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from neo4j import (
    READ_ACCESS,
    AsyncDriver,
    AsyncGraphDatabase,
    AsyncManagedTransaction,
    AsyncSession,
    AsyncTransaction,
)
from neo4j.exceptions import DriverError, Neo4jError
from opentelemetry import trace

from friends_directory.core.config import Settings
from friends_directory.core.exceptions import CommitFailure, QueryFailure, SerializationFailure, StoreTimeout
from friends_directory.models import is_placeholder, placeholder_label
from friends_directory.store import queries
from friends_directory.store.base import GraphStore, MutationTransaction
from friends_directory.store.queries import ACCOUNT_LABELS, PERSON_SCALARS, ReadQuery

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")


async def _with_deadline(awaitable: Awaitable[T], timeout_seconds: float, operation: str) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise StoreTimeout(timeout_seconds, operation) from None


async def _run_append_friend(tx: AsyncManagedTransaction, uid: str, friend_uid: str) -> bool:
    result = await tx.run(queries.APPEND_FRIEND, {"uid": uid, "friend": friend_uid})
    return await result.single() is not None


class Neo4jMutationTransaction(MutationTransaction):
    """Explicit Bolt transaction; the session is opened lazily on first mutate."""

    def __init__(self, driver: AsyncDriver, *, database: Optional[str], timeout_seconds: float) -> None:
        super().__init__()
        self._driver = driver
        self._database = database
        self._timeout_seconds = timeout_seconds
        self._session: Optional[AsyncSession] = None
        self._tx: Optional[AsyncTransaction] = None
        self._labels: Dict[str, str] = {}

    async def mutate(self, payload: Dict[str, Any]) -> Dict[str, str]:
        with tracer.start_as_current_span("store.mutate"):
            try:
                return await _with_deadline(self._mutate(payload), self._timeout_seconds, "mutation")
            except (Neo4jError, DriverError) as exc:
                raise CommitFailure(f"Mutation rejected by the store: {exc}") from exc
            except (OverflowError, TypeError, ValueError) as exc:
                # Raised by the Bolt packer for values it cannot encode, e.g. ints beyond 64 bits.
                raise SerializationFailure(f"Mutation payload cannot be sent to the store: {exc}") from exc

    async def _mutate(self, payload: Dict[str, Any]) -> Dict[str, str]:
        uid = payload.get("uid")
        if not uid:
            raise CommitFailure("Mutation payload carries no uid")

        tx = await self._begin()
        minted: Dict[str, str] = {}
        if is_placeholder(uid):
            label = placeholder_label(uid)
            if label not in self._labels:
                result = await tx.run(queries.CREATE_PERSON)
                record = await result.single(strict=True)
                self._labels[label] = record["uid"]
                minted[label] = record["uid"]
            uid = self._labels[label]
        else:
            result = await tx.run(queries.MERGE_PERSON, {"uid": uid})
            await result.consume()

        properties = {key: payload[key] for key in PERSON_SCALARS if payload.get(key) is not None}
        if properties:
            await self._run(tx, queries.SET_PERSON_PROPERTIES, {"uid": uid, "properties": properties})

        for field_name in ACCOUNT_LABELS:
            account = payload.get(field_name)
            if account is not None:
                await self._run(tx, queries.replace_account_query(field_name), {"uid": uid, "account": account})

        if payload.get("school") is not None:
            await self._run(tx, queries.REPLACE_SCHOOLS, {"uid": uid, "schools": payload["school"]})

        if payload.get("friends") is not None:
            friends = [friend["uid"] for friend in payload["friends"]]
            await self._run(tx, queries.REPLACE_FRIENDS, {"uid": uid, "friends": friends})

        return minted

    @staticmethod
    async def _run(tx: AsyncTransaction, query: str, params: Dict[str, Any]) -> None:
        result = await tx.run(query, params)
        await result.consume()

    async def _begin(self) -> AsyncTransaction:
        if self._tx is None:
            self._session = self._driver.session(database=self._database)
            self._tx = await self._session.begin_transaction()
        return self._tx

    async def commit(self) -> None:
        if self._tx is None:
            self.committed = True
            return
        with tracer.start_as_current_span("store.commit"):
            try:
                await _with_deadline(self._tx.commit(), self._timeout_seconds, "commit")
            except (Neo4jError, DriverError) as exc:
                raise CommitFailure(f"Commit rejected by the store: {exc}") from exc
        self.committed = True
        await self._close_session()

    async def rollback(self) -> None:
        try:
            if self._tx is not None and not self.committed:
                await _with_deadline(self._tx.close(), self._timeout_seconds, "rollback")
        finally:
            await self._close_session()

    async def _close_session(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


class Neo4jStore(GraphStore):
    """Person graph persisted in Neo4j through the Bolt protocol."""

    name = "neo4j"

    def __init__(self, driver: AsyncDriver, *, database: Optional[str] = None, timeout_seconds: float = 30.0) -> None:
        self._driver = driver
        self._database = database
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "Neo4jStore":
        driver = AsyncGraphDatabase.driver(
            str(settings.NEO4J_URI),
            auth=(settings.NEO4J_USER, settings.NEO4J_PASSWORD),
        )
        return cls(driver, database=settings.NEO4J_DATABASE, timeout_seconds=settings.QUERY_TIMEOUT_SECONDS)

    async def query(self, query: ReadQuery) -> List[Dict[str, Any]]:
        with tracer.start_as_current_span(
            "store.query", attributes={"db.statement": query.text[:200], "query.kind": query.kind.value}
        ):
            try:
                return await _with_deadline(self._read(query), self._timeout_seconds, "query")
            except (Neo4jError, DriverError) as exc:
                raise QueryFailure(f"Query {query.kind.value} failed: {exc}") from exc

    async def _read(self, query: ReadQuery) -> List[Dict[str, Any]]:
        async with self._driver.session(database=self._database, default_access_mode=READ_ACCESS) as session:
            result = await session.run(query.text, query.params)
            return await result.data()

    def transaction(self) -> MutationTransaction:
        return Neo4jMutationTransaction(self._driver, database=self._database, timeout_seconds=self._timeout_seconds)

    async def append_friend(self, uid: str, friend_uid: str) -> bool:
        with tracer.start_as_current_span("store.append_friend"):
            try:
                return await _with_deadline(self._append_friend(uid, friend_uid), self._timeout_seconds, "append")
            except (Neo4jError, DriverError) as exc:
                raise CommitFailure(f"Friend append rejected by the store: {exc}") from exc

    async def _append_friend(self, uid: str, friend_uid: str) -> bool:
        async with self._driver.session(database=self._database) as session:
            return await session.execute_write(_run_append_friend, uid, friend_uid)

    async def drop_all(self) -> None:
        logger.warning("Dropping all nodes, constraints and indexes from %s", self._database or "default database")
        try:
            await _with_deadline(self._drop_all(), self._timeout_seconds, "drop_all")
        except (Neo4jError, DriverError) as exc:
            raise CommitFailure(f"Drop-all failed: {exc}") from exc

    async def _drop_all(self) -> None:
        async with self._driver.session(database=self._database) as session:
            await (await session.run(queries.DETACH_DELETE_ALL)).consume()
            constraints = await (await session.run(queries.SHOW_CONSTRAINTS)).data()
            for row in constraints:
                await (await session.run(f"DROP CONSTRAINT `{row['name']}` IF EXISTS")).consume()
            indexes = await (await session.run(queries.SHOW_INDEXES)).data()
            for row in indexes:
                await (await session.run(f"DROP INDEX `{row['name']}` IF EXISTS")).consume()

    async def apply_schema(self) -> None:
        try:
            await _with_deadline(self._apply_schema(), self._timeout_seconds, "apply_schema")
        except (Neo4jError, DriverError) as exc:
            raise CommitFailure(f"Schema install failed: {exc}") from exc
        logger.info("Person schema installed")

    async def _apply_schema(self) -> None:
        async with self._driver.session(database=self._database) as session:
            for statement in queries.SCHEMA_STATEMENTS:
                await (await session.run(statement)).consume()

    async def ping(self) -> bool:
        try:
            await _with_deadline(self._driver.verify_connectivity(), self._timeout_seconds, "ping")
        except (Neo4jError, DriverError, OSError, StoreTimeout) as exc:
            logger.warning("Neo4j ping failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        await self._driver.close()
