"""Directory operations exposed to the HTTP layer."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Mapping, Optional

from friends_directory.core.exceptions import MissingParameter, NotFound
from friends_directory.directory.committer import UpsertCommitter
from friends_directory.directory.index import NameIndex
from friends_directory.directory.patch import apply_patch
from friends_directory.models import Person
from friends_directory.store import GraphStore
from friends_directory.store.codec import decode_people
from friends_directory.store.queries import all_people, person_by_name, person_by_uid

logger = logging.getLogger(__name__)


class DirectoryService:
    """Lookup, create and patch people in the graph.

    Writes to one person hold a per-uid lock inside this process. Friend
    appends are also a single atomic statement in the store, so appends from
    separate server processes are not lost. Patches from separate processes
    are last-write-wins per field.
    """

    def __init__(self, store: GraphStore, index: NameIndex) -> None:
        self.store = store
        self.index = index
        self._committer = UpsertCommitter(store)
        self._person_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._lock_guard = asyncio.Lock()

    async def list_people(self, name: Optional[str] = None) -> List[Person]:
        query = person_by_name(name) if name is not None else all_people()
        return decode_people(await self.store.query(query))

    async def get_person(self, uid: str) -> Person:
        people = decode_people(await self.store.query(person_by_uid(uid)))
        if not people:
            raise NotFound(f"No person with uid {uid}")
        return people[0]

    async def find_by_name(self, name: str) -> Person:
        """First stored match for ``name``; other people sharing it are ignored."""

        people = decode_people(await self.store.query(person_by_name(name)))
        if not people:
            raise NotFound(f"No person named {name!r}")
        if len(people) > 1:
            logger.warning("%d people share the name %r; using %s", len(people), name, people[0].uid)
        return people[0]

    async def get_uid(self, name: str) -> str:
        uid = await self.index.resolve(name)
        if uid is not None:
            return uid
        person = await self.find_by_name(name)
        self.index.insert(name, person.uid)
        return person.uid

    async def add_person(self, person: Person) -> str:
        if not person.name:
            raise MissingParameter("Name cannot be empty")
        uid = await self._committer.commit(person)
        self.index.insert(person.name, uid)
        return uid

    async def ensure_person(self, name: str) -> str:
        """Upsert by name: reuse an existing match, otherwise create a bare record."""

        try:
            return await self.get_uid(name)
        except NotFound:
            logger.info("No person named %r yet; creating one", name)
        return await self.add_person(Person(name=name))

    async def add_friend(self, uid: str, friend_uid: str) -> str:
        """Append ``friend_uid`` to the person's friends; duplicates are kept."""

        async with self._locked(uid):
            if not await self._committer.append_friend(uid, friend_uid):
                raise NotFound(f"No person with uid {uid}")
        return uid

    async def update_person(self, uid: str, patch: Mapping[str, str]) -> Person:
        async with self._locked(uid):
            person = await self.get_person(uid)
            previous_name = person.name
            apply_patch(person, patch)
            # Friend edges are written only by add_friend; the fetched list may be stale.
            await self._committer.commit(person.model_copy(update={"friends": None}))
        if person.name is not None and person.name != previous_name:
            self.index.rename(previous_name, person.name, uid)
        return person

    @asynccontextmanager
    async def _locked(self, uid: str) -> AsyncIterator[None]:
        lock = await self._acquire_lock(uid)
        try:
            async with lock:
                yield
        finally:
            await self._release_lock(uid, lock)

    async def _acquire_lock(self, uid: str) -> asyncio.Lock:
        async with self._lock_guard:
            lock = self._person_locks.get(uid)
            if lock is None:
                lock = asyncio.Lock()
                self._person_locks[uid] = lock
            self._lock_users[uid] = self._lock_users.get(uid, 0) + 1
            return lock

    async def _release_lock(self, uid: str, lock: asyncio.Lock) -> None:
        # A waiter that was woken but has not yet re-acquired still counts as a user.
        async with self._lock_guard:
            remaining = self._lock_users.get(uid, 1) - 1
            if remaining > 0:
                self._lock_users[uid] = remaining
                return
            self._lock_users.pop(uid, None)
            if self._person_locks.get(uid) is lock:
                del self._person_locks[uid]
