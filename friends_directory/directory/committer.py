"""Persist a Person as a single idempotent upsert."""

from __future__ import annotations

import logging
import uuid

from friends_directory.core.exceptions import CommitFailure, StoreError
from friends_directory.models import PLACEHOLDER_PREFIX, Person, is_placeholder, placeholder_label
from friends_directory.store import GraphStore
from friends_directory.store.codec import encode_person
from friends_directory.utils.monitoring import record_commit

logger = logging.getLogger(__name__)


def new_placeholder() -> str:
    """Correlation label for a record that has never been committed."""

    return f"{PLACEHOLDER_PREFIX}{uuid.uuid4().hex}"


class UpsertCommitter:
    """Write one record per transaction and report the uid to use from now on.

    A record without a uid, or with a ``_:<label>`` placeholder, is created;
    the store reports the minted identifier under exactly that label. A
    record that already carries a permanent uid is updated in place.
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    async def commit(self, person: Person) -> str:
        """Return the permanent uid; ``person.uid`` is only changed once the commit succeeds."""

        # A blank uid counts as absent.
        target = person.uid or new_placeholder()
        creating = is_placeholder(target)
        payload = encode_person(person)
        payload["uid"] = target

        try:
            async with self._store.transaction() as txn:
                minted = await txn.mutate(payload)
                await txn.commit()
        except StoreError:
            record_commit("failed")
            logger.exception("Commit failed for %s", target)
            raise

        if not creating:
            record_commit("updated")
            return target

        uid = minted.get(placeholder_label(target))
        if uid is None:
            record_commit("failed")
            raise CommitFailure(f"Store did not report an identifier for placeholder {target!r}")
        record_commit("created")
        logger.info("Created person %r as %s", person.name, uid)
        person.uid = uid
        return uid

    async def append_friend(self, uid: str, friend_uid: str) -> bool:
        try:
            found = await self._store.append_friend(uid, friend_uid)
        except StoreError:
            record_commit("failed")
            logger.exception("Friend append failed for %s", uid)
            raise
        if found:
            record_commit("updated")
        return found
