from typing import Any, Dict

import pytest

from friends_directory.core.exceptions import CommitFailure
from friends_directory.directory.committer import UpsertCommitter, new_placeholder
from friends_directory.models import Person, is_placeholder
from friends_directory.store import InMemoryStore, MutationTransaction
from friends_directory.store.queries import person_by_uid


class StubTransaction(MutationTransaction):
    def __init__(self, minted: Dict[str, str], fail_commit: bool = False) -> None:
        super().__init__()
        self.minted = minted
        self.fail_commit = fail_commit
        self.payloads = []
        self.rolled_back = False

    async def mutate(self, payload: Dict[str, Any]) -> Dict[str, str]:
        self.payloads.append(payload)
        return self.minted

    async def commit(self) -> None:
        if self.fail_commit:
            raise CommitFailure("store unavailable")
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class StubStore(InMemoryStore):
    def __init__(self, txn: StubTransaction) -> None:
        super().__init__()
        self.txn = txn

    def transaction(self) -> MutationTransaction:
        return self.txn


def test_new_placeholder_is_unique_label():
    first, second = new_placeholder(), new_placeholder()

    assert is_placeholder(first)
    assert first != second


@pytest.mark.asyncio
async def test_create_returns_permanent_identifier():
    store = InMemoryStore()
    person = Person(name="Ada")

    uid = await UpsertCommitter(store).commit(person)

    assert uid
    assert not is_placeholder(uid)
    assert person.uid == uid
    rows = await store.query(person_by_uid(uid))
    assert rows[0]["name"] == "Ada"


@pytest.mark.asyncio
async def test_client_placeholder_is_resolved_by_its_exact_label():
    txn = StubTransaction({"ada": "0xabc", "someone-else": "0xdef"})

    uid = await UpsertCommitter(StubStore(txn)).commit(Person(uid="_:ada", name="Ada"))

    assert uid == "0xabc"
    assert txn.payloads[0]["uid"] == "_:ada"


@pytest.mark.asyncio
async def test_name_derived_key_is_not_used_for_resolution():
    txn = StubTransaction({"ada": "0xabc"})

    with pytest.raises(CommitFailure, match="did not report"):
        await UpsertCommitter(StubStore(txn)).commit(Person(uid="_:token-1", name="Ada"))


@pytest.mark.asyncio
async def test_update_keeps_existing_identifier():
    store = InMemoryStore()
    committer = UpsertCommitter(store)
    uid = await committer.commit(Person(name="Ada"))

    again = await committer.commit(Person(uid=uid, name="Ada", email="ada@x.io"))

    assert again == uid
    rows = await store.query(person_by_uid(uid))
    assert rows[0]["email"] == "ada@x.io"


@pytest.mark.asyncio
async def test_commit_failure_propagates_and_rolls_back():
    txn = StubTransaction({}, fail_commit=True)

    with pytest.raises(CommitFailure):
        await UpsertCommitter(StubStore(txn)).commit(Person(uid="0x1", name="Ada"))

    assert txn.rolled_back


@pytest.mark.asyncio
async def test_blank_uid_is_treated_as_new_record():
    store = InMemoryStore()
    person = Person(uid="", name="Ada")

    uid = await UpsertCommitter(store).commit(person)

    assert uid and not is_placeholder(uid)
    assert person.uid == uid


@pytest.mark.asyncio
async def test_failed_create_leaves_caller_record_untouched():
    txn = StubTransaction({}, fail_commit=True)
    person = Person(name="Ada")

    with pytest.raises(CommitFailure):
        await UpsertCommitter(StubStore(txn)).commit(person)

    assert person.uid is None
    assert is_placeholder(txn.payloads[0]["uid"])


@pytest.mark.asyncio
async def test_unreported_label_leaves_caller_record_untouched():
    person = Person(name="Ada")

    with pytest.raises(CommitFailure):
        await UpsertCommitter(StubStore(StubTransaction({"other": "0x1"}))).commit(person)

    assert person.uid is None
