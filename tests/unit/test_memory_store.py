import pytest

from friends_directory.core.exceptions import CommitFailure
from friends_directory.store import InMemoryStore
from friends_directory.store.queries import all_nodes, all_people, person_by_name, person_by_uid


@pytest.mark.asyncio
async def test_mutation_is_invisible_until_commit():
    store = InMemoryStore()

    async with store.transaction() as txn:
        minted = await txn.mutate({"uid": "_:ada", "name": "Ada"})
        assert await store.query(person_by_name("Ada")) == []
        await txn.commit()

    assert list(minted) == ["ada"]
    rows = await store.query(person_by_name("Ada"))
    assert rows[0]["uid"] == minted["ada"]


@pytest.mark.asyncio
async def test_uncommitted_transaction_is_rolled_back():
    store = InMemoryStore()

    async with store.transaction() as txn:
        await txn.mutate({"uid": "_:ada", "name": "Ada"})

    assert await store.query(all_people()) == []
    with pytest.raises(CommitFailure):
        await txn.commit()


@pytest.mark.asyncio
async def test_same_label_in_one_transaction_targets_one_node():
    store = InMemoryStore()

    async with store.transaction() as txn:
        first = await txn.mutate({"uid": "_:ada", "name": "Ada"})
        second = await txn.mutate({"uid": "_:ada", "email": "ada@x.io"})
        await txn.commit()

    assert second == {}
    rows = await store.query(person_by_uid(first["ada"]))
    assert rows[0]["name"] == "Ada"
    assert rows[0]["email"] == "ada@x.io"


@pytest.mark.asyncio
async def test_absent_fields_are_left_untouched_on_update():
    store = InMemoryStore()
    async with store.transaction() as txn:
        uid = (await txn.mutate({"uid": "_:ada", "name": "Ada", "email": "ada@x.io"}))["ada"]
        await txn.commit()

    async with store.transaction() as txn:
        await txn.mutate({"uid": uid, "snapchat": "ada.snap"})
        await txn.commit()

    row = (await store.query(person_by_uid(uid)))[0]
    assert (row["name"], row["email"], row["snapchat"]) == ("Ada", "ada@x.io", "ada.snap")


@pytest.mark.asyncio
async def test_friend_reference_creates_unnamed_stub():
    store = InMemoryStore()
    async with store.transaction() as txn:
        await txn.mutate({"uid": "_:ada", "name": "Ada", "friends": [{"uid": "0xff"}]})
        await txn.commit()

    stub = await store.query(person_by_uid("0xff"))
    assert stub[0]["name"] is None
    assert [row["name"] for row in await store.query(all_nodes())] == ["Ada"]


@pytest.mark.asyncio
async def test_drop_all_clears_data_and_schema():
    store = InMemoryStore()
    await store.apply_schema()
    async with store.transaction() as txn:
        await txn.mutate({"uid": "_:ada", "name": "Ada"})
        await txn.commit()

    await store.drop_all()

    assert await store.query(all_people()) == []
    assert store.schema_applied is False


@pytest.mark.asyncio
async def test_empty_edge_lists_are_stored_as_empty():
    store = InMemoryStore()
    async with store.transaction() as txn:
        uid = (await txn.mutate({"uid": "_:ada", "name": "Ada", "school": [], "friends": []}))["ada"]
        await txn.commit()

    row = (await store.query(person_by_uid(uid)))[0]
    assert (row["school"], row["friends"]) == ([], [])


@pytest.mark.asyncio
async def test_append_friend_adds_edge_and_stub():
    store = InMemoryStore()
    async with store.transaction() as txn:
        uid = (await txn.mutate({"uid": "_:ada", "name": "Ada", "friends": [{"uid": "0xa"}]}))["ada"]
        await txn.commit()

    assert await store.append_friend(uid, "0xb") is True
    assert await store.append_friend("0xmissing", "0xb") is False

    row = (await store.query(person_by_uid(uid)))[0]
    assert row["friends"] == [{"uid": "0xa"}, {"uid": "0xb"}]
    assert (await store.query(person_by_uid("0xb")))[0]["uid"] == "0xb"
    assert await store.query(person_by_uid("0xmissing")) == []
