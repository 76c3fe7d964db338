import pytest

from friends_directory.core.config import Settings
from friends_directory.directory.bootstrap import build_service, prepare_store
from friends_directory.models import Person
from friends_directory.store import InMemoryStore


def _config(**overrides) -> Settings:
    return Settings(STORE_BACKEND="memory", **overrides)


@pytest.mark.asyncio
async def test_prepare_seeds_missing_people_and_keeps_existing_ones():
    store = InMemoryStore()
    async with store.transaction() as txn:
        existing = (await txn.mutate({"uid": "_:josh", "name": "Joshua"}))["josh"]
        await txn.commit()

    await prepare_store(store, _config(SEED_PEOPLE="Joshua, Pronsh,Justin"))
    service = await build_service(store)

    assert service.index.ready
    assert store.schema_applied
    assert await service.get_uid("Joshua") == existing
    assert sorted(person.name for person in await service.list_people()) == ["Joshua", "Justin", "Pronsh"]


@pytest.mark.asyncio
async def test_repeated_prepare_does_not_duplicate_seeds():
    store = InMemoryStore()
    config = _config(SEED_PEOPLE=["Joshua"])

    await prepare_store(store, config)
    await prepare_store(store, config)

    assert len(await (await build_service(store)).list_people("Joshua")) == 1


@pytest.mark.asyncio
async def test_reset_on_startup_wipes_the_store():
    store = InMemoryStore()
    await (await build_service(store)).add_person(Person(name="Ada"))

    await prepare_store(store, _config(RESET_ON_STARTUP=True, SEED_PEOPLE=["Joshua"]))
    service = await build_service(store)

    assert [person.name for person in await service.list_people()] == ["Joshua"]
    assert len(service.index) == 1


@pytest.mark.asyncio
async def test_build_service_only_reads():
    store = InMemoryStore()
    await store.apply_schema()
    async with store.transaction() as txn:
        await txn.mutate({"uid": "_:ada", "name": "Ada"})
        await txn.commit()

    service = await build_service(store)

    assert len(service.index) == 1
    assert [person.name for person in await service.list_people()] == ["Ada"]
    assert store.schema_applied


@pytest.mark.asyncio
async def test_prepare_without_seeds_leaves_store_empty():
    store = InMemoryStore()

    await prepare_store(store, _config())

    assert await (await build_service(store)).list_people() == []
