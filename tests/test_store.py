import numpy as np
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from faceauth.descriptor import as_descriptor
from faceauth.exceptions import StoreUnavailable
from faceauth.store import DescriptorStore
from tests.conftest import make_descriptor


async def test_insert_returns_distinct_ids_for_duplicates(sqlite_store):
    descriptor = as_descriptor(make_descriptor(0.1))
    first = await sqlite_store.insert("alice", descriptor)
    second = await sqlite_store.insert("alice", descriptor)

    assert first != second
    listed = await sqlite_store.list_all()
    assert [i.id for i in listed] == [first, second]
    assert [i.name for i in listed] == ["alice", "alice"]


async def test_descriptor_round_trips_exactly(sqlite_store):
    rng = np.random.default_rng(42)
    descriptor = as_descriptor(rng.normal(scale=0.1, size=128))
    identity_id = await sqlite_store.insert("bob", descriptor)

    stored = await sqlite_store.get(identity_id)
    assert stored.descriptor.dtype == np.float64
    assert np.array_equal(stored.descriptor, descriptor)


async def test_list_all_keeps_enrollment_order(sqlite_store):
    names = ["carol", "alice", "bob"]
    for i, name in enumerate(names):
        await sqlite_store.insert(name, as_descriptor(make_descriptor(i / 10)))

    assert [i.name for i in await sqlite_store.list_all()] == names


async def test_list_all_is_a_snapshot(sqlite_store):
    await sqlite_store.insert("alice", as_descriptor(make_descriptor(0.1)))
    snapshot = await sqlite_store.list_all()
    await sqlite_store.insert("bob", as_descriptor(make_descriptor(0.2)))

    assert len(snapshot) == 1
    assert await sqlite_store.count() == 2


async def test_empty_store(sqlite_store):
    assert await sqlite_store.list_all() == []
    assert await sqlite_store.count() == 0


async def test_get_unknown_and_malformed_ids(sqlite_store):
    assert await sqlite_store.get("00000000-0000-0000-0000-000000000000") is None
    assert await sqlite_store.get("not-a-uuid") is None


async def test_delete(sqlite_store):
    identity_id = await sqlite_store.insert("alice", as_descriptor(make_descriptor(0.1)))

    assert await sqlite_store.delete(identity_id) is True
    assert await sqlite_store.delete(identity_id) is False
    assert await sqlite_store.delete("not-a-uuid") is False
    assert await sqlite_store.list_all() == []


@pytest.fixture
async def broken_store(tmp_path):
    # No tables were created, every statement fails
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    yield DescriptorStore(async_sessionmaker(engine, class_=AsyncSession))
    await engine.dispose()


async def test_failures_surface_as_store_unavailable(broken_store):
    with pytest.raises(StoreUnavailable):
        await broken_store.insert("alice", as_descriptor(make_descriptor(0.1)))
    with pytest.raises(StoreUnavailable):
        await broken_store.list_all()
    with pytest.raises(StoreUnavailable):
        await broken_store.count()
