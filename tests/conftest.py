"""Shared fixtures for the face authentication tests."""
import uuid

import numpy as np
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from faceauth.database import Base
from faceauth.exceptions import StoreUnavailable
from faceauth.store import DescriptorStore, Identity

DIM = 128


def make_descriptor(fill: float = 0.1, dim: int = DIM) -> np.ndarray:
    """Descriptor of `dim` values all equal to `fill`."""
    return np.full(dim, fill, dtype=np.float64)


def shifted(base: np.ndarray, dist: float) -> np.ndarray:
    """Copy of base moved exactly `dist` away along the first axis."""
    out = np.array(base, dtype=np.float64)
    out[0] += dist
    return out


class InMemoryStore:
    """Async stand-in for DescriptorStore keeping identities in a list."""

    def __init__(self):
        self.identities = []
        self.available = True

    def _check(self):
        if not self.available:
            raise StoreUnavailable("store is down")

    async def insert(self, name, descriptor):
        self._check()
        identity = Identity(id=str(uuid.uuid4()), name=name, descriptor=np.array(descriptor))
        self.identities.append(identity)
        return identity.id

    async def list_all(self):
        self._check()
        return list(self.identities)

    async def get(self, identity_id):
        self._check()
        return next((i for i in self.identities if i.id == identity_id), None)

    async def delete(self, identity_id):
        self._check()
        before = len(self.identities)
        self.identities = [i for i in self.identities if i.id != identity_id]
        return len(self.identities) < before

    async def count(self):
        self._check()
        return len(self.identities)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
async def sqlite_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'faceauth.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine):
    session_maker = async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)
    return DescriptorStore(session_maker)
