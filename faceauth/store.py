"""
Descriptor Store

Durable persistence of (id, name, descriptor) triples using SQLAlchemy async.
Every operation opens its own session, so each insert is a single committed
row and each listing is a snapshot read at call time.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import numpy as np
from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging

from faceauth.descriptor import as_descriptor
from faceauth.exceptions import StoreUnavailable
from faceauth.models import IdentityDB

logger = logging.getLogger(__name__)

# Connection refused and similar errors from the driver are not wrapped by SQLAlchemy
_STORE_ERRORS = (SQLAlchemyError, OSError)


@dataclass(frozen=True)
class Identity:
    """An enrolled identity as read from the store."""
    id: str
    name: str
    descriptor: np.ndarray
    created_at: Optional[datetime] = None


class DescriptorStore:
    """
    Store of enrolled identities.

    Names are not unique; the same face may be enrolled under several names.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def insert(self, name: str, descriptor: np.ndarray) -> str:
        """
        Persist a new identity.

        Args:
            name: Display name (not required to be unique)
            descriptor: Validated descriptor

        Returns:
            The freshly generated identity id

        Raises:
            StoreUnavailable: If the write fails
        """
        identity_id = uuid.uuid4()
        db_identity = IdentityDB(
            id=identity_id,
            name=name,
            descriptor=[float(v) for v in descriptor],
        )

        try:
            async with self._session_maker() as session:
                session.add(db_identity)
                await session.commit()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to store identity '{name}': {e}")
            raise StoreUnavailable("Failed to store identity") from e

        logger.info(f"Stored identity {identity_id} ('{name}')")
        return str(identity_id)

    async def list_all(self) -> List[Identity]:
        """
        Return every enrolled identity in store-listing (enrollment) order.

        The result is fully materialized; later inserts do not affect it.
        """
        try:
            async with self._session_maker() as session:
                result = await session.execute(select(IdentityDB).order_by(IdentityDB.seq))
                rows = list(result.scalars().all())
        except _STORE_ERRORS as e:
            logger.error(f"Failed to list identities: {e}")
            raise StoreUnavailable("Failed to read identities") from e

        return [self._to_identity(row) for row in rows]

    async def get(self, identity_id: str) -> Optional[Identity]:
        """Get an identity by id, or None if unknown."""
        try:
            record_uuid = uuid.UUID(identity_id)
        except ValueError:
            return None

        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(IdentityDB).where(IdentityDB.id == record_uuid)
                )
                row = result.scalar_one_or_none()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to read identity {identity_id}: {e}")
            raise StoreUnavailable("Failed to read identity") from e

        return self._to_identity(row) if row is not None else None

    async def delete(self, identity_id: str) -> bool:
        """
        Permanently delete an identity.

        Returns:
            True if deleted, False if not found
        """
        try:
            record_uuid = uuid.UUID(identity_id)
        except ValueError:
            return False

        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    delete(IdentityDB).where(IdentityDB.id == record_uuid)
                )
                await session.commit()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to delete identity {identity_id}: {e}")
            raise StoreUnavailable("Failed to delete identity") from e

        if result.rowcount > 0:
            logger.info(f"Deleted identity {identity_id}")
            return True
        return False

    async def count(self) -> int:
        """Get total number of enrolled identities."""
        try:
            async with self._session_maker() as session:
                result = await session.execute(select(func.count(IdentityDB.seq)))
                return result.scalar() or 0
        except _STORE_ERRORS as e:
            logger.error(f"Failed to count identities: {e}")
            raise StoreUnavailable("Failed to count identities") from e

    @staticmethod
    def _to_identity(row: IdentityDB) -> Identity:
        """Convert database model to an Identity."""
        return Identity(
            id=str(row.id),
            name=row.name,
            descriptor=as_descriptor(row.descriptor),
            created_at=row.created_at,
        )
