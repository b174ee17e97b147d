"""
SQLAlchemy ORM Models for the Face Authentication Database

Defines the identities table, on PostgreSQL:
CREATE TABLE identities (
    seq SERIAL PRIMARY KEY,
    id UUID NOT NULL UNIQUE,
    name TEXT NOT NULL,
    descriptor DOUBLE PRECISION[] NOT NULL,
    created_at TIMESTAMP NOT NULL
);
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, DateTime, Text, Float, JSON, Uuid
from sqlalchemy.dialects.postgresql import ARRAY

from faceauth.database import Base


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Native float8[] on PostgreSQL, JSON text elsewhere. Both round-trip
# float64 values exactly.
DescriptorType = JSON().with_variant(ARRAY(Float(precision=53)), "postgresql")


class IdentityDB(Base):
    """
    SQLAlchemy model for the identities table.

    One row per enrollment. `seq` fixes the store-listing order used by
    the matching scan.
    """
    __tablename__ = "identities"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    descriptor = Column(DescriptorType, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<IdentityDB(id={self.id}, name='{self.name}')>"
