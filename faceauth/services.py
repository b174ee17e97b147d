"""
Enrollment and verification services

EnrollmentService admits new (name, descriptor) pairs into the store.
VerificationService resolves a descriptor against a fresh store snapshot.
"""
import time
from dataclasses import dataclass
from typing import Optional

import logging

from faceauth.config import DESCRIPTOR_DIM, MAX_NAME_LENGTH
from faceauth.descriptor import DescriptorLike, as_descriptor
from faceauth.exceptions import InvalidInput
from faceauth.matching import MatchEngine
from faceauth.store import DescriptorStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a verification. matched=False is the no-match outcome."""
    matched: bool
    name: Optional[str] = None
    identity_id: Optional[str] = None
    distance: Optional[float] = None


class EnrollmentService:
    """Validates and stores new identities. Never consults the matcher."""

    def __init__(self, store: DescriptorStore, descriptor_dim: int = DESCRIPTOR_DIM):
        self.store = store
        self.descriptor_dim = descriptor_dim

    async def enroll(self, name: Optional[str], descriptor: Optional[DescriptorLike]) -> str:
        """
        Enroll a new identity.

        Args:
            name: Username, must be non-empty
            descriptor: Face descriptor of length descriptor_dim

        Returns:
            Generated identity id

        Raises:
            InvalidInput: If name or descriptor are invalid; nothing is written
            StoreUnavailable: If the store write fails
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Name must not be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidInput(f"Name must be at most {MAX_NAME_LENGTH} characters")

        vector = as_descriptor(descriptor, dim=self.descriptor_dim)

        identity_id = await self.store.insert(name, vector)
        logger.info(f"Enrolled '{name}' as {identity_id}")
        return identity_id


class VerificationService:
    """Runs the match engine against the current contents of the store."""

    def __init__(
        self,
        store: DescriptorStore,
        engine: MatchEngine,
        descriptor_dim: int = DESCRIPTOR_DIM
    ):
        self.store = store
        self.engine = engine
        self.descriptor_dim = descriptor_dim

    async def verify(self, descriptor: Optional[DescriptorLike]) -> VerificationResult:
        """
        Verify a descriptor against all enrolled identities.

        Raises:
            InvalidInput: If the descriptor is invalid
            DimensionMismatch: If an enrolled descriptor has a different length
            StoreUnavailable: If the store cannot be read
        """
        start_time = time.time()
        vector = as_descriptor(descriptor, dim=self.descriptor_dim)

        snapshot = await self.store.list_all()
        match = self.engine.query(vector, snapshot)

        processing_time = (time.time() - start_time) * 1000
        if match is None:
            logger.info(f"No match among {len(snapshot)} identities in {processing_time:.1f}ms")
            return VerificationResult(matched=False)

        logger.info(
            f"Matched '{match.identity.name}' ({match.identity.id}) "
            f"at distance {match.distance:.4f} in {processing_time:.1f}ms"
        )
        return VerificationResult(
            matched=True,
            name=match.identity.name,
            identity_id=match.identity.id,
            distance=match.distance,
        )
