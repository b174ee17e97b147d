"""
Match Engine

Resolves a query descriptor to an enrolled identity.

Two scan policies are available:

- FIRST_ACCEPTABLE (default): candidates are visited in store-listing
  order and the first one accepted by the acceptance rule wins. The scan
  stops there, so a later and strictly closer identity is never seen.
- NEAREST: every candidate is visited and the closest accepted one wins.
  With an ambiguity margin > 0 the query is rejected when the runner-up
  is also accepted and lies within the margin of the winner.

Both are linear O(N*D) scans over a store snapshot, no index is kept.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

import numpy as np
import logging

from faceauth.config import MATCH_THRESHOLD, MATCH_POLICY, AMBIGUITY_MARGIN
from faceauth.descriptor import distance
from faceauth.store import Identity

logger = logging.getLogger(__name__)

AcceptanceRule = Callable[[float, float], bool]


def under_threshold(query_distance: float, threshold: float) -> bool:
    """Accept a candidate whose distance is strictly below the threshold."""
    return query_distance < threshold


class MatchPolicy(str, Enum):
    FIRST_ACCEPTABLE = "first"
    NEAREST = "nearest"


@dataclass(frozen=True)
class Match:
    """An accepted candidate and its distance to the query."""
    identity: Identity
    distance: float


class MatchEngine:
    """
    Threshold-based matcher over a snapshot of enrolled identities.

    The engine holds no store state; callers pass the candidates for
    every query.
    """

    def __init__(
        self,
        threshold: float = MATCH_THRESHOLD,
        policy: MatchPolicy = MatchPolicy(MATCH_POLICY),
        acceptance_rule: AcceptanceRule = under_threshold,
        ambiguity_margin: float = AMBIGUITY_MARGIN
    ):
        if not np.isfinite(threshold) or threshold <= 0:
            raise ValueError(f"Threshold must be a positive finite number, got {threshold}")
        if ambiguity_margin < 0:
            raise ValueError(f"Ambiguity margin must be >= 0, got {ambiguity_margin}")

        self.threshold = threshold
        self.policy = MatchPolicy(policy)
        self.acceptance_rule = acceptance_rule
        self.ambiguity_margin = ambiguity_margin

    def query(self, descriptor: np.ndarray, candidates: Iterable[Identity]) -> Optional[Match]:
        """
        Find the matching identity for a descriptor.

        Args:
            descriptor: Validated query descriptor
            candidates: Enrolled identities in store-listing order

        Returns:
            The accepted Match, or None if no candidate qualifies

        Raises:
            DimensionMismatch: If any candidate has a different length than
                the query. The scan is aborted.
        """
        if self.policy is MatchPolicy.FIRST_ACCEPTABLE:
            return self._first_acceptable(descriptor, candidates)
        return self._nearest(descriptor, candidates)

    def _first_acceptable(self, descriptor: np.ndarray, candidates: Iterable[Identity]) -> Optional[Match]:
        for candidate in candidates:
            dist = distance(descriptor, candidate.descriptor)
            if self.acceptance_rule(dist, self.threshold):
                return Match(identity=candidate, distance=dist)
        return None

    def _nearest(self, descriptor: np.ndarray, candidates: Iterable[Identity]) -> Optional[Match]:
        accepted = []
        for candidate in candidates:
            dist = distance(descriptor, candidate.descriptor)
            if self.acceptance_rule(dist, self.threshold):
                accepted.append(Match(identity=candidate, distance=dist))

        if not accepted:
            return None

        # Stable sort keeps store order between equal distances
        accepted.sort(key=lambda m: m.distance)
        best = accepted[0]

        if self.ambiguity_margin > 0 and len(accepted) > 1:
            runner_up = accepted[1]
            if runner_up.distance - best.distance < self.ambiguity_margin:
                logger.warning(
                    f"Ambiguous match between '{best.identity.name}' ({best.distance:.4f}) "
                    f"and '{runner_up.identity.name}' ({runner_up.distance:.4f}), rejecting"
                )
                return None

        return best
