"""
Candidate Ranker — turns a BeliefState into per-entity confidence.

Confidence blending:
  - each answered trait scores the player's confidence if the entity has the
    trait, or its complement if it does not
  - hedged answers (0.4..0.6) are amplified by 25% so they cannot silently
    cancel out
  - scores are averaged with the trait reliability weights, calibrated into
    [0.15, 0.85], nudged by a tiny seeded jitter and clamped to [0.05, 0.95]

The ranker holds only read-only data and can be shared by many sessions; the
belief state is passed in on every call.
"""

import logging
import math
import random
from typing import List, Optional, Protocol, Sequence

from guess_kernel.belief.state import BeliefState
from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.models.catalog import Entity
from guess_kernel.models.config import GameConfig
from guess_kernel.models.session import Candidate

logger = logging.getLogger(__name__)

UNKNOWN_CONFIDENCE = 0.1
UNIFORM_PRIOR = 0.5
MIN_CONFIDENCE = 0.05
MAX_CONFIDENCE = 0.95
HEDGE_LOW = 0.4
HEDGE_HIGH = 0.6
HEDGE_BOOST = 1.25
CALIBRATION_FLOOR = 0.15
CALIBRATION_SPAN = 0.7


class JitterSource(Protocol):
    """Protocol for tie-breaking noise — pluggable for reproducible tests."""

    def offset(self, entity_id: str, revision: int) -> float: ...


class SeededJitter:
    """
    Deterministic jitter in ``[-amplitude, amplitude]``.

    The offset is a function of (seed, belief revision, entity), so the same
    belief always ranks the same way and equal seeds replay equal games.
    """

    def __init__(self, seed: Optional[int] = None, amplitude: float = 0.001):
        self.seed = seed if seed is not None else random.randrange(2**32)
        self.amplitude = amplitude

    def offset(self, entity_id: str, revision: int) -> float:
        rng = random.Random(f"{self.seed}:{revision}:{entity_id}")
        return rng.uniform(-self.amplitude, self.amplitude)


class NoJitter:
    """Jitter source that never perturbs anything."""

    def offset(self, entity_id: str, revision: int) -> float:
        return 0.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class CandidateRanker:
    """Scores and filters entities against the answers in a BeliefState."""

    def __init__(
        self,
        entities: Sequence[Entity],
        matrix: TraitMatrix,
        catalog: TraitCatalog,
        config: Optional[GameConfig] = None,
        jitter: Optional[JitterSource] = None,
    ):
        self.entities = list(entities)
        self.matrix = matrix
        self.catalog = catalog
        self.config = config or GameConfig()
        self.jitter = jitter or SeededJitter(self.config.jitter_seed)

    def confidence_of(self, entity_id: str, belief: BeliefState) -> float:
        """Engine confidence in [0.05, 0.95] that ``entity_id`` is the target."""
        if belief.is_empty():
            return UNKNOWN_CONFIDENCE

        total_score = 0.0
        total_weight = 0.0
        for trait, user_confidence in belief.answers.items():
            if self.matrix.value(trait, entity_id):
                trait_score = user_confidence
            else:
                trait_score = 1.0 - user_confidence

            if HEDGE_LOW <= user_confidence <= HEDGE_HIGH:
                trait_score *= HEDGE_BOOST

            weight = self.catalog.reliability(trait)
            total_score += trait_score * weight
            total_weight += weight

        if total_weight == 0:
            return UNKNOWN_CONFIDENCE

        base = total_score / total_weight
        calibrated = CALIBRATION_FLOOR + CALIBRATION_SPAN * base
        noise = self.jitter.offset(entity_id, belief.questions_asked)
        return _clamp(calibrated + noise, MIN_CONFIDENCE, MAX_CONFIDENCE)

    def progress(self, belief: BeliefState) -> float:
        return belief.questions_asked / self.config.max_questions

    def min_threshold(self, belief: BeliefState) -> float:
        """Viability floor; starts at 0.4 and tightens towards 0.1."""
        return max(0.1, 0.4 - 0.3 * self.progress(belief))

    def max_candidates(self, belief: BeliefState) -> int:
        """Candidate cap; starts at 50 and shrinks to no fewer than 5."""
        return max(5, math.floor(50 - 30 * self.progress(belief)))

    def ranked_candidates(self, belief: BeliefState) -> List[Candidate]:
        """
        Viable candidates, most likely first.

        With no answers every entity is viable at a uniform 0.5. Afterwards
        the list is filtered by the dynamic threshold and truncated to the
        dynamic cap.
        """
        if belief.is_empty():
            return [
                Candidate(entity_id=e.id, confidence=UNIFORM_PRIOR)
                for e in self.entities
            ]

        threshold = self.min_threshold(belief)
        candidates = []
        for entity in self.entities:
            confidence = self.confidence_of(entity.id, belief)
            if confidence >= threshold:
                candidates.append(Candidate(entity_id=entity.id, confidence=confidence))

        candidates.sort(key=lambda c: c.confidence, reverse=True)
        limit = self.max_candidates(belief)
        logger.debug(
            "Ranked %d viable candidates (threshold %.3f, cap %d)",
            len(candidates), threshold, limit,
        )
        return candidates[:limit]

    def score_all(self, belief: BeliefState) -> List[Candidate]:
        """Every entity, unfiltered, most likely first. Used for the final guess."""
        candidates = [
            Candidate(entity_id=e.id, confidence=self.confidence_of(e.id, belief))
            for e in self.entities
        ]
        candidates.sort(key=lambda c: c.confidence, reverse=True)
        return candidates
