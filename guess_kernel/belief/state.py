"""
Belief State — everything a session has learned from the player so far.

Holds the ordered (trait, confidence) answers, the asked-trait set and the
per-category question counters. It is owned by exactly one session and is
mutated only through ``record_answer``.
"""

import logging
import math
from typing import Dict, FrozenSet, Mapping, Optional

from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import InvalidInputError
from guess_kernel.models.catalog import TraitCategory
from guess_kernel.models.config import DEFAULT_QUOTAS

logger = logging.getLogger(__name__)


class BeliefState:
    """
    Answers recorded in one session.

    Invariants:
      - each trait is recorded at most once
      - ``asked_traits`` always equals the answer keys
      - no category counter exceeds its quota
    """

    def __init__(
        self,
        catalog: TraitCatalog,
        quotas: Optional[Mapping[TraitCategory, int]] = None,
    ):
        self.catalog = catalog
        self.quotas: Dict[TraitCategory, int] = dict(
            DEFAULT_QUOTAS if quotas is None else quotas
        )
        self._answers: Dict[str, float] = {}
        self._asked: set = set()
        self._counts: Dict[TraitCategory, int] = {c: 0 for c in self.quotas}

    @property
    def questions_asked(self) -> int:
        return len(self._answers)

    @property
    def answers(self) -> Dict[str, float]:
        """Copy of the answers, in question order."""
        return dict(self._answers)

    @property
    def asked_traits(self) -> FrozenSet[str]:
        return frozenset(self._asked)

    @property
    def category_counts(self) -> Dict[TraitCategory, int]:
        return dict(self._counts)

    def is_empty(self) -> bool:
        return not self._answers

    def has_asked(self, trait: str) -> bool:
        return trait in self._asked

    def category_count(self, category: TraitCategory) -> int:
        return self._counts.get(category, 0)

    def quota_for(self, category: TraitCategory) -> Optional[int]:
        return self.quotas.get(category)

    def is_category_exhausted(self, category: TraitCategory) -> bool:
        """Whether a quota-tracked category has used up its questions."""
        quota = self.quotas.get(category)
        if quota is None:
            return False
        return self._counts.get(category, 0) >= quota

    def record_answer(self, trait: str, confidence: float) -> None:
        """
        Record the player's confidence that the target has ``trait``.

        Raises InvalidInputError (leaving the state untouched) when the
        confidence is not a number in [0, 1], the trait was already asked, or
        the trait's category has no quota left.
        """
        if (
            isinstance(confidence, bool)
            or not isinstance(confidence, (int, float))
            or math.isnan(confidence)
            or not 0.0 <= confidence <= 1.0
        ):
            raise InvalidInputError(
                f"Confidence for {trait!r} must be a number in [0, 1], got {confidence!r}"
            )
        if trait in self._asked:
            raise InvalidInputError(f"Trait {trait!r} has already been answered")

        category = self.catalog.category(trait)
        if self.is_category_exhausted(category):
            raise InvalidInputError(
                f"Category {category.value!r} has reached its quota "
                f"of {self.quotas[category]} questions"
            )

        self._answers[trait] = float(confidence)
        self._asked.add(trait)
        if category in self._counts:
            self._counts[category] += 1

        logger.debug(
            "Recorded %s=%.2f (question %d, %s %d/%s)",
            trait, confidence, self.questions_asked, category.value,
            self._counts.get(category, 0), self.quotas.get(category, "-"),
        )

    def reset(self) -> None:
        """Forget every answer, as at session start."""
        self._answers.clear()
        self._asked.clear()
        self._counts = {c: 0 for c in self.quotas}

    def snapshot(self) -> dict:
        """Serializable view of the current state."""
        return {
            "answers": [
                {"trait": t, "confidence": c} for t, c in self._answers.items()
            ],
            "category_counts": {c.value: n for c, n in self._counts.items()},
            "quotas": {c.value: q for c, q in self.quotas.items()},
        }
