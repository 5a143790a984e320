"""
Question Selector — picks the next trait to ask.

Each unasked trait is scored as

    information_gain(trait, candidates) × diversity_score(trait)

where the information gain measures how well the trait splits the current
candidate distribution and the diversity score keeps the game from
over-asking one category and favors stage-appropriate questions:

  - early game: broad categorisation (types, legendary, starter)
  - late game: fine discrimination (stats, physical traits)

Termination is reported as a QuestionSelection without a trait, never as an
exception.
"""

import logging
import math
from typing import List, Optional, Sequence

from guess_kernel.belief.state import BeliefState
from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.models.catalog import TraitCategory
from guess_kernel.models.config import GameConfig
from guess_kernel.models.session import (
    Candidate,
    QuestionSelection,
    StopReason,
    TraitPriority,
)
from guess_kernel.ranking.ranker import CandidateRanker
from guess_kernel.selection.entropy import entropy

logger = logging.getLogger(__name__)

EXHAUSTED_FLOOR = 0.001
EARLY_PRIORITY_THRESHOLD = 8.0
EARLY_PRIORITY_WINDOW = 5
EARLY_PRIORITY_BONUS = 1.3
EARLY_STAGE_BONUS = 1.25
LATE_STAGE_BONUS = 1.15
BROAD_KEY_MARKERS = ("legendary", "starter")
LATE_STAGE_CATEGORIES = (TraitCategory.STAT, TraitCategory.PHYSICAL)


def unmatched_traits(catalog: TraitCatalog, matrix: TraitMatrix) -> List[str]:
    """Catalog traits with no trait-matrix row; these are never asked."""
    return [key for key in catalog.keys() if not matrix.has_trait(key)]


class QuestionSelector:
    """Chooses the most informative admissible question for a session."""

    def __init__(
        self,
        catalog: TraitCatalog,
        matrix: TraitMatrix,
        ranker: CandidateRanker,
        config: Optional[GameConfig] = None,
    ):
        self.catalog = catalog
        self.matrix = matrix
        self.ranker = ranker
        self.config = config or ranker.config

        missing = unmatched_traits(catalog, matrix)
        if missing:
            logger.debug("Skipping %d catalog traits without a trait-matrix row", len(missing))

    def information_gain(self, trait: str, candidates: Sequence[Candidate]) -> float:
        """Entropy reduction from splitting the candidates on ``trait``."""
        if len(candidates) < 2:
            return 0.0

        confidences = [c.confidence for c in candidates]
        current = entropy(confidences)

        positive = []
        negative = []
        for candidate in candidates:
            if self.matrix.value(trait, candidate.entity_id):
                positive.append(candidate.confidence)
            else:
                negative.append(candidate.confidence)

        if not positive or not negative:
            return 0.0

        total = sum(confidences)
        if total <= 0:
            return 0.0
        weighted = (
            (sum(positive) / total) * entropy(positive)
            + (sum(negative) / total) * entropy(negative)
        )
        return max(0.0, current - weighted)

    def diversity_score(self, trait: str, belief: BeliefState) -> float:
        """
        Priority of ``trait`` adjusted for category usage and game stage.

        Not clamped: stage bonuses can lift the score above the static priority.
        """
        definition = self.catalog.get(trait)
        category = definition.category

        if belief.is_category_exhausted(category):
            return EXHAUSTED_FLOOR

        score = definition.priority

        quota = belief.quota_for(category)
        count = belief.category_count(category)
        if quota and count > 0:
            ratio = count / quota
            score *= min(math.exp(-3 * ratio), 0.2 ** (ratio * 4))

        asked = belief.questions_asked
        if asked < EARLY_PRIORITY_WINDOW and definition.priority >= EARLY_PRIORITY_THRESHOLD:
            score *= EARLY_PRIORITY_BONUS

        progress = asked / self.config.max_questions
        if progress < self.config.early_game_fraction:
            if category == TraitCategory.TYPE or any(m in trait for m in BROAD_KEY_MARKERS):
                score *= EARLY_STAGE_BONUS
        elif progress > self.config.late_game_fraction:
            if category in LATE_STAGE_CATEGORIES:
                score *= LATE_STAGE_BONUS

        return score

    def is_admissible(self, trait: str, belief: BeliefState) -> bool:
        """Unasked, backed by the trait matrix, and its category has quota left."""
        if belief.has_asked(trait) or not self.matrix.has_trait(trait):
            return False
        return not belief.is_category_exhausted(self.catalog.category(trait))

    def select_next(self, belief: BeliefState) -> QuestionSelection:
        """Pick the next trait to ask, or report why the session should guess."""
        candidates = self.ranker.ranked_candidates(belief)
        if len(candidates) <= 1:
            logger.debug("%d candidate(s) left, ready to guess", len(candidates))
            return QuestionSelection(
                candidate_count=len(candidates),
                stop_reason=StopReason.READY_TO_GUESS,
            )

        best_trait: Optional[str] = None
        best_score = 0.0
        best_gain = 0.0
        for definition in self.catalog:
            trait = definition.key
            if not self.is_admissible(trait, belief):
                continue
            gain = self.information_gain(trait, candidates)
            score = gain * self.diversity_score(trait, belief)
            if score > best_score:
                best_trait, best_score, best_gain = trait, score, gain

        if best_trait is None:
            logger.debug("No informative trait among %d candidates", len(candidates))
            return QuestionSelection(
                candidate_count=len(candidates),
                stop_reason=StopReason.NO_INFORMATIVE_TRAIT,
            )

        logger.debug(
            "Selected %s (score %.3f, gain %.4f, candidates %d)",
            best_trait, best_score, best_gain, len(candidates),
        )
        return QuestionSelection(
            trait=best_trait,
            question=self.catalog.question_text(best_trait),
            score=best_score,
            information_gain=best_gain,
            candidate_count=len(candidates),
        )

    def trait_priorities(self, belief: BeliefState, limit: int = 15) -> List[TraitPriority]:
        """Top unasked traits by static priority, with their current diversity score."""
        available = [d for d in self.catalog if not belief.has_asked(d.key)]
        available.sort(key=lambda d: d.priority, reverse=True)
        return [
            TraitPriority(
                trait=d.key,
                category=d.category.value,
                priority=d.priority,
                diversity=self.diversity_score(d.key, belief),
            )
            for d in available[:limit]
        ]
