"""
Game Session — the ask/answer state machine around the engine.

States:
  IDLE → ASKING → GUESSING → DONE

The engine never waits: presenting a question and collecting the answer is
the caller's job, either step by step (``next_question`` / ``answer``) or
through a synchronous callback (``play``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from guess_kernel.belief.state import BeliefState
from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import InvalidInputError, SessionStateError
from guess_kernel.models.catalog import Entity, TraitDefinition
from guess_kernel.models.config import GameConfig
from guess_kernel.models.session import (
    CategoryUsage,
    GuessResult,
    QuestionSelection,
    SessionDiagnostics,
    SessionState,
    StopReason,
    TraitPriority,
)
from guess_kernel.ranking.ranker import CandidateRanker, JitterSource, SeededJitter
from guess_kernel.selection.selector import QuestionSelector
from guess_kernel.tiebreak.resolver import TieBreaker

logger = logging.getLogger(__name__)

ENGINE_VERSION = "0.1.0"

AnswerProvider = Callable[[TraitDefinition], float]


class GameSession:
    """One game against one player. Owns its BeliefState exclusively."""

    def __init__(
        self,
        entities: Sequence[Entity],
        matrix: TraitMatrix,
        catalog: TraitCatalog,
        config: Optional[GameConfig] = None,
        jitter: Optional[JitterSource] = None,
        session_id: Optional[str] = None,
    ):
        if not entities:
            raise ValueError("A game session needs at least one entity")

        self.id = session_id or f"sess_{uuid4().hex[:12]}"
        self.config = config or GameConfig()
        self.catalog = catalog
        self.entities = {e.id: e for e in entities}

        self.jitter = jitter or SeededJitter(self.config.jitter_seed)
        self.ranker = CandidateRanker(entities, matrix, catalog, self.config, self.jitter)
        self.selector = QuestionSelector(catalog, matrix, self.ranker, self.config)
        self.tie_breaker = TieBreaker(entities, epsilon=self.config.tie_epsilon)

        self._reset_state()

    def _reset_state(self) -> None:
        self.belief = BeliefState(self.catalog, self.config.quotas)
        self._state = SessionState.IDLE
        self._pending: Optional[QuestionSelection] = None
        self._stop_reason: Optional[StopReason] = None
        self._result: Optional[GuessResult] = None
        self._total_gain = 0.0
        self.started_at: Optional[datetime] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def questions_asked(self) -> int:
        return self.belief.questions_asked

    @property
    def pending_trait(self) -> Optional[str]:
        return self._pending.trait if self._pending else None

    @property
    def result(self) -> Optional[GuessResult]:
        return self._result

    @property
    def stop_reason(self) -> Optional[StopReason]:
        return self._stop_reason

    def start(self) -> None:
        """Begin asking. Only valid from IDLE."""
        if self._state != SessionState.IDLE:
            raise SessionStateError(
                f"Session {self.id} cannot start from state {self._state.value}"
            )
        self._state = SessionState.ASKING
        self.started_at = datetime.now(timezone.utc)
        logger.info(
            "Session %s started (%d entities, %d traits, max %d questions)",
            self.id, len(self.entities), len(self.catalog), self.config.max_questions,
        )

    def _stop_asking(self, reason: StopReason) -> QuestionSelection:
        self._state = SessionState.GUESSING
        self._stop_reason = reason
        self._pending = None
        logger.info(
            "Session %s stops asking after %d questions: %s",
            self.id, self.questions_asked, reason.value,
        )
        return QuestionSelection(stop_reason=reason)

    def next_question(self) -> QuestionSelection:
        """
        The question to put to the player, or a terminated selection.

        Asking again before answering returns the same pending question.
        """
        if self._state == SessionState.IDLE:
            raise SessionStateError(f"Session {self.id} has not been started")
        if self._state in (SessionState.GUESSING, SessionState.DONE):
            return QuestionSelection(stop_reason=self._stop_reason)

        if self._pending is not None:
            return self._pending

        if self.questions_asked >= self.config.max_questions:
            return self._stop_asking(StopReason.MAX_QUESTIONS)

        selection = self.selector.select_next(self.belief)
        if selection.terminated:
            self._stop_asking(selection.stop_reason)
            return selection

        self._pending = selection
        return selection

    def answer(self, confidence: float) -> None:
        """Record the player's confidence for the pending question."""
        if self._state != SessionState.ASKING:
            raise SessionStateError(
                f"Session {self.id} is not asking (state {self._state.value})"
            )
        if self._pending is None:
            raise InvalidInputError(f"Session {self.id} has no pending question")

        self.belief.record_answer(self._pending.trait, confidence)
        self._total_gain += self._pending.information_gain
        self._pending = None

        if self.questions_asked >= self.config.max_questions:
            self._stop_asking(StopReason.MAX_QUESTIONS)

    def guess(self) -> GuessResult:
        """
        Commit to a final guess over the full entity set.

        May be called early while asking; a pending question is dropped.
        Once DONE the stored result is returned.
        """
        if self._state == SessionState.DONE:
            return self._result
        if self._state == SessionState.IDLE:
            raise SessionStateError(f"Session {self.id} has not been started")

        scored = self.ranker.score_all(self.belief)
        ranked = self.tie_breaker.resolve_close_ties(scored)
        best = ranked[0]
        entity = self.entities[best.entity_id]

        self._pending = None
        self._result = GuessResult(
            entity_id=entity.id,
            display_name=entity.display_name,
            confidence=best.confidence,
            questions_asked=self.questions_asked,
            stop_reason=self._stop_reason,
            top_candidates=ranked[: self.config.top_n],
        )
        self._state = SessionState.DONE

        logger.info(
            "Session %s guesses %s (confidence %.1f%%) after %d questions",
            self.id, entity.display_name, best.confidence * 100, self.questions_asked,
        )
        self._log_statistics()
        return self._result

    def play(self, answer_fn: AnswerProvider) -> GuessResult:
        """Run a whole game, asking ``answer_fn`` for every question."""
        if self._state == SessionState.IDLE:
            self.start()

        while True:
            selection = self.next_question()
            if selection.terminated:
                break
            trait = self.catalog.get(selection.trait)
            self.answer(answer_fn(trait))

        return self.guess()

    def reset(self) -> None:
        """Discard the belief state and return to IDLE for a new game."""
        self._reset_state()
        logger.debug("Session %s reset", self.id)

    # --- Diagnostics ---

    @property
    def average_information_gain(self) -> float:
        if self.questions_asked == 0:
            return 0.0
        return self._total_gain / self.questions_asked

    def diagnostics(self, top_n: Optional[int] = None) -> SessionDiagnostics:
        """Observability snapshot; not needed for correctness."""
        limit = top_n if top_n is not None else self.config.top_n
        counts = self.belief.category_counts
        categories = {
            category.value: CategoryUsage(count=counts.get(category, 0), quota=quota)
            for category, quota in self.config.quotas.items()
        }
        return SessionDiagnostics(
            session_id=self.id,
            state=self._state,
            questions_asked=self.questions_asked,
            max_questions=self.config.max_questions,
            categories=categories,
            total_information_gain=self._total_gain,
            average_information_gain=self.average_information_gain,
            top_candidates=self.ranker.ranked_candidates(self.belief)[:limit],
            pending_trait=self.pending_trait,
            engine_version=ENGINE_VERSION,
        )

    def trait_priorities(self, limit: int = 15) -> List[TraitPriority]:
        return self.selector.trait_priorities(self.belief, limit)

    def _log_statistics(self) -> None:
        duration = "n/a"
        if self.started_at:
            elapsed = datetime.now(timezone.utc) - self.started_at
            duration = f"{elapsed.total_seconds():.1f}s"
        usage = ", ".join(
            f"{category.value} {self.belief.category_count(category)}/{quota}"
            for category, quota in self.config.quotas.items()
        )
        logger.info(
            "Session %s statistics: duration %s, questions %d, [%s], "
            "information gain total %.4f avg %.4f",
            self.id, duration, self.questions_asked, usage,
            self._total_gain, self.average_information_gain,
        )
