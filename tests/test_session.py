"""Tests for the Game Session state machine and the session store."""

import logging

import pytest

from guess_kernel.catalog.loader import load_bundled
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import ConfigurationError, InvalidInputError, SessionStateError
from guess_kernel.models.config import GameConfig
from guess_kernel.models.session import SessionState, StopReason
from guess_kernel.ranking.ranker import NoJitter
from guess_kernel.session.controller import ENGINE_VERSION, GameSession
from guess_kernel.session.store import SessionStore


@pytest.fixture(scope="module")
def bundled():
    return load_bundled()


def _make_session(bundled, **config) -> GameSession:
    entities, matrix = bundled
    return GameSession(
        entities, matrix, TraitCatalog.default(), GameConfig(**config),
    )


def _truthful(matrix, target):
    """A player who answers every question correctly about ``target``."""
    def answer(trait):
        return 1.0 if matrix.value(trait.key, target) else 0.0
    return answer


class TestLifecycle:
    def test_initial_state(self, bundled):
        session = _make_session(bundled)
        assert session.state == SessionState.IDLE
        assert session.id.startswith("sess_")
        assert session.questions_asked == 0

    def test_requires_entities(self, bundled):
        _, matrix = bundled
        with pytest.raises(ValueError):
            GameSession([], matrix, TraitCatalog.default())

    def test_start(self, bundled):
        session = _make_session(bundled)
        session.start()
        assert session.state == SessionState.ASKING
        assert session.started_at is not None

    def test_start_twice_rejected(self, bundled):
        session = _make_session(bundled)
        session.start()
        with pytest.raises(SessionStateError):
            session.start()

    def test_next_question_before_start(self, bundled):
        session = _make_session(bundled)
        with pytest.raises(SessionStateError):
            session.next_question()

    def test_answer_before_start(self, bundled):
        session = _make_session(bundled)
        with pytest.raises(SessionStateError):
            session.answer(1.0)

    def test_guess_before_start(self, bundled):
        session = _make_session(bundled)
        with pytest.raises(SessionStateError):
            session.guess()

    def test_reset_returns_to_idle(self, bundled):
        session = _make_session(bundled)
        session.start()
        session.next_question()
        session.answer(1.0)
        session.guess()

        session.reset()
        assert session.state == SessionState.IDLE
        assert session.questions_asked == 0
        assert session.result is None
        assert session.pending_trait is None
        session.start()
        assert session.state == SessionState.ASKING


class TestAskAndAnswer:
    def setup_method(self):
        entities, matrix = load_bundled()
        self.matrix = matrix
        self.session = GameSession(entities, matrix, TraitCatalog.default(), GameConfig(jitter_seed=1))
        self.session.start()

    def test_question_is_pending_until_answered(self):
        first = self.session.next_question()
        assert not first.terminated
        assert first.question
        assert self.session.pending_trait == first.trait
        assert self.session.next_question() == first

    def test_answer_records_pending_trait(self):
        selection = self.session.next_question()
        self.session.answer(0.8)
        assert self.session.questions_asked == 1
        assert self.session.belief.answers == {selection.trait: 0.8}
        assert self.session.pending_trait is None

        second = self.session.next_question()
        assert second.trait != selection.trait

    def test_answer_without_pending_question(self):
        with pytest.raises(InvalidInputError):
            self.session.answer(1.0)

    def test_invalid_confidence_keeps_question_pending(self):
        selection = self.session.next_question()
        with pytest.raises(InvalidInputError):
            self.session.answer(1.5)
        assert self.session.questions_asked == 0
        assert self.session.pending_trait == selection.trait

    def test_max_questions_stops_asking(self):
        entities, matrix = load_bundled()
        session = GameSession(entities, matrix, TraitCatalog.default(), GameConfig(max_questions=2))
        session.start()
        for _ in range(2):
            session.next_question()
            session.answer(0.0)

        assert session.state == SessionState.GUESSING
        assert session.stop_reason == StopReason.MAX_QUESTIONS
        selection = session.next_question()
        assert selection.terminated
        assert selection.stop_reason == StopReason.MAX_QUESTIONS
        with pytest.raises(SessionStateError):
            session.answer(1.0)

    def test_guess_drops_pending_question(self):
        self.session.next_question()
        result = self.session.guess()
        assert result.questions_asked == 0
        assert self.session.pending_trait is None
        assert self.session.state == SessionState.DONE


class TestGuess:
    def test_immediate_guess_prefers_most_distinctive(self, bundled):
        session = _make_session(bundled)
        session.start()
        result = session.guess()
        # Every entity scores 0.1; mewtwo and lugia tie on distinctiveness, mewtwo first
        assert result.entity_id == "mewtwo"
        assert result.display_name == "Mewtwo"
        assert result.confidence == pytest.approx(0.1)
        assert result.questions_asked == 0
        assert result.stop_reason is None
        assert len(result.top_candidates) == 10

    def test_done_returns_stored_result(self, bundled):
        session = _make_session(bundled)
        session.start()
        first = session.guess()
        assert session.guess() is first
        selection = session.next_question()
        assert selection.terminated

    def test_answer_after_done_rejected(self, bundled):
        session = _make_session(bundled)
        session.start()
        session.guess()
        with pytest.raises(SessionStateError):
            session.answer(0.5)


class TestPlay:
    @pytest.mark.parametrize("target", ["pikachu", "charizard", "gengar", "snorlax", "mew"])
    def test_truthful_player(self, bundled, target):
        _, matrix = bundled
        session = _make_session(bundled, jitter_seed=3)
        result = session.play(_truthful(matrix, target))

        assert session.state == SessionState.DONE
        assert 0.05 <= result.confidence <= 0.95
        assert result.questions_asked <= session.config.max_questions
        top = {c.entity_id: c.confidence for c in result.top_candidates}
        assert target in top
        assert top[target] >= result.confidence - 0.002

    def test_quotas_never_exceeded(self, bundled):
        _, matrix = bundled
        session = _make_session(bundled)
        session.play(_truthful(matrix, "dragonite"))
        for category, count in session.belief.category_counts.items():
            assert count <= session.config.quotas[category]

    def test_answer_fn_receives_definitions(self, bundled):
        seen = []

        def answer(trait):
            seen.append(trait)
            return 0.5

        session = _make_session(bundled, max_questions=3)
        result = session.play(answer)
        assert len(seen) == 3
        assert all(t.question_text for t in seen)
        assert result.stop_reason == StopReason.MAX_QUESTIONS
        assert result.questions_asked == 3

    def test_same_seed_same_game(self, bundled):
        _, matrix = bundled

        def run():
            asked = []
            truthful = _truthful(matrix, "gyarados")

            def answer(trait):
                asked.append(trait.key)
                return truthful(trait)

            result = _make_session(bundled, jitter_seed=42).play(answer)
            return asked, result.model_dump(exclude={"top_candidates"})

        assert run() == run()

    def test_play_continues_started_session(self, bundled):
        _, matrix = bundled
        session = _make_session(bundled)
        session.start()
        result = session.play(_truthful(matrix, "onix"))
        assert session.state == SessionState.DONE
        assert result.entity_id in session.entities


class TestDiagnostics:
    def test_snapshot(self, bundled):
        entities, matrix = bundled
        session = GameSession(entities, matrix, TraitCatalog.default(), jitter=NoJitter(),
                              session_id="sess_fixed")
        session.start()
        session.next_question()
        session.answer(1.0)
        session.next_question()

        diag = session.diagnostics(top_n=3)
        assert diag.session_id == "sess_fixed"
        assert diag.state == SessionState.ASKING
        assert diag.questions_asked == 1
        assert diag.max_questions == 25
        assert set(diag.categories) == {"type", "habitat", "color", "stat", "physical"}
        assert diag.categories["type"].quota == 3
        assert len(diag.top_candidates) <= 3
        assert diag.total_information_gain > 0
        assert diag.average_information_gain == pytest.approx(diag.total_information_gain)
        assert diag.pending_trait == session.pending_trait
        assert diag.engine_version == ENGINE_VERSION

    def test_explicit_zero_top_n(self, bundled):
        session = _make_session(bundled)
        session.start()
        assert session.diagnostics(top_n=0).top_candidates == []
        assert len(session.diagnostics().top_candidates) == 10

    def test_trait_priorities(self, bundled):
        session = _make_session(bundled)
        session.start()
        rows = session.trait_priorities(limit=3)
        assert [r.trait for r in rows] == ["starter_pokemon", "final_evolution", "is_legendary"]

    def test_statistics_logged_on_guess(self, bundled, caplog):
        caplog.set_level(logging.INFO, logger="guess_kernel")
        session = _make_session(bundled, max_questions=1)
        session.play(lambda trait: 1.0)
        messages = [r.getMessage() for r in caplog.records]
        assert any("guesses" in m for m in messages)
        assert any("statistics" in m for m in messages)


class TestSessionStore:
    def setup_method(self):
        entities, matrix = load_bundled()
        self.store = SessionStore(entities, matrix, TraitCatalog.default())

    def test_create_starts_session(self):
        session = self.store.create()
        assert session.state == SessionState.ASKING
        assert self.store.get(session.id) is session
        assert self.store.count() == 1

    def test_create_with_overrides(self):
        session = self.store.create(seed=5, max_questions=4)
        assert session.config.jitter_seed == 5
        assert session.config.max_questions == 4
        # The store's base configuration is untouched
        assert self.store.config.max_questions == 25

    def test_sessions_are_independent(self):
        a = self.store.create()
        b = self.store.create()
        a.next_question()
        a.answer(1.0)
        assert b.questions_asked == 0
        assert sorted(self.store.list_ids()) == sorted([a.id, b.id])

    def test_remove(self):
        session = self.store.create()
        assert self.store.remove(session.id)
        assert self.store.get(session.id) is None
        assert not self.store.remove(session.id)

    @pytest.mark.parametrize("max_questions", [0, -3])
    def test_invalid_override_rejected(self, max_questions):
        with pytest.raises(ConfigurationError):
            self.store.create(max_questions=max_questions)
        assert self.store.count() == 0

    def test_overrides_keep_base_config(self):
        entities, matrix = load_bundled()
        base = GameConfig(quotas={"type": 1}, tie_epsilon=0.01)
        store = SessionStore(entities, matrix, TraitCatalog.default(), base)
        session = store.create(seed=2)
        assert session.config.quotas == base.quotas
        assert session.config.tie_epsilon == 0.01

    def test_unmatched_traits_warned_once(self, caplog):
        caplog.set_level(logging.WARNING, logger="guess_kernel")
        entities, matrix = load_bundled()
        store = SessionStore(entities, matrix, TraitCatalog.default())
        for _ in range(3):
            store.create()
        warnings = [r for r in caplog.records if "no trait-matrix row" in r.getMessage()]
        assert len(warnings) == 1


class TestSessionStoreCapacity:
    def setup_method(self):
        entities, matrix = load_bundled()
        self.store = SessionStore(entities, matrix, TraitCatalog.default(), max_sessions=2)

    def test_finished_sessions_evicted_first(self):
        a = self.store.create()
        b = self.store.create()
        b.guess()
        c = self.store.create()
        assert self.store.list_ids() == [a.id, c.id]

    def test_oldest_evicted_when_none_finished(self):
        a = self.store.create()
        b = self.store.create()
        c = self.store.create()
        assert self.store.get(a.id) is None
        assert self.store.list_ids() == [b.id, c.id]

    def test_never_exceeds_capacity(self):
        for _ in range(5):
            self.store.create()
        assert self.store.count() == 2

    def test_capacity_must_be_positive(self):
        entities, matrix = load_bundled()
        with pytest.raises(ValueError):
            SessionStore(entities, matrix, TraitCatalog.default(), max_sessions=0)
