"""Tests for the Candidate Ranker."""

import pytest

from guess_kernel.belief.state import BeliefState
from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.models.catalog import Entity
from guess_kernel.models.config import GameConfig
from guess_kernel.ranking.ranker import CandidateRanker, NoJitter, SeededJitter


def _make_entities():
    return [
        Entity(id="A", display_name="A", types=["fire"]),
        Entity(id="B", display_name="B", types=["psychic"]),
        Entity(id="C", display_name="C", types=["fire", "dragon"]),
    ]


def _make_matrix() -> TraitMatrix:
    return TraitMatrix({
        "type_fire": {"A": True, "B": False, "C": True},
        "is_legendary": {"A": False, "B": True, "C": True},
    })


def _make_ranker(jitter=None, config=None, catalog=None) -> CandidateRanker:
    return CandidateRanker(
        _make_entities(),
        _make_matrix(),
        catalog or TraitCatalog.default(),
        config=config,
        jitter=jitter or NoJitter(),
    )


class _FixedJitter:
    def __init__(self, value):
        self.value = value

    def offset(self, entity_id, revision):
        return self.value


class TestConfidenceOf:
    def test_flat_prior_without_answers(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        assert ranker.confidence_of("A", belief) == 0.1

    def test_fire_answer_favours_fire_entities(self):
        ranker = _make_ranker(jitter=SeededJitter(seed=42))
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.9)

        a = ranker.confidence_of("A", belief)
        b = ranker.confidence_of("B", belief)
        c = ranker.confidence_of("C", belief)
        assert a > b
        assert c > b

    def test_calibration(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.9)
        assert ranker.confidence_of("A", belief) == pytest.approx(0.15 + 0.7 * 0.9)
        assert ranker.confidence_of("B", belief) == pytest.approx(0.15 + 0.7 * 0.1)

    def test_reliability_weighting(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        # type_fire weighs 1.5, is_legendary weighs 2.0
        belief.record_answer("type_fire", 1.0)
        belief.record_answer("is_legendary", 1.0)
        base = (0.0 * 1.5 + 1.0 * 2.0) / 3.5
        assert ranker.confidence_of("B", belief) == pytest.approx(0.15 + 0.7 * base)

    def test_hedged_answers_amplified(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.5)
        expected = 0.15 + 0.7 * (0.5 * 1.25)
        assert ranker.confidence_of("A", belief) == pytest.approx(expected)
        assert ranker.confidence_of("B", belief) == pytest.approx(expected)

    def test_hedge_window_edges(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.4)
        assert ranker.confidence_of("B", belief) == pytest.approx(0.15 + 0.7 * 0.75)

    def test_zero_weight_falls_back(self):
        catalog = TraitCatalog.from_mapping({"type_fire": {"reliability": 0.0}})
        ranker = _make_ranker(catalog=catalog)
        belief = BeliefState(catalog)
        belief.record_answer("type_fire", 1.0)
        assert ranker.confidence_of("A", belief) == 0.1

    def test_unknown_entity_lacks_every_trait(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 1.0)
        assert ranker.confidence_of("Z", belief) == pytest.approx(0.15)

    def test_clamped(self):
        belief = BeliefState(TraitCatalog.default())
        belief.record_answer("type_fire", 1.0)
        assert _make_ranker(jitter=_FixedJitter(0.5)).confidence_of("A", belief) == 0.95
        assert _make_ranker(jitter=_FixedJitter(-0.9)).confidence_of("A", belief) == 0.05

    def test_jitter_is_small(self):
        ranker = _make_ranker(jitter=SeededJitter(seed=3))
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 1.0)
        assert abs(ranker.confidence_of("A", belief) - 0.85) <= 0.001


class TestRankedCandidates:
    def test_uniform_prior_without_answers(self):
        ranker = _make_ranker()
        candidates = ranker.ranked_candidates(BeliefState(ranker.catalog))
        assert [c.entity_id for c in candidates] == ["A", "B", "C"]
        assert all(c.confidence == 0.5 for c in candidates)

    def test_filters_and_sorts(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.9)
        belief.record_answer("is_legendary", 0.9)

        candidates = ranker.ranked_candidates(belief)
        assert [c.entity_id for c in candidates][0] == "C"
        confidences = [c.confidence for c in candidates]
        assert confidences == sorted(confidences, reverse=True)
        assert all(c >= ranker.min_threshold(belief) for c in confidences)

    def test_low_confidence_dropped(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.9)
        ids = [c.entity_id for c in ranker.ranked_candidates(belief)]
        assert ids == ["A", "C"]

    def test_idempotent(self):
        ranker = _make_ranker(jitter=SeededJitter(seed=7))
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.7)
        assert ranker.ranked_candidates(belief) == ranker.ranked_candidates(belief)

    def test_same_seed_reproduces(self):
        belief = BeliefState(TraitCatalog.default())
        belief.record_answer("type_fire", 0.7)
        first = _make_ranker(jitter=SeededJitter(seed=11)).ranked_candidates(belief)
        second = _make_ranker(jitter=SeededJitter(seed=11)).ranked_candidates(belief)
        assert first == second

    def test_seed_from_config(self):
        ranker = CandidateRanker(
            _make_entities(), _make_matrix(), TraitCatalog.default(),
            config=GameConfig(jitter_seed=5),
        )
        assert ranker.jitter.seed == 5

    def test_cap_truncates(self):
        entities = [Entity(id=f"e{i}", display_name=f"E{i}") for i in range(60)]
        matrix = TraitMatrix({"glows": {e.id: True for e in entities}})
        catalog = TraitCatalog.from_mapping({"glows": {}})
        ranker = CandidateRanker(entities, matrix, catalog, jitter=NoJitter())
        belief = BeliefState(catalog)
        belief.record_answer("glows", 1.0)

        candidates = ranker.ranked_candidates(belief)
        # progress 1/25: cap floor(50 - 1.2) = 48
        assert len(candidates) == 48
        assert [c.entity_id for c in candidates] == [f"e{i}" for i in range(48)]

    def test_threshold_and_cap_tighten_with_progress(self):
        catalog = TraitCatalog.default()
        ranker = _make_ranker(config=GameConfig(max_questions=10))
        traits = [d.key for d in catalog if d.category.value == "other"][:10]

        belief = BeliefState(catalog)
        thresholds = [ranker.min_threshold(belief)]
        caps = [ranker.max_candidates(belief)]
        for trait in traits:
            belief.record_answer(trait, 0.0)
            thresholds.append(ranker.min_threshold(belief))
            caps.append(ranker.max_candidates(belief))

        assert thresholds[0] == pytest.approx(0.4)
        assert thresholds[-1] == pytest.approx(0.1)
        assert caps[0] == 50
        assert caps[-1] == 20
        assert thresholds == sorted(thresholds, reverse=True)
        assert caps == sorted(caps, reverse=True)


class TestScoreAll:
    def test_scores_every_entity(self):
        ranker = _make_ranker()
        belief = BeliefState(ranker.catalog)
        belief.record_answer("type_fire", 0.9)
        scored = ranker.score_all(belief)
        assert [c.entity_id for c in scored] == ["A", "C", "B"]

    def test_no_answers(self):
        ranker = _make_ranker()
        scored = ranker.score_all(BeliefState(ranker.catalog))
        assert [c.confidence for c in scored] == [0.1, 0.1, 0.1]
