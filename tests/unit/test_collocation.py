"""
Unit tests for PMI collocation analysis.

Tests:
- Tokenising and windowed counting
- PMI symmetry and missing-pair cases
- Log-likelihood significance filtering
- Difficulty mapping
- Index publication
"""

import threading

import pytest

from logos.core.config import CollocationConfig
from logos.core.models import TaskKind
from logos.corpus.collocation import (
    PublishedIndex,
    compute_pmi,
    frequency_to_difficulty,
    get_collocations,
    index_corpus,
    log_likelihood_ratio,
    pmi_to_difficulty,
    tokenize,
)

CORPUS = (
    "We make a decision every morning. " * 15
    + "The cat sat on the mat and the dog sat by the door. " * 15
    + "She will make coffee before the meeting. " * 3
)


@pytest.fixture(scope="module")
def index():
    return index_corpus(tokenize(CORPUS), window_size=5)


class TestIndexing:
    """Counting unigrams and pairs."""

    def test_tokenize_lowercases_and_keeps_apostrophes(self):
        assert tokenize("Don't STOP, it's 2024!") == ["don't", "stop", "it's"]

    def test_window_counts(self):
        small = index_corpus(["a", "b", "c", "a"], window_size=2)
        assert small.pair_count("a", "b") == 2
        assert small.pair_count("a", "c") == 2
        assert small.pair_count("b", "c") == 1
        assert small.total_tokens == 4

    def test_pairs_are_unordered(self):
        small = index_corpus(["x", "y"], window_size=1)
        assert small.pair_count("x", "y") == small.pair_count("y", "x") == 1

    def test_word_never_pairs_with_itself(self):
        small = index_corpus(["a", "a", "a"], window_size=2)
        assert small.pair_counts == {}
        assert small.word_count("A") == 3

    def test_counts_are_read_only(self, index):
        with pytest.raises(TypeError):
            index.word_counts["new"] = 1

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            index_corpus(["a"], window_size=0)


class TestPMI:
    """Association statistics."""

    def test_symmetric(self, index):
        assert compute_pmi(index, "make", "decision") == compute_pmi(index, "Decision", "MAKE")

    def test_unknown_word_or_pair_is_none(self, index):
        assert compute_pmi(index, "make", "zebra") is None
        assert compute_pmi(index, "decision", "dog") is None

    def test_strong_pair_is_positive_and_significant(self, index):
        result = compute_pmi(index, "make", "decision")
        assert result.pmi > 0
        assert 0 < result.npmi <= 1
        assert result.significance >= 3.84

    def test_independent_counts_have_zero_llr(self):
        assert log_likelihood_ratio(25, 50, 50, 100) == pytest.approx(0.0, abs=1e-9)


class TestSaturatedPairs:
    """Window counts that reach or exceed the token count."""

    @pytest.fixture
    def alternating(self):
        return index_corpus("a b a b a b".split(), window_size=5)

    def test_pair_count_exceeds_tokens(self, alternating):
        assert alternating.pair_count("a", "b") == 9
        assert alternating.total_tokens == 6

    def test_saturated_pair_has_maximal_npmi(self, alternating):
        result = compute_pmi(alternating, "a", "b")
        assert result.pmi > 0
        assert result.npmi == 1.0
        assert pmi_to_difficulty(result.npmi) == pytest.approx(-3.0)

    def test_llr_caps_joint_count_at_marginals(self):
        # 9 co-occurrences of words seen 3 times each
        llr = log_likelihood_ratio(9, 3, 3, 6)
        assert llr == pytest.approx(log_likelihood_ratio(3, 3, 3, 6))
        assert 0 < llr < float("inf")

    @pytest.mark.parametrize(
        "text",
        [
            "a b a b a b",
            "a b c a b c a b c d",
            "x y x y z z z w w x y",
        ],
    )
    def test_npmi_sign_matches_pmi(self, text):
        small = index_corpus(text.split(), window_size=5)
        for w1, w2 in small.pair_counts:
            result = compute_pmi(small, w1, w2)
            assert -1.0 <= result.npmi <= 1.0
            assert (result.pmi > 0) == (result.npmi > 0)
            assert (result.pmi < 0) == (result.npmi < 0)

    def test_npmi_sign_matches_pmi_on_corpus(self, index):
        for w1, w2 in index.pair_counts:
            result = compute_pmi(index, w1, w2)
            assert -1.0 <= result.npmi <= 1.0
            assert (result.pmi > 0) == (result.npmi > 0)


class TestCollocations:
    """Ranked partner lists."""

    def test_ordered_by_pmi(self, index):
        results = get_collocations(index, "make", top_k=20, config=CollocationConfig(significance_threshold=0))
        pmis = [r.pmi for r in results]
        assert pmis == sorted(pmis, reverse=True)
        assert all(r.significance >= 0 for r in results)

    def test_decision_is_a_collocate(self, index):
        partners = [r.partner_of("make") for r in get_collocations(index, "make", top_k=20)]
        assert "decision" in partners

    def test_threshold_filters_everything(self, index):
        strict = CollocationConfig(significance_threshold=1e6)
        assert get_collocations(index, "make", config=strict) == []

    def test_top_k(self, index):
        loose = CollocationConfig(significance_threshold=0)
        assert len(get_collocations(index, "the", top_k=2, config=loose)) == 2

    def test_unknown_word(self, index):
        assert get_collocations(index, "zebra") == []


class TestDifficultyMapping:
    """Association and frequency to IRT difficulty."""

    def test_strong_association_is_easy(self):
        assert pmi_to_difficulty(1.0) == pytest.approx(-3.0)
        assert pmi_to_difficulty(0.0) == pytest.approx(0.0)

    def test_task_modifiers(self):
        assert pmi_to_difficulty(1.0, TaskKind.RECOGNITION) == pytest.approx(-3.5)
        assert pmi_to_difficulty(0.0, TaskKind.PRODUCTION) == pytest.approx(1.0)

    def test_clamped(self):
        assert pmi_to_difficulty(-1.0, TaskKind.PRODUCTION) == pytest.approx(4.0)

    def test_frequency(self):
        assert frequency_to_difficulty(1.0) == pytest.approx(-3.0)
        assert frequency_to_difficulty(0.0) == pytest.approx(3.0)


class TestPublishedIndex:
    """Swapping a rebuilt index in."""

    def test_starts_empty(self):
        published = PublishedIndex()
        assert published.current is None
        assert published.version == 0

    def test_publish_returns_previous(self):
        first = index_corpus(["a", "b"])
        second = index_corpus(["a", "b", "c"])
        published = PublishedIndex()

        assert published.publish(first) is None
        held = published.current
        assert published.publish(second) is first
        assert published.current is second
        assert published.version == 2
        assert held.total_tokens == 2

    def test_concurrent_publishes_each_get_a_version(self):
        published = PublishedIndex()
        indexes = [index_corpus(["w"] * (k + 1)) for k in range(8)]
        threads = [threading.Thread(target=published.publish, args=(ix,)) for ix in indexes]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert published.version == len(indexes)
        assert published.current in indexes
