"""
Unit tests for response grading and latency analysis.
"""

from datetime import datetime, timedelta

import pytest

from logos.core.config import RatingConfig
from logos.core.models import ComponentType, ResponseEvent, TaskKind
from logos.study.grading import (
    BOT_PATTERN,
    RANDOM_CLICKING,
    ROBOTIC_TIMING,
    adjusted_thresholds,
    analyze_response_time,
    detect_suspicious_patterns,
    fluency_metrics,
    response_to_rating,
    timed_rating,
    word_length_factor,
)
from logos.study.scheduler import Rating


class TestResponseToRating:
    """Correctness, cues and speed to a Rating."""

    def test_incorrect_is_again(self):
        assert response_to_rating(False, cue_level=0, response_time_ms=800) == Rating.AGAIN

    def test_assisted_is_hard(self):
        assert response_to_rating(True, cue_level=2, response_time_ms=800) == Rating.HARD

    def test_fast_unaided_is_easy(self):
        assert response_to_rating(True, cue_level=0, response_time_ms=2500) == Rating.EASY

    def test_slow_unaided_is_good(self):
        assert response_to_rating(True, cue_level=0, response_time_ms=9000) == Rating.GOOD

    def test_cutoff_is_configurable(self):
        config = RatingConfig(easy_max_response_ms=1000)
        assert response_to_rating(True, 0, 2500, config) == Rating.GOOD


class TestAnalyzeResponseTime:
    """Latency classification."""

    @pytest.mark.parametrize(
        "ms, expected",
        [
            (300, "too_fast"),
            (1000, "fast"),
            (4000, "good"),
            (7000, "slow"),
            (20000, "very_slow"),
        ],
    )
    def test_recall_classification_at_standard_stage(self, ms, expected):
        assert analyze_response_time(ms, TaskKind.RECALL_FREE, stage=3).classification == expected

    def test_new_items_get_lenient_thresholds(self):
        """5.5s is slow at stage 3 but good for a new item (x2 thresholds)."""
        assert analyze_response_time(5500, TaskKind.RECALL_CUED, stage=3).classification == "slow"
        assert analyze_response_time(5500, TaskKind.RECALL_CUED, stage=0).classification == "good"

    def test_adjusted_thresholds_scale(self):
        t = adjusted_thresholds(TaskKind.RECOGNITION, stage=1)
        assert (t.fast, t.good, t.slow, t.very_slow) == (750, 1800, 4500, 9000)

    def test_fast_recognition_flags_guessing(self):
        analysis = analyze_response_time(200, TaskKind.RECOGNITION, stage=3)
        assert analysis.possible_guessing
        assert analysis.is_automatic

    def test_fast_wrong_answer_flags_guessing(self):
        analysis = analyze_response_time(200, TaskKind.PRODUCTION, stage=3, correct=False)
        assert analysis.possible_guessing
        assert not analysis.is_automatic

    def test_suggested_ratings(self):
        assert analyze_response_time(1000, TaskKind.RECALL_FREE, stage=3).suggested_rating == Rating.EASY
        assert analyze_response_time(4000, TaskKind.RECALL_FREE, stage=3).suggested_rating == Rating.GOOD
        assert analyze_response_time(7000, TaskKind.RECALL_FREE, stage=3).suggested_rating == Rating.HARD
        assert analyze_response_time(20000, TaskKind.RECALL_FREE, stage=3).suggested_rating == Rating.AGAIN

    def test_confidence_in_range(self):
        for ms in (100, 800, 2000, 5000, 10000, 30000):
            assert 0.5 <= analyze_response_time(ms, TaskKind.TIMED).confidence <= 1.0


class TestFluencyMetrics:
    """Series summaries."""

    def test_empty(self):
        assert fluency_metrics([]).fluency_score == 0.0

    def test_consistent_fast_beats_erratic_slow(self):
        fast = fluency_metrics([900, 1000, 1100, 950], TaskKind.RECALL_FREE)
        slow = fluency_metrics([3000, 9000, 1500, 7000], TaskKind.RECALL_FREE)
        assert fast.fluency_score > slow.fluency_score
        assert fast.automaticity_ratio == 1.0


class TestWordLength:
    """Longer words get more time."""

    @pytest.mark.parametrize(
        "length, factor",
        [(None, 1.0), (3, 1.0), (5, 1.0), (6, 1.2), (10, 1.2), (15, 1.5), (16, 2.0)],
    )
    def test_factor_steps(self, length, factor):
        assert word_length_factor(length) == pytest.approx(factor)

    def test_thresholds_scale_with_word_length(self):
        t = adjusted_thresholds(TaskKind.RECALL_CUED, stage=3, word_length=16)
        assert (t.fast, t.good, t.slow, t.very_slow) == (1600, 4000, 10000, 20000)

    def test_long_word_shifts_classification(self):
        assert analyze_response_time(6000, TaskKind.RECALL_CUED, stage=3).classification == "slow"
        assert analyze_response_time(6000, TaskKind.RECALL_CUED, stage=3, word_length=16).classification == "good"

    def test_steps_are_configurable(self):
        config = RatingConfig(word_length_factors=((3, 1.0),), long_word_factor=1.5)
        assert word_length_factor(4, config) == pytest.approx(1.5)

    def test_unordered_steps_rejected(self):
        with pytest.raises(ValueError):
            RatingConfig(word_length_factors=((10, 1.2), (5, 1.0)))


class TestTimedRating:
    """Latency-aware ratings."""

    def test_incorrect_is_again(self):
        assert timed_rating(False, 1500, TaskKind.RECALL_CUED, stage=3) == Rating.AGAIN
        assert timed_rating(False, 30000, TaskKind.RECALL_CUED, stage=3) == Rating.AGAIN

    def test_assisted_is_hard(self):
        assert timed_rating(True, 1500, TaskKind.RECALL_CUED, stage=3, cue_level=1) == Rating.HARD

    @pytest.mark.parametrize(
        "ms, expected",
        [(1500, Rating.EASY), (3000, Rating.GOOD), (6000, Rating.HARD), (12000, Rating.HARD)],
    )
    def test_latency_classes(self, ms, expected):
        assert timed_rating(True, ms, TaskKind.RECALL_CUED, stage=3) == expected

    def test_possible_guess_is_hard(self):
        assert timed_rating(True, 300, TaskKind.RECOGNITION, stage=3) == Rating.HARD

    def test_stage_leniency(self):
        assert timed_rating(True, 6000, TaskKind.RECALL_CUED, stage=3) == Rating.HARD
        assert timed_rating(True, 6000, TaskKind.RECALL_CUED, stage=0) == Rating.GOOD

    def test_word_length_leniency(self):
        assert timed_rating(True, 6000, TaskKind.RECALL_CUED, stage=3, word_length=16) == Rating.GOOD

    def test_task_kind_matters(self):
        assert timed_rating(True, 2500, TaskKind.TIMED, stage=3) == Rating.HARD
        assert timed_rating(True, 2500, TaskKind.PRODUCTION, stage=3) == Rating.EASY


def events(times_ms, outcomes):
    start = datetime(2024, 3, 1, 9, 0, 0)
    return [
        ResponseEvent(
            item_id=f"item-{i}",
            correct=correct,
            component=ComponentType.LEX,
            timestamp=start + timedelta(seconds=10 * i),
            response_time_ms=ms,
        )
        for i, (ms, correct) in enumerate(zip(times_ms, outcomes))
    ]


class TestSuspiciousPatterns:
    """Non-human timing screens."""

    def test_too_few_responses(self):
        result = detect_suspicious_patterns(events([100] * 4, [True] * 4))
        assert not result.is_suspicious
        assert result.pattern is None

    def test_fast_and_perfect_is_bot(self):
        result = detect_suspicious_patterns(events([200, 250, 300, 350, 400, 450], [True] * 6))
        assert result.is_suspicious
        assert result.pattern == BOT_PATTERN
        assert result.confidence == pytest.approx(0.8)

    def test_identical_timing_is_robotic(self):
        times = [1500, 1520] * 5
        result = detect_suspicious_patterns(events(times, [True, False] * 5))
        assert result.pattern == ROBOTIC_TIMING

    def test_repeated_timing_needs_enough_responses(self):
        times = [1500, 1520] * 3
        assert not detect_suspicious_patterns(events(times, [True, False] * 3)).is_suspicious

    def test_fast_and_wrong_is_random_clicking(self):
        result = detect_suspicious_patterns(events([100, 150, 200, 250, 120], [True, False, False, False, False]))
        assert result.pattern == RANDOM_CLICKING
        assert result.confidence == pytest.approx(0.9)

    def test_ordinary_learner(self):
        times = [900, 2400, 1800, 4100, 3000, 1300, 2200]
        outcomes = [True, True, False, True, True, False, True]
        assert not detect_suspicious_patterns(events(times, outcomes)).is_suspicious

    def test_thresholds_are_configurable(self):
        config = RatingConfig(bot_max_ms=100)
        result = detect_suspicious_patterns(events([200, 250, 300, 350, 400, 450], [True] * 6), config)
        assert not result.is_suspicious
