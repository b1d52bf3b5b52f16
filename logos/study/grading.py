"""
Response grading.

Turns an observed response (correctness, assistance, latency) into a
review Rating, and classifies latency against per-task thresholds.
Thresholds are scaled by mastery stage (new items get more time) and by
word length (long words take longer to read and type).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from logos.core.config import RatingConfig, ResponseTimeThresholds
from logos.core.models import ResponseEvent, TaskKind
from logos.study.scheduler import Rating

TOO_FAST = "too_fast"
FAST = "fast"
GOOD = "good"
SLOW = "slow"
VERY_SLOW = "very_slow"

BOT_PATTERN = "bot_pattern"
ROBOTIC_TIMING = "robotic_timing"
RANDOM_CLICKING = "random_clicking"


def response_to_rating(
    correct: bool,
    cue_level: int = 0,
    response_time_ms: int = 0,
    config: RatingConfig | None = None,
) -> Rating:
    """
    Rate a response.

    - Incorrect: AGAIN
    - Correct with any cue: HARD
    - Correct, unaided, within easy_max_response_ms: EASY
    - Correct, unaided, slower: GOOD
    """
    config = config or RatingConfig()
    if not correct:
        return Rating.AGAIN
    if cue_level > 0:
        return Rating.HARD
    if response_time_ms <= config.easy_max_response_ms:
        return Rating.EASY
    return Rating.GOOD


@dataclass(frozen=True)
class ResponseTimeAnalysis:
    """Latency classification of a single response."""

    response_time_ms: int
    task_kind: TaskKind
    classification: str
    suggested_rating: Rating
    is_automatic: bool
    possible_guessing: bool
    confidence: float


def word_length_factor(word_length: int | None, config: RatingConfig | None = None) -> float:
    """Threshold multiplier for the target word's length (1.0 when unknown)."""
    config = config or RatingConfig()
    if word_length is None:
        return 1.0
    for max_length, factor in config.word_length_factors:
        if word_length <= max_length:
            return factor
    return config.long_word_factor


def adjusted_thresholds(
    task_kind: TaskKind,
    stage: int,
    config: RatingConfig | None = None,
    word_length: int | None = None,
) -> ResponseTimeThresholds:
    """Base thresholds for the task kind scaled by the stage and word-length modifiers."""
    config = config or RatingConfig()
    base = config.response_time_thresholds[task_kind]
    mod = config.stage_time_modifiers.get(stage, 1.0) * word_length_factor(word_length, config)
    return ResponseTimeThresholds(
        fast=round(base.fast * mod),
        good=round(base.good * mod),
        slow=round(base.slow * mod),
        very_slow=round(base.very_slow * mod),
    )


def analyze_response_time(
    response_time_ms: int,
    task_kind: TaskKind,
    stage: int = 2,
    config: RatingConfig | None = None,
    correct: bool = True,
    word_length: int | None = None,
) -> ResponseTimeAnalysis:
    """
    Classify a response latency.

    Lower mastery stages and longer words get more lenient thresholds. Very
    fast answers are flagged as possible guesses on recognition tasks or
    when wrong.
    """
    config = config or RatingConfig()
    t = adjusted_thresholds(task_kind, stage, config, word_length)

    if response_time_ms < t.fast:
        classification = TOO_FAST
        suggested = Rating.EASY if correct and stage >= 3 else Rating.HARD
    elif response_time_ms < t.good:
        classification = FAST
        suggested = Rating.EASY if correct else Rating.HARD
    elif response_time_ms < t.slow:
        classification = GOOD
        suggested = Rating.GOOD if correct else Rating.HARD
    elif response_time_ms < t.very_slow:
        classification = SLOW
        suggested = Rating.HARD if correct else Rating.AGAIN
    else:
        classification = VERY_SLOW
        suggested = Rating.AGAIN

    is_automatic = correct and response_time_ms < config.automaticity_ms[task_kind]
    possible_guessing = classification == TOO_FAST and (
        task_kind == TaskKind.RECOGNITION or not correct
    )

    # Closer to a boundary means less certain
    distance = min(abs(response_time_ms - cut) for cut in (t.fast, t.good, t.slow, t.very_slow))
    confidence = min(1.0, 0.5 + distance / 2000)

    return ResponseTimeAnalysis(
        response_time_ms=response_time_ms,
        task_kind=task_kind,
        classification=classification,
        suggested_rating=suggested,
        is_automatic=is_automatic,
        possible_guessing=possible_guessing,
        confidence=confidence,
    )


def timed_rating(
    correct: bool,
    response_time_ms: int,
    task_kind: TaskKind,
    stage: int = 2,
    cue_level: int = 0,
    word_length: int | None = None,
    config: RatingConfig | None = None,
) -> Rating:
    """
    Rate a response from correctness, assistance and per-task latency.

    - Incorrect: AGAIN
    - Correct with any cue: HARD
    - Correct but slow, very slow or possibly guessed: HARD
    - Otherwise the latency class decides (EASY when fast, GOOD when in range)
    """
    if not correct:
        return Rating.AGAIN
    if cue_level > 0:
        return Rating.HARD

    analysis = analyze_response_time(
        response_time_ms, task_kind, stage, config, correct=True, word_length=word_length
    )
    if analysis.classification in (SLOW, VERY_SLOW) or analysis.possible_guessing:
        return Rating.HARD
    return analysis.suggested_rating


@dataclass(frozen=True)
class FluencyMetrics:
    mean_ms: float
    sd_ms: float
    coefficient_of_variation: float
    automaticity_ratio: float
    fluency_score: float


def fluency_metrics(
    response_times_ms: Sequence[int],
    task_kind: TaskKind = TaskKind.RECALL_CUED,
    config: RatingConfig | None = None,
) -> FluencyMetrics:
    """
    Summarise a series of latencies.

    fluency = 0.4 * speed + 0.2 * consistency + 0.4 * share under the
    task's `good` threshold.
    """
    config = config or RatingConfig()
    if not response_times_ms:
        return FluencyMetrics(0.0, 0.0, 0.0, 0.0, 0.0)

    n = len(response_times_ms)
    mean = sum(response_times_ms) / n
    sd = math.sqrt(sum((t - mean) ** 2 for t in response_times_ms) / n)
    cv = sd / mean if mean > 0 else 0.0

    base = config.response_time_thresholds[task_kind]
    ratio = sum(1 for t in response_times_ms if t < base.good) / n
    speed = max(0.0, 1 - mean / base.very_slow)
    consistency = max(0.0, 1 - cv)

    return FluencyMetrics(
        mean_ms=mean,
        sd_ms=sd,
        coefficient_of_variation=cv,
        automaticity_ratio=ratio,
        fluency_score=0.4 * speed + 0.2 * consistency + 0.4 * ratio,
    )


# =============================================================================
# SUSPICIOUS PATTERNS
# =============================================================================


@dataclass(frozen=True)
class SuspiciousPattern:
    """Result of screening a response series for non-human timing."""

    is_suspicious: bool
    pattern: str | None = None
    confidence: float = 0.0


def detect_suspicious_patterns(
    responses: Sequence[ResponseEvent],
    config: RatingConfig | None = None,
) -> SuspiciousPattern:
    """
    Screen a series of responses for automated or random answering.

    Checked in order:
    - bot_pattern: every answer under bot_max_ms with near-perfect accuracy
    - robotic_timing: almost every answer takes the same time
    - random_clicking: every answer under random_max_ms with low accuracy
    """
    config = config or RatingConfig()
    if len(responses) < config.suspicious_min_responses:
        return SuspiciousPattern(is_suspicious=False)

    times = [r.response_time_ms for r in responses]
    accuracy = sum(1 for r in responses if r.correct) / len(responses)

    if all(t < config.bot_max_ms for t in times) and accuracy > config.bot_min_accuracy:
        return SuspiciousPattern(is_suspicious=True, pattern=BOT_PATTERN, confidence=0.8)

    distinct_times = {round(t / config.robotic_bucket_ms) for t in times}
    if (
        len(responses) >= config.robotic_min_responses
        and len(distinct_times) <= config.robotic_max_unique_times
    ):
        return SuspiciousPattern(is_suspicious=True, pattern=ROBOTIC_TIMING, confidence=0.7)

    if all(t < config.random_max_ms for t in times) and accuracy < config.random_max_accuracy:
        return SuspiciousPattern(is_suspicious=True, pattern=RANDOM_CLICKING, confidence=0.9)

    return SuspiciousPattern(is_suspicious=False)
