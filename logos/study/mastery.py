"""
Mastery Tracking.

Per-item mastery combines the review card with two recency-weighted
accuracies:
- cue-free: answers given without any help
- cue-assisted: answers given with a hint (cue level 1-3)

The difference between them is the scaffolding gap: how much the learner
still leans on hints. Stages are derived from both accuracies and the
card's stability by a StageClassifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum
from typing import Protocol

from logos.core.config import MasteryConfig, RatingConfig, StageThresholds
from logos.core.models import TaskKind
from logos.study.grading import response_to_rating, timed_rating
from logos.study.scheduler import ReviewCard, ReviewScheduler


class MasteryStage(IntEnum):
    """Five-level acquisition stage."""

    UNSEEN = 0
    RECOGNITION = 1
    RECALL = 2
    CONTROLLED = 3
    AUTOMATIC = 4

    @property
    def display_name(self) -> str:
        return self.name.title()


@dataclass(frozen=True)
class MasteryRecord:
    """Mastery state of one item for one learner."""

    stage: MasteryStage = MasteryStage.UNSEEN
    card: ReviewCard = field(default_factory=ReviewCard)
    cue_free_accuracy: float = 0.0
    cue_assisted_accuracy: float = 0.0
    exposure_count: int = 0

    @property
    def scaffolding_gap(self) -> float:
        return scaffolding_gap(self)


class StageClassifier(Protocol):
    """Anything that can map a mastery record to a stage."""

    def classify(self, record: MasteryRecord) -> MasteryStage:
        ...


class ThresholdStageClassifier:
    """
    Stage table.

    4: cue-free >= 0.90, stability > 30 days, gap < 0.10
    3: cue-free >= 0.75, stability > 7 days
    2: cue-free >= 0.60 or cue-assisted >= 0.80
    1: either accuracy >= 0.20
    0: otherwise, or never seen
    """

    def __init__(self, thresholds: StageThresholds | None = None):
        self.thresholds = thresholds or StageThresholds()

    def classify(self, record: MasteryRecord) -> MasteryStage:
        t = self.thresholds
        if record.exposure_count == 0:
            return MasteryStage.UNSEEN

        free = record.cue_free_accuracy
        assisted = record.cue_assisted_accuracy
        stability = record.card.stability
        gap = scaffolding_gap(record)

        if free >= t.stage4_min_cue_free and stability > t.stage4_min_stability and gap < t.stage4_max_gap:
            return MasteryStage.AUTOMATIC
        if free >= t.stage3_min_cue_free and stability > t.stage3_min_stability:
            return MasteryStage.CONTROLLED
        if free >= t.stage2_min_cue_free or assisted >= t.stage2_min_cue_assisted:
            return MasteryStage.RECALL
        if max(free, assisted) >= t.stage1_min_accuracy:
            return MasteryStage.RECOGNITION
        return MasteryStage.UNSEEN


def determine_stage(
    record: MasteryRecord,
    config: MasteryConfig | None = None,
    classifier: StageClassifier | None = None,
) -> MasteryStage:
    """Stage for ``record`` under the given classifier (threshold table by default)."""
    config = config or MasteryConfig()
    classifier = classifier or ThresholdStageClassifier(config.stages)
    return classifier.classify(record)


def scaffolding_gap(record: MasteryRecord) -> float:
    """How much better the learner does with cues than without (never negative)."""
    return max(0.0, record.cue_assisted_accuracy - record.cue_free_accuracy)


def determine_cue_level(record: MasteryRecord, config: MasteryConfig | None = None) -> int:
    """
    Hint level for the next presentation.

    0 once the gap has closed after enough exposures, then 3/2/1 as the
    gap shrinks.
    """
    config = config or MasteryConfig()
    gap = scaffolding_gap(record)
    if gap < config.cue_gap_none and record.exposure_count >= config.cue_min_exposures:
        return 0
    if gap >= config.cue_gap_full:
        return 3
    if gap >= config.cue_gap_partial:
        return 2
    return 1


def update_mastery(
    record: MasteryRecord,
    correct: bool,
    cue_level: int,
    response_time_ms: int,
    scheduler: ReviewScheduler,
    now: datetime,
    config: MasteryConfig | None = None,
    rating_config: RatingConfig | None = None,
    classifier: StageClassifier | None = None,
    task_kind: TaskKind | None = None,
    word_length: int | None = None,
) -> MasteryRecord:
    """
    Fold one response into a mastery record.

    The card is rescheduled from the response's rating: the per-task
    latency rating at the record's stage when ``task_kind`` is given, the
    plain correctness/cue/speed rating otherwise. Unaided answers
    update the cue-free accuracy with weight max(floor, 1/(n+1)); assisted
    answers update the cue-assisted accuracy with a fixed smoothing
    factor. The stage is then re-derived.
    """
    config = config or MasteryConfig()
    if task_kind is None:
        rating = response_to_rating(correct, cue_level, response_time_ms, rating_config)
    else:
        rating = timed_rating(
            correct, response_time_ms, task_kind, int(record.stage), cue_level, word_length, rating_config
        )
    card = scheduler.schedule(record.card, rating, now)
    outcome = 1.0 if correct else 0.0

    free = record.cue_free_accuracy
    assisted = record.cue_assisted_accuracy
    if cue_level == 0:
        weight = max(config.cue_free_min_weight, 1.0 / (record.exposure_count + 1))
        free = (1 - weight) * free + weight * outcome
    else:
        weight = config.cue_assisted_weight
        assisted = (1 - weight) * assisted + weight * outcome

    updated = replace(
        record,
        card=card,
        cue_free_accuracy=free,
        cue_assisted_accuracy=assisted,
        exposure_count=record.exposure_count + 1,
    )
    return replace(updated, stage=determine_stage(updated, config, classifier))
