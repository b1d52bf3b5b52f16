"""
Study Module - Review scheduling and mastery.

Components:
- scheduler: FSRS-4 ReviewScheduler over immutable ReviewCards
- grading: Response-to-rating mapping, latency analysis and timing screens
- mastery: Cue-aware accuracy tracking and the five-stage table
"""
from logos.study.grading import (
    FluencyMetrics,
    ResponseTimeAnalysis,
    SuspiciousPattern,
    analyze_response_time,
    detect_suspicious_patterns,
    fluency_metrics,
    response_to_rating,
    timed_rating,
    word_length_factor,
)
from logos.study.mastery import (
    MasteryRecord,
    MasteryStage,
    StageClassifier,
    ThresholdStageClassifier,
    determine_cue_level,
    determine_stage,
    scaffolding_gap,
    update_mastery,
)
from logos.study.scheduler import CardState, Rating, ReviewCard, ReviewScheduler

__all__ = [
    # Scheduling
    "Rating",
    "CardState",
    "ReviewCard",
    "ReviewScheduler",
    # Grading
    "response_to_rating",
    "timed_rating",
    "analyze_response_time",
    "ResponseTimeAnalysis",
    "word_length_factor",
    "detect_suspicious_patterns",
    "SuspiciousPattern",
    "fluency_metrics",
    "FluencyMetrics",
    # Mastery
    "MasteryStage",
    "MasteryRecord",
    "StageClassifier",
    "ThresholdStageClassifier",
    "determine_stage",
    "scaffolding_gap",
    "determine_cue_level",
    "update_mastery",
]
