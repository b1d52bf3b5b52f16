"""
Core Module - Shared domain models and configuration.

Components:
- models: ComponentType, TaskKind, ItemParameters, ResponseEvent
- config: Frozen configuration models for every engine section
- errors: Engine exception hierarchy

Design Principle:
Engine modules (ability, study, corpus, graph, adaptive) import shared
concepts from logos.core rather than redefining them.
"""

from logos.core.config import (
    AbilityConfig,
    BottleneckConfig,
    CalibrationConfig,
    CollocationConfig,
    EngineConfig,
    MasteryConfig,
    PriorityConfig,
    PriorityWeights,
    RatingConfig,
    ResponseTimeThresholds,
    SchedulerConfig,
    StageThresholds,
)
from logos.core.errors import LogosError, UnknownItemError
from logos.core.models import ComponentType, ItemParameters, ResponseEvent, TaskKind

__all__ = [
    # Models
    "ComponentType",
    "TaskKind",
    "ItemParameters",
    "ResponseEvent",
    # Configuration
    "AbilityConfig",
    "CalibrationConfig",
    "SchedulerConfig",
    "RatingConfig",
    "ResponseTimeThresholds",
    "MasteryConfig",
    "StageThresholds",
    "CollocationConfig",
    "PriorityConfig",
    "PriorityWeights",
    "BottleneckConfig",
    "EngineConfig",
    # Errors
    "LogosError",
    "UnknownItemError",
]
