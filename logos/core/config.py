"""
Engine configuration models.

Every tunable constant the algorithms use lives here as a field default.
Models are frozen: callers build one (or take the defaults) and pass it into
each call. Nothing in the engine reads configuration from global state.

Environment-driven construction lives in the root ``config.py``.
"""

from __future__ import annotations

from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, model_validator

from logos.core.models import ComponentType, TaskKind

# FSRS-4 default weights (Ye, 2023)
FSRS4_DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.4,    # w0: initial stability for Again
    0.6,    # w1: initial stability for Hard
    2.4,    # w2: initial stability for Good
    5.8,    # w3: initial stability for Easy
    4.93,   # w4: initial difficulty for Good
    0.94,   # w5: initial difficulty slope per grade
    0.86,   # w6: difficulty step per grade
    0.01,   # w7: difficulty mean reversion
    1.49,   # w8: recall stability growth (exp)
    0.14,   # w9: recall stability decay exponent
    0.94,   # w10: recall retrievability factor
    2.18,   # w11: lapse stability scale
    0.05,   # w12: lapse difficulty exponent
    0.34,   # w13: lapse stability exponent
    1.26,   # w14: lapse retrievability factor
    0.29,   # w15: hard penalty
    2.61,   # w16: easy bonus
)


def _read_only(value):
    if isinstance(value, dict):
        return MappingProxyType({k: _read_only(v) for k, v in value.items()})
    return value


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _freeze_mappings(self):
        # frozen=True blocks attribute assignment only; dict fields become
        # read-only views so their entries cannot change either
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, dict):
                object.__setattr__(self, name, _read_only(value))
        return self


# =============================================================================
# ABILITY ESTIMATION
# =============================================================================


class AbilityConfig(_FrozenModel):
    """Settings for MLE/EAP ability estimation and adaptive item selection."""

    prior_mean: float = Field(default=0.0, description="Mean of the normal ability prior")
    prior_sd: float = Field(default=1.0, gt=0, description="SD of the normal ability prior")
    quadrature_points: int = Field(
        default=41, ge=21, description="Quadrature nodes for EAP integration"
    )
    quadrature_kind: str = Field(
        default="gauss-hermite",
        pattern="^(gauss-hermite|uniform)$",
        description="Quadrature rule used for posterior integration",
    )
    mle_max_iterations: int = Field(default=50, ge=1)
    mle_tolerance: float = Field(default=1e-3, gt=0)
    min_responses_for_mle: int = Field(
        default=5, ge=1, description="Below this count EAP is used directly"
    )
    ability_min: float = Field(default=-4.0)
    ability_max: float = Field(default=4.0)
    kl_se_threshold: float = Field(
        default=0.5, gt=0, description="Use KL item selection while SE exceeds this"
    )
    kl_quadrature_points: int = Field(default=21, ge=5)

    @model_validator(mode="after")
    def _check_bounds(self) -> AbilityConfig:
        if self.ability_min >= self.ability_max:
            raise ValueError("ability_min must be below ability_max")
        return self


class CalibrationConfig(_FrozenModel):
    """Settings for EM item calibration and its acceptance gate."""

    min_respondents: int = Field(default=20, ge=1)
    min_items: int = Field(default=2, ge=1)
    min_responses_per_item: int = Field(default=10, ge=1)
    max_iterations: int = Field(default=100, ge=1)
    tolerance: float = Field(default=1e-3, gt=0)
    regularization: float = Field(default=0.01, ge=0, description="L2 pull toward a=1, b=0")
    discrimination_min: float = Field(default=0.2, gt=0)
    discrimination_max: float = Field(default=3.0, gt=0)
    difficulty_min: float = Field(default=-4.0)
    difficulty_max: float = Field(default=4.0)
    max_standard_error: float = Field(
        default=0.5, gt=0, description="Items with a larger SE are not written back"
    )
    ability: AbilityConfig = Field(default_factory=AbilityConfig)

    @model_validator(mode="after")
    def _check_bounds(self) -> CalibrationConfig:
        if self.discrimination_min >= self.discrimination_max:
            raise ValueError("discrimination_min must be below discrimination_max")
        if self.difficulty_min >= self.difficulty_max:
            raise ValueError("difficulty_min must be below difficulty_max")
        return self


# =============================================================================
# SCHEDULING & MASTERY
# =============================================================================


class SchedulerConfig(_FrozenModel):
    """FSRS scheduler parameters."""

    weights: tuple[float, ...] = Field(default=FSRS4_DEFAULT_WEIGHTS)
    request_retention: float = Field(default=0.90, gt=0, lt=1)
    maximum_interval: int = Field(default=365, ge=1, description="Days")
    minimum_stability: float = Field(default=0.1, gt=0)
    maximum_stability: float = Field(default=36500.0, gt=0)
    difficulty_min: float = Field(default=1.0)
    difficulty_max: float = Field(default=10.0)

    @model_validator(mode="after")
    def _check_weights(self) -> SchedulerConfig:
        if len(self.weights) != 17:
            raise ValueError(f"FSRS needs 17 weights, got {len(self.weights)}")
        if self.difficulty_min >= self.difficulty_max:
            raise ValueError("difficulty_min must be below difficulty_max")
        return self


class ResponseTimeThresholds(_FrozenModel):
    """Latency cutoffs (ms) for one task kind."""

    fast: int = Field(gt=0)
    good: int = Field(gt=0)
    slow: int = Field(gt=0)
    very_slow: int = Field(gt=0)

    @model_validator(mode="after")
    def _check_order(self) -> ResponseTimeThresholds:
        if not self.fast < self.good < self.slow < self.very_slow:
            raise ValueError("thresholds must increase: fast < good < slow < very_slow")
        return self


def _default_time_thresholds() -> dict[TaskKind, ResponseTimeThresholds]:
    recall = ResponseTimeThresholds(fast=800, good=2000, slow=5000, very_slow=10000)
    return {
        TaskKind.RECOGNITION: ResponseTimeThresholds(fast=500, good=1200, slow=3000, very_slow=6000),
        TaskKind.RECALL_CUED: recall,
        TaskKind.RECALL_FREE: recall,
        TaskKind.PRODUCTION: ResponseTimeThresholds(fast=1500, good=4000, slow=8000, very_slow=15000),
        TaskKind.TIMED: ResponseTimeThresholds(fast=300, good=800, slow=1500, very_slow=3000),
    }


class RatingConfig(_FrozenModel):
    """
    Response-to-rating mapping.

    The latency cutoffs are heuristics without a settled psychometric basis,
    so all of them are configuration.
    """

    easy_max_response_ms: int = Field(
        default=5000, gt=0, description="Unaided correct answers at or under this are Easy"
    )
    response_time_thresholds: dict[TaskKind, ResponseTimeThresholds] = Field(
        default_factory=_default_time_thresholds
    )
    stage_time_modifiers: dict[int, float] = Field(
        default_factory=lambda: {0: 2.0, 1: 1.5, 2: 1.2, 3: 1.0, 4: 0.8},
        description="Threshold multipliers by mastery stage (lenient for new items)",
    )
    automaticity_ms: dict[TaskKind, int] = Field(
        default_factory=lambda: {
            TaskKind.RECOGNITION: 1000,
            TaskKind.RECALL_CUED: 2000,
            TaskKind.RECALL_FREE: 2000,
            TaskKind.PRODUCTION: 4000,
            TaskKind.TIMED: 800,
        },
        description="Correct answers under this latency count as automatic",
    )
    word_length_factors: tuple[tuple[int, float], ...] = Field(
        default=((5, 1.0), (10, 1.2), (15, 1.5)),
        description="(max word length, threshold multiplier) steps, shortest first",
    )
    long_word_factor: float = Field(
        default=2.0, gt=0, description="Multiplier for words longer than the last step"
    )
    suspicious_min_responses: int = Field(
        default=5, ge=1, description="Responses needed before timing patterns are judged"
    )
    bot_max_ms: int = Field(default=500, gt=0)
    bot_min_accuracy: float = Field(default=0.9, ge=0, le=1)
    robotic_min_responses: int = Field(default=10, ge=2)
    robotic_max_unique_times: int = Field(default=2, ge=1)
    robotic_bucket_ms: int = Field(default=100, gt=0, description="Latency rounding for repetition checks")
    random_max_ms: int = Field(default=300, gt=0)
    random_max_accuracy: float = Field(default=0.3, ge=0, le=1)

    @model_validator(mode="after")
    def _check_word_length_steps(self) -> RatingConfig:
        lengths = [length for length, _ in self.word_length_factors]
        if lengths != sorted(set(lengths)):
            raise ValueError("word_length_factors must be ordered by increasing length")
        if any(factor <= 0 for _, factor in self.word_length_factors):
            raise ValueError("word_length_factors must be positive")
        return self


class StageThresholds(_FrozenModel):
    """Cutoffs of the five-level mastery stage table."""

    stage4_min_cue_free: float = 0.90
    stage4_min_stability: float = 30.0  # days
    stage4_max_gap: float = 0.10
    stage3_min_cue_free: float = 0.75
    stage3_min_stability: float = 7.0
    stage2_min_cue_free: float = 0.60
    stage2_min_cue_assisted: float = 0.80
    stage1_min_accuracy: float = 0.20


class MasteryConfig(_FrozenModel):
    """Recency weighting of accuracies, stage table and cue-level policy."""

    cue_free_min_weight: float = Field(
        default=0.1, gt=0, le=1, description="Floor of the 1/(n+1) cue-free weight"
    )
    cue_assisted_weight: float = Field(default=0.2, gt=0, le=1)
    stages: StageThresholds = Field(default_factory=StageThresholds)
    cue_gap_none: float = 0.10
    cue_gap_partial: float = 0.20
    cue_gap_full: float = 0.30
    cue_min_exposures: int = 3


# =============================================================================
# CORPUS
# =============================================================================


def _default_task_modifiers() -> dict[TaskKind, float]:
    return {
        TaskKind.RECOGNITION: -0.5,
        TaskKind.RECALL_CUED: 0.0,
        TaskKind.RECALL_FREE: 0.5,
        TaskKind.TIMED: 0.75,
        TaskKind.PRODUCTION: 1.0,
    }


class CollocationConfig(_FrozenModel):
    """PMI indexing, significance filtering and difficulty mapping."""

    window_size: int = Field(default=5, ge=1, description="Tokens to the right counted as co-occurring")
    significance_threshold: float = Field(
        default=3.84, ge=0, description="LLR cutoff (chi-square, 1 df, p=0.05)"
    )
    default_top_k: int = Field(default=10, ge=1)
    difficulty_range: float = Field(default=3.0, gt=0, description="NPMI maps onto [-range, +range]")
    task_modifiers: dict[TaskKind, float] = Field(default_factory=_default_task_modifiers)
    difficulty_floor: float = -4.0
    difficulty_ceiling: float = 4.0


# =============================================================================
# PRIORITY
# =============================================================================


class PriorityWeights(_FrozenModel):
    """Relative emphasis on frequency, relational density and context."""

    f: float = Field(default=0.4, ge=0)
    r: float = Field(default=0.3, ge=0)
    e: float = Field(default=0.3, ge=0)

    @model_validator(mode="after")
    def _check_total(self) -> PriorityWeights:
        if self.f + self.r + self.e <= 0:
            raise ValueError("at least one priority weight must be positive")
        return self


def _default_weight_profiles() -> dict[str, PriorityWeights]:
    return {
        "beginner": PriorityWeights(f=0.5, r=0.25, e=0.25),
        "intermediate": PriorityWeights(f=0.4, r=0.3, e=0.3),
        "advanced": PriorityWeights(f=0.3, r=0.3, e=0.4),
    }


_FAMILY_MEMBERS: dict[str, tuple[str, ...]] = {
    "germanic": ("en", "de", "nl", "sv", "no", "da", "is"),
    "romance": ("es", "fr", "it", "pt", "ro", "ca"),
    "slavic": ("ru", "pl", "cs", "sk", "uk", "bg", "hr", "sr"),
    "sino-tibetan": ("zh", "bo"),
    "japonic": ("ja",),
    "koreanic": ("ko",),
    "semitic": ("ar", "he"),
    "indo-aryan": ("hi", "ur", "bn", "pa", "gu", "mr"),
    "dravidian": ("ta", "te", "kn", "ml"),
    "turkic": ("tr", "az", "uz", "kk"),
}


def _default_language_families() -> dict[str, str]:
    return {code: family for family, codes in _FAMILY_MEMBERS.items() for code in codes}


def _coefficients(phon: float, morph: float, lex: float, synt: float, prag: float) -> dict[ComponentType, float]:
    return {
        ComponentType.PHON: phon,
        ComponentType.MORPH: morph,
        ComponentType.LEX: lex,
        ComponentType.SYNT: synt,
        ComponentType.PRAG: prag,
    }


def _default_transfer_coefficients() -> dict[str, dict[ComponentType, float]]:
    # L1 family -> component -> transfer into the reference L2 (English).
    # Negative values are interference.
    return {
        "germanic": _coefficients(0.7, 0.6, 0.8, 0.7, 0.6),
        "romance": _coefficients(0.3, 0.5, 0.6, 0.5, 0.4),
        "slavic": _coefficients(0.2, 0.2, 0.2, 0.3, 0.3),
        "sino-tibetan": _coefficients(-0.3, 0.1, 0.0, 0.2, -0.2),
        "japonic": _coefficients(-0.2, 0.1, 0.1, -0.4, -0.3),
        "koreanic": _coefficients(-0.1, 0.2, 0.1, -0.4, -0.2),
        "semitic": _coefficients(-0.1, -0.2, 0.1, 0.3, 0.0),
        "indo-aryan": _coefficients(0.1, 0.3, 0.2, 0.2, 0.1),
        "dravidian": _coefficients(-0.1, 0.1, 0.0, -0.3, 0.1),
        "turkic": _coefficients(0.2, 0.0, 0.1, -0.3, 0.1),
    }


class TransferConfig(_FrozenModel):
    """
    L1 -> L2 transfer coefficients by language family and skill component.

    ``coefficients`` describe transfer into ``reference_language``. For any
    other L2, an L1 of the same family uses ``same_family_coefficients`` and
    other pairs fall back to the reference table. Unlisted languages and
    families transfer nothing.
    """

    reference_language: str = "en"
    language_families: dict[str, str] = Field(default_factory=_default_language_families)
    coefficients: dict[str, dict[ComponentType, float]] = Field(
        default_factory=_default_transfer_coefficients
    )
    same_family_coefficients: dict[ComponentType, float] = Field(
        default_factory=lambda: _coefficients(0.7, 0.6, 0.7, 0.7, 0.5)
    )
    cost_weight: float = Field(
        default=0.3, ge=0, description="Cost change per unit of transfer coefficient"
    )
    default_component: ComponentType = Field(
        default=ComponentType.LEX, description="Component assumed for untagged items"
    )


class PriorityConfig(_FrozenModel):
    """Cost model, urgency curve and named weight profiles."""

    weight_profiles: dict[str, PriorityWeights] = Field(default_factory=_default_weight_profiles)
    transfer: TransferConfig = Field(default_factory=TransferConfig)
    exposure_gap_range: float = Field(
        default=6.0, gt=0, description="Ability gap (logits) at which exposure need saturates"
    )
    min_cost: float = Field(default=0.1, gt=0)
    new_item_urgency: float = Field(default=1.5, ge=0)
    urgency_horizon_days: float = Field(default=1.0, gt=0)
    max_urgency: float = Field(default=3.0, gt=0)
    beginner_below: float = -1.0
    advanced_from: float = 1.0


# =============================================================================
# BOTTLENECK
# =============================================================================


class BottleneckConfig(_FrozenModel):
    """Thresholds for component error analysis and cascade detection."""

    min_responses: int = Field(default=20, ge=1)
    window_size: int = Field(default=200, ge=1, description="Trailing responses analysed")
    error_rate_threshold: float = Field(
        default=0.3, gt=0, lt=1, description="A component is a candidate when its error rate exceeds this"
    )
    downstream_error_threshold: float = Field(default=0.2, gt=0, lt=1)
    min_samples_per_component: int = Field(default=5, ge=1)
    min_samples_by_component: dict[ComponentType, int] = Field(default_factory=dict)
    cascade_confidence_cutoff: float = Field(
        default=0.3, ge=0, le=1, description="Minimum share of elevated downstream components"
    )
    confidence_sample_multiplier: float = Field(default=3.0, gt=0)
    confidence_sample_weight: float = 0.4
    confidence_cascade_weight: float = 0.3
    confidence_margin_weight: float = 0.3
    margin_scale: float = Field(default=0.3, gt=0)
    trend_min_samples: int = Field(default=4, ge=2)
    pattern_min_count: int = Field(default=2, ge=1)

    def min_samples_for(self, component: ComponentType) -> int:
        """Per-component sample minimum, falling back to the global one."""
        return self.min_samples_by_component.get(component, self.min_samples_per_component)


class EngineConfig(_FrozenModel):
    """All engine sections in one object."""

    ability: AbilityConfig = Field(default_factory=AbilityConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    rating: RatingConfig = Field(default_factory=RatingConfig)
    mastery: MasteryConfig = Field(default_factory=MasteryConfig)
    collocation: CollocationConfig = Field(default_factory=CollocationConfig)
    priority: PriorityConfig = Field(default_factory=PriorityConfig)
    bottleneck: BottleneckConfig = Field(default_factory=BottleneckConfig)
