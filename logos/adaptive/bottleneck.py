"""
Bottleneck Detector.

Finds the skill component that is holding a learner back.

Language skills build on each other, so errors propagate forward along
the cascade:

    PHON -> MORPH -> LEX -> SYNT -> PRAG

A learner who mishears words will also misspell inflections, misidentify
vocabulary and so on. When several components show elevated error rates,
the earliest one whose downstream components are also struggling is the
likely root cause; fixing it clears the others.

Evidence per component:
- error rate over the trailing response window
- trend (earlier error rate minus later error rate; positive = improving)
- recurring error patterns (suffixes for morphology, onsets for phonology)
- components that fail in the same sessions
"""
from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from logos.core.config import BottleneckConfig
from logos.core.models import ComponentType, ResponseEvent

CASCADE_ORDER: tuple[ComponentType, ...] = tuple(ComponentType)

# Checked in order, longer suffixes first
MORPH_SUFFIXES = ("tion", "ment", "ness", "ing", "est", "ed", "er", "ly", "es", "s")


class BottleneckStatus(str, Enum):
    ANALYZED = "analyzed"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class ComponentEvidence:
    """What the response window says about one component."""

    component: ComponentType
    error_rate: float
    sample_size: int
    trend: float = 0.0
    error_patterns: tuple[str, ...] = ()
    cooccurring_errors: tuple[ComponentType, ...] = ()

    def to_dict(self) -> dict:
        return {
            "component": self.component.value,
            "error_rate": round(self.error_rate, 3),
            "sample_size": self.sample_size,
            "trend": round(self.trend, 3),
            "error_patterns": list(self.error_patterns),
            "cooccurring_errors": [c.value for c in self.cooccurring_errors],
        }


@dataclass(frozen=True)
class CascadeAnalysis:
    root_cause: ComponentType | None
    chain: tuple[ComponentType, ...] = ()
    strength: float = 0.0


@dataclass(frozen=True)
class RootCauseCandidate:
    component: ComponentType
    error_rate: float
    confidence: float


@dataclass(frozen=True)
class BottleneckReport:
    """Result of a bottleneck analysis."""

    status: BottleneckStatus
    primary: ComponentType | None = None
    confidence: float = 0.0
    evidence: tuple[ComponentEvidence, ...] = ()
    candidates: tuple[RootCauseCandidate, ...] = ()
    cascade_chain: tuple[ComponentType, ...] = ()
    recommendation: str = ""
    n_responses: int = 0

    def evidence_for(self, component: ComponentType) -> ComponentEvidence | None:
        for ev in self.evidence:
            if ev.component == component:
                return ev
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "primary": self.primary.value if self.primary else None,
            "confidence": round(self.confidence, 3),
            "evidence": [ev.to_dict() for ev in self.evidence],
            "candidates": [
                {"component": c.component.value, "error_rate": round(c.error_rate, 3),
                 "confidence": round(c.confidence, 3)}
                for c in self.candidates
            ],
            "cascade_chain": [c.value for c in self.cascade_chain],
            "recommendation": self.recommendation,
            "n_responses": self.n_responses,
        }


# =============================================================================
# CASCADE HELPERS
# =============================================================================


def is_component_type(value: str) -> bool:
    """True for an exact component code such as "PHON"."""
    return value in {c.value for c in ComponentType}


def cascade_position(component: ComponentType) -> int:
    return CASCADE_ORDER.index(component)


def can_cause_errors(upstream: ComponentType, downstream: ComponentType) -> bool:
    """Whether errors in ``upstream`` can propagate to ``downstream``."""
    return cascade_position(upstream) < cascade_position(downstream)


def downstream_components(component: ComponentType) -> list[ComponentType]:
    return list(CASCADE_ORDER[cascade_position(component) + 1 :])


def upstream_components(component: ComponentType) -> list[ComponentType]:
    return list(CASCADE_ORDER[: cascade_position(component)])


# =============================================================================
# EVIDENCE
# =============================================================================


def _error_rate(responses: Sequence[ResponseEvent]) -> float:
    if not responses:
        return 0.0
    return sum(1 for r in responses if not r.correct) / len(responses)


def calculate_improvement_trend(
    component: ComponentType,
    responses: Sequence[ResponseEvent],
    config: BottleneckConfig | None = None,
) -> float:
    """
    Error rate of the earlier half minus that of the later half.

    Positive means the learner is improving. 0 with too few samples.
    """
    config = config or BottleneckConfig()
    own = sorted((r for r in responses if r.component == component), key=lambda r: r.timestamp)
    if len(own) < config.trend_min_samples:
        return 0.0
    half = len(own) // 2
    return _error_rate(own[:half]) - _error_rate(own[half:])


def find_cooccurring_errors(
    component: ComponentType,
    responses: Sequence[ResponseEvent],
) -> list[ComponentType]:
    """Other components that also had errors in sessions where ``component`` failed."""
    failed_sessions = {
        r.session_id
        for r in responses
        if r.component == component and not r.correct and r.session_id is not None
    }
    found = {
        r.component
        for r in responses
        if r.session_id in failed_sessions and not r.correct and r.component != component
    }
    return [c for c in CASCADE_ORDER if c in found]


def analyze_error_patterns(
    errors: Sequence[ResponseEvent],
    config: BottleneckConfig | None = None,
) -> list[str]:
    """
    Recurring shapes in wrong answers.

    Morphology errors are grouped by suffix, phonology errors by their
    two-letter onset. Patterns seen fewer than ``pattern_min_count`` times
    are dropped.
    """
    config = config or BottleneckConfig()
    counts: Counter[str] = Counter()

    for response in errors:
        if response.correct:
            continue
        word = response.content.strip().lower()
        if not word:
            continue
        if response.component == ComponentType.MORPH:
            suffix = next((s for s in MORPH_SUFFIXES if word.endswith(s) and len(word) > len(s)), None)
            if suffix:
                counts[f"suffix -{suffix}"] += 1
        elif response.component == ComponentType.PHON and len(word) >= 2:
            counts[f"onset {word[:2]}-"] += 1

    frequent = [(p, n) for p, n in counts.items() if n >= config.pattern_min_count]
    frequent.sort(key=lambda pn: (-pn[1], pn[0]))
    return [p for p, _ in frequent]


def _build_evidence(
    window: Sequence[ResponseEvent], config: BottleneckConfig
) -> list[ComponentEvidence]:
    by_component: dict[ComponentType, list[ResponseEvent]] = defaultdict(list)
    for response in window:
        by_component[response.component].append(response)

    evidence = []
    for component in CASCADE_ORDER:
        own = by_component.get(component)
        if not own:
            continue
        evidence.append(
            ComponentEvidence(
                component=component,
                error_rate=_error_rate(own),
                sample_size=len(own),
                trend=calculate_improvement_trend(component, own, config),
                error_patterns=tuple(analyze_error_patterns(own, config)),
                cooccurring_errors=tuple(find_cooccurring_errors(component, window)),
            )
        )
    return evidence


# =============================================================================
# CASCADE ANALYSIS
# =============================================================================


def _is_candidate(ev: ComponentEvidence, config: BottleneckConfig) -> bool:
    return (
        ev.error_rate > config.error_rate_threshold
        and ev.sample_size >= config.min_samples_for(ev.component)
    )


def _cascade_strength(
    component: ComponentType,
    evidence: Sequence[ComponentEvidence],
    config: BottleneckConfig,
) -> tuple[float, list[ComponentType]]:
    """Share of measured downstream components that are elevated, and which."""
    rates = {ev.component: ev.error_rate for ev in evidence}
    measured = [c for c in downstream_components(component) if c in rates]
    if not measured:
        return 0.0, []
    elevated = [c for c in measured if rates[c] >= config.downstream_error_threshold]
    return len(elevated) / len(measured), elevated


def analyze_cascade(
    evidence: Sequence[ComponentEvidence],
    config: BottleneckConfig | None = None,
) -> CascadeAnalysis:
    """
    Earliest candidate whose downstream components are also elevated.

    Walks the cascade from PHON; the first candidate with cascade strength
    at or above ``cascade_confidence_cutoff`` is the root cause and the
    chain lists it followed by its elevated downstream components.
    """
    config = config or BottleneckConfig()
    by_component = {ev.component: ev for ev in evidence}

    for component in CASCADE_ORDER:
        ev = by_component.get(component)
        if ev is None or not _is_candidate(ev, config):
            continue
        strength, elevated = _cascade_strength(component, evidence, config)
        if strength >= config.cascade_confidence_cutoff:
            logger.debug(
                f"Cascade root {component.value}: strength {strength:.2f}, "
                f"downstream {[c.value for c in elevated]}"
            )
            return CascadeAnalysis(root_cause=component, chain=(component, *elevated), strength=strength)

    return CascadeAnalysis(root_cause=None)


def _confidence(
    ev: ComponentEvidence,
    strength: float,
    evidence: Sequence[ComponentEvidence],
    config: BottleneckConfig,
) -> float:
    sample_factor = min(
        1.0, ev.sample_size / (config.min_samples_for(ev.component) * config.confidence_sample_multiplier)
    )
    others = [o.error_rate for o in evidence if o.component != ev.component]
    margin = ev.error_rate - max(others) if others else ev.error_rate
    margin_factor = min(1.0, max(0.0, margin) / config.margin_scale)
    return (
        config.confidence_sample_weight * sample_factor
        + config.confidence_cascade_weight * strength
        + config.confidence_margin_weight * margin_factor
    )


def _recommendation(
    primary: ComponentType, evidence: ComponentEvidence, chain: Sequence[ComponentType]
) -> str:
    text = (
        f"Focus on {primary.display_name} ({primary.short_name}): "
        f"{evidence.error_rate:.0%} of recent answers were wrong."
    )
    if len(chain) > 1:
        affected = ", ".join(c.display_name for c in chain[1:])
        text += f" Errors in {affected} likely stem from this."
    if evidence.error_patterns:
        text += f" Recurring: {', '.join(evidence.error_patterns[:3])}."
    return text


# =============================================================================
# ENTRY POINT
# =============================================================================


def detect_bottleneck(
    response_log: Sequence[ResponseEvent],
    config: BottleneckConfig | None = None,
) -> BottleneckReport:
    """
    Diagnose the component blocking progress.

    Args:
        response_log: Learner responses in any order
        config: Thresholds

    Returns:
        BottleneckReport; INSUFFICIENT_DATA below ``min_responses``.
    """
    config = config or BottleneckConfig()
    n = len(response_log)

    if n < config.min_responses:
        return BottleneckReport(
            status=BottleneckStatus.INSUFFICIENT_DATA,
            recommendation=(
                f"Need more data: {n} responses recorded, "
                f"{config.min_responses} required for analysis."
            ),
            n_responses=n,
        )

    window = sorted(response_log, key=lambda r: r.timestamp)[-config.window_size :]
    evidence = _build_evidence(window, config)
    by_component = {ev.component: ev for ev in evidence}
    candidates = [ev for ev in evidence if _is_candidate(ev, config)]

    if not candidates:
        return BottleneckReport(
            status=BottleneckStatus.ANALYZED,
            evidence=tuple(evidence),
            recommendation="No bottleneck detected: error rates are below threshold in every component.",
            n_responses=len(window),
        )

    strengths = {ev.component: _cascade_strength(ev.component, evidence, config)[0] for ev in candidates}
    ranked = sorted(
        (
            RootCauseCandidate(
                component=ev.component,
                error_rate=ev.error_rate,
                confidence=_confidence(ev, strengths[ev.component], evidence, config),
            )
            for ev in candidates
        ),
        key=lambda c: (-c.confidence, cascade_position(c.component)),
    )

    cascade = analyze_cascade(evidence, config)
    if cascade.root_cause is not None:
        primary = cascade.root_cause
        chain = cascade.chain
    else:
        top = max(candidates, key=lambda ev: (ev.error_rate, -cascade_position(ev.component)))
        primary = top.component
        chain = (primary,)
        logger.debug(f"No cascade found, highest error rate: {primary.value}")

    ranked.sort(key=lambda c: c.component != primary)
    confidence = next(c.confidence for c in ranked if c.component == primary)

    return BottleneckReport(
        status=BottleneckStatus.ANALYZED,
        primary=primary,
        confidence=confidence,
        evidence=tuple(evidence),
        candidates=tuple(ranked),
        cascade_chain=tuple(chain),
        recommendation=_recommendation(primary, by_component[primary], chain),
        n_responses=len(window),
    )


def summarize_bottleneck(report: BottleneckReport) -> str:
    """One-line learner-facing summary."""
    if report.primary is None:
        return "No bottleneck detected"
    ev = report.evidence_for(report.primary)
    rate = f" ({ev.error_rate:.0%} errors)" if ev is not None else ""
    return f"Main difficulty: {report.primary.short_name}{rate}"
