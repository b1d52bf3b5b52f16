"""
Adaptive Module - Bottleneck and error-cascade diagnosis.

Components:
- bottleneck: Per-component error evidence, cascade root-cause detection,
  learner-facing recommendation
"""
from logos.adaptive.bottleneck import (
    CASCADE_ORDER,
    BottleneckReport,
    BottleneckStatus,
    CascadeAnalysis,
    ComponentEvidence,
    RootCauseCandidate,
    analyze_cascade,
    analyze_error_patterns,
    calculate_improvement_trend,
    can_cause_errors,
    cascade_position,
    detect_bottleneck,
    downstream_components,
    find_cooccurring_errors,
    is_component_type,
    summarize_bottleneck,
    upstream_components,
)

__all__ = [
    "CASCADE_ORDER",
    "BottleneckStatus",
    "BottleneckReport",
    "ComponentEvidence",
    "CascadeAnalysis",
    "RootCauseCandidate",
    "detect_bottleneck",
    "analyze_cascade",
    "analyze_error_patterns",
    "calculate_improvement_trend",
    "find_cooccurring_errors",
    "is_component_type",
    "cascade_position",
    "can_cause_errors",
    "downstream_components",
    "upstream_components",
    "summarize_bottleneck",
]
