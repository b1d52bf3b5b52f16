"""
Unit tests for bottleneck detection.

Tests:
- Insufficient-data and no-bottleneck outcomes
- Highest-error-rate fallback
- Cascade root-cause detection
- Error patterns, co-occurrence and trend evidence
- Cascade helpers and summaries
"""

import pytest

from logos.adaptive.bottleneck import (
    BottleneckStatus,
    analyze_error_patterns,
    calculate_improvement_trend,
    can_cause_errors,
    detect_bottleneck,
    downstream_components,
    find_cooccurring_errors,
    is_component_type,
    summarize_bottleneck,
    upstream_components,
)
from logos.core.config import BottleneckConfig
from logos.core.models import ComponentType


def outcomes(n, wrong):
    """n outcomes with the first ``wrong`` incorrect."""
    return [False] * wrong + [True] * (n - wrong)


class TestOutcomes:
    """Report status and primary component."""

    def test_insufficient_data(self, make_responses):
        log = make_responses(ComponentType.LEX, outcomes(10, 5))
        report = detect_bottleneck(log)

        assert report.status == BottleneckStatus.INSUFFICIENT_DATA
        assert report.primary is None
        assert report.recommendation.startswith("Need more data")
        assert report.n_responses == 10

    def test_no_bottleneck(self, make_responses):
        report = detect_bottleneck(make_responses(ComponentType.LEX, outcomes(25, 2)))

        assert report.status == BottleneckStatus.ANALYZED
        assert report.primary is None
        assert report.recommendation.startswith("No bottleneck detected")
        assert summarize_bottleneck(report) == "No bottleneck detected"

    def test_highest_error_rate_without_cascade(self, make_responses):
        log = make_responses(ComponentType.MORPH, outcomes(20, 9)) + make_responses(
            ComponentType.LEX, outcomes(10, 1), start=100
        )
        report = detect_bottleneck(log)

        assert report.primary == ComponentType.MORPH
        assert report.cascade_chain == (ComponentType.MORPH,)
        assert "Morphology" in report.recommendation
        assert summarize_bottleneck(report) == "Main difficulty: word forms (45% errors)"

    def test_cascade_root_beats_higher_downstream_rate(self, make_responses):
        log = (
            make_responses(ComponentType.PHON, outcomes(10, 5))
            + make_responses(ComponentType.MORPH, outcomes(10, 4), start=100)
            + make_responses(ComponentType.LEX, outcomes(10, 6), start=200)
        )
        report = detect_bottleneck(log)

        assert report.primary == ComponentType.PHON
        assert report.cascade_chain == (ComponentType.PHON, ComponentType.MORPH, ComponentType.LEX)
        assert report.candidates[0].component == ComponentType.PHON
        assert 0 < report.confidence <= 1
        assert report.to_dict()["primary"] == "PHON"

    def test_error_rate_must_exceed_threshold(self, make_responses):
        # 6 of 20 wrong is exactly the 0.3 threshold
        at_threshold = make_responses(ComponentType.LEX, outcomes(20, 6))
        assert detect_bottleneck(at_threshold).primary is None

        above = make_responses(ComponentType.LEX, outcomes(20, 7))
        assert detect_bottleneck(above).primary == ComponentType.LEX

    def test_component_needs_enough_samples(self, make_responses):
        log = make_responses(ComponentType.LEX, outcomes(16, 0)) + make_responses(
            ComponentType.MORPH, outcomes(4, 4), start=100
        )
        assert detect_bottleneck(log).primary is None

        lenient = BottleneckConfig(min_samples_by_component={ComponentType.MORPH: 3})
        assert detect_bottleneck(log, lenient).primary == ComponentType.MORPH

    def test_only_trailing_window_is_analysed(self, make_responses):
        old_errors = make_responses(ComponentType.SYNT, outcomes(20, 20))
        recent = make_responses(ComponentType.SYNT, outcomes(20, 0), start=100)
        report = detect_bottleneck(old_errors + recent, BottleneckConfig(window_size=20))

        assert report.primary is None
        assert report.evidence_for(ComponentType.SYNT).error_rate == 0.0


class TestEvidence:
    """Per-component evidence."""

    def test_morphology_suffix_patterns(self, make_responses):
        errors = make_responses(
            ComponentType.MORPH,
            [False, False, False, False, False, True],
            contents=["running", "jumping", "walked", "talked", "cat", "singing"],
        )
        assert analyze_error_patterns(errors) == ["suffix -ed", "suffix -ing"]

    def test_phonology_onset_patterns(self, make_responses):
        errors = make_responses(
            ComponentType.PHON, [False, False, False], contents=["think", "three", "ship"]
        )
        assert analyze_error_patterns(errors) == ["onset th-"]

    def test_cooccurring_errors_in_cascade_order(self, make_responses):
        log = (
            make_responses(ComponentType.PHON, [False], session_id="s1")
            + make_responses(ComponentType.PRAG, [False], session_id="s1", start=1)
            + make_responses(ComponentType.LEX, [False], session_id="s1", start=2)
            + make_responses(ComponentType.SYNT, [True], session_id="s1", start=3)
            + make_responses(ComponentType.MORPH, [False], session_id="s2", start=4)
        )
        assert find_cooccurring_errors(ComponentType.PHON, log) == [
            ComponentType.LEX,
            ComponentType.PRAG,
        ]

    def test_improvement_trend(self, make_responses):
        log = make_responses(ComponentType.LEX, [False] * 4 + [True] * 4)
        assert calculate_improvement_trend(ComponentType.LEX, log) == pytest.approx(1.0)

    def test_trend_needs_samples(self, make_responses):
        log = make_responses(ComponentType.LEX, [False, True, True])
        assert calculate_improvement_trend(ComponentType.LEX, log) == 0.0


class TestCascadeHelpers:
    """Cascade order utilities."""

    def test_is_component_type(self):
        assert is_component_type("PHON")
        assert not is_component_type("phon")
        assert not is_component_type("GRAMMAR")

    def test_causality_follows_order(self):
        assert can_cause_errors(ComponentType.PHON, ComponentType.LEX)
        assert not can_cause_errors(ComponentType.LEX, ComponentType.PHON)
        assert not can_cause_errors(ComponentType.LEX, ComponentType.LEX)

    def test_neighbours(self):
        assert downstream_components(ComponentType.SYNT) == [ComponentType.PRAG]
        assert upstream_components(ComponentType.MORPH) == [ComponentType.PHON]
        assert downstream_components(ComponentType.PRAG) == []
