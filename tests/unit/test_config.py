"""
Unit tests for configuration models and environment settings.
"""

import pytest
from pydantic import ValidationError

from config import Settings
from logos.core.config import (
    AbilityConfig,
    BottleneckConfig,
    CalibrationConfig,
    EngineConfig,
    PriorityConfig,
    PriorityWeights,
    RatingConfig,
    ResponseTimeThresholds,
    SchedulerConfig,
)
from logos.core.models import ComponentType, TaskKind


class TestEngineConfig:
    """Validation of the frozen engine models."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.ability.prior_sd == 1.0
        assert config.scheduler.request_retention == 0.9
        assert config.collocation.significance_threshold == 3.84
        assert config.bottleneck.min_responses == 20

    def test_frozen(self):
        with pytest.raises(ValidationError):
            AbilityConfig().prior_mean = 1.0

    def test_mapping_fields_are_read_only(self):
        priority = PriorityConfig()
        with pytest.raises(TypeError):
            priority.weight_profiles["expert"] = PriorityWeights()
        with pytest.raises(TypeError):
            priority.transfer.coefficients["germanic"][ComponentType.LEX] = 1.0
        with pytest.raises(TypeError):
            RatingConfig().stage_time_modifiers[0] = 9.0
        with pytest.raises(TypeError):
            EngineConfig().collocation.task_modifiers[TaskKind.TIMED] = 0.0

    def test_mapping_overrides_are_copied(self):
        minimums = {ComponentType.MORPH: 3}
        config = BottleneckConfig(min_samples_by_component=minimums)
        minimums[ComponentType.MORPH] = 50

        assert config.min_samples_for(ComponentType.MORPH) == 3
        with pytest.raises(TypeError):
            config.min_samples_by_component[ComponentType.LEX] = 1

    def test_initial_difficulty_comes_from_weights(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(initial_difficulty=5.0)

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            AbilityConfig(prior_men=0.5)

    def test_rejects_too_few_quadrature_points(self):
        with pytest.raises(ValidationError):
            AbilityConfig(quadrature_points=11)

    def test_rejects_inverted_bounds(self):
        with pytest.raises(ValidationError):
            AbilityConfig(ability_min=2.0, ability_max=-2.0)
        with pytest.raises(ValidationError):
            CalibrationConfig(discrimination_min=3.0, discrimination_max=1.0)

    def test_thresholds_must_increase(self):
        with pytest.raises(ValidationError):
            ResponseTimeThresholds(fast=1000, good=500, slow=3000, very_slow=6000)

    def test_weights_need_a_positive_entry(self):
        with pytest.raises(ValidationError):
            PriorityWeights(f=0, r=0, e=0)


class TestSettings:
    """LOGOS_ environment variables."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("LOGOS_PRIOR_SD", "1.5")
        monkeypatch.setenv("LOGOS_FSRS_MAXIMUM_INTERVAL", "90")
        settings = Settings(_env_file=None)

        assert settings.prior_sd == 1.5
        assert settings.fsrs_maximum_interval == 90

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("LOGOS_FSRS_DESIRED_RETENTION", "1.5")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_engine_config_from_settings(self):
        settings = Settings(
            _env_file=None,
            prior_mean=0.5,
            fsrs_desired_retention=0.85,
            collocation_window=3,
            calibration_min_respondents=50,
        )
        config = settings.get_engine_config()

        assert config.ability.prior_mean == 0.5
        assert config.calibration.ability.prior_mean == 0.5
        assert config.calibration.min_respondents == 50
        assert config.scheduler.request_retention == 0.85
        assert config.collocation.window_size == 3
