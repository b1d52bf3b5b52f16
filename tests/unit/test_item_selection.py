"""
Unit tests for adaptive item selection.
"""

import pytest

from logos.ability.estimator import AbilityEstimate
from logos.ability.selection import kl_information, select_item, select_item_kl, select_next_item
from logos.core.config import AbilityConfig
from logos.core.models import ItemParameters


@pytest.fixture
def pool():
    return [
        ItemParameters(item_id="easy", difficulty=-2.0),
        ItemParameters(item_id="mid", difficulty=0.0),
        ItemParameters(item_id="hard", difficulty=2.0),
    ]


class TestFisherSelection:
    """Maximum-information selection."""

    def test_picks_item_nearest_ability(self, pool):
        assert select_next_item(0.1, pool).item_id == "mid"
        assert select_next_item(1.8, pool).item_id == "hard"

    def test_prefers_discriminating_item(self):
        items = [
            ItemParameters(item_id="flat", difficulty=0.0, discrimination=0.5),
            ItemParameters(item_id="sharp", difficulty=0.0, discrimination=2.0),
        ]
        assert select_next_item(0.0, items).item_id == "sharp"

    def test_tie_broken_by_lowest_id(self):
        items = [
            ItemParameters(item_id="b", difficulty=0.5),
            ItemParameters(item_id="c", difficulty=0.5),
            ItemParameters(item_id="a", difficulty=0.5),
        ]
        assert select_next_item(0.0, items).item_id == "a"

    def test_excluded_items_skipped(self, pool):
        assert select_next_item(0.0, pool, exclude_ids={"mid"}).item_id in {"easy", "hard"}

    def test_empty_pool_returns_none(self, pool):
        assert select_next_item(0.0, []) is None
        assert select_next_item(0.0, pool, exclude_ids={"easy", "mid", "hard"}) is None


class TestKLSelection:
    """Posterior-weighted KL selection."""

    def test_kl_index_is_non_negative(self, pool):
        assert (kl_information(0.0, 1.0, pool) >= 0).all()

    def test_picks_item_near_posterior(self, pool):
        assert select_item_kl(0.0, 0.8, pool).item_id == "mid"

    def test_tie_broken_by_lowest_id(self):
        items = [
            ItemParameters(item_id="z", difficulty=0.0),
            ItemParameters(item_id="y", difficulty=0.0),
        ]
        assert select_item_kl(0.0, 1.0, items).item_id == "y"


class TestSelectItem:
    """Switching between KL and Fisher by uncertainty."""

    def test_low_uncertainty_uses_fisher(self, pool):
        estimate = AbilityEstimate(theta=1.9, se=0.2, method="mle")
        assert select_item(estimate, pool).item_id == "hard"

    def test_high_uncertainty_uses_kl(self, pool):
        estimate = AbilityEstimate(theta=0.0, se=1.0, method="eap")
        config = AbilityConfig(kl_se_threshold=0.5)
        assert select_item(estimate, pool, config).item_id == "mid"

    def test_infinite_se_is_handled(self, pool):
        estimate = AbilityEstimate(theta=0.0, se=float("inf"), method="mle", converged=False)
        assert select_item(estimate, pool) is not None
