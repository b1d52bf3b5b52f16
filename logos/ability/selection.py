"""
Adaptive item selection.

Maximum Fisher information at the point estimate is the standard CAT rule,
but early in a session the point estimate is poor. While the standard error
is large, selection switches to the Kullback-Leibler index, which averages
the item's discriminating power over the ability posterior.

References:
- Chang, H.-H. & Ying, Z. (1996). A global information approach to
  computerized adaptive testing. Applied Psychological Measurement.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

import numpy as np
from loguru import logger

from logos.ability.estimator import AbilityEstimate
from logos.ability.irt import fisher_information, item_arrays, probability_matrix
from logos.ability.quadrature import gauss_hermite_rule
from logos.core.config import AbilityConfig
from logos.core.models import ItemParameters


def _eligible(
    candidates: Iterable[ItemParameters], exclude_ids: Collection[str]
) -> list[ItemParameters]:
    return [item for item in candidates if item.item_id not in exclude_ids]


def select_next_item(
    theta: float,
    candidates: Iterable[ItemParameters],
    exclude_ids: Collection[str] = frozenset(),
) -> ItemParameters | None:
    """
    Item with maximum Fisher information at ``theta``.

    Ties go to the lowest item id. Returns None if nothing is eligible.
    """
    pool = _eligible(candidates, exclude_ids)
    if not pool:
        return None
    return min(pool, key=lambda item: (-fisher_information(theta, item), item.item_id))


def kl_information(
    theta: float,
    se: float,
    items: list[ItemParameters],
    n_points: int = 21,
) -> np.ndarray:
    """
    Posterior-weighted KL index for each item.

    KL_j = E_theta'[ P0 log(P0/P) + Q0 log(Q0/Q) ] with theta' ~ N(theta, se²),
    where P0 is the response probability at the current estimate.
    """
    a, b, c = item_arrays(items)
    nodes, weights = gauss_hermite_rule(n_points).normal_nodes(theta, se)
    p0 = probability_matrix(np.array([theta]), a, b, c)[0]
    p = probability_matrix(nodes, a, b, c)
    q0, q = 1.0 - p0, 1.0 - p
    kl = p0 * np.log(p0 / p) + q0 * np.log(q0 / q)
    return weights @ kl


def select_item_kl(
    theta: float,
    se: float,
    candidates: Iterable[ItemParameters],
    exclude_ids: Collection[str] = frozenset(),
    n_points: int = 21,
) -> ItemParameters | None:
    """Item with the largest posterior-weighted KL index; ties by lowest id."""
    pool = _eligible(candidates, exclude_ids)
    if not pool:
        return None
    scores = kl_information(theta, se, pool, n_points)
    ranked = sorted(zip(pool, scores.tolist()), key=lambda pair: (-pair[1], pair[0].item_id))
    return ranked[0][0]


def select_item(
    estimate: AbilityEstimate,
    candidates: Iterable[ItemParameters],
    config: AbilityConfig | None = None,
    exclude_ids: Collection[str] = frozenset(),
) -> ItemParameters | None:
    """Pick the next item: KL while uncertainty is high, Fisher afterwards."""
    config = config or AbilityConfig()
    if estimate.se > config.kl_se_threshold:
        # SE can be infinite after a failed MLE; cap at the prior spread
        se = min(estimate.se, config.prior_sd)
        logger.debug(f"KL selection (se={estimate.se:.3f} > {config.kl_se_threshold})")
        return select_item_kl(
            estimate.theta, se, candidates, exclude_ids, config.kl_quadrature_points
        )
    return select_next_item(estimate.theta, candidates, exclude_ids)
