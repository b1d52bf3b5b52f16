"""
Item Calibration - EM Re-estimation of Item Parameters.

Alternates two steps over a persons x items response matrix:

    E-step: each person's ability by EAP under the current item parameters
    M-step: one Newton step per item on (a, b) with a diagonal Hessian,
            light L2 pull toward a=1, b=0, then clamping to bounds

Missing responses (None) drop out of every sum. Calibration refuses to run
on samples below the configured minimums, and only items whose standard
errors pass the acceptance gate are written back.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from loguru import logger

from logos.ability.irt import probability_matrix
from logos.ability.quadrature import make_rule
from logos.core.config import CalibrationConfig
from logos.core.models import ItemParameters


class CalibrationStatus(str, Enum):
    COMPLETED = "completed"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class CalibratedItem:
    """Re-estimated parameters for one item with their standard errors."""

    item_id: str
    discrimination: float
    difficulty: float
    se_discrimination: float
    se_difficulty: float
    accepted: bool
    n_responses: int

    def to_parameters(self, guessing: float = 0.0) -> ItemParameters:
        return ItemParameters(
            item_id=self.item_id,
            difficulty=self.difficulty,
            discrimination=self.discrimination,
            guessing=guessing,
        )


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of one calibration cycle."""

    status: CalibrationStatus
    reason: str = ""
    items: tuple[CalibratedItem, ...] = ()
    iterations: int = 0
    converged: bool = False
    skipped_item_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def accepted_items(self) -> tuple[CalibratedItem, ...]:
        return tuple(item for item in self.items if item.accepted)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "iterations": self.iterations,
            "converged": self.converged,
            "accepted": len(self.accepted_items),
            "rejected": len(self.items) - len(self.accepted_items),
            "skipped": list(self.skipped_item_ids),
        }


def _insufficient(reason: str, skipped: Sequence[str] = ()) -> CalibrationResult:
    logger.warning(f"Calibration skipped: {reason}")
    return CalibrationResult(
        status=CalibrationStatus.INSUFFICIENT_DATA,
        reason=reason,
        skipped_item_ids=tuple(skipped),
    )


def _to_arrays(
    response_matrix: Sequence[Sequence[bool | None]], n_items: int
) -> tuple[np.ndarray, np.ndarray]:
    """Responses as 0/1 floats plus an observed-mask, both (persons, items)."""
    u = np.zeros((len(response_matrix), n_items))
    mask = np.zeros((len(response_matrix), n_items))
    for i, row in enumerate(response_matrix):
        if len(row) != n_items:
            raise ValueError(f"row {i} has {len(row)} responses, expected {n_items}")
        for j, value in enumerate(row):
            if value is not None:
                mask[i, j] = 1.0
                u[i, j] = float(bool(value))
    return u, mask


def _e_step(
    u: np.ndarray,
    mask: np.ndarray,
    a: np.ndarray,
    b: np.ndarray,
    nodes: np.ndarray,
    log_weights: np.ndarray,
) -> np.ndarray:
    """EAP ability for every person at once."""
    p = probability_matrix(nodes, a, b)  # (nodes, items)
    log_lik = u @ np.log(p).T + (mask - u) @ np.log1p(-p).T  # (persons, nodes)
    log_post = log_lik + log_weights
    log_post -= log_post.max(axis=1, keepdims=True)
    posterior = np.exp(log_post)
    posterior /= posterior.sum(axis=1, keepdims=True)
    return posterior @ nodes


def calibrate_items(
    response_matrix: Sequence[Sequence[bool | None]],
    item_ids: Sequence[str],
    initial: Mapping[str, ItemParameters] | None = None,
    config: CalibrationConfig | None = None,
) -> CalibrationResult:
    """
    Re-estimate 2PL discrimination and difficulty by EM.

    Args:
        response_matrix: One row per person, one column per item;
            True/False for answered items, None for missing
        item_ids: Column labels
        initial: Starting parameters by item id (default a=1, b=0)
        config: Calibration settings

    Returns:
        CalibrationResult; INSUFFICIENT_DATA with no items when the sample
        is below min_respondents, or fewer than min_items items have
        min_responses_per_item responses.
    """
    config = config or CalibrationConfig()
    initial = initial or {}
    n_persons = len(response_matrix)

    if n_persons < config.min_respondents:
        return _insufficient(
            f"{n_persons} respondents, need at least {config.min_respondents}"
        )

    u, mask = _to_arrays(response_matrix, len(item_ids))
    counts = mask.sum(axis=0)
    keep = counts >= config.min_responses_per_item
    skipped = [item_id for item_id, ok in zip(item_ids, keep) if not ok]
    if skipped:
        logger.warning(
            f"{len(skipped)} items below {config.min_responses_per_item} responses, not calibrated"
        )

    if int(keep.sum()) < config.min_items:
        return _insufficient(
            f"{int(keep.sum())} items with at least {config.min_responses_per_item} "
            f"responses, need {config.min_items}",
            skipped,
        )

    ids = [item_id for item_id, ok in zip(item_ids, keep) if ok]
    u, mask, counts = u[:, keep], mask[:, keep], counts[keep]
    a = np.array([initial[i].discrimination if i in initial else 1.0 for i in ids])
    b = np.array([initial[i].difficulty if i in initial else 0.0 for i in ids])

    ability = config.ability
    rule = make_rule(ability.quadrature_points, ability.quadrature_kind)
    nodes, weights = rule.normal_nodes(ability.prior_mean, ability.prior_sd)
    with np.errstate(divide="ignore"):
        log_weights = np.log(weights)

    reg = config.regularization
    converged = False
    iterations = 0
    thetas = np.full(n_persons, ability.prior_mean)

    for iterations in range(1, config.max_iterations + 1):
        thetas = _e_step(u, mask, a, b, nodes, log_weights)

        p = probability_matrix(thetas, a, b)
        resid = (u - p) * mask
        pq = p * (1.0 - p) * mask
        dist = thetas[:, None] - b

        grad_a = (resid * dist).sum(axis=0) - reg * (a - 1.0)
        grad_b = (resid * -a).sum(axis=0) - reg * b
        hess_a = -(pq * dist**2).sum(axis=0) - reg
        hess_b = -(pq * a**2).sum(axis=0) - reg

        new_a = np.clip(a - grad_a / hess_a, config.discrimination_min, config.discrimination_max)
        new_b = np.clip(b - grad_b / hess_b, config.difficulty_min, config.difficulty_max)
        change = max(np.abs(new_a - a).max(), np.abs(new_b - b).max())
        a, b = new_a, new_b

        if change < config.tolerance:
            converged = True
            break

    # Standard errors from the information at the final estimates
    p = probability_matrix(thetas, a, b)
    pq = p * (1.0 - p) * mask
    info_a = (pq * (thetas[:, None] - b) ** 2).sum(axis=0)
    info_b = (pq * a**2).sum(axis=0)
    with np.errstate(divide="ignore"):
        se_a = np.where(info_a > 0, 1.0 / np.sqrt(info_a), np.inf)
        se_b = np.where(info_b > 0, 1.0 / np.sqrt(info_b), np.inf)

    items = tuple(
        CalibratedItem(
            item_id=item_id,
            discrimination=float(a[j]),
            difficulty=float(b[j]),
            se_discrimination=float(se_a[j]),
            se_difficulty=float(se_b[j]),
            accepted=bool(
                se_a[j] <= config.max_standard_error and se_b[j] <= config.max_standard_error
            ),
            n_responses=int(counts[j]),
        )
        for j, item_id in enumerate(ids)
    )

    n_accepted = sum(1 for item in items if item.accepted)
    logger.info(
        f"Calibration finished after {iterations} iterations "
        f"(converged={converged}): {n_accepted}/{len(items)} items accepted"
    )
    return CalibrationResult(
        status=CalibrationStatus.COMPLETED,
        items=items,
        iterations=iterations,
        converged=converged,
        skipped_item_ids=tuple(skipped),
    )


def apply_calibration(
    items_by_id: Mapping[str, ItemParameters],
    result: CalibrationResult,
) -> dict[str, ItemParameters]:
    """
    Write accepted estimates back into a copy of the item table.

    Rejected items keep their previous parameters; the guessing floor is
    never changed by calibration.
    """
    updated = dict(items_by_id)
    for calibrated in result.accepted_items:
        previous = updated.get(calibrated.item_id)
        guessing = previous.guessing if previous is not None else 0.0
        updated[calibrated.item_id] = calibrated.to_parameters(guessing)
    return updated
