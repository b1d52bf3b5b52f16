"""
Ability Estimator - Latent Ability from a Response Vector.

Two estimators over the same IRT response model:
1. Maximum likelihood via Newton-Raphson (Fisher scoring)
2. Expected a posteriori (EAP) via quadrature over a normal prior

`estimate_ability` is the entry point: MLE when there is enough data and it
converges, EAP otherwise, the prior when there are no responses at all.
`estimate_ability_state` runs that same estimator over the whole response
log and over each skill component's subset.

Based on:
- Lord (1980) - Applications of Item Response Theory
- Bock & Mislevy (1982) - EAP estimation
- Embretson & Reise (2000) - Item Response Theory for Psychologists
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np
from loguru import logger

from logos.ability.irt import item_arrays, item_probability, probability_matrix
from logos.ability.quadrature import compute_eap, make_rule
from logos.core.config import AbilityConfig
from logos.core.errors import UnknownItemError
from logos.core.models import ComponentType, ItemParameters, ResponseEvent

METHOD_MLE = "mle"
METHOD_EAP = "eap"
METHOD_PRIOR = "prior"


@dataclass(frozen=True)
class AbilityEstimate:
    """Point estimate of ability with its standard error."""

    theta: float
    se: float
    method: str
    iterations: int = 0
    converged: bool = True
    n_responses: int = 0

    @property
    def uncertainty(self) -> float:
        return self.se

    def to_dict(self) -> dict:
        return {
            "theta": round(self.theta, 4),
            "se": round(self.se, 4),
            "method": self.method,
            "iterations": self.iterations,
            "converged": self.converged,
            "n_responses": self.n_responses,
        }


def _check_lengths(responses: Sequence[bool], items: Sequence[ItemParameters]) -> None:
    if len(responses) != len(items):
        raise ValueError(
            f"responses and items differ in length ({len(responses)} vs {len(items)})"
        )


def _clamp(theta: float, config: AbilityConfig) -> float:
    return max(config.ability_min, min(config.ability_max, theta))


# =============================================================================
# MAXIMUM LIKELIHOOD
# =============================================================================


def _score_and_information(
    theta: float, responses: Sequence[bool], items: Sequence[ItemParameters]
) -> tuple[float, float]:
    """First derivative of the log-likelihood and test information at theta."""
    score = 0.0
    info = 0.0
    for correct, item in zip(responses, items):
        a, c = item.discrimination, item.guessing
        p = item_probability(theta, item)
        q = 1.0 - p
        if p <= 0.0 or q <= 0.0:
            continue
        # dP/dtheta for the 3PL
        slope = a * (p - c) * q / (1.0 - c)
        score += (float(correct) - p) * slope / (p * q)
        info += slope * slope / (p * q)
    return score, info


def estimate_theta_mle(
    responses: Sequence[bool],
    items: Sequence[ItemParameters],
    config: AbilityConfig | None = None,
) -> AbilityEstimate:
    """
    Maximum-likelihood ability by Newton-Raphson on the score function.

    Iterates theta += score / information until the step falls below
    ``mle_tolerance`` or ``mle_max_iterations`` is reached. The estimate
    is reported as not converged when the pattern is all-correct or
    all-incorrect (no finite maximum), when information vanishes, or when
    an iterate leaves the ability bounds.

    Args:
        responses: Correctness per administered item
        items: Parameters of those items, same order
        config: Estimation settings

    Returns:
        AbilityEstimate with method "mle"
    """
    config = config or AbilityConfig()
    _check_lengths(responses, items)
    n = len(responses)
    theta = config.prior_mean

    n_correct = sum(1 for r in responses if r)
    if n == 0 or n_correct in (0, n):
        return AbilityEstimate(
            theta=theta, se=math.inf, method=METHOD_MLE,
            iterations=0, converged=False, n_responses=n,
        )

    converged = False
    iterations = 0
    for iterations in range(1, config.mle_max_iterations + 1):
        score, info = _score_and_information(theta, responses, items)
        if info <= 0.0:
            break
        step = score / info
        theta += step
        if not config.ability_min <= theta <= config.ability_max:
            break
        if abs(step) < config.mle_tolerance:
            converged = True
            break

    _, info = _score_and_information(theta, responses, items)
    se = 1.0 / math.sqrt(info) if info > 0.0 else math.inf
    if not math.isfinite(theta):
        converged = False

    return AbilityEstimate(
        theta=theta, se=se, method=METHOD_MLE,
        iterations=iterations, converged=converged, n_responses=n,
    )


# =============================================================================
# EXPECTED A POSTERIORI
# =============================================================================


def response_log_likelihood(
    responses: Sequence[bool], items: Sequence[ItemParameters]
):
    """Vectorised log L(theta | responses) for use with quadrature."""
    u = np.asarray(responses, dtype=float)
    a, b, c = item_arrays(list(items))

    def log_likelihood(thetas: np.ndarray) -> np.ndarray:
        p = probability_matrix(thetas, a, b, c)
        return np.log(p) @ u + np.log1p(-p) @ (1.0 - u)

    return log_likelihood


def estimate_theta_eap(
    responses: Sequence[bool],
    items: Sequence[ItemParameters],
    config: AbilityConfig | None = None,
) -> AbilityEstimate:
    """
    Posterior-mean ability under a N(prior_mean, prior_sd²) prior.

    Always finite, so it is the fallback for extreme response patterns and
    short response vectors. The posterior SD is reported as the SE.
    """
    config = config or AbilityConfig()
    _check_lengths(responses, items)

    if not responses:
        return AbilityEstimate(
            theta=config.prior_mean, se=config.prior_sd, method=METHOD_PRIOR,
        )

    rule = make_rule(config.quadrature_points, config.quadrature_kind)
    theta, se = compute_eap(
        response_log_likelihood(responses, items),
        prior_mean=config.prior_mean,
        prior_sd=config.prior_sd,
        rule=rule,
    )
    return AbilityEstimate(
        theta=theta, se=se, method=METHOD_EAP, n_responses=len(responses),
    )


def estimate_ability(
    responses: Sequence[bool],
    items: Sequence[ItemParameters],
    config: AbilityConfig | None = None,
) -> AbilityEstimate:
    """
    Estimate ability, preferring MLE and falling back to EAP.

    - No responses: the prior
    - Fewer than ``min_responses_for_mle``: EAP
    - Otherwise MLE, or EAP if MLE did not converge

    The returned theta is clamped to [ability_min, ability_max].
    """
    config = config or AbilityConfig()
    _check_lengths(responses, items)

    if not responses:
        estimate = estimate_theta_eap(responses, items, config)
    elif len(responses) < config.min_responses_for_mle:
        estimate = estimate_theta_eap(responses, items, config)
    else:
        estimate = estimate_theta_mle(responses, items, config)
        if not estimate.converged:
            logger.debug(
                f"MLE did not converge after {estimate.iterations} iterations "
                f"({len(responses)} responses), falling back to EAP"
            )
            estimate = estimate_theta_eap(responses, items, config)

    clamped = _clamp(estimate.theta, config)
    if clamped != estimate.theta:
        estimate = AbilityEstimate(
            theta=clamped,
            se=estimate.se,
            method=estimate.method,
            iterations=estimate.iterations,
            converged=estimate.converged,
            n_responses=estimate.n_responses,
        )
    return estimate


# =============================================================================
# PER-COMPONENT ESTIMATION
# =============================================================================


@dataclass(frozen=True)
class AbilityState:
    """Global ability plus one estimate per skill component seen."""

    global_ability: AbilityEstimate
    components: dict[ComponentType, AbilityEstimate] = field(default_factory=dict)

    def for_component(self, component: ComponentType) -> AbilityEstimate:
        """Component estimate, or the global one if the component is unmeasured."""
        return self.components.get(component, self.global_ability)

    def to_dict(self) -> dict:
        return {
            "global": self.global_ability.to_dict(),
            "components": {c.value: est.to_dict() for c, est in self.components.items()},
        }


def estimate_ability_state(
    events: Sequence[ResponseEvent],
    items_by_id: Mapping[str, ItemParameters],
    config: AbilityConfig | None = None,
) -> AbilityState:
    """
    Estimate global and per-component ability from a response log.

    Raises:
        UnknownItemError: an event refers to an item missing from items_by_id
    """
    config = config or AbilityConfig()

    by_component: dict[ComponentType, tuple[list[bool], list[ItemParameters]]] = {}
    all_responses: list[bool] = []
    all_items: list[ItemParameters] = []

    for event in events:
        item = items_by_id.get(event.item_id)
        if item is None:
            raise UnknownItemError(event.item_id)
        all_responses.append(event.correct)
        all_items.append(item)
        responses, items = by_component.setdefault(event.component, ([], []))
        responses.append(event.correct)
        items.append(item)

    components = {}
    for component in ComponentType:
        if component in by_component:
            responses, items = by_component[component]
            components[component] = estimate_ability(responses, items, config)

    return AbilityState(
        global_ability=estimate_ability(all_responses, all_items, config),
        components=components,
    )
