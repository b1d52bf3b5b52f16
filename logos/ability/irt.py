"""
Item Response Theory probability model.

Logistic item response functions on the logit scale:

    P(correct | theta) = c + (1 - c) / (1 + exp(-a * (theta - b)))

- 3PL: discrimination a, difficulty b, guessing floor c
- 2PL: c = 0
- 1PL (Rasch): a = 1, c = 0

Scalar helpers use math; the estimator and calibration modules carry
vectorised numpy equivalents of the same formulas.
"""

from __future__ import annotations

import math

import numpy as np

from logos.core.models import ItemParameters

# exp() argument clamp; keeps P strictly inside (0, 1) without overflow
LOGIT_CLAMP = 35.0


def _logistic(z: float) -> float:
    z = max(-LOGIT_CLAMP, min(LOGIT_CLAMP, z))
    return 1.0 / (1.0 + math.exp(-z))


def probability(theta: float, a: float = 1.0, b: float = 0.0, c: float = 0.0) -> float:
    """
    Probability of a correct response under the 3PL model.

    Args:
        theta: Person ability (logits)
        a: Discrimination (slope)
        b: Difficulty (location, P = (1 + c) / 2 at theta = b)
        c: Guessing floor (lower asymptote)

    Returns:
        Probability in (c, 1)
    """
    return c + (1.0 - c) * _logistic(a * (theta - b))


def probability_2pl(theta: float, a: float, b: float) -> float:
    """Two-parameter logistic probability."""
    return _logistic(a * (theta - b))


def probability_rasch(theta: float, b: float) -> float:
    """One-parameter (Rasch) probability."""
    return _logistic(theta - b)


def item_probability(theta: float, item: ItemParameters) -> float:
    """Probability of a correct response to ``item`` at ability ``theta``."""
    return probability(theta, item.discrimination, item.difficulty, item.guessing)


def fisher_information(theta: float, item: ItemParameters) -> float:
    """
    Fisher information an item carries about ability at ``theta``.

    3PL form: I = a^2 * (P - c)^2 * Q / ((1 - c)^2 * P), which reduces to
    a^2 * P * Q when c = 0. Maximised near theta = b.
    """
    a, c = item.discrimination, item.guessing
    p = item_probability(theta, item)
    q = 1.0 - p
    if p <= 0.0:
        return 0.0
    return (a * a) * ((p - c) ** 2) * q / (((1.0 - c) ** 2) * p)


def total_information(theta: float, items: list[ItemParameters]) -> float:
    """Sum of item information over a set of items."""
    return sum(fisher_information(theta, item) for item in items)


# =============================================================================
# VECTORISED FORMS
# =============================================================================


def probability_matrix(
    thetas: np.ndarray,
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray | None = None,
) -> np.ndarray:
    """
    Response probabilities for every (theta, item) pair.

    Args:
        thetas: Abilities, shape (n,)
        a, b, c: Item parameters, shape (j,)

    Returns:
        Array of shape (n, j)
    """
    z = np.clip(np.outer(thetas, a) - a * b, -LOGIT_CLAMP, LOGIT_CLAMP)
    p = 1.0 / (1.0 + np.exp(-z))
    if c is None:
        return p
    return c + (1.0 - c) * p


def item_arrays(items: list[ItemParameters]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split item parameters into (a, b, c) arrays."""
    a = np.array([item.discrimination for item in items], dtype=float)
    b = np.array([item.difficulty for item in items], dtype=float)
    c = np.array([item.guessing for item in items], dtype=float)
    return a, b, c
