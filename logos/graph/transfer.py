"""
Cross-Linguistic Transfer - How Much the First Language Helps.

A learner's L1 makes some parts of an L2 cheaper to learn (cognates for a
Spanish speaker learning English) and others dearer (word order for a
Japanese speaker). The effect depends on the language pair and on the skill
component an item exercises, so transfer is a signed coefficient per
(L1 family, component):

    coefficient in [-1, 1]   positive = facilitation, negative = interference
    transfer gain = cost_weight * coefficient

The gain is subtracted from an item's learning cost by the priority ranker.

Based on:
- Odlin (1989) - Language Transfer
- Ringbom (2007) - Cross-linguistic Similarity in Foreign Language Learning
"""

from __future__ import annotations

from logos.core.config import TransferConfig
from logos.core.models import ComponentType

UNKNOWN_FAMILY = "other"


def _code(language: str) -> str:
    # "pt-BR" and "pt_BR" both resolve to "pt"
    return language.strip().lower().replace("_", "-").split("-")[0]


def language_family(language: str, config: TransferConfig | None = None) -> str:
    """Family of an ISO 639-1 code, or ``"other"`` when unlisted."""
    config = config or TransferConfig()
    return config.language_families.get(_code(language), UNKNOWN_FAMILY)


def transfer_coefficient(
    l1: str,
    l2: str,
    component: ComponentType,
    config: TransferConfig | None = None,
) -> float:
    """
    Signed transfer coefficient from ``l1`` to ``l2`` for one component.

    Transfer into the reference language reads the table for the L1's
    family. Into any other L2, a same-family L1 uses the shared same-family
    row; different families fall back to the reference table.
    """
    config = config or TransferConfig()
    l1_family = language_family(l1, config)
    if l1_family == UNKNOWN_FAMILY:
        return 0.0

    if _code(l2) != _code(config.reference_language) and l1_family == language_family(l2, config):
        row = config.same_family_coefficients
    else:
        row = config.coefficients.get(l1_family, {})
    return max(-1.0, min(1.0, row.get(component, 0.0)))


def transfer_gain(
    l1: str | None,
    l2: str,
    component: ComponentType | None = None,
    config: TransferConfig | None = None,
) -> float:
    """
    Cost reduction an item gets from the learner's L1.

    Zero without a known L1. Negative when the L1 interferes, which raises
    the item's cost. Untagged items count as ``default_component``.
    """
    config = config or TransferConfig()
    if not l1:
        return 0.0
    coefficient = transfer_coefficient(l1, l2, component or config.default_component, config)
    return config.cost_weight * coefficient
