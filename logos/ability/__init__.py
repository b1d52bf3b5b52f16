"""
Ability Estimator.

IRT ability estimation, adaptive item selection and item calibration.

Components:
- irt: Response probability and Fisher information (1PL/2PL/3PL)
- quadrature: Gauss-Hermite integration against a normal prior
- estimator: MLE / EAP ability and per-component AbilityState
- selection: Fisher and KL-divergence item selection
- calibration: EM re-estimation of item parameters with an SE gate
"""
from logos.ability.calibration import (
    CalibratedItem,
    CalibrationResult,
    CalibrationStatus,
    apply_calibration,
    calibrate_items,
)
from logos.ability.estimator import (
    AbilityEstimate,
    AbilityState,
    estimate_ability,
    estimate_ability_state,
    estimate_theta_eap,
    estimate_theta_mle,
)
from logos.ability.irt import (
    fisher_information,
    item_probability,
    probability,
    probability_2pl,
    probability_rasch,
    total_information,
)
from logos.ability.quadrature import (
    QuadratureRule,
    compute_eap,
    gauss_hermite_rule,
    integrate_normal,
    uniform_rule,
)
from logos.ability.selection import select_item, select_item_kl, select_next_item

__all__ = [
    # Response model
    "probability",
    "probability_2pl",
    "probability_rasch",
    "item_probability",
    "fisher_information",
    "total_information",
    # Quadrature
    "QuadratureRule",
    "gauss_hermite_rule",
    "uniform_rule",
    "integrate_normal",
    "compute_eap",
    # Estimation
    "AbilityEstimate",
    "AbilityState",
    "estimate_theta_mle",
    "estimate_theta_eap",
    "estimate_ability",
    "estimate_ability_state",
    # Selection
    "select_next_item",
    "select_item_kl",
    "select_item",
    # Calibration
    "CalibrationStatus",
    "CalibratedItem",
    "CalibrationResult",
    "calibrate_items",
    "apply_calibration",
]
