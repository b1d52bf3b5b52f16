"""
Graph Module - Learning queue priority and L1 transfer.
"""
from logos.graph.priority import (
    CostFactors,
    LearnableItem,
    QueueEntry,
    UserState,
    build_learning_queue,
    compute_cost,
    compute_final_score,
    compute_fre,
    compute_priority,
    compute_urgency,
    estimate_cost_factors,
    get_session_items,
    get_top_priority_items,
    get_weights_for_level,
    infer_level,
    sort_by_priority,
)
from logos.graph.transfer import language_family, transfer_coefficient, transfer_gain

__all__ = [
    "LearnableItem",
    "UserState",
    "CostFactors",
    "QueueEntry",
    "compute_fre",
    "estimate_cost_factors",
    "compute_cost",
    "compute_priority",
    "compute_urgency",
    "compute_final_score",
    "infer_level",
    "get_weights_for_level",
    "build_learning_queue",
    "sort_by_priority",
    "get_top_priority_items",
    "get_session_items",
    "language_family",
    "transfer_coefficient",
    "transfer_gain",
]
