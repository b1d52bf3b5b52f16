"""
Priority Ranker - Expected Learning Value per Item.

Orders learnable items by how much they are worth studying now.

Formula:
    Priority(i) = FRE(i) / Cost(i)
    Final(i)    = Priority(i) * (1 + Urgency(i))

Where:
    FRE(i)  = w_f·F + w_r·R + w_e·E
              F = frequency, R = relational density, E = contextual
              contribution (all normalised to [0, 1])
    Cost(i) = BaseDifficulty - TransferGain + ExposureNeed, floored
              TransferGain is signed: an interfering L1 raises the cost
    Urgency = review pressure from the item's next due date

Base difficulty comes from the item's IRT difficulty, or from its
collocation strength when it has not been calibrated yet.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from logos.core.config import CollocationConfig, PriorityConfig, PriorityWeights
from logos.core.models import ComponentType, TaskKind
from logos.corpus.collocation import pmi_to_difficulty
from logos.graph.transfer import transfer_gain

BEGINNER = "beginner"
INTERMEDIATE = "intermediate"
ADVANCED = "advanced"

# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass(frozen=True)
class LearnableItem:
    """An item competing for a place in the learning queue."""

    item_id: str
    content: str = ""
    frequency: float = 0.0  # F, [0, 1]
    relational_density: float = 0.0  # R, [0, 1]
    contextual_contribution: float = 0.0  # E, [0, 1]
    irt_difficulty: float | None = None
    npmi: float | None = None
    task_kind: TaskKind = TaskKind.RECALL_CUED
    priority: float = 0.0  # denormalised, see sort_by_priority
    component: ComponentType | None = None


@dataclass(frozen=True)
class UserState:
    """What the ranker needs to know about the learner."""

    theta: float = 0.0
    weights: PriorityWeights = field(default_factory=PriorityWeights)
    l1_language: str | None = None
    l2_language: str = "en"


@dataclass(frozen=True)
class CostFactors:
    base_difficulty: float
    transfer_gain: float
    exposure_need: float


@dataclass(frozen=True)
class QueueEntry:
    """One ranked queue position."""

    item: LearnableItem
    priority: float
    urgency: float
    final_score: float
    is_new: bool

    def to_dict(self) -> dict:
        return {
            "item_id": self.item.item_id,
            "content": self.item.content,
            "priority": round(self.priority, 4),
            "urgency": round(self.urgency, 4),
            "final_score": round(self.final_score, 4),
            "is_new": self.is_new,
        }


# =============================================================================
# SIGNALS
# =============================================================================


def compute_fre(item: LearnableItem, weights: PriorityWeights | None = None) -> float:
    """Weighted sum of the F, R and E signals."""
    w = weights or PriorityWeights()
    return w.f * item.frequency + w.r * item.relational_density + w.e * item.contextual_contribution


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _item_difficulty(item: LearnableItem, collocation_config: CollocationConfig | None) -> float:
    if item.irt_difficulty is not None:
        return item.irt_difficulty
    if item.npmi is not None:
        return pmi_to_difficulty(item.npmi, item.task_kind, collocation_config)
    return 0.0


def estimate_cost_factors(
    item: LearnableItem,
    user_state: UserState,
    config: PriorityConfig | None = None,
    collocation_config: CollocationConfig | None = None,
) -> CostFactors:
    """
    Break an item's learning cost into its parts.

    - base difficulty: item difficulty mapped from [-3, 3] onto [0, 1]
    - transfer gain: signed L1 -> L2 transfer for the item's component
      (negative under interference)
    - exposure need: how far the item sits above the learner, on [0, 1]
    """
    config = config or PriorityConfig()
    b = _item_difficulty(item, collocation_config)

    return CostFactors(
        base_difficulty=_clamp01((b + 3) / 6),
        transfer_gain=transfer_gain(
            user_state.l1_language, user_state.l2_language, item.component, config.transfer
        ),
        exposure_need=_clamp01(max(0.0, b - user_state.theta) / config.exposure_gap_range),
    )


def compute_cost(factors: CostFactors, config: PriorityConfig | None = None) -> float:
    config = config or PriorityConfig()
    raw = factors.base_difficulty - factors.transfer_gain + factors.exposure_need
    return max(config.min_cost, raw)


def compute_priority(
    item: LearnableItem,
    user_state: UserState,
    config: PriorityConfig | None = None,
    collocation_config: CollocationConfig | None = None,
) -> float:
    """FRE / Cost for ``item`` given the learner."""
    factors = estimate_cost_factors(item, user_state, config, collocation_config)
    return compute_fre(item, user_state.weights) / compute_cost(factors, config)


def compute_urgency(
    next_review: datetime | None,
    now: datetime,
    config: PriorityConfig | None = None,
) -> float:
    """
    Review pressure.

    Never-scheduled items get a fixed value. Scheduled items rise linearly
    from 0 to 1 over the horizon before they are due, then grow
    logarithmically with days overdue up to the cap.
    """
    config = config or PriorityConfig()
    if next_review is None:
        return config.new_item_urgency

    days_until = (next_review - now).total_seconds() / 86400
    if days_until >= 0:
        return max(0.0, 1.0 - days_until / config.urgency_horizon_days)
    return min(config.max_urgency, 1.0 + math.log1p(-days_until))


def compute_final_score(priority: float, urgency: float) -> float:
    return priority * (1 + urgency)


# =============================================================================
# LEVEL PROFILES
# =============================================================================


def infer_level(theta: float, config: PriorityConfig | None = None) -> str:
    """Learner level from global ability."""
    config = config or PriorityConfig()
    if theta < config.beginner_below:
        return BEGINNER
    if theta < config.advanced_from:
        return INTERMEDIATE
    return ADVANCED


def get_weights_for_level(level: str, config: PriorityConfig | None = None) -> PriorityWeights:
    config = config or PriorityConfig()
    try:
        return config.weight_profiles[level]
    except KeyError:
        raise ValueError(f"Unknown level profile: {level}") from None


# =============================================================================
# QUEUE
# =============================================================================


def build_learning_queue(
    items: Sequence[LearnableItem],
    user_state: UserState,
    next_reviews: Mapping[str, datetime | None] | None = None,
    now: datetime | None = None,
    config: PriorityConfig | None = None,
    collocation_config: CollocationConfig | None = None,
) -> list[QueueEntry]:
    """
    Rank items by final score, highest first; ties by item id.

    Args:
        items: Candidate items
        user_state: Learner ability, weights and languages
        next_reviews: Due date per item id; missing or None means new
        now: Reference time (required when any item has a due date)
        config: Priority settings
        collocation_config: Used for NPMI-based difficulty fallback
    """
    next_reviews = next_reviews or {}
    if now is None and any(v is not None for v in next_reviews.values()):
        raise ValueError("now is required when items have review dates")

    queue = []
    for item in items:
        next_review = next_reviews.get(item.item_id)
        priority = compute_priority(item, user_state, config, collocation_config)
        urgency = compute_urgency(next_review, now, config)
        queue.append(
            QueueEntry(
                item=item,
                priority=priority,
                urgency=urgency,
                final_score=compute_final_score(priority, urgency),
                is_new=next_review is None,
            )
        )

    queue.sort(key=lambda e: (-e.final_score, e.item.item_id))
    return queue


def sort_by_priority(items: Sequence[LearnableItem]) -> list[LearnableItem]:
    """New list ordered by the items' stored priority, highest first."""
    return sorted(items, key=lambda i: (-i.priority, i.item_id))


def get_top_priority_items(items: Sequence[LearnableItem], count: int) -> list[LearnableItem]:
    return sort_by_priority(items)[:count]


def get_session_items(
    queue: Sequence[QueueEntry],
    session_size: int,
    new_item_ratio: float = 0.3,
) -> list[QueueEntry]:
    """
    Pick a session from a ranked queue.

    Reserves up to ``new_item_ratio`` of the slots for new items, gives the
    rest to due reviews (urgency >= 1), then tops up from the queue. The
    result keeps queue order.
    """
    if session_size <= 0:
        return []

    new_items = [e for e in queue if e.is_new]
    due_items = [e for e in queue if not e.is_new and e.urgency >= 1.0]

    new_slots = min(len(new_items), int(session_size * new_item_ratio))
    chosen = due_items[: session_size - new_slots] + new_items[:new_slots]
    chosen_ids = {e.item.item_id for e in chosen}

    for entry in queue:
        if len(chosen) >= session_size:
            break
        if entry.item.item_id not in chosen_ids:
            chosen.append(entry)
            chosen_ids.add(entry.item.item_id)

    rank = {e.item.item_id: i for i, e in enumerate(queue)}
    return sorted(chosen, key=lambda e: rank[e.item.item_id])
