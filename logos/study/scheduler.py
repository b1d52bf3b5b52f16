"""
Review Scheduler - FSRS-4 Spaced Repetition.

Models each item's memory with two variables:
- stability: time constant (days) of the forgetting curve
- difficulty: 1 (easy) to 10 (hard), how hard stability is to grow

Forgetting curve: R(t) = exp(-t / S). The next interval inverts it at the
requested retention: t = -S * ln(retention).

The scheduler is a plain value built from an immutable SchedulerConfig;
every call takes the card and the clock explicitly and returns a new card.

Based on:
- Ye (2023) - FSRS-4 / A Stochastic Shortest Path Algorithm for Optimizing
  Spaced Repetition Scheduling
- Wozniak - SM-2 and the two-component model of memory
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum, IntEnum

from logos.core.config import SchedulerConfig

class Rating(IntEnum):
    """Review grade."""

    AGAIN = 1  # Forgotten
    HARD = 2   # Recalled with effort or help
    GOOD = 3   # Recalled normally
    EASY = 4   # Recalled effortlessly


class CardState(str, Enum):
    """Card lifecycle."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


@dataclass(frozen=True)
class ReviewCard:
    """Memory state of one item."""

    item_id: str | None = None
    difficulty: float = 5.0
    stability: float = 0.0       # days
    last_review: datetime | None = None
    reps: int = 0
    lapses: int = 0
    state: CardState = CardState.NEW
    scheduled_days: int = 0
    due: datetime | None = None

    @property
    def is_new(self) -> bool:
        return self.state == CardState.NEW or self.reps == 0

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "difficulty": round(self.difficulty, 3),
            "stability": round(self.stability, 3),
            "last_review": self.last_review.isoformat() if self.last_review else None,
            "reps": self.reps,
            "lapses": self.lapses,
            "state": self.state.value,
            "scheduled_days": self.scheduled_days,
            "due": self.due.isoformat() if self.due else None,
        }


class ReviewScheduler:
    """
    FSRS-4 scheduler.

    Usage:
        scheduler = ReviewScheduler()
        card = scheduler.schedule(ReviewCard(item_id="w1"), Rating.GOOD, now)
        card.due  # next review
    """

    def __init__(self, config: SchedulerConfig | None = None):
        self.config = config or SchedulerConfig()
        self.w = self.config.weights

    def schedule(self, card: ReviewCard, rating: Rating, now: datetime) -> ReviewCard:
        """
        Apply one review and return the updated card.

        `again` counts a lapse and moves the card to relearning; any other
        rating moves it to review. The input card is not modified.
        """
        rating = Rating(rating)

        if card.is_new:
            stability = self._initial_stability(rating)
            difficulty = self._initial_difficulty(rating)
        else:
            r = self.retrievability(card, now)
            difficulty = self._next_difficulty(card.difficulty, rating)
            if rating == Rating.AGAIN:
                stability = self._lapse_stability(card.difficulty, card.stability, r)
            else:
                stability = self._recall_stability(card.difficulty, card.stability, r, rating)

        stability = self._clamp_stability(stability)
        interval = self.next_interval(stability)

        if rating == Rating.AGAIN:
            lapses, state = card.lapses + 1, CardState.RELEARNING
        else:
            lapses, state = card.lapses, CardState.REVIEW

        return replace(
            card,
            difficulty=difficulty,
            stability=stability,
            last_review=now,
            reps=card.reps + 1,
            lapses=lapses,
            state=state,
            scheduled_days=interval,
            due=now + timedelta(days=interval),
        )

    def retrievability(self, card: ReviewCard, now: datetime) -> float:
        """Probability of recall at ``now`` (0 for cards never reviewed)."""
        if card.stability <= 0 or card.last_review is None:
            return 0.0
        elapsed_days = max(0.0, (now - card.last_review).total_seconds() / 86400)
        return math.exp(-elapsed_days / card.stability)

    def next_interval(self, stability: float) -> int:
        """Whole days until recall probability reaches the requested retention."""
        interval = -stability * math.log(self.config.request_retention)
        return max(1, min(self.config.maximum_interval, round(interval)))

    # -------------------------------------------------------------------------
    # FSRS-4 update rules
    # -------------------------------------------------------------------------

    def _initial_stability(self, rating: Rating) -> float:
        return self.w[rating - 1]

    def _initial_difficulty(self, rating: Rating) -> float:
        return self._clamp_difficulty(self.w[4] - (rating - 3) * self.w[5])

    def _next_difficulty(self, d: float, rating: Rating) -> float:
        nudged = d - self.w[6] * (rating - 3)
        # Mean reversion toward the initial difficulty of a Good rating
        reverted = self.w[7] * self._initial_difficulty(Rating.GOOD) + (1 - self.w[7]) * nudged
        return self._clamp_difficulty(reverted)

    def _recall_stability(self, d: float, s: float, r: float, rating: Rating) -> float:
        hard_penalty = self.w[15] if rating == Rating.HARD else 1.0
        easy_bonus = self.w[16] if rating == Rating.EASY else 1.0
        growth = (
            math.exp(self.w[8])
            * (11 - d)
            * math.pow(s, -self.w[9])
            * (math.exp(self.w[10] * (1 - r)) - 1)
            * hard_penalty
            * easy_bonus
        )
        return s * (growth + 1)

    def _lapse_stability(self, d: float, s: float, r: float) -> float:
        relearned = (
            self.w[11]
            * math.pow(d, -self.w[12])
            * (math.pow(s + 1, self.w[13]) - 1)
            * math.exp(self.w[14] * (1 - r))
        )
        return min(relearned, s)

    def _clamp_difficulty(self, d: float) -> float:
        return max(self.config.difficulty_min, min(self.config.difficulty_max, d))

    def _clamp_stability(self, s: float) -> float:
        return max(self.config.minimum_stability, min(self.config.maximum_stability, s))
