"""
Shared domain models.

Value types used by more than one engine module: skill components,
task kinds, item parameters and the response log entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ComponentType(str, Enum):
    """
    Linguistic skill component an item exercises.

    Declared in cascade order: foundational skills first.
    """

    PHON = "PHON"    # Phonology
    MORPH = "MORPH"  # Morphology
    LEX = "LEX"      # Lexical
    SYNT = "SYNT"    # Syntax
    PRAG = "PRAG"    # Pragmatics

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return {
            ComponentType.PHON: "Phonology",
            ComponentType.MORPH: "Morphology",
            ComponentType.LEX: "Vocabulary",
            ComponentType.SYNT: "Syntax",
            ComponentType.PRAG: "Pragmatics",
        }[self]

    @property
    def short_name(self) -> str:
        """Plain-language label for learner-facing summaries."""
        return {
            ComponentType.PHON: "sounds",
            ComponentType.MORPH: "word forms",
            ComponentType.LEX: "vocabulary",
            ComponentType.SYNT: "sentence structure",
            ComponentType.PRAG: "usage in context",
        }[self]


class TaskKind(str, Enum):
    """Exercise format, ordered roughly from easiest to hardest."""

    RECOGNITION = "recognition"  # MCQ, matching
    RECALL_CUED = "recall_cued"  # Fill-blank with hint
    RECALL_FREE = "recall_free"  # Fill-blank, no hint
    PRODUCTION = "production"    # Free response
    TIMED = "timed"              # Rapid response under time pressure


@dataclass(frozen=True)
class ItemParameters:
    """
    IRT parameters for one learnable item.

    Valid ranges: discrimination in [0.2, 3.0], difficulty in [-4, 4],
    guessing in [0, 0.35]. Callers validate before handing items in.
    """

    item_id: str
    difficulty: float = 0.0      # b
    discrimination: float = 1.0  # a
    guessing: float = 0.0        # c (0 for the 2PL/Rasch forms)


@dataclass(frozen=True)
class ResponseEvent:
    """
    One immutable entry of the learner response log.

    cue_level: 0 = unaided, 1-3 = increasing assistance.
    """

    item_id: str
    correct: bool
    component: ComponentType
    timestamp: datetime
    response_time_ms: int = 0
    cue_level: int = 0
    session_id: str | None = None
    content: str = ""
