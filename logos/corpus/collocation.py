"""
Collocation Analyzer - Pointwise Mutual Information over a Corpus.

Measures how much more often two words appear near each other than chance
would predict, and turns that association into a task difficulty:
strongly associated pairs ("make a decision") are easier to learn as units
than arbitrary combinations.

Statistics:
- p(x,y)     = min( C(x,y) / N, 1 ); a wide window can count a pair more
  often than there are tokens
- PMI(x, y)  = log2( p(x,y) / (p(x) * p(y)) )
- NPMI       = PMI / -log2( p(x,y) ), bounded to [-1, 1]; 1 when p(x,y) = 1
- Significance: Dunning's log-likelihood ratio over the 2x2 contingency
  table (chi-square, 1 df; 3.84 is p = 0.05)

References:
- Church & Hanks (1990) - Word association norms, mutual information
- Bouma (2009) - Normalized (pointwise) mutual information
- Dunning (1993) - Accurate methods for the statistics of surprise
"""

from __future__ import annotations

import math
import re
import threading
from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from loguru import logger

from logos.core.config import CollocationConfig
from logos.core.models import TaskKind

_TOKEN_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?")


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens (letters and inner apostrophes)."""
    return [m.group(0).lower() for m in _TOKEN_RE.finditer(text)]


def _pair_key(w1: str, w2: str) -> tuple[str, str]:
    return (w1, w2) if w1 <= w2 else (w2, w1)


@dataclass(frozen=True)
class PMIResult:
    """Association statistics for an unordered word pair."""

    word1: str
    word2: str
    cooccurrence: int
    pmi: float
    npmi: float
    significance: float

    def partner_of(self, word: str) -> str:
        """The other word of the pair."""
        return self.word2 if word.lower() == self.word1 else self.word1


@dataclass(frozen=True)
class CorpusIndex:
    """Read-only unigram and windowed pair counts."""

    total_tokens: int
    window_size: int
    word_counts: Mapping[str, int]
    pair_counts: Mapping[tuple[str, str], int]
    partners: Mapping[str, frozenset[str]]

    def word_count(self, word: str) -> int:
        return self.word_counts.get(word.lower(), 0)

    def pair_count(self, w1: str, w2: str) -> int:
        return self.pair_counts.get(_pair_key(w1.lower(), w2.lower()), 0)

    @property
    def vocabulary(self) -> list[str]:
        return sorted(self.word_counts)


def index_corpus(tokens: Iterable[str], window_size: int = 5) -> CorpusIndex:
    """
    Count unigrams and co-occurring pairs.

    Each token is paired with the ``window_size`` tokens to its right; pairs
    are stored unordered and a word never pairs with itself.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be at least 1, got {window_size}")

    words = [t.lower() for t in tokens]
    word_counts = Counter(words)
    pair_counts: Counter[tuple[str, str]] = Counter()
    partners: defaultdict[str, set[str]] = defaultdict(set)

    for i, w1 in enumerate(words):
        for w2 in words[i + 1 : i + 1 + window_size]:
            if w1 == w2:
                continue
            pair_counts[_pair_key(w1, w2)] += 1
            partners[w1].add(w2)
            partners[w2].add(w1)

    logger.debug(
        f"Indexed {len(words)} tokens: {len(word_counts)} types, {len(pair_counts)} pairs"
    )
    return CorpusIndex(
        total_tokens=len(words),
        window_size=window_size,
        word_counts=MappingProxyType(dict(word_counts)),
        pair_counts=MappingProxyType(dict(pair_counts)),
        partners=MappingProxyType({w: frozenset(p) for w, p in partners.items()}),
    )


# =============================================================================
# STATISTICS
# =============================================================================


def _x_log_x(x: float) -> float:
    return x * math.log(x) if x > 0 else 0.0


def _entropy(*counts: float) -> float:
    return _x_log_x(sum(counts)) - sum(_x_log_x(k) for k in counts)


def log_likelihood_ratio(c12: int, c1: int, c2: int, n: int) -> float:
    """
    Dunning's G² for the pair's 2x2 contingency table.

    k11 = both, k12 = first only, k21 = second only, k22 = neither.
    Windowed counts can exceed a word's own count, so k11 is capped at the
    smaller marginal.
    """
    k11 = max(0, min(c12, c1, c2))
    k12 = max(0, c1 - k11)
    k21 = max(0, c2 - k11)
    k22 = max(0, n - c1 - c2 + k11)
    row = _entropy(k11 + k12, k21 + k22)
    col = _entropy(k11 + k21, k12 + k22)
    mat = _entropy(k11, k12, k21, k22)
    return max(0.0, 2.0 * (row + col - mat))


def compute_pmi(index: CorpusIndex, w1: str, w2: str) -> PMIResult | None:
    """
    PMI, NPMI and significance for a word pair.

    Returns None when either word or the pair never occurs. Argument order
    does not matter; words come back in sorted order.
    """
    a, b = _pair_key(w1.lower(), w2.lower())
    c1 = index.word_counts.get(a, 0)
    c2 = index.word_counts.get(b, 0)
    c12 = index.pair_counts.get((a, b), 0)
    n = index.total_tokens
    if c1 == 0 or c2 == 0 or c12 == 0 or n == 0:
        return None

    joint = min(c12 / n, 1.0)
    pmi = math.log2(joint / ((c1 / n) * (c2 / n)))
    npmi = 1.0 if joint >= 1.0 else max(-1.0, min(1.0, pmi / -math.log2(joint)))

    return PMIResult(
        word1=a,
        word2=b,
        cooccurrence=c12,
        pmi=pmi,
        npmi=npmi,
        significance=log_likelihood_ratio(c12, c1, c2, n),
    )


def get_collocations(
    index: CorpusIndex,
    word: str,
    top_k: int | None = None,
    config: CollocationConfig | None = None,
) -> list[PMIResult]:
    """
    Significant partners of ``word``, strongest first.

    Pairs below the significance threshold are dropped; the rest are ordered
    by PMI descending, then by partner token.
    """
    config = config or CollocationConfig()
    top_k = top_k if top_k is not None else config.default_top_k
    target = word.lower()

    results = []
    for partner in index.partners.get(target, ()):
        result = compute_pmi(index, target, partner)
        if result is not None and result.significance >= config.significance_threshold:
            results.append(result)

    results.sort(key=lambda r: (-r.pmi, r.partner_of(target)))
    return results[:top_k]


# =============================================================================
# DIFFICULTY MAPPING
# =============================================================================


def _clamp_difficulty(value: float, config: CollocationConfig) -> float:
    return max(config.difficulty_floor, min(config.difficulty_ceiling, value))


def pmi_to_difficulty(
    npmi: float,
    task_kind: TaskKind = TaskKind.RECALL_CUED,
    config: CollocationConfig | None = None,
) -> float:
    """
    IRT difficulty (logits) from association strength.

    NPMI 1 maps to -range (easy), NPMI -1 to +range (hard); the task kind
    then shifts it (recognition easiest, production hardest).
    """
    config = config or CollocationConfig()
    base = -config.difficulty_range * npmi
    return _clamp_difficulty(base + config.task_modifiers.get(task_kind, 0.0), config)


def frequency_to_difficulty(
    frequency: float,
    task_kind: TaskKind = TaskKind.RECALL_CUED,
    config: CollocationConfig | None = None,
) -> float:
    """IRT difficulty from a normalised frequency in [0, 1]; frequent words are easy."""
    config = config or CollocationConfig()
    base = config.difficulty_range - 2 * config.difficulty_range * frequency
    return _clamp_difficulty(base + config.task_modifiers.get(task_kind, 0.0), config)


# =============================================================================
# PUBLICATION
# =============================================================================


class PublishedIndex:
    """
    Holder for the live corpus index.

    ``publish`` swaps in a rebuilt index; readers that already took
    ``current`` keep using the index they have.
    """

    def __init__(self, index: CorpusIndex | None = None):
        self._lock = threading.Lock()
        self._index = index
        self._version = 0 if index is None else 1

    @property
    def current(self) -> CorpusIndex | None:
        return self._index

    @property
    def version(self) -> int:
        return self._version

    def publish(self, index: CorpusIndex) -> CorpusIndex | None:
        """Install ``index`` and return the one it replaced."""
        with self._lock:
            previous = self._index
            self._index = index
            self._version += 1
            version = self._version
        logger.info(
            f"Published corpus index v{version} "
            f"({index.total_tokens} tokens, {len(index.word_counts)} types)"
        )
        return previous
