"""
Corpus Module - Collocation statistics and difficulty mapping.
"""
from logos.corpus.collocation import (
    CorpusIndex,
    PMIResult,
    PublishedIndex,
    compute_pmi,
    frequency_to_difficulty,
    get_collocations,
    index_corpus,
    log_likelihood_ratio,
    pmi_to_difficulty,
    tokenize,
)

__all__ = [
    "CorpusIndex",
    "PMIResult",
    "PublishedIndex",
    "tokenize",
    "index_corpus",
    "compute_pmi",
    "log_likelihood_ratio",
    "get_collocations",
    "pmi_to_difficulty",
    "frequency_to_difficulty",
]
