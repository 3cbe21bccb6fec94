"""
Semantic similarity providers.

The similarity engine blends a meaning-aware score with the two lexical
metrics. Two providers implement SemanticSimilarityProvider:

ConceptSimilarity
    Offline and deterministic. Pulls neurosurgical concepts (procedures,
    pathologies, imaging, medications, anatomy, findings) out of each text
    and compares the concept sets. Falls back to word Jaccard when neither
    text mentions a known concept.

EmbeddingSimilarity
    Cosine similarity over embeddings from an EmbeddingProvider. This is the
    only remote call in the package; API failures and timeouts are reported
    as None ("unavailable") and the engine renormalizes its weights.
"""

from __future__ import annotations

import logging
import re
from collections import OrderedDict

import numpy as np
from openai import OpenAIError

from discharge_quality.core.config import DEFAULT_EMBEDDING_CACHE_SIZE, ConfigurationError
from discharge_quality.core.protocols import EmbeddingProvider
from discharge_quality.similarity.metrics import jaccard_similarity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CONCEPT PATTERNS
# ---------------------------------------------------------------------------

CONCEPT_PATTERNS: dict[str, re.Pattern[str]] = {
    "procedures": re.compile(
        r"\b(craniotomy|craniectomy|resection|biopsy|coiling|clipping|shunt|evd|ld)\b",
        re.IGNORECASE,
    ),
    "pathologies": re.compile(
        r"\b(aneurysm|hemorrhage|tumor|glioblastoma|metastasis|hydrocephalus|sdh|edh)\b",
        re.IGNORECASE,
    ),
    "imaging": re.compile(r"\b(ct|mri|cta|dsa|angiography|scan)\b", re.IGNORECASE),
    "medications": re.compile(
        r"\b(aspirin|clopidogrel|warfarin|apixaban|keppra|dexamethasone)\b",
        re.IGNORECASE,
    ),
    "anatomy": re.compile(
        r"\b(frontal|parietal|temporal|occipital|cerebellum|brainstem|ventricle)\b",
        re.IGNORECASE,
    ),
    "findings": re.compile(
        r"\b(deficit|weakness|numbness|headache|seizure|confusion|coma)\b",
        re.IGNORECASE,
    ),
}


def extract_concepts(
    text: str,
    patterns: dict[str, re.Pattern[str]] = CONCEPT_PATTERNS,
) -> set[str]:
    """Return the set of known medical concepts mentioned in text."""
    concepts: set[str] = set()
    for pattern in patterns.values():
        concepts.update(match.lower() for match in pattern.findall(text))
    return concepts


class ConceptSimilarity:
    """Medical-concept overlap. Never unavailable."""

    name = "concept"

    def __init__(self, patterns: dict[str, re.Pattern[str]] | None = None):
        self._patterns = patterns or CONCEPT_PATTERNS

    def similarity(self, a: str, b: str) -> float | None:
        concepts_a = extract_concepts(a, self._patterns)
        concepts_b = extract_concepts(b, self._patterns)

        if not concepts_a and not concepts_b:
            return jaccard_similarity(a, b)

        return len(concepts_a & concepts_b) / len(concepts_a | concepts_b)


class EmbeddingSimilarity:
    """
    Cosine similarity over embeddings, clamped to [0, 1].

    Embeddings are cached per text in a bounded LRU, so a dedup pass embeds
    each distinct fragment once without the cache outgrowing cache_size.
    """

    name = "embedding"

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache_size: int = DEFAULT_EMBEDDING_CACHE_SIZE,
    ):
        if cache_size < 1:
            raise ConfigurationError(f"cache_size must be at least 1, got {cache_size}")
        self._provider = provider
        self.cache_size = cache_size
        self._cache: OrderedDict[str, np.ndarray] = OrderedDict()

    def _embed(self, text: str) -> np.ndarray:
        vector = self._cache.get(text)
        if vector is not None:
            self._cache.move_to_end(text)
            return vector

        vector = np.asarray(self._provider.embed(text), dtype=np.float64)
        self._cache[text] = vector
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return vector

    def similarity(self, a: str, b: str) -> float | None:
        if a == b:
            return 1.0

        try:
            vec_a = self._embed(a)
            vec_b = self._embed(b)
        except OpenAIError as e:
            logger.warning(f"Embedding provider unavailable, degrading to lexical metrics: {e}")
            return None

        norm_a = float(np.linalg.norm(vec_a))
        norm_b = float(np.linalg.norm(vec_b))
        if norm_a == 0.0 or norm_b == 0.0:
            return 0.0

        cosine = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
        return min(1.0, max(0.0, cosine))
