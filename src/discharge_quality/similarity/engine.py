"""
Similarity Engine - hybrid similarity for near-duplicate detection.

combined = w_jaccard * jaccard + w_levenshtein * levenshtein + w_semantic * semantic

WHY THREE METRICS:
------------------
- Jaccard catches reordered wording ("EVD placed" / "placed EVD")
- Levenshtein catches typos and abbreviation drift ("craniotmy")
- Semantic catches synonyms the two lexical metrics miss

DEGRADED MODE:
--------------
The semantic provider is the only collaborator that can be unavailable.
When it returns None (or none is configured), the remaining two weights
are renormalized to sum to 1.0 and the comparison proceeds. Whether a
missing provider is acceptable at all is decided once, when the engine
is built.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from openai import OpenAIError

from discharge_quality.core.config import ConfigurationError, QualityConfig, get_config
from discharge_quality.core.protocols import SemanticSimilarityProvider
from discharge_quality.similarity.metrics import (
    jaccard_similarity,
    levenshtein_similarity,
    ngram_similarity,
)
from discharge_quality.similarity.semantic import ConceptSimilarity, EmbeddingSimilarity

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6


# ---------------------------------------------------------------------------
# WEIGHTS
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SimilarityWeights:
    """Blend weights for the three sub-metrics. Must sum to 1.0."""

    jaccard: float = 0.4
    levenshtein: float = 0.2
    semantic: float = 0.4

    def __post_init__(self) -> None:
        values = (self.jaccard, self.levenshtein, self.semantic)
        if any(v < 0 or math.isnan(v) for v in values):
            raise ConfigurationError(f"Similarity weights must be non-negative, got {values}")
        if abs(sum(values) - 1.0) > WEIGHT_TOLERANCE:
            raise ConfigurationError(f"Similarity weights must sum to 1.0, got {sum(values):.6f}")

    @classmethod
    def coerce(cls, weights: "SimilarityWeights | Mapping[str, float] | None") -> "SimilarityWeights":
        """Accept a SimilarityWeights, a {jaccard, levenshtein, semantic} mapping, or None."""
        if weights is None:
            return cls()
        if isinstance(weights, SimilarityWeights):
            return weights
        return cls(
            jaccard=float(weights.get("jaccard", 0.0)),
            levenshtein=float(weights.get("levenshtein", 0.0)),
            semantic=float(weights.get("semantic", 0.0)),
        )

    def without_semantic(self) -> tuple[float, float]:
        """Jaccard/Levenshtein weights renormalized to sum to 1.0."""
        lexical = self.jaccard + self.levenshtein
        if lexical == 0.0:
            # Pure-semantic blend with no semantic score: split evenly
            return 0.5, 0.5
        return self.jaccard / lexical, self.levenshtein / lexical


# ---------------------------------------------------------------------------
# ENGINE
# ---------------------------------------------------------------------------


class SimilarityEngine:
    """
    Blends Jaccard, Levenshtein and semantic similarity into one [0, 1] score.

    Inputs are expected to be normalized already (trimmed, lower-cased).
    The engine keeps no per-call state, so one instance can be shared by
    concurrent dedup runs. Embedding caching, if any, lives in the provider.
    """

    def __init__(
        self,
        semantic: SemanticSimilarityProvider | None = None,
        weights: SimilarityWeights | Mapping[str, float] | None = None,
        allow_degraded: bool = True,
    ):
        self.weights = SimilarityWeights.coerce(weights)
        if semantic is None and self.weights.semantic > 0 and not allow_degraded:
            raise ConfigurationError(
                "No semantic similarity provider configured and degraded mode is disabled"
            )
        self.semantic = semantic

    @property
    def degraded(self) -> bool:
        """True when every comparison runs without a semantic score."""
        return self.semantic is None and self.weights.semantic > 0

    def semantic_similarity(self, a: str, b: str) -> float | None:
        """Semantic score in [0, 1], or None when unavailable."""
        if self.semantic is None:
            return None
        score = self.semantic.similarity(a, b)
        if score is None:
            return None
        return min(1.0, max(0.0, float(score)))

    def combined_similarity(
        self,
        a: str,
        b: str,
        weights: SimilarityWeights | Mapping[str, float] | None = None,
    ) -> float:
        """Weighted blend of the three metrics, bounded to [0, 1]."""
        w = SimilarityWeights.coerce(weights) if weights is not None else self.weights

        if a == b:
            return 1.0

        jaccard = jaccard_similarity(a, b)
        levenshtein = levenshtein_similarity(a, b)

        semantic = self.semantic_similarity(a, b) if w.semantic > 0 else None

        if semantic is None and w.semantic > 0:
            w_jaccard, w_levenshtein = w.without_semantic()
            logger.debug("Semantic similarity unavailable, using renormalized lexical weights")
            score = w_jaccard * jaccard + w_levenshtein * levenshtein
        else:
            score = (
                w.jaccard * jaccard
                + w.levenshtein * levenshtein
                + w.semantic * (semantic or 0.0)
            )

        return min(1.0, max(0.0, score))

    def fuzzy_match(self, query: str, target: str, threshold: float = 0.6) -> dict[str, Any]:
        """Combined-metric match decision for flexible lookups."""
        similarity = self.combined_similarity(query, target)
        return {
            "matches": similarity >= threshold,
            "similarity": similarity,
            "confidence": similarity,
        }

    def batch_similarity(
        self,
        target: str,
        candidates: list[str],
        method: str = "combined",
    ) -> list[dict[str, Any]]:
        """Score every candidate against target, best first.

        method: combined | jaccard | levenshtein | semantic | ngram
        """
        scorers = {
            "jaccard": jaccard_similarity,
            "levenshtein": levenshtein_similarity,
            "ngram": ngram_similarity,
            "semantic": lambda x, y: self.semantic_similarity(x, y) or 0.0,
        }
        scorer = scorers.get(method, self.combined_similarity)

        results = [
            {"candidate": candidate, "similarity": scorer(target, candidate)}
            for candidate in candidates
        ]
        results.sort(key=lambda r: r["similarity"], reverse=True)
        return results


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


def build_semantic_provider(config: QualityConfig) -> SemanticSimilarityProvider | None:
    """Instantiate the semantic provider named in config."""
    if config.semantic_provider == "concept":
        return ConceptSimilarity()
    if config.semantic_provider == "embedding":
        from discharge_quality.embeddings import get_embedding_provider

        try:
            provider = get_embedding_provider(timeout=config.semantic_timeout_s)
        except OpenAIError as e:
            # Typically a missing OPENAI_API_KEY
            if config.semantic_fallback == "fail":
                raise ConfigurationError(f"Embedding provider unavailable: {e}") from e
            logger.warning(f"Embedding provider unavailable, running without semantic similarity: {e}")
            return None
        return EmbeddingSimilarity(provider, cache_size=config.embedding_cache_size)
    return None


_engine: SimilarityEngine | None = None


def get_similarity_engine(config: QualityConfig | None = None) -> SimilarityEngine:
    """
    Get the global similarity engine.

    With an explicit config a fresh engine is built and returned without
    touching the global instance.
    """
    global _engine
    if config is None and _engine is not None:
        return _engine

    cfg = config or get_config()
    jaccard, levenshtein, semantic = cfg.similarity_weights
    engine = SimilarityEngine(
        semantic=build_semantic_provider(cfg),
        weights=SimilarityWeights(jaccard, levenshtein, semantic),
        allow_degraded=cfg.semantic_fallback == "renormalize",
    )
    logger.info(
        f"SimilarityEngine initialized (semantic={cfg.semantic_provider}, "
        f"weights={cfg.similarity_weights})"
    )

    if config is None:
        _engine = engine
    return engine


def reset_similarity_engine() -> None:
    """Reset engine (useful for testing)."""
    global _engine
    _engine = None


def combined_similarity(
    a: str,
    b: str,
    weights: SimilarityWeights | Mapping[str, float] | None = None,
) -> float:
    """Combined similarity using the global engine."""
    return get_similarity_engine().combined_similarity(a, b, weights)
