"""
Similarity module - hybrid string similarity.

- metrics.py: Jaccard, Levenshtein, n-gram (pure functions)
- semantic.py: ConceptSimilarity and EmbeddingSimilarity providers
- engine.py: SimilarityEngine blending the three with degraded-mode fallback
"""

from discharge_quality.similarity.metrics import (
    normalize_text,
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    calculate_fuzzy_match,
    ngram_similarity,
)
from discharge_quality.similarity.semantic import (
    CONCEPT_PATTERNS,
    ConceptSimilarity,
    EmbeddingSimilarity,
    extract_concepts,
)
from discharge_quality.similarity.engine import (
    SimilarityEngine,
    SimilarityWeights,
    build_semantic_provider,
    combined_similarity,
    get_similarity_engine,
    reset_similarity_engine,
)

__all__ = [
    # Metrics
    "normalize_text",
    "jaccard_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
    "calculate_fuzzy_match",
    "ngram_similarity",
    # Semantic providers
    "CONCEPT_PATTERNS",
    "ConceptSimilarity",
    "EmbeddingSimilarity",
    "extract_concepts",
    # Engine
    "SimilarityEngine",
    "SimilarityWeights",
    "build_semantic_provider",
    "combined_similarity",
    "get_similarity_engine",
    "reset_similarity_engine",
]
