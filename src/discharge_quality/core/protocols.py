"""
Core protocols defining contracts for the collaborators this package consumes.

Two seams are injectable:
- EmbeddingProvider: turns text into vectors (OpenAI in production,
  MockEmbeddings in tests)
- SemanticSimilarityProvider: the single bounded-score comparison the
  similarity engine blends with Jaccard and Levenshtein

PATTERN:
--------
- Protocol defines the contract
- Multiple implementations possible
- Factory functions for instantiation
- Test doubles for fast unit tests
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    Implementations:
    - OpenAIEmbeddings (production)
    - MockEmbeddings (testing)
    """

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        ...


# ---------------------------------------------------------------------------
# SEMANTIC SIMILARITY PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class SemanticSimilarityProvider(Protocol):
    """
    Contract for meaning-aware comparison of two normalized strings.

    Returns a score in [0, 1], or None when the provider cannot answer
    (remote service down, timeout). None tells the engine to drop the
    semantic term and renormalize the remaining weights.

    Implementations:
    - ConceptSimilarity (offline medical-concept overlap, default)
    - EmbeddingSimilarity (cosine over embeddings)
    """

    name: str

    def similarity(self, a: str, b: str) -> float | None:
        """Compare two normalized strings."""
        ...
