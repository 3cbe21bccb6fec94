"""
Embeddings Module - Single Responsibility: Generate text embeddings.

Feeds the embedding-backed semantic similarity provider. It has ONE job:
convert clinical text fragments to vectors.

SOLID PRINCIPLE: Single Responsibility
- This module ONLY handles embedding generation
- No similarity logic, no clustering
- Easy to swap for different embedding providers
"""

import hashlib
import os

import numpy as np
from openai import OpenAI

from discharge_quality.core.protocols import EmbeddingProvider


class OpenAIEmbeddings:
    """
    OpenAI-based embedding provider.

    Uses text-embedding-3-small by default (1536 dimensions). The timeout
    bounds the single suspension point in the similarity engine.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        timeout: float = 10.0,
    ):
        self.model = model
        self._client = OpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            timeout=timeout,
            max_retries=0,
        )

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for the model."""
        model_dims = {
            "text-embedding-3-small": 1536,
            "text-embedding-3-large": 3072,
            "text-embedding-ada-002": 1536,
        }
        return model_dims.get(self.model, 1536)

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        response = self._client.embeddings.create(
            input=text,
            model=self.model
        )
        return np.array(response.data[0].embedding, dtype=np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts efficiently."""
        if not texts:
            return []

        response = self._client.embeddings.create(
            input=texts,
            model=self.model
        )
        return [
            np.array(item.embedding, dtype=np.float32)
            for item in response.data
        ]


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Hashes each whitespace token into a fixed bucket, so texts sharing
    words get overlapping vectors. Deterministic across runs.
    NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = 256):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic bag-of-words embedding."""
        vector = np.zeros(self._dimensions, dtype=np.float32)
        for token in text.lower().split():
            digest = hashlib.sha256(token.encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimensions
            vector[bucket] += 1.0
        return vector

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        return [self.embed(text) for text in texts]


def get_embedding_provider(use_mock: bool = False, timeout: float = 10.0) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (for testing)
        timeout: Request timeout in seconds for the OpenAI client
    """
    if use_mock:
        return MockEmbeddings()
    return OpenAIEmbeddings(timeout=timeout)
