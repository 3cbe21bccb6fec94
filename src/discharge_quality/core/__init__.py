"""
Core module - shared protocols and configuration.

USAGE:
------
from discharge_quality.core import SemanticSimilarityProvider, get_config

class MyProvider:
    '''Implements SemanticSimilarityProvider protocol.'''
    name = "mine"

    def similarity(self, a: str, b: str) -> float | None:
        ...
"""

from discharge_quality.core.protocols import (
    EmbeddingProvider,
    SemanticSimilarityProvider,
)
from discharge_quality.core.config import (
    SIMILARITY_THRESHOLDS,
    ConfigurationError,
    QualityConfig,
    get_config,
    reset_config,
)

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "SemanticSimilarityProvider",
    # Config
    "SIMILARITY_THRESHOLDS",
    "ConfigurationError",
    "QualityConfig",
    "get_config",
    "reset_config",
]
