"""
Quality Pipeline Configuration

Loads similarity, deduplication and scoring settings from environment
variables. Invalid values fail fast with ConfigurationError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# SIMILARITY THRESHOLDS
# ---------------------------------------------------------------------------

SIMILARITY_THRESHOLDS: dict[str, float] = {
    "EXACT_MATCH": 1.0,
    "VERY_HIGH": 0.95,
    "HIGH": 0.85,
    "MEDIUM": 0.70,
    "LOW": 0.50,
}

SEMANTIC_PROVIDERS = ("concept", "embedding", "none")
FALLBACK_POLICIES = ("renormalize", "fail")
DEFAULT_EMBEDDING_CACHE_SIZE = 1024


class ConfigurationError(ValueError):
    """Raised when the pipeline is configured in a way it cannot run.

    This is the only hard failure in the package. It is raised when objects
    are constructed, never partway through a dedup or scoring run.
    """


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_weights(name: str, default: tuple[float, float, float]) -> tuple[float, float, float]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 3:
        raise ConfigurationError(
            f"{name} must be 'jaccard,levenshtein,semantic', got {raw!r}"
        )
    try:
        jaccard, levenshtein, semantic = (float(p) for p in parts)
    except ValueError as e:
        raise ConfigurationError(f"{name} must contain numbers, got {raw!r}") from e
    return jaccard, levenshtein, semantic


@dataclass
class QualityConfig:
    """Configuration for similarity, deduplication and scoring.

    Environment Variables:
        DQ_SIMILARITY_WEIGHTS: "jaccard,levenshtein,semantic" (default: 0.4,0.2,0.4)
        DQ_DEDUP_THRESHOLD: Near-duplicate threshold (default: 0.85)
        DQ_MERGE_THRESHOLD: Segment merge threshold (default: 0.70)
        DQ_STRUCTURED_THRESHOLD: Keyless record threshold (default: 0.95)
        DQ_SEMANTIC_PROVIDER: concept | embedding | none (default: concept)
        DQ_SEMANTIC_FALLBACK: renormalize | fail (default: renormalize)
        DQ_SEMANTIC_TIMEOUT_S: Embedding request timeout (default: 10.0)
        DQ_EMBEDDING_CACHE_SIZE: Max cached embeddings per provider (default: 1024)
        DQ_STRICT_VALIDATION: Critical-issue penalty on accuracy (default: true)
        DQ_CHECK_HALLUCINATIONS: Run hallucination sub-check (default: true)
        DQ_REQUIRE_PRECISE_VALUES: Generic-value penalty on specificity (default: true)
    """

    similarity_weights: tuple[float, float, float] = (0.4, 0.2, 0.4)
    dedup_threshold: float = SIMILARITY_THRESHOLDS["HIGH"]
    merge_threshold: float = SIMILARITY_THRESHOLDS["MEDIUM"]
    structured_threshold: float = SIMILARITY_THRESHOLDS["VERY_HIGH"]
    semantic_provider: str = "concept"
    semantic_fallback: str = "renormalize"
    semantic_timeout_s: float = 10.0
    embedding_cache_size: int = DEFAULT_EMBEDDING_CACHE_SIZE
    strict_validation: bool = True
    check_hallucinations: bool = True
    require_precise_values: bool = True

    def __post_init__(self) -> None:
        for name in ("dedup_threshold", "merge_threshold", "structured_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if self.semantic_provider not in SEMANTIC_PROVIDERS:
            raise ConfigurationError(
                f"Unknown semantic provider {self.semantic_provider!r}, "
                f"expected one of {', '.join(SEMANTIC_PROVIDERS)}"
            )
        if self.semantic_fallback not in FALLBACK_POLICIES:
            raise ConfigurationError(
                f"Unknown semantic fallback {self.semantic_fallback!r}, "
                f"expected one of {', '.join(FALLBACK_POLICIES)}"
            )
        if self.semantic_provider == "none" and self.semantic_fallback == "fail":
            raise ConfigurationError(
                "No semantic provider configured and fallback policy is 'fail'"
            )
        if self.semantic_timeout_s <= 0:
            raise ConfigurationError("semantic_timeout_s must be positive")
        if self.embedding_cache_size < 1:
            raise ConfigurationError(
                f"embedding_cache_size must be at least 1, got {self.embedding_cache_size}"
            )

    @classmethod
    def from_env(cls) -> "QualityConfig":
        """Load config from environment variables."""
        return cls(
            similarity_weights=_env_weights("DQ_SIMILARITY_WEIGHTS", (0.4, 0.2, 0.4)),
            dedup_threshold=_env_float("DQ_DEDUP_THRESHOLD", SIMILARITY_THRESHOLDS["HIGH"]),
            merge_threshold=_env_float("DQ_MERGE_THRESHOLD", SIMILARITY_THRESHOLDS["MEDIUM"]),
            structured_threshold=_env_float(
                "DQ_STRUCTURED_THRESHOLD", SIMILARITY_THRESHOLDS["VERY_HIGH"]
            ),
            semantic_provider=os.environ.get("DQ_SEMANTIC_PROVIDER", "concept").lower(),
            semantic_fallback=os.environ.get("DQ_SEMANTIC_FALLBACK", "renormalize").lower(),
            semantic_timeout_s=_env_float("DQ_SEMANTIC_TIMEOUT_S", 10.0),
            embedding_cache_size=_env_int("DQ_EMBEDDING_CACHE_SIZE", DEFAULT_EMBEDDING_CACHE_SIZE),
            strict_validation=_env_bool("DQ_STRICT_VALIDATION", True),
            check_hallucinations=_env_bool("DQ_CHECK_HALLUCINATIONS", True),
            require_precise_values=_env_bool("DQ_REQUIRE_PRECISE_VALUES", True),
        )


# Global config singleton
_config: QualityConfig | None = None


def get_config() -> QualityConfig:
    """Get the global quality config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = QualityConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
