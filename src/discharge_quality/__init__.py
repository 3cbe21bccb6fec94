"""
Discharge Quality - similarity, deduplication and quality gates for
generated discharge summaries.

Two subsystems:
- similarity/ + dedup/: collapse repeated or near-duplicate fragments
  pulled out of long, repetitive clinical notes
- quality/: score extracted data and the generated narrative against the
  source notes (accuracy, specificity)

Example:
    from discharge_quality import DeduplicationService, calculate_accuracy_score

    service = DeduplicationService()
    service.deduplicate(["EVD placed", "evd placed"])

    result = calculate_accuracy_score(record, source_notes, narrative)
    print(result.score, len(result.issues))
"""

from discharge_quality.core import ConfigurationError, QualityConfig, get_config
from discharge_quality.similarity import (
    SimilarityEngine,
    SimilarityWeights,
    combined_similarity,
    get_similarity_engine,
)
from discharge_quality.dedup import DeduplicationService
from discharge_quality.quality import (
    Issue,
    ScoreResult,
    Severity,
    calculate_accuracy_score,
    calculate_specificity_score,
    build_quality_report,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "QualityConfig",
    "get_config",
    "SimilarityEngine",
    "SimilarityWeights",
    "combined_similarity",
    "get_similarity_engine",
    "DeduplicationService",
    "Issue",
    "ScoreResult",
    "Severity",
    "calculate_accuracy_score",
    "calculate_specificity_score",
    "build_quality_report",
]
