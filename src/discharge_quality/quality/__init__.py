"""
Quality module - accuracy and specificity scoring.

USAGE:
------
from discharge_quality.quality import (
    calculate_accuracy_score,
    calculate_specificity_score,
    build_quality_report,
)

accuracy = calculate_accuracy_score(extracted, source_notes, narrative)
specificity = calculate_specificity_score(narrative, extracted)
report = build_quality_report([accuracy, specificity])
"""

from discharge_quality.quality.models import (
    CheckResult,
    Issue,
    ScoreResult,
    Severity,
)
from discharge_quality.quality.pipeline import (
    ScoringContext,
    ScoringPipeline,
    WeightedCheck,
)
from discharge_quality.quality.vocabulary import (
    AccuracyVocabulary,
    SpecificityVocabulary,
    TermRule,
)
from discharge_quality.quality.accuracy import (
    ACCURACY_WEIGHT,
    AccuracyScorer,
    calculate_accuracy_score,
)
from discharge_quality.quality.specificity import (
    SPECIFICITY_WEIGHT,
    SpecificityScorer,
    calculate_specificity_score,
)
from discharge_quality.quality.report import (
    QualityReport,
    Recommendation,
    build_quality_report,
    quality_rating,
)

__all__ = [
    # Models
    "CheckResult",
    "Issue",
    "ScoreResult",
    "Severity",
    # Pipeline
    "ScoringContext",
    "ScoringPipeline",
    "WeightedCheck",
    # Vocabularies
    "AccuracyVocabulary",
    "SpecificityVocabulary",
    "TermRule",
    # Scorers
    "ACCURACY_WEIGHT",
    "AccuracyScorer",
    "calculate_accuracy_score",
    "SPECIFICITY_WEIGHT",
    "SpecificityScorer",
    "calculate_specificity_score",
    # Report
    "QualityReport",
    "Recommendation",
    "build_quality_report",
    "quality_rating",
]
