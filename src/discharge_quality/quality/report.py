"""
Quality report - combine dimension scores into one reviewable summary.

The report only aggregates the dimensions it is given. The overall score
is the weight-normalized average of those dimensions, so a report built
from accuracy and specificity alone still lands in [0, 1].
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from discharge_quality.observability.attributes import (
    DQ_REPORT_OVERALL_SCORE,
    DQ_REPORT_RATING,
)
from discharge_quality.observability.tracer import get_tracer
from discharge_quality.quality.models import Issue, ScoreResult, Severity

logger = logging.getLogger(__name__)

TOP_ISSUES = 10
MAX_RECOMMENDATIONS = 5
LOW_SCORE_THRESHOLD = 0.7
CONFIDENCE_FLOOR = 0.3

RATING_BANDS = (
    (0.9, "Excellent"),
    (0.8, "Good"),
    (0.7, "Fair"),
    (0.6, "Poor"),
)

LOW_SCORE_ACTIONS = {
    "accuracy": (
        "Verify and correct data accuracy",
        "Focus on medications and dates which have highest error rates",
    ),
    "specificity": (
        "Replace vague language with specific values",
        "Quantify doses, sizes, scores and timing",
    ),
}


def quality_rating(score: float) -> str:
    for floor, label in RATING_BANDS:
        if score >= floor:
            return label
    return "Very Poor"


def sort_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Most severe first, then largest impact."""
    return sorted(issues, key=lambda i: (i.severity.rank, -abs(i.impact)))


@dataclass
class Recommendation:
    priority: str  # critical | high | low
    dimension: str
    action: str
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "priority": self.priority,
            "dimension": self.dimension,
            "action": self.action,
            "details": self.details,
        }


@dataclass
class QualityReport:
    overall_score: float
    rating: str
    confidence: float
    dimensions: dict[str, ScoreResult]
    severity_counts: dict[str, int]
    top_issues: list[Issue] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        return round(self.overall_score * 100)

    @property
    def total_issues(self) -> int:
        return sum(self.severity_counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": {
                "score": self.overall_score,
                "percentage": self.percentage,
                "rating": self.rating,
                "confidence": self.confidence,
            },
            "dimensions": {name: result.to_dict() for name, result in self.dimensions.items()},
            "summary": {
                "totalIssues": self.total_issues,
                "criticalIssues": self.severity_counts[Severity.CRITICAL.value],
                "majorIssues": self.severity_counts[Severity.MAJOR.value],
                "minorIssues": self.severity_counts[Severity.MINOR.value],
                "warnings": self.severity_counts[Severity.WARNING.value],
            },
            "issues": [issue.to_dict() for issue in self.top_issues],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def _confidence(results: list[ScoreResult], critical_count: int) -> float:
    """Consistent scores and few critical issues mean a trustworthy assessment."""
    if not results:
        return CONFIDENCE_FLOOR
    scores = [r.score for r in results]
    mean = sum(scores) / len(scores)
    std_dev = math.sqrt(sum((s - mean) ** 2 for s in scores) / len(scores))
    confidence = 1 - std_dev * 2 - critical_count * 0.05
    return max(CONFIDENCE_FLOOR, min(1.0, confidence))


def _recommendations(results: list[ScoreResult], issues: list[Issue]) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    critical_types: list[str] = []
    for issue in issues:
        if issue.is_critical and issue.type not in critical_types:
            critical_types.append(issue.type)
    if critical_types:
        recommendations.append(Recommendation(
            priority="critical",
            dimension="multiple",
            action="Address critical issues immediately",
            details=", ".join(critical_types[:3]),
        ))

    for result in sorted(results, key=lambda r: r.score):
        if result.score >= LOW_SCORE_THRESHOLD:
            break
        action, details = LOW_SCORE_ACTIONS.get(
            result.dimension,
            (f"Improve {result.dimension}", "Review the issues reported for this dimension"),
        )
        recommendations.append(Recommendation("high", result.dimension, action, details))

    return recommendations[:MAX_RECOMMENDATIONS]


def build_quality_report(results: Iterable[ScoreResult]) -> QualityReport:
    """
    Aggregate dimension results into a QualityReport.

    Args:
        results: ScoreResults, one per dimension (later duplicates win)

    Returns:
        QualityReport; an empty input yields score 0.0, "Very Poor"
    """
    dimensions = {r.dimension: r for r in results}
    scored = list(dimensions.values())

    total_weight = sum(r.weight for r in scored)
    overall = sum(r.weighted for r in scored) / total_weight if total_weight > 0 else 0.0
    overall = max(0.0, min(1.0, overall))

    all_issues = sort_issues(issue for r in scored for issue in r.issues)
    counts = {severity.value: 0 for severity in Severity}
    for issue in all_issues:
        counts[issue.severity.value] += 1

    tracer = get_tracer()
    with tracer.start_span("dq.report") as span:
        report = QualityReport(
            overall_score=overall,
            rating=quality_rating(overall),
            confidence=_confidence(scored, counts[Severity.CRITICAL.value]),
            dimensions=dimensions,
            severity_counts=counts,
            top_issues=all_issues[:TOP_ISSUES],
            recommendations=_recommendations(scored, all_issues),
        )
        span.set_attribute(DQ_REPORT_OVERALL_SCORE, report.overall_score)
        span.set_attribute(DQ_REPORT_RATING, report.rating)

    logger.info(
        f"Quality report: {report.percentage}% ({report.rating}), "
        f"{counts['critical']} critical, {counts['major']} major, {counts['minor']} minor"
    )
    return report
