"""
Quality result types: Issue, CheckResult, ScoreResult.

Issues are reporting values. They are collected, never raised, and never
mutated after creation, so a scoring run always completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    CRITICAL = "critical"  # patient-safety relevant
    MAJOR = "major"
    MINOR = "minor"
    WARNING = "warning"  # informational only

    @property
    def rank(self) -> int:
        """Sort key, most severe first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.MAJOR: 1,
    Severity.MINOR: 2,
    Severity.WARNING: 3,
}


@dataclass(frozen=True)
class Issue:
    """
    One finding from a quality check.

    context carries the subject of the finding under its own key
    (field, medication, procedure, term, ...), mirroring the flat shape
    downstream consumers read.
    """

    type: str
    severity: Severity
    impact: float
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, **self.context}
        data["severity"] = self.severity.value
        data["impact"] = self.impact
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


@dataclass
class CheckResult:
    """Outcome of one weighted sub-check.

    Counts are floats because some checks award partial credit.
    """

    total_checks: float = 0.0
    accurate_checks: float = 0.0
    issues: list[Issue] = field(default_factory=list)

    def passed(self, credit: float = 1.0) -> None:
        self.total_checks += 1
        self.accurate_checks += credit

    def failed(self, issue: Issue | None = None) -> None:
        self.total_checks += 1
        if issue is not None:
            self.issues.append(issue)

    def reward(self, matches: int, credit: float = 0.1) -> None:
        """Fractional credit added to both sides of the ratio."""
        self.total_checks += matches * credit
        self.accurate_checks += matches * credit

    def ensure_checked(self) -> "CheckResult":
        """Nothing applicable means full credit, never a zero denominator."""
        if self.total_checks == 0:
            self.total_checks = 1.0
            self.accurate_checks = 1.0
        return self

    @property
    def ratio(self) -> float:
        return self.accurate_checks / self.total_checks if self.total_checks else 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalChecks": self.total_checks,
            "accurateChecks": self.accurate_checks,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class ScoreResult:
    """
    Score for one quality dimension.

    score is post-penalty and always within [0, 1]; raw_score is the
    weighted ratio before any penalty; weight is the dimension's fixed
    share of the overall quality score.
    """

    dimension: str
    score: float
    raw_score: float
    weight: float
    issues: list[Issue] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def weighted(self) -> float:
        return self.score * self.weight

    @property
    def penalty_applied(self) -> bool:
        return self.score < self.raw_score

    @property
    def critical_count(self) -> int:
        return sum(1 for issue in self.issues if issue.is_critical)

    def issues_of_type(self, issue_type: str) -> list[Issue]:
        return [issue for issue in self.issues if issue.type == issue_type]

    def to_dict(self) -> dict[str, Any]:
        details: dict[str, Any] = {}
        for name, value in self.details.items():
            key = "penaltyApplied" if name == "penalty_applied" else name
            details[key] = value.to_dict() if isinstance(value, CheckResult) else value
        return {
            "dimension": self.dimension,
            "score": self.score,
            "rawScore": self.raw_score,
            "penaltyApplied": self.penalty_applied,
            "weight": self.weight,
            "weighted": self.weighted,
            "issues": [issue.to_dict() for issue in self.issues],
            "details": details,
        }
