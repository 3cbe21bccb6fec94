"""
Declarative weighted scoring.

A quality dimension is an ordered list of named, weighted checks. Each
check returns a CheckResult; the pipeline sums them:

    raw_score = sum(w_i * accurate_i) / sum(w_i * total_i)
    score     = max(0, raw_score - penalty(issues))

Adding a dimension means listing its checks, not re-writing the loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field
from typing import Any

from discharge_quality.observability.attributes import DQ_ISSUES_TYPES, dimension_attributes
from discharge_quality.observability.config import get_config as get_phoenix_config
from discharge_quality.observability.tracer import get_tracer
from discharge_quality.quality.models import CheckResult, Issue, ScoreResult
from discharge_quality.quality.records import as_mapping, serialize_narrative

logger = logging.getLogger(__name__)


@dataclass
class ScoringContext:
    """Inputs shared by every check in a run."""

    extracted: Mapping[str, Any]
    source_notes: str = ""
    narrative: Any = None
    narrative_text: str = ""  # serialized, lower-cased
    source_lower: str = field(init=False)

    def __post_init__(self) -> None:
        self.source_lower = self.source_notes.lower()

    @classmethod
    def build(
        cls,
        extracted_data: Any,
        source_notes: Any = None,
        narrative: Any = None,
    ) -> "ScoringContext":
        return cls(
            extracted=as_mapping(extracted_data),
            source_notes=source_notes if isinstance(source_notes, str) else "",
            narrative=narrative,
            narrative_text=serialize_narrative(narrative).lower(),
        )


CheckFn = Callable[[ScoringContext], CheckResult]
PenaltyFn = Callable[[list[Issue]], float]


@dataclass(frozen=True)
class WeightedCheck:
    name: str
    weight: float
    run: CheckFn


class ScoringPipeline:
    """Runs weighted checks for one dimension and applies its penalty."""

    def __init__(
        self,
        dimension: str,
        weight: float,
        checks: list[WeightedCheck],
        penalty: PenaltyFn | None = None,
    ):
        self.dimension = dimension
        self.weight = weight
        self.checks = list(checks)
        self.penalty = penalty

    def score(self, context: ScoringContext, skip: Collection[str] = ()) -> ScoreResult:
        """
        Run every check not named in skip.

        Skipped checks contribute nothing and appear as None in details.
        """
        tracer = get_tracer()
        with tracer.start_span(f"dq.{self.dimension}") as span:
            issues: list[Issue] = []
            details: dict[str, Any] = {}
            total = 0.0
            accurate = 0.0

            for check in self.checks:
                if check.name in skip:
                    details[check.name] = None
                    continue
                result = check.run(context).ensure_checked()
                total += result.total_checks * check.weight
                accurate += result.accurate_checks * check.weight
                issues.extend(result.issues)
                details[check.name] = result
                logger.debug(
                    f"{self.dimension}.{check.name}: "
                    f"{result.accurate_checks:g}/{result.total_checks:g}, {len(result.issues)} issues"
                )

            raw_score = min(1.0, accurate / total) if total > 0 else 1.0
            penalty = self.penalty(issues) if self.penalty else 0.0
            score = max(0.0, raw_score - penalty)
            details["penalty_applied"] = score < raw_score

            result = ScoreResult(
                dimension=self.dimension,
                score=score,
                raw_score=raw_score,
                weight=self.weight,
                issues=issues,
                details=details,
            )
            span.set_attributes(
                dimension_attributes(
                    self.dimension,
                    score=score,
                    raw_score=raw_score,
                    weight=self.weight,
                    issue_count=len(issues),
                    critical_count=result.critical_count,
                    penalty_applied=result.penalty_applied,
                )
            )
            if issues and get_phoenix_config().capture_content:
                span.set_attribute(DQ_ISSUES_TYPES, sorted({issue.type for issue in issues}))

        logger.info(
            f"{self.dimension} score {score:.3f} (raw {raw_score:.3f}, "
            f"{len(issues)} issues, {result.critical_count} critical)"
        )
        return result
