"""
Accuracy Scorer - is the extraction and narrative faithful to the source?

Six weighted checks, each comparing extracted facts with the raw notes:

    demographics      0.15   name, MRN, age
    dates             0.20   admission/discharge/surgery + ordering
    medications       0.25   name, dose, frequency (patient-safety critical)
    procedures        0.20   name, date
    hallucinations    0.10   narrative mentions absent from source
    clinical_values   0.10   KPS, GCS

This checks TEXTUAL agreement only. A dose that appears in the notes is
"accurate" here even if it is clinically wrong.

STRICT VALIDATION:
------------------
With strict validation on, each critical issue costs 0.05 of the final
score, capped at 0.20, floored at 0.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from discharge_quality.core.config import QualityConfig, get_config
from discharge_quality.quality.models import CheckResult, Issue, ScoreResult, Severity
from discharge_quality.quality.pipeline import ScoringContext, ScoringPipeline, WeightedCheck
from discharge_quality.quality.records import (
    date_formats,
    get_items,
    get_section,
    get_value,
    item_name,
    parse_date,
)
from discharge_quality.quality.vocabulary import (
    DEFAULT_ACCURACY_VOCABULARY,
    AccuracyVocabulary,
)

ACCURACY_WEIGHT = 0.25

CRITICAL_PENALTY_PER_ISSUE = 0.05
CRITICAL_PENALTY_CAP = 0.2

# (field, severity when missing from source)
DATE_FIELDS = (
    ("admission_date", Severity.MAJOR),
    ("discharge_date", Severity.CRITICAL),
    ("surgery_date", Severity.MAJOR),
)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _score_text(value: Any) -> str:
    # 80.0 reads as "80" in notes
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def critical_penalty(issues: list[Issue]) -> float:
    critical = sum(1 for issue in issues if issue.is_critical)
    return min(CRITICAL_PENALTY_CAP, CRITICAL_PENALTY_PER_ISSUE * critical)


class AccuracyScorer:
    """Cross-checks extracted data and narrative against source notes."""

    def __init__(
        self,
        vocabulary: AccuracyVocabulary = DEFAULT_ACCURACY_VOCABULARY,
        strict_validation: bool = True,
        check_hallucinations: bool = True,
    ):
        self.vocabulary = vocabulary
        self.strict_validation = strict_validation
        self.check_hallucinations = check_hallucinations
        self._physician = re.compile(vocabulary.physician_pattern, re.IGNORECASE)
        self.pipeline = ScoringPipeline(
            dimension="accuracy",
            weight=ACCURACY_WEIGHT,
            checks=[
                WeightedCheck("demographics", 0.15, self.check_demographics),
                WeightedCheck("dates", 0.20, self.check_dates),
                WeightedCheck("medications", 0.25, self.check_medications),
                WeightedCheck("procedures", 0.20, self.check_procedures),
                WeightedCheck("hallucinations", 0.10, self.detect_hallucinations),
                WeightedCheck("clinical_values", 0.10, self.check_clinical_values),
            ],
            penalty=critical_penalty if strict_validation else None,
        )

    @classmethod
    def from_config(
        cls,
        config: QualityConfig | None = None,
        vocabulary: AccuracyVocabulary = DEFAULT_ACCURACY_VOCABULARY,
    ) -> "AccuracyScorer":
        config = config or get_config()
        return cls(
            vocabulary=vocabulary,
            strict_validation=config.strict_validation,
            check_hallucinations=config.check_hallucinations,
        )

    def score(self, extracted_data: Any, source_notes: Any, narrative: Any = None) -> ScoreResult:
        context = ScoringContext.build(extracted_data, source_notes, narrative)
        skip = () if self.check_hallucinations else ("hallucinations",)
        return self.pipeline.score(context, skip=skip)

    # -----------------------------------------------------------------------
    # CHECKS
    # -----------------------------------------------------------------------

    def check_demographics(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        demographics = get_section(ctx.extracted, "demographics")

        name = demographics.get("name")
        if _present(name):
            if str(name).lower() in ctx.source_lower:
                result.passed()
            else:
                result.failed(Issue(
                    type="DEMOGRAPHICS_MISMATCH",
                    severity=Severity.MAJOR,
                    impact=-0.02,
                    context={"field": "name", "extracted": name},
                ))

        mrn = demographics.get("mrn")
        if _present(mrn):
            if str(mrn) in ctx.source_notes:
                result.passed()
            else:
                result.failed(Issue(
                    type="MRN_MISMATCH",
                    severity=Severity.CRITICAL,
                    impact=-0.05,
                    suggestion="Verify MRN against source documentation",
                    context={"field": "mrn", "extracted": mrn},
                ))

        age = demographics.get("age")
        if _present(age):
            pattern = rf"\b{re.escape(str(age))}\s*(?:year|yo|y\.o\.)"
            if re.search(pattern, ctx.source_notes):
                result.passed()
            else:
                result.failed(Issue(
                    type="AGE_MISMATCH",
                    severity=Severity.MINOR,
                    impact=-0.01,
                    context={"field": "age", "extracted": age},
                ))

        return result

    def check_dates(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        dates = get_section(ctx.extracted, "dates")

        for field_name, severity in DATE_FIELDS:
            value = get_value(dates, field_name)
            if not _present(value):
                continue
            if any(fmt in ctx.source_notes for fmt in date_formats(value)):
                result.passed()
            else:
                result.failed(Issue(
                    type="DATE_NOT_FOUND",
                    severity=severity,
                    impact=-0.05 if severity is Severity.CRITICAL else -0.03,
                    suggestion=f"Verify {field_name} in source notes",
                    context={"field": field_name, "extracted": value},
                ))

        admission = get_value(dates, "admission_date")
        discharge = get_value(dates, "discharge_date")
        if _present(admission) and _present(discharge):
            admitted = parse_date(admission)
            discharged = parse_date(discharge)
            if admitted and discharged and discharged < admitted:
                result.failed(Issue(
                    type="DATE_INCONSISTENCY",
                    severity=Severity.CRITICAL,
                    impact=-0.10,
                    suggestion="Discharge date cannot be before admission date",
                    context={"field": "discharge before admission"},
                ))
            else:
                result.passed()

        return result

    def check_medications(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()

        for med in get_items(ctx.extracted, "medications"):
            name = item_name(med, "name")
            if name is None:
                continue
            name = name.lower()

            if name in ctx.source_lower or any(
                alias in ctx.source_lower for alias in self.vocabulary.medication_aliases(name)
            ):
                result.passed()
            else:
                result.failed(Issue(
                    type="MEDICATION_NOT_FOUND",
                    severity=Severity.CRITICAL,
                    impact=-0.05,
                    suggestion=f'Verify medication "{name}" in source notes',
                    context={"medication": name},
                ))

            if not isinstance(med, Mapping):
                continue

            dose = get_value(med, "dose") or get_value(med, "dose_with_unit")
            if _present(dose):
                dose = str(dose)
                if dose in ctx.source_notes:
                    result.passed()
                else:
                    result.failed(Issue(
                        type="DOSE_MISMATCH",
                        severity=Severity.CRITICAL,
                        impact=-0.05,
                        suggestion=f"Verify dose for {name}",
                        context={"medication": name, "dose": dose},
                    ))

            frequency = med.get("frequency")
            if _present(frequency):
                frequency = str(frequency).lower()
                if frequency in ctx.source_lower or any(
                    v in ctx.source_lower for v in self.vocabulary.frequency_aliases(frequency)
                ):
                    result.passed()
                else:
                    result.failed(Issue(
                        type="FREQUENCY_MISMATCH",
                        severity=Severity.MAJOR,
                        impact=-0.02,
                        context={"medication": name, "frequency": frequency},
                    ))

        return result

    def check_procedures(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()

        for proc in get_items(ctx.extracted, "procedures"):
            name = item_name(proc, "procedure", "name")
            if name is None:
                continue
            name = name.lower()

            if name in ctx.source_lower or any(
                alias in ctx.source_lower for alias in self.vocabulary.procedure_aliases(name)
            ):
                result.passed()
            else:
                result.failed(Issue(
                    type="PROCEDURE_NOT_FOUND",
                    severity=Severity.MAJOR,
                    impact=-0.03,
                    suggestion=f'Verify procedure "{name}" in source notes',
                    context={"procedure": name},
                ))

            proc_date = proc.get("date") if isinstance(proc, Mapping) else None
            if _present(proc_date):
                if any(fmt in ctx.source_notes for fmt in date_formats(proc_date)):
                    result.passed()
                else:
                    result.failed(Issue(
                        type="PROCEDURE_DATE_MISMATCH",
                        severity=Severity.MAJOR,
                        impact=-0.02,
                        context={"procedure": name, "date": proc_date},
                    ))

        return result

    def detect_hallucinations(self, ctx: ScoringContext) -> CheckResult:
        """Narrative mentions with no support in the source.

        Physician names are warnings; listed medications are critical.
        Nothing to check means full credit.
        """
        result = CheckResult()
        if not ctx.narrative_text:
            return result

        for name in self._physician.findall(ctx.narrative_text):
            if name in ctx.source_lower:
                result.passed()
            else:
                result.failed(Issue(
                    type="POSSIBLE_HALLUCINATION",
                    severity=Severity.WARNING,
                    impact=-0.02,
                    suggestion="Verify this physician name in source notes",
                    context={"content": f"Dr. {name}"},
                ))

        for med in self.vocabulary.hallucination_medications:
            if med in ctx.narrative_text and med not in ctx.source_lower:
                result.failed(Issue(
                    type="POSSIBLE_HALLUCINATION",
                    severity=Severity.CRITICAL,
                    impact=-0.05,
                    suggestion=f'Medication "{med}" in narrative but not in source',
                    context={"content": med},
                ))

        return result

    def check_clinical_values(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        scores = get_section(ctx.extracted, "functional_scores")

        kps = scores.get("kps")
        if kps is not None:
            if _score_text(kps) in ctx.source_notes:
                result.passed()
            else:
                result.failed(Issue(
                    type="SCORE_MISMATCH",
                    severity=Severity.MINOR,
                    impact=-0.01,
                    context={"field": "KPS", "value": kps},
                ))

        gcs = scores.get("gcs")
        if gcs is not None:
            gcs_text = _score_text(gcs)
            if f"GCS {gcs_text}" in ctx.source_notes or f"GCS: {gcs_text}" in ctx.source_notes:
                result.passed()
            else:
                result.failed(Issue(
                    type="SCORE_MISMATCH",
                    severity=Severity.MAJOR,
                    impact=-0.02,
                    context={"field": "GCS", "value": gcs},
                ))

        return result


def calculate_accuracy_score(
    extracted_data: Any,
    source_notes: Any,
    narrative: Any = None,
    strict_validation: bool | None = None,
    check_hallucinations: bool | None = None,
    vocabulary: AccuracyVocabulary = DEFAULT_ACCURACY_VOCABULARY,
) -> ScoreResult:
    """
    Score accuracy of extracted data and narrative against source notes.

    Args:
        extracted_data: dict or ExtractedRecord; missing sections are skipped
        source_notes: raw clinical notes (None is treated as empty)
        narrative: JSON-serializable narrative object (or None)
        strict_validation: critical-issue penalty (default: config)
        check_hallucinations: run the hallucination check (default: config)
        vocabulary: lookup tables (default: built-in)

    Returns:
        ScoreResult with weight 0.25; never raises on malformed data
    """
    config = get_config()
    scorer = AccuracyScorer(
        vocabulary=vocabulary,
        strict_validation=config.strict_validation if strict_validation is None else strict_validation,
        check_hallucinations=(
            config.check_hallucinations if check_hallucinations is None else check_hallucinations
        ),
    )
    return scorer.score(extracted_data, source_notes, narrative)
