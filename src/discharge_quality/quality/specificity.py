"""
Specificity Scorer - is the summary precise or vague?

Five weighted checks:

    value            0.35   vague quantifiers, numeric scores and labs, measurements
    temporal         0.25   vague timing vs dates, clock times, POD N, durations
    clinical_detail  0.20   tumor size/location, imaging findings, complications
    medication       0.10   drug class vs drug, dose, route, frequency
    procedure        0.10   bare procedure names, anatomy, surgical approach

Vague terms cost one failed check each; concrete mentions earn credit.
Measurements in the narrative add 0.1 to both sides of the ratio, so they
nudge the score up without ever dominating it.

With require_precise_values on, more than five GENERIC_VALUE issues cost
a flat 0.05.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from discharge_quality.core.config import QualityConfig, get_config
from discharge_quality.quality.models import CheckResult, Issue, ScoreResult, Severity
from discharge_quality.quality.pipeline import ScoringContext, ScoringPipeline, WeightedCheck
from discharge_quality.quality.records import (
    get_items,
    get_section,
    get_value,
    item_name,
)
from discharge_quality.quality.vocabulary import (
    DEFAULT_SPECIFICITY_VOCABULARY,
    SpecificityVocabulary,
)

SPECIFICITY_WEIGHT = 0.05

GENERIC_VALUE_LIMIT = 5
GENERIC_VALUE_PENALTY = 0.05

_MONTHS = "january|february|march|april|may|june|july|august|september|october|november|december"

MEASUREMENT_PATTERNS = (
    re.compile(r"\d+\.?\d*\s*(?:cm|mm|ml|mg|mcg|units?|%)", re.IGNORECASE),
    re.compile(r"\d+\.?\d*\s*x\s*\d+\.?\d*\s*x?\s*\d*\.?\d*", re.IGNORECASE),
)

DATE_PATTERNS = (
    re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"),
    re.compile(rf"(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}", re.IGNORECASE),
    re.compile(rf"\d{{1,2}}\s+(?:{_MONTHS})", re.IGNORECASE),
)

TIME_PATTERNS = (
    re.compile(r"\d{1,2}:\d{2}\s*(?:am|pm)?", re.IGNORECASE),
    re.compile(r"(?:post-?operative|pod|hospital)\s+day\s+\d+", re.IGNORECASE),
    re.compile(r"\d+\s+(?:hours?|days?|weeks?|months?)\s+(?:after|before|post|prior)", re.IGNORECASE),
    re.compile(r"\bpod\s*#?\s*\d+", re.IGNORECASE),
)

DURATION_PATTERN = re.compile(
    r"(?:for|lasted?|duration)\s+(?:of\s+)?\d+\s+(?:hours?|days?|weeks?|months?)",
    re.IGNORECASE,
)

LAB_VALUE_PATTERN = re.compile(r"\d+\.?\d*\s*\w+")
TUMOR_SIZE_PATTERN = re.compile(r"\d+\.?\d*\s*x\s*\d+", re.IGNORECASE)
IMAGING_MEASUREMENT_PATTERN = re.compile(r"\d+\.?\d*\s*(?:cm|mm)")
DOSE_PATTERN = re.compile(r"\d+\.?\d*\s*(?:mg|mcg|g|ml|units?)", re.IGNORECASE)


def _count_matches(patterns: tuple[re.Pattern[str], ...], text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in patterns)


class SpecificityScorer:
    """Rates how precise the narrative and extracted values are."""

    def __init__(
        self,
        vocabulary: SpecificityVocabulary = DEFAULT_SPECIFICITY_VOCABULARY,
        require_precise_values: bool = True,
    ):
        self.vocabulary = vocabulary
        self.require_precise_values = require_precise_values
        self._quantifiers = vocabulary.quantifier_rule()
        self._temporal_terms = vocabulary.temporal_rule()
        self._durations = vocabulary.duration_rule()
        self.pipeline = ScoringPipeline(
            dimension="specificity",
            weight=SPECIFICITY_WEIGHT,
            checks=[
                WeightedCheck("value", 0.35, self.check_values),
                WeightedCheck("temporal", 0.25, self.check_temporal),
                WeightedCheck("clinical_detail", 0.20, self.check_clinical_details),
                WeightedCheck("medication", 0.10, self.check_medications),
                WeightedCheck("procedure", 0.10, self.check_procedures),
            ],
            penalty=self._generic_value_penalty if require_precise_values else None,
        )

    @classmethod
    def from_config(
        cls,
        config: QualityConfig | None = None,
        vocabulary: SpecificityVocabulary = DEFAULT_SPECIFICITY_VOCABULARY,
    ) -> "SpecificityScorer":
        config = config or get_config()
        return cls(vocabulary=vocabulary, require_precise_values=config.require_precise_values)

    def score(self, narrative: Any, extracted_data: Any) -> ScoreResult:
        context = ScoringContext.build(extracted_data, narrative=narrative)
        return self.pipeline.score(context)

    @staticmethod
    def _generic_value_penalty(issues: list[Issue]) -> float:
        generic = sum(1 for issue in issues if issue.type == "GENERIC_VALUE")
        return GENERIC_VALUE_PENALTY if generic > GENERIC_VALUE_LIMIT else 0.0

    # -----------------------------------------------------------------------
    # CHECKS
    # -----------------------------------------------------------------------

    def check_values(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()

        for issue in self._quantifiers.scan(ctx.narrative_text):
            result.failed(issue)

        scores = get_section(ctx.extracted, "functional_scores")

        kps = scores.get("kps")
        if kps is not None:
            if isinstance(kps, (int, float)) and not isinstance(kps, bool):
                result.passed()
            else:
                result.failed(Issue(
                    type="GENERIC_VALUE",
                    severity=Severity.MINOR,
                    impact=-0.01,
                    suggestion="Use specific KPS score (0-100)",
                    context={"field": "KPS", "value": kps},
                ))

        gcs = scores.get("gcs")
        if gcs is not None:
            if isinstance(gcs, (int, float)) and not isinstance(gcs, bool) and 3 <= gcs <= 15:
                result.passed()
            else:
                result.failed(Issue(
                    type="GENERIC_VALUE",
                    severity=Severity.MAJOR,
                    impact=-0.02,
                    suggestion="Use specific GCS score (3-15)",
                    context={"field": "GCS", "value": gcs},
                ))

        labs = get_value(ctx.extracted, "labs")
        for lab in labs if isinstance(labs, list) else []:
            if not isinstance(lab, Mapping) or not lab.get("value"):
                continue
            value = str(lab["value"])
            if LAB_VALUE_PATTERN.search(value):
                result.passed()
            elif value.lower() in self.vocabulary.generic_lab_values:
                result.failed(Issue(
                    type="GENERIC_LAB_VALUE",
                    severity=Severity.MINOR,
                    impact=-0.01,
                    suggestion="Provide specific lab value with units",
                    context={"lab": lab.get("name"), "value": value},
                ))
            else:
                # Other descriptive values are acceptable
                result.passed()

        result.reward(_count_matches(MEASUREMENT_PATTERNS, ctx.narrative_text))
        return result

    def check_temporal(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        if not ctx.narrative_text:
            return result

        for issue in self._temporal_terms.scan(ctx.narrative_text):
            result.failed(issue)

        specific = (
            _count_matches(DATE_PATTERNS, ctx.narrative_text)
            + _count_matches(TIME_PATTERNS, ctx.narrative_text)
            + len(DURATION_PATTERN.findall(ctx.narrative_text))
        )
        result.reward(specific, credit=1.0)

        for issue in self._durations.scan(ctx.narrative_text):
            result.failed(issue)

        return result

    def check_clinical_details(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        vocab = self.vocabulary

        tumor = get_value(get_section(ctx.extracted, "pathology"), "tumor_details")
        if isinstance(tumor, Mapping):
            size = tumor.get("size")
            if size:
                if TUMOR_SIZE_PATTERN.search(str(size)):
                    result.passed()
                else:
                    result.failed(Issue(
                        type="VAGUE_TUMOR_SIZE",
                        severity=Severity.MINOR,
                        impact=-0.01,
                        suggestion="Provide specific tumor dimensions (e.g., 3.2 x 2.8 cm)",
                        context={"value": size},
                    ))

            location = tumor.get("location")
            if location:
                lowered = str(location).lower()
                if any(term in lowered for term in vocab.tumor_location_terms):
                    result.passed()
                else:
                    result.failed(Issue(
                        type="VAGUE_LOCATION",
                        severity=Severity.MINOR,
                        impact=-0.01,
                        suggestion="Specify anatomical location precisely",
                        context={"location": location},
                    ))

        imaging = get_value(ctx.extracted, "imaging")
        if isinstance(imaging, Mapping):
            imaging = imaging.get("findings")
        for img in imaging if isinstance(imaging, list) else []:
            if not isinstance(img, Mapping) or not img.get("findings"):
                continue
            findings = str(img["findings"]).lower()
            if IMAGING_MEASUREMENT_PATTERN.search(findings):
                result.passed()
            elif findings in vocab.generic_imaging_findings:
                result.failed(Issue(
                    type="GENERIC_IMAGING",
                    severity=Severity.MINOR,
                    impact=-0.01,
                    suggestion="Provide specific imaging findings",
                    context={"modality": img.get("type")},
                ))
            else:
                result.passed(credit=0.5)

        for comp in get_items(ctx.extracted, "complications"):
            name = item_name(comp, "name")
            if name is None:
                continue
            name = name.lower()
            if name in vocab.generic_complications:
                result.failed(Issue(
                    type="GENERIC_COMPLICATION",
                    severity=Severity.MINOR,
                    impact=-0.01,
                    suggestion=f"Specify type/location of {name}",
                    context={"complication": name},
                ))
            else:
                result.passed()

        return result

    def check_medications(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        vocab = self.vocabulary

        for med in get_items(ctx.extracted, "medications"):
            name = item_name(med, "name")
            if name is None:
                continue

            if name.lower() in vocab.generic_medication_classes:
                result.failed(Issue(
                    type="GENERIC_MEDICATION",
                    severity=Severity.MAJOR,
                    impact=-0.02,
                    suggestion=f'Specify exact medication instead of "{name}"',
                    context={"medication": name},
                ))
            else:
                result.passed()

            if not isinstance(med, Mapping):
                continue

            dose = get_value(med, "dose") or get_value(med, "dose_with_unit")
            if dose:
                dose = str(dose)
                if DOSE_PATTERN.search(dose):
                    result.passed()
                elif dose.lower() in vocab.vague_doses:
                    result.failed(Issue(
                        type="VAGUE_DOSE",
                        severity=Severity.MAJOR,
                        impact=-0.02,
                        suggestion="Specify exact dose with units",
                        context={"medication": name, "dose": dose},
                    ))
                else:
                    result.passed(credit=0.5)

            route = med.get("route")
            if route:
                lowered = str(route).lower()
                if any(valid in lowered for valid in vocab.valid_routes):
                    result.passed()
                else:
                    result.failed(Issue(
                        type="VAGUE_ROUTE",
                        severity=Severity.MINOR,
                        impact=-0.01,
                        context={"medication": name, "route": route},
                    ))

            frequency = med.get("frequency")
            if frequency:
                frequency = str(frequency).lower()
                if any(f in frequency for f in vocab.specific_frequencies):
                    result.passed()
                elif frequency in vocab.prn_frequencies:
                    # PRN is acceptable but less specific
                    result.passed(credit=0.5)
                else:
                    result.failed(Issue(
                        type="VAGUE_FREQUENCY",
                        severity=Severity.MINOR,
                        impact=-0.01,
                        suggestion="Specify exact frequency",
                        context={"medication": name, "frequency": frequency},
                    ))

        return result

    def check_procedures(self, ctx: ScoringContext) -> CheckResult:
        result = CheckResult()
        vocab = self.vocabulary

        for proc in get_items(ctx.extracted, "procedures"):
            name = item_name(proc, "procedure", "name")
            if name is None:
                continue
            lowered = name.lower()

            if lowered in vocab.generic_procedures:
                result.failed(Issue(
                    type="GENERIC_PROCEDURE",
                    severity=Severity.MAJOR,
                    impact=-0.02,
                    suggestion="Specify exact procedure performed",
                    context={"procedure": name},
                ))
            elif any(term in lowered for term in vocab.procedure_anatomy_terms):
                result.passed()
            else:
                result.passed(credit=0.7)
                result.issues.append(Issue(
                    type="PROCEDURE_LACKS_ANATOMY",
                    severity=Severity.MINOR,
                    impact=-0.005,
                    suggestion="Include anatomical location in procedure name",
                    context={"procedure": name},
                ))

            if any(trigger in lowered for trigger in vocab.approach_triggers):
                if any(approach in lowered for approach in vocab.surgical_approaches):
                    result.passed()
                else:
                    result.failed(Issue(
                        type="MISSING_APPROACH",
                        severity=Severity.MINOR,
                        impact=-0.01,
                        suggestion="Specify surgical approach used",
                        context={"procedure": name},
                    ))

        return result


def calculate_specificity_score(
    narrative: Any,
    extracted_data: Any,
    require_precise_values: bool | None = None,
    vocabulary: SpecificityVocabulary = DEFAULT_SPECIFICITY_VOCABULARY,
) -> ScoreResult:
    """
    Score how specific the narrative and extracted data are.

    Args:
        narrative: JSON-serializable narrative (None allowed)
        extracted_data: dict or ExtractedRecord; missing sections are skipped
        require_precise_values: generic-value penalty (default: config)
        vocabulary: term lists (default: built-in)

    Returns:
        ScoreResult with weight 0.05 and score in [0, 1]
    """
    if require_precise_values is None:
        require_precise_values = get_config().require_precise_values
    scorer = SpecificityScorer(vocabulary=vocabulary, require_precise_values=require_precise_values)
    return scorer.score(narrative, extracted_data)
