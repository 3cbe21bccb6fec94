"""
Scoring vocabularies and the term-rule registry.

Every word list the scorers consult lives here as immutable data injected
at scorer construction. Tests pass restricted vocabularies; deployments
can load site-specific ones with from_dict().

TERM RULES:
-----------
"Flag every listed term that appears in the narrative" is one loop,
parameterized by a TermRule (issue type, terms, severity, impact,
suggestion template). Vague quantifiers, vague temporal terms and vague
durations are all TermRules.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from discharge_quality.quality.models import Issue, Severity


def _frozen_map(data: Mapping[str, Iterable[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in data.items()})


def _coerce_overrides(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert JSON-ish overrides into the frozen field types."""
    known = {f.name for f in dataclasses.fields(cls)}
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ValueError(f"Unknown vocabulary field {key!r} for {cls.__name__}")
        if isinstance(value, Mapping):
            overrides[key] = _frozen_map(value)
        elif isinstance(value, (list, tuple, set, frozenset)):
            overrides[key] = tuple(value)
        else:
            overrides[key] = value
    return overrides


# ---------------------------------------------------------------------------
# TERM RULES
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TermRule:
    """One entry of the vague-term registry."""

    issue_type: str
    terms: tuple[str, ...]
    severity: Severity
    impact: float
    suggestion: str  # formatted with {term}

    def scan(self, text: str) -> list[Issue]:
        """One issue per listed term present in text (substring match)."""
        return [
            Issue(
                type=self.issue_type,
                severity=self.severity,
                impact=self.impact,
                suggestion=self.suggestion.format(term=term),
                context={"term": term},
            )
            for term in self.terms
            if term in text
        ]


# ---------------------------------------------------------------------------
# ACCURACY
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccuracyVocabulary:
    """Lookup tables for the accuracy scorer."""

    medication_abbreviations: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _frozen_map({
            "acetaminophen": ("tylenol", "apap"),
            "aspirin": ("asa",),
            "levetiracetam": ("keppra",),
            "phenytoin": ("dilantin",),
            "dexamethasone": ("decadron", "dex"),
            "hydrocodone": ("norco", "vicodin"),
            "oxycodone": ("percocet", "roxicodone"),
            "metoprolol": ("lopressor",),
            "lisinopril": ("prinivil", "zestril"),
        })
    )
    frequency_variations: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _frozen_map({
            "daily": ("once daily", "qd", "q24h", "every day"),
            "bid": ("twice daily", "b.i.d.", "2x/day", "q12h"),
            "tid": ("three times daily", "t.i.d.", "3x/day", "q8h"),
            "qid": ("four times daily", "q.i.d.", "4x/day", "q6h"),
            "prn": ("as needed", "p.r.n.", "when needed"),
        })
    )
    procedure_abbreviations: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _frozen_map({
            "craniotomy": ("crani",),
            "external ventricular drain": ("evd", "ventriculostomy"),
            "ventriculoperitoneal shunt": ("vp shunt", "vps"),
            "anterior cervical discectomy and fusion": ("acdf",),
            "posterior lumbar interbody fusion": ("plif",),
            "transforaminal lumbar interbody fusion": ("tlif",),
        })
    )
    # Commonly hallucinated drugs checked against the source
    hallucination_medications: tuple[str, ...] = (
        "aspirin", "tylenol", "ibuprofen", "morphine", "fentanyl",
    )
    physician_pattern: str = r"dr\.\s+([a-z]+)"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccuracyVocabulary":
        """Defaults with the given fields replaced."""
        return cls(**_coerce_overrides(cls, data))

    def medication_aliases(self, name: str) -> tuple[str, ...]:
        return self.medication_abbreviations.get(name, ())

    def procedure_aliases(self, name: str) -> tuple[str, ...]:
        return self.procedure_abbreviations.get(name, ())

    def frequency_aliases(self, frequency: str) -> tuple[str, ...]:
        """The whole variation group containing frequency, or ()."""
        for key, variants in self.frequency_variations.items():
            if frequency == key or frequency in variants:
                return (key, *variants)
        return ()


# ---------------------------------------------------------------------------
# SPECIFICITY
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpecificityVocabulary:
    """Vague-term lists and whitelists for the specificity scorer."""

    vague_quantifiers: tuple[str, ...] = (
        "several", "multiple", "numerous", "many", "few",
        "some", "various", "moderate", "mild", "severe",
    )
    vague_temporal_terms: tuple[str, ...] = (
        "recently", "lately", "a while ago", "some time",
        "earlier", "later", "soon", "eventually",
    )
    vague_durations: tuple[str, ...] = ("brief", "prolonged", "extended", "short", "long")
    generic_lab_values: tuple[str, ...] = ("normal", "abnormal", "elevated", "low")
    tumor_location_terms: tuple[str, ...] = (
        "frontal", "parietal", "temporal", "occipital",
        "left", "right", "bilateral", "midline",
    )
    generic_imaging_findings: tuple[str, ...] = ("normal", "abnormal", "unchanged")
    generic_complications: tuple[str, ...] = ("infection", "bleeding", "swelling", "pain")
    generic_medication_classes: tuple[str, ...] = (
        "antibiotic", "painkiller", "steroid", "antiepileptic", "blood thinner",
    )
    vague_doses: tuple[str, ...] = ("low dose", "high dose", "standard dose")
    valid_routes: tuple[str, ...] = (
        "po", "iv", "im", "sc", "sq", "pr", "sl", "td",
        "oral", "intravenous", "intramuscular", "subcutaneous",
        "rectal", "sublingual", "transdermal",
    )
    specific_frequencies: tuple[str, ...] = (
        "daily", "bid", "tid", "qid", "q4h", "q6h", "q8h", "q12h",
        "once daily", "twice daily", "three times daily",
        "every 4 hours", "every 6 hours",
    )
    prn_frequencies: tuple[str, ...] = ("as needed", "prn")
    generic_procedures: tuple[str, ...] = ("surgery", "operation", "procedure", "intervention")
    procedure_anatomy_terms: tuple[str, ...] = (
        "frontal", "parietal", "temporal", "occipital",
        "cervical", "thoracic", "lumbar", "left", "right",
    )
    approach_triggers: tuple[str, ...] = ("craniotomy", "approach")
    surgical_approaches: tuple[str, ...] = (
        "pterional", "bifrontal", "retrosigmoid", "suboccipital",
        "transcallosal", "transsphenoidal", "orbitozygomatic",
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SpecificityVocabulary":
        """Defaults with the given fields replaced."""
        return cls(**_coerce_overrides(cls, data))

    def quantifier_rule(self) -> TermRule:
        return TermRule(
            issue_type="VAGUE_QUANTIFIER",
            terms=self.vague_quantifiers,
            severity=Severity.MINOR,
            impact=-0.01,
            suggestion='Replace "{term}" with specific number or range',
        )

    def temporal_rule(self) -> TermRule:
        return TermRule(
            issue_type="VAGUE_TEMPORAL",
            terms=self.vague_temporal_terms,
            severity=Severity.MINOR,
            impact=-0.01,
            suggestion='Replace "{term}" with specific date or timeframe',
        )

    def duration_rule(self) -> TermRule:
        return TermRule(
            issue_type="VAGUE_DURATION",
            terms=self.vague_durations,
            severity=Severity.MINOR,
            impact=-0.005,
            suggestion='Specify duration instead of "{term}"',
        )


DEFAULT_ACCURACY_VOCABULARY = AccuracyVocabulary()
DEFAULT_SPECIFICITY_VOCABULARY = SpecificityVocabulary()
