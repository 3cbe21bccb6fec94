"""
Extraction Contract Schemas

These Pydantic models describe the structured record the pattern-extraction
collaborator hands to the quality pipeline. They document the shape; the
scorers never require them.

WHY PERMISSIVE:
---------------
Extraction is regex-driven and partial by nature. Every field is optional,
unknown fields are kept, and values that are "wrong" in kind (a KPS of
"good", a dose of "low dose") are accepted, because flagging them is the
specificity scorer's job, not the schema's.

Field names are snake_case in Python and accept the camelCase keys the
extraction service emits (admissionDate, functionalScores, ...).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Demographics(_Record):
    name: str | None = None
    mrn: str | None = Field(default=None, description="Medical record number, matched verbatim")
    age: int | str | None = None


class AdmissionDates(_Record):
    admission_date: str | None = None
    discharge_date: str | None = None
    surgery_date: str | None = None
    ictus_date: str | None = Field(default=None, description="Symptom onset / bleed date")


class Medication(_Record):
    name: str | None = None
    dose: str | None = None
    dose_with_unit: str | None = None
    frequency: str | None = None
    route: str | None = None


class MedicationList(_Record):
    medications: list[Medication | str] = Field(default_factory=list)


class Procedure(_Record):
    name: str | None = None
    procedure: str | None = Field(default=None, description="Alternate key some extractors use")
    date: str | None = None


class ProcedureList(_Record):
    procedures: list[Procedure | str] = Field(default_factory=list)


class Complication(_Record):
    name: str | None = None
    severity: str | None = None
    date: str | None = None


class ComplicationList(_Record):
    complications: list[Complication | str] = Field(default_factory=list)


class FunctionalScores(_Record):
    gcs: int | str | None = Field(default=None, description="Glasgow Coma Scale, 3-15")
    kps: int | str | None = Field(default=None, description="Karnofsky Performance Status, 0-100")
    mrs: int | str | None = Field(default=None, description="Modified Rankin Scale, 0-6")


class ImagingFinding(_Record):
    type: str | None = Field(default=None, description="Modality, e.g. 'CT', 'MRI'")
    findings: str | None = None
    date: str | None = None


class Imaging(_Record):
    findings: list[ImagingFinding] = Field(default_factory=list)


class LabValue(_Record):
    name: str | None = None
    value: str | None = None


class TumorDetails(_Record):
    size: str | None = None
    location: str | None = None


class Pathology(_Record):
    type: str | None = None
    tumor_details: TumorDetails | None = None


class ExtractedRecord(_Record):
    """
    Top-level extraction output for one admission.

    Any section may be missing; the scorers treat absent data as
    "nothing to check" rather than as an error.
    """

    demographics: Demographics | None = None
    dates: AdmissionDates | None = None
    medications: MedicationList | None = None
    procedures: ProcedureList | None = None
    complications: ComplicationList | None = None
    functional_scores: FunctionalScores | None = None
    imaging: Imaging | None = None
    labs: list[LabValue] = Field(default_factory=list)
    pathology: Pathology | None = None
