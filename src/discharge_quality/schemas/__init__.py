"""
Schemas module - Pydantic contract for extraction output.
"""

from discharge_quality.schemas.clinical_record import (
    AdmissionDates,
    Complication,
    ComplicationList,
    Demographics,
    ExtractedRecord,
    FunctionalScores,
    Imaging,
    ImagingFinding,
    LabValue,
    Medication,
    MedicationList,
    Pathology,
    Procedure,
    ProcedureList,
    TumorDetails,
)

__all__ = [
    "AdmissionDates",
    "Complication",
    "ComplicationList",
    "Demographics",
    "ExtractedRecord",
    "FunctionalScores",
    "Imaging",
    "ImagingFinding",
    "LabValue",
    "Medication",
    "MedicationList",
    "Pathology",
    "Procedure",
    "ProcedureList",
    "TumorDetails",
]
