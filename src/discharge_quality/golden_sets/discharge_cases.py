"""
Golden cases for discharge-summary quality scoring.

A golden case pairs raw clinical notes with an extraction and a narrative
whose quality we already know. Running the scorers over the cases is a
regression check: if a vocabulary or weight change moves a clean case
below its floor, or stops flagging a known error, something broke.

WHAT A CASE PINS DOWN:
----------------------
- Score bounds, not exact scores. Small weight tweaks should not break
  every case.
- Issue types that MUST be reported (the error we planted).
- Issue types that must NOT be reported (false positives we fixed once).
- Optionally, how many fragments survive near-duplicate removal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DischargeCase:
    """One reference admission with known quality characteristics."""

    id: str
    description: str

    # Input
    source_notes: str
    extracted: dict[str, Any]
    narrative: Any = None
    fragments: list[str] = field(default_factory=list)

    # Score bounds (inclusive); None means unchecked
    min_accuracy: float | None = None
    max_accuracy: float | None = None
    min_specificity: float | None = None
    max_specificity: float | None = None

    # Issue expectations
    expected_issue_types: list[str] = field(default_factory=list)
    forbidden_issue_types: list[str] = field(default_factory=list)

    # Fragments left after deduplicate() at the default threshold
    expected_unique_fragments: int | None = None

    tags: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# DISCHARGE GOLDEN CASES
# ---------------------------------------------------------------------------

DISCHARGE_CASES: list[DischargeCase] = [

    # Case 1: Faithful extraction of an aneurysmal SAH admission
    # Everything extracted is in the notes; the narrative adds nothing new.
    DischargeCase(
        id="sah-001",
        description="Clean SAH admission with coiling and EVD",
        source_notes=(
            "ADMISSION NOTE 03/15/2024\n"
            "Patient: Jane Doe  MRN: 4471923\n"
            "58 year old female with sudden onset worst headache of life. "
            "CT head: diffuse SAH. CTA: 7 mm AComm aneurysm.\n"
            "GCS 14 on arrival. Hunt-Hess 2.\n\n"
            "PROCEDURE NOTE 03/15/2024\n"
            "Endovascular coiling of AComm aneurysm performed. "
            "Right frontal external ventricular drain placed for hydrocephalus.\n\n"
            "PROGRESS NOTE 03/18/2024\n"
            "Nimodipine 60 mg q4h for vasospasm prophylaxis. Levetiracetam 500 mg bid.\n"
            "EVD weaned and removed 03/22/2024.\n\n"
            "DISCHARGE NOTE 03/29/2024\n"
            "Neurologically intact. KPS 90. Discharged home with Dr. Patel follow-up in 6 weeks."
        ),
        extracted={
            "demographics": {"name": "Jane Doe", "mrn": "4471923", "age": 58},
            "dates": {
                "admissionDate": "2024-03-15",
                "dischargeDate": "2024-03-29",
                "surgeryDate": "2024-03-15",
            },
            "medications": {
                "medications": [
                    {"name": "nimodipine", "dose": "60 mg", "frequency": "q4h", "route": "PO"},
                    {"name": "levetiracetam", "dose": "500 mg", "frequency": "bid", "route": "PO"},
                ]
            },
            "procedures": {
                "procedures": [
                    {"name": "endovascular coiling", "date": "2024-03-15"},
                    {"name": "right frontal external ventricular drain", "date": "2024-03-15"},
                ]
            },
            "functionalScores": {"gcs": 14, "kps": 90},
        },
        narrative={
            "hospital_course": (
                "Ms. Doe presented on 03/15/2024 with a Hunt-Hess 2 SAH from a 7 mm AComm "
                "aneurysm and underwent endovascular coiling on hospital day 1. GCS 14 on "
                "arrival. Nimodipine 60 mg q4h was given for 21 days."
            ),
            "discharge_plan": "Follow up with Dr. Patel in 6 weeks. KPS 90 at discharge.",
        },
        fragments=[
            "EVD placed",
            "evd placed",
            "EVD  Placed",
            "Endovascular coiling of AComm aneurysm",
            "endovascular coiling of acomm aneurysm.",
            "Nimodipine 60 mg q4h",
        ],
        min_accuracy=1.0,
        min_specificity=0.9,
        forbidden_issue_types=[
            "POSSIBLE_HALLUCINATION",
            "DATE_INCONSISTENCY",
            "MEDICATION_NOT_FOUND",
            "VAGUE_QUANTIFIER",
        ],
        expected_unique_fragments=3,
        tags=["sah", "clean"],
    ),

    # Case 2: Accurate extraction, vague narrative
    # Brand names and frequency synonyms must still verify against the notes.
    DischargeCase(
        id="tumor-001",
        description="Glioma resection with a vague narrative and generic extracted values",
        source_notes=(
            "H&P 05/02/2024: 64 yo male, MRN 88213, with 3 weeks of headaches and "
            "word-finding difficulty. MRI: 4.2 x 3.8 cm enhancing left temporal mass.\n"
            "OP NOTE 05/06/2024: Left pterional craniotomy for tumor resection. "
            "Gross total resection achieved.\n"
            "Dexamethasone 4 mg q6h, taper. Keppra 500 mg bid.\n"
            "D/C 05/10/2024. KPS 80."
        ),
        extracted={
            "demographics": {"mrn": "88213", "age": 64},
            "dates": {
                "admissionDate": "2024-05-02",
                "dischargeDate": "2024-05-10",
                "surgeryDate": "2024-05-06",
            },
            "medications": {
                "medications": [
                    {"name": "dexamethasone", "dose": "4 mg", "frequency": "q6h", "route": "PO"},
                    {"name": "levetiracetam", "dose": "500 mg", "frequency": "twice daily"},
                ]
            },
            "procedures": {
                "procedures": [
                    {"name": "left pterional craniotomy", "date": "2024-05-06"},
                    {"name": "surgery"},
                ]
            },
            "pathology": {
                "tumorDetails": {"size": "4.2 x 3.8 cm", "location": "left temporal lobe"},
            },
            "imaging": {
                "findings": [
                    {"type": "MRI", "findings": "4.2 x 3.8 cm enhancing mass"},
                    {"type": "CT", "findings": "unchanged"},
                ]
            },
            "complications": {"complications": ["infection"]},
            "functionalScores": {"kps": 80},
        },
        narrative={
            "hospital_course": (
                "Patient recently developed several weeks of headaches. Underwent left "
                "pterional craniotomy on 05/06/2024 with gross total resection of a "
                "4.2 x 3.8 cm mass. Brief post-operative course. Discharged on POD 4."
            ),
        },
        max_specificity=0.8,
        expected_issue_types=[
            "VAGUE_QUANTIFIER",
            "VAGUE_TEMPORAL",
            "VAGUE_DURATION",
            "GENERIC_PROCEDURE",
            "GENERIC_IMAGING",
            "GENERIC_COMPLICATION",
        ],
        forbidden_issue_types=[
            "MEDICATION_NOT_FOUND",
            "FREQUENCY_MISMATCH",
            "MISSING_APPROACH",
        ],
        tags=["tumor", "vague"],
    ),

    # Case 3: Planted errors
    # Wrong MRN, impossible dates, and a narrative naming drugs never given.
    DischargeCase(
        id="sdh-001",
        description="Subdural hematoma with MRN typo, reversed dates and hallucinated drugs",
        source_notes=(
            "ADMISSION 01/10/2024. MRN: 1234576. 71 year old male, fall with SDH.\n"
            "Right frontotemporal craniotomy for evacuation of subdural hematoma 01/11/2024.\n"
            "Levetiracetam 500 mg bid.\n"
            "DISCHARGE 01/05/2024 to rehab."
        ),
        extracted={
            "demographics": {"mrn": "1234567", "age": 71},
            "dates": {"admissionDate": "2024-01-10", "dischargeDate": "2024-01-05"},
            "medications": {
                "medications": [
                    {"name": "levetiracetam", "dose": "500 mg", "frequency": "bid"},
                ]
            },
            "procedures": {
                "procedures": [
                    {"name": "right frontotemporal craniotomy", "date": "2024-01-11"},
                ]
            },
        },
        narrative={
            "hospital_course": (
                "Mr. Smith was seen by Dr. Jones and received fentanyl and aspirin for pain."
            ),
        },
        max_accuracy=0.6,
        expected_issue_types=[
            "MRN_MISMATCH",
            "DATE_INCONSISTENCY",
            "POSSIBLE_HALLUCINATION",
        ],
        forbidden_issue_types=["MEDICATION_NOT_FOUND", "PROCEDURE_NOT_FOUND"],
        tags=["sdh", "errors"],
    ),

    # Case 4: Nothing to check
    # An empty extraction and no narrative is not an error; every check is vacuous.
    DischargeCase(
        id="sparse-001",
        description="Observation stay with nothing extracted",
        source_notes="Brief admission for observation.",
        extracted={},
        narrative=None,
        min_accuracy=1.0,
        min_specificity=1.0,
        tags=["edge"],
    ),
]


def get_all_golden_cases() -> list[DischargeCase]:
    """Return all golden cases for evaluation."""
    return DISCHARGE_CASES


def get_case_by_id(case_id: str) -> DischargeCase | None:
    """Retrieve a specific golden case by ID."""
    for case in DISCHARGE_CASES:
        if case.id == case_id:
            return case
    return None
