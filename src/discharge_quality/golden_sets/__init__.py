"""
Golden Sets Package

Reference admissions with known quality characteristics, used by the
CLI and the regression tests.

EXTENSIBILITY:
--------------
To add cases for another service line (e.g., spine):

1. Create `spine_cases.py` following the `discharge_cases.py` pattern
2. Extend `get_all_golden_cases()` below

Example:
    from discharge_quality.golden_sets import DischargeCase, get_case_by_id
"""

from discharge_quality.golden_sets.discharge_cases import (
    DISCHARGE_CASES,
    DischargeCase,
)


def get_all_golden_cases() -> list[DischargeCase]:
    """
    Get all golden cases.

    Returns:
        Combined list of golden cases from all case modules
    """
    cases: list[DischargeCase] = []
    cases.extend(DISCHARGE_CASES)
    return cases


def get_case_by_id(case_id: str) -> DischargeCase | None:
    """
    Get a specific golden case by ID.

    Args:
        case_id: The case ID (e.g., "sah-001")

    Returns:
        The matching DischargeCase or None if not found
    """
    for case in get_all_golden_cases():
        if case.id == case_id:
            return case
    return None


__all__ = [
    "DischargeCase",
    "DISCHARGE_CASES",
    "get_all_golden_cases",
    "get_case_by_id",
]
