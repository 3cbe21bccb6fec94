"""
Dedup module - collapse repeated fragments, records and entities.

- service.py: DeduplicationService (deduplicate, merge_segments, ...)
- entities.py: synonym-aware merging of procedures/medications/complications
- models.py: result dataclasses
"""

from discharge_quality.dedup.models import (
    BestMatch,
    ClusterMember,
    ConfidenceGroup,
    DuplicateCount,
    ExactDuplicates,
    MergedSegment,
    SimilarityCluster,
)
from discharge_quality.dedup.service import DeduplicationService
from discharge_quality.dedup.entities import (
    COMPLICATION_SYNONYMS,
    MEDICATION_SYNONYMS,
    PROCEDURE_SYNONYMS,
    DeduplicationStats,
    are_similar_entities,
    cluster_entities,
    deduplicate_entities,
    find_canonical_name,
    get_deduplication_stats,
    is_reference,
    merge_entities,
)

__all__ = [
    # Service
    "DeduplicationService",
    # Results
    "BestMatch",
    "ClusterMember",
    "ConfidenceGroup",
    "DuplicateCount",
    "ExactDuplicates",
    "MergedSegment",
    "SimilarityCluster",
    # Entities
    "COMPLICATION_SYNONYMS",
    "MEDICATION_SYNONYMS",
    "PROCEDURE_SYNONYMS",
    "DeduplicationStats",
    "are_similar_entities",
    "cluster_entities",
    "deduplicate_entities",
    "find_canonical_name",
    "get_deduplication_stats",
    "is_reference",
    "merge_entities",
]
