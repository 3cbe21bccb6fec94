"""
Deduplication result types.

Plain dataclasses, each with to_dict() producing the camelCase shape
downstream presentation code expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ClusterMember:
    """One fragment assigned to a cluster."""

    text: str
    normalized: str
    similarity: float


@dataclass
class SimilarityCluster:
    """Greedy cluster of near-duplicate fragments.

    members[0] is always the seed the cluster was started with; later
    fragments were compared against it.
    """

    representative: str
    members: list[ClusterMember] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def seed(self) -> ClusterMember:
        return self.members[0]

    @property
    def variants(self) -> list[str]:
        return [m.text for m in self.members]

    def longest_variant(self) -> str:
        """Longest member text; the earliest wins ties."""
        longest = self.members[0].text
        for member in self.members[1:]:
            if len(member.text) > len(longest):
                longest = member.text
        return longest


@dataclass
class ConfidenceGroup:
    """deduplicate_with_confidence output row."""

    text: str
    confidence: float
    occurrences: int
    variants: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "occurrences": self.occurrences,
            "variants": list(self.variants),
        }


@dataclass
class MergedSegment:
    """merge_segments output row."""

    text: str
    merged_count: int
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "mergedCount": self.merged_count,
            "confidence": self.confidence,
        }


@dataclass
class DuplicateCount:
    text: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "count": self.count}


@dataclass
class ExactDuplicates:
    """find_exact_duplicates output.

    unique holds the first-seen (trimmed) original of each normalized
    form; duplicates holds every normalized form seen more than once.
    """

    unique: list[str] = field(default_factory=list)
    duplicates: list[DuplicateCount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unique": list(self.unique),
            "duplicates": [d.to_dict() for d in self.duplicates],
        }


@dataclass
class BestMatch:
    match: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"match": self.match, "score": self.score}
