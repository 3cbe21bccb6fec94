"""
Deduplication Service - collapses repeated fragments from clinical notes.

Long hospital stays produce the same facts over and over ("EVD placed",
"evd placed on POD 0", "EVD Placed."). Each operation here takes an
ordered sequence of fragments and returns a cleaner one.

CLUSTERING:
-----------
The similarity-based operations make one left-to-right pass. Each fragment
is normalized and compared, in insertion order, with the seed of every
cluster formed so far; it joins the FIRST cluster scoring >= threshold, or
starts a new one. This is greedy and order-dependent: reordering the input
can change cluster membership, and downstream consumers rely on
first-seen-wins.

REPRESENTATIVES:
----------------
    deduplicate                  first-seen variant
    deduplicate_with_confidence  first-seen variant, confidence 0.5 + 0.1/occurrence
    merge_segments               LONGEST variant, confidence 0.6 + 0.1/occurrence

Empty strings, whitespace-only strings and non-strings are skipped by
every operation.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from discharge_quality.core.config import SIMILARITY_THRESHOLDS, QualityConfig, get_config
from discharge_quality.dedup.models import (
    BestMatch,
    ClusterMember,
    ConfidenceGroup,
    DuplicateCount,
    ExactDuplicates,
    MergedSegment,
    SimilarityCluster,
)
from discharge_quality.observability.attributes import dedup_attributes, similarity_attributes
from discharge_quality.observability.tracer import get_tracer
from discharge_quality.similarity.engine import SimilarityEngine, get_similarity_engine
from discharge_quality.similarity.metrics import (
    calculate_fuzzy_match,
    jaccard_similarity,
    normalize_text,
)

logger = logging.getLogger(__name__)


def _valid_fragments(items: Iterable[Any] | None) -> Iterator[tuple[str, str]]:
    """Yield (trimmed, normalized) for every usable string in items."""
    for item in items or ():
        if not isinstance(item, str):
            continue
        trimmed = item.strip()
        if not trimmed:
            continue
        yield trimmed, normalize_text(trimmed)


def _confidence(base: float, count: int) -> float:
    return min(base + count * 0.1, 1.0)


def _serialize_record(record: Any) -> str:
    # Compact separators so tokens match the record's JSON text form
    return json.dumps(record, separators=(",", ":"), ensure_ascii=False, default=str)


def _hashable_key(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        return _serialize_record(value)
    return value


def _log_reduction(operation: str, before: int, after: int) -> None:
    reduction = before - after
    percent = (reduction / before * 100) if before else 0.0
    logger.info(f"{operation}: {before} -> {after} ({percent:.1f}% reduction)")


class DeduplicationService:
    """
    Stateless dedup operations over text fragments and records.

    Holds only its collaborators (similarity engine and config); every call
    works on local buffers, so one instance can serve concurrent documents.
    """

    def __init__(
        self,
        engine: SimilarityEngine | None = None,
        config: QualityConfig | None = None,
    ):
        self.config = config or get_config()
        self.engine = engine or get_similarity_engine(config)

    # -----------------------------------------------------------------------
    # CLUSTERING
    # -----------------------------------------------------------------------

    def cluster(self, items: Iterable[Any], threshold: float) -> list[SimilarityCluster]:
        """Greedy first-match clustering against each cluster's seed."""
        clusters: list[SimilarityCluster] = []

        for trimmed, normalized in _valid_fragments(items):
            for cluster in clusters:
                similarity = self.engine.combined_similarity(normalized, cluster.seed.normalized)
                if similarity >= threshold:
                    cluster.members.append(ClusterMember(trimmed, normalized, similarity))
                    logger.debug(
                        f"Clustered {trimmed!r} with {cluster.representative!r} ({similarity:.3f})"
                    )
                    break
            else:
                clusters.append(
                    SimilarityCluster(
                        representative=trimmed,
                        members=[ClusterMember(trimmed, normalized, 1.0)],
                    )
                )

        return clusters

    def _traced_cluster(
        self,
        operation: str,
        items: list[Any],
        threshold: float,
    ) -> list[SimilarityCluster]:
        tracer = get_tracer()
        with tracer.start_span(
            f"dq.dedup.{operation}",
            attributes=dedup_attributes(operation, len(items), threshold=threshold),
        ) as span:
            span.set_attributes(
                similarity_attributes(
                    getattr(self.engine.semantic, "name", None), self.engine.degraded
                )
            )
            clusters = self.cluster(items, threshold)
            span.set_attributes(dedup_attributes(operation, len(items), len(clusters)))
        _log_reduction(operation, len(items), len(clusters))
        return clusters

    # -----------------------------------------------------------------------
    # SIMILARITY-BASED OPERATIONS
    # -----------------------------------------------------------------------

    def deduplicate(self, items: list[Any] | None, threshold: float | None = None) -> list[str]:
        """
        Drop near-duplicates, keeping the first-seen variant of each group.

        Args:
            items: Ordered fragments
            threshold: Inclusive merge threshold (default: config dedup_threshold)

        Returns:
            Trimmed survivors in input order
        """
        if not items:
            return []
        threshold = self.config.dedup_threshold if threshold is None else threshold
        clusters = self._traced_cluster("deduplicate", list(items), threshold)
        return [c.representative for c in clusters]

    def deduplicate_with_confidence(
        self,
        items: list[Any] | None,
        threshold: float | None = None,
    ) -> list[ConfidenceGroup]:
        """Group near-duplicates; repeated facts earn higher confidence."""
        if not items:
            return []
        threshold = self.config.dedup_threshold if threshold is None else threshold
        clusters = self._traced_cluster("deduplicate_with_confidence", list(items), threshold)
        return [
            ConfidenceGroup(
                text=c.representative,
                confidence=_confidence(0.5, c.count),
                occurrences=c.count,
                variants=c.variants,
            )
            for c in clusters
        ]

    def merge_segments(
        self,
        segments: list[Any] | None,
        threshold: float | None = None,
    ) -> list[MergedSegment]:
        """Merge similar segments, reporting the most detailed (longest) wording."""
        if not segments:
            return []
        threshold = self.config.merge_threshold if threshold is None else threshold
        clusters = self._traced_cluster("merge_segments", list(segments), threshold)
        return [
            MergedSegment(
                text=c.longest_variant(),
                merged_count=c.count,
                confidence=_confidence(0.6, c.count),
            )
            for c in clusters
        ]

    def find_best_match(
        self,
        query: str,
        candidates: list[Any] | None,
        threshold: float = SIMILARITY_THRESHOLDS["MEDIUM"],
    ) -> BestMatch | None:
        """Highest-scoring candidate at or above threshold, or None.

        Ties keep the earlier candidate.
        """
        if not isinstance(query, str) or not query.strip():
            return None

        normalized_query = normalize_text(query)
        best: BestMatch | None = None

        for candidate in candidates or ():
            if not isinstance(candidate, str) or not candidate.strip():
                continue
            score = self.engine.combined_similarity(normalized_query, normalize_text(candidate))
            if score >= threshold and (best is None or score > best.score):
                best = BestMatch(match=candidate, score=score)

        return best

    # -----------------------------------------------------------------------
    # EXACT OPERATIONS
    # -----------------------------------------------------------------------

    def find_exact_duplicates(self, items: list[Any] | None) -> ExactDuplicates:
        """Single pass, normalized-string equality only."""
        counts: dict[str, int] = {}
        result = ExactDuplicates()

        for trimmed, normalized in _valid_fragments(items):
            if normalized in counts:
                counts[normalized] += 1
            else:
                counts[normalized] = 1
                result.unique.append(trimmed)

        result.duplicates = [
            DuplicateCount(text=text, count=count)
            for text, count in counts.items()
            if count > 1
        ]
        return result

    def deduplicate_list(
        self,
        items: list[Any] | None,
        threshold: float | None = None,
        preserve_order: bool = True,
        case_sensitive: bool = False,
    ) -> list[str]:
        """
        Exact set dedup for short lists (medications, procedures).

        threshold is accepted for call-site compatibility with the
        similarity operations and does not affect the result.
        """
        seen: set[str] = set()
        unique: list[str] = []

        for item in items or ():
            if not isinstance(item, str) or not item.strip():
                continue
            trimmed = item.strip()
            key = trimmed if case_sensitive else trimmed.lower()
            if key not in seen:
                seen.add(key)
                unique.append(trimmed)

        if not preserve_order:
            unique.sort()

        return unique

    def deduplicate_structured(self, records: Any, key_field: str = "date") -> Any:
        """
        Keep the first record for each distinct key_field value.

        Records without a (truthy) key fall back to comparing their JSON text
        with every kept record using word Jaccard; >= structured_threshold
        counts as a duplicate. Non-list input is returned unchanged.
        """
        if not isinstance(records, list):
            return records

        threshold = self.config.structured_threshold
        unique: list[Any] = []
        serialized: list[str] = []
        seen_keys: set[Any] = set()

        for record in records:
            key = record.get(key_field) if isinstance(record, Mapping) else None

            if key:
                token = _hashable_key(key)
                if token in seen_keys:
                    continue
                seen_keys.add(token)
                unique.append(record)
                serialized.append(_serialize_record(record).lower())
                continue

            text = _serialize_record(record).lower()
            if any(jaccard_similarity(text, existing) >= threshold for existing in serialized):
                logger.debug(f"Dropped keyless record as duplicate (key_field={key_field})")
                continue
            unique.append(record)
            serialized.append(text)

        _log_reduction("deduplicate_structured", len(records), len(unique))
        return unique

    # -----------------------------------------------------------------------
    # UTILITIES
    # -----------------------------------------------------------------------

    @staticmethod
    def calculate_fuzzy_match(a: str, b: str) -> float:
        """1 - levenshtein(a, b) / max(len(a), len(b))."""
        return calculate_fuzzy_match(a, b)
