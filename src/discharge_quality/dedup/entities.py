"""
Entity deduplication - synonym-aware merging of extracted entities.

"coiling" / "endovascular coiling" / "coil embolization" describe one
procedure; "aspirin" / "ASA" one medication. This module collapses such
entities while keeping every date they were mentioned on.

Entities are plain mappings from the extraction collaborator:
    {"name": str, "date": str | list[str] | None, "details": str | None,
     "confidence": float | None, "temporal_context": {"is_reference": bool}}

STRATEGY:
---------
1. Cluster by name similarity (greedy, first-seen seed)
2. Inside a cluster, group by date
3. Merge entities that share a cluster AND a date
4. Keep references ("s/p coiling") untouched so they still point at the
   original event
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from discharge_quality.observability.attributes import dedup_attributes
from discharge_quality.observability.tracer import get_tracer
from discharge_quality.similarity.engine import SimilarityEngine, get_similarity_engine

logger = logging.getLogger(__name__)

DEFAULT_ENTITY_THRESHOLD = 0.75


# ---------------------------------------------------------------------------
# SYNONYM DICTIONARIES
# ---------------------------------------------------------------------------

PROCEDURE_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "aneurysm coiling": (
        "coiling", "coil embolization", "endovascular coiling", "aneurysm coiling",
        "coil", "coils", "embolization of aneurysm",
    ),
    "aneurysm clipping": (
        "clipping", "aneurysm clipping", "microsurgical clipping", "surgical clipping",
        "clip", "clips", "clip ligation",
    ),
    "craniotomy": (
        "craniotomy", "open craniotomy", "pterional craniotomy", "frontal craniotomy",
        "temporal craniotomy", "craniotomy for", "crani",
    ),
    "craniectomy": (
        "craniectomy", "decompressive craniectomy", "hemicraniectomy", "decompression",
        "decompressive surgery",
    ),
    "EVD placement": (
        "evd", "evd placement", "external ventricular drain", "ventriculostomy",
        "ventricular drain", "evd insertion",
    ),
    "lumbar drain": ("lumbar drain", "ld", "ld placement", "lumbar drainage", "spinal drain"),
    "VP shunt": (
        "vp shunt", "ventriculoperitoneal shunt", "shunt", "shunt placement", "shunt insertion",
    ),
    "tumor resection": (
        "resection", "tumor resection", "gross total resection", "gtr",
        "subtotal resection", "str", "debulking",
    ),
    "biopsy": ("biopsy", "brain biopsy", "stereotactic biopsy", "needle biopsy"),
    "cranioplasty": (
        "cranioplasty", "cranial reconstruction", "bone flap replacement", "skull repair",
    ),
    "angiography": (
        "angiography", "angiogram", "dsa", "cerebral angiography",
        "digital subtraction angiography",
    ),
    "embolization": ("embolization", "embolize", "embolized", "endovascular embolization"),
})

MEDICATION_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "aspirin": ("aspirin", "asa", "acetylsalicylic acid", "aspirin 81mg", "aspirin 325mg"),
    "clopidogrel": ("clopidogrel", "plavix", "clopidogrel 75mg"),
    "warfarin": ("warfarin", "coumadin", "warfarin sodium"),
    "apixaban": ("apixaban", "eliquis", "apixaban 5mg", "apixaban 2.5mg"),
    "rivaroxaban": ("rivaroxaban", "xarelto", "rivaroxaban 20mg"),
    "levetiracetam": (
        "levetiracetam", "keppra", "lev", "levetiracetam 500mg", "levetiracetam 1000mg",
    ),
    "phenytoin": ("phenytoin", "dilantin", "pht", "fosphenytoin"),
    "dexamethasone": ("dexamethasone", "decadron", "dex", "dexamethasone 4mg"),
    "mannitol": ("mannitol", "mannitol 20%", "osmotic therapy"),
    "nimodipine": ("nimodipine", "nimotop", "nimodipine 60mg"),
    "labetalol": ("labetalol", "trandate", "labetalol iv"),
    "nicardipine": ("nicardipine", "cardene", "nicardipine drip"),
    "metoprolol": ("metoprolol", "lopressor", "metoprolol tartrate", "metoprolol succinate"),
    "atorvastatin": ("atorvastatin", "lipitor", "atorvastatin 80mg"),
    "pantoprazole": ("pantoprazole", "protonix", "ppi", "pantoprazole 40mg"),
})

COMPLICATION_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "vasospasm": (
        "vasospasm", "cerebral vasospasm", "spasm", "arterial narrowing",
        "delayed cerebral ischemia", "dci",
    ),
    "hydrocephalus": (
        "hydrocephalus", "ventriculomegaly", "enlarged ventricles",
        "obstructive hydrocephalus", "communicating hydrocephalus",
    ),
    "seizure": ("seizure", "seizures", "convulsion", "epileptic activity", "ictal activity"),
    "infection": ("infection", "meningitis", "ventriculitis", "wound infection", "cns infection"),
    "hemorrhage": ("hemorrhage", "bleeding", "rebleed", "rebleeding", "hematoma expansion"),
    "stroke": (
        "stroke", "cva", "cerebrovascular accident", "infarct", "infarction", "ischemic stroke",
    ),
    "edema": ("edema", "cerebral edema", "brain swelling", "mass effect"),
})

SYNONYMS_BY_KIND: Mapping[str, Mapping[str, tuple[str, ...]]] = MappingProxyType({
    "procedure": PROCEDURE_SYNONYMS,
    "medication": MEDICATION_SYNONYMS,
    "complication": COMPLICATION_SYNONYMS,
})


# ---------------------------------------------------------------------------
# STATS
# ---------------------------------------------------------------------------


@dataclass
class DeduplicationStats:
    """Before/after summary of an entity dedup run."""

    original: int
    deduplicated: int
    reduction: int
    reduction_percent: float
    merged: int
    merged_count: int
    references: int
    new_events: int
    avg_merge_count: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": self.original,
            "deduplicated": self.deduplicated,
            "reduction": self.reduction,
            "reductionPercent": self.reduction_percent,
            "merged": self.merged,
            "mergedCount": self.merged_count,
            "references": self.references,
            "newEvents": self.new_events,
            "avgMergeCount": self.avg_merge_count,
        }


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", text) is not None


def _temporal_context(entity: Mapping[str, Any]) -> Mapping[str, Any] | None:
    context = entity.get("temporal_context", entity.get("temporalContext"))
    return context if isinstance(context, Mapping) else None


def is_reference(entity: Mapping[str, Any]) -> bool:
    """True when the entity only refers back to an earlier event."""
    context = _temporal_context(entity)
    if context is None:
        return False
    return bool(context.get("is_reference", context.get("isReference", False)))


def _merge_count(entity: Mapping[str, Any]) -> int:
    return entity.get("merge_count") or entity.get("mergeCount") or 1


def _dates(entity: Mapping[str, Any]) -> list[Any]:
    date = entity.get("date")
    if not date:
        return []
    if isinstance(date, (list, tuple)):
        return [d for d in date if d]
    return [date]


def _date_key(entity: Mapping[str, Any]) -> Any:
    date = entity.get("date")
    if not date:
        return "no_date"
    if isinstance(date, (list, tuple)):
        return tuple(date)
    return date


# ---------------------------------------------------------------------------
# CANONICAL NAMES AND SIMILARITY
# ---------------------------------------------------------------------------


def find_canonical_name(name: str, kind: str = "procedure") -> str:
    """
    Map a name onto its canonical synonym group.

    A synonym matches when either phrase contains the other on word
    boundaries ("decompressive craniectomy" contains "craniectomy",
    "coil" is contained in "coil embolization"). Returns name unchanged
    for unknown kinds or when nothing matches.
    """
    synonyms = SYNONYMS_BY_KIND.get(kind)
    lowered = name.lower().strip() if isinstance(name, str) else ""
    if synonyms is None or not lowered:
        return name

    for canonical, group in synonyms.items():
        for synonym in group:
            if _contains_phrase(lowered, synonym) or _contains_phrase(synonym, lowered):
                return canonical

    return name


def are_similar_entities(
    name_a: str,
    name_b: str,
    kind: str = "procedure",
    threshold: float = DEFAULT_ENTITY_THRESHOLD,
    engine: SimilarityEngine | None = None,
) -> bool:
    """Exact match, then shared canonical synonym, then combined similarity."""
    if not name_a or not name_b:
        return False

    a = name_a.lower().strip()
    b = name_b.lower().strip()
    if a == b:
        return True

    canonical_a = find_canonical_name(name_a, kind)
    canonical_b = find_canonical_name(name_b, kind)
    # At least one side must actually have mapped onto a synonym group
    if canonical_a == canonical_b and (canonical_a != name_a or canonical_b != name_b):
        return True

    engine = engine or get_similarity_engine()
    return engine.combined_similarity(a, b) >= threshold


# ---------------------------------------------------------------------------
# CLUSTER AND MERGE
# ---------------------------------------------------------------------------


def cluster_entities(
    entities: list[Mapping[str, Any]],
    kind: str = "procedure",
    threshold: float = DEFAULT_ENTITY_THRESHOLD,
    engine: SimilarityEngine | None = None,
) -> list[list[Mapping[str, Any]]]:
    """Greedy clusters; each later entity is compared with the cluster seed."""
    engine = engine or get_similarity_engine()
    clusters: list[list[Mapping[str, Any]]] = []

    for entity in entities or ():
        if not isinstance(entity, Mapping):
            continue
        name = entity.get("name") or ""
        for cluster in clusters:
            seed_name = cluster[0].get("name") or ""
            if are_similar_entities(seed_name, name, kind, threshold, engine):
                cluster.append(entity)
                break
        else:
            clusters.append([entity])

    return clusters


def merge_entities(
    first: Mapping[str, Any] | None,
    second: Mapping[str, Any] | None,
    kind: str = "procedure",
) -> Mapping[str, Any] | None:
    """
    Merge two entities describing the same event.

    Name becomes the canonical synonym (first entity's name if neither has
    one); dates are unioned in first-seen order; details are joined with
    "; "; confidence is the max of the two.
    """
    if not first:
        return second
    if not second:
        return first

    name_a = first.get("name") or ""
    name_b = second.get("name") or ""
    canonical_a = find_canonical_name(name_a, kind)
    canonical_b = find_canonical_name(name_b, kind)
    if canonical_a != name_a:
        name = canonical_a
    elif canonical_b != name_b:
        name = canonical_b
    else:
        name = name_a

    dates: list[Any] = []
    for date in _dates(first) + _dates(second):
        if date not in dates:
            dates.append(date)

    details: list[str] = []
    for detail in (first.get("details"), second.get("details")):
        if detail and detail not in details:
            details.append(detail)

    contexts = list(first.get("temporal_contexts") or [])
    if not contexts and _temporal_context(first):
        contexts.append(_temporal_context(first))
    if _temporal_context(second):
        contexts.append(_temporal_context(second))

    original_names = list(first.get("original_names") or [name_a])
    original_names.append(name_b)

    merged: dict[str, Any] = {
        "name": name,
        "date": dates[0] if len(dates) == 1 else dates,
        "dates": dates,
        "details": "; ".join(details) or None,
        "confidence": max(first.get("confidence") or 0, second.get("confidence") or 0),
        "original_names": original_names,
        "merged": True,
        "merge_count": _merge_count(first) + _merge_count(second),
    }
    if contexts:
        merged["temporal_contexts"] = contexts
    return merged


def deduplicate_entities(
    entities: list[Mapping[str, Any]] | None,
    kind: str = "procedure",
    threshold: float = DEFAULT_ENTITY_THRESHOLD,
    merge_same_date: bool = True,
    preserve_references: bool = True,
    engine: SimilarityEngine | None = None,
) -> list[Mapping[str, Any]]:
    """
    Collapse entities that share a synonym cluster and a date.

    The same procedure on two different dates stays as two entities.
    References are kept as-is when preserve_references is set.
    """
    if not entities:
        return []

    tracer = get_tracer()
    with tracer.start_span(
        "dq.dedup.entities",
        attributes=dedup_attributes(f"entities:{kind}", len(entities), threshold=threshold),
    ) as span:
        clusters = cluster_entities(entities, kind, threshold, engine)
        logger.debug(f"Created {len(clusters)} {kind} clusters from {len(entities)} entities")

        deduplicated: list[Mapping[str, Any]] = []
        for cluster in clusters:
            if len(cluster) == 1:
                deduplicated.append(cluster[0])
                continue

            date_groups: dict[Any, list[Mapping[str, Any]]] = {}
            for entity in cluster:
                if preserve_references and is_reference(entity):
                    deduplicated.append(entity)
                    continue
                date_groups.setdefault(_date_key(entity), []).append(entity)

            for date_key, group in date_groups.items():
                if not merge_same_date or len(group) == 1:
                    deduplicated.extend(group)
                    continue
                merged = group[0]
                for entity in group[1:]:
                    merged = merge_entities(merged, entity, kind)
                deduplicated.append(merged)
                logger.debug(f"Merged {len(group)} {kind}s on {date_key} -> {merged['name']!r}")

        span.set_attributes(dedup_attributes(f"entities:{kind}", len(entities), len(deduplicated)))

    logger.info(f"Entity dedup ({kind}): {len(entities)} -> {len(deduplicated)}")
    return deduplicated


def get_deduplication_stats(
    original: list[Mapping[str, Any]] | None,
    deduplicated: list[Mapping[str, Any]] | None,
) -> DeduplicationStats:
    """Summarize an entity dedup run. Non-list inputs count as empty."""
    original = original if isinstance(original, list) else []
    deduplicated = deduplicated if isinstance(deduplicated, list) else []
    entities = [e for e in deduplicated if isinstance(e, Mapping)]

    merged = [e for e in entities if e.get("merged")]
    references = [e for e in entities if is_reference(e)]
    merged_count = sum(_merge_count(e) for e in merged)

    reduction = len(original) - len(deduplicated)
    return DeduplicationStats(
        original=len(original),
        deduplicated=len(deduplicated),
        reduction=reduction,
        reduction_percent=round(reduction / len(original) * 100, 1) if original else 0.0,
        merged=len(merged),
        merged_count=merged_count,
        references=len(references),
        new_events=len(entities) - len(references),
        avg_merge_count=round(merged_count / len(merged), 1) if merged else 0.0,
    )
