"""
Unit Tests for Entity Deduplication

Synonym-aware merging of procedures, medications and complications:
the same event mentioned many times collapses to one entity, the same
procedure on two dates stays as two, and references are left alone.
"""

import pytest

from discharge_quality.dedup import (
    are_similar_entities,
    cluster_entities,
    deduplicate_entities,
    find_canonical_name,
    get_deduplication_stats,
    is_reference,
    merge_entities,
)
from discharge_quality.similarity import ConceptSimilarity, SimilarityEngine


@pytest.fixture
def engine():
    return SimilarityEngine(semantic=ConceptSimilarity())


# ---------------------------------------------------------------------------
# CANONICAL NAMES
# ---------------------------------------------------------------------------


class TestFindCanonicalName:

    @pytest.mark.parametrize(
        "name, kind, canonical",
        [
            ("Endovascular coiling", "procedure", "aneurysm coiling"),
            ("coil", "procedure", "aneurysm coiling"),
            ("decompressive craniectomy", "procedure", "craniectomy"),
            ("external ventricular drain", "procedure", "EVD placement"),
            ("ASA", "medication", "aspirin"),
            ("Keppra", "medication", "levetiracetam"),
            ("cerebral vasospasm", "complication", "vasospasm"),
        ],
    )
    def test_maps_synonyms(self, name, kind, canonical):
        assert find_canonical_name(name, kind) == canonical

    def test_craniectomy_is_not_craniotomy(self):
        assert find_canonical_name("craniectomy") == "craniectomy"
        assert find_canonical_name("craniotomy") == "craniotomy"

    def test_unknown_name_unchanged(self):
        assert find_canonical_name("lumbar puncture") == "lumbar puncture"

    def test_unknown_kind_unchanged(self):
        assert find_canonical_name("MRI brain", "imaging") == "MRI brain"


class TestAreSimilarEntities:

    def test_exact_match_ignores_case(self, engine):
        assert are_similar_entities("EVD", "evd", engine=engine) is True

    def test_shared_canonical(self, engine):
        assert are_similar_entities("coiling", "coil embolization", engine=engine) is True

    def test_different_canonicals_fall_back_to_similarity(self, engine):
        assert are_similar_entities("craniotomy", "craniectomy", engine=engine) is False

    def test_empty_names(self, engine):
        assert are_similar_entities("", "evd", engine=engine) is False

    def test_medication_kind(self, engine):
        assert are_similar_entities("Plavix", "clopidogrel", "medication", engine=engine) is True


# ---------------------------------------------------------------------------
# CLUSTER AND MERGE
# ---------------------------------------------------------------------------


class TestClusterEntities:

    def test_groups_synonyms(self, engine):
        clusters = cluster_entities(
            [{"name": "coiling"}, {"name": "EVD"}, {"name": "endovascular coiling"}],
            engine=engine,
        )
        assert [len(c) for c in clusters] == [2, 1]
        assert clusters[0][1]["name"] == "endovascular coiling"

    def test_skips_non_mappings(self, engine):
        assert cluster_entities([None, "coiling", {"name": "EVD"}], engine=engine) == [[{"name": "EVD"}]]


class TestMergeEntities:

    def test_merge(self):
        merged = merge_entities(
            {"name": "coiling", "date": "2024-01-01", "details": "AComm", "confidence": 0.7},
            {"name": "coil embolization", "date": "2024-01-01", "details": "Stent assisted", "confidence": 0.9},
        )

        assert merged["name"] == "aneurysm coiling"
        assert merged["date"] == "2024-01-01"
        assert merged["dates"] == ["2024-01-01"]
        assert merged["details"] == "AComm; Stent assisted"
        assert merged["confidence"] == 0.9
        assert merged["original_names"] == ["coiling", "coil embolization"]
        assert merged["merged"] is True
        assert merged["merge_count"] == 2

    def test_union_of_dates_in_first_seen_order(self):
        merged = merge_entities(
            {"name": "EVD", "date": ["2024-01-02", "2024-01-01"]},
            {"name": "EVD", "date": "2024-01-03"},
        )
        assert merged["date"] == ["2024-01-02", "2024-01-01", "2024-01-03"]

    def test_chained_merges_accumulate(self):
        first = merge_entities({"name": "coiling"}, {"name": "coils"})
        merged = merge_entities(first, {"name": "coil embolization"})
        assert merged["merge_count"] == 3
        assert merged["original_names"] == ["coiling", "coils", "coil embolization"]

    def test_missing_side_returns_other(self):
        entity = {"name": "EVD"}
        assert merge_entities(None, entity) is entity
        assert merge_entities(entity, None) is entity


class TestDeduplicateEntities:

    def test_same_date_merges(self, engine):
        result = deduplicate_entities(
            [
                {"name": "coiling", "date": "2024-01-01"},
                {"name": "endovascular coiling", "date": "2024-01-01"},
            ],
            engine=engine,
        )
        assert len(result) == 1
        assert result[0]["name"] == "aneurysm coiling"

    def test_different_dates_stay_separate(self, engine):
        result = deduplicate_entities(
            [
                {"name": "EVD placement", "date": "2024-01-01"},
                {"name": "EVD placement", "date": "2024-01-09"},
            ],
            engine=engine,
        )
        assert len(result) == 2

    def test_references_preserved(self, engine):
        reference = {
            "name": "s/p coiling",
            "date": "2024-01-01",
            "temporal_context": {"is_reference": True},
        }
        entities = [
            {"name": "coiling", "date": "2024-01-01"},
            reference,
            {"name": "endovascular coiling", "date": "2024-01-01"},
        ]

        result = deduplicate_entities(entities, engine=engine)

        assert len(result) == 2
        assert result[0] is reference
        assert result[1]["merge_count"] == 2

    def test_merge_same_date_disabled(self, engine):
        entities = [
            {"name": "coiling", "date": "2024-01-01"},
            {"name": "endovascular coiling", "date": "2024-01-01"},
        ]
        assert deduplicate_entities(entities, merge_same_date=False, engine=engine) == entities

    def test_empty(self, engine):
        assert deduplicate_entities([], engine=engine) == []
        assert deduplicate_entities(None, engine=engine) == []


class TestStats:

    def test_is_reference_accepts_camel_case(self):
        assert is_reference({"temporalContext": {"isReference": True}}) is True
        assert is_reference({"name": "EVD"}) is False

    def test_stats(self, engine):
        original = [
            {"name": "coiling", "date": "2024-01-01"},
            {"name": "s/p coiling", "date": "2024-01-01", "temporal_context": {"is_reference": True}},
            {"name": "endovascular coiling", "date": "2024-01-01"},
        ]
        deduplicated = deduplicate_entities(original, engine=engine)

        stats = get_deduplication_stats(original, deduplicated)

        assert stats.original == 3
        assert stats.deduplicated == 2
        assert stats.reduction == 1
        assert stats.reduction_percent == 33.3
        assert stats.merged == 1
        assert stats.merged_count == 2
        assert stats.references == 1
        assert stats.new_events == 1
        assert stats.avg_merge_count == 2.0
        assert stats.to_dict()["reductionPercent"] == 33.3

    def test_stats_non_list_inputs(self):
        stats = get_deduplication_stats(None, "x")
        assert stats.original == 0
        assert stats.reduction_percent == 0.0
