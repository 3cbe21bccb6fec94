"""
Unit Tests for Semantic Similarity Providers

ConceptSimilarity is offline and deterministic. EmbeddingSimilarity is
tested against MockEmbeddings and MagicMock providers; no network calls.
"""

import numpy as np
import pytest
from unittest.mock import MagicMock

from openai import OpenAIError

from discharge_quality.core.config import ConfigurationError
from discharge_quality.core.protocols import SemanticSimilarityProvider
from discharge_quality.dedup import DeduplicationService
from discharge_quality.embeddings import MockEmbeddings
from discharge_quality.similarity import (
    ConceptSimilarity,
    EmbeddingSimilarity,
    SimilarityEngine,
    extract_concepts,
)


# ---------------------------------------------------------------------------
# CONCEPT EXTRACTION
# ---------------------------------------------------------------------------


class TestExtractConcepts:

    def test_finds_concepts_across_categories(self):
        concepts = extract_concepts("Left frontal craniotomy for tumor, MRI pending")
        assert concepts == {"frontal", "craniotomy", "tumor", "mri"}

    def test_word_boundaries(self):
        # "ct" must not match inside "actually"
        assert extract_concepts("actually fine") == set()

    def test_case_insensitive(self):
        assert extract_concepts("EVD and SDH") == {"evd", "sdh"}


class TestConceptSimilarity:

    @pytest.fixture
    def provider(self):
        return ConceptSimilarity()

    def test_satisfies_protocol(self, provider):
        assert isinstance(provider, SemanticSimilarityProvider)
        assert provider.name == "concept"

    def test_same_concepts_different_wording(self, provider):
        assert provider.similarity("coiling of aneurysm", "aneurysm coiling done") == 1.0

    def test_partial_concept_overlap(self, provider):
        # {craniotomy, tumor} vs {craniotomy, hemorrhage}
        score = provider.similarity("craniotomy for tumor", "craniotomy for hemorrhage")
        assert score == pytest.approx(1 / 3)

    def test_falls_back_to_word_jaccard_without_concepts(self, provider):
        assert provider.similarity("went home", "went home today") == pytest.approx(2 / 3)

    def test_one_side_without_concepts(self, provider):
        assert provider.similarity("evd placed", "went home") == 0.0

    def test_symmetric(self, provider):
        a, b = "left frontal craniotomy", "frontal tumor resection"
        assert provider.similarity(a, b) == provider.similarity(b, a)


# ---------------------------------------------------------------------------
# EMBEDDING SIMILARITY
# ---------------------------------------------------------------------------


class TestEmbeddingSimilarity:

    def test_satisfies_protocol(self):
        provider = EmbeddingSimilarity(MockEmbeddings())
        assert isinstance(provider, SemanticSimilarityProvider)
        assert provider.name == "embedding"

    def test_identical_text(self):
        provider = EmbeddingSimilarity(MockEmbeddings())
        assert provider.similarity("evd placed", "evd placed") == 1.0

    def test_same_bag_of_words(self):
        provider = EmbeddingSimilarity(MockEmbeddings())
        assert provider.similarity("evd placed", "placed evd") == pytest.approx(1.0)

    def test_bounded(self):
        provider = EmbeddingSimilarity(MockEmbeddings())
        score = provider.similarity("left frontal craniotomy", "vp shunt revision")
        assert 0.0 <= score <= 1.0

    def test_negative_cosine_clamped_to_zero(self):
        embeddings = MagicMock()
        embeddings.embed.side_effect = [np.array([1.0, 0.0]), np.array([-1.0, 0.0])]
        provider = EmbeddingSimilarity(embeddings)
        assert provider.similarity("a", "b") == 0.0

    def test_zero_vector_scores_zero(self):
        provider = EmbeddingSimilarity(MockEmbeddings())
        assert provider.similarity("", "evd placed") == 0.0

    def test_embeddings_cached_per_text(self):
        embeddings = MagicMock()
        embeddings.embed.side_effect = lambda text: np.array([1.0, float(len(text))])
        provider = EmbeddingSimilarity(embeddings)

        provider.similarity("evd", "shunt")
        provider.similarity("evd", "shunt")
        provider.similarity("shunt", "evd")

        assert embeddings.embed.call_count == 2

    def test_cache_bounded_across_documents(self):
        provider = EmbeddingSimilarity(MockEmbeddings(), cache_size=100)
        service = DeduplicationService(engine=SimilarityEngine(semantic=provider))

        for doc in range(50):
            fragments = [f"note {doc} fragment {i} evd output stable" for i in range(40)]
            service.deduplicate(fragments)
            assert len(provider._cache) <= 100

        assert len(provider._cache) == 100

    def test_cache_evicts_least_recently_used(self):
        embeddings = MagicMock()
        embeddings.embed.side_effect = lambda text: np.array([1.0, float(len(text))])
        provider = EmbeddingSimilarity(embeddings, cache_size=2)

        provider.similarity("evd", "shunt")
        provider.similarity("evd", "drain")  # evicts "shunt"

        assert list(provider._cache) == ["evd", "drain"]
        provider.similarity("drain", "evd")
        assert embeddings.embed.call_count == 3

    def test_cache_size_must_be_positive(self):
        with pytest.raises(ConfigurationError, match="cache_size"):
            EmbeddingSimilarity(MockEmbeddings(), cache_size=0)

    def test_api_failure_reports_unavailable(self):
        embeddings = MagicMock()
        embeddings.embed.side_effect = OpenAIError("service unavailable")
        provider = EmbeddingSimilarity(embeddings)

        assert provider.similarity("evd placed", "external ventricular drain") is None

    def test_engine_degrades_when_embeddings_fail(self):
        embeddings = MagicMock()
        embeddings.embed.side_effect = OpenAIError("timeout")
        degraded = SimilarityEngine(semantic=EmbeddingSimilarity(embeddings))
        lexical = SimilarityEngine(semantic=None)

        assert degraded.combined_similarity("a b c", "a b d") == pytest.approx(
            lexical.combined_similarity("a b c", "a b d")
        )
