"""
Unit Tests for Embedding Providers

The OpenAI client is patched; MockEmbeddings is exercised directly.
"""

import numpy as np
import pytest
from unittest.mock import MagicMock, patch

from discharge_quality.core.protocols import EmbeddingProvider
from discharge_quality.embeddings import (
    MockEmbeddings,
    OpenAIEmbeddings,
    get_embedding_provider,
)


class TestMockEmbeddings:
    """Test the deterministic test double."""

    def test_satisfies_protocol(self):
        assert isinstance(MockEmbeddings(), EmbeddingProvider)

    def test_deterministic(self):
        mock = MockEmbeddings()
        np.testing.assert_array_equal(mock.embed("evd placed"), mock.embed("evd placed"))

    def test_dimensions(self):
        mock = MockEmbeddings(dimensions=32)
        assert mock.dimensions == 32
        assert mock.embed("evd").shape == (32,)

    def test_case_insensitive_tokens(self):
        mock = MockEmbeddings()
        np.testing.assert_array_equal(mock.embed("EVD Placed"), mock.embed("evd placed"))

    def test_embed_batch(self):
        vectors = MockEmbeddings().embed_batch(["a", "b", "c"])
        assert len(vectors) == 3


class TestOpenAIEmbeddings:
    """Test the production provider with a patched client."""

    def test_client_gets_timeout_and_no_retries(self):
        with patch("discharge_quality.embeddings.openai_embeddings.OpenAI") as mock_openai:
            OpenAIEmbeddings(api_key="sk-test", timeout=5.0)

        mock_openai.assert_called_once_with(api_key="sk-test", timeout=5.0, max_retries=0)

    def test_embed(self):
        with patch("discharge_quality.embeddings.openai_embeddings.OpenAI") as mock_openai:
            client = mock_openai.return_value
            client.embeddings.create.return_value = MagicMock(
                data=[MagicMock(embedding=[0.1, 0.2, 0.3])]
            )
            provider = OpenAIEmbeddings(api_key="sk-test")
            vector = provider.embed("evd placed")

        client.embeddings.create.assert_called_once_with(
            input="evd placed", model="text-embedding-3-small"
        )
        assert vector.shape == (3,)
        assert vector[1] == pytest.approx(0.2)

    def test_embed_batch_empty_skips_api(self):
        with patch("discharge_quality.embeddings.openai_embeddings.OpenAI") as mock_openai:
            provider = OpenAIEmbeddings(api_key="sk-test")
            assert provider.embed_batch([]) == []

        mock_openai.return_value.embeddings.create.assert_not_called()

    def test_dimensions_by_model(self):
        with patch("discharge_quality.embeddings.openai_embeddings.OpenAI"):
            assert OpenAIEmbeddings(model="text-embedding-3-large", api_key="k").dimensions == 3072
            assert OpenAIEmbeddings(api_key="k").dimensions == 1536


class TestGetEmbeddingProvider:

    def test_mock(self):
        assert isinstance(get_embedding_provider(use_mock=True), MockEmbeddings)

    def test_openai(self):
        with patch("discharge_quality.embeddings.openai_embeddings.OpenAI") as mock_openai:
            provider = get_embedding_provider(timeout=3.0)

        assert isinstance(provider, OpenAIEmbeddings)
        assert mock_openai.call_args.kwargs["timeout"] == 3.0
