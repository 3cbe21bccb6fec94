"""
Unit Tests for Quality Pipeline Configuration

Tests verify:
1. Defaults match the documented thresholds
2. Environment variables are parsed and validated
3. Invalid configurations fail fast with ConfigurationError
"""

import pytest
from unittest.mock import patch

from discharge_quality.core.config import (
    SIMILARITY_THRESHOLDS,
    ConfigurationError,
    QualityConfig,
    get_config,
    reset_config,
)


class TestQualityConfigDefaults:

    def test_defaults(self):
        config = QualityConfig()

        assert config.similarity_weights == (0.4, 0.2, 0.4)
        assert config.dedup_threshold == 0.85
        assert config.merge_threshold == 0.70
        assert config.structured_threshold == 0.95
        assert config.semantic_provider == "concept"
        assert config.semantic_fallback == "renormalize"
        assert config.strict_validation is True
        assert config.check_hallucinations is True
        assert config.require_precise_values is True
        assert config.embedding_cache_size == 1024

    def test_named_thresholds(self):
        assert SIMILARITY_THRESHOLDS == {
            "EXACT_MATCH": 1.0,
            "VERY_HIGH": 0.95,
            "HIGH": 0.85,
            "MEDIUM": 0.70,
            "LOW": 0.50,
        }


class TestQualityConfigFromEnv:

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_empty_environment_uses_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            assert QualityConfig.from_env() == QualityConfig()

    def test_weights(self):
        with patch.dict("os.environ", {"DQ_SIMILARITY_WEIGHTS": "0.5, 0.5, 0"}):
            config = QualityConfig.from_env()
        assert config.similarity_weights == (0.5, 0.5, 0.0)

    @pytest.mark.parametrize("raw", ["0.5,0.5", "a,b,c", "1,2,3,4"])
    def test_malformed_weights(self, raw):
        with patch.dict("os.environ", {"DQ_SIMILARITY_WEIGHTS": raw}):
            with pytest.raises(ConfigurationError):
                QualityConfig.from_env()

    def test_thresholds(self):
        env = {"DQ_DEDUP_THRESHOLD": "0.9", "DQ_MERGE_THRESHOLD": "0.6", "DQ_STRUCTURED_THRESHOLD": ""}
        with patch.dict("os.environ", env):
            config = QualityConfig.from_env()

        assert config.dedup_threshold == 0.9
        assert config.merge_threshold == 0.6
        assert config.structured_threshold == 0.95

    def test_non_numeric_threshold(self):
        with patch.dict("os.environ", {"DQ_DEDUP_THRESHOLD": "high"}):
            with pytest.raises(ConfigurationError, match="DQ_DEDUP_THRESHOLD"):
                QualityConfig.from_env()

    def test_embedding_cache_size(self):
        with patch.dict("os.environ", {"DQ_EMBEDDING_CACHE_SIZE": "64"}):
            assert QualityConfig.from_env().embedding_cache_size == 64

    def test_non_integer_cache_size(self):
        with patch.dict("os.environ", {"DQ_EMBEDDING_CACHE_SIZE": "lots"}):
            with pytest.raises(ConfigurationError, match="DQ_EMBEDDING_CACHE_SIZE"):
                QualityConfig.from_env()

    def test_provider_case_insensitive(self):
        with patch.dict("os.environ", {"DQ_SEMANTIC_PROVIDER": "Embedding"}):
            assert QualityConfig.from_env().semantic_provider == "embedding"

    @pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("TRUE", True), ("yes", True)])
    def test_boolean_flags(self, raw, expected):
        with patch.dict("os.environ", {"DQ_STRICT_VALIDATION": raw, "DQ_CHECK_HALLUCINATIONS": raw}):
            config = QualityConfig.from_env()

        assert config.strict_validation is expected
        assert config.check_hallucinations is expected

    def test_get_config_singleton(self):
        assert get_config() is get_config()

    def test_reset_config_reloads(self):
        first = get_config()
        with patch.dict("os.environ", {"DQ_DEDUP_THRESHOLD": "0.5"}):
            reset_config()
            second = get_config()

        assert first is not second
        assert second.dedup_threshold == 0.5


class TestQualityConfigValidation:

    @pytest.mark.parametrize(
        "field_name", ["dedup_threshold", "merge_threshold", "structured_threshold"]
    )
    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_threshold_out_of_range(self, field_name, value):
        with pytest.raises(ConfigurationError, match=field_name):
            QualityConfig(**{field_name: value})

    @pytest.mark.parametrize("value", [0.0, 1.0])
    def test_threshold_bounds_inclusive(self, value):
        assert QualityConfig(dedup_threshold=value).dedup_threshold == value

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unknown semantic provider"):
            QualityConfig(semantic_provider="bert")

    def test_unknown_fallback(self):
        with pytest.raises(ConfigurationError, match="Unknown semantic fallback"):
            QualityConfig(semantic_fallback="retry")

    def test_no_provider_with_fail_policy(self):
        with pytest.raises(ConfigurationError):
            QualityConfig(semantic_provider="none", semantic_fallback="fail")

    def test_no_provider_with_renormalize_is_valid(self):
        config = QualityConfig(semantic_provider="none")
        assert config.semantic_fallback == "renormalize"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ConfigurationError, match="semantic_timeout_s"):
            QualityConfig(semantic_timeout_s=0)

    def test_embedding_cache_size_must_be_positive(self):
        with pytest.raises(ConfigurationError, match="embedding_cache_size"):
            QualityConfig(embedding_cache_size=0)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)
