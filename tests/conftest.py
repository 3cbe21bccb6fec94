"""
Shared test setup.

Every test starts from default configuration: no DQ_* or PHOENIX_*
overrides, fresh config singletons, a NoOp tracer and no cached
similarity engine.
"""

import pytest

from discharge_quality.core.config import reset_config
from discharge_quality.observability.config import reset_config as reset_phoenix_config
from discharge_quality.observability.tracer import reset_tracer
from discharge_quality.similarity.engine import reset_similarity_engine

_ENV_VARS = (
    "DQ_SIMILARITY_WEIGHTS",
    "DQ_DEDUP_THRESHOLD",
    "DQ_MERGE_THRESHOLD",
    "DQ_STRUCTURED_THRESHOLD",
    "DQ_SEMANTIC_PROVIDER",
    "DQ_SEMANTIC_FALLBACK",
    "DQ_SEMANTIC_TIMEOUT_S",
    "DQ_STRICT_VALIDATION",
    "DQ_CHECK_HALLUCINATIONS",
    "DQ_REQUIRE_PRECISE_VALUES",
    "PHOENIX_ENABLED",
    "PHOENIX_COLLECTOR_ENDPOINT",
    "PHOENIX_CAPTURE_CONTENT",
)


def _reset_singletons() -> None:
    reset_config()
    reset_phoenix_config()
    reset_tracer()
    reset_similarity_engine()


@pytest.fixture(autouse=True)
def default_environment(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    _reset_singletons()
    yield
    _reset_singletons()
