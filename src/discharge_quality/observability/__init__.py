"""
Observability Module - Phoenix + OpenTelemetry Integration

Traces dedup runs and quality-scoring dimensions with Arize Phoenix.
Everything degrades to no-ops when PHOENIX_ENABLED is unset or the
observability extra is not installed.

USAGE:
------
# At application startup:
from discharge_quality.observability import init_phoenix

init_phoenix()  # Starts local Phoenix UI if PHOENIX_ENABLED=true

# In code that needs tracing:
from discharge_quality.observability import get_tracer

tracer = get_tracer()
with tracer.start_span("dq.accuracy", attributes={"dq.dimension.name": "accuracy"}) as span:
    ...
    span.set_attribute("dq.dimension.score", 0.92)
"""

from __future__ import annotations

import logging

from discharge_quality.observability.config import (
    PhoenixConfig,
    get_config,
    reset_config,
)
from discharge_quality.observability.tracer import (
    TracerProtocol,
    SpanProtocol,
    NoOpTracer,
    NoOpSpan,
    get_tracer,
    reset_tracer,
)
from discharge_quality.observability.attributes import (
    DQ_DIMENSION_NAME,
    DQ_DIMENSION_SCORE,
    DQ_DIMENSION_RAW_SCORE,
    DQ_ISSUES_COUNT,
    DQ_ISSUES_CRITICAL,
    DQ_DEDUP_OPERATION,
    DQ_DEDUP_INPUT_COUNT,
    DQ_DEDUP_OUTPUT_COUNT,
    DQ_SIMILARITY_DEGRADED,
    dimension_attributes,
    dedup_attributes,
    similarity_attributes,
)

logger = logging.getLogger(__name__)

_phoenix_initialized = False


def init_phoenix(config: PhoenixConfig | None = None) -> bool:
    """
    Initialize Phoenix observability.

    Sets up the OpenTelemetry tracer provider and registers the OpenAI
    auto-instrumentor. Call once at startup.

    Args:
        config: Optional config (uses env vars if not provided)

    Returns:
        True if Phoenix was initialized, False if disabled or failed
    """
    global _phoenix_initialized
    if _phoenix_initialized:
        return True

    config = config or get_config()

    if not config.enabled:
        logger.debug("Phoenix observability disabled")
        return False

    try:
        import phoenix as px
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    except ImportError as e:
        logger.warning(f"Phoenix not installed, observability disabled: {e}")
        return False

    try:
        if config.collector_endpoint:
            endpoint = config.collector_endpoint
            logger.info(f"Phoenix connecting to remote: {endpoint}")
        else:
            session = px.launch_app()
            endpoint = f"{session.url.rstrip('/')}/v1/traces"
            logger.info(f"Phoenix UI available at: {session.url}")

        provider = TracerProvider(
            resource=Resource.create({"openinference.project.name": config.project_name})
        )
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(provider)

        from discharge_quality.observability.instrumentation import register_instrumentors
        register_instrumentors()
    except Exception as e:
        logger.error(f"Failed to initialize Phoenix: {e}")
        return False

    reset_tracer()
    _phoenix_initialized = True
    return True


def shutdown_phoenix() -> None:
    """Flush spans and reset tracing state."""
    global _phoenix_initialized

    if not _phoenix_initialized:
        return

    try:
        from opentelemetry import trace
        provider = trace.get_tracer_provider()
        if hasattr(provider, "shutdown"):
            provider.shutdown()
    except Exception as e:
        logger.warning(f"Error shutting down Phoenix: {e}")

    reset_tracer()
    reset_config()
    _phoenix_initialized = False


__all__ = [
    # Initialization
    "init_phoenix",
    "shutdown_phoenix",
    # Config
    "PhoenixConfig",
    "get_config",
    "reset_config",
    # Tracer
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    # Attributes
    "DQ_DIMENSION_NAME",
    "DQ_DIMENSION_SCORE",
    "DQ_DIMENSION_RAW_SCORE",
    "DQ_ISSUES_COUNT",
    "DQ_ISSUES_CRITICAL",
    "DQ_DEDUP_OPERATION",
    "DQ_DEDUP_INPUT_COUNT",
    "DQ_DEDUP_OUTPUT_COUNT",
    "DQ_SIMILARITY_DEGRADED",
    # Helpers
    "dimension_attributes",
    "dedup_attributes",
    "similarity_attributes",
]
