"""
OpenInference Auto-Instrumentation

The embedding provider is the only outbound LLM-API call in the package,
so only the OpenAI instrumentor is registered.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_instrumented = False


def register_instrumentors() -> bool:
    """
    Register the OpenAI auto-instrumentor.

    Call once at startup, before any embedding requests.

    Returns:
        True if the instrumentor is active, False otherwise
    """
    global _instrumented
    if _instrumented:
        return True

    try:
        from openinference.instrumentation.openai import OpenAIInstrumentor
    except ImportError:
        logger.debug("OpenAI instrumentor not available")
        return False

    try:
        OpenAIInstrumentor().instrument()
    except Exception as e:
        logger.warning(f"Failed to instrument OpenAI: {e}")
        return False

    logger.info("Registered instrumentors: openai")
    _instrumented = True
    return True


def uninstrument() -> None:
    """Remove the OpenAI instrumentor (useful for testing)."""
    global _instrumented

    if _instrumented:
        try:
            from openinference.instrumentation.openai import OpenAIInstrumentor
            OpenAIInstrumentor().uninstrument()
        except Exception as e:
            logger.debug(f"OpenAI uninstrument failed: {e}")

    _instrumented = False


def is_instrumented() -> bool:
    return _instrumented
