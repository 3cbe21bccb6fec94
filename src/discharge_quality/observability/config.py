"""
Phoenix/OpenTelemetry Configuration

Loads tracing settings from environment variables.
Tracing is off unless explicitly enabled.
"""

import os
from dataclasses import dataclass

DEFAULT_PROJECT_NAME = "discharge-quality"


def _truthy(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass
class PhoenixConfig:
    """Configuration for Phoenix observability.

    Environment Variables:
        PHOENIX_ENABLED: Enable Phoenix tracing (default: false)
        PHOENIX_PROJECT_NAME: Project name in Phoenix UI (default: discharge-quality)
        PHOENIX_COLLECTOR_ENDPOINT: Remote endpoint (optional, local if empty)
        PHOENIX_CAPTURE_CONTENT: Attach issue text to spans (default: false)

    PRIVACY WARNING:
        Issue suggestions and variant lists can quote source notes verbatim.
        Setting PHOENIX_CAPTURE_CONTENT=true exports that text to the
        collector. Only enable where patient data may leave the process.
    """

    enabled: bool = False
    project_name: str = DEFAULT_PROJECT_NAME
    collector_endpoint: str | None = None
    capture_content: bool = False

    @classmethod
    def from_env(cls) -> "PhoenixConfig":
        """Load config from environment variables."""
        return cls(
            enabled=_truthy(os.environ.get("PHOENIX_ENABLED", "false")),
            project_name=os.environ.get("PHOENIX_PROJECT_NAME", DEFAULT_PROJECT_NAME),
            collector_endpoint=os.environ.get("PHOENIX_COLLECTOR_ENDPOINT") or None,
            capture_content=_truthy(os.environ.get("PHOENIX_CAPTURE_CONTENT", "false")),
        )


_config: PhoenixConfig | None = None


def get_config() -> PhoenixConfig:
    """Get the global Phoenix config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = PhoenixConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
