"""
Configuration management for streamprobe.

Supports both programmatic configuration and environment variable-based configuration
following the 12-factor app pattern.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_PROMPT = "Tell me a short interesting fact about quantum computing"

_TRUE_VALUES = ("true", "1", "yes", "on", "enabled")


@dataclass
class StreamProbeConfig:
    """
    Configuration for the streamprobe client.

    All parameters can be set programmatically or via environment variables.
    Environment variables take precedence over default values but not over
    explicit programmatic configuration.
    """

    # ========== Connection Configuration ==========
    base_url: str = DEFAULT_BASE_URL
    """Generation backend base URL"""

    timeout: float = 30.0
    """Timeout in seconds for non-streaming requests and connection setup"""

    # ========== Request Configuration ==========
    default_prompt: str = DEFAULT_PROMPT
    """Prompt sent when the caller does not provide one"""

    # ========== Observability ==========
    tracing_enabled: bool = True
    """Emit one OpenTelemetry span per stream session"""

    debug: bool = False
    """Enable debug logging"""

    def __post_init__(self):
        """Normalize and validate configuration after initialization."""
        if self.base_url:
            self.base_url = self.base_url.rstrip("/")
        self.validate()

        if self.debug:
            logging.getLogger("streamprobe").setLevel(logging.DEBUG)

    def validate(self):
        """
        Validate configuration parameters.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.base_url:
            raise ValueError("base_url is required")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")

        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

        if not self.default_prompt or not self.default_prompt.strip():
            raise ValueError("default_prompt cannot be empty")

    @classmethod
    def from_env(cls, **overrides) -> "StreamProbeConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            STREAMPROBE_BASE_URL - Backend base URL (default: http://localhost:5000)
            STREAMPROBE_TIMEOUT - Request timeout in seconds (default: 30)
            STREAMPROBE_DEFAULT_PROMPT - Prompt used when none is given
            STREAMPROBE_TRACING_ENABLED - Emit stream spans (default: true)
            STREAMPROBE_DEBUG - Enable debug logging (default: false)

        Args:
            **overrides: Override specific configuration values

        Returns:
            StreamProbeConfig instance

        Raises:
            ValueError: If environment values are invalid
        """
        base_url = overrides.get("base_url") or os.getenv(
            "STREAMPROBE_BASE_URL", DEFAULT_BASE_URL
        )
        timeout = float(
            overrides.get("timeout") or os.getenv("STREAMPROBE_TIMEOUT", "30")
        )
        default_prompt = overrides.get("default_prompt") or os.getenv(
            "STREAMPROBE_DEFAULT_PROMPT", DEFAULT_PROMPT
        )
        tracing_enabled = cls._parse_bool(
            overrides.get("tracing_enabled"),
            os.getenv("STREAMPROBE_TRACING_ENABLED", "true"),
        )
        debug = cls._parse_bool(
            overrides.get("debug"),
            os.getenv("STREAMPROBE_DEBUG", "false"),
        )

        return cls(
            base_url=base_url,
            timeout=timeout,
            default_prompt=default_prompt,
            tracing_enabled=tracing_enabled,
            debug=debug,
        )

    @staticmethod
    def _parse_bool(override_value: Optional[bool], env_value: str) -> bool:
        """
        Parse boolean value from override or environment variable.

        Args:
            override_value: Explicit override value (takes precedence)
            env_value: Environment variable string value

        Returns:
            Boolean value
        """
        if override_value is not None:
            return bool(override_value)

        return env_value.lower().strip() in _TRUE_VALUES

    def get_endpoint_url(self, kind) -> str:
        """Get the absolute URL of the stream endpoint for a StreamKind."""
        return f"{self.base_url}{kind.path}"

    def resolve_prompt(self, prompt: Optional[str]) -> str:
        """Return the prompt to send, falling back to the configured default."""
        if prompt:
            return prompt
        return self.default_prompt

    def __repr__(self) -> str:
        return (
            f"StreamProbeConfig("
            f"base_url='{self.base_url}', "
            f"timeout={self.timeout}, "
            f"tracing_enabled={self.tracing_enabled}, "
            f"debug={self.debug})"
        )
