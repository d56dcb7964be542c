"""Configuration management for Prompt Relay.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the PROMPTRELAY_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (PROMPTRELAY_* prefix)
2. .env file in the project root
3. Default values defined in RelayConfig

Example .env file:
    PROMPTRELAY_ACCOUNT_ID=0123456789abcdef
    PROMPTRELAY_API_TOKEN=secret
    PROMPTRELAY_DEFAULT_STEPS=6
    PROMPTRELAY_REQUEST_TIMEOUT=60

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from promptrelay.core.config import config

    print(config.chat_model)
    print(config.default_steps)

Inference Backends
------------------
Both outbound collaborators are Workers AI models reached through the same
REST endpoint, ``{api_base}/accounts/{account_id}/ai/run/{model}``:

- chat_model: instruction-tuned LLM used by analyze and enrich
- image_model: FLUX.1 [schnell], which accepts at most 8 diffusion steps

See Also
--------
- .env.example: Template with all available configuration options
- RelayConfig: Full configuration class documentation
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelayConfig(BaseSettings):
    """Main configuration for Prompt Relay.

    Values are loaded from environment variables with the PROMPTRELAY_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Inference Service Settings:
        account_id : str
            Cloudflare account that owns the Workers AI binding
        api_token : str
            Bearer token sent with every outbound call
        api_base : str
            Base URL of the Cloudflare REST API
        chat_model : str
            Model identifier for chat completions
        image_model : str
            Model identifier for text-to-image synthesis
        request_timeout : float | None
            Outbound timeout in seconds (None leaves calls unbounded)

    Generation Settings:
        default_steps : int
            Diffusion step count used when a request omits ``steps``
        analyze_max_tokens : int
            Output token bound for the analysis call
        enrich_max_tokens : int
            Output token bound for the enrichment call

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level used by the CLI entry point

    Examples
    --------
        >>> custom_config = RelayConfig(
        ...     account_id="abc123",
        ...     default_steps=4,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PROMPTRELAY_",
        case_sensitive=False,
    )

    # Inference service settings
    account_id: str = Field(
        default="",
        description="Cloudflare account ID owning the Workers AI models",
    )
    api_token: str = Field(
        default="",
        description="API token with Workers AI read/run permission",
    )
    api_base: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Base URL of the Cloudflare REST API",
    )
    chat_model: str = Field(
        default="@cf/meta/llama-3.1-8b-instruct",
        description="Chat-completion model used for analyze and enrich",
    )
    image_model: str = Field(
        default="@cf/black-forest-labs/flux-1-schnell",
        description="Text-to-image model used for generate",
    )
    request_timeout: float | None = Field(
        default=None,
        description="Outbound request timeout in seconds (None = no local timeout)",
        gt=0,
    )

    # Generation settings
    default_steps: int = Field(
        default=6,
        description="Diffusion steps when the request omits them",
        ge=1,
        le=8,
    )
    analyze_max_tokens: int = Field(default=256, ge=1)
    enrich_max_tokens: int = Field(default=160, ge=1)

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8787,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )

    def run_url(self, model: str) -> str:
        """Return the Workers AI run endpoint for *model*.

        Args:
            model: Workers AI model identifier, e.g.
                ``"@cf/black-forest-labs/flux-1-schnell"``.

        Returns:
            Absolute URL accepting a ``POST`` with the model inputs.
        """
        return f"{self.api_base.rstrip('/')}/accounts/{self.account_id}/ai/run/{model}"


# Global configuration instance
# Loads values from environment variables (PROMPTRELAY_* prefix) and .env file.
config = RelayConfig()
