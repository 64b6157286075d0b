import os
from typing import Mapping, Optional

import httpx

from auditagent.core.config import AuditConfig, PROVIDER_DEFAULTS, PROVIDERS
from auditagent.core.errors import ConfigError
from auditagent.providers.base import BaseProvider
from auditagent.providers.anthropic import AnthropicProvider
from auditagent.providers.openai import OpenAiProvider
from auditagent.providers.scaffold import ScaffoldProvider

OLLAMA_PLACEHOLDER_KEY = "ollama"


def build_provider(
    config: AuditConfig,
    logger=None,
    client: Optional[httpx.Client] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BaseProvider:
    """Instantiate the configured provider with its per-provider defaults."""
    environ = os.environ if environ is None else environ
    name = (config.provider or "").strip().lower()

    if name == "scaffold":
        return ScaffoldProvider(logger=logger)
    if name not in PROVIDER_DEFAULTS:
        raise ConfigError(
            f"Unsupported provider '{config.provider}'. Expected one of: {', '.join(PROVIDERS)}")

    defaults = PROVIDER_DEFAULTS[name]
    common = dict(
        endpoint=config.endpoint or defaults.endpoint,
        model=config.model or defaults.model,
        reasoning_effort=config.reasoning_effort,
        ai_logs=config.ai_logs,
        timeout=config.timeout,
        client=client,
        logger=logger,
    )

    if name == "ollama":
        key = environ.get(config.api_key_env) if config.api_key_env else None
        return OpenAiProvider(api_key=key or OLLAMA_PLACEHOLDER_KEY, ollama_compat=True, **common)

    key_env = config.api_key_env or defaults.api_key_env
    api_key = environ.get(key_env)
    if not api_key:
        raise ConfigError(
            f"Missing API key environment variable '{key_env}'. "
            f"Set it before running with --provider {name}.")

    if name == "anthropic":
        return AnthropicProvider(api_key=api_key, **common)
    return OpenAiProvider(api_key=api_key, **common)
