"""
LLM provider registry: map provider name -> build client from config dict.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pagepilot.clients.llm.base import BaseLLMClient

if TYPE_CHECKING:
    from pagepilot.config.llm import LLMSettings

logger = logging.getLogger(__name__)


class LLMRegistry:
    """Maps provider id to a builder that takes config dict and returns BaseLLMClient."""

    def __init__(self) -> None:
        self._builders: Dict[str, Callable[[Dict[str, Any]], BaseLLMClient]] = {}

    def register(self, provider: str, builder: Callable[[Dict[str, Any]], BaseLLMClient]) -> None:
        """Register a builder for this provider. builder(config_dict) -> BaseLLMClient."""
        self._builders[provider] = builder

    def get(self, provider: str) -> Callable[[Dict[str, Any]], BaseLLMClient] | None:
        return self._builders.get(provider)

    @property
    def providers(self) -> list[str]:
        return sorted(self._builders)

    def build(self, provider: str, config: Dict[str, Any]) -> BaseLLMClient:
        """Build a client for this provider with the given config. Raises KeyError if unknown provider."""
        builder = self._builders.get(provider)
        if builder is None:
            raise KeyError(f"Unknown LLM provider: {provider!r}. Registered: {list(self._builders)}")
        return builder(config)


# Default registry with all built-in providers pre-registered.
default_registry = LLMRegistry()

from pagepilot.clients.llm.providers.openai import openai_builder  # noqa: E402
from pagepilot.clients.llm.providers.gemini import gemini_builder  # noqa: E402

default_registry.register("openai", openai_builder)
default_registry.register("gemini", gemini_builder)


def build_from_settings(
    settings: "LLMSettings",
    registry: Optional[LLMRegistry] = None,
) -> BaseLLMClient:
    """Client for the configured provider, or NoOpLLMClient when none is configured."""
    from pagepilot.clients.llm.providers.noop import NoOpLLMClient

    if settings.provider is None or not settings.api_key:
        logger.warning("No LLM provider configured; using the no-op client")
        return NoOpLLMClient()
    client = (registry or default_registry).build(settings.provider, settings.to_builder_config())
    logger.info("LLM client ready: provider=%s model=%s", settings.provider, settings.to_builder_config()["model"])
    return client
