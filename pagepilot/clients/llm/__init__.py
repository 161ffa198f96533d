"""
LLM clients: base, registry, providers.

Register a provider with default_registry.register(provider, builder);
pagepilot.config.LLMSettings picks one at startup.
"""
from pagepilot.clients.llm.base import BaseLLMClient, FunctionCallResult, LLMMessage
from pagepilot.clients.llm.providers.noop import NoOpLLMClient
from pagepilot.clients.llm.registry import LLMRegistry, build_from_settings, default_registry

__all__ = [
    "BaseLLMClient",
    "FunctionCallResult",
    "LLMMessage",
    "NoOpLLMClient",
    "LLMRegistry",
    "default_registry",
    "build_from_settings",
]
