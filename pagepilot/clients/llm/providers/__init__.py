"""LLM provider implementations."""
from pagepilot.clients.llm.providers.gemini import GeminiLLMClient, gemini_builder
from pagepilot.clients.llm.providers.noop import NoOpLLMClient
from pagepilot.clients.llm.providers.openai import OpenAILLMClient, openai_builder

__all__ = [
    "OpenAILLMClient",
    "openai_builder",
    "GeminiLLMClient",
    "gemini_builder",
    "NoOpLLMClient",
]
