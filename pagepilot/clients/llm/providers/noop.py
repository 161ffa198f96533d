"""No-op LLM client when no provider is configured. Returns a friendly message."""
from __future__ import annotations

from pagepilot.clients.llm.base import BaseLLMClient, FunctionCallResult


_NOOP_MESSAGE = (
    "The language model is not configured yet. Set OPENAI_API_KEY or "
    "GEMINI_API_KEY and restart the service."
)


class NoOpLLMClient(BaseLLMClient):
    """Placeholder client when no API key is configured."""

    @property
    def provider(self) -> str:
        return "noop"

    async def complete(self, prompt: str, *, model: str | None = None) -> str:
        return _NOOP_MESSAGE

    async def chat(self, messages: list) -> str:
        """Nothing to phrase; callers keep their own reply text."""
        return ""

    async def test_connection(self) -> bool:
        return False

    async def function_call(
        self,
        prompt: str,
        tools: list,
        *,
        system_prompt: str | None = None,
        conversation_history: list | None = None,
    ) -> FunctionCallResult | None:
        return FunctionCallResult(tool_name=None, text=_NOOP_MESSAGE)
