"""OpenAI LLM provider: BaseLLMClient implementation + registry builder."""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from pagepilot.clients.llm.base import BaseLLMClient, FunctionCallResult, LLMMessage

logger = logging.getLogger(__name__)


class OpenAILLMClient(BaseLLMClient):
    """OpenAI-compatible LLM client (GPT-4o, GPT-4o-mini, etc.)."""

    def __init__(
        self,
        model: str = "gpt-4o",
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
        )

    @property
    def provider(self) -> str:
        return "openai"

    def _base_kwargs(self, model: Optional[str] = None) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": model or self._model,
            "temperature": self._temperature,
        }
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens
        return kwargs

    async def complete(self, prompt: str, *, model: Optional[str] = None) -> str:
        response = await self._client.chat.completions.create(
            messages=[{"role": "user", "content": prompt}],
            **self._base_kwargs(model),
        )
        return response.choices[0].message.content or ""

    async def chat(self, messages: List[Dict[str, Any]]) -> str:
        """Native multi-turn chat with system-prompt support."""
        response = await self._client.chat.completions.create(
            messages=messages,
            **self._base_kwargs(),
        )
        return response.choices[0].message.content or ""

    async def function_call(
        self,
        prompt: str,
        tools: List[dict],
        *,
        system_prompt: Optional[str] = None,
        conversation_history: Optional[List[LLMMessage]] = None,
    ) -> Optional[FunctionCallResult]:
        """Use OpenAI native tool calling to select a tool and extract arguments."""
        if not tools:
            return None

        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.extend(conversation_history or [])
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                tools=tools,
                tool_choice="auto",
                temperature=0.0,
            )
        except OpenAIError as exc:
            logger.error("OpenAILLMClient.function_call failed: %s", exc)
            return None

        msg = response.choices[0].message
        if not msg.tool_calls:
            return FunctionCallResult(tool_name=None, text=msg.content or "")

        tc = msg.tool_calls[0]
        try:
            arguments = json.loads(tc.function.arguments or "{}")
        except json.JSONDecodeError:
            logger.warning("OpenAILLMClient.function_call: bad arguments JSON for %s", tc.function.name)
            arguments = {}

        return FunctionCallResult(
            tool_name=tc.function.name,
            arguments=arguments if isinstance(arguments, dict) else {},
            raw_response=tc.function.arguments,
        )

    async def test_connection(self) -> bool:
        try:
            await self._client.models.list()
            return True
        except OpenAIError:
            return False


def openai_builder(config: Dict[str, Any]) -> OpenAILLMClient:
    return OpenAILLMClient(
        model=config.get("model") or "gpt-4o",
        api_key=config.get("api_key"),
        base_url=config.get("base_url"),
        temperature=float(config.get("temperature", 0.0)),
        max_tokens=config.get("max_tokens"),
    )
