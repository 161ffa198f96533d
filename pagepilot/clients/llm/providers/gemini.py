"""Google Gemini LLM provider: BaseLLMClient implementation + registry builder."""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from pagepilot.clients.llm.base import BaseLLMClient, FunctionCallResult, LLMMessage

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


class GeminiLLMClient(BaseLLMClient):
    """Google Gemini LLM client (gemini-2.0-flash, gemini-1.5-pro, etc.)."""

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        *,
        api_key: Optional[str] = None,
        temperature: float = 0.0,
    ) -> None:
        self._model = model
        self._temperature = temperature
        resolved_key = api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        self._client = genai.Client(api_key=resolved_key)

    @property
    def provider(self) -> str:
        return "gemini"

    async def complete(self, prompt: str, *, model: Optional[str] = None) -> str:
        response = await self._client.aio.models.generate_content(
            model=model or self._model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(temperature=self._temperature),
        )
        return response.text or ""

    async def chat(self, messages: List[Dict[str, Any]]) -> str:
        """Native multi-turn chat with system-instruction support."""
        system_parts: List[str] = []
        history: List[genai_types.Content] = []

        for msg in messages:
            role = msg.get("role", "user")
            content = (msg.get("content") or "").strip()
            if not content:
                continue
            if role == "system":
                system_parts.append(content)
            else:
                history.append(
                    genai_types.Content(
                        role="model" if role == "assistant" else "user",
                        parts=[genai_types.Part(text=content)],
                    )
                )

        cfg_kwargs: Dict[str, Any] = {"temperature": self._temperature}
        if system_parts:
            cfg_kwargs["system_instruction"] = "\n\n".join(system_parts)

        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=history,
            config=genai_types.GenerateContentConfig(**cfg_kwargs),
        )
        return response.text or ""

    async def function_call(
        self,
        prompt: str,
        tools: List[dict],
        *,
        system_prompt: Optional[str] = None,
        conversation_history: Optional[List[LLMMessage]] = None,
    ) -> Optional[FunctionCallResult]:
        """Prompt-based tool selection: the model answers with a JSON object."""
        if not tools:
            return None

        tool_list = json.dumps(tools, ensure_ascii=False, indent=2)
        transcript = "\n".join(
            f"{m.get('role', 'user')}: {m.get('content', '')}" for m in conversation_history or []
        )
        extraction_prompt = (
            (f"{system_prompt}\n\n" if system_prompt else "")
            + "Select the most appropriate tool for the user's latest request and extract its arguments.\n\n"
            f"Available tools (JSON schema):\n{tool_list}\n\n"
            + (f"Conversation so far:\n{transcript}\n\n" if transcript else "")
            + f"User request: {prompt}\n\n"
            "Respond with ONLY a JSON object in this exact format:\n"
            '{"tool_name": "<name>", "arguments": {<key-value pairs>}}\n'
            'If no tool fits, respond with: {"tool_name": null, "reply": "<your answer to the user>"}'
        )

        try:
            raw = await self.complete(extraction_prompt)
        except genai_errors.APIError as exc:
            logger.error("GeminiLLMClient.function_call failed: %s", exc)
            return None

        raw = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", raw.strip()))

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("GeminiLLMClient.function_call: could not parse JSON: %r", raw)
            return FunctionCallResult(tool_name=None, text=raw, raw_response=raw)

        if not isinstance(parsed, dict):
            return None
        tool_name = parsed.get("tool_name")
        if not tool_name:
            return FunctionCallResult(tool_name=None, text=parsed.get("reply") or "", raw_response=raw)

        arguments = parsed.get("arguments")
        return FunctionCallResult(
            tool_name=tool_name,
            arguments=arguments if isinstance(arguments, dict) else {},
            raw_response=raw,
        )

    async def test_connection(self) -> bool:
        try:
            await self.complete("Say OK", model=self._model)
            return True
        except genai_errors.APIError:
            return False


def gemini_builder(config: Dict[str, Any]) -> GeminiLLMClient:
    return GeminiLLMClient(
        model=config.get("model") or "gemini-2.0-flash",
        api_key=config.get("api_key"),
        temperature=float(config.get("temperature", 0.0)),
    )
