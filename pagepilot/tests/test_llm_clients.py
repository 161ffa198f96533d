"""Unit tests for the LLM provider clients and the registry wiring (no network)."""
from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from pagepilot.clients.llm.base import BaseLLMClient
from pagepilot.clients.llm.providers.gemini import GeminiLLMClient
from pagepilot.clients.llm.providers.noop import NoOpLLMClient
from pagepilot.clients.llm.providers.openai import OpenAILLMClient
from pagepilot.clients.llm.registry import LLMRegistry, build_from_settings
from pagepilot.config.llm import LLMSettings

TOOLS = [{"type": "function", "function": {"name": "get_design", "parameters": {}}}]


def _run(coro):
    return asyncio.run(coro)


def _openai_response(*, content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestOpenAIFunctionCall(unittest.TestCase):
    def _client(self, response) -> OpenAILLMClient:
        client = OpenAILLMClient(api_key="sk-test")
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(return_value=response)
        return client

    def test_tool_call_arguments_parsed(self) -> None:
        call = SimpleNamespace(function=SimpleNamespace(name="get_design", arguments='{"client_id": "6"}'))
        client = self._client(_openai_response(tool_calls=[call]))
        result = _run(client.function_call(
            "show my design",
            TOOLS,
            system_prompt="sys",
            conversation_history=[{"role": "assistant", "content": "Hi"}],
        ))

        self.assertEqual(result.tool_name, "get_design")
        self.assertEqual(result.arguments, {"client_id": "6"})
        messages = client._client.chat.completions.create.call_args.kwargs["messages"]
        self.assertEqual([m["role"] for m in messages], ["system", "assistant", "user"])

    def test_plain_text_answer(self) -> None:
        client = self._client(_openai_response(content="Which client id?"))
        result = _run(client.function_call("hello", TOOLS))
        self.assertFalse(result.has_call)
        self.assertEqual(result.text, "Which client id?")

    def test_bad_arguments_json(self) -> None:
        call = SimpleNamespace(function=SimpleNamespace(name="get_design", arguments="{not json"))
        result = _run(self._client(_openai_response(tool_calls=[call])).function_call("x", TOOLS))
        self.assertEqual(result.tool_name, "get_design")
        self.assertEqual(result.arguments, {})

    def test_no_tools(self) -> None:
        self.assertIsNone(_run(OpenAILLMClient(api_key="sk-test").function_call("x", [])))


class TestGeminiFunctionCall(unittest.TestCase):
    def _client(self, raw: str) -> GeminiLLMClient:
        client = GeminiLLMClient(api_key="g-test")
        client.complete = AsyncMock(return_value=raw)
        return client

    def test_fenced_json_tool_call(self) -> None:
        client = self._client('```json\n{"tool_name": "get_design", "arguments": {"client_id": "6"}}\n```')
        result = _run(client.function_call("show my design", TOOLS))
        self.assertEqual(result.tool_name, "get_design")
        self.assertEqual(result.arguments, {"client_id": "6"})

    def test_null_tool_returns_reply(self) -> None:
        client = self._client('{"tool_name": null, "reply": "Which client?"}')
        result = _run(client.function_call("hi", TOOLS))
        self.assertFalse(result.has_call)
        self.assertEqual(result.text, "Which client?")

    def test_prose_is_kept_as_text(self) -> None:
        result = _run(self._client("Sorry, I can't help").function_call("hi", TOOLS))
        self.assertFalse(result.has_call)
        self.assertEqual(result.text, "Sorry, I can't help")


class TestNativeChat(unittest.TestCase):
    MESSAGES = [
        {"role": "system", "content": "Be brief."},
        {"role": "assistant", "content": "Hi"},
        {"role": "user", "content": "List my components"},
    ]

    def test_openai_passes_messages_through(self) -> None:
        client = OpenAILLMClient(api_key="sk-test")
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(return_value=_openai_response(content="Two."))

        self.assertEqual(_run(client.chat(self.MESSAGES)), "Two.")
        sent = client._client.chat.completions.create.call_args.kwargs["messages"]
        self.assertEqual(sent, self.MESSAGES)

    def test_gemini_lifts_system_message_into_config(self) -> None:
        client = GeminiLLMClient(api_key="g-test")
        client._client = MagicMock()
        client._client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text="Two."))

        self.assertEqual(_run(client.chat(self.MESSAGES)), "Two.")
        kwargs = client._client.aio.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["config"].system_instruction, "Be brief.")
        self.assertEqual([c.role for c in kwargs["contents"]], ["model", "user"])

    def test_noop_has_nothing_to_say(self) -> None:
        self.assertEqual(_run(NoOpLLMClient().chat(self.MESSAGES)), "")


class TestRegistry(unittest.TestCase):
    def test_no_provider_builds_noop(self) -> None:
        client = build_from_settings(LLMSettings())
        self.assertIsInstance(client, NoOpLLMClient)
        result = _run(client.function_call("hi", TOOLS))
        self.assertFalse(result.has_call)

    def test_custom_registry_builder(self) -> None:
        built = {}

        def builder(config):
            built.update(config)
            return NoOpLLMClient()

        registry = LLMRegistry()
        registry.register("openai", builder)
        client = build_from_settings(LLMSettings(provider="openai", api_key="sk-test"), registry)

        self.assertIsInstance(client, BaseLLMClient)
        self.assertEqual(built["model"], "gpt-4o")
        self.assertEqual(built["api_key"], "sk-test")

    def test_unknown_provider_raises(self) -> None:
        with self.assertRaises(KeyError):
            LLMRegistry().build("nope", {})
