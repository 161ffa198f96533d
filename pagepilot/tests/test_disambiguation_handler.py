"""Unit tests for DisambiguationHandler: zero, one and many matches."""
from __future__ import annotations

import asyncio
import unittest

from pagepilot.orchestrator.handlers.disambiguation_handler import DisambiguationHandler
from pagepilot.orchestrator.types import DispatcherConfig, OutcomeStatus
from pagepilot.tests.doubles import InMemoryRecordStore, ScriptedLLM, component, text_reply, tool

CONFIG = DispatcherConfig(synthesise_replies=False, llm_timeout_seconds=1.0)


def _run(coro):
    return asyncio.run(coro)


def _store():
    return InMemoryRecordStore([
        component("c1", "cards", 0, title="Shop"),
        component("c2", "cards", 1, title="About me"),
        component("c3", "buttons", 2, title="Shop now"),
    ])


def _handler(*calls):
    return DisambiguationHandler(ScriptedLLM(calls=calls), _store(), config=CONFIG)


class TestDisambiguationSearch(unittest.TestCase):
    def test_no_match_offers_full_list(self) -> None:
        outcome = _run(_handler().search("6", {"component_type": "music"}))
        self.assertEqual(outcome.status, OutcomeStatus.NEEDS_INPUT)
        self.assertEqual(outcome.code, "no_match")
        self.assertIn("show all your components", outcome.message)

    def test_single_match(self) -> None:
        outcome = _run(_handler().search("6", {"type": "cards", "title": "shop"}))
        self.assertEqual(outcome.status, OutcomeStatus.SUCCESS)
        self.assertEqual(outcome.code, "single_match")
        self.assertEqual(outcome.payload["component_id"], "c1")

    def test_multiple_matches_are_numbered(self) -> None:
        outcome = _run(_handler().search("6", {"title": "shop"}))
        self.assertEqual(outcome.code, "multiple_matches")
        self.assertEqual(outcome.candidates, ["c1", "c3"])
        self.assertIn("I found 2 components. Please select one by number:", outcome.message)
        self.assertIn('1. c1 (cards) "Shop"', outcome.message)
        self.assertIn('2. c3 (buttons) "Shop now"', outcome.message)

    def test_component_type_is_not_a_substring_match(self) -> None:
        outcome = _run(_handler().search("6", {"component_type": "card"}))
        self.assertEqual(outcome.code, "no_match")

    def test_unknown_criteria_are_reported(self) -> None:
        outcome = _run(_handler().search("6", {"favourite pizza": "x", "type": "buttons"}))
        self.assertEqual(outcome.code, "single_match")
        self.assertEqual(outcome.rejected_fields, ["favourite pizza"])
        outcome = _run(_handler().search("6", {"favourite pizza": "x"}))
        self.assertEqual(outcome.code, "multiple_matches")
        self.assertEqual(outcome.rejected_fields, ["favourite pizza"])


class TestDisambiguationHandle(unittest.TestCase):
    def test_carries_operation_and_updates(self) -> None:
        handler = _handler(
            tool("search_components", client_id="6", criteria={"type": "cards"}),
        )
        outcome = _run(handler.handle(
            "the card one", operation="update", updates={"props.title": "Home"},
        ))

        self.assertEqual(outcome.candidates, ["c1", "c2"])
        self.assertEqual(outcome.context["client_id"], "6")
        self.assertEqual(outcome.context["operation"], "update")
        self.assertEqual(outcome.context["updates"], {"props.title": "Home"})

    def test_llm_arguments_override_carried_operation(self) -> None:
        handler = _handler(
            tool("search_components", client_id="6", criteria={}, operation="delete"),
        )
        outcome = _run(handler.handle("delete one of my components", operation="update"))
        self.assertEqual(outcome.context["operation"], "delete")
        self.assertEqual(outcome.candidates, ["c1", "c2", "c3"])

    def test_no_tool_call_without_client_id_asks_for_it(self) -> None:
        outcome = _run(_handler(text_reply("Which client?")).handle("which one is it"))
        self.assertEqual(outcome.code, "missing_identifier")
        self.assertEqual(outcome.message, "Which client?")

    def test_no_tool_call_with_known_client_lists_everything(self) -> None:
        outcome = _run(_handler(text_reply("")).handle("show me all components", client_id="6"))
        self.assertEqual(outcome.candidates, ["c1", "c2", "c3"])
