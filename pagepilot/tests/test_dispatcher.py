"""Dispatcher tests: routing, re-routing to clarify, and the selection state machine."""
from __future__ import annotations

import asyncio
import json
import unittest

from pagepilot.orchestrator.dispatcher import Dispatcher, parse_selection
from pagepilot.orchestrator.fields.compiler import SetDocumentKey
from pagepilot.orchestrator.types import (
    ConversationState,
    DispatcherConfig,
    Operation,
    OutcomeStatus,
    PendingSelection,
    Route,
)
from pagepilot.tests.doubles import (
    InMemoryRecordStore,
    InMemoryStyleStore,
    ScriptedLLM,
    component,
    tool,
)

CONFIG = DispatcherConfig(synthesise_replies=False, llm_timeout_seconds=1.0)


def _run(coro):
    return asyncio.run(coro)


def _route(route: str, confidence: float = 0.9) -> str:
    return json.dumps({"route": route, "confidence": confidence, "reasoning": "test"})


def _record_store():
    return InMemoryRecordStore([
        component("c1", "cards", 0, title="Shop"),
        component("c2", "cards", 1, title="About", caption="Keep me"),
        component("c3", "buttons", 2, title="Contact"),
    ])


class TestParseSelection(unittest.TestCase):
    def test_accepted_forms(self) -> None:
        for text, expected in (("2", 2), (" #3 ", 3), ("number 1", 1), ("option 4.", 4), ("No. 2", 2)):
            self.assertEqual(parse_selection(text), expected, text)

    def test_rejected_forms(self) -> None:
        for text in ("", "two", "2 and 3", "the second one"):
            self.assertIsNone(parse_selection(text), text)


class TestDispatcherEndToEnd(unittest.TestCase):
    def test_update_without_subject_then_list_then_select(self) -> None:
        store = _record_store()
        llm = ScriptedLLM(
            completions=[_route("record"), _route("clarify")],
            calls=[
                tool("update_component", client_id="6", updates={"title": "Home"}),
                tool("search_components", client_id="6", criteria={"component_type": "card"}),
                tool(
                    "search_components",
                    client_id="6",
                    criteria={},
                    operation="update",
                    updates={"title": "Home"},
                ),
            ],
        )
        dispatcher = Dispatcher(llm, store, InMemoryStyleStore(), CONFIG)

        first = _run(dispatcher.process("update my card component title to Home"))
        self.assertEqual(first.outcome.status, OutcomeStatus.NEEDS_INPUT)
        self.assertTrue(first.metrics.rerouted)
        self.assertFalse(first.state.awaiting_selection)

        second = _run(dispatcher.process("show me all components", first.state))
        self.assertEqual(second.route, Route.CLARIFY)
        self.assertTrue(second.state.awaiting_selection)
        self.assertEqual(second.state.pending_selection.matched_ids, ["c1", "c2", "c3"])
        self.assertEqual(second.state.pending_selection.operation, Operation.UPDATE)

        third = _run(dispatcher.process("2", second.state))
        self.assertEqual(third.outcome.status, OutcomeStatus.SUCCESS)
        self.assertFalse(third.state.awaiting_selection)
        self.assertEqual(store.writes, [("6", "c2", [SetDocumentKey("props", "title", "Home")])])
        self.assertEqual(store.rows["c2"]["props"], {"title": "Home", "caption": "Keep me"})
        self.assertEqual(len(third.state.history), 6)
        self.assertEqual(third.state.history[-2], {"speaker": "user", "text": "2"})

    def test_style_change_confirmed_on_second_turn(self) -> None:
        style_store = InMemoryStyleStore({
            "6": {"header_design": {"Layout": "classic", "social-icon-style": "stroked"}},
        })
        update = tool("update_design", client_id="6", updates={"social icon style": "solid"})
        llm = ScriptedLLM(completions=[_route("style"), _route("style")], calls=[update, update])
        dispatcher = Dispatcher(llm, InMemoryRecordStore(), style_store, CONFIG)

        first = _run(dispatcher.process("change social icon style to solid"))
        self.assertEqual(first.outcome.code, "confirmation_required")
        self.assertEqual(style_store.writes, [])

        second = _run(dispatcher.process("yes", first.state))
        self.assertEqual(second.outcome.code, "applied")
        self.assertEqual(
            style_store.writes,
            [("6", [SetDocumentKey("header_design", "social-icon-style", "solid")])],
        )


class TestDispatcherSelection(unittest.TestCase):
    def _pending_state(self) -> ConversationState:
        return ConversationState(
            history=[{"speaker": "agent", "text": "I found 2 components. Please select one by number:"}],
            pending_selection=PendingSelection(
                collection_id="6",
                matched_ids=["c1", "c2"],
                operation=Operation.UPDATE,
                proposed_update={"props.title": "Home"},
            ),
        )

    def test_out_of_range_keeps_state_and_calls_nothing(self) -> None:
        store = _record_store()
        llm = ScriptedLLM()
        state = self._pending_state()
        result = _run(Dispatcher(llm, store, InMemoryStyleStore(), CONFIG).process("5", state))

        self.assertEqual(result.outcome.code, "invalid_selection")
        self.assertIn("between 1 and 2", result.reply)
        self.assertEqual(result.state.pending_selection, state.pending_selection)
        self.assertEqual(store.writes, [])
        self.assertEqual(llm.prompts, [])

    def test_non_numeric_reply_keeps_state(self) -> None:
        result = _run(
            Dispatcher(ScriptedLLM(), _record_store(), InMemoryStyleStore(), CONFIG).process(
                "the shop one", self._pending_state()
            )
        )
        self.assertTrue(result.state.awaiting_selection)

    def test_selection_of_a_deleted_component_returns_to_idle(self) -> None:
        store = _record_store()
        del store.rows["c1"]
        result = _run(
            Dispatcher(ScriptedLLM(), store, InMemoryStyleStore(), CONFIG).process("1", self._pending_state())
        )
        self.assertEqual(result.outcome.code, "not_found")
        self.assertFalse(result.state.awaiting_selection)

    def test_get_selection_reads_component(self) -> None:
        state = ConversationState(
            pending_selection=PendingSelection(collection_id="6", matched_ids=["c1", "c3"]),
        )
        result = _run(
            Dispatcher(ScriptedLLM(), _record_store(), InMemoryStyleStore(), CONFIG).process("2", state)
        )
        self.assertEqual(result.outcome.payload["component"]["component_id"], "c3")


class TestDispatcherRouting(unittest.TestCase):
    def test_single_match_runs_the_carried_operation(self) -> None:
        store = _record_store()
        llm = ScriptedLLM(
            completions=[_route("clarify")],
            calls=[
                tool(
                    "search_components",
                    client_id="6",
                    criteria={"title": "contact"},
                    operation="update",
                    updates={"caption": "Say hi"},
                ),
            ],
        )
        result = _run(Dispatcher(llm, store, InMemoryStyleStore(), CONFIG).process("caption the contact one"))

        self.assertEqual(result.route, Route.RECORD)
        self.assertEqual(result.outcome.status, OutcomeStatus.SUCCESS)
        self.assertFalse(result.state.awaiting_selection)
        self.assertEqual(store.writes, [("6", "c3", [SetDocumentKey("props", "caption", "Say hi")])])

    def test_classifier_failure_uses_default_route(self) -> None:
        llm = ScriptedLLM(
            completions=[RuntimeError("down")],
            calls=[tool("get_component", client_id="6")],
        )
        result = _run(Dispatcher(llm, _record_store(), InMemoryStyleStore(), CONFIG).process("hi"))

        self.assertEqual(result.route, Route.RECORD)
        self.assertEqual(result.classification.confidence, 0.0)

    def test_unexpected_error_still_returns_a_reply(self) -> None:
        class BrokenStore(InMemoryRecordStore):
            async def fetch_all(self, client_id):
                raise RuntimeError("connection reset")

        llm = ScriptedLLM(completions=[_route("record")], calls=[tool("get_component", client_id="6")])
        state = ConversationState(history=[{"speaker": "user", "text": "earlier"}])
        result = _run(Dispatcher(llm, BrokenStore(), InMemoryStyleStore(), CONFIG).process("list", state))

        self.assertEqual(result.outcome.code, "internal_error")
        self.assertTrue(result.reply)
        self.assertEqual(len(result.state.history), 3)

    def test_history_is_trimmed_for_the_llm(self) -> None:
        config = DispatcherConfig(synthesise_replies=False, llm_timeout_seconds=1.0, max_history_turns=2)
        llm = ScriptedLLM(completions=[_route("record")], calls=[tool("get_component", client_id="6")])
        history = [{"speaker": "user", "text": f"turn {i}"} for i in range(5)]
        _run(Dispatcher(llm, _record_store(), InMemoryStyleStore(), config).process(
            "list", ConversationState(history=history),
        ))
        self.assertEqual([m["content"] for m in llm.histories[0]], ["turn 3", "turn 4"])
