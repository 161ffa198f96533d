"""Dispatcher: route each message to a handler and thread ConversationState through.

States (derived from ``state.pending_selection``):
  Idle               classify -> record | style | clarify -> handler
  AwaitingSelection  the message is a 1-based index into the pending candidates

A record outcome flagged ``needs_clarification`` is re-routed to the
disambiguation handler within the same call. The dispatcher keeps no
per-conversation state; everything the next turn needs is in the returned
``ConversationState``.
"""
from __future__ import annotations

import logging
import re
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from pagepilot.orchestrator.classifiers.route_classifier import RouteClassifier
from pagepilot.orchestrator.handlers.base import BaseHandler
from pagepilot.orchestrator.handlers.disambiguation_handler import DisambiguationHandler
from pagepilot.orchestrator.handlers.record_handler import RecordHandler
from pagepilot.orchestrator.handlers.style_handler import StyleHandler
from pagepilot.orchestrator.types import (
    ConversationState,
    ConversationTurn,
    DispatcherConfig,
    DispatchMetrics,
    DispatchResult,
    HandlerOutcome,
    Operation,
    OutcomeStatus,
    PendingSelection,
    Route,
    RouteClassification,
)

if TYPE_CHECKING:
    from pagepilot.clients.llm.base import BaseLLMClient
    from pagepilot.services.record_store import RecordStore
    from pagepilot.services.style_store import StyleStore

logger = logging.getLogger(__name__)

_SELECTION_RE = re.compile(r"\s*(?:#|no\.?|number|option)?\s*(\d+)\s*[.)]?\s*", re.IGNORECASE)

_FALLBACK_REPLY = "Sorry, something went wrong while handling your request. Please try again."


def parse_selection(text: str) -> Optional[int]:
    """"2", "#2", "number 2" -> 2; anything else -> None."""
    m = _SELECTION_RE.fullmatch(text or "")
    return int(m.group(1)) if m else None


class Dispatcher:
    """Central entry point. Stateless between calls; safe to share across requests."""

    def __init__(
        self,
        llm: "BaseLLMClient",
        record_store: "RecordStore",
        style_store: "StyleStore",
        config: Optional[DispatcherConfig] = None,
        *,
        classifier: Optional[RouteClassifier] = None,
    ) -> None:
        self._config = config or DispatcherConfig()
        self._classifier = classifier or RouteClassifier(llm, self._config)
        self._record = RecordHandler(llm, record_store, config=self._config)
        self._clarify = DisambiguationHandler(llm, record_store, config=self._config)
        self._handlers: Dict[Route, BaseHandler] = {
            Route.RECORD: self._record,
            Route.STYLE: StyleHandler(llm, style_store, config=self._config),
            Route.CLARIFY: self._clarify,
        }

    @property
    def config(self) -> DispatcherConfig:
        return self._config

    async def process(
        self,
        text: str,
        state: Optional[ConversationState] = None,
        *,
        client_id: Optional[str] = None,
    ) -> DispatchResult:
        """One full turn: returns the reply and the state to send back next time.

        ``client_id`` is an optional caller-known client id used when the
        conversation does not name one. Never raises.
        """
        t_start = time.monotonic()
        state = state or ConversationState()
        history = list(state.history)
        metrics = DispatchMetrics()
        classification: Optional[RouteClassification] = None
        route: Optional[Route] = None
        pending = state.pending_selection

        try:
            if pending is not None:
                t_handler = time.monotonic()
                outcome, pending = await self._handle_selection(text, pending, history)
                metrics.handler_ms = (time.monotonic() - t_handler) * 1000
                route = Route.RECORD
            else:
                t_classify = time.monotonic()
                classification = await self._classifier.classify(text, conversation_history=history)
                metrics.classification_ms = (time.monotonic() - t_classify) * 1000

                t_handler = time.monotonic()
                route, outcome, pending, metrics.rerouted = await self._run_route(
                    classification.route, text, history, client_id,
                )
                metrics.handler_ms = (time.monotonic() - t_handler) * 1000
        except Exception:
            logger.exception("Dispatcher: unhandled error while processing a turn")
            outcome = HandlerOutcome.error(_FALLBACK_REPLY, code="internal_error")

        reply = outcome.message or _FALLBACK_REPLY
        new_history: List[ConversationTurn] = history + [
            {"speaker": "user", "text": text},
            {"speaker": "agent", "text": reply},
        ]
        metrics.total_ms = (time.monotonic() - t_start) * 1000
        logger.info(
            "Dispatcher: route=%s status=%s code=%s rerouted=%s awaiting=%s %.0fms",
            route.value if route else None,
            outcome.status.value,
            outcome.code,
            metrics.rerouted,
            pending is not None,
            metrics.total_ms,
        )
        return DispatchResult(
            reply=reply,
            state=ConversationState(history=new_history, pending_selection=pending),
            route=route,
            outcome=outcome,
            classification=classification,
            metrics=metrics,
        )

    # ── Idle ─────────────────────────────────────────────────────────────

    async def _run_route(
        self,
        route: Route,
        text: str,
        history: List[ConversationTurn],
        client_id: Optional[str],
    ) -> Tuple[Route, HandlerOutcome, Optional[PendingSelection], bool]:
        outcome = await self._handlers[route].handle(text, history=history, client_id=client_id)
        rerouted = False

        if route is Route.RECORD and outcome.needs_clarification:
            ctx = outcome.context
            logger.info("Dispatcher: record subject ambiguous; re-routing to clarify")
            rerouted = True
            route = Route.CLARIFY
            outcome = await self._clarify.handle(
                text,
                history=history,
                client_id=ctx.get("client_id") or client_id,
                operation=ctx.get("operation"),
                updates=ctx.get("updates"),
                tag_name=ctx.get("tag_name"),
            )

        if route is not Route.CLARIFY:
            return route, outcome, None, rerouted

        ctx = outcome.context
        if len(outcome.candidates) > 1:
            pending = PendingSelection(
                collection_id=str(ctx.get("client_id") or ""),
                matched_ids=list(outcome.candidates),
                operation=Operation.parse(ctx.get("operation"), Operation.GET),
                proposed_update=dict(ctx.get("updates") or {}),
                tag_name=ctx.get("tag_name"),
            )
            return route, outcome, pending, rerouted

        operation = Operation.parse(ctx.get("operation"), None)
        component_id = outcome.payload.get("component_id")
        if outcome.status is OutcomeStatus.SUCCESS and component_id and operation is not None:
            logger.info("Dispatcher: single match %s; running %s", component_id, operation.value)
            outcome = await self._record.execute(
                operation,
                client_id=ctx.get("client_id"),
                component_id=component_id,
                updates=ctx.get("updates"),
                tag_name=ctx.get("tag_name"),
                text=text,
            )
            route = Route.RECORD
        return route, outcome, None, rerouted

    # ── AwaitingSelection ────────────────────────────────────────────────

    async def _handle_selection(
        self,
        text: str,
        pending: PendingSelection,
        history: List[ConversationTurn],
    ) -> Tuple[HandlerOutcome, Optional[PendingSelection]]:
        index = parse_selection(text)
        component_id = pending.select(index) if index is not None else None
        if component_id is None:
            n = len(pending.matched_ids)
            logger.info("Dispatcher: invalid selection %r (1..%d)", text, n)
            return (
                HandlerOutcome.needs_input(
                    f"Please reply with a number between 1 and {n}.",
                    candidates=list(pending.matched_ids),
                    code="invalid_selection",
                ),
                pending,
            )

        logger.info(
            "Dispatcher: selection %d -> %s; running %s", index, component_id, pending.operation.value,
        )
        outcome = await self._record.execute(
            pending.operation,
            client_id=pending.collection_id,
            component_id=component_id,
            updates=dict(pending.proposed_update),
            tag_name=pending.tag_name,
            text=text,
        )
        return outcome, None

    # Exposed for the HTTP layer's health/debug views.
    def describe(self) -> Dict[str, Any]:
        return {"routes": [r.value for r in self._handlers], "config": self._config.to_dict()}
