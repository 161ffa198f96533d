"""DisambiguationHandler: find the component a vague request refers to."""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pagepilot.core.exceptions import MissingIdentifierError, ProjectError
from pagepilot.orchestrator.actions import DISAMBIGUATION_ACTIONS
from pagepilot.orchestrator.fields.criteria import translate_criteria
from pagepilot.orchestrator.fields.resolver import FieldResolver
from pagepilot.orchestrator.fields.schemas import RECORD_SCHEMA
from pagepilot.orchestrator.handlers.base import BaseHandler, arg_map, arg_text
from pagepilot.orchestrator.handlers.record_handler import describe_component
from pagepilot.orchestrator.prompts import DISAMBIGUATION_SYSTEM_PROMPT
from pagepilot.orchestrator.types import (
    ConversationTurn,
    DispatcherConfig,
    HandlerOutcome,
    Operation,
)

if TYPE_CHECKING:
    from pagepilot.clients.llm.base import BaseLLMClient
    from pagepilot.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class DisambiguationHandler(BaseHandler):
    """0 matches -> offer the full list; 1 -> resolved; N -> numbered candidates."""

    name = "clarify"

    def __init__(
        self,
        llm: "BaseLLMClient",
        store: "RecordStore",
        *,
        config: Optional[DispatcherConfig] = None,
        resolver: Optional[FieldResolver] = None,
    ) -> None:
        super().__init__(llm, config=config)
        self._store = store
        self._resolver = resolver or FieldResolver(
            RECORD_SCHEMA, threshold=self._config.fuzzy_threshold
        )

    async def handle(
        self,
        text: str,
        *,
        history: Optional[List[ConversationTurn]] = None,
        client_id: Optional[str] = None,
        operation: Optional[str] = None,
        updates: Optional[Dict[str, Any]] = None,
        tag_name: Optional[str] = None,
        **context: Any,
    ) -> HandlerOutcome:
        carried = ""
        if operation:
            carried = (
                "\nThe user's pending request: "
                + json.dumps(
                    {"operation": operation, "updates": updates or {}, "tag_name": tag_name},
                    ensure_ascii=False,
                    default=str,
                )
            )
        system_prompt = DISAMBIGUATION_SYSTEM_PROMPT.format(context_section=carried)
        proposal = await self._propose(text, history, DISAMBIGUATION_ACTIONS, system_prompt)

        args: Dict[str, Any] = {}
        if proposal is not None and proposal.has_call:
            args = proposal.arguments
        elif not client_id:
            message = (proposal.text if proposal is not None else None) or (
                "Which client id should I look under? For example: \"my client id is 6\"."
            )
            return HandlerOutcome.needs_input(
                message,
                code="missing_identifier",
                context={"operation": operation, "updates": dict(updates or {}), "tag_name": tag_name},
            )

        op = Operation.parse(arg_text(args, "operation"), None) or Operation.parse(operation, None)
        search_context: Dict[str, Any] = {
            "client_id": arg_text(args, "client_id", "clientId") or client_id,
            "operation": op.value if op else None,
            "updates": arg_map(args, "updates") or dict(updates or {}),
            "tag_name": arg_text(args, "tag_name") or tag_name,
        }
        try:
            outcome = await self.search(
                search_context["client_id"], arg_map(args, "criteria"),
            )
        except ProjectError as exc:
            logger.info("DisambiguationHandler: search failed: %s", exc)
            outcome = self._outcome_for_error(exc)
        outcome.context = search_context
        return outcome

    async def search(self, client_id: Optional[str], criteria: Dict[str, Any]) -> HandlerOutcome:
        if not client_id:
            raise MissingIdentifierError(
                "client_id",
                hint="Which client id should I look under? For example: \"my client id is 6\".",
            )
        translation = translate_criteria(criteria, self._resolver)
        matches = await self._store.search(client_id, translation.predicates)
        logger.info(
            "DisambiguationHandler: client=%s criteria=%s -> %d match(es)",
            client_id, criteria, len(matches),
        )

        if not matches:
            described = ", ".join(f"{k} = {v!r}" for k, v in criteria.items()) or "your description"
            return HandlerOutcome.needs_input(
                f"No components found matching {described}. "
                "Would you like me to show all your components so you can pick one?",
                rejected_fields=translation.rejected,
                code="no_match",
            )
        if len(matches) == 1:
            component = matches[0]
            return HandlerOutcome.success(
                f"Found component {describe_component(component)}.",
                payload={"component_id": component["component_id"], "component": component},
                rejected_fields=translation.rejected,
                code="single_match",
            )

        lines = [f"{i}. {describe_component(c)}" for i, c in enumerate(matches, 1)]
        return HandlerOutcome.needs_input(
            f"I found {len(matches)} components. Please select one by number:\n" + "\n".join(lines),
            candidates=[c["component_id"] for c in matches],
            payload={"components": matches},
            rejected_fields=translation.rejected,
            code="multiple_matches",
        )
