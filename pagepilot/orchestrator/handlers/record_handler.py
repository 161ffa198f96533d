"""RecordHandler: list, show, create, edit, delete and secure page components."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional

from pagepilot.core.exceptions import MissingIdentifierError, NoOpUpdateError, ProjectError
from pagepilot.orchestrator.actions import RECORD_ACTIONS
from pagepilot.orchestrator.fields.compiler import apply_instructions, compile_updates
from pagepilot.orchestrator.fields.resolver import FieldResolver, ResolutionResult
from pagepilot.orchestrator.fields.schemas import RECORD_SCHEMA
from pagepilot.orchestrator.handlers.base import (
    CONFIRMATION_WORDS,
    BaseHandler,
    arg_map,
    arg_text,
    is_affirmative,
)
from pagepilot.orchestrator.prompts import RECORD_SYSTEM_PROMPT
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

# Explicit delete intent in the current turn; earlier turns never count.
DELETE_INTENT_WORDS: FrozenSet[str] = CONFIRMATION_WORDS | frozenset({"delete", "remove", "destroy"})


def describe_component(component: Dict[str, Any]) -> str:
    """One-line summary: ``<id> (<type>) "<title>"``."""
    props = component.get("props") or {}
    label = props.get("title") or props.get("caption") or props.get("text") or ""
    out = f"{component.get('component_id')} ({component.get('component_type')})"
    if label:
        out += f' "{label}"'
    if component.get("is_secured"):
        out += " [secured]"
    return out


def _format_changes(allowed: Dict[str, Any]) -> str:
    return ", ".join(f"{path} = {value!r}" for path, value in allowed.items())


class RecordHandler(BaseHandler):
    name = "record"

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
        **context: Any,
    ) -> HandlerOutcome:
        proposal = await self._propose(text, history, RECORD_ACTIONS, RECORD_SYSTEM_PROMPT)
        if proposal is None:
            return HandlerOutcome.error(
                "I couldn't work out what to do with that right now. Please try again.",
                code="llm_unavailable",
            )
        if not proposal.has_call:
            return HandlerOutcome.success(
                proposal.text or "Tell me which component you'd like to see or change.",
                code="no_action",
            )

        action = RECORD_ACTIONS.get(proposal.tool_name)
        if action is None or action.operation is None:
            logger.warning("RecordHandler: LLM proposed unknown action %r", proposal.tool_name)
            return HandlerOutcome.error(
                "I can't do that with components. Try listing, editing or deleting one.",
                code="unknown_action",
            )

        args = proposal.arguments
        return await self.execute(
            action.operation,
            client_id=arg_text(args, "client_id", "clientId") or client_id,
            component_id=arg_text(args, "component_id", "componentId"),
            updates=arg_map(args, "updates"),
            tag_name=arg_text(args, "tag_name", "group_title", "security_group"),
            component_type=arg_text(args, "component_type"),
            text=text,
        )

    async def execute(
        self,
        operation: Operation,
        *,
        client_id: Optional[str],
        component_id: Optional[str] = None,
        updates: Optional[Dict[str, Any]] = None,
        tag_name: Optional[str] = None,
        text: str = "",
        component_type: Optional[str] = None,
    ) -> HandlerOutcome:
        """Run one record operation without consulting the LLM."""
        context: Dict[str, Any] = {
            "operation": operation.value,
            "client_id": client_id,
            "component_id": component_id,
            "updates": dict(updates or {}),
            "tag_name": tag_name,
        }
        try:
            if not client_id:
                raise MissingIdentifierError(
                    "client_id",
                    hint="Which client id should I use? For example: \"my client id is 6\".",
                )
            if operation is Operation.GET:
                outcome = await self._get(client_id, component_id, text)
            elif operation is Operation.CREATE:
                outcome = await self._create(client_id, component_type, updates or {})
            elif operation is Operation.UPDATE:
                outcome = await self._update(client_id, component_id, updates or {}, context)
            elif operation is Operation.DELETE:
                outcome = await self._delete(client_id, component_id, text)
            else:
                outcome = await self._tag(operation, client_id, component_id, tag_name)
        except ProjectError as exc:
            logger.info("RecordHandler: %s failed: %s", operation.value, exc)
            outcome = self._outcome_for_error(exc)
        outcome.context = context
        return outcome

    # ── operations ───────────────────────────────────────────────────────

    async def _get(self, client_id: str, component_id: Optional[str], text: str) -> HandlerOutcome:
        if component_id:
            component = await self._store.fetch_one(client_id, component_id)
            fallback = f"Component {describe_component(component)}."
            message = await self._synthesise(text, component, fallback)
            return HandlerOutcome.success(message, payload={"component": component})

        components = await self._store.fetch_all(client_id)
        if not components:
            return HandlerOutcome.success(
                f"Client {client_id} has no components yet.", payload={"components": []},
            )
        lines = [f"{i}. {describe_component(c)}" for i, c in enumerate(components, 1)]
        fallback = f"Client {client_id} has {len(components)} components:\n" + "\n".join(lines)
        message = await self._synthesise(text, components, fallback)
        return HandlerOutcome.success(message, payload={"components": components})

    async def _create(
        self, client_id: str, component_type: Optional[str], updates: Dict[str, Any]
    ) -> HandlerOutcome:
        if not component_type:
            return HandlerOutcome.needs_input(
                "Please specify the type of component you want to create "
                "(cards, buttons, texts, images, headers, footers, links or music).",
                code="missing_component_type",
            )
        resolution = self._resolver.resolve_updates(updates)
        documents: Dict[str, Any] = {}
        if resolution.allowed:
            documents = apply_instructions({}, compile_updates(resolution.allowed, RECORD_SCHEMA))
        component = await self._store.create(
            client_id,
            component_type.strip().lower(),
            props=documents.get("props"),
            link_props=documents.get("link_props"),
            layout_json=documents.get("layout_json"),
        )
        message = f"Created component {describe_component(component)}."
        message += self._rejected_note(resolution)
        return HandlerOutcome.success(
            message, payload={"component": component}, rejected_fields=resolution.rejected,
        )

    async def _update(
        self,
        client_id: str,
        component_id: Optional[str],
        updates: Dict[str, Any],
        context: Dict[str, Any],
    ) -> HandlerOutcome:
        if not updates:
            raise NoOpUpdateError(
                "No fields given", hint="Tell me which field to change and the new value.",
            )
        resolution = self._resolver.resolve_updates(updates)
        if not resolution.allowed:
            return HandlerOutcome.needs_input(
                "None of those fields can be changed: "
                + ", ".join(resolution.rejected)
                + ". Tell me which field to update (for example title, caption or link).",
                rejected_fields=resolution.rejected,
                code="no_op",
            )
        instructions = compile_updates(resolution.allowed, RECORD_SCHEMA)
        # Remember canonical paths so a later selection replays exactly this change.
        context["updates"] = dict(resolution.allowed)

        if not component_id:
            return HandlerOutcome.needs_input(
                "Which component do you mean? Let me look it up.",
                needs_clarification=True,
                rejected_fields=resolution.rejected,
                code="ambiguous_subject",
            )

        await self._store.fetch_one(client_id, component_id)
        component = await self._store.apply_write(client_id, component_id, instructions)
        message = f"Updated component {component_id}: {_format_changes(resolution.allowed)}."
        message += self._rejected_note(resolution)
        return HandlerOutcome.success(
            message, payload={"component": component}, rejected_fields=resolution.rejected,
        )

    async def _delete(self, client_id: str, component_id: Optional[str], text: str) -> HandlerOutcome:
        if not component_id:
            return HandlerOutcome.needs_input(
                "Which component should I delete?",
                needs_clarification=True,
                code="ambiguous_subject",
            )
        component = await self._store.fetch_one(client_id, component_id)
        if not is_affirmative(text, DELETE_INTENT_WORDS):
            return HandlerOutcome.needs_input(
                f"This will permanently delete {describe_component(component)}. "
                f"Reply \"yes, delete {component_id}\" to confirm.",
                payload={"component": component},
                code="confirmation_required",
            )
        await self._store.remove(client_id, component_id)
        return HandlerOutcome.success(
            f"Component {component_id} has been permanently deleted.",
            payload={"component_id": component_id},
        )

    async def _tag(
        self,
        operation: Operation,
        client_id: str,
        component_id: Optional[str],
        tag_name: Optional[str],
    ) -> HandlerOutcome:
        if not tag_name:
            return HandlerOutcome.needs_input(
                "Which security group do you mean?", code="missing_tag_name",
            )
        if not component_id:
            return HandlerOutcome.needs_input(
                "Which component should I change?",
                needs_clarification=True,
                code="ambiguous_subject",
            )
        group = await self._store.find_tag(client_id, tag_name)
        if group is None:
            return HandlerOutcome.error(
                f"There is no security group called \"{tag_name}\" for client {client_id}.",
                code="tag_not_found",
            )

        if operation is Operation.ATTACH_TAG:
            result = await self._store.attach_tag(client_id, component_id, group["group_id"])
            payload = {"still_tagged": result.still_tagged, "is_secured": result.is_secured}
            if not result.changed:
                return HandlerOutcome.success(
                    f"Component {component_id} already has the \"{group['title']}\" security group.",
                    payload=payload,
                    code="already_attached",
                )
            return HandlerOutcome.success(
                f"Added the \"{group['title']}\" security group to component {component_id}.",
                payload=payload,
                code="attached",
            )

        result = await self._store.detach_tag(client_id, component_id, group["group_id"])
        payload = {"still_tagged": result.still_tagged, "is_secured": result.is_secured}
        if not result.changed:
            return HandlerOutcome.error(
                f"Component {component_id} does not have the \"{group['title']}\" security group.",
                payload=payload,
                code="not_attached",
            )
        return HandlerOutcome.success(
            f"Removed the \"{group['title']}\" security group from component {component_id}."
            + ("" if result.is_secured else " It is no longer secured."),
            payload=payload,
            code="detached",
        )

    @staticmethod
    def _rejected_note(resolution: ResolutionResult) -> str:
        if not resolution.rejected:
            return ""
        return " Ignored fields I can't change: " + ", ".join(resolution.rejected) + "."
