"""StyleHandler: show and change a client's page design.

Changes follow restate-then-confirm. The first ``update_design`` call fetches
the current design and replies with one line per setting::

    - header_design.social-icon-style: "stroked" → "solid"

The write happens only when the previous agent turn carries the same lines
and the current turn is affirmative.
"""
from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from pagepilot.core.exceptions import MissingIdentifierError, NoOpUpdateError, ProjectError
from pagepilot.orchestrator.actions import STYLE_ACTIONS
from pagepilot.orchestrator.fields.compiler import compile_updates
from pagepilot.orchestrator.fields.resolver import FieldResolver
from pagepilot.orchestrator.fields.schemas import (
    DESIGN_OPTIONS,
    OPTION_EXPLANATIONS,
    STYLE_SCHEMA,
    match_option,
)
from pagepilot.orchestrator.handlers.base import BaseHandler, arg_map, arg_text, is_affirmative
from pagepilot.orchestrator.prompts import STYLE_SYSTEM_PROMPT
from pagepilot.orchestrator.types import ConversationTurn, DispatcherConfig, HandlerOutcome

if TYPE_CHECKING:
    from pagepilot.clients.llm.base import BaseLLMClient
    from pagepilot.services.style_store import StyleStore

logger = logging.getLogger(__name__)

Change = Tuple[str, Any, Any]
"""(canonical path, current value, new value)"""

_RESTATEMENT_RE = re.compile(r"^- (?P<path>[^:\s]+): .* → (?P<new>.+)$")
CONFIRM_QUESTION = "Shall I apply this change? (yes/no)"


def _render(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def restatement_lines(changes: List[Change]) -> List[str]:
    return [f"- {path}: {_render(current)} → {_render(new)}" for path, current, new in changes]


def parse_restatement(text: str) -> Dict[str, str]:
    """Path -> rendered new value for every restatement line in *text*."""
    out: Dict[str, str] = {}
    for line in (text or "").splitlines():
        m = _RESTATEMENT_RE.match(line.strip())
        if m:
            out[m.group("path")] = m.group("new").strip()
    return out


def _last_agent_text(history: Optional[List[ConversationTurn]]) -> str:
    for turn in reversed(history or []):
        if turn.get("speaker") == "agent":
            return turn.get("text", "")
    return ""


def _flatten(updates: Dict[str, Any]) -> Dict[str, Any]:
    """``{"card_design": {"radius": "full"}}`` -> ``{"card_design.radius": "full"}``."""
    flat: Dict[str, Any] = {}
    for path, value in updates.items():
        if "." not in path and path in STYLE_SCHEMA.document_columns and isinstance(value, dict):
            for key, sub in value.items():
                flat[f"{path}.{key}"] = sub
        else:
            flat[path] = value
    return flat


def _current_value(design: Dict[str, Any], path: str) -> Any:
    column, _, key = path.partition(".")
    doc = design.get(column)
    if not key:
        return doc
    return doc.get(key) if isinstance(doc, dict) else None


def describe_options(path: str) -> str:
    explanations = OPTION_EXPLANATIONS.get(path, {})
    return "\n".join(
        f"- {opt}: {explanations[opt]}" if opt in explanations else f"- {opt}"
        for opt in DESIGN_OPTIONS.get(path, ())
    )


class StyleHandler(BaseHandler):
    name = "style"

    def __init__(
        self,
        llm: "BaseLLMClient",
        store: "StyleStore",
        *,
        config: Optional[DispatcherConfig] = None,
        resolver: Optional[FieldResolver] = None,
    ) -> None:
        super().__init__(llm, config=config)
        self._store = store
        self._resolver = resolver or FieldResolver(
            STYLE_SCHEMA, threshold=self._config.fuzzy_threshold
        )

    async def handle(
        self,
        text: str,
        *,
        history: Optional[List[ConversationTurn]] = None,
        client_id: Optional[str] = None,
        **context: Any,
    ) -> HandlerOutcome:
        proposal = await self._propose(text, history, STYLE_ACTIONS, STYLE_SYSTEM_PROMPT)
        if proposal is None:
            return HandlerOutcome.error(
                "I couldn't work out what to do with that right now. Please try again.",
                code="llm_unavailable",
            )
        if not proposal.has_call:
            return HandlerOutcome.success(
                proposal.text or "Tell me what you'd like to change about your design.",
                code="no_action",
            )

        args = proposal.arguments
        client_id = arg_text(args, "client_id", "clientId") or client_id
        try:
            if not client_id:
                raise MissingIdentifierError(
                    "client_id",
                    hint="Which client id should I use? For example: \"my client id is 6\".",
                )
            if proposal.tool_name == "get_design":
                outcome = await self._get(client_id, text)
            elif proposal.tool_name == "update_design":
                outcome = await self._update(client_id, arg_map(args, "updates"), text, history)
            else:
                logger.warning("StyleHandler: LLM proposed unknown action %r", proposal.tool_name)
                outcome = HandlerOutcome.error(
                    "I can show or change your design. What would you like to do?",
                    code="unknown_action",
                )
        except ProjectError as exc:
            logger.info("StyleHandler: %s failed: %s", proposal.tool_name, exc)
            outcome = self._outcome_for_error(exc)
        outcome.context = {"client_id": client_id, "action": proposal.tool_name}
        return outcome

    async def _get(self, client_id: str, text: str) -> HandlerOutcome:
        design = await self._store.fetch(client_id)
        lines = []
        for column in sorted(STYLE_SCHEMA.document_columns):
            doc = design.get(column) or {}
            if doc:
                settings = ", ".join(f"{k}={_render(v)}" for k, v in sorted(doc.items()))
                lines.append(f"- {column}: {settings}")
        for key in ("banner_media_url", "background_media_url"):
            if design.get(key):
                lines.append(f"- {key}: {design[key]}")
        fallback = f"Current design for client {client_id}:\n" + ("\n".join(lines) or "(empty)")
        message = await self._synthesise(text, design, fallback)
        return HandlerOutcome.success(message, payload={"design": design})

    async def _update(
        self,
        client_id: str,
        updates: Dict[str, Any],
        text: str,
        history: Optional[List[ConversationTurn]],
    ) -> HandlerOutcome:
        if not updates:
            raise NoOpUpdateError(
                "No settings given", hint="Tell me which design setting to change and the new value.",
            )
        resolution = self._resolver.resolve_updates(_flatten(updates))
        allowed = _flatten(resolution.allowed)
        if not allowed:
            return HandlerOutcome.needs_input(
                "I don't recognise these design settings: "
                + ", ".join(resolution.rejected)
                + ". Try for example layout, social icon style, card radius or button style.",
                rejected_fields=resolution.rejected,
                code="no_op",
            )

        for path, value in list(allowed.items()):
            option = match_option(path, value)
            if option is None:
                return HandlerOutcome.needs_input(
                    f"{_render(value)} is not a valid value for {path}. Choose one of:\n"
                    + describe_options(path),
                    payload={"path": path, "options": list(DESIGN_OPTIONS[path])},
                    rejected_fields=resolution.rejected,
                    code="invalid_option",
                )
            if path in DESIGN_OPTIONS:
                allowed[path] = option

        design = await self._store.fetch(client_id)
        changes: List[Change] = [
            (path, _current_value(design, path), value) for path, value in allowed.items()
        ]
        if all(current == new for _, current, new in changes):
            return HandlerOutcome.success(
                "Your design already uses "
                + ", ".join(f"{path} = {_render(new)}" for path, _, new in changes)
                + ". Nothing to change.",
                payload={"design": design},
                code="unchanged",
            )

        if is_affirmative(text) and self._confirmed(history, changes):
            instructions = compile_updates(allowed, STYLE_SCHEMA)
            updated = await self._store.apply_write(client_id, instructions)
            logger.info("StyleHandler: applied %d change(s) for client %s", len(instructions), client_id)
            return HandlerOutcome.success(
                "Done. Updated "
                + ", ".join(f"{path} to {_render(new)}" for path, _, new in changes)
                + ".",
                payload={"design": updated},
                rejected_fields=resolution.rejected,
                code="applied",
            )

        if is_affirmative(text):
            logger.warning(
                "StyleHandler: update for client %s arrived without a matching restatement", client_id,
            )
        message = "Here is the change I'll make:\n" + "\n".join(restatement_lines(changes))
        for path, _, new in changes:
            explanation = OPTION_EXPLANATIONS.get(path, {}).get(new)
            if explanation:
                message += f"\n({new}: {explanation})"
        message += f"\n{CONFIRM_QUESTION}"
        return HandlerOutcome.needs_input(
            message,
            payload={"pending_changes": {path: new for path, _, new in changes}},
            rejected_fields=resolution.rejected,
            code="confirmation_required",
        )

    @staticmethod
    def _confirmed(history: Optional[List[ConversationTurn]], changes: List[Change]) -> bool:
        restated = parse_restatement(_last_agent_text(history))
        if set(restated) != {path for path, _, _ in changes}:
            return False
        return all(restated[path] == _render(new) for path, _, new in changes)
