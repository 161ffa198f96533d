"""Abstract base handler plus the LLM plumbing every handler shares."""
from __future__ import annotations

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Dict, FrozenSet, List, Mapping, Optional, TypeVar

from pagepilot.core.exceptions import (
    MissingIdentifierError,
    NoOpUpdateError,
    ProjectError,
    StoreError,
    SubjectNotFoundError,
    ValidationError,
)
from pagepilot.orchestrator.prompts import SYNTHESIS_PROMPT, SYNTHESIS_SYSTEM_PROMPT
from pagepilot.orchestrator.types import ConversationTurn, DispatcherConfig, HandlerOutcome

if TYPE_CHECKING:
    from pagepilot.clients.llm.base import BaseLLMClient, FunctionCallResult, LLMMessage
    from pagepilot.orchestrator.actions import ActionCatalog

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIRMATION_WORDS: FrozenSet[str] = frozenset({
    "yes", "yeah", "yep", "confirm", "confirmed", "sure", "ok", "okay",
    "go ahead", "proceed", "do it", "apply", "apply it",
})

# Any of these vetoes a confirmation, wherever it appears in the turn.
NEGATION_WORDS: FrozenSet[str] = frozenset({
    "no", "nope", "nah", "not", "don't", "dont", "do not", "never",
    "cancel", "stop", "wait", "hold on",
})

_GENERIC_STORE_MESSAGE = "Something went wrong while saving. Please try again in a moment."


def _contains_any(low: str, words: FrozenSet[str]) -> bool:
    return any(re.search(rf"\b{re.escape(w)}\b", low) for w in words)


def is_affirmative(text: str, words: FrozenSet[str] = CONFIRMATION_WORDS) -> bool:
    """True when *text* contains one of *words* and no negation.

    "no, don't apply it" and "I'm not sure" are refusals even though they
    contain "apply" and "sure".
    """
    low = (text or "").lower().replace("’", "'")
    if _contains_any(low, NEGATION_WORDS):
        return False
    return _contains_any(low, words)


def arg_text(args: Mapping[str, Any], *keys: str) -> Optional[str]:
    """First non-empty argument among *keys*, as a stripped string."""
    for key in keys:
        value = args.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def arg_map(args: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = args.get(key)
    return dict(value) if isinstance(value, dict) else {}


class BaseHandler(ABC):
    """Every handler implements ``handle()`` and returns a HandlerOutcome; nothing raises past it."""

    name: str = "base"

    def __init__(self, llm: "BaseLLMClient", *, config: Optional[DispatcherConfig] = None) -> None:
        self._llm = llm
        self._config = config or DispatcherConfig()

    @abstractmethod
    async def handle(
        self,
        text: str,
        *,
        history: Optional[List[ConversationTurn]] = None,
        **context: Any,
    ) -> HandlerOutcome:
        ...

    # ── LLM helpers ──────────────────────────────────────────────────────

    def _llm_history(self, history: Optional[List[ConversationTurn]]) -> List["LLMMessage"]:
        limit = self._config.max_history_turns
        if not history or limit == 0:
            return []
        return [
            {
                "role": "assistant" if t.get("speaker") == "agent" else "user",
                "content": t.get("text", ""),
            }
            for t in history[-limit:]
            if t.get("text")
        ]

    async def _with_timeout(self, coro: Awaitable[T]) -> T:
        timeout = self._config.llm_timeout_seconds
        if timeout is not None and timeout > 0:
            return await asyncio.wait_for(coro, timeout=timeout)
        return await coro

    async def _propose(
        self,
        text: str,
        history: Optional[List[ConversationTurn]],
        catalog: "ActionCatalog",
        system_prompt: str,
    ) -> Optional["FunctionCallResult"]:
        """Ask the LLM for one action; None when the call fails or times out."""
        try:
            result = await self._with_timeout(
                self._llm.function_call(
                    text,
                    catalog.get_schema_for_llm(),
                    system_prompt=system_prompt,
                    conversation_history=self._llm_history(history),
                )
            )
        except asyncio.TimeoutError:
            logger.warning("%s: action proposal timed out", type(self).__name__)
            return None
        except Exception as exc:
            logger.error("%s: action proposal failed: %s", type(self).__name__, exc)
            return None
        if result is not None and result.has_call:
            logger.info(
                "%s: LLM chose %s args=%s", type(self).__name__, result.tool_name, result.arguments,
            )
        return result

    async def _synthesise(self, query: str, result: Any, fallback: str) -> str:
        """Phrase *result* for the user; *fallback* on any failure or when disabled."""
        if not self._config.synthesise_replies:
            return fallback
        prompt = SYNTHESIS_PROMPT.format(
            query=query,
            result=json.dumps(result, ensure_ascii=False, default=str),
        )
        try:
            answer = await self._with_timeout(self._llm.chat([
                {"role": "system", "content": SYNTHESIS_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]))
        except asyncio.TimeoutError:
            logger.warning("%s: synthesis timed out; using deterministic reply", type(self).__name__)
            return fallback
        except Exception as exc:
            logger.error("%s: synthesis failed: %s", type(self).__name__, exc)
            return fallback
        return (answer or "").strip() or fallback

    # ── Error mapping ────────────────────────────────────────────────────

    @staticmethod
    def _outcome_for_error(exc: ProjectError, **kwargs: Any) -> HandlerOutcome:
        if isinstance(exc, MissingIdentifierError):
            return HandlerOutcome.needs_input(exc.user_message, code="missing_identifier", **kwargs)
        if isinstance(exc, NoOpUpdateError):
            return HandlerOutcome.needs_input(exc.user_message, code="no_op", **kwargs)
        if isinstance(exc, ValidationError):
            return HandlerOutcome.needs_input(exc.user_message, code="invalid_request", **kwargs)
        if isinstance(exc, SubjectNotFoundError):
            return HandlerOutcome.error(exc.user_message, code="not_found", **kwargs)
        if isinstance(exc, StoreError):
            logger.error("Store failure: %s", exc.to_dict(include_cause=True))
            return HandlerOutcome.error(_GENERIC_STORE_MESSAGE, code="store_error", **kwargs)
        logger.error("Unhandled project error: %s", exc.to_dict())
        return HandlerOutcome.error(exc.user_message, code=exc.code.lower(), **kwargs)
