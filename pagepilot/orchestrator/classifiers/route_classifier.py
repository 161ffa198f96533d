"""Route classifier: one LLM call picks record, style or clarify."""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, List, Optional

from pagepilot.orchestrator.prompts import ROUTE_CLASSIFICATION_PROMPT
from pagepilot.orchestrator.types import (
    ConversationTurn,
    DispatcherConfig,
    Route,
    RouteClassification,
)

if TYPE_CHECKING:
    from pagepilot.clients.llm.base import BaseLLMClient

logger = logging.getLogger(__name__)

_THINKING_RE = re.compile(r"<thinking>(.*?)</thinking>", re.DOTALL)
_ROUTE_OBJECT_RE = re.compile(r'\{[^{}]*"route"[^{}]*\}', re.DOTALL)


class RouteClassifier:
    """Always returns exactly one route; falls back to ``default_route``."""

    def __init__(self, llm: "BaseLLMClient", config: DispatcherConfig) -> None:
        self._llm = llm
        self._config = config

    async def classify(
        self,
        query: str,
        *,
        conversation_history: Optional[List[ConversationTurn]] = None,
    ) -> RouteClassification:
        context_section = ""
        limit = self._config.max_history_turns
        if conversation_history and limit:
            lines = []
            for t in conversation_history[-limit:]:
                text = (t.get("text") or "").strip()
                if text:
                    lines.append(f"{t.get('speaker', 'user')}: {text[:200]}")
            if lines:
                context_section = "Recent conversation:\n" + "\n".join(lines) + "\n"

        prompt = ROUTE_CLASSIFICATION_PROMPT.format(context_section=context_section, query=query)

        try:
            coro = self._llm.complete(prompt)
            if self._config.llm_timeout_seconds is not None and self._config.llm_timeout_seconds > 0:
                coro = asyncio.wait_for(coro, timeout=self._config.llm_timeout_seconds)
            raw = await coro
        except asyncio.TimeoutError:
            logger.warning(
                "RouteClassifier: classification timed out (%.0fs)",
                self._config.llm_timeout_seconds or 0,
            )
            return self._fallback("LLM timeout")
        except Exception as exc:
            logger.error("RouteClassifier: classification failed: %s", exc)
            return self._fallback(f"LLM error: {exc.__class__.__name__}")

        return self._parse(raw, self._config.default_route)

    def _fallback(self, reason: str) -> RouteClassification:
        return RouteClassification(route=self._config.default_route, confidence=0.0, reasoning=reason)

    @staticmethod
    def _parse(raw: str, default_route: Route = Route.RECORD) -> RouteClassification:
        thinking: Optional[str] = None
        m = _THINKING_RE.search(raw or "")
        if m:
            thinking = m.group(1).strip()
            json_candidate = raw[m.end():].strip()
        else:
            json_candidate = (raw or "").strip()

        if json_candidate.startswith("```"):
            json_candidate = "\n".join(
                line for line in json_candidate.splitlines()
                if not line.strip().startswith("```")
            ).strip()

        data: dict = {}
        try:
            data = json.loads(json_candidate)
        except json.JSONDecodeError:
            fallback = _ROUTE_OBJECT_RE.search(raw or "")
            if fallback:
                try:
                    data = json.loads(fallback.group())
                except json.JSONDecodeError:
                    pass
        if not isinstance(data, dict) or not data:
            logger.warning("RouteClassifier: could not parse JSON from: %s", (raw or "")[:300])
            return RouteClassification(
                route=default_route, confidence=0.0, reasoning="JSON parse error", thinking=thinking,
            )

        try:
            route = Route(str(data.get("route", "")).lower().strip())
        except ValueError:
            logger.warning("RouteClassifier: unknown route %r, using %s", data.get("route"), default_route.value)
            route = default_route

        try:
            confidence = float(data.get("confidence", 0.5))
        except (TypeError, ValueError):
            confidence = 0.5
        confidence = max(0.0, min(confidence, 1.0))

        return RouteClassification(
            route=route,
            confidence=confidence,
            reasoning=str(data.get("reasoning", "")),
            thinking=thinking,
        )
