"""
pagepilot.config.dispatcher – dispatcher tuning from env.

Env vars: AGENT_DEFAULT_ROUTE, AGENT_LLM_TIMEOUT_SECONDS, AGENT_MAX_HISTORY_TURNS,
AGENT_FUZZY_THRESHOLD, AGENT_SYNTHESISE_REPLIES.
"""
from __future__ import annotations

import os
from typing import Any, Dict

from pagepilot.orchestrator.types import DispatcherConfig

_ENV = {
    "default_route": "AGENT_DEFAULT_ROUTE",
    "llm_timeout_seconds": "AGENT_LLM_TIMEOUT_SECONDS",
    "max_history_turns": "AGENT_MAX_HISTORY_TURNS",
    "fuzzy_threshold": "AGENT_FUZZY_THRESHOLD",
    "synthesise_replies": "AGENT_SYNTHESISE_REPLIES",
}


def load_dispatcher_config(**overrides: Any) -> DispatcherConfig:
    """Env values feed DispatcherConfig.from_dict(); overrides win. Unset keys keep defaults."""
    data: Dict[str, Any] = {}
    for attr, var in _ENV.items():
        raw = os.environ.get(var)
        if raw is not None and raw.strip():
            data[attr] = raw.strip()
    if data.get("llm_timeout_seconds", "").lower() in ("none", "0"):
        data["llm_timeout_seconds"] = None
    data.update({k: v for k, v in overrides.items() if v is not None})
    return DispatcherConfig.from_dict(data)
