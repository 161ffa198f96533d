"""
pagepilot.config.llm – which LLM provider to build at startup.

Env vars: LLM_PROVIDER, LLM_MODEL, LLM_TEMPERATURE, OPENAI_API_KEY, OPENAI_BASE_URL,
GEMINI_API_KEY (or GOOGLE_API_KEY).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

_DEFAULT_MODELS = {"openai": "gpt-4o", "gemini": "gemini-2.0-flash"}


@dataclass(frozen=True)
class LLMSettings:
    """Provider selection. ``provider=None`` means no key was found (no-op client)."""

    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.0

    def __post_init__(self) -> None:
        if self.provider is not None and self.provider not in _DEFAULT_MODELS:
            raise ValueError(
                f"LLM_PROVIDER must be one of {sorted(_DEFAULT_MODELS)}, got {self.provider!r}"
            )
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature!r}")

    @classmethod
    def from_env(cls) -> "LLMSettings":
        """Explicit LLM_PROVIDER wins; otherwise the first provider with a key."""
        openai_key = os.environ.get("OPENAI_API_KEY") or None
        gemini_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY") or None
        provider = (os.environ.get("LLM_PROVIDER") or "").strip().lower() or None
        if provider is None:
            provider = "openai" if openai_key else ("gemini" if gemini_key else None)
        api_key = {"openai": openai_key, "gemini": gemini_key}.get(provider or "")
        return cls(
            provider=provider,
            model=os.environ.get("LLM_MODEL") or None,
            api_key=api_key,
            base_url=os.environ.get("OPENAI_BASE_URL") or None,
            temperature=float(os.environ.get("LLM_TEMPERATURE", "0.0")),
        )

    def to_builder_config(self) -> Dict[str, Any]:
        """Config dict understood by the provider builders in LLMRegistry."""
        return {
            "model": self.model or _DEFAULT_MODELS.get(self.provider or "", ""),
            "api_key": self.api_key,
            "base_url": self.base_url,
            "temperature": self.temperature,
        }
