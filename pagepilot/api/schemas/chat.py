"""Pydantic v2 schemas for the Chat API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class TurnSchema(BaseModel):
    speaker: Literal["user", "agent"]
    text: str = Field(..., max_length=16000)


class PendingSelectionSchema(BaseModel):
    collection_id: str
    matched_ids: List[str] = Field(..., min_length=2)
    operation: str = "get"
    proposed_update: Dict[str, Any] = Field(default_factory=dict)
    tag_name: Optional[str] = None


class ChatRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)
    history: List[TurnSchema] = Field(default_factory=list)
    pending_selection: Optional[PendingSelectionSchema] = None
    client_id: Optional[str] = Field(default=None, max_length=64)

    @field_validator("text")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("text must not be blank")
        return v


class ChatResponse(BaseModel):
    reply: str
    history: List[TurnSchema]
    pending_selection: Optional[PendingSelectionSchema] = None
    route: Optional[str] = None
    status: str
    code: Optional[str] = None
    rejected_fields: List[str] = []
    candidates: List[str] = []
    payload: Dict[str, Any] = {}
    confidence: Optional[float] = None
    reasoning: Optional[str] = None
    total_ms: Optional[float] = None
