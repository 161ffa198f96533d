"""Core data structures for the Dispatcher layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ConversationTurn = Dict[str, str]
"""A single turn: {"speaker": "user" | "agent", "text": "..."}."""


class Route(str, Enum):
    """The three routes the classifier may choose."""
    RECORD = "record"
    STYLE = "style"
    CLARIFY = "clarify"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    NEEDS_INPUT = "needs_input"
    ERROR = "error"


class Operation(str, Enum):
    """Record operations a pending selection or a re-route can carry."""
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ATTACH_TAG = "attach_tag"
    DETACH_TAG = "detach_tag"

    @classmethod
    def parse(cls, raw: Any, default: "Operation" = None) -> Optional["Operation"]:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return default


@dataclass
class DispatcherConfig:
    """User-configurable dispatcher behaviour."""

    default_route: Route = Route.RECORD
    """Route used when the classifier times out or returns something unparseable."""

    llm_timeout_seconds: Optional[float] = 60.0
    """Timeout for every LLM call (routing, action proposal, reply synthesis). None = no timeout."""

    max_history_turns: int = 10
    """Max number of turns replayed into the LLM. 0 = no history."""

    fuzzy_threshold: float = 0.3
    """Maximum normalised distance accepted by the field resolvers."""

    synthesise_replies: bool = True
    """Let the LLM phrase read results; False keeps the deterministic text."""

    def __post_init__(self) -> None:
        if not 0.0 <= self.fuzzy_threshold < 1.0:
            raise ValueError(f"fuzzy_threshold must be within [0, 1), got {self.fuzzy_threshold!r}")
        if self.max_history_turns < 0:
            raise ValueError("max_history_turns must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_route": self.default_route.value,
            "llm_timeout_seconds": self.llm_timeout_seconds,
            "max_history_turns": self.max_history_turns,
            "fuzzy_threshold": self.fuzzy_threshold,
            "synthesise_replies": self.synthesise_replies,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "DispatcherConfig":
        """Load from a dict (env or JSON). Missing or invalid keys use defaults."""
        if not data:
            return cls()
        try:
            default_route = Route(str(data.get("default_route", "record")).lower())
        except ValueError:
            default_route = Route.RECORD
        timeout = data.get("llm_timeout_seconds", 60.0)
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError):
                timeout = 60.0
        synth = data.get("synthesise_replies", True)
        if isinstance(synth, str):
            synth = synth.strip().lower() in ("1", "true", "yes")
        return cls(
            default_route=default_route,
            llm_timeout_seconds=timeout,
            max_history_turns=int(data.get("max_history_turns", 10)),
            fuzzy_threshold=float(data.get("fuzzy_threshold", 0.3)),
            synthesise_replies=bool(synth),
        )


@dataclass
class RouteClassification:
    """Output of the route classifier."""

    route: Route
    confidence: float = 1.0
    reasoning: Optional[str] = None
    thinking: Optional[str] = None


@dataclass
class PendingSelection:
    """An ambiguous request waiting for the user to pick one of ``matched_ids``."""

    collection_id: str
    matched_ids: List[str]
    operation: Operation = Operation.GET
    proposed_update: Dict[str, Any] = field(default_factory=dict)
    tag_name: Optional[str] = None

    def __post_init__(self) -> None:
        if len(self.matched_ids) < 2:
            raise ValueError("a pending selection needs at least two candidates")

    def select(self, index: int) -> Optional[str]:
        """1-based lookup; None when out of range."""
        if 1 <= index <= len(self.matched_ids):
            return self.matched_ids[index - 1]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "matched_ids": list(self.matched_ids),
            "operation": self.operation.value,
            "proposed_update": dict(self.proposed_update),
            "tag_name": self.tag_name,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PendingSelection"]:
        if not data or len(data.get("matched_ids") or []) < 2:
            return None
        return cls(
            collection_id=str(data.get("collection_id") or ""),
            matched_ids=[str(i) for i in data["matched_ids"]],
            operation=Operation.parse(data.get("operation"), Operation.GET),
            proposed_update=dict(data.get("proposed_update") or {}),
            tag_name=data.get("tag_name") or None,
        )


@dataclass
class ConversationState:
    """Everything the caller must persist and send back on the next turn."""

    history: List[ConversationTurn] = field(default_factory=list)
    pending_selection: Optional[PendingSelection] = None

    @property
    def awaiting_selection(self) -> bool:
        return self.pending_selection is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "history": [dict(t) for t in self.history],
            "pending_selection": (
                self.pending_selection.to_dict() if self.pending_selection else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConversationState":
        if not data:
            return cls()
        history = [
            {"speaker": str(t.get("speaker", "user")), "text": str(t.get("text", ""))}
            for t in data.get("history") or []
        ]
        return cls(
            history=history,
            pending_selection=PendingSelection.from_dict(data.get("pending_selection")),
        )


@dataclass
class HandlerOutcome:
    """Uniform result every handler returns; nothing raises past a handler."""

    status: OutcomeStatus
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)
    rejected_fields: List[str] = field(default_factory=list)
    candidates: List[str] = field(default_factory=list)
    code: Optional[str] = None
    """Machine-readable detail, e.g. "already_attached", "not_attached", "not_found"."""

    needs_clarification: bool = False
    """Set by the record handler when the subject is ambiguous; the dispatcher re-routes."""

    context: Dict[str, Any] = field(default_factory=dict)
    """Operation, client id, updates and tag name the outcome was produced for."""

    @classmethod
    def success(cls, message: str, **kwargs: Any) -> "HandlerOutcome":
        return cls(status=OutcomeStatus.SUCCESS, message=message, **kwargs)

    @classmethod
    def needs_input(cls, message: str, **kwargs: Any) -> "HandlerOutcome":
        return cls(status=OutcomeStatus.NEEDS_INPUT, message=message, **kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: Any) -> "HandlerOutcome":
        return cls(status=OutcomeStatus.ERROR, message=message, **kwargs)


@dataclass
class DispatchMetrics:
    """Timing for a single dispatcher call."""

    classification_ms: float = 0.0
    handler_ms: float = 0.0
    total_ms: float = 0.0
    rerouted: bool = False


@dataclass
class DispatchResult:
    """Final output returned by the dispatcher."""

    reply: str
    state: ConversationState
    route: Optional[Route] = None
    outcome: Optional[HandlerOutcome] = None
    classification: Optional[RouteClassification] = None
    metrics: Optional[DispatchMetrics] = None
