"""Action catalogs: the function-calling schemas each handler offers the LLM."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pagepilot.orchestrator.types import Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionDefinition:
    """Schema for one action a handler can execute."""

    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    operation: Optional[Operation] = None


class ActionCatalog:
    """Ordered set of actions offered to the LLM by one handler."""

    def __init__(self, actions: Iterable[ActionDefinition] = ()) -> None:
        self._actions: Dict[str, ActionDefinition] = {}
        for action in actions:
            self.register(action)

    def register(self, action: ActionDefinition) -> None:
        self._actions[action.name] = action
        logger.debug("ActionCatalog: registered action '%s'", action.name)

    def get(self, name: Optional[str]) -> Optional[ActionDefinition]:
        return self._actions.get(name or "")

    @property
    def names(self) -> List[str]:
        return list(self._actions)

    def get_descriptions(self) -> List[str]:
        return [f"{a.name}: {a.description}" for a in self._actions.values()]

    def get_schema_for_llm(self) -> List[dict]:
        """OpenAI function-calling schema."""
        return [
            {
                "type": "function",
                "function": {
                    "name": a.name,
                    "description": a.description,
                    "parameters": a.parameters,
                },
            }
            for a in self._actions.values()
        ]


def _object(properties: Dict[str, Any], required: Iterable[str] = ()) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": list(required)}


_CLIENT_ID = {"type": "string", "description": "Client id that owns the page"}
_COMPONENT_ID = {"type": "string", "description": "Exact component id; omit when the user did not give one"}
_UPDATES = {
    "type": "object",
    "description": (
        "Fields to change, keyed by the user's own field names or dotted paths "
        "(e.g. {\"title\": \"Home\"} or {\"props.title\": \"Home\"})"
    ),
    "additionalProperties": True,
}
_GROUP = {"type": "string", "description": "Security group title"}

RECORD_ACTIONS = ActionCatalog([
    ActionDefinition(
        name="get_component",
        description="Show one component by id, or list all components of the client when no id is given.",
        parameters=_object({"client_id": _CLIENT_ID, "component_id": _COMPONENT_ID}, ["client_id"]),
        operation=Operation.GET,
    ),
    ActionDefinition(
        name="create_component",
        description="Create a new component of the given type with optional initial fields.",
        parameters=_object({
            "client_id": _CLIENT_ID,
            "component_type": {
                "type": "string",
                "description": "cards | buttons | texts | images | headers | footers | links | music",
            },
            "updates": _UPDATES,
        }, ["client_id", "component_type"]),
        operation=Operation.CREATE,
    ),
    ActionDefinition(
        name="update_component",
        description=(
            "Change fields of a component. Call it even when the user did not give a "
            "component id; leave component_id out in that case."
        ),
        parameters=_object(
            {"client_id": _CLIENT_ID, "component_id": _COMPONENT_ID, "updates": _UPDATES},
            ["client_id", "updates"],
        ),
        operation=Operation.UPDATE,
    ),
    ActionDefinition(
        name="delete_component",
        description="Permanently delete a component. Only when the user explicitly confirms.",
        parameters=_object({"client_id": _CLIENT_ID, "component_id": _COMPONENT_ID}, ["client_id"]),
        operation=Operation.DELETE,
    ),
    ActionDefinition(
        name="attach_security_group",
        description="Protect a component by attaching a security group to it.",
        parameters=_object(
            {"client_id": _CLIENT_ID, "component_id": _COMPONENT_ID, "tag_name": _GROUP},
            ["client_id", "tag_name"],
        ),
        operation=Operation.ATTACH_TAG,
    ),
    ActionDefinition(
        name="detach_security_group",
        description="Remove a security group from a component.",
        parameters=_object(
            {"client_id": _CLIENT_ID, "component_id": _COMPONENT_ID, "tag_name": _GROUP},
            ["client_id", "tag_name"],
        ),
        operation=Operation.DETACH_TAG,
    ),
])

STYLE_ACTIONS = ActionCatalog([
    ActionDefinition(
        name="get_design",
        description="Show the current page design of the client.",
        parameters=_object({"client_id": _CLIENT_ID}, ["client_id"]),
    ),
    ActionDefinition(
        name="update_design",
        description=(
            "Change design settings (layout, social icon style, card/button style and radius, "
            "colors, backgrounds, fonts). The change is restated and applied only after the user confirms."
        ),
        parameters=_object({"client_id": _CLIENT_ID, "updates": _UPDATES}, ["client_id", "updates"]),
    ),
])

DISAMBIGUATION_ACTIONS = ActionCatalog([
    ActionDefinition(
        name="search_components",
        description="Find the components the user is describing.",
        parameters=_object({
            "client_id": _CLIENT_ID,
            "criteria": {
                "type": "object",
                "description": (
                    "Descriptive terms only, e.g. {\"component_type\": \"cards\", \"props.title\": \"Shop\"}. "
                    "Empty when the user asked for all components."
                ),
                "additionalProperties": True,
            },
            "operation": {
                "type": "string",
                "enum": [op.value for op in Operation],
                "description": "What the user wants to do with the component once found",
            },
            "updates": _UPDATES,
            "tag_name": _GROUP,
        }, ["client_id"]),
    ),
])
