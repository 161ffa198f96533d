"""Update compiler: canonical update map -> ordered write instructions.

    props.title = "Home"          -> SetDocumentKey(props, title, "Home")
    link_props = {"url": "..."}   -> MergeDocument(link_props, {...})
    is_blur = True                -> SetScalar(is_blur, True)

Instructions keep the map's order. ``apply_instructions`` is the single place
where a write plan is applied to a row snapshot; repositories call it under a
row lock so a document column is merged, never replaced.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from pagepilot.core.exceptions import NoOpUpdateError, UpdateCompileError
from pagepilot.orchestrator.fields.schemas import FieldSchema


@dataclass(frozen=True)
class MergeDocument:
    """Shallow-merge ``patch`` into the existing document of ``column``."""

    column: str
    patch: Dict[str, Any]


@dataclass(frozen=True)
class SetDocumentKey:
    """Set one key inside the document of ``column``, creating the document if absent."""

    column: str
    key: str
    value: Any


@dataclass(frozen=True)
class SetScalar:
    column: str
    value: Any


WriteInstruction = Union[MergeDocument, SetDocumentKey, SetScalar]

_TRUE_WORDS = frozenset({"true", "yes", "on", "1", "enable", "enabled"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0", "disable", "disabled"})


def coerce_bool(path: str, value: Any) -> bool:
    """Coerce an update value for a boolean column; unrecognised values raise UpdateCompileError."""
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise UpdateCompileError(
        f"{path} expects a boolean, got {value!r}",
        details={"path": path, "value": value},
        hint=f"{path} can only be switched on or off. Tell me \"turn it on\" or \"turn it off\".",
    )


def compile_updates(
    allowed: Mapping[str, Any],
    schema: Optional[FieldSchema] = None,
) -> List[WriteInstruction]:
    """Compile a guarded, resolved update map.

    Raises NoOpUpdateError for an empty map and UpdateCompileError for a path
    no instruction can express (more than one dot, or a document patch aimed
    at a column the schema does not declare as a document) and for a value a
    boolean column cannot hold.
    """
    if not allowed:
        raise NoOpUpdateError(
            "No updatable fields left after validation",
            hint="None of the requested fields can be changed. Tell me which field to update.",
        )

    instructions: List[WriteInstruction] = []
    for path, value in allowed.items():
        parts = path.split(".")
        if len(parts) == 1:
            if isinstance(value, dict):
                if schema is not None and path not in schema.document_columns:
                    raise UpdateCompileError(
                        f"{path} does not hold a document", details={"path": path}
                    )
                instructions.append(MergeDocument(column=path, patch=dict(value)))
            else:
                if schema is not None and path in schema.boolean_columns:
                    value = coerce_bool(path, value)
                instructions.append(SetScalar(column=path, value=value))
        elif len(parts) == 2 and all(parts):
            instructions.append(SetDocumentKey(column=parts[0], key=parts[1], value=value))
        else:
            raise UpdateCompileError(
                f"Cannot compile nested path {path!r}", details={"path": path}
            )
    return instructions


def touched_columns(instructions: List[WriteInstruction]) -> List[str]:
    """Distinct target columns in first-touch order."""
    seen: Dict[str, None] = {}
    for ins in instructions:
        seen.setdefault(ins.column, None)
    return list(seen)


def apply_instructions(
    snapshot: Mapping[str, Any],
    instructions: List[WriteInstruction],
) -> Dict[str, Any]:
    """Apply a write plan to ``{column: value}`` and return the new values of touched columns.

    The input snapshot is not mutated; later instructions win over earlier ones.
    """
    out: Dict[str, Any] = {}
    for ins in instructions:
        current = out[ins.column] if ins.column in out else copy.deepcopy(snapshot.get(ins.column))
        if isinstance(ins, MergeDocument):
            doc = dict(current) if isinstance(current, dict) else {}
            doc.update(ins.patch)
            out[ins.column] = doc
        elif isinstance(ins, SetDocumentKey):
            doc = dict(current) if isinstance(current, dict) else {}
            doc[ins.key] = ins.value
            out[ins.column] = doc
        else:
            out[ins.column] = ins.value
    return out
