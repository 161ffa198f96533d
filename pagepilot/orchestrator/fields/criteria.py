"""Criteria translator: ``{"props.title": "Home", "type": "cards"}`` -> predicates.

Categorical keys declared ``exact_match`` by the schema compare with
equality; everything else is a case-insensitive substring match. Values are
never interpolated into SQL; repositories bind them as parameters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from pagepilot.orchestrator.fields.resolver import FieldResolver, ResolvedField

logger = logging.getLogger(__name__)


class Comparator(str, Enum):
    EQUALS = "equals"
    CONTAINS_CI = "contains_ci"


@dataclass(frozen=True)
class Predicate:
    column: str
    json_key: Optional[str]
    comparator: Comparator
    value: str


@dataclass
class Translation:
    predicates: List[Predicate] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def translate_criteria(criteria: Mapping[str, Any], resolver: FieldResolver) -> Translation:
    """Translate a flat or dotted criteria map, one predicate per usable key, in order."""
    schema = resolver.schema
    out = Translation()
    for raw_key, value in (criteria or {}).items():
        if value is None or _as_text(value) == "":
            continue
        res = resolver.resolve(raw_key)
        path = res.path if isinstance(res, ResolvedField) else raw_key
        if not schema.is_known_path(path, for_search=True):
            logger.info("CriteriaTranslator: ignoring unknown criterion %r", raw_key)
            out.rejected.append(raw_key)
            continue
        column, _, json_key = path.partition(".")
        comparator = Comparator.EQUALS if path in schema.exact_match else Comparator.CONTAINS_CI
        out.predicates.append(
            Predicate(
                column=column,
                json_key=json_key or None,
                comparator=comparator,
                value=_as_text(value),
            )
        )
    return out
