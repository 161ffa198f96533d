"""Field resolver: fuzzy user field names -> canonical dotted paths.

Resolution order for a raw key:
  1. exact, case-insensitive lookup in the schema's synonym table
     (canonical paths and bare document columns resolve to themselves);
  2. approximate match against every synonym, accepted only when the
     normalised distance is at or below the threshold;
  3. ``Unresolved`` otherwise, carrying the raw key unchanged.

No I/O; fully deterministic given the schema and threshold.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Any, Dict, List, Mapping, Optional, Union

from pagepilot.orchestrator.fields.guard import ProtectedPathGuard
from pagepilot.orchestrator.fields.schemas import (
    RECORD_SCHEMA,
    STYLE_SCHEMA,
    FieldSchema,
    normalise_key,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.3


@dataclass(frozen=True)
class ResolvedField:
    raw_key: str
    path: str
    matched: str
    distance: float = 0.0

    @property
    def fuzzy(self) -> bool:
        return self.distance > 0.0


@dataclass(frozen=True)
class Unresolved:
    raw_key: str


Resolution = Union[ResolvedField, Unresolved]


@dataclass
class ResolutionResult:
    """Outcome of resolving a whole update map."""

    allowed: Dict[str, Any] = field(default_factory=dict)
    rejected: List[str] = field(default_factory=list)
    protected: List[str] = field(default_factory=list)
    """Subset of ``rejected`` refused by the guard rather than by resolution."""

    passed_through: List[str] = field(default_factory=list)


def _distance(a: str, b: str) -> float:
    return 1.0 - SequenceMatcher(None, a, b).ratio()


class FieldResolver:
    """Resolve raw keys against one schema's vocabulary."""

    def __init__(self, schema: FieldSchema, *, threshold: float = DEFAULT_THRESHOLD) -> None:
        if not 0.0 <= threshold < 1.0:
            raise ValueError(f"threshold must be within [0, 1), got {threshold!r}")
        self._schema = schema
        self._threshold = threshold
        self._guard = ProtectedPathGuard(schema)

    @property
    def schema(self) -> FieldSchema:
        return self._schema

    @property
    def threshold(self) -> float:
        return self._threshold

    def resolve(self, raw_key: str) -> Resolution:
        key = normalise_key(raw_key)
        if not key:
            return Unresolved(raw_key)

        exact = self._schema.exact(key)
        if exact is not None:
            return ResolvedField(raw_key=raw_key, path=exact, matched=key)
        # A bare document column names the whole document, never one of its keys.
        if key in self._schema.document_columns:
            return ResolvedField(raw_key=raw_key, path=key, matched=key)

        best: Optional[str] = None
        best_distance = 1.0
        for candidate in self._schema.lookup:
            d = _distance(key, candidate)
            if d < best_distance:
                best, best_distance = candidate, d
        if best is not None and best_distance <= self._threshold:
            path = self._schema.lookup[best]
            logger.debug(
                "FieldResolver[%s]: %r ~ %r (distance=%.3f) -> %s",
                self._schema.name, raw_key, best, best_distance, path,
            )
            return ResolvedField(raw_key=raw_key, path=path, matched=best, distance=best_distance)

        return Unresolved(raw_key)

    def resolve_updates(self, raw_updates: Mapping[str, Any]) -> ResolutionResult:
        """Guard -> resolve -> guard an update map, keeping map order.

        Unresolved keys are passed through verbatim only when they already
        name a writable path of this schema; everything else is rejected.
        """
        result = ResolutionResult()
        pre = self._guard.filter(raw_updates)
        result.rejected.extend(pre.rejected)
        result.protected.extend(pre.rejected)

        canonical: Dict[str, Any] = {}
        for raw_key, value in pre.allowed.items():
            res = self.resolve(raw_key)
            if isinstance(res, ResolvedField):
                path = res.path
            elif self._schema.is_known_path(raw_key) or self._is_document_patch(raw_key, value):
                path = raw_key
                result.passed_through.append(raw_key)
                logger.warning(
                    "FieldResolver[%s]: unrecognised field %r passed through as-is",
                    self._schema.name, raw_key,
                )
            else:
                logger.info(
                    "FieldResolver[%s]: dropping unresolved field %r", self._schema.name, raw_key,
                )
                result.rejected.append(raw_key)
                continue

            if self._guard.is_protected(path):
                logger.warning(
                    "FieldResolver[%s]: %r resolved onto protected path %s; rejected",
                    self._schema.name, raw_key, path,
                )
                result.rejected.append(raw_key)
                result.protected.append(raw_key)
                continue
            if not (self._schema.is_known_path(path) or self._is_document_patch(path, value)):
                logger.info(
                    "FieldResolver[%s]: %s is not writable; rejected %r",
                    self._schema.name, path, raw_key,
                )
                result.rejected.append(raw_key)
                continue
            canonical[path] = value

        result.allowed = canonical
        return result

    def _is_document_patch(self, path: str, value: Any) -> bool:
        return path in self._schema.document_columns and isinstance(value, dict)


record_resolver = FieldResolver(RECORD_SCHEMA)
style_resolver = FieldResolver(STYLE_SCHEMA)
