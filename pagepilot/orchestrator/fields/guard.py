"""Protected-path guard: identity and type fields never reach a write."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Union

from pagepilot.orchestrator.fields.schemas import FieldSchema, compact_key

logger = logging.getLogger(__name__)


@dataclass
class GuardResult:
    allowed: Dict[str, Any] = field(default_factory=dict)
    rejected: List[str] = field(default_factory=list)


class ProtectedPathGuard:
    """Move every key that is, or sits under, a protected prefix into ``rejected``.

    Prefixes are compared compacted (case, ``_``, ``-`` and spaces ignored),
    so ``clientId``, ``client_id`` and ``Client ID`` are the same path.
    """

    def __init__(self, protected: Union[FieldSchema, Iterable[str]]) -> None:
        if isinstance(protected, FieldSchema):
            prefixes = protected.protected
        else:
            prefixes = protected
        self._prefixes = frozenset(compact_key(p) for p in prefixes)

    def is_protected(self, path: str) -> bool:
        parts = str(path).split(".")
        return any(
            compact_key(".".join(parts[:i])) in self._prefixes
            for i in range(1, len(parts) + 1)
        )

    def filter(self, update_map: Mapping[str, Any]) -> GuardResult:
        result = GuardResult()
        for key, value in update_map.items():
            if self.is_protected(key):
                logger.warning("ProtectedPathGuard: refused write to protected field %r", key)
                result.rejected.append(key)
            else:
                result.allowed[key] = value
        return result
