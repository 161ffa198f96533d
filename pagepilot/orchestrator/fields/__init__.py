"""Field resolution, protection, update compilation and criteria translation."""
from pagepilot.orchestrator.fields.compiler import (
    MergeDocument,
    SetDocumentKey,
    SetScalar,
    WriteInstruction,
    apply_instructions,
    compile_updates,
)
from pagepilot.orchestrator.fields.criteria import Comparator, Predicate, translate_criteria
from pagepilot.orchestrator.fields.guard import GuardResult, ProtectedPathGuard
from pagepilot.orchestrator.fields.resolver import (
    FieldResolver,
    ResolutionResult,
    ResolvedField,
    Unresolved,
    record_resolver,
    style_resolver,
)
from pagepilot.orchestrator.fields.schemas import RECORD_SCHEMA, STYLE_SCHEMA, FieldSchema

__all__ = [
    "FieldSchema",
    "RECORD_SCHEMA",
    "STYLE_SCHEMA",
    "FieldResolver",
    "ResolvedField",
    "Unresolved",
    "ResolutionResult",
    "record_resolver",
    "style_resolver",
    "ProtectedPathGuard",
    "GuardResult",
    "MergeDocument",
    "SetDocumentKey",
    "SetScalar",
    "WriteInstruction",
    "compile_updates",
    "apply_instructions",
    "Comparator",
    "Predicate",
    "translate_criteria",
]
