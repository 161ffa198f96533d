"""Tests for field schemas, the protected-path guard and the fuzzy field resolver."""
import pytest

from pagepilot.orchestrator.fields.guard import ProtectedPathGuard
from pagepilot.orchestrator.fields.resolver import (
    FieldResolver,
    ResolvedField,
    Unresolved,
    record_resolver,
    style_resolver,
)
from pagepilot.orchestrator.fields.schemas import (
    RECORD_SCHEMA,
    STYLE_SCHEMA,
    compact_key,
    match_option,
    normalise_key,
)


class TestKeyNormalisation:
    def test_normalise_collapses_whitespace(self):
        assert normalise_key("  Link   URL ") == "link url"

    def test_compact_drops_separators(self):
        assert compact_key("client_id") == compact_key("clientId") == compact_key("Client ID")


class TestProtectedPathGuard:
    def test_identity_fields_are_protected_in_any_spelling(self):
        guard = ProtectedPathGuard(RECORD_SCHEMA)
        for key in ("clientId", "client_id", "Client ID", "componentType", "library_id"):
            assert guard.is_protected(key), key

    def test_paths_under_a_protected_prefix_are_protected(self):
        guard = ProtectedPathGuard(["clientId"])
        assert guard.is_protected("clientId.nested")

    def test_document_keys_are_not_protected(self):
        guard = ProtectedPathGuard(RECORD_SCHEMA)
        assert not guard.is_protected("props.title")
        assert not guard.is_protected("is_blur")

    def test_filter_splits_map_and_keeps_order(self):
        guard = ProtectedPathGuard(STYLE_SCHEMA)
        result = guard.filter({"layout": "classic", "design_id": 3, "clientid": 9, "card radius": "full"})
        assert list(result.allowed) == ["layout", "card radius"]
        assert result.rejected == ["design_id", "clientid"]


class TestResolve:
    def test_exact_synonym(self):
        res = record_resolver.resolve("Link URL")
        assert isinstance(res, ResolvedField)
        assert res.path == "link_props.url"
        assert not res.fuzzy

    def test_canonical_path_resolves_to_itself(self):
        res = style_resolver.resolve("card_design.radius")
        assert isinstance(res, ResolvedField)
        assert res.path == "card_design.radius"

    def test_misspelling_within_threshold(self):
        res = style_resolver.resolve("sosial icon style")
        assert isinstance(res, ResolvedField)
        assert res.path == "header_design.social-icon-style"
        assert res.fuzzy
        assert res.distance <= 0.3

    def test_record_misspelling(self):
        res = record_resolver.resolve("tittle")
        assert isinstance(res, ResolvedField)
        assert res.path == "props.title"

    def test_unrelated_key_is_unresolved(self):
        res = style_resolver.resolve("favourite pizza")
        assert isinstance(res, Unresolved)
        assert res.raw_key == "favourite pizza"

    def test_empty_key_is_unresolved(self):
        assert isinstance(record_resolver.resolve("   "), Unresolved)

    def test_bare_document_column_resolves_to_itself(self):
        res = record_resolver.resolve("link_props")
        assert isinstance(res, ResolvedField)
        assert res.path == "link_props"

    def test_strict_threshold_rejects_fuzzy_match(self):
        strict = FieldResolver(STYLE_SCHEMA, threshold=0.0)
        assert isinstance(strict.resolve("sosial icon style"), Unresolved)

    def test_threshold_out_of_range(self):
        with pytest.raises(ValueError):
            FieldResolver(RECORD_SCHEMA, threshold=1.0)


class TestResolveUpdates:
    def test_synonyms_become_canonical_paths(self):
        result = record_resolver.resolve_updates({"title": "Home", "link": "https://example.com"})
        assert result.allowed == {"props.title": "Home", "link_props.url": "https://example.com"}
        assert result.rejected == []

    def test_protected_key_rejected_before_resolution(self):
        result = record_resolver.resolve_updates({"clientId": "7", "title": "Home"})
        assert result.allowed == {"props.title": "Home"}
        assert result.rejected == ["clientId"]
        assert result.protected == ["clientId"]

    def test_synonym_resolving_onto_protected_path_is_rejected(self):
        result = record_resolver.resolve_updates({"type": "buttons"})
        assert result.allowed == {}
        assert result.rejected == ["type"]
        assert result.protected == ["type"]

    def test_unknown_key_rejected(self):
        result = style_resolver.resolve_updates({"favourite pizza": "margherita", "layout": "banner"})
        assert result.allowed == {"header_design.Layout": "banner"}
        assert result.rejected == ["favourite pizza"]

    def test_known_path_missing_from_synonyms_passes_through(self):
        result = record_resolver.resolve_updates({"props.background_video_thumbnail": "thumb.png"})
        assert result.allowed == {"props.background_video_thumbnail": "thumb.png"}
        assert result.passed_through == ["props.background_video_thumbnail"]

    def test_document_patch_kept_whole(self):
        result = record_resolver.resolve_updates({"link_props": {"url": "https://example.com"}})
        assert result.allowed == {"link_props": {"url": "https://example.com"}}

    def test_scalar_document_column_value_rejected(self):
        result = record_resolver.resolve_updates({"props": "hello"})
        assert result.allowed == {}
        assert result.rejected == ["props"]

    def test_search_only_column_is_not_writable(self):
        result = record_resolver.resolve_updates({"is_secured": True})
        assert result.allowed == {}
        assert result.rejected == ["is_secured"]

    def test_other_schema_paths_are_rejected(self):
        result = record_resolver.resolve_updates({"header_design.Layout": "banner"})
        assert result.allowed == {}
        assert result.rejected == ["header_design.Layout"]


class TestMatchOption:
    def test_option_matched_loosely(self):
        assert match_option("card_design.radius", "No Radius") == "no-radius"
        assert match_option("header_design.social-icon-style", "SOLID") == "solid"

    def test_invalid_option(self):
        assert match_option("card_design.radius", "huge") is None

    def test_free_path_echoes_value(self):
        assert match_option("link_block.text", "#ffffff") == "#ffffff"
