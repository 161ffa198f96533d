"""Field schemas and synonym tables for the two editable surfaces.

A ``FieldSchema`` declares which columns of a table hold documents (JSONB),
which plain columns may be written, which may only be searched, which
compare with equality, and which paths can never be written. The synonym
table maps the words users type onto canonical dotted paths.

The record schema (components) and the style schema (designs) share no
canonical paths; each resolver only ever sees its own table.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional

_NORMALISE_RE = re.compile(r"\s+")
_COMPACT_RE = re.compile(r"[\s_\-]+")


def normalise_key(raw: str) -> str:
    """Lower-case and collapse whitespace: "  Link  URL " -> "link url"."""
    return _NORMALISE_RE.sub(" ", str(raw).strip().lower())


def compact_key(raw: str) -> str:
    """Lower-case and drop separators: "client_id", "clientId", "client id" -> "clientid"."""
    return _COMPACT_RE.sub("", str(raw).strip().lower())


@dataclass(frozen=True)
class FieldSchema:
    name: str
    synonyms: Mapping[str, str]
    document_columns: FrozenSet[str]
    scalar_columns: FrozenSet[str] = frozenset()
    """Plain columns an update may assign."""

    boolean_columns: FrozenSet[str] = frozenset()
    """Scalar columns stored as booleans; update values are coerced."""

    search_only_columns: FrozenSet[str] = frozenset()
    """Plain columns usable in criteria but never written by an update."""

    exact_match: FrozenSet[str] = frozenset()
    """Canonical paths compared with equality instead of substring search."""

    protected: FrozenSet[str] = frozenset()
    """Compacted path prefixes that can never be update targets."""

    _lookup: Dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        lookup = {normalise_key(k): v for k, v in self.synonyms.items()}
        # Canonical paths resolve to themselves.
        for canonical in self.synonyms.values():
            lookup.setdefault(normalise_key(canonical), canonical)
        object.__setattr__(self, "_lookup", lookup)

    @property
    def lookup(self) -> Mapping[str, str]:
        return self._lookup

    def exact(self, raw_key: str) -> Optional[str]:
        return self._lookup.get(normalise_key(raw_key))

    def is_known_path(self, path: str, *, for_search: bool = False) -> bool:
        """True when *path* is a scalar column or ``document_column.subkey`` of this schema."""
        parts = path.split(".")
        if len(parts) == 1:
            if path in self.scalar_columns:
                return True
            return for_search and path in self.search_only_columns
        return len(parts) == 2 and parts[0] in self.document_columns and bool(parts[1])


# ── Record schema: components ────────────────────────────────────────────

RECORD_SYNONYMS: Dict[str, str] = {
    # props
    "title": "props.title",
    "heading": "props.title",
    "main heading": "props.title",
    "name": "props.title",
    "caption": "props.caption",
    "subtitle": "props.subtitle",
    "sub title": "props.subtitle",
    "description": "props.description",
    "text": "props.text",
    "body text": "props.text",
    # link_props
    "url": "link_props.url",
    "link": "link_props.url",
    "link url": "link_props.url",
    "link address": "link_props.url",
    "website": "link_props.url",
    # layout_json
    "text alignment": "layout_json.textalignment",
    "textalign": "layout_json.textalignment",
    "text-alignment": "layout_json.textalignment",
    "textalignement": "layout_json.textalignment",
    "alignment of text": "layout_json.textalignment",
    "alignment": "layout_json.textalignment",
    "aspect ratio": "layout_json.aspectratio",
    "aspectratio": "layout_json.aspectratio",
    # status flags
    "blur": "is_blur",
    "blurred": "is_blur",
    "schedule": "schedule_enabled",
    "scheduled": "schedule_enabled",
    "secured": "is_secured",
    "security": "is_secured",
    # discriminator (searchable, never writable)
    "type": "component_type",
    "kind": "component_type",
    "component type": "component_type",
}

RECORD_SCHEMA = FieldSchema(
    name="record",
    synonyms=RECORD_SYNONYMS,
    document_columns=frozenset({"props", "link_props", "layout_json"}),
    scalar_columns=frozenset({"is_blur", "schedule_enabled"}),
    boolean_columns=frozenset({"is_blur", "schedule_enabled"}),
    search_only_columns=frozenset({"component_type", "is_secured", "component_id"}),
    exact_match=frozenset({"component_type"}),
    protected=frozenset({"clientid", "componentid", "componenttype", "libraryid"}),
)


# ── Style schema: designs ────────────────────────────────────────────────

STYLE_SYNONYMS: Dict[str, str] = {
    # header_design
    "layout": "header_design.Layout",
    "header layout": "header_design.Layout",
    "banner mediaurl": "header_design.banner_mediaUrl",
    "banner image url": "header_design.banner_image_url",
    "banner library id": "header_design.banner_library_id",
    "banner source url": "header_design.banner_source_url",
    "social icon style": "header_design.social-icon-style",
    "social-icon-style": "header_design.social-icon-style",
    "socialiconstyle": "header_design.social-icon-style",
    "social_icon_style": "header_design.social-icon-style",
    "social icons": "header_design.social-icon-style",
    # appearance
    "appearance title": "appearance.title",
    "appearance background": "appearance.background",
    "background style": "appearance.background",
    "video type": "appearance.video_type",
    "image title": "appearance.image_title",
    "video title": "appearance.video_title",
    "media source": "appearance.media_source",
    "appearance background image url": "appearance.background_image_url",
    "appearance background thumbnail": "appearance.background_thumbnail",
    "appearance background video url": "appearance.background_video_url",
    "appearance background library id": "appearance.background_library_id",
    # page_props
    "page filter": "page_props.filter",
    "page animation": "page_props.animation",
    "page background": "page_props.background",
    "page color count": "page_props.color_count",
    "page gradient type": "page_props.gradient_type",
    "page animation shapes": "page_props.animation_shapes",
    "header text icons": "page_props.header-text-icons",
    "animation position": "page_props.animation_position",
    "page background mediaurl": "page_props.background_mediaUrl",
    # link_block
    "link text color": "link_block.text",
    "link background color": "link_block.background",
    # card_block
    "card text color": "card_block.text",
    "card background color": "card_block.background",
    "card button text color": "card_block.button-text",
    "card button background color": "card_block.button-background",
    # desktop_background
    "desktop background type": "desktop_background.type",
    "desktop's background type": "desktop_background.type",
    "desktop's background": "desktop_background.type",
    "gradient of desktop background": "desktop_background.gradient_type",
    "gradient desktop background": "desktop_background.gradient_type",
    "gradient type desktop background": "desktop_background.gradient_type",
    "desktop background gradient type": "desktop_background.gradient_type",
    # card_design
    "card style": "card_design.style",
    "card radius": "card_design.radius",
    "card-radius": "card_design.radius",
    "cardradius": "card_design.radius",
    "card corner radius": "card_design.radius",
    # button_design
    "button style": "button_design.style",
    "button radius": "button_design.radius",
    "button corner radius": "button_design.radius",
    # text_props
    "title font": "text_props.titles",
    "subtitle font": "text_props.subtitles",
}

STYLE_SCHEMA = FieldSchema(
    name="style",
    synonyms=STYLE_SYNONYMS,
    document_columns=frozenset({
        "header_design",
        "appearance",
        "page_props",
        "link_block",
        "card_block",
        "desktop_background",
        "card_design",
        "button_design",
        "text_props",
    }),
    protected=frozenset({"clientid", "designid"}),
)


# ── Style option catalogue ───────────────────────────────────────────────

DESIGN_OPTIONS: Dict[str, tuple] = {
    "header_design.Layout": ("classic", "compact", "banner", "imaged"),
    "header_design.social-icon-style": ("solid", "stroked", "soft-shadow"),
    "appearance.background": ("none", "solid", "gradient", "image", "video", "dualcolor"),
    "card_design.style": ("solid", "stroked", "soft-shadow", "hard-shadow"),
    "card_design.radius": ("no-radius", "small", "medium", "full"),
    "button_design.style": ("solid", "stroked", "soft-shadow"),
    "button_design.radius": ("no-radius", "small", "medium", "full"),
}

OPTION_EXPLANATIONS: Dict[str, Dict[str, str]] = {
    "header_design.social-icon-style": {
        "solid": "Filled social media icons",
        "stroked": "Outlined social media icons",
        "soft-shadow": "Social icons with subtle shadow effect",
    },
    "card_design.style": {
        "solid": "Filled with solid color, no border",
        "stroked": "Border with no fill, outline style",
        "soft-shadow": "Subtle shadow for depth effect",
        "hard-shadow": "Strong shadow for dramatic effect",
    },
    "card_design.radius": {
        "no-radius": "Sharp 90-degree corners",
        "small": "Slightly rounded corners (4px)",
        "medium": "Moderately rounded corners (8px)",
        "full": "Pill-shaped corners (50%)",
    },
    "button_design.style": {
        "solid": "Filled with solid color",
        "stroked": "Border with no fill",
        "soft-shadow": "Button with soft drop shadow",
    },
    "button_design.radius": {
        "no-radius": "Sharp corners",
        "small": "Slight rounding (4px)",
        "medium": "Medium rounding (8px)",
        "full": "Fully rounded (pill shape)",
    },
    "appearance.background": {
        "none": "No background",
        "solid": "Single color background",
        "gradient": "Smooth color transition background",
        "image": "Background with an image",
        "video": "Background with a video",
        "dualcolor": "Two-color split background",
    },
    "header_design.Layout": {
        "classic": "Centered profile photo, buttons in a row, clean top-to-bottom flow",
        "compact": "Small photo top-left with the username beside it, dense and mobile-first",
        "banner": "Classic layout plus a banner image across the top",
        "imaged": "Large portrait photo as the focal point, asymmetrical layout",
    },
}


def match_option(path: str, value: object) -> Optional[str]:
    """Return the canonical option for *value* at *path*, or None if invalid.

    Paths without an option list accept anything and echo the value back.
    """
    options = DESIGN_OPTIONS.get(path)
    if options is None:
        return str(value)
    cand = compact_key(str(value))
    for opt in options:
        if compact_key(opt) == cand:
            return opt
    return None
