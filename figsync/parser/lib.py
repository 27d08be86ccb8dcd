"""Design-file payload to node graph mapper.

Converts the JSON returned by the design tool's file endpoint
(`GET /v1/files/:key`) into a `Document`. Only the fields the sync core
reads are mapped; everything else is dropped.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from figsync.config import SyncSettings
from figsync.graph import (
    AxisAlign,
    Color,
    ComponentInfo,
    Constraints,
    ContainerLayout,
    Document,
    Effect,
    EffectType,
    Geometry,
    HorizontalConstraint,
    LayoutMode,
    LayoutWrap,
    Node,
    NodeKind,
    Page,
    Paint,
    PaintType,
    Positioning,
    SelfSizing,
    SizingMode,
    StyleInfo,
    TextAlignHorizontal,
    TextAlignVertical,
    TextCase,
    TextDecoration,
    TextStyle,
    Tier,
    VerticalConstraint,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

# Source alignment keywords that differ from AxisAlign values
ALIGN_MAP: dict[str, AxisAlign] = {
    "MIN": AxisAlign.START,
    "CENTER": AxisAlign.CENTER,
    "MAX": AxisAlign.END,
    "SPACE_BETWEEN": AxisAlign.SPACE_BETWEEN,
    "BASELINE": AxisAlign.BASELINE,
}

# Source constraint keywords; MIN/MAX are the legacy spellings
HORIZONTAL_CONSTRAINT_MAP: dict[str, HorizontalConstraint] = {
    "MIN": HorizontalConstraint.LEFT,
    "MAX": HorizontalConstraint.RIGHT,
    "STRETCH": HorizontalConstraint.LEFT_RIGHT,
}
VERTICAL_CONSTRAINT_MAP: dict[str, VerticalConstraint] = {
    "MIN": VerticalConstraint.TOP,
    "MAX": VerticalConstraint.BOTTOM,
    "STRETCH": VerticalConstraint.TOP_BOTTOM,
}

COMPONENT_KINDS = frozenset({NodeKind.COMPONENT, NodeKind.COMPONENT_SET})


class ParseError(ValueError):
    """Raised when a payload does not have the design-file shape."""


def _enum(enum_cls: type[E], value: Any, default: E) -> E:
    """Parse an enum value, falling back to a default for unknown strings."""
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _color(data: dict | None) -> Color | None:
    if not data:
        return None
    return Color(
        r=data.get("r", 0.0),
        g=data.get("g", 0.0),
        b=data.get("b", 0.0),
        a=data.get("a", 1.0),
    )


# =============================================================================
# Visuals
# =============================================================================


def _paint(data: dict) -> Paint | None:
    """Map a fill or stroke; invisible and unknown paints are dropped."""
    if not data.get("visible", True):
        return None
    paint_type = _enum(PaintType, data.get("type"), None)
    if paint_type is None:
        return None
    return Paint(
        type=paint_type,
        opacity=data.get("opacity", 1.0),
        color=_color(data.get("color")),
        image_ref=data.get("imageRef") or data.get("imageHash"),
        scale_mode=data.get("scaleMode"),
        gradient_stops=data.get("gradientStops", []),
    )


def _paints(items: list[dict] | None) -> list[Paint]:
    return [paint for paint in map(_paint, items or []) if paint is not None]


def _effect(data: dict) -> Effect | None:
    if not data.get("visible", True):
        return None
    effect_type = _enum(EffectType, data.get("type"), None)
    if effect_type is None:
        return None
    offset = data.get("offset") or {}
    return Effect(
        type=effect_type,
        radius=data.get("radius", 0.0),
        color=_color(data.get("color")),
        offset_x=offset.get("x", 0.0),
        offset_y=offset.get("y", 0.0),
        spread=data.get("spread", 0.0),
    )


def _text_style(data: dict) -> TextStyle | None:
    style = data.get("style")
    if not style:
        return None

    fills = style.get("fills") or data.get("fills") or []
    color = next((_color(f["color"]) for f in fills if f.get("color")), None)
    return TextStyle(
        font_family=style.get("fontFamily"),
        font_post_script_name=style.get("fontPostScriptName"),
        font_size=style.get("fontSize", 14.0),
        font_weight=style.get("fontWeight", 400),
        italic=style.get("italic", False),
        align_horizontal=_enum(
            TextAlignHorizontal,
            style.get("textAlignHorizontal"),
            TextAlignHorizontal.LEFT,
        ),
        align_vertical=_enum(
            TextAlignVertical, style.get("textAlignVertical"), TextAlignVertical.TOP
        ),
        letter_spacing=style.get("letterSpacing", 0.0),
        line_height=style.get("lineHeightPx"),
        color=color,
        text_case=_enum(TextCase, style.get("textCase"), TextCase.ORIGINAL),
        decoration=_enum(
            TextDecoration, style.get("textDecoration"), TextDecoration.NONE
        ),
        auto_resize=data.get("textAutoResize"),
    )


# =============================================================================
# Layout
# =============================================================================


def _geometry(data: dict) -> Geometry:
    box = data.get("absoluteBoundingBox") or {}
    return Geometry(
        x=box.get("x", 0.0),
        y=box.get("y", 0.0),
        width=box.get("width", 0.0),
        height=box.get("height", 0.0),
        rotation=data.get("rotation", 0.0),
    )


def _container(data: dict) -> ContainerLayout:
    return ContainerLayout(
        mode=_enum(LayoutMode, data.get("layoutMode"), LayoutMode.NONE),
        wrap=_enum(LayoutWrap, data.get("layoutWrap"), LayoutWrap.NO_WRAP),
        primary_align=ALIGN_MAP.get(data.get("primaryAxisAlignItems"), AxisAlign.START),
        counter_align=ALIGN_MAP.get(data.get("counterAxisAlignItems"), AxisAlign.START),
        item_spacing=data.get("itemSpacing", 0.0),
        counter_spacing=data.get("counterAxisSpacing", 0.0),
        padding_left=data.get("paddingLeft", 0.0),
        padding_right=data.get("paddingRight", 0.0),
        padding_top=data.get("paddingTop", 0.0),
        padding_bottom=data.get("paddingBottom", 0.0),
    )


def _sizing(data: dict) -> SelfSizing:
    return SelfSizing(
        horizontal=_enum(
            SizingMode, data.get("layoutSizingHorizontal"), SizingMode.FIXED
        ),
        vertical=_enum(SizingMode, data.get("layoutSizingVertical"), SizingMode.FIXED),
        min_width=data.get("minWidth"),
        max_width=data.get("maxWidth"),
        min_height=data.get("minHeight"),
        max_height=data.get("maxHeight"),
        grow=data.get("layoutGrow", 0.0),
    )


def _constraints(data: dict) -> Constraints:
    raw = data.get("constraints") or {}
    horizontal = raw.get("horizontal")
    vertical = raw.get("vertical")
    return Constraints(
        horizontal=HORIZONTAL_CONSTRAINT_MAP.get(horizontal)
        or _enum(HorizontalConstraint, horizontal, HorizontalConstraint.LEFT),
        vertical=VERTICAL_CONSTRAINT_MAP.get(vertical)
        or _enum(VerticalConstraint, vertical, VerticalConstraint.TOP),
    )


def _scrolling(data: dict) -> tuple[bool, bool]:
    """Scroll flags from `overflowDirection`, as a keyword or an object."""
    overflow = data.get("overflowDirection")
    if isinstance(overflow, dict):
        return bool(overflow.get("horizontal")), bool(overflow.get("vertical"))
    if isinstance(overflow, str):
        return "HORIZONTAL" in overflow, "VERTICAL" in overflow
    return False, False


def _action(data: dict) -> tuple[bool, str | None]:
    """Interaction flag and first destination."""
    for interaction in data.get("interactions") or []:
        for action in interaction.get("actions") or []:
            if action:
                return True, action.get("destinationId")
        return True, None
    destination = data.get("transitionNodeID")
    return destination is not None, destination


# =============================================================================
# Nodes and Pages
# =============================================================================


def parse_node(data: dict) -> Node | None:
    """Map one node and its subtree.

    Invisible nodes are dropped unless they are component definitions,
    which are kept (invisible) so instances can still resolve them.

    Raises:
        ParseError: If a node has no id.
    """
    if "id" not in data:
        raise ParseError(f"Node without id: {data.get('name', '<unnamed>')!r}")

    kind = NodeKind.parse(data.get("type"))
    visible = data.get("visible", True)
    if not visible and kind not in COMPONENT_KINDS:
        return None

    children = [
        child
        for child in (parse_node(item) for item in data.get("children") or [])
        if child is not None
    ]
    fills = _paints(data.get("fills"))
    scroll_horizontal, scroll_vertical = _scrolling(data)
    has_action, destination = _action(data)
    image_refs = [p.image_ref for p in fills if p.type == PaintType.IMAGE]

    return Node(
        id=data["id"],
        name=data.get("name", ""),
        kind=kind,
        visible=visible,
        geometry=_geometry(data),
        container=_container(data),
        sizing=_sizing(data),
        positioning=_enum(
            Positioning, data.get("layoutPositioning"), Positioning.AUTO
        ),
        constraints=_constraints(data),
        fills=fills,
        strokes=_paints(data.get("strokes")),
        stroke_weight=data.get("strokeWeight", 0.0),
        effects=[e for e in map(_effect, data.get("effects") or []) if e],
        opacity=data.get("opacity", 1.0),
        corner_radius=data.get("cornerRadius", 0.0),
        corner_radii=data.get("rectangleCornerRadii"),
        clips_content=data.get("clipsContent", False),
        background_color=_color(data.get("backgroundColor")),
        image_hash=image_refs[-1] if image_refs else None,
        characters=data.get("characters") if kind == NodeKind.TEXT else None,
        text_style=_text_style(data) if kind == NodeKind.TEXT else None,
        is_component=kind in COMPONENT_KINDS,
        is_instance=kind == NodeKind.INSTANCE,
        component_id=data.get("componentId"),
        component_properties={
            key: prop.get("value")
            for key, prop in (data.get("componentProperties") or {}).items()
        },
        has_action=has_action,
        action_destination=destination,
        scroll_horizontal=scroll_horizontal,
        scroll_vertical=scroll_vertical,
        children=children,
    )


def _parse_page(data: dict, settings: SyncSettings) -> Page:
    page_id = data.get("id", "")
    name = data.get("name", "")
    children = [
        node
        for node in (parse_node(item) for item in data.get("children") or [])
        if node is not None
    ]
    return Page(
        id=page_id,
        name=name,
        selected=settings.is_page_selected(page_id),
        tier=settings.tier_for_page(name, page_id),
        background_color=_color(data.get("backgroundColor")),
        children=children,
    )


def _register_components(document: Document) -> None:
    """Record page name and tier on definitions; add missing metadata."""
    for page in document.pages:
        for node in page.walk():
            if not node.is_component:
                continue
            info = document.components.get(node.id)
            if info is None:
                info = ComponentInfo(node_id=node.id, name=node.name)
                document.components[node.id] = info
            info.page_name = page.name
            if page.tier != Tier.SCREEN:
                info.tier = page.tier


def _collect_image_refs(document: Document) -> None:
    """Image fills and vector primitives (as `node:<id>`) of selected pages."""
    for page in document.selected_pages():
        for node in page.walk():
            refs = [p.image_ref for p in node.fills if p.type == PaintType.IMAGE]
            if node.kind.is_vector_primitive:
                refs.append(f"node:{node.id}")
            for ref in refs:
                if not ref:
                    continue
                node_ids = document.image_refs.setdefault(ref, [])
                if node.id not in node_ids:
                    node_ids.append(node.id)


def parse_document(
    payload: dict[str, Any], settings: SyncSettings | None = None
) -> Document:
    """Map a design-file payload into a document.

    Args:
        payload: Parsed JSON of the file endpoint.
        settings: Page selection and tier configuration.

    Returns:
        Document with parent links set.

    Raises:
        ParseError: If the payload has no document tree.

    Example:
        >>> document = parse_document(json.loads(Path("app.json").read_text()))
        >>> [page.name for page in document.pages]
        ['Atoms', 'Screens']
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("document"), dict):
        raise ParseError("Payload has no 'document' object")
    settings = settings or SyncSettings()

    document = Document(
        name=payload.get("name", ""),
        file_key=payload.get("key"),
        version=payload.get("version"),
        last_modified=payload.get("lastModified"),
    )

    for node_id, meta in (payload.get("components") or {}).items():
        document.components[node_id] = ComponentInfo(
            node_id=node_id,
            key=meta.get("key", ""),
            name=meta.get("name", ""),
            description=meta.get("description", ""),
            component_set_id=meta.get("componentSetId"),
        )
    for style_id, meta in (payload.get("styles") or {}).items():
        document.styles[style_id] = StyleInfo(
            key=meta.get("key", ""),
            name=meta.get("name", ""),
            style_type=meta.get("styleType", ""),
            description=meta.get("description", ""),
        )

    for page_data in payload["document"].get("children") or []:
        if page_data.get("type") == "CANVAS":
            document.pages.append(_parse_page(page_data, settings))

    _register_components(document)
    _collect_image_refs(document)
    document.link_parents()

    logger.info(
        f"Parsed '{document.name}': {len(document.pages)} page(s), "
        f"{sum(1 for _ in document.iter_nodes())} node(s), "
        f"{len(document.components)} component(s)"
    )
    return document


def load_document(path: Path | str, settings: SyncSettings | None = None) -> Document:
    """Read a design-file JSON file and map it into a document."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ParseError(f"{path} is not valid JSON: {e}") from e
    return parse_document(payload, settings)


__all__ = [
    "ParseError",
    "ALIGN_MAP",
    "parse_node",
    "parse_document",
    "load_document",
]
