"""Node graph for design documents.

The graph is the contract between the wire-format parser and the sync core.
A Document owns Pages, a Page owns a forest of Nodes, and every Node owns
its children exclusively in render order. Each node also keeps a private,
non-owning reference to its parent for upward lookups.

Example:
    >>> root = Node(id="1:2", name="Card", children=[Node(id="1:3", name="Title")])
    >>> root.children[0].parent is root
    True
"""

from __future__ import annotations

import re
from enum import Enum, IntEnum
from typing import Any, Iterator

from pydantic import BaseModel, Field, PrivateAttr

from .annotations import Classification, NodeLayout

# =============================================================================
# Enumerations
# =============================================================================


class Tier(IntEnum):
    """Atomic hierarchy tier, lowest built first."""

    SKIP = 0
    ATOM = 1
    MOLECULE = 2
    ORGANISM = 3
    SCREEN = 4

    @property
    def folder(self) -> str:
        """Folder name artifacts of this tier are grouped under."""
        return _TIER_FOLDERS[self]


_TIER_FOLDERS = {
    Tier.SKIP: "",
    Tier.ATOM: "Atoms",
    Tier.MOLECULE: "Molecules",
    Tier.ORGANISM: "Organisms",
    Tier.SCREEN: "Screens",
}


class NodeKind(str, Enum):
    """Structural node type from the source document."""

    FRAME = "FRAME"
    GROUP = "GROUP"
    SECTION = "SECTION"
    COMPONENT = "COMPONENT"
    COMPONENT_SET = "COMPONENT_SET"
    INSTANCE = "INSTANCE"
    TEXT = "TEXT"
    RECTANGLE = "RECTANGLE"
    VECTOR = "VECTOR"
    ELLIPSE = "ELLIPSE"
    LINE = "LINE"
    STAR = "STAR"
    POLYGON = "POLYGON"
    BOOLEAN_OPERATION = "BOOLEAN_OPERATION"
    SLICE = "SLICE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> NodeKind:
        """Parse a source type string, mapping unknown types to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_vector_primitive(self) -> bool:
        return self in VECTOR_PRIMITIVES


VECTOR_PRIMITIVES = frozenset(
    {
        NodeKind.VECTOR,
        NodeKind.STAR,
        NodeKind.POLYGON,
        NodeKind.ELLIPSE,
        NodeKind.LINE,
        NodeKind.BOOLEAN_OPERATION,
    }
)


class LayoutMode(str, Enum):
    """Axis a container lays out its own children along."""

    NONE = "NONE"
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


class LayoutWrap(str, Enum):
    NO_WRAP = "NO_WRAP"
    WRAP = "WRAP"


class AxisAlign(str, Enum):
    """Primary or counter axis alignment of a container's children."""

    START = "START"
    CENTER = "CENTER"
    END = "END"
    SPACE_BETWEEN = "SPACE_BETWEEN"
    BASELINE = "BASELINE"


class SizingMode(str, Enum):
    """How a node sizes itself within its parent."""

    FIXED = "FIXED"
    HUG = "HUG"
    FILL = "FILL"


class Positioning(str, Enum):
    """Flow positioning follows the parent layout; absolute uses constraints."""

    AUTO = "AUTO"
    ABSOLUTE = "ABSOLUTE"


class HorizontalConstraint(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CENTER = "CENTER"
    LEFT_RIGHT = "LEFT_RIGHT"
    SCALE = "SCALE"


class VerticalConstraint(str, Enum):
    TOP = "TOP"
    BOTTOM = "BOTTOM"
    CENTER = "CENTER"
    TOP_BOTTOM = "TOP_BOTTOM"
    SCALE = "SCALE"


class PaintType(str, Enum):
    SOLID = "SOLID"
    GRADIENT_LINEAR = "GRADIENT_LINEAR"
    GRADIENT_RADIAL = "GRADIENT_RADIAL"
    GRADIENT_ANGULAR = "GRADIENT_ANGULAR"
    GRADIENT_DIAMOND = "GRADIENT_DIAMOND"
    IMAGE = "IMAGE"
    EMOJI = "EMOJI"
    VIDEO = "VIDEO"


class EffectType(str, Enum):
    INNER_SHADOW = "INNER_SHADOW"
    DROP_SHADOW = "DROP_SHADOW"
    LAYER_BLUR = "LAYER_BLUR"
    BACKGROUND_BLUR = "BACKGROUND_BLUR"


class TextCase(str, Enum):
    ORIGINAL = "ORIGINAL"
    UPPER = "UPPER"
    LOWER = "LOWER"
    TITLE = "TITLE"
    SMALL_CAPS = "SMALL_CAPS"
    SMALL_CAPS_FORCED = "SMALL_CAPS_FORCED"


class TextDecoration(str, Enum):
    NONE = "NONE"
    UNDERLINE = "UNDERLINE"
    STRIKETHROUGH = "STRIKETHROUGH"


class TextAlignHorizontal(str, Enum):
    LEFT = "LEFT"
    CENTER = "CENTER"
    RIGHT = "RIGHT"
    JUSTIFIED = "JUSTIFIED"


class TextAlignVertical(str, Enum):
    TOP = "TOP"
    CENTER = "CENTER"
    BOTTOM = "BOTTOM"


# =============================================================================
# Value Objects
# =============================================================================


class Color(BaseModel):
    """RGBA colour with channels in 0..1."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0


class Paint(BaseModel):
    """Fill or stroke paint, carried opaquely."""

    type: PaintType = PaintType.SOLID
    visible: bool = True
    opacity: float = 1.0
    color: Color | None = None
    image_ref: str | None = None
    scale_mode: str | None = None
    gradient_stops: list[dict[str, Any]] = Field(default_factory=list)


class Effect(BaseModel):
    """Shadow or blur effect, carried opaquely."""

    type: EffectType
    visible: bool = True
    radius: float = 0.0
    color: Color | None = None
    offset_x: float = 0.0
    offset_y: float = 0.0
    spread: float = 0.0


class Geometry(BaseModel):
    """Absolute box in source coordinates (origin top-left, y down)."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0


class ContainerLayout(BaseModel):
    """How a node lays out its own children.

    Attributes:
        mode: Primary axis, or NONE for free-form placement.
        wrap: Whether children wrap.
        primary_align: Alignment along the primary axis.
        counter_align: Alignment along the counter axis.
        item_spacing: Gap between children along the primary axis.
        counter_spacing: Gap between wrapped lines.
        padding_left: Inner padding, left edge.
        padding_right: Inner padding, right edge.
        padding_top: Inner padding, top edge.
        padding_bottom: Inner padding, bottom edge.
    """

    mode: LayoutMode = LayoutMode.NONE
    wrap: LayoutWrap = LayoutWrap.NO_WRAP
    primary_align: AxisAlign = AxisAlign.START
    counter_align: AxisAlign = AxisAlign.START
    item_spacing: float = 0.0
    counter_spacing: float = 0.0
    padding_left: float = 0.0
    padding_right: float = 0.0
    padding_top: float = 0.0
    padding_bottom: float = 0.0

    @property
    def is_layout(self) -> bool:
        return self.mode != LayoutMode.NONE


class SelfSizing(BaseModel):
    """How a node sizes itself within its parent's layout."""

    horizontal: SizingMode = SizingMode.FIXED
    vertical: SizingMode = SizingMode.FIXED
    min_width: float | None = None
    max_width: float | None = None
    min_height: float | None = None
    max_height: float | None = None
    grow: float = 0.0


class Constraints(BaseModel):
    """Edge constraints, used only when positioning is absolute."""

    horizontal: HorizontalConstraint = HorizontalConstraint.LEFT
    vertical: VerticalConstraint = VerticalConstraint.TOP


class TextStyle(BaseModel):
    """Typography of a text node."""

    font_family: str | None = None
    font_post_script_name: str | None = None
    font_size: float = 14.0
    font_weight: int = 400
    italic: bool = False
    align_horizontal: TextAlignHorizontal = TextAlignHorizontal.LEFT
    align_vertical: TextAlignVertical = TextAlignVertical.TOP
    letter_spacing: float = 0.0
    line_height: float | None = None
    color: Color | None = None
    text_case: TextCase = TextCase.ORIGINAL
    decoration: TextDecoration = TextDecoration.NONE
    auto_resize: str | None = None


# =============================================================================
# Name Cleaning
# =============================================================================

_INVALID_NAME_CHARS = re.compile(r"[^\w\-]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def clean_name(name: str | None) -> str:
    """Make a display name safe for use as an identifier or file name.

    Example:
        >>> clean_name("Button / Primary (Large)")
        'Button_Primary_Large'
    """
    if not name:
        return "Unnamed"
    cleaned = _INVALID_NAME_CHARS.sub("_", name)
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned).strip("_")
    return cleaned or "Unnamed"


# =============================================================================
# Graph Entities
# =============================================================================


class Node(BaseModel):
    """One visual element of a design document.

    Equality is identity: two distinct node objects are never equal, even
    with identical fields. This keeps parent back-references out of
    comparisons and makes nodes usable as dict keys.
    """

    # Identity
    id: str = Field(..., description="Stable identifier from the source document")
    name: str = Field(default="", description="Display name")
    clean_name: str = Field(default="", description="Identifier-safe name")
    kind: NodeKind = Field(default=NodeKind.FRAME)
    visible: bool = True

    # Geometry and layout profiles
    geometry: Geometry = Field(default_factory=Geometry)
    container: ContainerLayout = Field(default_factory=ContainerLayout)
    sizing: SelfSizing = Field(default_factory=SelfSizing)
    positioning: Positioning = Positioning.AUTO
    constraints: Constraints = Field(default_factory=Constraints)

    # Visuals (opaque)
    fills: list[Paint] = Field(default_factory=list)
    strokes: list[Paint] = Field(default_factory=list)
    stroke_weight: float = 0.0
    effects: list[Effect] = Field(default_factory=list)
    opacity: float = 1.0
    corner_radius: float = 0.0
    corner_radii: list[float] | None = None
    clips_content: bool = False
    background_color: Color | None = None
    image_hash: str | None = None

    # Text
    characters: str | None = None
    text_style: TextStyle | None = None

    # Component and interaction linkage
    is_component: bool = False
    is_instance: bool = False
    component_id: str | None = None
    component_properties: dict[str, Any] = Field(default_factory=dict)
    has_action: bool = False
    action_destination: str | None = None

    # Scrolling
    scroll_horizontal: bool = False
    scroll_vertical: bool = False

    # Explicit hierarchy tier, if configured
    tier: Tier | None = None

    children: list[Node] = Field(default_factory=list)

    # Annotations written by the sync core
    classification: Classification | None = None
    layout: NodeLayout | None = None
    artifact_ref: str | None = None
    is_reference: bool = False

    _parent: Node | None = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        if not self.clean_name:
            self.clean_name = clean_name(self.name)
        for child in self.children:
            child._parent = self

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"Node(id={self.id!r}, name={self.name!r}, kind={self.kind.value})"

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    @property
    def parent(self) -> Node | None:
        """Non-owning reference to the parent node (None for page roots)."""
        return self._parent

    def add_child(self, child: Node) -> Node:
        """Append a child and link its parent reference."""
        self.children.append(child)
        child._parent = self
        return child

    def link_parents(self) -> None:
        """Re-link parent references across the whole subtree."""
        for child in self.children:
            child._parent = self
            child.link_parents()

    def walk(self, include_hidden: bool = True) -> Iterator[Node]:
        """Yield this node and its descendants in pre-order.

        Args:
            include_hidden: Also descend into invisible nodes.
        """
        if not include_hidden and not self.visible:
            return
        yield self
        for child in self.children:
            yield from child.walk(include_hidden)

    def find(self, node_id: str) -> Node | None:
        """Find a node by id within this subtree."""
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def max_depth(self) -> int:
        """Depth of the deepest descendant (a leaf has depth 0)."""
        if not self.children:
            return 0
        return 1 + max(child.max_depth() for child in self.children)

    def instance_count(self) -> int:
        """Number of component instances among the descendants."""
        return sum(
            1 for node in self.walk() if node is not self and node.is_instance
        )

    def visible_children(self) -> list[Node]:
        return [child for child in self.children if child.visible]

    # -------------------------------------------------------------------------
    # Derived structural signals
    # -------------------------------------------------------------------------

    @property
    def has_image_fill(self) -> bool:
        return any(p.visible and p.type == PaintType.IMAGE for p in self.fills)

    @property
    def has_solid_fill(self) -> bool:
        return bool(self.fills) and self.fills[0].type == PaintType.SOLID

    @property
    def has_text_child(self) -> bool:
        return any(child.kind == NodeKind.TEXT for child in self.children)

    @property
    def has_scrolling(self) -> bool:
        return self.scroll_horizontal or self.scroll_vertical

    @property
    def has_background(self) -> bool:
        return self.background_color is not None or any(
            p.visible for p in self.fills
        )

    @property
    def has_stroke(self) -> bool:
        return any(p.visible for p in self.strokes)

    @property
    def aspect_ratio(self) -> float | None:
        """Width over height, or None for zero-height boxes."""
        if self.geometry.height <= 0:
            return None
        return self.geometry.width / self.geometry.height

    @property
    def approximations(self) -> list[str]:
        """Approximation tags recorded during layout resolution."""
        return list(self.layout.approximations) if self.layout else []

    def text_content(self) -> str | None:
        """Characters of this node, or of its first text descendant."""
        for node in self.walk():
            if node.kind == NodeKind.TEXT and node.characters:
                return node.characters
        return None


class ComponentInfo(BaseModel):
    """Metadata of a component definition.

    Attributes:
        node_id: Id of the definition node (the component id).
        key: Publish key of the component.
        name: Component name.
        description: Component description.
        component_set_id: Owning variant set, if any.
        page_name: Page the definition lives on, filled by the parser.
        tier: Hierarchy tier, filled once resolved.
        artifact_ref: Artifact reference, filled once built.
    """

    node_id: str
    key: str = ""
    name: str = ""
    description: str = ""
    component_set_id: str | None = None
    page_name: str | None = None
    tier: Tier | None = None
    artifact_ref: str | None = None


class StyleInfo(BaseModel):
    """Metadata of a shared style."""

    key: str = ""
    name: str = ""
    style_type: str = ""
    description: str = ""


class Page(BaseModel):
    """Top-level canvas owning a forest of nodes."""

    id: str
    name: str = ""
    selected: bool = True
    tier: Tier = Tier.SCREEN
    background_color: Color | None = None
    children: list[Node] = Field(default_factory=list)

    def walk(self, include_hidden: bool = True) -> Iterator[Node]:
        for child in self.children:
            yield from child.walk(include_hidden)

    @property
    def component_count(self) -> int:
        return sum(1 for node in self.walk() if node.is_component)


class Document(BaseModel):
    """Design document: pages plus component and style metadata."""

    name: str = ""
    file_key: str | None = None
    version: str | None = None
    last_modified: str | None = None
    pages: list[Page] = Field(default_factory=list)
    components: dict[str, ComponentInfo] = Field(default_factory=dict)
    styles: dict[str, StyleInfo] = Field(default_factory=dict)
    image_refs: dict[str, list[str]] = Field(default_factory=dict)

    def iter_nodes(self, include_hidden: bool = True) -> Iterator[Node]:
        """Yield every node of every page in document order."""
        for page in self.pages:
            yield from page.walk(include_hidden)

    def find_node(self, node_id: str) -> Node | None:
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def selected_pages(self) -> list[Page]:
        return [page for page in self.pages if page.selected]

    def component_definitions(self) -> list[Node]:
        """Component definition nodes in document order."""
        return [node for node in self.iter_nodes() if node.is_component]

    def instances_of(self, component_id: str) -> list[Node]:
        return [
            node
            for node in self.iter_nodes()
            if node.is_instance and node.component_id == component_id
        ]

    def link_parents(self) -> None:
        """Re-link parent references after structural edits."""
        for page in self.pages:
            for root in page.children:
                root._parent = None
                root.link_parents()


__all__ = [
    # Enums
    "Tier",
    "NodeKind",
    "VECTOR_PRIMITIVES",
    "LayoutMode",
    "LayoutWrap",
    "AxisAlign",
    "SizingMode",
    "Positioning",
    "HorizontalConstraint",
    "VerticalConstraint",
    "PaintType",
    "EffectType",
    "TextCase",
    "TextDecoration",
    "TextAlignHorizontal",
    "TextAlignVertical",
    # Value objects
    "Color",
    "Paint",
    "Effect",
    "Geometry",
    "ContainerLayout",
    "SelfSizing",
    "Constraints",
    "TextStyle",
    # Entities
    "Node",
    "ComponentInfo",
    "StyleInfo",
    "Page",
    "Document",
    # Helpers
    "clean_name",
]
