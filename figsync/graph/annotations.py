"""Annotation models written onto nodes by the sync core.

Nodes are never re-parented or deleted after parsing; classification,
layout resolution and the hierarchy build only attach the models below.
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, Field

# =============================================================================
# Semantic Classification
# =============================================================================


class SemanticRole(str, Enum):
    """Semantic UI roles a node can be classified as.

    Values are the labels used in classifier prompts and answers.
    """

    CONTAINER = "Container"
    BUTTON = "Button"
    LABEL = "Label"
    INPUT_FIELD = "InputField"
    TOGGLE = "Toggle"
    SLIDER = "Slider"
    DROPDOWN = "Dropdown"
    IMAGE = "Image"
    ICON = "Icon"
    SCROLL_VIEW = "ScrollView"
    LIST = "List"
    CARD = "Card"
    NAVIGATION = "Navigation"
    HEADER = "Header"
    FOOTER = "Footer"
    MODAL = "Modal"
    TOOLTIP = "Tooltip"
    PROGRESS_BAR = "ProgressBar"
    TAB_CONTROL = "TabControl"
    TAB = "Tab"
    BADGE = "Badge"
    AVATAR = "Avatar"
    DIVIDER = "Divider"
    SPACER = "Spacer"

    @property
    def is_interactive(self) -> bool:
        return self in _INTERACTIVE_ROLES

    @property
    def is_text(self) -> bool:
        return self is SemanticRole.LABEL

    @property
    def is_image(self) -> bool:
        return self in (SemanticRole.IMAGE, SemanticRole.ICON, SemanticRole.AVATAR)

    @property
    def is_container(self) -> bool:
        return self in _CONTAINER_ROLES


_INTERACTIVE_ROLES = frozenset(
    {
        SemanticRole.BUTTON,
        SemanticRole.INPUT_FIELD,
        SemanticRole.TOGGLE,
        SemanticRole.SLIDER,
        SemanticRole.DROPDOWN,
        SemanticRole.TAB,
    }
)

_CONTAINER_ROLES = frozenset(
    {
        SemanticRole.CONTAINER,
        SemanticRole.SCROLL_VIEW,
        SemanticRole.LIST,
        SemanticRole.CARD,
        SemanticRole.NAVIGATION,
        SemanticRole.HEADER,
        SemanticRole.FOOTER,
        SemanticRole.MODAL,
        SemanticRole.TAB_CONTROL,
    }
)


class Confidence(IntEnum):
    """Ordered confidence of a classification."""

    VERY_LOW = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    VERY_HIGH = 4


class ClassificationSource(str, Enum):
    """Where a classification came from."""

    RULE = "rule"
    EXTERNAL = "external"
    DEFAULT = "default"


class Classification(BaseModel):
    """Resolved semantic role of a node.

    Attributes:
        role: Semantic role.
        confidence: How certain the deciding rule or classifier was.
        reason: Short human-readable explanation, kept for observability.
        source: Rule engine, external classifier, or default fallback.
    """

    role: SemanticRole
    confidence: Confidence
    reason: str = ""
    source: ClassificationSource = ClassificationSource.RULE

    model_config = {"frozen": True}


# =============================================================================
# Layout Resolution
# =============================================================================


class SizingKind(str, Enum):
    """How a node sizes itself along one axis of its parent."""

    EXACT = "exact"
    GROW = "grow"
    SHRINK = "shrink"


class AxisSizing(BaseModel):
    """Sizing directive for one axis.

    Attributes:
        kind: Exact size, grow to fill, or shrink to content.
        size: Exact size (EXACT) or last-known stored size otherwise.
        weight: Grow weight, only meaningful for GROW.
        preferred: Preferred size; for GROW with a max this is the soft cap.
        min_size: Minimum size passed through from the node.
        content_driven: The rendered extent follows content rather than
            the stored absolute size.
    """

    kind: SizingKind
    size: float = 0.0
    weight: float = 0.0
    preferred: float | None = None
    min_size: float | None = None
    content_driven: bool = False


class SizingDirective(BaseModel):
    """Per-axis sizing of a node within its parent."""

    horizontal: AxisSizing
    vertical: AxisSizing


class AnchorAlign(str, Enum):
    """Native child alignment along one axis."""

    START = "start"
    CENTER = "center"
    END = "end"


class ContainerDirective(BaseModel):
    """How a layout container arranges its children natively.

    Attributes:
        axis: Primary axis ("horizontal" or "vertical").
        horizontal_align: Child alignment along the x axis.
        vertical_align: Child alignment along the y axis (start = top).
        spacing: Gap between children; 0 when spacers distribute space.
        counter_spacing: Gap between wrapped lines.
        padding_left: Inner padding, left edge.
        padding_right: Inner padding, right edge.
        padding_top: Inner padding, top edge.
        padding_bottom: Inner padding, bottom edge.
        wrap: Whether children wrap onto new lines.
        space_between: Spacers replace native distribution.
    """

    axis: str
    horizontal_align: AnchorAlign = AnchorAlign.START
    vertical_align: AnchorAlign = AnchorAlign.START
    spacing: float = 0.0
    counter_spacing: float = 0.0
    padding_left: float = 0.0
    padding_right: float = 0.0
    padding_top: float = 0.0
    padding_bottom: float = 0.0
    wrap: bool = False
    space_between: bool = False


class Spacer(BaseModel):
    """Zero-size flexible pseudo-child inserted for space-between.

    Attributes:
        name: Spacer name, `_spacer_<i>` counting from 1.
        after_id: Real child the spacer follows.
        before_id: Real child the spacer precedes.
        sizing: Grow weight 1 / preferred 0 on the primary axis,
            exact 0 on the counter axis.
    """

    name: str
    after_id: str
    before_id: str
    sizing: SizingDirective


class AxisPlacement(BaseModel):
    """Anchor and offset geometry for one axis.

    Coordinates are relative to the parent's (padded) content box, measured
    from its low edge in the target convention: x grows rightwards and y
    grows upwards, so anchor 1 on the vertical axis is the top edge.

    Fixed-size placements (near, far and center pins) use a single anchor
    and `position`, the offset of the node's centre from the anchor point.
    Stretch and scale placements use two anchors plus insets, and their
    size follows the parent.

    Attributes:
        constraint: Source constraint name (e.g. "LEFT", "TOP_BOTTOM").
        anchor_min: Low anchor as a fraction of the parent extent.
        anchor_max: High anchor as a fraction of the parent extent.
        position: Centre offset from the anchor point (fixed-size only).
        size: Fixed size, or None when the size follows the parent.
        inset_min: Distance from the low edge of the parent content box.
        inset_max: Distance from the high edge of the parent content box.
        source_near: Distance from the near edge in source coordinates
            (left or top).
        source_far: Distance from the far edge in source coordinates
            (right or bottom).
    """

    constraint: str
    anchor_min: float
    anchor_max: float
    position: float = 0.0
    size: float | None = None
    inset_min: float = 0.0
    inset_max: float = 0.0
    source_near: float = 0.0
    source_far: float = 0.0

    @property
    def stretches(self) -> bool:
        return self.size is None

    def box(self, parent_extent: float) -> tuple[float, float]:
        """Resolve the placement against a parent content extent.

        Args:
            parent_extent: Size of the parent content box on this axis.

        Returns:
            (start, size) measured from the low edge of the content box.
        """
        if self.size is None:
            start = self.anchor_min * parent_extent + self.inset_min
            end = self.anchor_max * parent_extent - self.inset_max
            return start, end - start
        center = self.anchor_min * parent_extent + self.position
        return center - self.size / 2, self.size


class PlacementMode(str, Enum):
    """How a node's position is determined."""

    ROOT = "root"
    FLOW = "flow"
    FREE = "free"
    ABSOLUTE = "absolute"


class Placement(BaseModel):
    """Resolved position of a node relative to its parent.

    FLOW placements are left to the parent's native layout and carry no
    axis geometry.
    """

    mode: PlacementMode
    horizontal: AxisPlacement | None = None
    vertical: AxisPlacement | None = None


class NodeLayout(BaseModel):
    """Layout resolution attached to a node.

    Attributes:
        sizing: Own sizing within the parent.
        placement: Position relative to the parent.
        container: Native arrangement of children, for layout containers.
        spacers: Spacer pseudo-children inserted for space-between.
        child_order: Emitted order of child ids and spacer names.
        approximations: Tags for unsupported features that were approximated.
    """

    sizing: SizingDirective
    placement: Placement
    container: ContainerDirective | None = None
    spacers: list[Spacer] = Field(default_factory=list)
    child_order: list[str] = Field(default_factory=list)
    approximations: list[str] = Field(default_factory=list)


__all__ = [
    # Classification
    "SemanticRole",
    "Confidence",
    "ClassificationSource",
    "Classification",
    # Layout
    "SizingKind",
    "AxisSizing",
    "SizingDirective",
    "AnchorAlign",
    "ContainerDirective",
    "Spacer",
    "AxisPlacement",
    "PlacementMode",
    "Placement",
    "NodeLayout",
]
