"""FIXED/HUG/FILL sizing resolution.

Each axis of a node resolves to one of three directives relative to its
parent's layout container:

- EXACT: fixed size, clamped to the node's min/max.
- GROW: fill the available space with a weight.
- SHRINK: size to content.

Outside a layout container (free-form parent, page root, or absolute
positioning) every mode collapses to the stored absolute size.
"""

import logging

from figsync.graph import (
    AxisSizing,
    Node,
    Positioning,
    SizingDirective,
    SizingKind,
    SizingMode,
)

logger = logging.getLogger(__name__)

MAX_SIZE_SOFT_CAP = "max-size-soft-cap"
FILL_OUTSIDE_LAYOUT = "fill-outside-layout"


def clamp(value: float, minimum: float | None, maximum: float | None) -> float:
    """Clamp a value to optional bounds (min wins if the bounds cross)."""
    if maximum is not None and value > maximum:
        value = maximum
    if minimum is not None and value < minimum:
        value = minimum
    return value


def resolve_axis(
    mode: SizingMode | None,
    size: float,
    minimum: float | None,
    maximum: float | None,
    grow: float,
    in_layout: bool,
    tags: list[str],
) -> AxisSizing:
    """Resolve one axis of a node's sizing.

    Args:
        mode: Sizing mode from the node; None degrades to FIXED.
        size: Stored absolute size on this axis.
        minimum: Optional minimum size.
        maximum: Optional maximum size.
        grow: Grow weight from the node.
        in_layout: Whether the parent lays this node out along an axis.
        tags: Approximation tags to append to.

    Returns:
        AxisSizing for this axis.
    """
    mode = mode or SizingMode.FIXED

    if not in_layout:
        if mode == SizingMode.FILL:
            tags.append(FILL_OUTSIDE_LAYOUT)
        return AxisSizing(
            kind=SizingKind.EXACT,
            size=clamp(size, minimum, maximum),
            min_size=minimum,
        )

    if mode == SizingMode.FILL:
        preferred = None
        if maximum is not None:
            # No hard max in the target model: the max becomes the preferred size.
            preferred = maximum
            tags.append(MAX_SIZE_SOFT_CAP)
        return AxisSizing(
            kind=SizingKind.GROW,
            size=size,
            weight=grow if grow > 0 else 1.0,
            preferred=preferred,
            min_size=minimum,
        )

    if mode == SizingMode.HUG:
        return AxisSizing(
            kind=SizingKind.SHRINK,
            size=size,
            min_size=minimum,
            content_driven=True,
        )

    return AxisSizing(
        kind=SizingKind.EXACT,
        size=clamp(size, minimum, maximum),
        min_size=minimum,
    )


def resolve_sizing(
    node: Node, parent: Node | None, tags: list[str] | None = None
) -> SizingDirective:
    """Resolve both axes of a node's sizing within its parent.

    Absolutely positioned nodes ignore the parent's layout container and
    are sized like children of a free-form parent.

    Args:
        node: Node to size.
        parent: Parent node, or None for page roots.
        tags: Optional list that receives approximation tags.

    Returns:
        SizingDirective with horizontal and vertical directives.
    """
    tags = tags if tags is not None else []
    in_layout = (
        parent is not None
        and parent.container.is_layout
        and node.positioning != Positioning.ABSOLUTE
    )
    sizing = node.sizing
    geometry = node.geometry

    directive = SizingDirective(
        horizontal=resolve_axis(
            sizing.horizontal,
            geometry.width,
            sizing.min_width,
            sizing.max_width,
            sizing.grow,
            in_layout,
            tags,
        ),
        vertical=resolve_axis(
            sizing.vertical,
            geometry.height,
            sizing.min_height,
            sizing.max_height,
            sizing.grow,
            in_layout,
            tags,
        ),
    )

    if tags:
        logger.debug(f"Sizing of '{node.id}' approximated: {', '.join(tags)}")
    return directive


__all__ = [
    "MAX_SIZE_SOFT_CAP",
    "FILL_OUTSIDE_LAYOUT",
    "clamp",
    "resolve_axis",
    "resolve_sizing",
]
