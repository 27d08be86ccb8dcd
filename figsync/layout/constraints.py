"""Anchor and offset geometry from edge constraints.

Source geometry has its origin at the top-left with y growing downwards.
The target convention has y growing upwards, so on the vertical axis the
source near edge (top) is the target high edge (anchor 1) and every
vertical computation swaps near and far accordingly.
"""

import logging

from figsync.graph import (
    AxisPlacement,
    HorizontalConstraint,
    Node,
    Placement,
    PlacementMode,
    VerticalConstraint,
)

logger = logging.getLogger(__name__)

ABSOLUTE_WITHOUT_PARENT = "absolute-without-parent"
DEGENERATE_PARENT = "degenerate-parent"


def _fraction(value: float, extent: float) -> float:
    return value / extent if extent > 0 else 0.0


def place_horizontal(
    constraint: HorizontalConstraint,
    rel: float,
    width: float,
    content: float,
    tags: list[str],
) -> AxisPlacement:
    """Resolve the horizontal axis.

    Args:
        constraint: Horizontal constraint of the node.
        rel: Left edge relative to the parent content box.
        width: Node width.
        content: Parent content width (padding excluded).
        tags: Approximation tags to append to.
    """
    far = content - (rel + width)
    common = {"constraint": constraint.value, "source_near": rel, "source_far": far}

    if constraint == HorizontalConstraint.RIGHT:
        return AxisPlacement(
            anchor_min=1.0,
            anchor_max=1.0,
            position=-far - width / 2,
            size=width,
            inset_max=far,
            **common,
        )
    if constraint == HorizontalConstraint.CENTER:
        return AxisPlacement(
            anchor_min=0.5,
            anchor_max=0.5,
            position=rel + width / 2 - content / 2,
            size=width,
            **common,
        )
    if constraint == HorizontalConstraint.LEFT_RIGHT:
        return AxisPlacement(
            anchor_min=0.0, anchor_max=1.0, inset_min=rel, inset_max=far, **common
        )
    if constraint == HorizontalConstraint.SCALE:
        if content <= 0:
            tags.append(DEGENERATE_PARENT)
        return AxisPlacement(
            anchor_min=_fraction(rel, content),
            anchor_max=_fraction(rel + width, content),
            **common,
        )
    return AxisPlacement(
        anchor_min=0.0,
        anchor_max=0.0,
        position=rel + width / 2,
        size=width,
        inset_min=rel,
        **common,
    )


def place_vertical(
    constraint: VerticalConstraint,
    rel: float,
    height: float,
    content: float,
    tags: list[str],
) -> AxisPlacement:
    """Resolve the vertical axis, flipping into the y-up convention.

    Args:
        constraint: Vertical constraint of the node.
        rel: Top edge relative to the parent content box (source, y down).
        height: Node height.
        content: Parent content height (padding excluded).
        tags: Approximation tags to append to.
    """
    bottom = content - (rel + height)
    common = {"constraint": constraint.value, "source_near": rel, "source_far": bottom}

    if constraint == VerticalConstraint.BOTTOM:
        return AxisPlacement(
            anchor_min=0.0,
            anchor_max=0.0,
            position=bottom + height / 2,
            size=height,
            inset_min=bottom,
            **common,
        )
    if constraint == VerticalConstraint.CENTER:
        return AxisPlacement(
            anchor_min=0.5,
            anchor_max=0.5,
            position=content / 2 - rel - height / 2,
            size=height,
            **common,
        )
    if constraint == VerticalConstraint.TOP_BOTTOM:
        return AxisPlacement(
            anchor_min=0.0, anchor_max=1.0, inset_min=bottom, inset_max=rel, **common
        )
    if constraint == VerticalConstraint.SCALE:
        if content <= 0:
            tags.append(DEGENERATE_PARENT)
        return AxisPlacement(
            anchor_min=_fraction(bottom, content),
            anchor_max=_fraction(content - rel, content),
            **common,
        )
    return AxisPlacement(
        anchor_min=1.0,
        anchor_max=1.0,
        position=-rel - height / 2,
        size=height,
        inset_max=rel,
        **common,
    )


def place_absolute(node: Node, parent: Node, tags: list[str]) -> Placement:
    """Place an absolutely positioned node inside its parent's padded box."""
    pad = parent.container
    content_width = parent.geometry.width - pad.padding_left - pad.padding_right
    content_height = parent.geometry.height - pad.padding_top - pad.padding_bottom
    rel_x = node.geometry.x - parent.geometry.x - pad.padding_left
    rel_y = node.geometry.y - parent.geometry.y - pad.padding_top

    placement = Placement(
        mode=PlacementMode.ABSOLUTE,
        horizontal=place_horizontal(
            node.constraints.horizontal,
            rel_x,
            node.geometry.width,
            content_width,
            tags,
        ),
        vertical=place_vertical(
            node.constraints.vertical,
            rel_y,
            node.geometry.height,
            content_height,
            tags,
        ),
    )
    if DEGENERATE_PARENT in tags:
        logger.debug(f"Scale constraint on '{node.id}' under zero-size parent")
    return placement


def place_free(node: Node, parent: Node) -> Placement:
    """Pin a flow child of a free-form parent to the parent's top-left corner.

    Padding does not apply outside a layout container.
    """
    no_tags: list[str] = []
    return Placement(
        mode=PlacementMode.FREE,
        horizontal=place_horizontal(
            HorizontalConstraint.LEFT,
            node.geometry.x - parent.geometry.x,
            node.geometry.width,
            parent.geometry.width,
            no_tags,
        ),
        vertical=place_vertical(
            VerticalConstraint.TOP,
            node.geometry.y - parent.geometry.y,
            node.geometry.height,
            parent.geometry.height,
            no_tags,
        ),
    )


def place_root(node: Node) -> Placement:
    """Centre a page root at the origin with its stored size."""
    return Placement(
        mode=PlacementMode.ROOT,
        horizontal=AxisPlacement(
            constraint=HorizontalConstraint.CENTER.value,
            anchor_min=0.5,
            anchor_max=0.5,
            size=node.geometry.width,
        ),
        vertical=AxisPlacement(
            constraint=VerticalConstraint.CENTER.value,
            anchor_min=0.5,
            anchor_max=0.5,
            size=node.geometry.height,
        ),
    )


__all__ = [
    "ABSOLUTE_WITHOUT_PARENT",
    "DEGENERATE_PARENT",
    "place_horizontal",
    "place_vertical",
    "place_absolute",
    "place_free",
    "place_root",
]
