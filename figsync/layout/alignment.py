"""Container alignment and space-between distribution.

Space-between has no native counterpart in the target layout model, so a
space-between container is aligned to start with zero spacing and gets one
flexible zero-size spacer between each pair of adjacent children. Equal
grow weights then reproduce equal gaps.
"""

import logging

from figsync.graph import (
    AnchorAlign,
    AxisAlign,
    AxisSizing,
    ContainerDirective,
    LayoutMode,
    LayoutWrap,
    Node,
    SizingDirective,
    SizingKind,
    Spacer,
)

logger = logging.getLogger(__name__)

BASELINE_APPROXIMATED = "baseline-approximated"
COUNTER_SPACE_BETWEEN = "counter-space-between-approximated"
SPACER_PREFIX = "_spacer_"

_ANCHORS = {
    AxisAlign.START: AnchorAlign.START,
    AxisAlign.CENTER: AnchorAlign.CENTER,
    AxisAlign.END: AnchorAlign.END,
    AxisAlign.SPACE_BETWEEN: AnchorAlign.START,
    AxisAlign.BASELINE: AnchorAlign.START,
}


def map_axis_align(align: AxisAlign | None) -> AnchorAlign:
    """Map a source axis alignment to a native anchor.

    Space-between and baseline resolve to start; callers record the
    approximation.
    """
    return _ANCHORS.get(align, AnchorAlign.START) if align else AnchorAlign.START


def uses_space_between(node: Node) -> bool:
    """Check whether a container distributes children with space-between."""
    return (
        node.container.is_layout
        and node.container.primary_align == AxisAlign.SPACE_BETWEEN
    )


def resolve_container(
    node: Node, tags: list[str] | None = None
) -> ContainerDirective | None:
    """Resolve a container's native child arrangement.

    Args:
        node: Node whose own children are arranged.
        tags: Optional list that receives approximation tags.

    Returns:
        ContainerDirective, or None if the node is not a layout container.
    """
    container = node.container
    if not container.is_layout:
        return None

    tags = tags if tags is not None else []
    space_between = uses_space_between(node)

    primary = AnchorAlign.START if space_between else map_axis_align(
        container.primary_align
    )
    counter = map_axis_align(container.counter_align)

    if AxisAlign.BASELINE in (container.primary_align, container.counter_align):
        tags.append(BASELINE_APPROXIMATED)
        logger.debug(f"Baseline alignment on '{node.id}' resolved to start")
    if container.counter_align == AxisAlign.SPACE_BETWEEN:
        tags.append(COUNTER_SPACE_BETWEEN)
        logger.debug(f"Counter-axis space-between on '{node.id}' resolved to start")

    if container.mode == LayoutMode.HORIZONTAL:
        horizontal, vertical = primary, counter
    else:
        horizontal, vertical = counter, primary

    return ContainerDirective(
        axis=container.mode.value.lower(),
        horizontal_align=horizontal,
        vertical_align=vertical,
        spacing=0.0 if space_between else container.item_spacing,
        counter_spacing=container.counter_spacing,
        padding_left=container.padding_left,
        padding_right=container.padding_right,
        padding_top=container.padding_top,
        padding_bottom=container.padding_bottom,
        wrap=container.wrap == LayoutWrap.WRAP,
        space_between=space_between,
    )


def spacer_sizing(mode: LayoutMode) -> SizingDirective:
    """Sizing of a spacer: grow on the primary axis, zero on the counter axis."""
    grow = AxisSizing(
        kind=SizingKind.GROW, size=0.0, weight=1.0, preferred=0.0, min_size=0.0
    )
    fixed = AxisSizing(kind=SizingKind.EXACT, size=0.0)
    if mode == LayoutMode.HORIZONTAL:
        return SizingDirective(horizontal=grow, vertical=fixed)
    return SizingDirective(horizontal=fixed, vertical=grow)


def make_spacers(node: Node, children: list[Node]) -> list[Spacer]:
    """Create the spacers for a space-between container.

    Args:
        node: The space-between container.
        children: Final flow children in render order.

    Returns:
        One spacer between each adjacent pair; empty for fewer than 2 children.
    """
    if len(children) < 2:
        return []

    sizing = spacer_sizing(node.container.mode)
    return [
        Spacer(
            name=f"{SPACER_PREFIX}{index}",
            after_id=before.id,
            before_id=after.id,
            sizing=sizing,
        )
        for index, (before, after) in enumerate(zip(children, children[1:]), start=1)
    ]


def interleave(children: list[Node], spacers: list[Spacer]) -> list[str]:
    """Emitted child order with spacers placed after the child they follow."""
    following = {spacer.after_id: spacer.name for spacer in spacers}
    order: list[str] = []
    for child in children:
        order.append(child.id)
        if child.id in following:
            order.append(following[child.id])
    return order


__all__ = [
    "BASELINE_APPROXIMATED",
    "COUNTER_SPACE_BETWEEN",
    "SPACER_PREFIX",
    "map_axis_align",
    "uses_space_between",
    "resolve_container",
    "spacer_sizing",
    "make_spacers",
    "interleave",
]
