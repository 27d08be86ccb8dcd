"""Layout translation orchestration.

Every visible node is resolved in one pass, strictly parent before
children:

1. configure its own container profile (alignment, spacing, padding),
2. resolve its sizing within the parent,
3. place it (absolute constraints, free-form pin, flow, or page root),
4. recurse into its children,
5. finalize space-between spacers once the visible child list is known.

Invisible nodes are skipped together with their subtrees and carry no
layout annotation.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

from figsync.core.cancel import CancellationToken, check
from figsync.graph import (
    Document,
    Node,
    NodeLayout,
    Placement,
    PlacementMode,
    Positioning,
)

from .alignment import interleave, make_spacers, resolve_container, uses_space_between
from .constraints import (
    ABSOLUTE_WITHOUT_PARENT,
    place_absolute,
    place_free,
    place_root,
)
from .sizing import resolve_sizing

logger = logging.getLogger(__name__)


@dataclass
class TranslationStats:
    """Counters collected during a translation pass.

    Attributes:
        nodes_resolved: Visible nodes that received a layout annotation.
        nodes_skipped: Invisible nodes skipped (subtree roots only).
        spacers_inserted: Spacer pseudo-children emitted.
        approximations: Occurrences per approximation tag.
    """

    nodes_resolved: int = 0
    nodes_skipped: int = 0
    spacers_inserted: int = 0
    approximations: Counter = field(default_factory=Counter)

    @property
    def approximation_count(self) -> int:
        return sum(self.approximations.values())


class LayoutTranslator:
    """Resolves layout annotations for node trees.

    Example:
        >>> translator = LayoutTranslator()
        >>> stats = translator.translate_document(document)
        >>> document.find_node("1:2").layout.sizing.horizontal.kind
        <SizingKind.GROW: 'grow'>
    """

    def __init__(self, cancel: CancellationToken | None = None):
        self._cancel = cancel
        self.stats = TranslationStats()

    def translate_document(self, document: Document) -> TranslationStats:
        """Translate every page root of a document."""
        for page in document.pages:
            for root in page.children:
                self.translate(root)
        logger.info(
            f"Resolved layout for {self.stats.nodes_resolved} node(s), "
            f"{self.stats.spacers_inserted} spacer(s), "
            f"{self.stats.approximation_count} approximation(s)"
        )
        return self.stats

    def translate(self, root: Node, parent: Node | None = None) -> None:
        """Translate a subtree.

        Args:
            root: Subtree root.
            parent: Parent the root is laid out in; None for page roots.

        Raises:
            OperationCancelled: If the cancellation token fires between nodes.
        """
        self._visit(root, parent)

    def _visit(self, node: Node, parent: Node | None) -> None:
        check(self._cancel)

        if not node.visible:
            node.layout = None
            self.stats.nodes_skipped += 1
            return

        tags: list[str] = []
        container = resolve_container(node, tags)
        sizing = resolve_sizing(node, parent, tags)
        placement = self._place(node, parent, tags)

        node.layout = NodeLayout(
            sizing=sizing,
            placement=placement,
            container=container,
            approximations=list(dict.fromkeys(tags)),
        )
        self.stats.nodes_resolved += 1
        self.stats.approximations.update(node.layout.approximations)

        for child in node.children:
            self._visit(child, node)

        self._finalize(node)

    def _place(self, node: Node, parent: Node | None, tags: list[str]) -> Placement:
        absolute = node.positioning == Positioning.ABSOLUTE

        if parent is None:
            if absolute:
                tags.append(ABSOLUTE_WITHOUT_PARENT)
                logger.debug(f"Root-level absolute node '{node.id}' placed as flow")
            return place_root(node)

        if absolute:
            return place_absolute(node, parent, tags)
        if parent.container.is_layout:
            return Placement(mode=PlacementMode.FLOW)
        return place_free(node, parent)

    def _finalize(self, node: Node) -> None:
        visible = node.visible_children()
        spacers = []
        if uses_space_between(node):
            flow = [c for c in visible if c.positioning != Positioning.ABSOLUTE]
            spacers = make_spacers(node, flow)
            self.stats.spacers_inserted += len(spacers)

        node.layout.spacers = spacers
        node.layout.child_order = interleave(visible, spacers)


def translate_document(
    document: Document, cancel: CancellationToken | None = None
) -> TranslationStats:
    """Resolve layout annotations for a whole document."""
    return LayoutTranslator(cancel).translate_document(document)


__all__ = ["LayoutTranslator", "TranslationStats", "translate_document"]
