"""Structural validation of node graphs.

Runs once before any traversal so that cycles and identity conflicts are
reported at the document root instead of surfacing as infinite recursion or
a wrong build order halfway through a sync.
"""

import logging
from dataclasses import dataclass, field

from figsync.graph import Document, Node

logger = logging.getLogger(__name__)


@dataclass
class ValidationError:
    """Represents a structural error in a node graph.

    Attributes:
        node_id: ID of the node with the error.
        message: Human-readable error description.
        error_type: Category of the error (cycle, duplicate_id,
            shared_ownership, duplicate_component).
        related_ids: Other identifiers involved, e.g. the parent that
            closes a cycle.
    """

    node_id: str
    message: str
    error_type: str
    related_ids: list[str] = field(default_factory=list)


class GraphIntegrityError(ValueError):
    """Raised when a document violates structural invariants.

    Attributes:
        errors: Every validation error found.
    """

    def __init__(self, errors: list[ValidationError]):
        self.errors = errors
        ids = sorted({i for e in errors for i in (e.node_id, *e.related_ids)})
        details = "; ".join(e.message for e in errors)
        super().__init__(
            f"Document failed structural validation ({len(errors)} error(s)) "
            f"involving {', '.join(ids)}: {details}"
        )

    @property
    def node_ids(self) -> list[str]:
        """All offending identifiers, sorted."""
        return sorted({i for e in self.errors for i in (e.node_id, *e.related_ids)})


def validate_document(document: Document) -> list[ValidationError]:
    """Validate a Document for structural issues.

    Performs the following checks:
        - Cycle detection (no node is its own ancestor)
        - Shared ownership (no node object owned by two parents)
        - Unique ID enforcement across all pages
        - Unique component publish keys

    Args:
        document: The document to validate.

    Returns:
        list[ValidationError]: List of validation errors (empty if valid).

    Example:
        >>> errors = validate_document(document)
        >>> for e in errors:
        ...     print(f"{e.node_id}: {e.message}")
    """
    roots = [root for page in document.pages for root in page.children]
    errors = validate_nodes(roots)
    errors.extend(_check_component_keys(document))
    return errors


def validate_nodes(roots: list[Node]) -> list[ValidationError]:
    """Validate a forest of nodes.

    Cycles are checked first; the id checks walk the same bounded traversal,
    so a cyclic graph never recurses forever.
    """
    errors: list[ValidationError] = []
    owners: dict[int, Node | None] = {}
    id_counts: dict[str, int] = {}

    def _check(node: Node, owner: Node | None, path: list[Node]) -> None:
        obj_id = id(node)
        if any(ancestor is node for ancestor in path):
            parent_id = owner.id if owner is not None else node.id
            errors.append(
                ValidationError(
                    node_id=node.id,
                    message=(
                        f"Cycle detected: node '{node.id}' is its own ancestor "
                        f"through parent '{parent_id}'"
                    ),
                    error_type="cycle",
                    related_ids=[parent_id],
                )
            )
            return
        if obj_id in owners:
            first = owners[obj_id]
            first_id = first.id if first is not None else "<page>"
            second_id = owner.id if owner is not None else "<page>"
            errors.append(
                ValidationError(
                    node_id=node.id,
                    message=(
                        f"Node '{node.id}' is owned by both '{first_id}' "
                        f"and '{second_id}'"
                    ),
                    error_type="shared_ownership",
                    related_ids=[first_id, second_id],
                )
            )
            return
        owners[obj_id] = owner
        id_counts[node.id] = id_counts.get(node.id, 0) + 1

        path.append(node)
        for child in node.children:
            _check(child, node, path)
        path.pop()

    for root in roots:
        _check(root, None, [])

    for node_id, count in id_counts.items():
        if count > 1:
            errors.append(
                ValidationError(
                    node_id=node_id,
                    message=f"Duplicate ID '{node_id}' appears {count} times",
                    error_type="duplicate_id",
                )
            )

    return errors


def _check_component_keys(document: Document) -> list[ValidationError]:
    errors: list[ValidationError] = []
    seen: dict[str, str] = {}
    for component_id, info in document.components.items():
        if not info.key:
            continue
        if info.key in seen:
            errors.append(
                ValidationError(
                    node_id=component_id,
                    message=(
                        f"Component key '{info.key}' is shared by "
                        f"'{seen[info.key]}' and '{component_id}'"
                    ),
                    error_type="duplicate_component",
                    related_ids=[seen[info.key]],
                )
            )
        else:
            seen[info.key] = component_id
    return errors


def is_valid(document: Document) -> bool:
    """Check if a document is structurally valid."""
    return not validate_document(document)


def ensure_valid(document: Document) -> None:
    """Validate a document and fail fast on structural errors.

    Raises:
        GraphIntegrityError: If any structural error is found.
    """
    errors = validate_document(document)
    if errors:
        for error in errors:
            logger.error(f"{error.error_type}: {error.message}")
        raise GraphIntegrityError(errors)
