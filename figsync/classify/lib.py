"""Type classifier orchestration.

Every node gets a local rule classification first. Nodes whose local
confidence is below the threshold are then offered to an optional
external classifier, serially or through a thread pool. An external
answer replaces the local one only if it is strictly more confident, and
any external failure keeps the local result. Cancellation abandons
external calls already in flight within one poll interval.
"""

import logging
from collections import Counter
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from figsync.core.cancel import (
    POLL_INTERVAL,
    CancellationToken,
    OperationCancelled,
    check,
    run_cancellable,
)
from figsync.graph import Classification, Confidence, Document, Node

from .external import ClassificationRequest, ExternalClassifier
from .rules import RuleEngine

logger = logging.getLogger(__name__)


@dataclass
class ClassificationStats:
    """Counters collected during a classification pass.

    Attributes:
        nodes_classified: Nodes that received a classification.
        external_requests: Nodes sent to the external classifier.
        external_accepted: External answers that replaced the local result.
        external_failures: External calls that failed or were unparsable.
        roles: Final role counts.
    """

    nodes_classified: int = 0
    external_requests: int = 0
    external_accepted: int = 0
    external_failures: int = 0
    roles: Counter = field(default_factory=Counter)


class TypeClassifier:
    """Classifies nodes into semantic roles.

    Example:
        >>> classifier = TypeClassifier(LLMClassifier(model="gpt-4.1-nano"))
        >>> stats = classifier.classify_document(document)
        >>> document.find_node("1:2").classification.role
        <SemanticRole.BUTTON: 'Button'>
    """

    def __init__(
        self,
        external: ExternalClassifier | None = None,
        *,
        threshold: Confidence = Confidence.MEDIUM,
        max_workers: int = 4,
        rules: RuleEngine | None = None,
    ):
        """Initialize the classifier.

        Args:
            external: Optional external classifier for ambiguous nodes.
            threshold: Local confidence below which the external one is asked.
            max_workers: Parallel external calls; 1 runs them serially.
            rules: Rule engine override.
        """
        self.external = external
        self.threshold = threshold
        self.max_workers = max(1, max_workers)
        self.rules = rules or RuleEngine()
        self.stats = ClassificationStats()

    def classify_local(self, node: Node) -> Classification:
        """Run the rule engine on a single node without side effects."""
        return self.rules.classify(node)

    def classify_node(self, node: Node) -> Classification:
        """Classify a single node, consulting the external classifier if needed.

        Never raises for external failures.
        """
        local = self.classify_local(node)
        if self._needs_external(local):
            self.stats.external_requests += 1
            local = self._resolve(node, local, self._ask(node))
        node.classification = local
        self.stats.nodes_classified += 1
        return local

    def classify_document(
        self, document: Document, cancel: CancellationToken | None = None
    ) -> ClassificationStats:
        """Classify every node of every page."""
        roots = [root for page in document.pages for root in page.children]
        self.classify_trees(roots, cancel)
        logger.info(
            f"Classified {self.stats.nodes_classified} node(s), "
            f"{self.stats.external_accepted}/{self.stats.external_requests} "
            "external answer(s) accepted"
        )
        return self.stats

    def classify_trees(
        self, roots: list[Node], cancel: CancellationToken | None = None
    ) -> ClassificationStats:
        """Classify every node of the given subtrees.

        Raises:
            OperationCancelled: If the token fires. Pending external calls are
                dropped and calls in flight are abandoned within one poll
                interval; nodes keep their local result.
        """
        ambiguous: list[Node] = []
        for root in roots:
            for node in root.walk():
                check(cancel)
                result = self.classify_local(node)
                node.classification = result
                self.stats.nodes_classified += 1
                if self._needs_external(result):
                    ambiguous.append(node)

        if ambiguous:
            self.stats.external_requests += len(ambiguous)
            if self.max_workers == 1:
                self._ask_serial(ambiguous, cancel)
            else:
                self._ask_parallel(ambiguous, cancel)

        for root in roots:
            for node in root.walk():
                self.stats.roles[node.classification.role.value] += 1
        return self.stats

    def _needs_external(self, local: Classification) -> bool:
        return self.external is not None and local.confidence < self.threshold

    def _ask(
        self, node: Node, cancel: CancellationToken | None = None
    ) -> Classification | None:
        """Ask the external classifier; None on any failure.

        The call is abandoned within one poll interval of the token firing,
        even if the external classifier ignores the token itself.

        Raises:
            OperationCancelled: If the token fires before the answer arrives.
        """
        request = ClassificationRequest.from_node(node)
        try:
            answer = run_cancellable(
                lambda: self.external.classify(request, cancel), cancel
            )
        except OperationCancelled:
            raise
        except Exception as e:
            logger.warning(
                f"External classifier {self.external.name} failed for "
                f"'{node.id}' ({node.name}): {e}"
            )
            return None
        if not isinstance(answer, Classification):
            logger.warning(
                f"External classifier {self.external.name} returned "
                f"{type(answer).__name__} for '{node.id}' ({node.name})"
            )
            return None
        return answer

    def _resolve(
        self, node: Node, local: Classification, answer: Classification | None
    ) -> Classification:
        if answer is None:
            self.stats.external_failures += 1
            return local
        if answer.confidence > local.confidence:
            self.stats.external_accepted += 1
            logger.debug(
                f"'{node.id}' reclassified {local.role.value} -> {answer.role.value}"
            )
            return answer
        return local

    def _ask_serial(self, nodes: list[Node], cancel: CancellationToken | None) -> None:
        for node in nodes:
            check(cancel)
            node.classification = self._resolve(
                node, node.classification, self._ask(node, cancel)
            )

    def _ask_parallel(
        self, nodes: list[Node], cancel: CancellationToken | None
    ) -> None:
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="classifier"
        )
        futures: dict[Future, Node] = {
            executor.submit(self._ask, node, cancel): node for node in nodes
        }
        pending = set(futures)
        try:
            while pending:
                check(cancel)
                done, pending = wait(
                    pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED
                )
                # Results are applied on this thread, one node slot each
                for future in done:
                    node = futures[future]
                    node.classification = self._resolve(
                        node, node.classification, future.result()
                    )
        except OperationCancelled:
            cancelled = sum(1 for future in pending if future.cancel())
            logger.info(f"Classification cancelled, {cancelled} request(s) dropped")
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)


def classify_document(
    document: Document,
    external: ExternalClassifier | None = None,
    cancel: CancellationToken | None = None,
    **kwargs,
) -> ClassificationStats:
    """Classify a whole document with a fresh TypeClassifier."""
    return TypeClassifier(external, **kwargs).classify_document(document, cancel)


__all__ = ["ClassificationStats", "TypeClassifier", "classify_document"]
