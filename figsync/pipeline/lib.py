"""SyncPipeline orchestrator.

Runs the sync core over a parsed document:

1. structural validation (fails fast with GraphIntegrityError),
2. semantic classification (local rules plus optional external classifier),
3. layout translation,
4. atomic hierarchy build.

The cancellation token is observed between node visits in every stage.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from figsync.classify import LLMClassifier, TypeClassifier
from figsync.config import SyncSettings
from figsync.core.cancel import CancellationToken, check
from figsync.graph import Document
from figsync.hierarchy import Artifact, BuildPlan, BuildUnit, HierarchyResolver
from figsync.layout import LayoutTranslator
from figsync.validation import ensure_valid

logger = logging.getLogger(__name__)

# (stage, overall progress 0..1, message)
ProgressCallback = Callable[[str, float, str], None]

# Share of overall progress per stage; the build gets the remainder
_STAGE_WEIGHTS = {"validate": 0.05, "classify": 0.35, "layout": 0.1, "build": 0.5}


@dataclass
class PipelineStats:
    """Statistics from one pipeline run.

    Attributes:
        nodes_classified: Nodes that received a classification.
        external_requests: Nodes sent to the external classifier.
        external_accepted: External answers that replaced local results.
        nodes_resolved: Nodes that received a layout annotation.
        spacers_inserted: Space-between spacers emitted.
        approximations: Approximation tags recorded during layout.
        artifacts_built: Artifacts emitted by the hierarchy build.
        references_emitted: Instance subtrees replaced by references.
        roles: Final role counts.
    """

    nodes_classified: int = 0
    external_requests: int = 0
    external_accepted: int = 0
    nodes_resolved: int = 0
    spacers_inserted: int = 0
    approximations: int = 0
    artifacts_built: int = 0
    references_emitted: int = 0
    roles: dict[str, int] = field(default_factory=dict)


@dataclass
class PipelineResult:
    """Complete output of a pipeline run.

    Attributes:
        document: The annotated document (mutated in place).
        plan: Build order and artifacts.
        stats: Run statistics.
    """

    document: Document
    plan: BuildPlan
    stats: PipelineStats

    @property
    def build_order(self) -> list[list[str]]:
        return self.plan.order

    @property
    def artifacts(self) -> list[Artifact]:
        return self.plan.artifacts


class SyncPipeline:
    """Orchestrates validation, classification, layout and hierarchy build.

    Example:
        >>> settings = SyncSettings.from_environment()
        >>> result = SyncPipeline(settings).run(document)
        >>> result.build_order
        [['1:1'], ['2:1']]

        >>> # With an explicit external classifier
        >>> classifier = TypeClassifier(LLMClassifier(model="claude-haiku-4-5"))
        >>> result = SyncPipeline(settings, classifier=classifier).run(document)
    """

    def __init__(
        self,
        settings: SyncSettings | None = None,
        classifier: TypeClassifier | None = None,
        *,
        match_by_id: bool = False,
    ):
        """Initialize the pipeline.

        Args:
            settings: Sync settings; defaults to SyncSettings().
            classifier: Type classifier override. Built from the settings if
                None, with an LLM classifier when the settings enable one.
            match_by_id: Match emitted children to logical nodes by source id
                during the hierarchy build.
        """
        self.settings = settings or SyncSettings()
        self.classifier = classifier
        self.match_by_id = match_by_id

    def _build_classifier(self) -> TypeClassifier:
        external = None
        if self.settings.classifier_enabled:
            external = LLMClassifier(
                model=self.settings.classifier_model,
                timeout=self.settings.classifier_timeout,
            )
            logger.info(f"External classifier enabled: {external.name}")
        return TypeClassifier(
            external, max_workers=self.settings.classifier_max_workers
        )

    def run(
        self,
        document: Document,
        cancel: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> PipelineResult:
        """Run every stage over a document.

        Args:
            document: Parsed document; annotated in place.
            cancel: Optional cancellation token.
            on_progress: Called with (stage, overall progress, message).

        Returns:
            PipelineResult with the build plan and statistics.

        Raises:
            GraphIntegrityError: If the document is structurally invalid.
            OperationCancelled: If the token fires.
        """

        def report(stage: str, done: float, message: str) -> None:
            if on_progress:
                on_progress(stage, min(done, 1.0), message)

        stats = PipelineStats()
        progress = 0.0

        check(cancel)
        ensure_valid(document)
        progress += _STAGE_WEIGHTS["validate"]
        report("validate", progress, "Document structure is valid")

        classifier = self.classifier or self._build_classifier()
        classification = classifier.classify_document(document, cancel)
        stats.nodes_classified = classification.nodes_classified
        stats.external_requests = classification.external_requests
        stats.external_accepted = classification.external_accepted
        stats.roles = dict(classification.roles)
        progress += _STAGE_WEIGHTS["classify"]
        report("classify", progress, f"Classified {stats.nodes_classified} node(s)")

        translation = LayoutTranslator(cancel).translate_document(document)
        stats.nodes_resolved = translation.nodes_resolved
        stats.spacers_inserted = translation.spacers_inserted
        stats.approximations = translation.approximation_count
        progress += _STAGE_WEIGHTS["layout"]
        report("layout", progress, f"Resolved {stats.nodes_resolved} node(s)")

        build_start = progress

        def on_unit(fraction: float, unit: BuildUnit) -> None:
            report(
                "build",
                build_start + fraction * _STAGE_WEIGHTS["build"],
                f"Built {unit.node.name or unit.id}",
            )

        resolver = HierarchyResolver(
            self.settings.artifact_root, match_by_id=self.match_by_id, cancel=cancel
        )
        plan = resolver.build(document, on_unit)
        stats.artifacts_built = len(plan.artifacts)
        stats.references_emitted = plan.references_emitted
        report("build", 1.0, f"Built {stats.artifacts_built} artifact(s)")

        logger.info(
            f"Sync of '{document.name}' complete: {stats.artifacts_built} "
            f"artifact(s), {stats.references_emitted} reference(s), "
            f"{stats.approximations} approximation(s)"
        )
        return PipelineResult(document=document, plan=plan, stats=stats)


__all__ = ["ProgressCallback", "PipelineStats", "PipelineResult", "SyncPipeline"]
