"""Tests for the sync pipeline."""

import pytest

from figsync.classify import LLMClassifier, TypeClassifier
from figsync.config import SyncSettings
from figsync.core.cancel import CancellationToken, OperationCancelled
from figsync.graph import Document, Node, Page, SemanticRole
from figsync.validation import GraphIntegrityError

from .lib import SyncPipeline

ATOMS = "Assets/Prefabs/Figma/Atoms"


class TestSyncPipeline:
    """End-to-end tests over the sample design file."""

    @pytest.mark.unit
    def test_build_order(self, sample_document):
        """Atoms first, the login screen (one instance) as a molecule."""
        result = SyncPipeline().run(sample_document)

        assert result.build_order == [["1:1", "1:3", "3:1"], ["2:1"]]

    @pytest.mark.unit
    def test_artifacts_and_references(self, sample_document):
        result = SyncPipeline().run(sample_document)

        assert [a.ref for a in result.artifacts] == [
            f"{ATOMS}/Button_Primary",
            f"{ATOMS}/Icon_Close",
            f"{ATOMS}/Old_Login",
            "Assets/Prefabs/Figma/Molecules/Login",
        ]
        assert result.stats.artifacts_built == 4
        assert result.stats.references_emitted == 1

        instance = sample_document.find_node("2:4")
        assert instance.is_reference
        assert instance.artifact_ref == f"{ATOMS}/Button_Primary"
        assert sample_document.components["1:1"].artifact_ref == instance.artifact_ref

    @pytest.mark.unit
    def test_every_node_annotated(self, sample_document):
        """Every node is classified; every visible node has a layout."""
        SyncPipeline().run(sample_document)

        for node in sample_document.iter_nodes():
            assert node.classification is not None
        for node in sample_document.iter_nodes(include_hidden=False):
            assert node.layout is not None
        assert sample_document.find_node("1:3").layout is None

    @pytest.mark.unit
    def test_local_roles(self, sample_document):
        SyncPipeline().run(sample_document)

        role = {
            node.id: node.classification.role for node in sample_document.iter_nodes()
        }
        assert role["1:1"] == SemanticRole.BUTTON
        assert role["2:1"] == SemanticRole.SCROLL_VIEW
        assert role["2:2"] == SemanticRole.LABEL
        assert role["2:3"] == SemanticRole.IMAGE
        assert role["2:4"] == SemanticRole.BUTTON
        assert role["1:4"] == SemanticRole.ICON

    @pytest.mark.unit
    def test_stats(self, sample_document):
        result = SyncPipeline().run(sample_document)

        stats = result.stats
        assert stats.nodes_classified == 11
        assert stats.nodes_resolved == 9
        assert stats.spacers_inserted == 2
        assert stats.external_requests == 0
        assert stats.roles["Label"] == 3

    @pytest.mark.unit
    def test_space_between_spacers(self, sample_document):
        SyncPipeline().run(sample_document)

        layout = sample_document.find_node("2:1").layout
        assert [spacer.after_id for spacer in layout.spacers] == ["2:2", "2:3"]
        assert "2:6" in layout.child_order

    @pytest.mark.unit
    def test_progress(self, sample_document):
        calls = []

        SyncPipeline().run(
            sample_document, on_progress=lambda *args: calls.append(args)
        )

        stages = [stage for stage, _, _ in calls]
        assert stages[:3] == ["validate", "classify", "layout"]
        assert stages.count("build") == 5
        progress = [done for _, done, _ in calls]
        assert progress == sorted(progress)
        assert progress[-1] == 1.0

    @pytest.mark.unit
    def test_custom_artifact_root(self, sample_document):
        settings = SyncSettings(artifact_root="UI/")

        result = SyncPipeline(settings).run(sample_document)

        assert result.artifacts[0].ref == "UI/Atoms/Button_Primary"

    @pytest.mark.unit
    def test_invalid_document_fails_fast(self):
        """Structural errors stop the run before any node is annotated."""
        duplicate = [Node(id="1", name="A"), Node(id="1", name="B")]
        document = Document(pages=[Page(id="p", children=duplicate)])

        with pytest.raises(GraphIntegrityError):
            SyncPipeline().run(document)

        assert all(node.classification is None for node in document.iter_nodes())

    @pytest.mark.unit
    def test_cancelled(self, sample_document):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            SyncPipeline().run(sample_document, token)


class TestExternalClassification:
    """Pipeline runs with an external classifier."""

    @pytest.mark.unit
    def test_injected_classifier(self, sample_document, mock_llm_backend):
        """Only the low-confidence node is sent out; its answer is accepted."""
        mock_llm_backend.answer = "Card"
        classifier = TypeClassifier(LLMClassifier(mock_llm_backend), max_workers=1)

        result = SyncPipeline(classifier=classifier).run(sample_document)

        assert result.stats.external_requests == 1
        assert result.stats.external_accepted == 1
        assert sample_document.find_node("3:1").classification.role == SemanticRole.CARD
        assert "Old Login" in mock_llm_backend.prompts[0]

    @pytest.mark.unit
    def test_failing_backend_keeps_local(self, sample_document, mock_llm_backend):
        mock_llm_backend.error = RuntimeError("boom")
        classifier = TypeClassifier(LLMClassifier(mock_llm_backend))

        result = SyncPipeline(classifier=classifier).run(sample_document)

        assert result.stats.external_accepted == 0
        assert sample_document.find_node("3:1").classification.role == (
            SemanticRole.CONTAINER
        )

    @pytest.mark.unit
    def test_enabled_without_credentials(self, sample_document, monkeypatch):
        """A classifier enabled in settings but unusable never fails the run."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = SyncSettings(
            classifier_enabled=True,
            classifier_model="gpt-4.1-nano",
            classifier_max_workers=1,
        )

        result = SyncPipeline(settings).run(sample_document)

        assert result.stats.external_requests == 1
        assert result.stats.external_accepted == 0
        assert result.stats.artifacts_built == 4
