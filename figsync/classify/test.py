"""Unit tests for the semantic type classifier."""

import threading
import time
from types import SimpleNamespace

import pytest

from figsync.core.cancel import CancellationToken, OperationCancelled
from figsync.graph import (
    Classification,
    ClassificationSource,
    Confidence,
    Document,
    Geometry,
    Node,
    NodeKind,
    Page,
    Paint,
    PaintType,
    SemanticRole,
)
from figsync.llm import LLMBackend, LLMError

from .external import (
    ClassificationRequest,
    ClassifierUnavailable,
    ExternalClassifier,
    LLMClassifier,
    build_prompt,
    parse_role,
)
from .lib import TypeClassifier
from .rules import RuleEngine, match_name, tokenize_name


class ScriptedClassifier(ExternalClassifier):
    """External classifier answering from a name -> role table."""

    def __init__(self, answers=None, confidence=Confidence.MEDIUM, error=None):
        self.answers = answers or {}
        self.confidence = confidence
        self.error = error
        self.requests: list[ClassificationRequest] = []
        self._lock = threading.Lock()

    def classify(self, request, cancel=None):
        with self._lock:
            self.requests.append(request)
        if self.error:
            raise self.error
        return Classification(
            role=self.answers.get(request.name, SemanticRole.CARD),
            confidence=self.confidence,
            source=ClassificationSource.EXTERNAL,
        )


class SlowClassifier(ScriptedClassifier):
    """Takes `delay` seconds per answer unless the token fires first."""

    def __init__(self, delay=2.0):
        super().__init__()
        self.delay = delay
        self.saw_cancel: list[str] = []

    def classify(self, request, cancel=None):
        with self._lock:
            self.requests.append(request)
        if cancel is not None and cancel.wait(self.delay):
            with self._lock:
                self.saw_cancel.append(request.name)
            raise OperationCancelled("stopped")
        return Classification(
            role=SemanticRole.CARD,
            confidence=self.confidence,
            source=ClassificationSource.EXTERNAL,
        )


class HangingBackend(LLMBackend):
    """Backend whose requests block until its client is closed."""

    provider = "hanging"

    def __init__(self):
        super().__init__("hanging-1")
        self.closed = threading.Event()

    def _create_client(self):
        return SimpleNamespace(close=self.closed.set)

    def _request(self, prompt, system_prompt, config):
        self.client
        self.closed.wait(5.0)
        raise ConnectionError("client closed")


def _eventually(condition, timeout=1.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def _frame(node_id: str, name: str = "", **kwargs) -> Node:
    kwargs.setdefault("geometry", Geometry(width=120, height=40))
    return Node(id=node_id, name=name or node_id, **kwargs)


def _text(node_id: str = "t", name: str = "Label") -> Node:
    return Node(id=node_id, name=name, kind=NodeKind.TEXT, characters="OK")


# =============================================================================
# Name Tokens
# =============================================================================


class TestNameMatching:
    """Tests for delimiter-aware whole-token matching."""

    @pytest.mark.unit
    def test_tokenize(self):
        assert tokenize_name("Submit_Btn") == ["submit", "btn"]
        assert tokenize_name("nav/TabBar item.2") == ["nav", "tab", "bar", "item", "2"]
        assert tokenize_name("HTMLButton") == ["html", "button"]
        assert tokenize_name("") == []

    @pytest.mark.unit
    def test_delimited_token_matches(self):
        family, keyword = match_name("Submit_Btn")
        assert family.role == SemanticRole.BUTTON
        assert keyword in ("btn", "submit")

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["Subtle", "Buttonhole", "Iconic", "Cardinal"])
    def test_no_substring_leak(self, name):
        assert match_name(name) is None

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "name,role",
        [
            ("Primary Button", SemanticRole.BUTTON),
            ("search-field", SemanticRole.INPUT_FIELD),
            ("TextField", SemanticRole.INPUT_FIELD),
            ("Dark Mode Switch", SemanticRole.TOGGLE),
            ("Volume/Slider", SemanticRole.SLIDER),
            ("hero.img", SemanticRole.IMAGE),
            ("Bottom TabBar", SemanticRole.NAVIGATION),
            ("AppBar", SemanticRole.HEADER),
            ("Loading Spinner", SemanticRole.PROGRESS_BAR),
            ("Tabs", SemanticRole.TAB_CONTROL),
            ("userimage", SemanticRole.AVATAR),
            ("User Image", SemanticRole.IMAGE),
            ("Cards", SemanticRole.CARD),
            ("Section Title", SemanticRole.LABEL),
        ],
    )
    def test_family_matches(self, name, role):
        family, _ = match_name(name)
        assert family.role == role

    @pytest.mark.unit
    def test_family_priority(self):
        """Earlier families win: 'Close Icon' is a button, not an icon."""
        family, _ = match_name("Close Icon")
        assert family.role == SemanticRole.BUTTON


# =============================================================================
# Rule Engine
# =============================================================================


class TestRuleEngine:
    """Tests for rule priority and heuristics."""

    @pytest.mark.unit
    def test_text_outranks_name(self):
        result = RuleEngine().classify(_text(name="Submit_Btn"))
        assert result.role == SemanticRole.LABEL
        assert result.confidence == Confidence.VERY_HIGH

    @pytest.mark.unit
    def test_name_button(self):
        result = RuleEngine().classify(_frame("f", "Submit_Btn"))
        assert result.role == SemanticRole.BUTTON
        assert result.confidence == Confidence.HIGH

    @pytest.mark.unit
    def test_interaction_outranks_name(self):
        result = RuleEngine().classify(_frame("f", "Avatar", has_action=True))
        assert result.role == SemanticRole.BUTTON

    @pytest.mark.unit
    def test_vector_is_icon_unless_named(self):
        engine = RuleEngine()
        vector = _frame("v", "Shape 12", kind=NodeKind.VECTOR)
        assert engine.classify(vector).role == SemanticRole.ICON
        assert engine.classify(vector).confidence == Confidence.MEDIUM
        named = _frame("v", "Chevron Button", kind=NodeKind.STAR)
        assert engine.classify(named).role == SemanticRole.BUTTON

    @pytest.mark.unit
    def test_image_rectangle(self):
        node = _frame(
            "r",
            "Rectangle 4",
            kind=NodeKind.RECTANGLE,
            fills=[Paint(type=PaintType.IMAGE, image_ref="abc")],
        )
        result = RuleEngine().classify(node)
        assert result.role == SemanticRole.IMAGE
        assert result.confidence == Confidence.HIGH

    @pytest.mark.unit
    def test_thin_rectangle_is_divider(self):
        node = _frame(
            "r",
            "Rectangle",
            kind=NodeKind.RECTANGLE,
            geometry=Geometry(width=300, height=1),
        )
        assert RuleEngine().classify(node).role == SemanticRole.DIVIDER

    @pytest.mark.unit
    def test_scrolling_frame(self):
        node = _frame("s", "Frame 9", scroll_vertical=True)
        assert RuleEngine().classify(node).role == SemanticRole.SCROLL_VIEW

    @pytest.mark.unit
    def test_button_shape_heuristic(self):
        node = _frame(
            "b",
            "Frame 1",
            fills=[Paint(type=PaintType.SOLID)],
            corner_radius=8,
            children=[_text()],
        )
        result = RuleEngine().classify(node)
        assert result.role == SemanticRole.BUTTON
        assert result.confidence == Confidence.LOW

    @pytest.mark.unit
    def test_button_heuristic_needs_radius(self):
        node = _frame(
            "b", "Frame 1", fills=[Paint(type=PaintType.SOLID)], children=[_text()]
        )
        assert RuleEngine().classify(node).role == SemanticRole.CONTAINER

    @pytest.mark.unit
    def test_input_shape_heuristic(self):
        node = _frame(
            "i", "Frame 2", strokes=[Paint(type=PaintType.SOLID)], children=[_text()]
        )
        result = RuleEngine().classify(node)
        assert result.role == SemanticRole.INPUT_FIELD
        assert result.confidence == Confidence.LOW

    @pytest.mark.unit
    def test_input_heuristic_ignores_hidden_stroke(self):
        node = _frame(
            "i",
            "Frame 2",
            strokes=[Paint(type=PaintType.SOLID, visible=False)],
            children=[_text()],
        )
        assert RuleEngine().classify(node).role == SemanticRole.CONTAINER

    @pytest.mark.unit
    def test_default_container(self):
        result = RuleEngine().classify(_frame("f", "Frame 3"))
        assert result.role == SemanticRole.CONTAINER
        assert result.confidence == Confidence.LOW
        assert result.source == ClassificationSource.DEFAULT

    @pytest.mark.unit
    def test_low_name_match_is_not_accepted(self):
        """Label-family names are too weak to beat the default."""
        result = RuleEngine().classify(_frame("f", "Section Title"))
        assert result.role == SemanticRole.CONTAINER


# =============================================================================
# External Classifier Adapter
# =============================================================================


class TestExternalAdapter:
    """Tests for request building and answer parsing."""

    @pytest.mark.unit
    def test_request_from_node(self):
        node = _frame(
            "f",
            "Toggle Row",
            corner_radius=4,
            has_action=True,
            children=[_text("t1", "Caption"), _frame("k", "Knob")],
        )
        request = ClassificationRequest.from_node(node)
        assert request.child_count == 2
        assert request.child_summary == ["Caption (TEXT)", "Knob (FRAME)"]
        assert request.has_text_child
        assert request.has_interaction
        assert request.corner_radius == 4

    @pytest.mark.unit
    def test_child_summary_only_for_small_nodes(self):
        node = _frame("f", children=[_frame(f"c{i}") for i in range(6)])
        assert ClassificationRequest.from_node(node).child_summary == []

    @pytest.mark.unit
    def test_prompt_lists_vocabulary_and_fields(self):
        prompt = build_prompt(ClassificationRequest.from_node(_frame("f", "Thing")))
        assert "Name: Thing" in prompt
        assert "Size: 120x40" in prompt
        for role in SemanticRole:
            assert role.value in prompt

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "answer,role",
        [
            ("Button", SemanticRole.BUTTON),
            ("  inputfield\n", SemanticRole.INPUT_FIELD),
            ("`ScrollView`", SemanticRole.SCROLL_VIEW),
            ("Progress Bar", SemanticRole.PROGRESS_BAR),
            ("It is most likely a Tooltip.", SemanticRole.TOOLTIP),
            ("nav", SemanticRole.NAVIGATION),
        ],
    )
    def test_parse_role(self, answer, role):
        assert parse_role(answer) == role

    @pytest.mark.unit
    @pytest.mark.parametrize("answer", ["", "   ", "I am not sure", "Widget"])
    def test_parse_role_failure(self, answer):
        assert parse_role(answer) is None

    @pytest.mark.unit
    def test_llm_classifier(self, mock_llm_backend):
        mock_llm_backend.answer = "Slider"
        classifier = LLMClassifier(mock_llm_backend)
        result = classifier.classify(ClassificationRequest.from_node(_frame("f")))
        assert result.role == SemanticRole.SLIDER
        assert result.confidence == Confidence.MEDIUM
        assert result.source == ClassificationSource.EXTERNAL
        assert "Return ONLY one of these types" in mock_llm_backend.prompts[0]

    @pytest.mark.unit
    def test_llm_classifier_unparsable(self, mock_llm_backend):
        mock_llm_backend.answer = "no idea"
        classifier = LLMClassifier(mock_llm_backend)
        with pytest.raises(LLMError, match="Could not parse"):
            classifier.classify(ClassificationRequest.from_node(_frame("f")))

    @pytest.mark.unit
    def test_llm_classifier_unavailable_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        classifier = LLMClassifier(model="gpt-4.1-mini")
        with pytest.raises(ClassifierUnavailable):
            classifier.classify(ClassificationRequest.from_node(_frame("f")))

    @pytest.mark.unit
    def test_llm_classifier_aborts_request_on_cancel(self):
        """A cancel closes the backend client instead of waiting it out."""
        backend = HangingBackend()
        token = CancellationToken()
        timer = threading.Timer(0.1, token.cancel)
        timer.start()

        started = time.monotonic()
        try:
            with pytest.raises(OperationCancelled):
                LLMClassifier(backend).classify(
                    ClassificationRequest.from_node(_frame("f")), token
                )
            elapsed = time.monotonic() - started
        finally:
            timer.cancel()
            backend.closed.set()

        assert elapsed < 0.5
        assert backend._client is None


# =============================================================================
# Orchestration
# =============================================================================


def _document(*roots: Node) -> Document:
    return Document(pages=[Page(id="p", children=list(roots))])


class TestTypeClassifier:
    """Tests for threshold, acceptance and failure handling."""

    @pytest.mark.unit
    def test_local_only(self):
        root = _frame("root", "Screen", children=[_frame("b", "Submit_Btn"), _text()])
        stats = TypeClassifier().classify_document(_document(root))
        assert stats.nodes_classified == 3
        assert stats.external_requests == 0
        assert root.find("b").classification.role == SemanticRole.BUTTON
        assert root.find("t").classification.role == SemanticRole.LABEL

    @pytest.mark.unit
    @pytest.mark.parametrize("workers", [1, 4])
    def test_external_only_for_ambiguous(self, workers):
        root = _frame(
            "root",
            "Frame 1",
            children=[_frame("b", "Submit_Btn"), _frame("x", "Frame 2")],
        )
        external = ScriptedClassifier({"Frame 2": SemanticRole.CARD})
        stats = TypeClassifier(external, max_workers=workers).classify_document(
            _document(root)
        )
        assert sorted(r.name for r in external.requests) == ["Frame 1", "Frame 2"]
        assert root.find("x").classification.role == SemanticRole.CARD
        assert root.find("x").classification.source == ClassificationSource.EXTERNAL
        assert root.find("b").classification.source == ClassificationSource.RULE
        assert stats.external_accepted == 2

    @pytest.mark.unit
    def test_external_must_be_strictly_more_confident(self):
        node = _frame("x", "Frame 2")
        external = ScriptedClassifier(confidence=Confidence.LOW)
        TypeClassifier(external).classify_node(node)
        assert node.classification.role == SemanticRole.CONTAINER
        assert node.classification.source == ClassificationSource.DEFAULT

    @pytest.mark.unit
    @pytest.mark.parametrize("workers", [1, 3])
    def test_failing_external_keeps_local_result(self, workers):
        root = _frame("root", "Frame 1", children=[_frame("x", "Frame 2")])
        external = ScriptedClassifier(error=TimeoutError("request timed out"))
        classifier = TypeClassifier(external, max_workers=workers)
        stats = classifier.classify_document(_document(root))
        assert root.classification.role == SemanticRole.CONTAINER
        assert root.find("x").classification.confidence == Confidence.LOW
        assert stats.external_failures == 2

    @pytest.mark.unit
    def test_unavailable_llm_never_raises(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        node = _frame("x", "Frame 2")
        classifier = TypeClassifier(LLMClassifier(model="claude-haiku-4-5"))
        assert classifier.classify_node(node).role == SemanticRole.CONTAINER

    @pytest.mark.unit
    def test_cancellation_between_nodes(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            TypeClassifier().classify_document(_document(_frame("a")), token)

    @pytest.mark.unit
    def test_cancellation_drops_pending_external_calls(self):
        token = CancellationToken()
        release = threading.Event()

        class BlockingClassifier(ScriptedClassifier):
            def classify(self, request, cancel=None):
                token.cancel()
                release.wait(1.0)
                return super().classify(request, cancel)

        roots = [_frame(f"n{i}", f"Frame {i}") for i in range(8)]
        external = BlockingClassifier()
        classifier = TypeClassifier(external, max_workers=2)
        try:
            with pytest.raises(OperationCancelled):
                classifier.classify_document(_document(*roots), token)
        finally:
            release.set()
        assert len(external.requests) < len(roots)
        assert all(root.classification is not None for root in roots)

    @pytest.mark.unit
    @pytest.mark.parametrize("workers", [1, 2])
    def test_cancellation_reaches_in_flight_external_calls(self, workers):
        """Cancelling mid-call returns promptly and the running calls see it."""
        token = CancellationToken()
        roots = [_frame(f"n{i}", f"Thing{i}") for i in range(4)]
        external = SlowClassifier()
        classifier = TypeClassifier(external, max_workers=workers)
        timer = threading.Timer(0.1, token.cancel)
        timer.start()

        started = time.monotonic()
        try:
            with pytest.raises(OperationCancelled):
                classifier.classify_trees(roots, token)
            elapsed = time.monotonic() - started
        finally:
            timer.cancel()

        assert elapsed < 0.5
        in_flight = sorted(request.name for request in external.requests)
        assert len(in_flight) == workers
        assert _eventually(lambda: sorted(external.saw_cancel) == in_flight)
        assert all(root.classification.role == SemanticRole.CONTAINER for root in roots)

    @pytest.mark.unit
    @pytest.mark.parametrize("answer", [None, "Button", SemanticRole.BUTTON])
    def test_malformed_external_answer_keeps_local_result(self, answer):
        class GarbageClassifier(ExternalClassifier):
            def classify(self, request, cancel=None):
                return answer

        node = _frame("x", "Frame 2")
        classifier = TypeClassifier(GarbageClassifier())
        result = classifier.classify_node(node)
        assert result.role == SemanticRole.CONTAINER
        assert result.source == ClassificationSource.DEFAULT
        assert classifier.stats.external_failures == 1
