"""External classifier adapter.

Ambiguous nodes can be sent to an external classifier as a structural
summary. Pixel data is never included. The adapter here is backed by the
LLM backend layer: the prompt lists the fixed role vocabulary and the
answer is mapped back to a role.
"""

import logging
import re
import threading
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from figsync.core.cancel import CancellationToken, run_cancellable
from figsync.graph import (
    Classification,
    ClassificationSource,
    Confidence,
    Node,
    SemanticRole,
)
from figsync.llm import (
    GenerationConfig,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    create_llm_backend,
)

from .rules import tokenize_name

logger = logging.getLogger(__name__)

MAX_CHILD_SUMMARY = 5


class ClassifierUnavailable(LLMError):
    """Raised when no backend can be built for the external classifier."""


class ClassificationRequest(BaseModel):
    """Structural summary of one node sent to an external classifier.

    `child_summary` is only filled for nodes with at most five children.
    """

    name: str
    kind: str
    width: float
    height: float
    child_count: int
    child_summary: list[str] = Field(default_factory=list)
    has_text_child: bool = False
    has_image_fill: bool = False
    has_scrolling: bool = False
    has_interaction: bool = False
    has_background: bool = False
    has_stroke: bool = False
    corner_radius: float = 0.0

    model_config = {"frozen": True}

    @classmethod
    def from_node(cls, node: Node) -> "ClassificationRequest":
        children = node.children
        summary = []
        if len(children) <= MAX_CHILD_SUMMARY:
            summary = [f"{child.name} ({child.kind.value})" for child in children]
        return cls(
            name=node.name,
            kind=node.kind.value,
            width=node.geometry.width,
            height=node.geometry.height,
            child_count=len(children),
            child_summary=summary,
            has_text_child=node.has_text_child,
            has_image_fill=node.has_image_fill,
            has_scrolling=node.has_scrolling,
            has_interaction=node.has_action,
            has_background=node.has_background,
            has_stroke=node.has_stroke,
            corner_radius=node.corner_radius,
        )


class ExternalClassifier(ABC):
    """Interface for classifiers consulted when local rules are unsure.

    Implementations may raise on any failure; the caller keeps the local
    result in that case. When a cancellation token is given, a call in
    flight should be abandoned promptly once it fires, raising
    OperationCancelled.
    """

    @abstractmethod
    def classify(
        self, request: ClassificationRequest, cancel: CancellationToken | None = None
    ) -> Classification:
        """Classify one node summary."""

    @property
    def name(self) -> str:
        return type(self).__name__


# =============================================================================
# Prompt and Answer Mapping
# =============================================================================

SYSTEM_PROMPT = (
    "You classify user-interface elements from a design file. "
    "Answer with exactly one type name and nothing else."
)


def build_prompt(request: ClassificationRequest) -> str:
    """Render the user prompt for a classification request."""
    lines = [
        "Analyze this UI element and determine its semantic type.",
        "",
        f"Name: {request.name}",
        f"Type: {request.kind}",
        f"Size: {request.width:g}x{request.height:g}",
        f"Children: {request.child_count}",
        f"Has text child: {request.has_text_child}",
        f"Has image fill: {request.has_image_fill}",
        f"Has scrolling: {request.has_scrolling}",
        f"Has interaction: {request.has_interaction}",
        f"Has background: {request.has_background}",
        f"Has stroke: {request.has_stroke}",
        f"Corner radius: {request.corner_radius:g}",
    ]
    if request.child_summary:
        lines += ["", "Children:"]
        lines += [f"  - {entry}" for entry in request.child_summary]
    lines += [
        "",
        "Return ONLY one of these types:",
        ", ".join(role.value for role in SemanticRole),
    ]
    return "\n".join(lines)


def _normalize(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


# Exact labels plus common short forms, in search priority order
_ROLE_ALIASES: dict[str, SemanticRole] = {
    _normalize(role.value): role for role in SemanticRole
}
_ROLE_ALIASES.update(
    {
        "input": SemanticRole.INPUT_FIELD,
        "textfield": SemanticRole.INPUT_FIELD,
        "scroll": SemanticRole.SCROLL_VIEW,
        "nav": SemanticRole.NAVIGATION,
        "progress": SemanticRole.PROGRESS_BAR,
        "tabs": SemanticRole.TAB_CONTROL,
    }
)


def parse_role(answer: str) -> SemanticRole | None:
    """Map a free-text answer to a role.

    The whole answer is tried as a label or alias first, then each token
    (and each adjacent token pair) in answer order.

    Example:
        >>> parse_role("`ScrollView`")
        <SemanticRole.SCROLL_VIEW: 'ScrollView'>
        >>> parse_role("This looks like a progress bar.")
        <SemanticRole.PROGRESS_BAR: 'ProgressBar'>
    """
    if not answer or not answer.strip():
        return None

    exact = _ROLE_ALIASES.get(_normalize(answer))
    if exact:
        return exact

    tokens = tokenize_name(answer)
    for first, second in zip(tokens, tokens[1:] + [""]):
        for candidate in (first + second, first):
            role = _ROLE_ALIASES.get(_normalize(candidate))
            if role:
                return role
    return None


# =============================================================================
# LLM-backed Classifier
# =============================================================================


class LLMClassifier(ExternalClassifier):
    """External classifier backed by an LLM backend.

    Example:
        >>> classifier = LLMClassifier(model="gpt-4.1-nano", timeout=10.0)
        >>> request = ClassificationRequest.from_node(node)
        >>> classifier.classify(request).role
        <SemanticRole.TOGGLE: 'Toggle'>
    """

    def __init__(
        self,
        backend: LLMBackend | None = None,
        *,
        model: str | None = None,
        timeout: float = 30.0,
        config: GenerationConfig | None = None,
    ):
        """Initialize the classifier.

        Args:
            backend: Ready backend. Built lazily from `model` if None.
            model: Model name used when no backend is given.
            timeout: Request timeout for a lazily built backend.
            config: Generation options; short deterministic answers by default.
        """
        self._backend = backend
        self._model = model
        self._timeout = timeout
        self._config = config or GenerationConfig()
        self._lock = threading.Lock()

    @property
    def backend(self) -> LLMBackend:
        """The backend, built on first use.

        Raises:
            ClassifierUnavailable: If no backend can be built.
        """
        with self._lock:
            if self._backend is None:
                self._backend = self._build_backend()
        return self._backend

    def _build_backend(self) -> LLMBackend:
        try:
            if self._model:
                return create_llm_backend(self._model, timeout=self._timeout)
            return create_llm_backend(timeout=self._timeout)
        except (LLMError, ValueError) as e:
            raise ClassifierUnavailable(str(e)) from e

    @property
    def name(self) -> str:
        if self._backend is not None:
            return self._backend.name
        return f"llm:{self._model or 'default'}"

    def classify(
        self, request: ClassificationRequest, cancel: CancellationToken | None = None
    ) -> Classification:
        """Ask the backend for a role.

        With a token, the request is abandoned as soon as it fires and the
        backend's client is closed to abort it.

        Raises:
            ClassifierUnavailable: If no backend can be built.
            InvalidResponseError: If the answer names no known role.
            LLMError: On transport or provider failures.
            OperationCancelled: If the token fires while waiting.
        """
        backend = self.backend
        prompt = build_prompt(request)
        result = run_cancellable(
            lambda: backend.generate(
                prompt, system_prompt=SYSTEM_PROMPT, config=self._config
            ),
            cancel,
            on_cancel=backend.close,
        )
        role = parse_role(result.content)
        if role is None:
            raise InvalidResponseError(
                f"Could not parse classifier answer: {result.content[:100]!r}"
            )
        return Classification(
            role=role,
            confidence=Confidence.MEDIUM,
            reason=f"{backend.name} answered {result.content.strip()[:40]!r}",
            source=ClassificationSource.EXTERNAL,
        )


__all__ = [
    "MAX_CHILD_SUMMARY",
    "ClassifierUnavailable",
    "ClassificationRequest",
    "ExternalClassifier",
    "LLMClassifier",
    "SYSTEM_PROMPT",
    "build_prompt",
    "parse_role",
]
