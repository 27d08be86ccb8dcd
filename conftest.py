"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- A mock LLM backend for classifier tests
- A sample design-file payload and the document parsed from it
"""

from __future__ import annotations

from typing import Any

import pytest
from dotenv import load_dotenv

from figsync.graph import Document
from figsync.llm import GenerationConfig, GenerationResult, LLMBackend
from figsync.parser import parse_document

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Mock LLM Backend
# =============================================================================


class MockLLMBackend(LLMBackend):
    """LLM backend that answers with a fixed string and records prompts.

    Attributes:
        answer: Content returned by every call.
        error: Raised instead of answering, if set.
        prompts: Prompts received, in call order.
    """

    provider = "mock"

    def __init__(self, answer: str = "Button"):
        super().__init__("mock-model-v1")
        self.answer = answer
        self.error: Exception | None = None
        self.prompts: list[str] = []

    def _create_client(self) -> Any:
        return None

    def _request(
        self, prompt: str, system_prompt: str | None, config: GenerationConfig
    ) -> GenerationResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return GenerationResult(
            content=self.answer,
            model=self.model_name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=1,
        )


@pytest.fixture
def mock_llm_backend() -> MockLLMBackend:
    """Create a mock LLM backend answering "Button"."""
    return MockLLMBackend()


# =============================================================================
# Sample Design File
# =============================================================================


def _box(x: float, y: float, width: float, height: float) -> dict[str, float]:
    return {"x": x, "y": y, "width": width, "height": height}


def _text(node_id: str, name: str, characters: str, y: float = 0) -> dict[str, Any]:
    return {
        "id": node_id,
        "name": name,
        "type": "TEXT",
        "characters": characters,
        "absoluteBoundingBox": _box(0, y, 80, 20),
        "style": {
            "fontFamily": "Inter",
            "fontSize": 16,
            "fontWeight": 600,
            "textAlignHorizontal": "CENTER",
            "lineHeightPx": 20,
        },
        "fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1, "a": 1}}],
    }


def _page(page_id: str, name: str, *children: dict) -> dict[str, Any]:
    return {"id": page_id, "name": name, "type": "CANVAS", "children": list(children)}


def sample_payload() -> dict[str, Any]:
    """Small design file: a button atom, a hidden icon and a login screen."""
    button = {
        "id": "1:1",
        "name": "Button/Primary",
        "type": "COMPONENT",
        "absoluteBoundingBox": _box(0, 0, 120, 40),
        "layoutMode": "HORIZONTAL",
        "primaryAxisAlignItems": "CENTER",
        "counterAxisAlignItems": "CENTER",
        "paddingLeft": 12,
        "paddingRight": 12,
        "paddingTop": 8,
        "paddingBottom": 8,
        "cornerRadius": 8,
        "fills": [{"type": "SOLID", "color": {"r": 0.2, "g": 0.4, "b": 1, "a": 1}}],
        "children": [_text("1:2", "Label", "Submit")],
    }
    close_icon = {
        "id": "1:3",
        "name": "Icon/Close",
        "type": "COMPONENT",
        "visible": False,
        "absoluteBoundingBox": _box(200, 0, 24, 24),
        "children": [
            {"id": "1:4", "name": "Cross", "type": "VECTOR"},
        ],
    }
    login = {
        "id": "2:1",
        "name": "Login",
        "type": "FRAME",
        "absoluteBoundingBox": _box(0, 0, 375, 812),
        "layoutMode": "VERTICAL",
        "primaryAxisAlignItems": "SPACE_BETWEEN",
        "paddingTop": 24,
        "paddingBottom": 24,
        "overflowDirection": "VERTICAL_SCROLLING",
        "children": [
            _text("2:2", "Title", "Welcome back", y=24),
            {
                "id": "2:3",
                "name": "Hero",
                "type": "RECTANGLE",
                "absoluteBoundingBox": _box(0, 100, 375, 200),
                "layoutSizingHorizontal": "FILL",
                "fills": [{"type": "IMAGE", "imageRef": "img-hero"}],
            },
            {
                "id": "2:4",
                "name": "Button/Primary",
                "type": "INSTANCE",
                "componentId": "1:1",
                "absoluteBoundingBox": _box(127, 700, 120, 40),
                "interactions": [
                    {
                        "trigger": {"type": "ON_CLICK"},
                        "actions": [{"type": "NODE", "destinationId": "2:9"}],
                    }
                ],
                "children": [_text("2:5", "Label", "Sign in", y=710)],
            },
            {
                "id": "2:6",
                "name": "Badge",
                "type": "FRAME",
                "layoutPositioning": "ABSOLUTE",
                "constraints": {"horizontal": "RIGHT", "vertical": "TOP"},
                "absoluteBoundingBox": _box(315, 20, 40, 20),
            },
            {"id": "2:7", "name": "Secret", "type": "FRAME", "visible": False},
        ],
    }
    archived = {
        "id": "3:1",
        "name": "Old Login",
        "type": "FRAME",
        "absoluteBoundingBox": _box(0, 0, 375, 812),
    }
    return {
        "name": "Sample App",
        "key": "FILE123",
        "version": "42",
        "lastModified": "2026-01-05T10:00:00Z",
        "document": {
            "id": "0:0",
            "type": "DOCUMENT",
            "children": [
                _page("0:1", "Atoms", button, close_icon),
                _page("0:2", "Screens", login),
                _page("0:3", "Archive", archived),
            ],
        },
        "components": {
            "1:1": {
                "key": "k-btn",
                "name": "Button/Primary",
                "description": "Primary action",
            },
            "1:3": {"key": "k-close", "name": "Icon/Close"},
        },
        "styles": {
            "S:1": {"key": "s-brand", "name": "Brand/Primary", "styleType": "FILL"},
        },
    }


@pytest.fixture
def design_payload() -> dict[str, Any]:
    """Fresh copy of the sample design-file payload."""
    return sample_payload()


@pytest.fixture
def sample_document(design_payload: dict[str, Any]) -> Document:
    """Document parsed from the sample payload with default settings."""
    return parse_document(design_payload)
