"""Design-file payload mapper.

Example usage:
    >>> from figsync.parser import load_document
    >>> document = load_document("app.json")
"""

from .lib import ALIGN_MAP, ParseError, load_document, parse_document, parse_node

__all__ = [
    "parse_document",
    "load_document",
    "parse_node",
    "ParseError",
    "ALIGN_MAP",
]
