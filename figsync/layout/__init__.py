"""Layout translation: sizing, alignment, space-between and constraints.

Example usage:
    >>> from figsync.layout import translate_document
    >>> stats = translate_document(document)
    >>> stats.spacers_inserted
    2
"""

from .alignment import (
    BASELINE_APPROXIMATED,
    COUNTER_SPACE_BETWEEN,
    SPACER_PREFIX,
    make_spacers,
    map_axis_align,
    resolve_container,
    uses_space_between,
)
from .constraints import (
    ABSOLUTE_WITHOUT_PARENT,
    DEGENERATE_PARENT,
    place_absolute,
    place_free,
    place_root,
)
from .lib import LayoutTranslator, TranslationStats, translate_document
from .sizing import FILL_OUTSIDE_LAYOUT, MAX_SIZE_SOFT_CAP, resolve_sizing

__all__ = [
    # Orchestration
    "LayoutTranslator",
    "TranslationStats",
    "translate_document",
    # Resolvers
    "resolve_sizing",
    "resolve_container",
    "map_axis_align",
    "uses_space_between",
    "make_spacers",
    "place_absolute",
    "place_free",
    "place_root",
    # Approximation tags
    "MAX_SIZE_SOFT_CAP",
    "FILL_OUTSIDE_LAYOUT",
    "BASELINE_APPROXIMATED",
    "COUNTER_SPACE_BETWEEN",
    "ABSOLUTE_WITHOUT_PARENT",
    "DEGENERATE_PARENT",
    "SPACER_PREFIX",
]
