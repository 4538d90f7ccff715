"""
Best-effort lexical classification of work-unit descriptions.

This is a heuristic. It looks for cue words in free text and can
misclassify; nothing downstream may treat its answer as authoritative.
It never fails: an unmatched description becomes an Implementation in the
Infrastructure layer.
"""

import re

from atomforge.domain.models import (
    CORE_LAYER,
    INFRASTRUCTURE_LAYER,
    PRESENTATION_LAYER,
    AtomKind,
)

# Checked in order; first match wins.
KIND_CUES: tuple[tuple[AtomKind, tuple[str, ...]], ...] = (
    (AtomKind.INTERFACE, ("interface", "contract")),
    (AtomKind.DTO, ("dto", "model", "entity")),
    (AtomKind.TEST, ("test",)),
)

LAYER_CUES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CORE_LAYER, ("interface", "dto", "model")),
    (
        INFRASTRUCTURE_LAYER,
        ("implementation", "repository", "service", "storage", "database"),
    ),
    (PRESENTATION_LAYER, ("controller", r"\bapi\b", r"\bui\b", "endpoint")),
)

DEFAULT_KIND = AtomKind.IMPLEMENTATION
DEFAULT_LAYER = INFRASTRUCTURE_LAYER


def _matches(text: str, cue: str) -> bool:
    # Short cues carry their own word boundaries; the rest match as substrings
    # so that names like "UserDto" or "IUserRepository" are recognized.
    if cue.startswith("\\b"):
        return re.search(cue, text) is not None
    return cue in text


def classify_kind(description: str) -> AtomKind:
    lower = description.lower()
    for kind, cues in KIND_CUES:
        if any(_matches(lower, cue) for cue in cues):
            return kind
    return DEFAULT_KIND


def classify_layer(description: str) -> str:
    lower = description.lower()
    for layer, cues in LAYER_CUES:
        if any(_matches(lower, cue) for cue in cues):
            return layer
    return DEFAULT_LAYER


def infer_name(description: str, explicit_name: str = "") -> str:
    """
    Symbol name for a unit: the explicit name if given, else the last word
    of the description with trailing punctuation removed.
    """
    if explicit_name.strip():
        return explicit_name.strip()
    words = description.split()
    if not words:
        return ""
    return words[-1].strip(".,;:!?()[]{}\"'`")
