"""
Domain layer for atom planning.

Contains the manifest model, the graph sorter and the dependency validator.
No I/O and no external dependencies.
"""

from atomforge.domain.classification import classify_kind, classify_layer, infer_name
from atomforge.domain.exceptions import (
    ConfigurationError,
    CycleDetectedError,
    DecompositionError,
    ManifestCorruptError,
    ManifestStorageError,
)
from atomforge.domain.interfaces import DecomposerInterface, ManifestStorageInterface
from atomforge.domain.models import (
    Atom,
    AtomKind,
    AtomStatus,
    CycleDetected,
    Decomposition,
    DecompositionUnit,
    DtoSignature,
    InterfaceSignature,
    Layer,
    Ordered,
    ProjectMetadata,
    SignatureTable,
    SolutionManifest,
    SortResult,
    default_layers,
)
from atomforge.domain.sorting import find_cycle, topological_sort
from atomforge.domain.validation import (
    LayerCheck,
    LayerViolation,
    ValidationReport,
    check_layer_dependencies,
    find_dangling_dependencies,
    validate_layer_table,
    validate_plan,
)

__all__ = [
    # Models
    "Atom",
    "AtomKind",
    "AtomStatus",
    "Layer",
    "ProjectMetadata",
    "InterfaceSignature",
    "DtoSignature",
    "SignatureTable",
    "SolutionManifest",
    "Ordered",
    "CycleDetected",
    "SortResult",
    "DecompositionUnit",
    "Decomposition",
    "default_layers",
    # Sorting and validation
    "topological_sort",
    "find_cycle",
    "LayerCheck",
    "LayerViolation",
    "ValidationReport",
    "check_layer_dependencies",
    "find_dangling_dependencies",
    "validate_layer_table",
    "validate_plan",
    # Classification (heuristic)
    "classify_kind",
    "classify_layer",
    "infer_name",
    # Interfaces
    "DecomposerInterface",
    "ManifestStorageInterface",
    # Exceptions
    "CycleDetectedError",
    "DecompositionError",
    "ManifestStorageError",
    "ManifestCorruptError",
    "ConfigurationError",
]
