"""
AtomForge: dependency-graph orchestration for layered code generation.

A solution is planned as a DAG of atoms (DTOs, interfaces, implementations,
tests) spread over architectural layers. The Planner orders atoms
abstractions-first with a topological sort, and the Blackboard keeps the
manifest, layer policy and signature table in one durable store.

Example:
    import asyncio

    from atomforge import Blackboard, Planner
    from atomforge.infrastructure import FilesystemManifestStorage, OpenAIDecomposer

    blackboard = Blackboard(FilesystemManifestStorage("./output"))
    planner = Planner(OpenAIDecomposer(model="gpt-4o-mini"))

    plan = asyncio.run(
        planner.generate_plan("User management with a User DTO and a file repository",
                              layers=blackboard.layers())
    )
    blackboard.upsert_atoms(plan.atoms)
"""

# Application layer (orchestration)
from atomforge.application.blackboard import Blackboard, BlackboardConfig
from atomforge.application.context import DependencyContextBuilder
from atomforge.application.planner import (
    PlanPhase,
    Planner,
    PlannerConfig,
    PlanResult,
    PolicyCorrection,
)

# Domain exceptions
from atomforge.domain.exceptions import (
    ConfigurationError,
    CycleDetectedError,
    DecompositionError,
    ManifestCorruptError,
    ManifestStorageError,
)

# Domain interfaces (for type hints and custom adapters)
from atomforge.domain.interfaces import DecomposerInterface, ManifestStorageInterface

# Domain models
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

# Graph sorter and dependency validator (pure functions)
from atomforge.domain.sorting import topological_sort
from atomforge.domain.validation import (
    ValidationReport,
    check_layer_dependencies,
    validate_plan,
)

# Infrastructure (explicit import encouraged for dependency injection)
from atomforge.infrastructure.llm import MockDecomposer
from atomforge.infrastructure.persistence import (
    FilesystemManifestStorage,
    InMemoryManifestStorage,
)

__version__ = "0.3.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
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
    "check_layer_dependencies",
    "validate_plan",
    "ValidationReport",
    # Domain interfaces
    "DecomposerInterface",
    "ManifestStorageInterface",
    # Domain exceptions
    "CycleDetectedError",
    "DecompositionError",
    "ManifestStorageError",
    "ManifestCorruptError",
    "ConfigurationError",
    # Application layer
    "Blackboard",
    "BlackboardConfig",
    "DependencyContextBuilder",
    "Planner",
    "PlannerConfig",
    "PlanPhase",
    "PlanResult",
    "PolicyCorrection",
    # Infrastructure
    "InMemoryManifestStorage",
    "FilesystemManifestStorage",
    "MockDecomposer",
]
