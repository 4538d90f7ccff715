"""
Domain models for the atom dependency graph.

These are pure data structures describing the solution manifest: atoms,
architectural layers, project metadata and the semantic signature table.
Atoms, layers and signatures are immutable (frozen dataclasses); changes are
made by creating a new instance with ``dataclasses.replace``.
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(UTC).isoformat()


# =============================================================================
# ATOMS
# =============================================================================


class AtomKind(Enum):
    """What an atom produces."""

    DTO = "dto"
    INTERFACE = "interface"
    IMPLEMENTATION = "implementation"
    TEST = "test"


class AtomStatus(Enum):
    """Execution status of an atom."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    FAILED = "failed"


# Common-path transitions. Anything else is logged but still applied.
ALLOWED_TRANSITIONS: dict[AtomStatus, frozenset[AtomStatus]] = {
    AtomStatus.PENDING: frozenset({AtomStatus.IN_PROGRESS}),
    AtomStatus.IN_PROGRESS: frozenset(
        {AtomStatus.REVIEW, AtomStatus.COMPLETED, AtomStatus.FAILED}
    ),
    AtomStatus.REVIEW: frozenset({AtomStatus.COMPLETED, AtomStatus.FAILED}),
    AtomStatus.COMPLETED: frozenset(),
    AtomStatus.FAILED: frozenset({AtomStatus.IN_PROGRESS}),
}


def is_common_transition(current: AtomStatus, new: AtomStatus) -> bool:
    return current == new or new in ALLOWED_TRANSITIONS[current]


@dataclass(frozen=True)
class Atom:
    """
    A single unit of work in the dependency graph.

    ``dependencies`` may reference ids that are not (yet) part of the
    manifest; planning tolerates such forward references, execution
    readiness does not.
    """

    atom_id: str
    name: str
    kind: AtomKind = AtomKind.IMPLEMENTATION
    layer: str = "Core"
    dependencies: tuple[str, ...] = ()
    status: AtomStatus = AtomStatus.PENDING
    file_path: str = ""  # Set once output is materialized
    description: str = ""
    compile_errors: tuple[str, ...] = ()
    retry_count: int = 0

    def with_dependencies(self, dependencies: tuple[str, ...]) -> "Atom":
        return replace(self, dependencies=tuple(dependencies))

    def without_dependency(self, dependency_id: str) -> "Atom":
        return replace(
            self,
            dependencies=tuple(d for d in self.dependencies if d != dependency_id),
        )

    def with_status(self, status: AtomStatus) -> "Atom":
        return replace(self, status=status)


# =============================================================================
# LAYERS
# =============================================================================


@dataclass(frozen=True)
class Layer:
    """An architectural tier and the layers it may depend on directly."""

    name: str
    description: str = ""
    allowed_dependencies: frozenset[str] = frozenset()
    project_path: str = ""

    @property
    def is_zero_dependency(self) -> bool:
        return not self.allowed_dependencies

    def allows(self, layer_name: str) -> bool:
        return layer_name in self.allowed_dependencies


CORE_LAYER = "Core"
INFRASTRUCTURE_LAYER = "Infrastructure"
PRESENTATION_LAYER = "Presentation"


def default_layers() -> dict[str, Layer]:
    """The default three-layer policy: Core <- Infrastructure <- Presentation."""
    return {
        CORE_LAYER: Layer(
            name=CORE_LAYER,
            description="Domain entities, interfaces and DTOs. Zero external dependencies.",
            allowed_dependencies=frozenset(),
            project_path="src/Core",
        ),
        INFRASTRUCTURE_LAYER: Layer(
            name=INFRASTRUCTURE_LAYER,
            description="Implementations of Core interfaces: storage, file I/O, external APIs.",
            allowed_dependencies=frozenset({CORE_LAYER}),
            project_path="src/Infrastructure",
        ),
        PRESENTATION_LAYER: Layer(
            name=PRESENTATION_LAYER,
            description="Console UI or API endpoints. Entry point of the application.",
            allowed_dependencies=frozenset({CORE_LAYER, INFRASTRUCTURE_LAYER}),
            project_path="src/Presentation",
        ),
    }


# =============================================================================
# SEMANTIC SIGNATURE TABLE
# =============================================================================


@dataclass(frozen=True)
class InterfaceSignature:
    """Public shape of an interface: method signatures only."""

    name: str
    namespace: str
    methods: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.namespace)


@dataclass(frozen=True)
class DtoSignature:
    """Public shape of a DTO: property signatures only."""

    name: str
    namespace: str
    properties: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.namespace)


@dataclass(frozen=True)
class SignatureTable:
    """Read-only view of the signature table keyed by (name, namespace)."""

    interfaces: MappingProxyType[tuple[str, str], InterfaceSignature] = field(
        default_factory=lambda: MappingProxyType({})
    )
    dtos: MappingProxyType[tuple[str, str], DtoSignature] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def interface_named(self, name: str) -> InterfaceSignature | None:
        return next((s for s in self.interfaces.values() if s.name == name), None)

    def dto_named(self, name: str) -> DtoSignature | None:
        return next((s for s in self.dtos.values() if s.name == name), None)


# =============================================================================
# SOLUTION MANIFEST
# =============================================================================


@dataclass
class ProjectMetadata:
    """Project-level facts about the generated solution."""

    name: str = "AtomForgeSolution"
    root_namespace: str = "AtomForge"
    target_framework: str = "net9.0"
    created_at: str = field(default_factory=utc_now)
    last_updated: str = field(default_factory=utc_now)


@dataclass
class SolutionManifest:
    """
    Full persisted state of a workspace.

    Mutable, and owned exclusively by the Blackboard which serializes
    every access to it.
    """

    metadata: ProjectMetadata = field(default_factory=ProjectMetadata)
    layers: dict[str, Layer] = field(default_factory=dict)
    atoms: dict[str, Atom] = field(default_factory=dict)
    interface_signatures: dict[tuple[str, str], InterfaceSignature] = field(
        default_factory=dict
    )
    dto_signatures: dict[tuple[str, str], DtoSignature] = field(
        default_factory=dict
    )

    @classmethod
    def with_default_layers(
        cls, metadata: ProjectMetadata | None = None
    ) -> "SolutionManifest":
        return cls(metadata=metadata or ProjectMetadata(), layers=default_layers())

    def signature_table(self) -> SignatureTable:
        return SignatureTable(
            interfaces=MappingProxyType(dict(self.interface_signatures)),
            dtos=MappingProxyType(dict(self.dto_signatures)),
        )


# =============================================================================
# SORT RESULTS
# =============================================================================


@dataclass(frozen=True)
class Ordered:
    """A dependency-respecting linear order of atoms."""

    atoms: tuple[Atom, ...]

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(a.atom_id for a in self.atoms)


@dataclass(frozen=True)
class CycleDetected:
    """
    A concrete dependency cycle.

    ``cycle`` is closed: it starts and ends with the same id, and each id
    lists the next one as a dependency.
    """

    cycle: tuple[str, ...]

    @property
    def members(self) -> tuple[str, ...]:
        return self.cycle[:-1]

    def describe(self) -> str:
        return " -> ".join(self.cycle)


SortResult = Ordered | CycleDetected


# =============================================================================
# DECOMPOSITION (external service contract)
# =============================================================================


@dataclass(frozen=True)
class DecompositionUnit:
    """A raw work unit as returned by the decomposition service."""

    unit_id: str
    description: str
    dependency_ids: tuple[str, ...] = ()
    name: str = ""


@dataclass(frozen=True)
class Decomposition:
    """Result of a decomposition request."""

    units: tuple[DecompositionUnit, ...]
