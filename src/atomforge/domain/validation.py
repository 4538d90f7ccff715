"""
Dependency validation over atoms and a layer policy.

All functions are pure. Layer allowances are checked directly, never
transitively: a layer may depend only on the layers it lists itself.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from atomforge.domain.models import Atom, AtomKind, Layer


@dataclass(frozen=True)
class LayerViolation:
    """One dependency edge that crosses layers in a forbidden direction."""

    atom_id: str
    atom_layer: str
    dependency_id: str
    dependency_layer: str

    def describe(self) -> str:
        return (
            f"{self.atom_layer} atom {self.atom_id} depends on "
            f"{self.dependency_layer} atom {self.dependency_id}"
        )


@dataclass(frozen=True)
class LayerCheck:
    """Outcome of checking a single atom against the layer policy."""

    atom_id: str
    violations: tuple[LayerViolation, ...] = ()
    unknown_layer: bool = False

    @property
    def passed(self) -> bool:
        return not self.violations


@dataclass(frozen=True)
class ValidationReport:
    """Errors block execution; warnings are informational."""

    errors: tuple[str, ...] = field(default_factory=tuple)
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def check_layer_dependencies(
    atom: Atom, atoms_by_id: Mapping[str, Atom], layers: Mapping[str, Layer]
) -> LayerCheck:
    """
    Check that every resolvable dependency lives in an allowed layer.

    An atom whose own layer is undeclared is unconstrained. Dependencies
    that do not resolve to a known atom are ignored here; they are
    reported by ``find_dangling_dependencies``.
    """
    layer = layers.get(atom.layer)
    if layer is None:
        return LayerCheck(atom_id=atom.atom_id, unknown_layer=True)

    violations = []
    for dep_id in atom.dependencies:
        dep = atoms_by_id.get(dep_id)
        if dep is not None and not layer.allows(dep.layer):
            violations.append(
                LayerViolation(
                    atom_id=atom.atom_id,
                    atom_layer=atom.layer,
                    dependency_id=dep.atom_id,
                    dependency_layer=dep.layer,
                )
            )
    return LayerCheck(atom_id=atom.atom_id, violations=tuple(violations))


def find_dangling_dependencies(atoms: Sequence[Atom]) -> list[tuple[str, str]]:
    """Return (atom_id, missing_dependency_id) for every unresolved reference."""
    known = {atom.atom_id for atom in atoms}
    return [
        (atom.atom_id, dep_id)
        for atom in atoms
        for dep_id in atom.dependencies
        if dep_id not in known
    ]


def find_self_dependencies(atoms: Iterable[Atom]) -> list[str]:
    return [atom.atom_id for atom in atoms if atom.atom_id in atom.dependencies]


def zero_dependency_layers(layers: Mapping[str, Layer]) -> list[str]:
    return [name for name, layer in layers.items() if layer.is_zero_dependency]


def validate_layer_table(layers: Mapping[str, Layer]) -> list[str]:
    """
    Check a layer policy for structural problems.

    Returns:
        Human-readable problems; empty if the table is well formed
    """
    problems = []
    if not zero_dependency_layers(layers):
        problems.append("No zero-dependency layer declared")
    for name, layer in layers.items():
        if name != layer.name:
            problems.append(f"Layer key '{name}' does not match layer name '{layer.name}'")
        if name in layer.allowed_dependencies:
            problems.append(f"Layer '{name}' lists itself as an allowed dependency")
        for allowed in sorted(layer.allowed_dependencies):
            if allowed not in layers:
                problems.append(f"Layer '{name}' allows undeclared layer '{allowed}'")
    return problems


def validate_plan(
    atoms: Sequence[Atom], layers: Mapping[str, Layer]
) -> ValidationReport:
    """
    Validate an atom set against the layer policy.

    Self-dependencies and layer violations are errors. Dangling
    references and undeclared layers are warnings. An interface in a
    zero-dependency layer may use DTOs of its own layer; that is the one
    same-layer edge abstractions-first planning keeps.
    """
    atoms_by_id = {atom.atom_id: atom for atom in atoms}
    errors: list[str] = []
    warnings: list[str] = []

    for atom_id in find_self_dependencies(atoms):
        errors.append(f"Atom {atom_id} depends on itself")

    for atom in atoms:
        check = check_layer_dependencies(atom, atoms_by_id, layers)
        if check.unknown_layer:
            warnings.append(f"Atom {atom.atom_id} uses undeclared layer '{atom.layer}'")
        errors.extend(
            v.describe()
            for v in check.violations
            if not _is_contract_edge(atom, atoms_by_id[v.dependency_id], layers)
        )

    for atom_id, missing in find_dangling_dependencies(atoms):
        warnings.append(f"Atom {atom_id} references unknown atom {missing}")

    return ValidationReport(errors=tuple(errors), warnings=tuple(warnings))


def _is_contract_edge(atom: Atom, dependency: Atom, layers: Mapping[str, Layer]) -> bool:
    layer = layers[atom.layer]
    return (
        layer.is_zero_dependency
        and atom.kind == AtomKind.INTERFACE
        and dependency.kind == AtomKind.DTO
        and dependency.layer == atom.layer
    )
