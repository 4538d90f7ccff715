"""
Planner: turns an external decomposition into an ordered, layer-valid atom list.

A planning request runs Decomposing -> Classifying -> Sorting and ends in
Done or Failed. A detected cycle moves it to Repairing, which always loops
back to Sorting, at most ``max_cycle_repairs`` times.

Repairs only ever touch the planner's local atom list. Nothing is written
to the Blackboard here; the caller persists the returned plan.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from atomforge.domain.classification import classify_kind, classify_layer, infer_name
from atomforge.domain.exceptions import CycleDetectedError
from atomforge.domain.models import (
    CORE_LAYER,
    Atom,
    AtomKind,
    AtomStatus,
    CycleDetected,
    Decomposition,
    Layer,
    Ordered,
)
from atomforge.domain.sorting import topological_sort
from atomforge.domain.validation import zero_dependency_layers

if TYPE_CHECKING:
    from atomforge.domain.interfaces import DecomposerInterface

logger = logging.getLogger(__name__)


class PlanPhase(Enum):
    """Phase of a single planning request."""

    IDLE = "idle"
    DECOMPOSING = "decomposing"
    CLASSIFYING = "classifying"
    SORTING = "sorting"
    REPAIRING = "repairing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PolicyCorrection:
    """A dependency removal made by abstractions-first enforcement."""

    atom_id: str
    removed: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class PlanResult:
    """Ordered atoms plus a record of what the planner changed."""

    atoms: tuple[Atom, ...]
    repairs: int = 0
    corrections: tuple[PolicyCorrection, ...] = ()

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(a.atom_id for a in self.atoms)


@dataclass
class PlannerConfig:
    """Configuration for Planner."""

    abstractions_first: bool = True
    enable_topological_sort: bool = True
    max_cycle_repairs: int = 3
    zero_dependency_layer: str = CORE_LAYER
    delegate_repairs: bool = False


@dataclass
class _PlanRun:
    """Per-request scratch state."""

    zero_layers: frozenset[str]
    corrections: list[PolicyCorrection] = field(default_factory=list)
    repairs: int = 0


def break_cycle_minimally(atoms: Sequence[Atom]) -> list[Atom]:
    """
    Drop the last-listed dependency of the atom with the most dependencies.

    Ties go to the atom listed first. This is a deterministic edge removal
    that guarantees progress; it does not look at which atoms form the cycle.
    """
    if not atoms:
        return []
    target = max(atoms, key=lambda a: len(a.dependencies))
    if not target.dependencies:
        return list(atoms)

    dropped = target.dependencies[-1]
    logger.warning(
        "Breaking cycle by removing dependency %s from %s", dropped, target.atom_id
    )
    repaired = target.with_dependencies(target.dependencies[:-1])
    return [repaired if a.atom_id == target.atom_id else a for a in atoms]


class Planner:
    """
    Orchestrates one planning request at a time.

    Concurrent requests against the same manifest are not synchronized
    here; callers serialize them if they upsert overlapping atom ids.
    """

    def __init__(
        self,
        decomposer: DecomposerInterface,
        config: PlannerConfig | None = None,
    ):
        """
        Args:
            decomposer: External decomposition service
            config: Abstractions-first, sorting and repair settings
        """
        self._decomposer = decomposer
        self._config = config or PlannerConfig()
        self._phase = PlanPhase.IDLE

    @property
    def phase(self) -> PlanPhase:
        """Phase reached by the most recent planning request."""
        return self._phase

    def _enter(self, phase: PlanPhase) -> None:
        logger.debug("Planner phase %s -> %s", self._phase.value, phase.value)
        self._phase = phase

    async def generate_plan(
        self,
        request: str,
        context: str = "",
        layers: Mapping[str, Layer] | None = None,
    ) -> PlanResult:
        """
        Produce an ordered atom list for a user request.

        Args:
            request: The user's request
            context: Optional context forwarded to the decomposer
            layers: Live layer policy; its zero-dependency layers replace the
                configured ``zero_dependency_layer`` when given

        Returns:
            PlanResult with atoms in build order

        Raises:
            CycleDetectedError: If a cycle survives every repair attempt
            DecompositionError: Propagated unchanged from the decomposer
        """
        logger.info("Generating plan with abstractions-first strategy")
        run = _PlanRun(zero_layers=self._zero_layers(layers))

        self._enter(PlanPhase.DECOMPOSING)
        try:
            decomposition = await self._decomposer.decompose(request, context)
        except BaseException:
            self._enter(PlanPhase.FAILED)
            raise

        atoms = self._prepare(decomposition, run)

        if not self._config.enable_topological_sort:
            self._enter(PlanPhase.DONE)
            return PlanResult(atoms=tuple(atoms), corrections=tuple(run.corrections))

        try:
            ordered = await self._sort_with_repairs(atoms, run)
        except BaseException:
            self._enter(PlanPhase.FAILED)
            raise

        self._enter(PlanPhase.DONE)
        logger.info("Successfully sorted %d atoms", len(ordered))
        return PlanResult(
            atoms=tuple(ordered),
            repairs=run.repairs,
            corrections=tuple(run.corrections),
        )

    def _zero_layers(self, layers: Mapping[str, Layer] | None) -> frozenset[str]:
        if layers:
            found = zero_dependency_layers(layers)
            if found:
                return frozenset(found)
        return frozenset({self._config.zero_dependency_layer})

    def _prepare(self, decomposition: Decomposition, run: _PlanRun) -> list[Atom]:
        self._enter(PlanPhase.CLASSIFYING)
        atoms = classify_units(decomposition)
        if self._config.abstractions_first:
            atoms, corrections = enforce_abstractions_first(atoms, run.zero_layers)
            run.corrections.extend(corrections)
        return atoms

    async def _sort_with_repairs(self, atoms: list[Atom], run: _PlanRun) -> list[Atom]:
        working = list(atoms)
        while True:
            self._enter(PlanPhase.SORTING)
            match topological_sort(working):
                case Ordered(atoms=ordered):
                    return list(ordered)
                case CycleDetected(cycle=cycle) as detected:
                    logger.warning(
                        "Circular dependency detected (attempt %d): %s",
                        run.repairs + 1,
                        detected.describe(),
                    )
                    if run.repairs >= self._config.max_cycle_repairs:
                        raise CycleDetectedError(cycle, attempts=run.repairs)
                    self._enter(PlanPhase.REPAIRING)
                    working = await self._repair(working, cycle, run)
                    run.repairs += 1

    async def _repair(
        self, atoms: list[Atom], cycle: tuple[str, ...], run: _PlanRun
    ) -> list[Atom]:
        if self._config.delegate_repairs:
            logger.info("Requesting decomposer to refactor and break the cycle")
            decomposition = await self._decomposer.repair_cycle(cycle, list(atoms))
            if decomposition is not None and decomposition.units:
                return self._prepare(decomposition, run)
            logger.info("No delegate repair offered, removing one dependency instead")
        return break_cycle_minimally(atoms)


def classify_units(decomposition: Decomposition) -> list[Atom]:
    """
    Convert raw units into pending atoms using the lexical classifier.

    A repeated unit id replaces the earlier unit in place.
    """
    atoms: dict[str, Atom] = {}
    for unit in decomposition.units:
        if unit.unit_id in atoms:
            logger.warning("Duplicate unit id %s, keeping the later unit", unit.unit_id)
        atoms[unit.unit_id] = Atom(
            atom_id=unit.unit_id,
            name=infer_name(unit.description, unit.name),
            kind=classify_kind(unit.description),
            layer=classify_layer(unit.description),
            dependencies=tuple(unit.dependency_ids),
            status=AtomStatus.PENDING,
            description=unit.description,
        )
    return list(atoms.values())


def enforce_abstractions_first(
    atoms: Sequence[Atom], zero_layers: frozenset[str] = frozenset({CORE_LAYER})
) -> tuple[list[Atom], list[PolicyCorrection]]:
    """
    Strip dependencies that would break abstractions-first and regroup atoms
    as DTOs, interfaces, implementations, tests.

    The grouping is a pre-pass only; the topological sort still decides the
    final order. Every removal is logged and returned as a correction.
    """
    by_id = {a.atom_id: a for a in atoms}
    implementation_ids = {
        a.atom_id for a in atoms if a.kind == AtomKind.IMPLEMENTATION
    }
    corrections: list[PolicyCorrection] = []

    def strip(atom: Atom, removed: list[str], reason: str) -> Atom:
        if not removed:
            return atom
        logger.warning(
            "Policy correction on %s: removed %s (%s)",
            atom.atom_id,
            ", ".join(removed),
            reason,
        )
        corrections.append(PolicyCorrection(atom.atom_id, tuple(removed), reason))
        return atom.with_dependencies(
            tuple(d for d in atom.dependencies if d not in removed)
        )

    def is_core_dto(dep_id: str) -> bool:
        dep = by_id.get(dep_id)
        return dep is not None and dep.kind == AtomKind.DTO and dep.layer in zero_layers

    groups: dict[AtomKind, list[Atom]] = {kind: [] for kind in AtomKind}
    for atom in atoms:
        if atom.kind in (AtomKind.DTO, AtomKind.INTERFACE):
            atom = strip(
                atom,
                [d for d in atom.dependencies if d in implementation_ids],
                f"{atom.kind.value} may not depend on implementations",
            )

        if atom.layer in zero_layers and atom.dependencies:
            if atom.kind == AtomKind.DTO:
                atom = strip(
                    atom,
                    list(atom.dependencies),
                    f"{atom.layer} DTOs must be dependency-free",
                )
            elif atom.kind == AtomKind.INTERFACE:
                atom = strip(
                    atom,
                    [d for d in atom.dependencies if not is_core_dto(d)],
                    f"{atom.layer} interfaces may only depend on {atom.layer} DTOs",
                )

        groups[atom.kind].append(atom)

    logger.info(
        "Enforced abstractions first: %d DTOs, %d interfaces, "
        "%d implementations, %d tests",
        len(groups[AtomKind.DTO]),
        len(groups[AtomKind.INTERFACE]),
        len(groups[AtomKind.IMPLEMENTATION]),
        len(groups[AtomKind.TEST]),
    )
    return (
        groups[AtomKind.DTO]
        + groups[AtomKind.INTERFACE]
        + groups[AtomKind.IMPLEMENTATION]
        + groups[AtomKind.TEST],
        corrections,
    )
