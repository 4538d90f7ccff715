"""
Blackboard: the single authoritative view of a workspace's solution manifest.

Every read and write goes through one exclusive lock that guards both the
in-memory manifest and the durable write path, so callers on any number of
threads observe store operations in a strict total order.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from atomforge.domain.exceptions import ManifestStorageError
from atomforge.domain.models import (
    Atom,
    AtomStatus,
    DtoSignature,
    InterfaceSignature,
    Layer,
    ProjectMetadata,
    SignatureTable,
    SolutionManifest,
    is_common_transition,
    utc_now,
)
from atomforge.domain.validation import check_layer_dependencies, validate_layer_table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from atomforge.domain.interfaces import ManifestStorageInterface

logger = logging.getLogger(__name__)


@dataclass
class BlackboardConfig:
    """Configuration for Blackboard.

    Project fields are only used when a fresh manifest is initialized.
    """

    auto_save: bool = True
    project_name: str = "AtomForgeSolution"
    root_namespace: str = "AtomForge"
    target_framework: str = "net9.0"


class Blackboard:
    """
    Concurrency-safe, durably backed store for the solution manifest.

    Constructed when a workspace is opened; the manifest is loaded (or
    initialized) immediately. Public methods never call each other while
    holding the lock, so there is no re-entry.
    """

    def __init__(
        self,
        storage: ManifestStorageInterface,
        config: BlackboardConfig | None = None,
    ):
        """
        Args:
            storage: Durable resource holding the serialized manifest
            config: Auto-save and default project settings
        """
        self._storage = storage
        self._config = config or BlackboardConfig()
        self._lock = threading.Lock()
        self._manifest = self._fresh_manifest()
        self.load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load the manifest from storage.

        A missing resource is initialized with the default layer policy and
        persisted. An unreadable or corrupt resource, or any failure of the
        storage adapter, is logged and replaced in memory by the same
        defaults; it is not overwritten until the next save. Never raises.

        Returns:
            True if the manifest came from storage, False if defaults were used
        """
        with self._lock:
            if not self._storage.exists():
                self._manifest = self._fresh_manifest()
                logger.info(
                    "No manifest at %s, initialized default layers",
                    self._storage.location,
                )
                self._save_locked()
                return False

            try:
                self._manifest = self._storage.read()
            except Exception:
                logger.exception(
                    "Failed to load manifest from %s, creating new one",
                    self._storage.location,
                )
                self._manifest = self._fresh_manifest()
                return False

            logger.info("Loaded manifest from %s", self._storage.location)
            return True

    def save(self) -> bool:
        """
        Stamp ``last_updated`` and write the manifest to storage.

        A write failure is logged and reported through the return value;
        in-memory state stays authoritative until the next successful save.

        Returns:
            True if the write succeeded
        """
        with self._lock:
            return self._save_locked()

    def _save_locked(self) -> bool:
        self._manifest.metadata.last_updated = utc_now()
        try:
            self._storage.write(self._manifest)
        except ManifestStorageError:
            logger.exception("Failed to save manifest to %s", self._storage.location)
            return False
        logger.debug("Saved manifest to %s", self._storage.location)
        return True

    def _auto_save_locked(self) -> None:
        if self._config.auto_save:
            self._save_locked()

    def _fresh_manifest(self) -> SolutionManifest:
        return SolutionManifest.with_default_layers(
            ProjectMetadata(
                name=self._config.project_name,
                root_namespace=self._config.root_namespace,
                target_framework=self._config.target_framework,
            )
        )

    # -------------------------------------------------------------------------
    # Atoms
    # -------------------------------------------------------------------------

    def upsert_atom(self, atom: Atom) -> None:
        """Insert or replace an atom by id (auto-saves within the same lock)."""
        with self._lock:
            self._put_locked(atom)
            self._auto_save_locked()

    def upsert_atoms(self, atoms: Iterable[Atom]) -> None:
        """Insert or replace several atoms with a single auto-save."""
        with self._lock:
            for atom in atoms:
                self._put_locked(atom)
            self._auto_save_locked()

    def _put_locked(self, atom: Atom) -> None:
        if atom.layer not in self._manifest.layers:
            logger.warning(
                "Atom %s uses undeclared layer '%s'", atom.atom_id, atom.layer
            )
        self._manifest.atoms[atom.atom_id] = atom

    def get_atom(self, atom_id: str) -> Atom | None:
        with self._lock:
            return self._manifest.atoms.get(atom_id)

    def atoms(self) -> list[Atom]:
        """Snapshot of all atoms."""
        with self._lock:
            return list(self._manifest.atoms.values())

    def update_atom_status(self, atom_id: str, status: AtomStatus) -> bool:
        """
        Set an atom's status. Unknown ids are ignored.

        Returns:
            True if an atom was updated
        """
        with self._lock:
            atom = self._manifest.atoms.get(atom_id)
            if atom is None:
                return False
            if not is_common_transition(atom.status, status):
                logger.warning(
                    "Atom %s moved %s -> %s outside the usual lifecycle",
                    atom_id,
                    atom.status.value,
                    status.value,
                )
            self._manifest.atoms[atom_id] = atom.with_status(status)
            self._auto_save_locked()
            return True

    def mark_materialized(self, atom_id: str, file_path: str) -> bool:
        """Record where an atom's output was written. Unknown ids are ignored."""
        with self._lock:
            atom = self._manifest.atoms.get(atom_id)
            if atom is None:
                return False
            self._manifest.atoms[atom_id] = replace(atom, file_path=file_path)
            self._auto_save_locked()
            return True

    def record_compile_errors(self, atom_id: str, errors: Iterable[str]) -> bool:
        """
        Store diagnostics for a failed attempt and count the retry.

        Unknown ids are ignored.
        """
        with self._lock:
            atom = self._manifest.atoms.get(atom_id)
            if atom is None:
                return False
            self._manifest.atoms[atom_id] = replace(
                atom,
                compile_errors=tuple(errors),
                retry_count=atom.retry_count + 1,
            )
            self._auto_save_locked()
            return True

    def atoms_by_status(self, status: AtomStatus) -> list[Atom]:
        with self._lock:
            return [a for a in self._manifest.atoms.values() if a.status == status]

    def dependencies_satisfied(self, atom: Atom) -> bool:
        """
        True iff every dependency resolves to a Completed atom.

        Unlike planning, an unresolvable dependency id is never satisfied.
        """
        with self._lock:
            return self._satisfied_locked(atom)

    def _satisfied_locked(self, atom: Atom) -> bool:
        for dep_id in atom.dependencies:
            dep = self._manifest.atoms.get(dep_id)
            if dep is None or dep.status != AtomStatus.COMPLETED:
                return False
        return True

    def ready_atoms(self) -> list[Atom]:
        """Pending atoms whose dependencies are all Completed."""
        with self._lock:
            return [
                atom
                for atom in self._manifest.atoms.values()
                if atom.status == AtomStatus.PENDING and self._satisfied_locked(atom)
            ]

    def validate_layer_dependencies(self, atom: Atom) -> bool:
        """
        True iff every existing dependency lives in a layer the atom's layer
        is allowed to depend on.

        An atom in an undeclared layer is unconstrained; this is logged.
        """
        with self._lock:
            check = check_layer_dependencies(
                atom, self._manifest.atoms, self._manifest.layers
            )

        if check.unknown_layer:
            logger.warning("Unknown layer: %s", atom.layer)
            return True

        for violation in check.violations:
            logger.error("Architectural violation: %s", violation.describe())
        return check.passed

    # -------------------------------------------------------------------------
    # Signatures
    # -------------------------------------------------------------------------

    def add_interface_signature(self, signature: InterfaceSignature) -> None:
        """Register an interface signature, replacing any with the same key."""
        with self._lock:
            self._manifest.interface_signatures.pop(signature.key, None)
            self._manifest.interface_signatures[signature.key] = signature
            self._auto_save_locked()

    def add_dto_signature(self, signature: DtoSignature) -> None:
        """Register a DTO signature, replacing any with the same key."""
        with self._lock:
            self._manifest.dto_signatures.pop(signature.key, None)
            self._manifest.dto_signatures[signature.key] = signature
            self._auto_save_locked()

    def signature_table(self) -> SignatureTable:
        with self._lock:
            return self._manifest.signature_table()

    # -------------------------------------------------------------------------
    # Layers and metadata
    # -------------------------------------------------------------------------

    def layers(self) -> dict[str, Layer]:
        with self._lock:
            return dict(self._manifest.layers)

    def set_layer(self, layer: Layer) -> None:
        """Add or replace a layer in the policy table."""
        with self._lock:
            self._manifest.layers[layer.name] = layer
            for problem in validate_layer_table(self._manifest.layers):
                logger.warning("Layer policy: %s", problem)
            self._auto_save_locked()

    def metadata(self) -> ProjectMetadata:
        with self._lock:
            return replace(self._manifest.metadata)

    @property
    def auto_save(self) -> bool:
        return self._config.auto_save

    @property
    def location(self) -> str:
        return self._storage.location
