"""
Signatures-only context for generating an atom.

Completed dependencies are described by their public shape from the
signature table, never by their full source.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from atomforge.domain.models import (
    Atom,
    AtomKind,
    AtomStatus,
    DtoSignature,
    InterfaceSignature,
)

if TYPE_CHECKING:
    from atomforge.application.blackboard import Blackboard


def format_interface(signature: InterfaceSignature) -> str:
    methods = "\n".join(f"    {m};" for m in signature.methods)
    return f"// {signature.namespace}\ninterface {signature.name}\n{{\n{methods}\n}}"


def format_dto(signature: DtoSignature) -> str:
    properties = "\n".join(f"    {p}" for p in signature.properties)
    return f"// {signature.namespace}\nclass {signature.name}\n{{\n{properties}\n}}"


class DependencyContextBuilder:
    """
    Builds the three context tiers for an atom: the global map of the
    project, the signatures of its direct dependencies, and the target
    description.
    """

    def __init__(self, blackboard: Blackboard):
        self._blackboard = blackboard
        self._cache: dict[str, str] = {}

    def build(self, atom: Atom) -> str:
        parts = [self.global_context(), self.local_context(atom), self.target_context(atom)]
        return "\n\n".join(part for part in parts if part)

    def global_context(self) -> str:
        metadata = self._blackboard.metadata()
        layer_lines = []
        for name, layer in self._blackboard.layers().items():
            allowed = ", ".join(sorted(layer.allowed_dependencies)) or "(none)"
            layer_lines.append(f"  - {name}: {layer.description}\n    Dependencies: {allowed}")
        completed = [
            f"  - {a.file_path}"
            for a in self._blackboard.atoms_by_status(AtomStatus.COMPLETED)
            if a.file_path
        ]
        return (
            "=== GLOBAL CONTEXT ===\n"
            f"Project Name: {metadata.name}\n"
            f"Root Namespace: {metadata.root_namespace}\n"
            f"Target Framework: {metadata.target_framework}\n\n"
            "Architecture Layers:\n" + "\n".join(layer_lines) + "\n\n"
            "Completed Files:\n" + ("\n".join(completed) or "  (none)")
        )

    def local_context(self, atom: Atom) -> str:
        """Signatures of direct dependencies; empty if none are known."""
        signatures = []
        for dep_id in atom.dependencies:
            signature = self._signature_for(dep_id)
            if signature:
                signatures.append(signature)
        if not signatures:
            return ""
        return (
            "=== LOCAL CONTEXT ===\n"
            "Available dependencies (signatures only, not implementations):\n\n"
            + "\n\n".join(signatures)
        )

    def target_context(self, atom: Atom) -> str:
        namespace = f"{self._blackboard.metadata().root_namespace}.{atom.layer}"
        return (
            "=== TARGET CONTEXT ===\n"
            f"Atom ID: {atom.atom_id}\n"
            f"Kind: {atom.kind.value}\n"
            f"Name: {atom.name}\n"
            f"Layer: {atom.layer}\n"
            f"Namespace: {namespace}"
        )

    def invalidate(self) -> None:
        self._cache.clear()

    def _signature_for(self, dep_id: str) -> str | None:
        if dep_id in self._cache:
            return self._cache[dep_id]

        dep = self._blackboard.get_atom(dep_id)
        if dep is None:
            return None

        table = self._blackboard.signature_table()
        text = None
        if dep.kind == AtomKind.INTERFACE:
            interface = table.interface_named(dep.name)
            if interface is not None:
                text = format_interface(interface)
        elif dep.kind == AtomKind.DTO:
            dto = table.dto_named(dep.name)
            if dto is not None:
                text = format_dto(dto)

        if text is not None:
            self._cache[dep_id] = text
        return text
