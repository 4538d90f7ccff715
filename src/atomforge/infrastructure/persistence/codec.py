"""
JSON encoding of the solution manifest.

Every field of the manifest round-trips. Atom order is not significant.
"""

import json
from typing import Any

import jsonschema

from atomforge.domain.exceptions import ManifestCorruptError
from atomforge.domain.models import (
    Atom,
    AtomKind,
    AtomStatus,
    DtoSignature,
    InterfaceSignature,
    Layer,
    ProjectMetadata,
    SolutionManifest,
)
from atomforge.schemas import validate_manifest

FORMAT_VERSION = "1.0"


def _atom_to_dict(atom: Atom) -> dict[str, Any]:
    return {
        "id": atom.atom_id,
        "name": atom.name,
        "kind": atom.kind.value,
        "layer": atom.layer,
        "dependencies": list(atom.dependencies),
        "status": atom.status.value,
        "file_path": atom.file_path,
        "description": atom.description,
        "compile_errors": list(atom.compile_errors),
        "retry_count": atom.retry_count,
    }


def _dict_to_atom(data: dict[str, Any]) -> Atom:
    return Atom(
        atom_id=data["id"],
        name=data["name"],
        kind=AtomKind(data["kind"]),
        layer=data["layer"],
        dependencies=tuple(data["dependencies"]),
        status=AtomStatus(data["status"]),
        file_path=data.get("file_path", ""),
        description=data.get("description", ""),
        compile_errors=tuple(data.get("compile_errors", ())),
        retry_count=data.get("retry_count", 0),
    )


def manifest_to_dict(manifest: SolutionManifest) -> dict[str, Any]:
    """Serialize a manifest to a JSON-compatible dict."""
    metadata = manifest.metadata
    return {
        "version": FORMAT_VERSION,
        "project_metadata": {
            "name": metadata.name,
            "root_namespace": metadata.root_namespace,
            "target_framework": metadata.target_framework,
            "created_at": metadata.created_at,
            "last_updated": metadata.last_updated,
        },
        "layers": {
            name: {
                "description": layer.description,
                # Sorted for stable output
                "allowed_dependencies": sorted(layer.allowed_dependencies),
                "project_path": layer.project_path,
            }
            for name, layer in manifest.layers.items()
        },
        "atoms": [_atom_to_dict(atom) for atom in manifest.atoms.values()],
        "signatures": {
            "interfaces": [
                {"name": s.name, "namespace": s.namespace, "methods": list(s.methods)}
                for s in manifest.interface_signatures.values()
            ],
            "dtos": [
                {
                    "name": s.name,
                    "namespace": s.namespace,
                    "properties": list(s.properties),
                }
                for s in manifest.dto_signatures.values()
            ],
        },
    }


def manifest_from_dict(data: dict[str, Any]) -> SolutionManifest:
    """
    Deserialize and validate a manifest dict.

    Raises:
        ManifestCorruptError: If the data does not match the manifest schema
    """
    try:
        validate_manifest(data)
    except jsonschema.ValidationError as e:
        raise ManifestCorruptError(f"Invalid manifest: {e.message}") from e

    meta = data["project_metadata"]
    manifest = SolutionManifest(
        metadata=ProjectMetadata(
            name=meta["name"],
            root_namespace=meta["root_namespace"],
            target_framework=meta["target_framework"],
            created_at=meta["created_at"],
            last_updated=meta["last_updated"],
        ),
        layers={
            name: Layer(
                name=name,
                description=layer["description"],
                allowed_dependencies=frozenset(layer["allowed_dependencies"]),
                project_path=layer.get("project_path", ""),
            )
            for name, layer in data["layers"].items()
        },
    )

    for atom_data in data["atoms"]:
        atom = _dict_to_atom(atom_data)
        if atom.atom_id in manifest.atoms:
            raise ManifestCorruptError(f"Duplicate atom id in manifest: {atom.atom_id}")
        manifest.atoms[atom.atom_id] = atom

    for item in data["signatures"]["interfaces"]:
        interface = InterfaceSignature(
            name=item["name"], namespace=item["namespace"], methods=tuple(item["methods"])
        )
        manifest.interface_signatures[interface.key] = interface

    for item in data["signatures"]["dtos"]:
        dto = DtoSignature(
            name=item["name"],
            namespace=item["namespace"],
            properties=tuple(item["properties"]),
        )
        manifest.dto_signatures[dto.key] = dto

    return manifest


def encode_manifest(manifest: SolutionManifest) -> str:
    return json.dumps(manifest_to_dict(manifest), indent=2)


def decode_manifest(text: str) -> SolutionManifest:
    """
    Parse manifest JSON text.

    Raises:
        ManifestCorruptError: If the text is not valid JSON or not a manifest
    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; pathological nesting recurses too deep
        raise ManifestCorruptError(f"Invalid JSON in manifest: {e}") from e
    if not isinstance(data, dict):
        raise ManifestCorruptError(
            f"Expected JSON object in manifest, got {type(data).__name__}"
        )
    return manifest_from_dict(data)
