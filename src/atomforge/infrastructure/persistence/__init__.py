"""
Persistence adapters for the solution manifest.
"""

from atomforge.infrastructure.persistence.codec import (
    decode_manifest,
    encode_manifest,
    manifest_from_dict,
    manifest_to_dict,
)
from atomforge.infrastructure.persistence.filesystem import FilesystemManifestStorage
from atomforge.infrastructure.persistence.memory import InMemoryManifestStorage

__all__ = [
    "InMemoryManifestStorage",
    "FilesystemManifestStorage",
    "manifest_to_dict",
    "manifest_from_dict",
    "encode_manifest",
    "decode_manifest",
]
