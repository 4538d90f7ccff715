"""
Infrastructure layer for atom planning.

Contains adapters for external concerns (manifest storage, decomposition services).
"""

from atomforge.infrastructure.llm import (
    MockDecomposer,
    OpenAIDecomposer,
    OpenAIDecomposerConfig,
)
from atomforge.infrastructure.persistence import (
    FilesystemManifestStorage,
    InMemoryManifestStorage,
)

__all__ = [
    # Persistence
    "InMemoryManifestStorage",
    "FilesystemManifestStorage",
    # Decomposition
    "OpenAIDecomposer",
    "OpenAIDecomposerConfig",
    "MockDecomposer",
]
