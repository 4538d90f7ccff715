"""
In-memory implementation of manifest storage.

Useful for testing and ephemeral workspaces. The manifest is kept in its
encoded form so reads go through the same decoding as the filesystem.
"""

from atomforge.domain.exceptions import ManifestStorageError
from atomforge.domain.interfaces import ManifestStorageInterface
from atomforge.domain.models import SolutionManifest
from atomforge.infrastructure.persistence.codec import decode_manifest, encode_manifest


class InMemoryManifestStorage(ManifestStorageInterface):
    """Simple in-memory storage for testing."""

    def __init__(self, text: str | None = None, name: str = "memory") -> None:
        """
        Args:
            text: Pre-existing encoded manifest (may be deliberately corrupt)
            name: Label reported as the storage location
        """
        self._text = text
        self._name = name
        self.write_count = 0
        self.fail_writes = False

    @property
    def location(self) -> str:
        return f"<{self._name}>"

    @property
    def text(self) -> str | None:
        return self._text

    def exists(self) -> bool:
        return self._text is not None

    def read(self) -> SolutionManifest:
        if self._text is None:
            raise ManifestStorageError(f"Nothing stored in {self.location}")
        return decode_manifest(self._text)

    def write(self, manifest: SolutionManifest) -> None:
        if self.fail_writes:
            raise ManifestStorageError(f"Writes to {self.location} are disabled")
        self._text = encode_manifest(manifest)
        self.write_count += 1
