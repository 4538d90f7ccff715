"""
Filesystem implementation of manifest storage.

Keeps the whole manifest in one JSON file inside the workspace root.
"""

from pathlib import Path

from atomforge.domain.exceptions import ManifestStorageError
from atomforge.domain.interfaces import ManifestStorageInterface
from atomforge.domain.models import SolutionManifest
from atomforge.infrastructure.persistence.codec import decode_manifest, encode_manifest

DEFAULT_MANIFEST_FILE_NAME = "solution_manifest.json"


class FilesystemManifestStorage(ManifestStorageInterface):
    """
    Durable manifest file with atomic replacement.

    Writes go to a temporary sibling file that is then renamed over the
    manifest, so a crash never leaves a half-written manifest behind.
    """

    def __init__(
        self, workspace_root: str, file_name: str = DEFAULT_MANIFEST_FILE_NAME
    ):
        self._root = Path(workspace_root)
        self._path = self._root / file_name

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.exists()

    def read(self) -> SolutionManifest:
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestStorageError(f"Cannot read {self._path}: {e}") from e
        return decode_manifest(text)

    def write(self, manifest: SolutionManifest) -> None:
        text = encode_manifest(manifest)
        temp_path = self._path.with_suffix(".tmp")
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(text, encoding="utf-8")
            temp_path.replace(self._path)  # Atomic on POSIX
        except OSError as e:
            raise ManifestStorageError(f"Cannot write {self._path}: {e}") from e
