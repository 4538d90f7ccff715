"""
Domain interfaces (Ports) for atom planning.

These abstract base classes define the contracts that adapters must satisfy.
They have no external dependencies.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from atomforge.domain.models import Atom, Decomposition, SolutionManifest


class DecomposerInterface(ABC):
    """
    Port for the external decomposition service.

    Implementations usually call an LLM. ``decompose`` is the only
    suspension point of a planning request.
    """

    @abstractmethod
    async def decompose(self, request: str, context: str = "") -> "Decomposition":
        """
        Break a user request into raw work units.

        Args:
            request: The user's request
            context: Optional free-form context

        Returns:
            Decomposition with candidate units and their dependency ids

        Raises:
            DecompositionError: If the service call fails
        """
        pass

    async def repair_cycle(
        self, cycle: tuple[str, ...], atoms: list["Atom"]
    ) -> "Decomposition | None":
        """
        Ask the service for a semantic fix of a dependency cycle.

        The default implementation offers no delegate repair.

        Args:
            cycle: Closed id sequence describing the cycle
            atoms: Current working atom list

        Returns:
            A replacement decomposition, or None if no repair is offered
        """
        return None


class ManifestStorageInterface(ABC):
    """
    Port for the durable manifest resource.

    One storage instance corresponds to one named resource per workspace.
    The stored format is an adapter detail, but every manifest field must
    survive a write followed by a read.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable name of the backing resource."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        pass

    @abstractmethod
    def read(self) -> "SolutionManifest":
        """
        Read and decode the stored manifest.

        Raises:
            ManifestStorageError: If the resource cannot be read
            ManifestCorruptError: If the content cannot be decoded
        """
        pass

    @abstractmethod
    def write(self, manifest: "SolutionManifest") -> None:
        """
        Encode the manifest and replace the stored content.

        Raises:
            ManifestStorageError: If the resource cannot be written
        """
        pass
