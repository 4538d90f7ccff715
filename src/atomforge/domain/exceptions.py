"""
Domain exceptions for atom planning and manifest persistence.

These represent conditions the caller has to act on. Conditions that heal
themselves (unknown layers, dangling references, policy corrections) are
logged instead of raised.
"""


class CycleDetectedError(Exception):
    """
    Raised when a dependency cycle survives every repair attempt.

    The Graph Sorter itself never raises this; it returns a
    ``CycleDetected`` result. The Planner raises it once its bounded
    repair loop is exhausted.
    """

    def __init__(self, cycle: tuple[str, ...], attempts: int = 0):
        """
        Args:
            cycle: Closed id sequence (first == last) of the remaining cycle
            attempts: Number of repair attempts made before giving up
        """
        super().__init__(
            f"Circular dependency detected in atoms: {' -> '.join(cycle)}"
        )
        self.cycle = cycle
        self.attempts = attempts


class DecompositionError(Exception):
    """Raised by a decomposition service adapter when a request fails."""

    def __init__(self, message: str, transient: bool = True):
        super().__init__(message)
        self.transient = transient


class ManifestStorageError(Exception):
    """Durable storage could not be read or written."""


class ManifestCorruptError(ManifestStorageError):
    """Stored manifest exists but cannot be decoded or fails validation."""


class ConfigurationError(Exception):
    """Raised when settings files are invalid or missing."""
