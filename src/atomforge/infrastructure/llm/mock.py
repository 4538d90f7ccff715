"""
Mock decomposer for testing without an LLM.

Returns predefined decompositions in sequence.
"""

from atomforge.domain.interfaces import DecomposerInterface
from atomforge.domain.models import Atom, Decomposition, DecompositionUnit


def units_from_dicts(items: list[dict]) -> Decomposition:
    """Build a Decomposition from ``{"id", "description", "dependencies", "name"}`` dicts."""
    return Decomposition(
        units=tuple(
            DecompositionUnit(
                unit_id=item["id"],
                description=item.get("description", ""),
                dependency_ids=tuple(item.get("dependencies", ())),
                name=item.get("name", ""),
            )
            for item in items
        )
    )


class MockDecomposer(DecomposerInterface):
    """Returns predefined decompositions for testing."""

    def __init__(
        self,
        responses: list[Decomposition],
        repairs: list[Decomposition | None] | None = None,
        error: Exception | None = None,
    ):
        """
        Args:
            responses: Decompositions returned by successive decompose() calls
            repairs: Answers for successive repair_cycle() calls
            error: Raised by decompose() instead of answering
        """
        self._responses = responses
        self._repairs = list(repairs or [])
        self._error = error
        self._call_count = 0
        self.requests: list[tuple[str, str]] = []
        self.repair_requests: list[tuple[tuple[str, ...], list[Atom]]] = []

    async def decompose(self, request: str, context: str = "") -> Decomposition:
        """Return the next predefined decomposition."""
        self.requests.append((request, context))
        if self._error is not None:
            raise self._error
        if self._call_count >= len(self._responses):
            raise RuntimeError("MockDecomposer exhausted responses")

        response = self._responses[self._call_count]
        self._call_count += 1
        return response

    async def repair_cycle(
        self, cycle: tuple[str, ...], atoms: list[Atom]
    ) -> Decomposition | None:
        self.repair_requests.append((cycle, list(atoms)))
        if not self._repairs:
            return None
        return self._repairs.pop(0)

    @property
    def call_count(self) -> int:
        """Number of times decompose() has been called."""
        return self._call_count
