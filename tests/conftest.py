"""Shared pytest fixtures for atomforge tests."""

import pytest

from atomforge.application.blackboard import Blackboard, BlackboardConfig
from atomforge.domain.models import Decomposition, DecompositionUnit
from atomforge.infrastructure.persistence.memory import InMemoryManifestStorage


@pytest.fixture
def memory_storage() -> InMemoryManifestStorage:
    return InMemoryManifestStorage()


@pytest.fixture
def blackboard(memory_storage: InMemoryManifestStorage) -> Blackboard:
    """A Blackboard over empty in-memory storage (default layers)."""
    return Blackboard(memory_storage)


@pytest.fixture
def manual_blackboard(memory_storage: InMemoryManifestStorage) -> Blackboard:
    """A Blackboard that only writes on explicit save()."""
    return Blackboard(memory_storage, BlackboardConfig(auto_save=False))


@pytest.fixture
def user_management_decomposition() -> Decomposition:
    """The classic DTO / interface / repository / controller / test request."""
    return Decomposition(
        units=(
            DecompositionUnit(
                "atom_004",
                "REST API controller exposing UserController",
                ("atom_003", "atom_002"),
            ),
            DecompositionUnit(
                "atom_003",
                "Repository implementation storing users in a file: FileUserRepository",
                ("atom_001", "atom_002"),
            ),
            DecompositionUnit(
                "atom_002",
                "Interface for user data access IUserRepository",
                ("atom_001",),
            ),
            DecompositionUnit("atom_001", "DTO model for user information UserDto"),
            DecompositionUnit(
                "atom_005", "Unit test for FileUserRepository", ("atom_003",)
            ),
        )
    )
