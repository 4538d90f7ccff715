"""Fixtures shared by the layer-direction tests."""

import os

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)

SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "src"))


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    """Import graph of the atomforge package."""
    return get_evaluable_architecture(SRC_DIR, os.path.join(SRC_DIR, "atomforge"))


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """Domain model and sorter, Blackboard and Planner, storage and LLM adapters.

    Module names are resolved against the src directory, hence the
    'src.atomforge' prefix.
    """
    return (
        LayeredArchitecture()
        .layer("domain")
        .containing_modules(["src.atomforge.domain"])
        .layer("application")
        .containing_modules(["src.atomforge.application"])
        .layer("infrastructure")
        .containing_modules(["src.atomforge.infrastructure"])
    )
