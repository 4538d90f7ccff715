"""
Application layer for atom planning.

Contains the Blackboard store and the Planner that coordinate domain objects.
"""

from atomforge.application.blackboard import Blackboard, BlackboardConfig
from atomforge.application.context import DependencyContextBuilder
from atomforge.application.planner import (
    PlanPhase,
    PlanResult,
    Planner,
    PlannerConfig,
    PolicyCorrection,
    break_cycle_minimally,
    classify_units,
    enforce_abstractions_first,
)

__all__ = [
    "Blackboard",
    "BlackboardConfig",
    "DependencyContextBuilder",
    "Planner",
    "PlannerConfig",
    "PlanPhase",
    "PlanResult",
    "PolicyCorrection",
    "break_cycle_minimally",
    "classify_units",
    "enforce_abstractions_first",
]
