"""
bdicore.planning - Hierarchical Task Network Planning
"""

from bdicore.planning.planner import HTNPlanner
from bdicore.planning.templates import DEFAULT_TEMPLATES, GoalKind

__all__ = [
    "DEFAULT_TEMPLATES",
    "GoalKind",
    "HTNPlanner",
]
