"""
bdicore - Belief-Desire-Intention reasoning with HTN planning

A per-agent reasoning core that turns trust-weighted observations (beliefs)
and prioritized goals (desires) into time-estimated task plans (intentions).

This package provides:
1. Belief admission, conflict resolution and confidence tracking
2. A priority-ordered desire queue with immediate re-planning
3. An HTN planner over a fixed template library, refined by beliefs
4. Intention formation and lifecycle tracking
5. A thread-safe registry partitioned by agent id

Example:
    >>> from bdicore import Belief, Desire, ReasoningRegistry
    >>>
    >>> registry = ReasoningRegistry()
    >>> registry.submit_belief(
    ...     "agent-1",
    ...     Belief(
    ...         content={"network-access": True},
    ...         confidence=0.9,
    ...         source="verified-intel",
    ...         validated=True,
    ...     ),
    ... )
    >>> registry.submit_desire(
    ...     "agent-1",
    ...     Desire(goal="threat-analysis", priority=10, conditions={"network-access"}),
    ... )
    >>> registry.list_intentions("agent-1")[0].plan.estimated_duration
    26.0
"""

__version__ = "0.1.0"
__author__ = "bdicore contributors"
__license__ = "Apache-2.0"

from bdicore.bdi.models import (
    AdmissionResult,
    Belief,
    Desire,
    FormationOutcome,
    FormationReport,
    Intention,
    IntentionStatus,
    Plan,
    PlanStep,
    RejectionReason,
    TransitionResult,
)
from bdicore.core.events import EventQueue, LifecycleEvent
from bdicore.core.registry import ReasoningRegistry
from bdicore.planning import GoalKind, HTNPlanner
from bdicore.settings import BdiSettings, get_settings

__all__ = [
    "AdmissionResult",
    "BdiSettings",
    "Belief",
    "Desire",
    "EventQueue",
    "FormationOutcome",
    "FormationReport",
    "GoalKind",
    "HTNPlanner",
    "Intention",
    "IntentionStatus",
    "LifecycleEvent",
    "Plan",
    "PlanStep",
    "ReasoningRegistry",
    "RejectionReason",
    "TransitionResult",
    "__version__",
    "get_settings",
]
