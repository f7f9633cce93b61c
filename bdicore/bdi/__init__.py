"""
bdicore.bdi - Belief-Desire-Intention Engine

Per-agent BDI components:
- BeliefStore: admits and reconciles the agent's beliefs
- ConfidenceTracker: smoothed trust score fed by admitted beliefs
- DesireQueue: the agent's goals in priority order
- IntentionManager: turns satisfiable desires into plan-backed intentions

Collaborators normally go through bdicore.core.registry.ReasoningRegistry,
which wires one of each per agent and serializes access to them.
"""

from bdicore.bdi.beliefs import BeliefStore
from bdicore.bdi.confidence import ConfidenceTracker
from bdicore.bdi.goals import DesireQueue
from bdicore.bdi.intentions import IntentionManager

__all__ = [
    "BeliefStore",
    "ConfidenceTracker",
    "DesireQueue",
    "IntentionManager",
]
