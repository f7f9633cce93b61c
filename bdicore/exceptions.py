"""
bdicore.exceptions - Custom exceptions for reasoning operations

Provides a hierarchy of domain-specific exceptions raised at the point where a
problem is detected. The component that owns the operation converts them into
structured results; collaborators of ReasoningRegistry never see them raised.

Example:
    >>> from bdicore.exceptions import PlanningFailure
    >>>
    >>> try:
    ...     plan = planner.plan(desire.goal, beliefs)
    ... except PlanningFailure as e:
    ...     logger.warning(f"Could not plan: {e}")
"""


class BdiError(Exception):
    """Base exception for all reasoning-core errors."""


class BeliefRejectedError(BdiError):
    """
    Raised when a belief fails the admission gate.

    This can occur due to:
    - Confidence at or below the admission floor
    - A source that is not on the trusted-source allow-list
    - Content that is missing, not a mapping, or too deep/large
    - Losing a conflict against an equally or more confident belief
    """

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class PlanningFailure(BdiError):
    """Raised when a goal decomposes into zero steps."""

    def __init__(self, goal: str, message: str | None = None):
        super().__init__(message or f"Goal '{goal}' decomposed into no steps")
        self.goal = goal


class InvalidPlanError(BdiError):
    """Raised when an assembled plan has no steps or a non-positive duration."""


class UnknownAgentError(BdiError):
    """Raised when an operation references an agent with no prior state."""

    def __init__(self, agent_id: str):
        super().__init__(f"Unknown agent: {agent_id}")
        self.agent_id = agent_id


class UnknownIntentionError(BdiError):
    """Raised when an operation references an intention the agent does not hold."""

    def __init__(self, intention_id: str):
        super().__init__(f"Unknown intention: {intention_id}")
        self.intention_id = intention_id


class InvalidTransitionError(BdiError):
    """Raised when an intention status change is not allowed by the state machine."""


__all__ = [
    "BdiError",
    "BeliefRejectedError",
    "InvalidPlanError",
    "InvalidTransitionError",
    "PlanningFailure",
    "UnknownAgentError",
    "UnknownIntentionError",
]
