"""
bdicore.bdi.models - Reasoning Data Model

Pydantic models for beliefs, desires, plans and intentions, plus the
structured result values returned to collaborators.

All entities are frozen once constructed. Intentions change status by being
replaced with an updated copy, never by in-place mutation.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ============================================================================
# Beliefs & Desires
# ============================================================================


class Belief(BaseModel):
    """
    A trust-weighted, timestamped observation held for one agent.

    Content is a schema-less key-value map. Two beliefs conflict when they
    share a key whose values differ.

    Example:
        >>> belief = Belief(
        ...     content={"network-access": True},
        ...     confidence=0.9,
        ...     source="verified-intel",
        ...     validated=True,
        ... )
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    content: dict[str, Any] = Field(..., description="Structured observation data")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence (0-1)")
    timestamp: datetime = Field(default_factory=_utcnow)
    source: str = Field(..., min_length=1, description="Producer of the observation")
    validated: bool = Field(default=False, description="Whether the producer verified it")


class Desire(BaseModel):
    """
    A prioritized goal an agent wants achieved, gated by conditions.

    Each condition is a token that must appear in the content of a
    sufficiently confident, validated belief before the desire is planned.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    goal: str = Field(..., min_length=1, description="Goal tag, e.g. 'threat-analysis'")
    priority: int = Field(..., ge=1, le=10, description="Priority 1-10 (10 is highest)")
    conditions: frozenset[str] = Field(default_factory=frozenset)
    deadline: datetime | None = None


# ============================================================================
# Plans
# ============================================================================


class PlanStep(BaseModel):
    """Single concrete task in an HTN plan."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    action: str = Field(..., min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    preconditions: frozenset[str] = Field(default_factory=frozenset)
    postconditions: frozenset[str] = Field(default_factory=frozenset)
    estimated_time: float = Field(..., gt=0, description="Estimated minutes")


class Plan(BaseModel):
    """
    Ordered task plan produced by the HTN planner.

    resources and dependencies hold no duplicates and keep first-seen order.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    goal: str
    steps: list[PlanStep] = Field(default_factory=list)
    estimated_duration: float = Field(default=0.0, ge=0)
    resources: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def actions(self) -> list[str]:
        return [step.action for step in self.steps]


# ============================================================================
# Intentions
# ============================================================================


class IntentionStatus(str, Enum):
    """Lifecycle status of an intention."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    SUSPENDED = "suspended"


# Allowed status changes. Terminal states have no outgoing edges.
INTENTION_TRANSITIONS: dict[IntentionStatus, frozenset[IntentionStatus]] = {
    IntentionStatus.ACTIVE: frozenset(
        {IntentionStatus.COMPLETED, IntentionStatus.FAILED, IntentionStatus.SUSPENDED}
    ),
    IntentionStatus.SUSPENDED: frozenset({IntentionStatus.ACTIVE}),
    IntentionStatus.COMPLETED: frozenset(),
    IntentionStatus.FAILED: frozenset(),
}


class Intention(BaseModel):
    """A committed, plan-backed course of action derived from a desire."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    desire_id: str
    plan: Plan
    status: IntentionStatus = IntentionStatus.ACTIVE
    progress: float = Field(default=0.0, ge=0, le=100)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ============================================================================
# Result values
# ============================================================================


class RejectionReason(str, Enum):
    """Why a belief was not admitted."""

    LOW_CONFIDENCE = "low_confidence"
    UNTRUSTED_SOURCE = "untrusted_source"
    MALFORMED_CONTENT = "malformed_content"
    CONFLICT_LOST = "conflict_lost"


class AdmissionResult(BaseModel):
    """Outcome of submitting a belief."""

    admitted: bool
    belief_id: str | None = None
    reason: RejectionReason | None = None
    detail: str | None = None
    displaced: list[str] = Field(
        default_factory=list, description="Ids of beliefs removed by conflict resolution"
    )


class FormationOutcome(str, Enum):
    """What happened to one desire during an intention-formation pass."""

    FORMED = "formed"
    ALREADY_INTENDED = "already_intended"
    CONDITIONS_UNMET = "conditions_unmet"
    PLANNING_FAILED = "planning_failed"
    INVALID_PLAN = "invalid_plan"


class DesireEvaluation(BaseModel):
    desire_id: str
    goal: str
    outcome: FormationOutcome
    intention_id: str | None = None
    detail: str | None = None


class FormationReport(BaseModel):
    """
    Outcome of one intention-formation pass for an agent.

    Example:
        >>> report = registry.submit_desire("agent-1", desire)
        >>> report.formed_intention_ids
        ['3f2a...']
    """

    agent_id: str
    desire_queued: bool | None = Field(
        default=None, description="Set by submit_desire: whether the desire was queued"
    )
    error: str | None = None
    evaluations: list[DesireEvaluation] = Field(default_factory=list)

    @property
    def formed_intention_ids(self) -> list[str]:
        return [
            e.intention_id
            for e in self.evaluations
            if e.outcome == FormationOutcome.FORMED and e.intention_id
        ]

    def outcome_for(self, desire_id: str) -> FormationOutcome | None:
        for evaluation in self.evaluations:
            if evaluation.desire_id == desire_id:
                return evaluation.outcome
        return None


class TransitionResult(BaseModel):
    """Outcome of an intention status change request."""

    ok: bool
    intention_id: str
    status: IntentionStatus | None = None
    error: str | None = None
