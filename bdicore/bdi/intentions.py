"""
bdicore.bdi.intentions - Intention Manager

BDI Intention Manager implementation:
- Forms intentions from desires whose conditions current beliefs satisfy
- Asks the HTN planner for a plan and validates it
- Tracks active intentions and plans in creation order
- Applies externally reported status transitions
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from bdicore.bdi.beliefs import BeliefStore
from bdicore.bdi.goals import DesireQueue
from bdicore.bdi.models import (
    INTENTION_TRANSITIONS,
    Desire,
    DesireEvaluation,
    FormationOutcome,
    FormationReport,
    Intention,
    IntentionStatus,
    Plan,
)
from bdicore.core.events import (
    EVENT_INTENTION_FORMED,
    EVENT_INTENTION_NOT_FORMED,
    EVENT_INTENTION_TRANSITIONED,
    EventQueue,
)
from bdicore.exceptions import (
    InvalidPlanError,
    InvalidTransitionError,
    PlanningFailure,
    UnknownIntentionError,
)
from bdicore.planning.planner import HTNPlanner

logger = logging.getLogger(__name__)


class IntentionManager:
    """
    BDI Intention Manager for one agent.

    Intentions are created only by form_intentions() and change only through
    transition(). A desire backs at most one live intention: once intended it
    is skipped on later passes unless its intention failed.

    Example:
        >>> manager = IntentionManager("agent-1", beliefs, desires, planner)
        >>> report = manager.form_intentions()
        >>> [i.status for i in manager.list()]
        [<IntentionStatus.ACTIVE: 'active'>]
    """

    def __init__(
        self,
        agent_id: str,
        beliefs: BeliefStore,
        desires: DesireQueue,
        planner: HTNPlanner,
        condition_confidence_floor: float = 0.5,
        events: EventQueue | None = None,
    ):
        """
        Initialize IntentionManager.

        Args:
            agent_id: Agent this intention manager belongs to
            beliefs: The agent's belief store
            desires: The agent's desire queue
            planner: Shared HTN planner
            condition_confidence_floor: Beliefs must exceed this confidence
                to satisfy a desire condition
            events: Optional outbound lifecycle event queue
        """
        self.agent_id = agent_id
        self.beliefs = beliefs
        self.desires = desires
        self.planner = planner
        self.condition_confidence_floor = condition_confidence_floor
        self.events = events
        self._intentions: list[Intention] = []
        self._active_plans: list[Plan] = []

    # ------------------------------------------------------------------------
    # Formation
    # ------------------------------------------------------------------------

    def form_intentions(self) -> FormationReport:
        """
        Re-evaluate every queued desire against current beliefs.

        Idempotent: with no new beliefs or desires in between, a second call
        forms nothing new. Failures for one desire never stop the pass.

        Returns:
            FormationReport with one evaluation per desire, in priority order
        """
        report = FormationReport(agent_id=self.agent_id)
        for desire in self.desires:
            report.evaluations.append(self._evaluate(desire))
        return report

    def _evaluate(self, desire: Desire) -> DesireEvaluation:
        existing = self._live_intention_for(desire.id)
        if existing is not None:
            return DesireEvaluation(
                desire_id=desire.id,
                goal=desire.goal,
                outcome=FormationOutcome.ALREADY_INTENDED,
                intention_id=existing.id,
            )

        unmet = self.unmet_conditions(desire)
        if unmet:
            detail = f"Unmet conditions: {', '.join(unmet)}"
            logger.info(
                f"Conditions not satisfied for {self.agent_id}: {desire.goal} ({detail})",
                extra={
                    "agent_id": self.agent_id,
                    "desire_id": desire.id,
                    "goal": desire.goal,
                    "unmet_conditions": unmet,
                },
            )
            return self._not_formed(desire, FormationOutcome.CONDITIONS_UNMET, detail)

        try:
            plan = self.planner.plan(desire.goal, self.beliefs.list())
        except PlanningFailure as e:
            logger.warning(
                f"Planning failed for {self.agent_id}: {e}",
                extra={"agent_id": self.agent_id, "desire_id": desire.id, "goal": desire.goal},
            )
            return self._not_formed(desire, FormationOutcome.PLANNING_FAILED, str(e))
        except InvalidPlanError as e:
            logger.warning(
                f"Invalid plan for {self.agent_id}: {e}",
                extra={"agent_id": self.agent_id, "desire_id": desire.id, "goal": desire.goal},
            )
            return self._not_formed(desire, FormationOutcome.INVALID_PLAN, str(e))

        intention = Intention(desire_id=desire.id, plan=plan)
        self._intentions.append(intention)
        self._active_plans.append(plan)

        logger.info(
            f"New intention formed for {self.agent_id}: {desire.goal}",
            extra={
                "agent_id": self.agent_id,
                "intention_id": intention.id,
                "desire_id": desire.id,
                "plan_id": plan.id,
            },
        )
        self._publish(
            EVENT_INTENTION_FORMED,
            intention_id=intention.id,
            desire_id=desire.id,
            goal=desire.goal,
            plan_id=plan.id,
            estimated_duration=plan.estimated_duration,
        )
        return DesireEvaluation(
            desire_id=desire.id,
            goal=desire.goal,
            outcome=FormationOutcome.FORMED,
            intention_id=intention.id,
        )

    def unmet_conditions(self, desire: Desire) -> list[str]:
        """Return the desire's conditions no current belief satisfies."""
        return sorted(
            condition
            for condition in desire.conditions
            if not self.beliefs.satisfies(condition, self.condition_confidence_floor)
        )

    def _live_intention_for(self, desire_id: str) -> Intention | None:
        for intention in self._intentions:
            if intention.desire_id == desire_id and intention.status != IntentionStatus.FAILED:
                return intention
        return None

    def _not_formed(
        self,
        desire: Desire,
        outcome: FormationOutcome,
        detail: str,
    ) -> DesireEvaluation:
        self._publish(
            EVENT_INTENTION_NOT_FORMED,
            desire_id=desire.id,
            goal=desire.goal,
            outcome=outcome.value,
            detail=detail,
        )
        return DesireEvaluation(
            desire_id=desire.id,
            goal=desire.goal,
            outcome=outcome,
            detail=detail,
        )

    # ------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------

    def transition(self, intention_id: str, new_status: IntentionStatus | str) -> Intention:
        """
        Move an intention to a new status.

        Allowed: active -> completed | failed | suspended, suspended -> active.
        Completing an intention sets its progress to 100. Intentions that end
        (completed or failed) leave the active-plan set.

        Args:
            intention_id: Intention to update
            new_status: Target status

        Returns:
            The updated Intention

        Raises:
            UnknownIntentionError: If the agent holds no such intention
            InvalidTransitionError: If the state machine forbids the change
        """
        try:
            target = IntentionStatus(new_status)
        except ValueError as e:
            raise InvalidTransitionError(f"Unknown intention status: {new_status}") from e

        index = self._index_of(intention_id)
        current = self._intentions[index]

        if target not in INTENTION_TRANSITIONS[current.status]:
            raise InvalidTransitionError(
                f"Cannot move intention {intention_id} from "
                f"{current.status.value} to {target.value}"
            )

        update: dict[str, Any] = {"status": target, "updated_at": datetime.now(UTC)}
        if target == IntentionStatus.COMPLETED:
            update["progress"] = 100.0
        updated = current.model_copy(update=update)
        self._intentions[index] = updated

        if target in (IntentionStatus.COMPLETED, IntentionStatus.FAILED):
            self._active_plans = [p for p in self._active_plans if p.id != current.plan.id]

        logger.info(
            f"Intention {intention_id} for {self.agent_id}: "
            f"{current.status.value} -> {target.value}",
            extra={
                "agent_id": self.agent_id,
                "intention_id": intention_id,
                "from_status": current.status.value,
                "to_status": target.value,
            },
        )
        self._publish(
            EVENT_INTENTION_TRANSITIONED,
            intention_id=intention_id,
            from_status=current.status.value,
            to_status=target.value,
        )
        return updated.model_copy(deep=True)

    def _index_of(self, intention_id: str) -> int:
        for index, intention in enumerate(self._intentions):
            if intention.id == intention_id:
                return index
        raise UnknownIntentionError(intention_id)

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    def get(self, intention_id: str) -> Intention | None:
        for intention in self._intentions:
            if intention.id == intention_id:
                return intention.model_copy(deep=True)
        return None

    def list(self) -> list[Intention]:
        """Snapshot of intentions in creation order."""
        return [i.model_copy(deep=True) for i in self._intentions]

    def list_active_plans(self) -> list[Plan]:
        """Snapshot of plans backing intentions that have not ended."""
        return [p.model_copy(deep=True) for p in self._active_plans]

    def _publish(self, event_type: str, **data: Any) -> None:
        if self.events is not None:
            self.events.publish(event_type, agent_id=self.agent_id, **data)
