"""
bdicore.core.registry - Reasoning Registry

Process-wide entry point for collaborators (agent lifecycle manager,
specialized task agents). Owns one partition of beliefs, confidence,
desires and intentions per agent id and serializes every mutation of a
partition behind that agent's lock. Different agents share no mutable
state and proceed in parallel.

The registry is constructed explicitly and passed to collaborators; there is
no module-level instance.

Example:
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
    >>> report = registry.submit_desire(
    ...     "agent-1",
    ...     Desire(goal="threat-analysis", priority=10, conditions={"network-access"}),
    ... )
    >>> len(registry.list_intentions("agent-1"))
    1
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from typing import Any

from bdicore.bdi.beliefs import BeliefStore
from bdicore.bdi.confidence import ConfidenceTracker
from bdicore.bdi.goals import DesireQueue
from bdicore.bdi.intentions import IntentionManager
from bdicore.bdi.models import (
    AdmissionResult,
    Belief,
    Desire,
    FormationReport,
    Intention,
    IntentionStatus,
    Plan,
    TransitionResult,
)
from bdicore.core.events import EventQueue
from bdicore.exceptions import (
    InvalidTransitionError,
    UnknownAgentError,
    UnknownIntentionError,
)
from bdicore.planning.planner import HTNPlanner
from bdicore.settings import BdiSettings, get_settings

logger = logging.getLogger(__name__)

LockFactory = Callable[[], AbstractContextManager[Any]]


@dataclass
class AgentPartition:
    """All reasoning state for one agent, guarded by one lock."""

    agent_id: str
    lock: AbstractContextManager[Any]
    confidence: ConfidenceTracker
    beliefs: BeliefStore
    desires: DesireQueue
    intentions: IntentionManager
    # Set under the lock once the partition leaves the registry
    retired: bool = False


class ReasoningRegistry:
    """
    Per-agent BDI reasoning with HTN planning.

    Every operation is synchronous and runs to completion before returning.
    Internal errors are converted to structured results; nothing raised inside
    the core escapes to the caller.
    """

    def __init__(
        self,
        settings: BdiSettings | None = None,
        planner: HTNPlanner | None = None,
        events: EventQueue | None = None,
        lock_factory: LockFactory = threading.RLock,
    ):
        """
        Initialize ReasoningRegistry.

        Args:
            settings: Tunables (defaults to get_settings())
            planner: HTN planner shared by all agents
            events: Outbound lifecycle event queue
            lock_factory: Creates the per-agent lock; must be re-entrant if
                collaborators call back into the registry while holding it
        """
        self.settings = settings or get_settings()
        self.planner = planner or HTNPlanner()
        self.events = events or EventQueue(maxsize=self.settings.event_queue_size)
        self._lock_factory = lock_factory
        self._partitions: dict[str, AgentPartition] = {}
        self._partitions_lock = threading.Lock()

    # ------------------------------------------------------------------------
    # Partitions
    # ------------------------------------------------------------------------

    def _partition(self, agent_id: str) -> AgentPartition:
        """Return the agent's partition, creating it on first use."""
        with self._partitions_lock:
            partition = self._partitions.get(agent_id)
            if partition is None:
                partition = self._new_partition(agent_id)
                self._partitions[agent_id] = partition
                logger.debug(f"Created reasoning partition for {agent_id}")
            return partition

    def _existing(self, agent_id: str) -> AgentPartition:
        """Return the agent's partition without creating one."""
        with self._partitions_lock:
            partition = self._partitions.get(agent_id)
        if partition is None:
            raise UnknownAgentError(agent_id)
        return partition

    @contextmanager
    def _locked(self, agent_id: str, create: bool = False) -> Iterator[AgentPartition]:
        """
        Hold the lock of the agent's live partition.

        A partition retired by forget_agent() while we waited for its lock is
        never used; the lookup is retried against the registry instead.

        Raises:
            UnknownAgentError: If create is False and the agent has no state
        """
        while True:
            partition = self._partition(agent_id) if create else self._existing(agent_id)
            with partition.lock:
                if not partition.retired:
                    yield partition
                    return
            logger.debug(f"Partition for {agent_id} retired while waiting, retrying")

    def _new_partition(self, agent_id: str) -> AgentPartition:
        tracker = ConfidenceTracker(
            agent_id,
            history_weight=self.settings.confidence_history_weight,
            initial_score=self.settings.default_agent_confidence,
        )
        beliefs = BeliefStore(agent_id, self.settings, tracker, self.events)
        desires = DesireQueue(agent_id, self.events)
        intentions = IntentionManager(
            agent_id,
            beliefs,
            desires,
            self.planner,
            condition_confidence_floor=self.settings.condition_confidence_floor,
            events=self.events,
        )
        return AgentPartition(
            agent_id=agent_id,
            lock=self._lock_factory(),
            confidence=tracker,
            beliefs=beliefs,
            desires=desires,
            intentions=intentions,
        )

    def known_agents(self) -> list[str]:
        with self._partitions_lock:
            return list(self._partitions)

    def forget_agent(self, agent_id: str) -> bool:
        """
        Drop all reasoning state for an agent. Returns True if it existed.

        Waits for in-flight operations on the agent to finish. Operations
        queued behind them start over on a fresh partition.
        """
        try:
            with self._locked(agent_id) as partition:
                with self._partitions_lock:
                    del self._partitions[agent_id]
                partition.retired = True
        except UnknownAgentError:
            return False
        logger.info(f"Forgot reasoning state for {agent_id}", extra={"agent_id": agent_id})
        return True

    # ------------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------------

    def submit_belief(self, agent_id: str, belief: Belief | Mapping[str, Any]) -> AdmissionResult:
        """
        Admit a belief for an agent.

        On admission, queued desires are re-evaluated (when
        settings.replan_on_belief is set) so newly satisfied conditions form
        intentions immediately.
        """
        with self._locked(agent_id, create=True) as partition:
            result = partition.beliefs.submit(belief)
            if result.admitted and self.settings.replan_on_belief and len(partition.desires):
                partition.intentions.form_intentions()
            return result

    def submit_desire(self, agent_id: str, desire: Desire) -> FormationReport:
        """
        Queue a desire and immediately re-plan the agent.

        Returns:
            FormationReport of the triggered formation pass. desire_queued is
            False (and no pass runs) if the desire id was already queued.
        """
        with self._locked(agent_id, create=True) as partition:
            if not partition.desires.submit(desire):
                return FormationReport(agent_id=agent_id, desire_queued=False)
            report = partition.intentions.form_intentions()
            report.desire_queued = True
            return report

    def form_intentions(self, agent_id: str) -> FormationReport:
        """Re-evaluate all queued desires for an agent."""
        try:
            with self._locked(agent_id) as partition:
                return partition.intentions.form_intentions()
        except UnknownAgentError:
            logger.warning(
                f"form_intentions called for unknown agent {agent_id}",
                extra={"agent_id": agent_id},
            )
            return FormationReport(agent_id=agent_id, error=f"UnknownAgentError: {agent_id}")

    def withdraw_desire(self, agent_id: str, desire_id: str) -> bool:
        """Remove a satisfied or expired desire. Existing intentions are kept."""
        try:
            with self._locked(agent_id) as partition:
                return partition.desires.withdraw(desire_id)
        except UnknownAgentError:
            return False

    def transition_intention(
        self,
        agent_id: str,
        intention_id: str,
        new_status: IntentionStatus | str,
    ) -> TransitionResult:
        """Apply an externally reported status change to an intention."""
        try:
            with self._locked(agent_id) as partition:
                intention = partition.intentions.transition(intention_id, new_status)
        except (UnknownAgentError, UnknownIntentionError, InvalidTransitionError) as e:
            logger.warning(
                f"Intention transition refused: {e}",
                extra={"agent_id": agent_id, "intention_id": intention_id},
            )
            return TransitionResult(
                ok=False,
                intention_id=intention_id,
                error=f"{type(e).__name__}: {e}",
            )
        return TransitionResult(ok=True, intention_id=intention_id, status=intention.status)

    # ------------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------------

    def list_beliefs(self, agent_id: str) -> list[Belief]:
        try:
            with self._locked(agent_id) as partition:
                return partition.beliefs.list()
        except UnknownAgentError:
            return []

    def list_desires(self, agent_id: str) -> list[Desire]:
        try:
            with self._locked(agent_id) as partition:
                return partition.desires.list()
        except UnknownAgentError:
            return []

    def list_intentions(self, agent_id: str) -> list[Intention]:
        try:
            with self._locked(agent_id) as partition:
                return partition.intentions.list()
        except UnknownAgentError:
            return []

    def list_active_plans(self, agent_id: str) -> list[Plan]:
        try:
            with self._locked(agent_id) as partition:
                return partition.intentions.list_active_plans()
        except UnknownAgentError:
            return []

    def get_confidence(self, agent_id: str) -> float:
        """Smoothed trust score; the configured default for agents with no history."""
        try:
            with self._locked(agent_id) as partition:
                return partition.confidence.score
        except UnknownAgentError:
            return self.settings.default_agent_confidence
