"""
bdicore.bdi.goals - Desire Queue

BDI Desire Queue implementation:
- Holds an agent's desires (goals)
- Keeps them ordered by priority, highest first, ties in arrival order
- Lets collaborators withdraw satisfied or expired desires
"""

from __future__ import annotations

import logging

from bdicore.bdi.models import Desire
from bdicore.core.events import EVENT_DESIRE_QUEUED, EVENT_DESIRE_WITHDRAWN, EventQueue

logger = logging.getLogger(__name__)


class DesireQueue:
    """
    BDI Desire Queue.

    Desires are read-only once queued. Re-sorting after every insertion is
    stable, so desires of equal priority keep their arrival order.

    Example:
        >>> queue = DesireQueue("agent-1")
        >>> queue.submit(Desire(goal="threat-analysis", priority=3))
        True
        >>> queue.submit(Desire(goal="vulnerability-scan", priority=9))
        True
        >>> [d.priority for d in queue.list()]
        [9, 3]
    """

    def __init__(self, agent_id: str, events: EventQueue | None = None):
        self.agent_id = agent_id
        self.events = events
        self._desires: list[Desire] = []

    def submit(self, desire: Desire) -> bool:
        """
        Queue a desire.

        Args:
            desire: Desire to queue

        Returns:
            True if queued, False if a desire with the same id is already queued
        """
        if any(d.id == desire.id for d in self._desires):
            logger.warning(
                f"Desire {desire.id} already queued for {self.agent_id}, ignoring",
                extra={"agent_id": self.agent_id, "desire_id": desire.id},
            )
            return False

        self._desires.append(desire)
        # list.sort is stable, including with reverse=True
        self._desires.sort(key=lambda d: d.priority, reverse=True)

        logger.info(
            f"New desire added for {self.agent_id}: {desire.goal} (priority: {desire.priority})",
            extra={"agent_id": self.agent_id, "desire_id": desire.id, "goal": desire.goal},
        )
        if self.events is not None:
            self.events.publish(
                EVENT_DESIRE_QUEUED,
                agent_id=self.agent_id,
                desire_id=desire.id,
                goal=desire.goal,
                priority=desire.priority,
            )
        return True

    def withdraw(self, desire_id: str) -> bool:
        """Remove a desire. Returns True if it was queued."""
        for index, desire in enumerate(self._desires):
            if desire.id == desire_id:
                del self._desires[index]
                logger.info(
                    f"Desire withdrawn for {self.agent_id}: {desire.goal}",
                    extra={"agent_id": self.agent_id, "desire_id": desire_id},
                )
                if self.events is not None:
                    self.events.publish(
                        EVENT_DESIRE_WITHDRAWN, agent_id=self.agent_id, desire_id=desire_id
                    )
                return True
        return False

    def list(self) -> list[Desire]:
        """Snapshot of queued desires in priority order."""
        return [d.model_copy(deep=True) for d in self._desires]

    def __iter__(self):
        return iter(list(self._desires))

    def __len__(self) -> int:
        return len(self._desires)
