"""
bdicore.core.events - Lifecycle Event Queue

Outbound queue of reasoning lifecycle events. Collaborators poll or drain it
instead of registering callbacks, so the core never calls back into
presentation or orchestration code.

Example:
    >>> events = EventQueue(maxsize=100)
    >>> events.publish(EVENT_BELIEF_ADMITTED, agent_id="agent-1", belief_id="b1")
    >>> [e.event_type for e in events.drain()]
    ['belief_admitted']
"""

import logging
from collections import deque
from datetime import UTC, datetime
from threading import Lock
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Well-known event types. Each event carries specific data keys:
#
# belief_admitted:        belief_id, source, confidence, displaced
# belief_rejected:        belief_id, reason, detail
# belief_displaced:       belief_id, displaced_by
# desire_queued:          desire_id, goal, priority
# desire_withdrawn:       desire_id
# intention_formed:       intention_id, desire_id, goal, plan_id, estimated_duration
# intention_not_formed:   desire_id, goal, outcome, detail
# intention_transitioned: intention_id, from_status, to_status
EVENT_BELIEF_ADMITTED = "belief_admitted"
EVENT_BELIEF_REJECTED = "belief_rejected"
EVENT_BELIEF_DISPLACED = "belief_displaced"
EVENT_DESIRE_QUEUED = "desire_queued"
EVENT_DESIRE_WITHDRAWN = "desire_withdrawn"
EVENT_INTENTION_FORMED = "intention_formed"
EVENT_INTENTION_NOT_FORMED = "intention_not_formed"
EVENT_INTENTION_TRANSITIONED = "intention_transitioned"


class LifecycleEvent(BaseModel):
    """An event that has occurred inside the reasoning core."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    event_type: str = Field(..., description="One of the EVENT_* constants")
    agent_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class EventQueue:
    """Bounded, thread-safe FIFO of lifecycle events.

    When full, the oldest event is dropped to make room. The queue is
    shared across agents, so it has its own lock independent of the
    per-agent partitions.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self.maxsize = maxsize
        self._events: deque[LifecycleEvent] = deque()
        self._lock = Lock()
        self._dropped = 0

    def publish(self, event_type: str, agent_id: str, **data: Any) -> LifecycleEvent:
        """Append an event and return it."""
        event = LifecycleEvent(event_type=event_type, agent_id=agent_id, data=data)
        with self._lock:
            if len(self._events) >= self.maxsize:
                self._events.popleft()
                self._dropped += 1
                if self._dropped == 1 or self._dropped % 100 == 0:
                    logger.warning(
                        f"Event queue full, dropped {self._dropped} oldest events so far",
                        extra={"dropped_events": self._dropped, "maxsize": self.maxsize},
                    )
            self._events.append(event)
        return event

    def poll(self) -> LifecycleEvent | None:
        """Remove and return the oldest event, or None if empty."""
        with self._lock:
            if not self._events:
                return None
            return self._events.popleft()

    def drain(self, agent_id: str | None = None) -> list[LifecycleEvent]:
        """Remove and return all events, or only those for *agent_id*.

        Events for other agents stay queued in their original order.
        """
        with self._lock:
            if agent_id is None:
                drained = list(self._events)
                self._events.clear()
                return drained

            drained = []
            kept: deque[LifecycleEvent] = deque()
            for event in self._events:
                if event.agent_id == agent_id:
                    drained.append(event)
                else:
                    kept.append(event)
            self._events = kept
            return drained

    @property
    def dropped(self) -> int:
        """Number of events discarded because the queue was full."""
        return self._dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
