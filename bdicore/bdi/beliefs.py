"""
bdicore.bdi.beliefs - Belief Store

BDI Belief Store implementation:
- Admits observations through a validation gate
- Reconciles conflicting beliefs (higher confidence wins, incumbent wins ties)
- Feeds admitted beliefs into the agent's ConfidenceTracker
- Answers condition queries for intention formation
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from bdicore.bdi.confidence import ConfidenceTracker
from bdicore.bdi.models import AdmissionResult, Belief, RejectionReason
from bdicore.core.events import (
    EVENT_BELIEF_ADMITTED,
    EVENT_BELIEF_DISPLACED,
    EVENT_BELIEF_REJECTED,
    EventQueue,
)
from bdicore.exceptions import BeliefRejectedError
from bdicore.settings import BdiSettings

logger = logging.getLogger(__name__)


def serialize_content(content: Mapping[str, Any]) -> str:
    """Compact JSON rendering of belief content, used for token matching."""
    return json.dumps(content, separators=(",", ":"), default=str, ensure_ascii=False)


def values_equal(left: Any, right: Any) -> bool:
    """
    Structural equality used for conflict detection.

    Unlike plain ``==``, booleans never equal numbers (``True != 1``) so a
    flag and a counter under the same key count as contradicting.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, list | tuple) and isinstance(right, list | tuple):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right, strict=True))
    return bool(left == right)


def beliefs_conflict(existing: Belief, incoming: Belief) -> bool:
    """Two beliefs conflict if any shared content key holds differing values."""
    shared = existing.content.keys() & incoming.content.keys()
    return any(not values_equal(existing.content[key], incoming.content[key]) for key in shared)


def _measure(
    value: Any,
    depth_limit: int | None = None,
    entry_limit: int | None = None,
) -> tuple[int, int]:
    """
    Return (max nesting depth, total entry count) of a content value.

    Walks the tree iteratively and stops as soon as either limit is exceeded,
    so the reported figures are lower bounds for oversized content.
    """
    max_depth = 0
    entries = 0
    stack: list[tuple[Any, int]] = [(value, 1)]
    while stack:
        current, depth = stack.pop()
        if isinstance(current, Mapping):
            children = list(current.values())
        elif isinstance(current, list | tuple):
            children = list(current)
        else:
            continue

        max_depth = max(max_depth, depth)
        entries += len(children)
        if depth_limit is not None and max_depth > depth_limit:
            break
        if entry_limit is not None and entries > entry_limit:
            break
        stack.extend((child, depth + 1) for child in children)
    return max_depth, entries


class BeliefStore:
    """
    BDI Belief Store for one agent.

    Beliefs are admitted only if they clear the confidence floor, come from a
    trusted source and carry structured content. Conflicts are resolved before
    the incoming belief is appended, so the store never holds two beliefs for
    the same fact.

    Example:
        >>> store = BeliefStore("agent-1", settings, tracker, events)
        >>> result = store.submit(
        ...     Belief(
        ...         content={"network-access": True},
        ...         confidence=0.9,
        ...         source="verified-intel",
        ...         validated=True,
        ...     )
        ... )
        >>> result.admitted
        True
    """

    def __init__(
        self,
        agent_id: str,
        settings: BdiSettings,
        tracker: ConfidenceTracker,
        events: EventQueue | None = None,
    ):
        """
        Initialize BeliefStore.

        Args:
            agent_id: Agent this belief store belongs to
            settings: Admission thresholds and content bounds
            tracker: Confidence tracker updated on every admission
            events: Optional outbound lifecycle event queue
        """
        self.agent_id = agent_id
        self.settings = settings
        self.tracker = tracker
        self.events = events
        self._beliefs: list[Belief] = []

    def submit(self, belief: Belief | Mapping[str, Any]) -> AdmissionResult:
        """
        Validate, reconcile and store a belief.

        Rejections are logged and returned, never raised. Either the belief is
        admitted (with any weaker conflicting beliefs removed) or nothing
        changes.

        Args:
            belief: A Belief, or a raw mapping to validate into one

        Returns:
            AdmissionResult describing the outcome
        """
        try:
            candidate = self._coerce(belief)
            self._check_admissible(candidate)
            # Frozen models still hold mutable dicts; keep a private copy
            candidate = candidate.model_copy(deep=True)
            displaced = self._find_displaced(candidate)
        except BeliefRejectedError as e:
            return self._reject(belief, e)

        if displaced:
            displaced_ids = {b.id for b in displaced}
            self._beliefs = [b for b in self._beliefs if b.id not in displaced_ids]
            for old in displaced:
                logger.info(
                    f"Replaced conflicting belief for {self.agent_id} "
                    f"(confidence: {old.confidence} -> {candidate.confidence})",
                    extra={
                        "agent_id": self.agent_id,
                        "belief_id": old.id,
                        "displaced_by": candidate.id,
                    },
                )
                self._publish(EVENT_BELIEF_DISPLACED, belief_id=old.id, displaced_by=candidate.id)

        self._beliefs.append(candidate)
        self.tracker.update(candidate)

        logger.info(
            f"New belief admitted for {self.agent_id}: {serialize_content(candidate.content)} "
            f"(confidence: {candidate.confidence})",
            extra={
                "agent_id": self.agent_id,
                "belief_id": candidate.id,
                "source": candidate.source,
            },
        )
        self._publish(
            EVENT_BELIEF_ADMITTED,
            belief_id=candidate.id,
            source=candidate.source,
            confidence=candidate.confidence,
            displaced=[b.id for b in displaced],
        )

        return AdmissionResult(
            admitted=True,
            belief_id=candidate.id,
            displaced=[b.id for b in displaced],
        )

    def list(self) -> list[Belief]:
        """Snapshot of current beliefs in admission order."""
        return [b.model_copy(deep=True) for b in self._beliefs]

    def get(self, belief_id: str) -> Belief | None:
        for belief in self._beliefs:
            if belief.id == belief_id:
                return belief.model_copy(deep=True)
        return None

    def satisfies(self, condition: str, min_confidence: float) -> bool:
        """
        Check whether any belief supports a desire condition.

        A condition is satisfied by a validated belief whose confidence is
        above *min_confidence* and whose serialized content contains the
        condition token.
        """
        return any(
            b.validated
            and b.confidence > min_confidence
            and condition in serialize_content(b.content)
            for b in self._beliefs
        )

    def __len__(self) -> int:
        return len(self._beliefs)

    # ------------------------------------------------------------------------
    # Admission gate
    # ------------------------------------------------------------------------

    def _coerce(self, belief: Belief | Mapping[str, Any]) -> Belief:
        if isinstance(belief, Belief):
            return belief
        if not isinstance(belief, Mapping):
            raise BeliefRejectedError(
                RejectionReason.MALFORMED_CONTENT,
                f"Expected a Belief or mapping, got {type(belief).__name__}",
            )
        try:
            return Belief.model_validate(dict(belief))
        except ValidationError as e:
            raise BeliefRejectedError(
                RejectionReason.MALFORMED_CONTENT,
                f"Belief failed validation: {e.error_count()} error(s)",
            ) from e

    def _check_admissible(self, belief: Belief) -> None:
        """Run the admission checks in order; the first failure rejects."""
        floor = self.settings.belief_confidence_floor
        if belief.confidence <= floor:
            raise BeliefRejectedError(
                RejectionReason.LOW_CONFIDENCE,
                f"Belief rejected due to low confidence: {belief.confidence} (floor {floor})",
            )

        if not self.settings.is_trusted_source(belief.source):
            raise BeliefRejectedError(
                RejectionReason.UNTRUSTED_SOURCE,
                f"Belief rejected due to untrusted source: {belief.source}",
            )

        # model_construct() can bypass field validation, so check the shape here too
        if not isinstance(belief.content, Mapping):
            raise BeliefRejectedError(
                RejectionReason.MALFORMED_CONTENT,
                "Belief rejected due to invalid content: not a key-value map",
            )
        depth, entries = _measure(
            belief.content,
            depth_limit=self.settings.max_content_depth,
            entry_limit=self.settings.max_content_entries,
        )
        if depth > self.settings.max_content_depth:
            raise BeliefRejectedError(
                RejectionReason.MALFORMED_CONTENT,
                f"Belief rejected due to invalid content: nesting depth {depth} "
                f"exceeds {self.settings.max_content_depth}",
            )
        if entries > self.settings.max_content_entries:
            raise BeliefRejectedError(
                RejectionReason.MALFORMED_CONTENT,
                f"Belief rejected due to invalid content: {entries} entries "
                f"exceeds {self.settings.max_content_entries}",
            )

    def _find_displaced(self, incoming: Belief) -> list[Belief]:
        """
        Return the existing beliefs the incoming one would replace.

        Raises:
            BeliefRejectedError: If any conflicting belief is at least as
                confident as the incoming one (the incumbent is kept)
        """
        displaced: list[Belief] = []
        for existing in self._beliefs:
            if existing.id == incoming.id:
                raise BeliefRejectedError(
                    RejectionReason.CONFLICT_LOST,
                    f"Belief {incoming.id} is already held",
                )
            if not beliefs_conflict(existing, incoming):
                continue
            if incoming.confidence > existing.confidence:
                displaced.append(existing)
            else:
                raise BeliefRejectedError(
                    RejectionReason.CONFLICT_LOST,
                    f"Conflicting belief {existing.id} has confidence "
                    f"{existing.confidence} >= {incoming.confidence}",
                )
        return displaced

    def _reject(
        self, belief: Belief | Mapping[str, Any], error: BeliefRejectedError
    ) -> AdmissionResult:
        belief_id = belief.id if isinstance(belief, Belief) else None
        if belief_id is None and isinstance(belief, Mapping):
            raw_id = belief.get("id")
            belief_id = str(raw_id) if raw_id is not None else None

        logger.warning(
            str(error),
            extra={
                "agent_id": self.agent_id,
                "belief_id": belief_id,
                "rejection_reason": RejectionReason(error.reason).value,
            },
        )
        self._publish(
            EVENT_BELIEF_REJECTED,
            belief_id=belief_id,
            reason=RejectionReason(error.reason).value,
            detail=str(error),
        )
        return AdmissionResult(
            admitted=False,
            belief_id=belief_id,
            reason=RejectionReason(error.reason),
            detail=str(error),
        )

    def _publish(self, event_type: str, **data: Any) -> None:
        if self.events is not None:
            self.events.publish(event_type, agent_id=self.agent_id, **data)
