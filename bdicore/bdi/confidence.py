"""
bdicore.bdi.confidence - Confidence Tracker

Smoothed trust score per agent, fed by admitted beliefs.
"""

import logging

from bdicore.bdi.models import Belief

logger = logging.getLogger(__name__)


class ConfidenceTracker:
    """
    Exponential moving average of admitted belief confidence.

    new_score = weight * old_score + (1 - weight) * belief.confidence

    With the default weight of 0.8 a single noisy observation moves the
    score by at most a fifth of the difference.

    Example:
        >>> tracker = ConfidenceTracker("agent-1")
        >>> tracker.score
        1.0
        >>> tracker.update(belief)  # belief.confidence == 0.5
        0.9
    """

    def __init__(
        self,
        agent_id: str,
        history_weight: float = 0.8,
        initial_score: float = 1.0,
    ):
        self.agent_id = agent_id
        self.history_weight = history_weight
        self._score = initial_score
        self._observations = 0

    @property
    def score(self) -> float:
        return self._score

    @property
    def observations(self) -> int:
        """Number of beliefs that have contributed to the score."""
        return self._observations

    def update(self, belief: Belief) -> float:
        """Fold an admitted belief into the score and return the new value."""
        old_score = self._score
        weight = self.history_weight
        self._score = weight * old_score + (1 - weight) * belief.confidence
        self._observations += 1

        logger.debug(
            f"Confidence for {self.agent_id}: {old_score:.3f} -> {self._score:.3f}",
            extra={"agent_id": self.agent_id, "belief_id": belief.id},
        )
        return self._score
