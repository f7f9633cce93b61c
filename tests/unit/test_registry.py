"""
Unit tests for bdicore.core.registry - Reasoning Registry.

Tests the collaborator-facing operations, error results for unknown agents
and intentions, snapshot isolation and per-agent serialization under
concurrent callers.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from bdicore.bdi.models import Belief, Desire, FormationOutcome, IntentionStatus
from bdicore.core.registry import ReasoningRegistry
from bdicore.settings import BdiSettings


@pytest.fixture
def settings():
    return BdiSettings(_env_file=None)


@pytest.fixture
def registry(settings):
    return ReasoningRegistry(settings=settings)


def make_belief(content=None, confidence=0.9, source="verified-intel", validated=True):
    return Belief(
        content=content if content is not None else {"network-access": True},
        confidence=confidence,
        source=source,
        validated=validated,
    )


# ============================================================================
# Test: Beliefs & Confidence
# ============================================================================


class TestBeliefOperations:
    def test_rejected_belief_leaves_no_state(self, registry):
        result = registry.submit_belief("A", make_belief(confidence=0.3))

        assert result.admitted is False
        assert registry.list_beliefs("A") == []
        assert registry.get_confidence("A") == 1.0

    def test_conflict_resolution_keeps_stronger(self, registry):
        registry.submit_belief("A", make_belief({"k": "v1"}, confidence=0.4))
        registry.submit_belief("A", make_belief({"k": "v2"}, confidence=0.6))

        assert [b.content for b in registry.list_beliefs("A")] == [{"k": "v2"}]

    def test_agents_are_isolated(self, registry):
        registry.submit_belief("A", make_belief({"k": "v1"}, confidence=0.9))
        registry.submit_belief("B", make_belief({"k": "v2"}, confidence=0.4))

        assert registry.list_beliefs("A")[0].content == {"k": "v1"}
        assert registry.list_beliefs("B")[0].content == {"k": "v2"}
        assert registry.get_confidence("A") == pytest.approx(0.98)
        assert registry.get_confidence("B") == pytest.approx(0.88)

    def test_unknown_agent_confidence_defaults(self, registry):
        assert registry.get_confidence("nobody") == 1.0

    def test_custom_settings_applied(self):
        registry = ReasoningRegistry(
            settings=BdiSettings(
                _env_file=None, belief_confidence_floor=0.6, default_agent_confidence=0.5
            )
        )

        assert registry.submit_belief("A", make_belief(confidence=0.55)).admitted is False
        assert registry.get_confidence("A") == 0.5

    def test_snapshots_are_copies(self, registry):
        registry.submit_belief("A", make_belief({"k": "v"}))

        registry.list_beliefs("A")[0].content["k"] = "tampered"

        assert registry.list_beliefs("A")[0].content == {"k": "v"}

    def test_submitted_belief_cannot_be_changed_afterwards(self, registry):
        belief = make_belief({"k": "v"})
        registry.submit_belief("A", belief)

        belief.content["k"] = "tampered"

        assert registry.list_beliefs("A")[0].content == {"k": "v"}

    def test_deeply_nested_belief_returns_rejection(self, registry):
        content: dict = {}
        node = content
        for _ in range(5000):
            node["n"] = {}
            node = node["n"]

        result = registry.submit_belief("A", make_belief(content))

        assert result.admitted is False
        assert registry.list_beliefs("A") == []

    def test_non_ascii_condition_satisfied(self, registry):
        registry.submit_belief("A", make_belief({"zone": "café-net"}))

        registry.submit_desire(
            "A", Desire(goal="threat-analysis", priority=5, conditions={"café"})
        )

        assert len(registry.list_intentions("A")) == 1


# ============================================================================
# Test: Desires & Intentions
# ============================================================================


class TestDesireOperations:
    def test_priority_ordering(self, registry):
        for priority in [3, 9, 5]:
            registry.submit_desire("A", Desire(goal="g", priority=priority))

        assert [d.priority for d in registry.list_desires("A")] == [9, 5, 3]

    def test_submit_desire_reports_formation(self, registry):
        registry.submit_belief("A", make_belief())
        desire = Desire(goal="threat-analysis", priority=10, conditions={"network-access"})

        report = registry.submit_desire("A", desire)

        assert report.desire_queued is True
        assert report.outcome_for(desire.id) == FormationOutcome.FORMED

    def test_duplicate_desire_not_requeued(self, registry):
        desire = Desire(goal="attack-simulation", priority=4)
        registry.submit_desire("A", desire)

        report = registry.submit_desire("A", desire)

        assert report.desire_queued is False
        assert report.evaluations == []
        assert len(registry.list_desires("A")) == 1
        assert len(registry.list_intentions("A")) == 1

    def test_new_belief_triggers_replanning(self, registry):
        desire = Desire(goal="threat-analysis", priority=10, conditions={"network-access"})
        registry.submit_desire("A", desire)
        assert registry.list_intentions("A") == []

        registry.submit_belief("A", make_belief())

        [intention] = registry.list_intentions("A")
        assert intention.desire_id == desire.id

    def test_replan_on_belief_can_be_disabled(self):
        registry = ReasoningRegistry(settings=BdiSettings(_env_file=None, replan_on_belief=False))
        registry.submit_desire(
            "A", Desire(goal="threat-analysis", priority=10, conditions={"network-access"})
        )
        registry.submit_belief("A", make_belief())

        assert registry.list_intentions("A") == []
        registry.form_intentions("A")
        assert len(registry.list_intentions("A")) == 1

    def test_form_intentions_is_idempotent(self, registry):
        registry.submit_belief("A", make_belief())
        registry.submit_desire(
            "A", Desire(goal="threat-analysis", priority=10, conditions={"network-access"})
        )

        registry.form_intentions("A")
        registry.form_intentions("A")

        assert len(registry.list_intentions("A")) == 1
        assert len(registry.list_active_plans("A")) == 1

    def test_form_intentions_unknown_agent(self, registry):
        report = registry.form_intentions("nobody")

        assert report.error == "UnknownAgentError: nobody"
        assert report.evaluations == []
        assert "nobody" not in registry.known_agents()

    def test_withdraw_desire(self, registry):
        desire = Desire(goal="g", priority=1, conditions={"never"})
        registry.submit_desire("A", desire)

        assert registry.withdraw_desire("A", desire.id) is True
        assert registry.withdraw_desire("A", desire.id) is False
        assert registry.withdraw_desire("nobody", desire.id) is False
        assert registry.list_desires("A") == []

    def test_unknown_agent_lists_are_empty(self, registry):
        assert registry.list_beliefs("nobody") == []
        assert registry.list_desires("nobody") == []
        assert registry.list_intentions("nobody") == []
        assert registry.list_active_plans("nobody") == []


class TestTransitions:
    @pytest.fixture
    def intention_id(self, registry):
        registry.submit_desire("A", Desire(goal="attack-simulation", priority=4))
        return registry.list_intentions("A")[0].id

    def test_transition_ok(self, registry, intention_id):
        result = registry.transition_intention("A", intention_id, IntentionStatus.COMPLETED)

        assert result.ok is True
        assert result.status == IntentionStatus.COMPLETED
        assert registry.list_intentions("A")[0].progress == 100
        assert registry.list_active_plans("A") == []

    def test_unknown_agent(self, registry):
        result = registry.transition_intention("nobody", "x", "completed")

        assert result.ok is False
        assert result.error.startswith("UnknownAgentError")

    def test_unknown_intention(self, registry, intention_id):
        result = registry.transition_intention("A", "missing", "completed")

        assert result.ok is False
        assert result.error.startswith("UnknownIntentionError")

    def test_invalid_transition(self, registry, intention_id):
        registry.transition_intention("A", intention_id, "completed")

        result = registry.transition_intention("A", intention_id, "active")

        assert result.ok is False
        assert result.error.startswith("InvalidTransitionError")
        assert registry.list_intentions("A")[0].status == IntentionStatus.COMPLETED


# ============================================================================
# Test: Agent Partitions
# ============================================================================


class TestPartitions:
    def test_known_and_forget(self, registry):
        registry.submit_belief("A", make_belief())
        registry.submit_desire("B", Desire(goal="g", priority=1))

        assert sorted(registry.known_agents()) == ["A", "B"]
        assert registry.forget_agent("A") is True
        assert registry.forget_agent("A") is False
        assert registry.list_beliefs("A") == []

    def test_lock_factory_injected(self, settings):
        created = []

        def factory():
            lock = threading.RLock()
            created.append(lock)
            return lock

        registry = ReasoningRegistry(settings=settings, lock_factory=factory)
        registry.submit_belief("A", make_belief())
        registry.submit_belief("A", make_belief({"other": 1}))
        registry.submit_belief("B", make_belief())

        assert len(created) == 2

    def test_events_published(self, registry):
        registry.submit_belief("A", make_belief())
        registry.submit_desire(
            "A", Desire(goal="threat-analysis", priority=10, conditions={"network-access"})
        )

        event_types = [e.event_type for e in registry.events.drain(agent_id="A")]

        assert event_types == ["belief_admitted", "desire_queued", "intention_formed"]

    def test_forget_waits_for_queued_submission(self, settings):
        class SignallingLock:
            """Re-entrant lock that records when another thread starts waiting."""

            def __init__(self):
                self._lock = threading.RLock()
                self.contended = threading.Event()

            def __enter__(self):
                if not self._lock.acquire(blocking=False):
                    self.contended.set()
                    self._lock.acquire()
                return self

            def __exit__(self, *exc_info):
                self._lock.release()

        registry = ReasoningRegistry(settings=settings, lock_factory=SignallingLock)
        registry.submit_belief("A", make_belief({"k": "old"}))
        old = registry._partition("A")
        results = []

        def submit():
            results.append(registry.submit_belief("A", make_belief({"fresh": "new"})))

        with old.lock:
            worker = threading.Thread(target=submit)
            worker.start()
            assert old.lock.contended.wait(timeout=5)
            assert registry.forget_agent("A") is True
        worker.join(timeout=5)

        [result] = results
        assert result.admitted is True
        assert old.retired is True
        assert [b.content for b in registry.list_beliefs("A")] == [{"fresh": "new"}]
        assert registry._partition("A") is not old


class TestConcurrency:
    def test_concurrent_desires_same_agent(self, registry):
        registry.submit_belief("A", make_belief())
        desires = [
            Desire(goal="threat-analysis", priority=(i % 10) + 1, conditions={"network-access"})
            for i in range(60)
        ]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda d: registry.submit_desire("A", d), desires))

        queued = registry.list_desires("A")
        assert len(queued) == 60
        assert [d.priority for d in queued] == sorted((d.priority for d in queued), reverse=True)
        intentions = registry.list_intentions("A")
        assert len(intentions) == 60
        assert len({i.desire_id for i in intentions}) == 60

    def test_concurrent_conflicting_beliefs_leave_one_winner(self, registry):
        beliefs = [
            make_belief({"os": f"variant-{i}"}, confidence=0.31 + i * 0.01) for i in range(40)
        ]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda b: registry.submit_belief("A", b), beliefs))

        [winner] = registry.list_beliefs("A")
        assert winner.content == {"os": "variant-39"}

    def test_concurrent_agents(self, registry):
        def run(agent_id):
            registry.submit_belief(agent_id, make_belief())
            registry.submit_desire(
                agent_id,
                Desire(goal="threat-analysis", priority=10, conditions={"network-access"}),
            )

        agents = [f"agent-{i}" for i in range(20)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(run, agents))

        for agent_id in agents:
            assert len(registry.list_intentions(agent_id)) == 1
