"""
bdicore.planning.templates - HTN Decomposition Templates

Fixed task templates, one per goal kind. Each template returns a fresh list
of PlanSteps with baseline time estimates (minutes) and explicit
precondition/postcondition chains.

Goal tags are matched exactly against the closed GoalKind enumeration.
Tags that name no kind fall through to the generic two-step template, so a
tag like "zero-day-analysis-plugin" is planned generically rather than
matching two templates.
"""

from collections.abc import Callable
from enum import Enum

from bdicore.bdi.models import PlanStep

# Template functions receive the original goal tag.
TemplateFn = Callable[[str], list[PlanStep]]


class GoalKind(str, Enum):
    """Goal kinds with a dedicated decomposition template."""

    THREAT_ANALYSIS = "threat-analysis"
    VULNERABILITY_SCAN = "vulnerability-scan"
    PENETRATION_TEST = "penetration-test"
    PLUGIN_DEVELOPMENT = "plugin-development"
    ATTACK_SIMULATION = "attack-simulation"
    ZERO_DAY_ANALYSIS = "zero-day-analysis"
    GENERIC = "generic"

    @classmethod
    def from_goal(cls, goal: str) -> "GoalKind":
        """Resolve a goal tag to its kind; unknown tags map to GENERIC."""
        try:
            return cls(goal.strip().lower())
        except ValueError:
            return cls.GENERIC


def _step(
    action: str,
    parameters: dict,
    preconditions: list[str],
    postconditions: list[str],
    estimated_time: float,
) -> PlanStep:
    return PlanStep(
        action=action,
        parameters=parameters,
        preconditions=frozenset(preconditions),
        postconditions=frozenset(postconditions),
        estimated_time=estimated_time,
    )


def threat_analysis_tasks(goal: str) -> list[PlanStep]:
    return [
        _step(
            "collect-threat-intelligence",
            {"sources": ["osint", "feeds", "apis"]},
            ["network-access"],
            ["threat-data-collected"],
            5,
        ),
        _step(
            "analyze-threat-patterns",
            {"algorithms": ["ml", "heuristic"]},
            ["threat-data-collected"],
            ["patterns-identified"],
            10,
        ),
        _step(
            "assess-threat-impact",
            {"criteria": ["severity", "likelihood"]},
            ["patterns-identified"],
            ["impact-assessed"],
            8,
        ),
        _step(
            "generate-threat-report",
            {"format": "json", "include_mitigations": True},
            ["impact-assessed"],
            ["report-generated"],
            3,
        ),
    ]


def vulnerability_scan_tasks(goal: str) -> list[PlanStep]:
    return [
        _step(
            "discover-targets",
            {"methods": ["nmap", "ping-sweep"]},
            ["target-scope"],
            ["targets-discovered"],
            15,
        ),
        _step(
            "enumerate-services",
            {"depth": "detailed"},
            ["targets-discovered"],
            ["services-enumerated"],
            20,
        ),
        _step(
            "scan-vulnerabilities",
            {"databases": ["nvd", "exploit-db"]},
            ["services-enumerated"],
            ["vulnerabilities-found"],
            30,
        ),
        _step(
            "validate-findings",
            {"manual_verification": True},
            ["vulnerabilities-found"],
            ["findings-validated"],
            25,
        ),
    ]


def penetration_test_tasks(goal: str) -> list[PlanStep]:
    return [
        _step(
            "reconnaissance",
            {"passive": True, "active": True},
            ["target-authorized"],
            ["intel-gathered"],
            30,
        ),
        _step(
            "exploitation",
            {"automated": False, "manual": True},
            ["vulnerabilities-identified"],
            ["access-gained"],
            45,
        ),
    ]


def plugin_development_tasks(goal: str) -> list[PlanStep]:
    return [
        _step(
            "analyze-requirements",
            {"specification": "auto-generate"},
            ["requirements-defined"],
            ["analysis-complete"],
            15,
        ),
        _step(
            "generate-code",
            {"language": "typescript", "tests": True},
            ["analysis-complete"],
            ["code-generated"],
            25,
        ),
    ]


def attack_simulation_tasks(goal: str) -> list[PlanStep]:
    return [
        _step(
            "model-attack-scenario",
            {"complexity": "high"},
            ["threat-intelligence"],
            ["scenario-modeled"],
            20,
        ),
    ]


def zero_day_analysis_tasks(goal: str) -> list[PlanStep]:
    return [
        _step(
            "pattern-analysis",
            {"deep_learning": True},
            ["code-samples"],
            ["patterns-analyzed"],
            60,
        ),
    ]


def generic_tasks(goal: str) -> list[PlanStep]:
    """Fallback for goals without a dedicated template."""
    return [
        _step("analyze-goal", {"goal": goal}, [], ["goal-analyzed"], 5),
        _step("execute-goal", {"goal": goal}, ["goal-analyzed"], ["goal-executed"], 15),
    ]


DEFAULT_TEMPLATES: dict[GoalKind, TemplateFn] = {
    GoalKind.THREAT_ANALYSIS: threat_analysis_tasks,
    GoalKind.VULNERABILITY_SCAN: vulnerability_scan_tasks,
    GoalKind.PENETRATION_TEST: penetration_test_tasks,
    GoalKind.PLUGIN_DEVELOPMENT: plugin_development_tasks,
    GoalKind.ATTACK_SIMULATION: attack_simulation_tasks,
    GoalKind.ZERO_DAY_ANALYSIS: zero_day_analysis_tasks,
    GoalKind.GENERIC: generic_tasks,
}
