"""
bdicore.planning.planner - HTN Planner

Decomposes a goal into an ordered task plan:
- Selects the decomposition template for the goal kind
- Refines step time estimates with supporting belief confidence
- Assembles steps into a Plan (duration, resources, dependencies)
- Validates the assembled plan

The planner holds no per-agent state; the same instance can serve every
agent concurrently.
"""

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from bdicore.bdi.models import Belief, Plan, PlanStep
from bdicore.exceptions import InvalidPlanError, PlanningFailure
from bdicore.planning.templates import DEFAULT_TEMPLATES, GoalKind, TemplateFn

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> str:
    """Render a resource value, using JSON spellings for null and booleans."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return json.dumps(
            value, separators=(",", ":"), default=str, sort_keys=True, ensure_ascii=False
        )
    return str(value)


def _parameter_terms(parameters: Mapping[str, Any]) -> list[str]:
    """Parameter keys and scalar values, nested containers flattened."""
    terms: list[str] = []
    stack: list[Any] = [parameters]
    while stack:
        current = stack.pop()
        if isinstance(current, Mapping):
            terms.extend(str(key) for key in current)
            stack.extend(current.values())
        elif isinstance(current, list | tuple | set | frozenset):
            stack.extend(current)
        else:
            terms.append(_stringify(current))
    return terms


def _unique(values: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(values))


class HTNPlanner:
    """
    Hierarchical Task Network planner over a fixed template library.

    Example:
        >>> planner = HTNPlanner()
        >>> plan = planner.plan("threat-analysis", beliefs=[])
        >>> plan.actions
        ['collect-threat-intelligence', 'analyze-threat-patterns',
         'assess-threat-impact', 'generate-threat-report']
        >>> plan.estimated_duration
        26.0
    """

    def __init__(self, templates: Mapping[GoalKind, TemplateFn] | None = None):
        """
        Initialize HTNPlanner.

        Args:
            templates: Template library override. Kinds missing from the
                override fall back to the default library.
        """
        self.templates: dict[GoalKind, TemplateFn] = dict(DEFAULT_TEMPLATES)
        if templates:
            self.templates.update(templates)

    def decompose(self, goal: str, beliefs: Sequence[Belief]) -> list[PlanStep]:
        """
        Decompose a goal into refined plan steps.

        Args:
            goal: Goal tag
            beliefs: Current beliefs of the agent, used for refinement

        Returns:
            Ordered list of PlanSteps

        Raises:
            PlanningFailure: If the template yields no steps
        """
        kind = GoalKind.from_goal(goal)
        steps = self.templates[kind](goal)

        if not steps:
            logger.warning(
                f"Could not decompose goal: {goal}",
                extra={"goal": goal, "goal_kind": kind.value},
            )
            raise PlanningFailure(goal)

        return self.refine(steps, beliefs)

    def refine(self, steps: Sequence[PlanStep], beliefs: Sequence[Belief]) -> list[PlanStep]:
        """
        Scale step time estimates by supporting evidence.

        A validated belief supports a step when one of its content keys occurs
        in the step action, a parameter key or a parameter value. Supported
        steps are scaled by 1 / mean(confidence) of their supporting beliefs,
        so weak evidence widens the estimate. Unsupported steps are left
        unchanged. JSON punctuation is never matched.
        """
        validated = [b for b in beliefs if b.validated]
        refined: list[PlanStep] = []

        for step in steps:
            haystacks = [step.action, *_parameter_terms(step.parameters)]
            matching = [
                b
                for b in validated
                if any(key and any(key in text for text in haystacks) for key in b.content)
            ]

            if not matching:
                refined.append(step)
                continue

            mean_confidence = sum(b.confidence for b in matching) / len(matching)
            if mean_confidence <= 0:
                # Zero-confidence evidence carries no information to scale by
                refined.append(step)
                continue

            refined.append(
                step.model_copy(update={"estimated_time": step.estimated_time / mean_confidence})
            )
            logger.debug(
                f"Refined {step.action}: {step.estimated_time} -> "
                f"{step.estimated_time / mean_confidence:.2f} "
                f"({len(matching)} supporting beliefs, mean confidence {mean_confidence:.2f})",
                extra={"action": step.action, "supporting_beliefs": len(matching)},
            )

        return refined

    def assemble(self, goal: str, steps: Sequence[PlanStep]) -> Plan:
        """
        Build a Plan from refined steps.

        Duration is the sum of step times, resources are every parameter value
        flattened to strings, dependencies are the union of preconditions.
        """
        resources: list[str] = []
        dependencies: list[str] = []

        for step in steps:
            for value in step.parameters.values():
                if isinstance(value, list | tuple | set | frozenset):
                    resources.extend(_stringify(item) for item in value)
                else:
                    resources.append(_stringify(value))
            dependencies.extend(sorted(step.preconditions))

        return Plan(
            goal=goal,
            steps=list(steps),
            estimated_duration=sum(step.estimated_time for step in steps),
            resources=_unique(resources),
            dependencies=_unique(dependencies),
        )

    @staticmethod
    def validate(plan: Plan) -> Plan:
        """
        Check the plan invariant: at least one step and a positive duration.

        Raises:
            InvalidPlanError: If the plan is invalid
        """
        if len(plan.steps) < 1:
            raise InvalidPlanError(f"Plan {plan.id} for '{plan.goal}' has no steps")
        if plan.estimated_duration <= 0:
            raise InvalidPlanError(
                f"Plan {plan.id} for '{plan.goal}' has non-positive duration "
                f"{plan.estimated_duration}"
            )
        return plan

    def plan(self, goal: str, beliefs: Sequence[Belief]) -> Plan:
        """Decompose, assemble and validate in one call."""
        steps = self.decompose(goal, beliefs)
        plan = self.validate(self.assemble(goal, steps))

        logger.info(
            f"HTN plan created for {goal}: {len(plan.steps)} steps, "
            f"{plan.estimated_duration:.1f} minutes",
            extra={"goal": goal, "plan_id": plan.id, "steps": len(plan.steps)},
        )
        return plan
