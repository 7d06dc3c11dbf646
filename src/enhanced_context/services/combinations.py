"""Matching of query parameters to context combinations."""

from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from ..catalog import CombinationCatalog, ConfigLoader, ContextCombination

logger = structlog.get_logger()

# Score weights per matched dimension
QUERY_TYPE_WEIGHT = 0.4
INTENT_WEIGHT = 0.25
SCOPE_WEIGHT = 0.2
COMPLEXITY_WEIGHT = 0.15


@dataclass
class QueryParameters:
    """Structured description of a context request."""

    query_type: str
    task_intent: str | None = None
    scope: str | None = None
    complexity: str | None = None
    output_format: str | None = None
    domain_focus: list[str] = field(default_factory=list)
    include_sdlc_checks: bool = False
    user_query: str | None = None
    project_path: str | None = None

    def condition_env(self) -> dict[str, Any]:
        """Flattened view used when evaluating conditional contexts."""
        return {
            "query_type": self.query_type,
            "complexity": self.complexity,
            "task_intent": self.task_intent,
            "scope": self.scope,
            "output_format": self.output_format,
            "domain_focus": list(self.domain_focus),
            "include_sdlc_checks": bool(self.include_sdlc_checks),
        }


@dataclass
class ConditionalMatch:
    contexts: list[str]
    reason: str


@dataclass
class SelectedContext:
    """A context chosen for a combination, with why it was chosen."""

    name: str
    source: Literal["base", "conditional"]
    reason: str


# Credit when the combination constrains a dimension the request leaves unset
INTENT_PARTIAL = 0.1
SCOPE_PARTIAL = 0.1
COMPLEXITY_PARTIAL = 0.075


def _dimension_score(
    required: str | None, given: str | None, weight: float, partial: float
) -> float:
    if required is None or required == given:
        return weight
    if given is None:
        return partial
    return 0.0


def score_combination(combination: ContextCombination, params: QueryParameters) -> float:
    """Score how well a combination fits the parameters.

    Combinations for a different query type always score 0.
    """
    if combination.query_type != params.query_type:
        return 0.0
    return (
        QUERY_TYPE_WEIGHT
        + _dimension_score(
            combination.task_intent, params.task_intent, INTENT_WEIGHT, INTENT_PARTIAL
        )
        + _dimension_score(combination.scope, params.scope, SCOPE_WEIGHT, SCOPE_PARTIAL)
        + _dimension_score(
            combination.complexity,
            params.complexity,
            COMPLEXITY_WEIGHT,
            COMPLEXITY_PARTIAL,
        )
    )


class ContextCombinationService:
    """Selects and expands context combinations from the catalog."""

    def __init__(self, config_loader: ConfigLoader) -> None:
        self.config_loader = config_loader

    @property
    def catalog(self) -> CombinationCatalog:
        """The loaded catalog.

        Raises:
            ConfigurationError: If the catalog is missing or malformed
        """
        return self.config_loader.load_combinations()

    @property
    def default_combination(self) -> ContextCombination:
        return self.catalog.default_combination

    def find_best_combination(self, params: QueryParameters) -> ContextCombination:
        """Get the highest scoring combination, or the catalog default.

        Ties keep the first combination in catalog order.
        """
        best: ContextCombination | None = None
        best_score = 0.0
        for combination in self.catalog.combinations:
            score = score_combination(combination, params)
            if score > best_score:
                best, best_score = combination, score

        if best is None:
            logger.debug("combination.default_selected", query_type=params.query_type)
            return self.default_combination
        logger.debug("combination.selected", id=best.id, score=round(best_score, 3))
        return best

    def evaluate_conditional_contexts(
        self, combination: ContextCombination, params: QueryParameters
    ) -> list[ConditionalMatch]:
        env = params.condition_env()
        return [
            ConditionalMatch(contexts=list(rule.contexts), reason=rule.reason)
            for rule in combination.conditional_contexts
            if rule.matches(env)
        ]

    def get_all_contexts(
        self, combination: ContextCombination, params: QueryParameters
    ) -> list[SelectedContext]:
        """Base contexts followed by matched conditional ones.

        Names are not deduplicated here.
        """
        selected = [
            SelectedContext(
                name=name, source="base", reason=f"Required for {combination.name}"
            )
            for name in combination.base_contexts
        ]
        for match in self.evaluate_conditional_contexts(combination, params):
            selected.extend(
                SelectedContext(name=name, source="conditional", reason=match.reason)
                for name in match.contexts
            )
        return selected

    def explain_combination(
        self, combination: ContextCombination, params: QueryParameters
    ) -> list[str]:
        lines = [
            f"Selected combination: {combination.name}",
            f"Reason: {combination.description}",
        ]
        if params.task_intent:
            lines.append(f"Task intent: {params.task_intent}")
        if params.scope:
            lines.append(f"Scope: {params.scope}")
        if params.complexity:
            lines.append(f"Complexity: {params.complexity}")
        if params.domain_focus:
            lines.append(f"Domain focus: {', '.join(params.domain_focus)}")

        matches = self.evaluate_conditional_contexts(combination, params)
        if matches:
            lines.append("Additional contexts included based on:")
            lines.extend(f"  - {match.reason}" for match in matches)
        return lines

    @staticmethod
    def validate_combination(combination: ContextCombination) -> dict[str, Any]:
        errors = []
        if not combination.id:
            errors.append("Combination missing id")
        if not combination.query_type:
            errors.append("Combination missing queryType")
        if not combination.base_contexts:
            errors.append("Combination must have at least one base context")
        if combination.guidance is None:
            errors.append("Combination missing guidance")
        return {"valid": not errors, "errors": errors}

    def list_combinations(self) -> list[ContextCombination]:
        return list(self.catalog.combinations)

    def get_combination_by_id(self, combination_id: str) -> ContextCombination | None:
        for combination in self.catalog.combinations:
            if combination.id == combination_id:
                return combination
        return None
