"""Context loading and intent analysis tools."""

from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from ..catalog import ConfigurationError
from ..services import (
    ContextCombinationService,
    EnhancedContextService,
    IntentAnalyzer,
    InvalidRequestError,
)
from .errors import ValidationError, error_response
from .validation import (
    COMPLEXITIES,
    DOMAINS,
    OUTPUT_FORMATS,
    SCOPES,
    TASK_INTENTS,
    validate_choice,
    validate_optional_choice,
    validate_required_string,
    validate_statement,
    validate_string_list,
)

logger = structlog.get_logger()

# Type alias for async tool function
ToolFunc = Callable[..., Coroutine[Any, Any, dict[str, Any]]]


def get_context_tools(
    enhanced_service: EnhancedContextService,
    combination_service: ContextCombinationService,
    intent_analyzer: IntentAnalyzer,
    timeout: float | None = None,
) -> dict[str, ToolFunc]:
    """Get context loading tool implementations.

    Args:
        enhanced_service: Orchestrator for load_enhanced_context
        combination_service: Combination catalog access
        intent_analyzer: Statement analyzer
        timeout: Deadline in seconds for each context load

    Returns:
        Dictionary mapping tool names to async implementations
    """

    async def load_enhanced_context(
        task_statement: str | None = None,
        query_type: str | None = None,
        task_intent: str | None = None,
        scope: str | None = None,
        complexity: str | None = None,
        output_format: str | None = None,
        include_sdlc_checks: bool = False,
        domain_focus: list[str] | None = None,
        user_query: str | None = None,
        project_path: str | None = None,
    ) -> dict[str, Any]:
        """Load contexts, templates, rules and an agent persona for a task.

        Either ``query_type`` or ``task_statement`` must be given. Explicit
        fields override values inferred from the statement.

        Returns:
            ``{"content": [{"type": "text", "text": ...}]}`` with ``isError``
            set when the request could not be served
        """
        try:
            if task_statement is not None:
                validate_statement(task_statement)
            validate_optional_choice(task_intent, TASK_INTENTS, "task_intent")
            validate_optional_choice(scope, SCOPES, "scope")
            validate_optional_choice(complexity, COMPLEXITIES, "complexity")
            validate_optional_choice(output_format, OUTPUT_FORMATS, "output_format")
            if domain_focus is not None:
                for domain in validate_string_list(domain_focus, "domain_focus"):
                    validate_choice(domain, DOMAINS, "domain_focus")
        except ValidationError as e:
            logger.warning("load_enhanced_context.validation_error", error=str(e))
            return error_response("validation_error", str(e))

        args = {
            "task_statement": task_statement,
            "query_type": query_type,
            "task_intent": task_intent,
            "scope": scope,
            "complexity": complexity,
            "output_format": output_format,
            "include_sdlc_checks": include_sdlc_checks,
            "domain_focus": domain_focus,
            "user_query": user_query,
            "project_path": project_path,
        }
        result = await enhanced_service.load_enhanced_context(args, timeout=timeout)
        return result.to_dict()

    async def analyze_task_intent(task_statement: str = "") -> dict[str, Any]:
        """Analyze a task statement without loading any documents.

        Returns:
            The inferred parameters and the combination they would select
        """
        try:
            validate_statement(task_statement)
        except ValidationError as e:
            return error_response("validation_error", str(e))

        analysis = intent_analyzer.analyze(task_statement)
        response: dict[str, Any] = {"analysis": analysis.to_dict()}
        try:
            params, _ = enhanced_service.resolve_parameters(
                {"task_statement": task_statement}
            )
            combination = combination_service.find_best_combination(params)
            response["combination"] = {
                "id": combination.id,
                "name": combination.name,
                "reasoning": combination_service.explain_combination(
                    combination, params
                ),
            }
        except (InvalidRequestError, ConfigurationError) as e:
            logger.warning("analyze_task_intent.combination_failed", error=str(e))
        return response

    async def list_context_combinations(query_type: str | None = None) -> dict[str, Any]:
        """List the combination catalog, optionally for one query type."""
        try:
            if query_type is not None:
                validate_required_string(query_type, "query_type")
            combinations = combination_service.list_combinations()
            default = combination_service.default_combination
        except ValidationError as e:
            return error_response("validation_error", str(e))
        except ConfigurationError as e:
            logger.error("list_context_combinations.config_error", error=str(e))
            return error_response("configuration_error", str(e))

        if query_type is not None:
            combinations = [c for c in combinations if c.query_type == query_type]

        return {
            "combinations": [
                {
                    "id": c.id,
                    "name": c.name,
                    "description": c.description,
                    "queryType": c.query_type,
                    "taskIntent": c.task_intent,
                    "scope": c.scope,
                    "complexity": c.complexity,
                    "baseContexts": list(c.base_contexts),
                    "agents": list(c.agents),
                }
                for c in combinations
            ],
            "count": len(combinations),
            "default": default.id,
        }

    return {
        "load_enhanced_context": load_enhanced_context,
        "analyze_task_intent": analyze_task_intent,
        "list_context_combinations": list_context_combinations,
    }
