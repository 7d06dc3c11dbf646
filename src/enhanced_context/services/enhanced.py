"""Enhanced context orchestration.

Resolves a request to query parameters, picks a context combination, loads
every referenced document concurrently and renders one markdown response.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from ..catalog import ConfigLoader, ConfigurationError, ContextCombination, TaskGuidance
from ..domain import Context, Template
from ..storage import StorageError
from .agents import AgentSelection, AgentService
from .combinations import ContextCombinationService, QueryParameters, SelectedContext
from .contexts import ContextService
from .guidance import render_sdlc_checklist
from .intent import AnalyzedIntent, IntentAnalyzer
from .profiles import render_profile, strip_front_matter
from .templates import TemplateService

logger = structlog.get_logger()

UPDATE_OPERATIONS = ("update", "enhance")


class InvalidRequestError(ValueError):
    """The request cannot be resolved to a valid query."""

    pass


@dataclass
class EnhancedContextResult:
    """Uniform tool result: text content plus an error flag."""

    content: list[dict[str, str]]
    is_error: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "EnhancedContextResult":
        return cls(content=[{"type": "text", "text": text}], is_error=is_error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": list(self.content)}
        if self.is_error:
            data["isError"] = True
        return data


@dataclass
class LoadedContext:
    context: Context
    selection: SelectedContext


@dataclass
class _Loaded:
    contexts: list[LoadedContext] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)
    project_rules: list[Context] = field(default_factory=list)
    agents: AgentSelection | None = None


def _dedupe(selected: list[SelectedContext]) -> list[SelectedContext]:
    seen: set[str] = set()
    unique = []
    for item in selected:
        if item.name not in seen:
            seen.add(item.name)
            unique.append(item)
    return unique


def _merge_names(*groups: list[str]) -> list[str]:
    return list(dict.fromkeys(name for group in groups for name in group))


class EnhancedContextService:
    """Coordinates context, template, rule and agent loading."""

    def __init__(
        self,
        context_service: ContextService,
        template_service: TemplateService,
        agent_service: AgentService,
        combination_service: ContextCombinationService,
        config_loader: ConfigLoader,
        intent_analyzer: IntentAnalyzer | None = None,
    ) -> None:
        self.context_service = context_service
        self.template_service = template_service
        self.agent_service = agent_service
        self.combination_service = combination_service
        self.config_loader = config_loader
        self.intent_analyzer = intent_analyzer or IntentAnalyzer()

    def resolve_parameters(
        self, args: dict[str, Any]
    ) -> tuple[QueryParameters, AnalyzedIntent | None]:
        """Merge explicit arguments with the analysis of ``task_statement``.

        Explicit arguments always win over inferred values.

        Raises:
            InvalidRequestError: If no valid query type can be determined
            ConfigurationError: If the mappings document cannot be loaded
        """
        statement = args.get("task_statement")
        analysis = (
            self.intent_analyzer.analyze(statement) if statement is not None else None
        )

        if not args.get("query_type") and analysis is None:
            raise InvalidRequestError("Either query_type or task_statement is required")

        def pick(key: str) -> Any:
            value = args.get(key)
            if value is None and analysis is not None:
                value = getattr(analysis, key, None)
            return value

        query_type = pick("query_type")
        if not self.config_loader.is_valid_query_type(query_type):
            allowed = ", ".join(self.config_loader.get_allowed_query_types())
            raise InvalidRequestError(
                f"Invalid query_type: {query_type}. Allowed values: {allowed}"
            )

        domain_focus = args.get("domain_focus")
        if domain_focus is None and analysis is not None:
            domain_focus = analysis.domain_focus
        if isinstance(domain_focus, str):
            domain_focus = [domain_focus]

        params = QueryParameters(
            query_type=query_type,
            task_intent=pick("task_intent"),
            scope=pick("scope"),
            complexity=pick("complexity"),
            output_format=pick("output_format"),
            domain_focus=list(dict.fromkeys(domain_focus or [])),
            include_sdlc_checks=bool(args.get("include_sdlc_checks", False)),
            user_query=args.get("user_query") or statement,
            project_path=args.get("project_path"),
        )
        return params, analysis

    async def load_enhanced_context(
        self, args: dict[str, Any], timeout: float | None = None
    ) -> EnhancedContextResult:
        """Load and render the context bundle for a request.

        Args:
            args: Tool arguments (``query_type`` and/or ``task_statement`` plus
                optional overrides)
            timeout: Seconds to wait for all document loads

        Returns:
            The rendered result; failures come back with ``is_error`` set
        """
        try:
            params, analysis = self.resolve_parameters(args)
            combination = self.combination_service.find_best_combination(params)
            loaded = await asyncio.wait_for(
                self._load_all(combination, params), timeout=timeout
            )
            text = self._render(params, analysis, combination, loaded)
        except (InvalidRequestError, ConfigurationError) as e:
            logger.info("enhanced_context.rejected", error=str(e))
            return EnhancedContextResult.text(
                f"Error loading enhanced context: {e}", is_error=True
            )
        except TimeoutError:
            logger.warning("enhanced_context.timeout", timeout=timeout)
            return EnhancedContextResult.text(
                f"Error loading enhanced context: timed out after {timeout}s",
                is_error=True,
            )
        except Exception as e:
            logger.exception("enhanced_context.failed", error=str(e))
            return EnhancedContextResult.text(
                f"Error loading enhanced context: {e}", is_error=True
            )

        logger.info(
            "enhanced_context.loaded",
            query_type=params.query_type,
            combination=combination.id,
            contexts=len(loaded.contexts),
            templates=len(loaded.templates),
        )
        return EnhancedContextResult.text(text)

    async def _load_all(
        self, combination: ContextCombination, params: QueryParameters
    ) -> _Loaded:
        features = self.config_loader.load_server_config().features

        selected = self.combination_service.get_all_contexts(combination, params)
        template_names = list(combination.templates)
        if combination.id == self.combination_service.default_combination.id:
            mapping = self.config_loader.get_mapping(params.query_type)
            if mapping:
                selected.extend(
                    SelectedContext(
                        name=name,
                        source="base",
                        reason=f"Default context for {params.query_type}",
                    )
                    for name in mapping.contexts
                )
                template_names = _merge_names(template_names, mapping.templates)
        selected = _dedupe(selected)

        async def load_contexts() -> list[LoadedContext]:
            contexts = await self.context_service.load_global_contexts(
                [item.name for item in selected]
            )
            by_name = {item.name: item for item in selected}
            return [LoadedContext(ctx, by_name[ctx.name]) for ctx in contexts]

        async def load_templates() -> list[Template]:
            if not features.template_loading:
                return []
            return await self.template_service.load_templates(template_names)

        async def load_rules() -> list[Context]:
            if not features.project_rules_loading:
                return []
            return await self.context_service.load_project_rules(params.project_path)

        async def select_agent() -> AgentSelection | None:
            if not features.agent_loading:
                return None
            return await self.agent_service.select_agent(
                combination.agents, params.query_type
            )

        contexts, templates, rules, agents = await asyncio.gather(
            load_contexts(), load_templates(), load_rules(), select_agent()
        )
        return _Loaded(
            contexts=contexts, templates=templates, project_rules=rules, agents=agents
        )

    def _render(
        self,
        params: QueryParameters,
        analysis: AnalyzedIntent | None,
        combination: ContextCombination,
        loaded: _Loaded,
    ) -> str:
        out = [
            "Enhanced Context Loaded Successfully:",
            "",
            f"## Query Type: {params.query_type}",
            "",
        ]

        if analysis is not None:
            out.append("## Task Analysis")
            out.append(f"- Confidence: {analysis.confidence:.2f}")
            out.extend(f"- {line}" for line in analysis.reasoning)
            out.append("")

        out.append("## Context Combination")
        out.extend(
            self.combination_service.explain_combination(combination, params)
        )
        out.append("")

        selection = loaded.agents
        if selection and selection.selected:
            agent = selection.selected
            out.append(f"## Auto-Selected Agent: {agent.name}")
            out.append(selection.reason)
            out.append("")
            out.append("### Complete Persona:")
            out.append(agent.content)
            out.append("")
            out.append("---")
            out.append("")

        if loaded.templates:
            out.append(f"## Templates Loaded ({len(loaded.templates)})")
            out.append(
                "**Available Templates**: "
                + ", ".join(t.name for t in loaded.templates)
            )
            out.append("")

        if selection and selection.available:
            out.append("## Available Specialized Agents:")
            out.extend(
                f"- **{meta.name}**: {meta.description}" for meta in selection.available
            )
            out.append("")

        out.append("## Global Contexts:")
        for item in loaded.contexts:
            out.append(f"### {item.context.name}")
            out.append(f"_{item.selection.source}: {item.selection.reason}_")
            out.append("")
            out.append(item.context.content)
            out.append("")

        if loaded.project_rules:
            out.append("## Project-Specific Rules:")
            for rule in loaded.project_rules:
                out.append(f"### {rule.name}")
                out.append(rule.content)
                out.append("")

        if loaded.templates:
            out.append("## Templates:")
            out.append("")
            out.append(
                "\n\n---\n\n".join(
                    f"### Template: {t.name}\n{t.content}" for t in loaded.templates
                )
            )
            out.append("")

        if combination.guidance is not None:
            out.extend(self._render_guidance(combination.guidance))

        if params.include_sdlc_checks:
            out.append(render_sdlc_checklist())

        agent_line = (
            f"{selection.selected.name} ({selection.reason})"
            if selection and selection.selected
            else "None selected"
        )
        available = len(selection.available) if selection else 0
        out.extend([
            "## Summary:",
            f"- Combination: {combination.name}",
            f"- Loaded {len(loaded.contexts)} contexts: "
            + ", ".join(item.context.name for item in loaded.contexts),
            f"- Loaded {len(loaded.templates)} templates: "
            + ", ".join(t.name for t in loaded.templates),
            f"- Loaded {len(loaded.project_rules)} project-specific rules: "
            + ", ".join(r.name for r in loaded.project_rules),
            f"- Agent selection: {agent_line}",
            f"- Available agents: {available} specialists available",
        ])
        return "\n".join(out)

    @staticmethod
    def _render_guidance(guidance: TaskGuidance) -> list[str]:
        out = ["## Task Guidance"]
        sections = [
            ("Quality Checks", guidance.quality_checks),
            ("Common Mistakes", guidance.common_mistakes),
            ("Best Practices", guidance.best_practices),
            ("Prerequisites", guidance.prerequisites),
            ("Dependencies", guidance.dependencies),
        ]
        for title, items in sections:
            if items:
                out.append(f"### {title}")
                out.extend(f"- {item}" for item in items)
        if guidance.epic_prefix_required:
            out.append(f"- Epic prefix required: {guidance.epic_prefix_format or 'yes'}")
        if guidance.story_structure:
            out.append(f"- Story structure: {guidance.story_structure}")
        if guidance.acceptance_criteria_format:
            out.append(
                f"- Acceptance criteria format: {guidance.acceptance_criteria_format}"
            )
        out.append("")
        return out

    async def update_agent(
        self,
        agent_name: str,
        operation: str,
        agent_data: dict[str, Any] | None = None,
        learning_notes: str | None = None,
    ) -> dict[str, Any]:
        """Rewrite or annotate an existing agent profile.

        Only existing agents can be changed. ``update`` replaces the profile
        from ``agent_data``; ``enhance`` appends dated learning notes.

        Returns:
            ``{"success": bool, "message": str}``
        """
        if operation not in UPDATE_OPERATIONS:
            return {
                "success": False,
                "message": f"Unknown operation: {operation}. Use update or enhance",
            }

        existing = await self.agent_service.load_agent(agent_name)
        if existing is None:
            return {
                "success": False,
                "message": (
                    f"Agent '{agent_name}' not found. Cannot create new agents - "
                    "only update existing ones."
                ),
            }
        if operation == "enhance" and not learning_notes:
            return {
                "success": False,
                "message": "Learning notes are required for enhance operation",
            }

        path = await self.agent_service.find_agent_path(agent_name)
        if path is None:
            return {"success": False, "message": f"Agent '{agent_name}' has no profile file"}

        if operation == "update":
            data = agent_data or {}
            content = render_profile(
                {
                    "name": data.get("name") or existing.name,
                    "description": data.get("description") or existing.description,
                    "type": existing.type.value,
                    "specializations": list(existing.specializations),
                    "model": data.get("model") or existing.model,
                },
                strip_front_matter(data.get("content") or existing.content),
            )
        else:
            stamp = datetime.now(UTC).date().isoformat()
            content = (
                f"{existing.content.rstrip()}\n\n"
                f"## Learning Notes ({stamp})\n\n{learning_notes.strip()}\n"
            )

        try:
            await self.agent_service.store.write(path, content)
        except StorageError as e:
            logger.warning("agent.update_failed", agent_id=agent_name, error=str(e))
            return {"success": False, "message": f"Error updating agent: {e}"}

        await self.agent_service.refresh_agent_cache(agent_name)
        logger.info("agent.updated", agent_id=agent_name, operation=operation)
        return {
            "success": True,
            "message": f"Agent '{agent_name}' {operation} operation completed successfully",
        }
