"""Agent profile tools."""

import re
from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from ..services import AgentService, EnhancedContextService, MatcherError, recommend_agents
from .errors import ValidationError, error_response
from .validation import (
    AGENT_TYPES,
    UPDATE_OPERATIONS,
    collect_file_paths,
    validate_choice,
    validate_required_string,
)

logger = structlog.get_logger()

# Type alias for async tool function
ToolFunc = Callable[..., Coroutine[Any, Any, dict[str, Any]]]

_EXAMPLES_SECTION = re.compile(r"^##\s+Examples?\b.*?(?=^##\s|\Z)", re.MULTILINE | re.DOTALL)


def strip_examples(content: str) -> str:
    """Remove ``## Examples`` sections from a profile."""
    return _EXAMPLES_SECTION.sub("", content).rstrip() + "\n"


def get_agent_tools(
    agent_service: AgentService,
    enhanced_service: EnhancedContextService,
) -> dict[str, ToolFunc]:
    """Get agent tool implementations.

    Args:
        agent_service: Profile loading and validation
        enhanced_service: Used for update_agent

    Returns:
        Dictionary mapping tool names to async implementations
    """

    async def get_contextual_agent(
        file_paths: list[str] | None = None,
        file_path: str | None = None,
        include_agent_details: bool = False,
    ) -> dict[str, Any]:
        """Recommend specialist agents for the files being worked on.

        Args:
            file_paths: Paths relative to the project root
            file_path: Single path (merged with file_paths)
            include_agent_details: Also load each recommended profile

        Returns:
            Ranked recommendations, or a usage error when no paths are given
        """
        try:
            paths = collect_file_paths(file_paths, file_path)
        except ValidationError as e:
            return error_response("validation_error", str(e))

        result = recommend_agents(paths)
        if isinstance(result, MatcherError):
            error = error_response("validation_error", result.error)
            error["usage"] = result.usage
            return error

        response: dict[str, Any] = {
            "recommended_agent": result[0].agent_id,
            "recommendations": [rec.to_dict() for rec in result],
            "file_count": len(paths),
        }
        if include_agent_details:
            details: dict[str, Any] = {}
            for rec in result:
                agent = await agent_service.load_agent(rec.agent_id)
                details[rec.agent_id] = agent.to_dict() if agent else None
            response["agent_details"] = details
        return response

    async def list_vishkar_agents(agent_type: str = "all") -> dict[str, Any]:
        """List agent profiles, optionally filtered by type."""
        try:
            validate_choice(agent_type, AGENT_TYPES, "agent_type")
        except ValidationError as e:
            return error_response("validation_error", str(e))

        agents = await agent_service.list_agents(agent_type)
        return {
            "agents": [meta.to_dict() for meta in agents],
            "count": len(agents),
            "agent_type": agent_type,
        }

    async def load_vishkar_agent(
        agent_id: str | None = None,
        include_examples: bool = True,
    ) -> dict[str, Any]:
        """Load a complete agent profile by id."""
        try:
            agent_id = validate_required_string(agent_id, "agent_id")
        except ValidationError as e:
            return error_response("validation_error", str(e))

        agent = await agent_service.load_agent(agent_id)
        if agent is None:
            return error_response("not_found", f"Agent {agent_id} not found")

        data = agent.to_dict()
        if not include_examples:
            data["content"] = strip_examples(data["content"])
        return data

    async def validate_vishkar_agent_profile(
        agent_id: str | None = None,
        strict_mode: bool = False,
    ) -> dict[str, Any]:
        """Check a profile for required fields."""
        try:
            agent_id = validate_required_string(agent_id, "agent_id")
        except ValidationError as e:
            return error_response("validation_error", str(e))

        validation = await agent_service.validate_agent_profile(agent_id, strict_mode)
        return validation.to_dict()

    async def refresh_agent_cache(agent_id: str | None = None) -> dict[str, Any]:
        """Clear one cached profile, or all of them."""
        await agent_service.refresh_agent_cache(agent_id or None)
        return {"success": True, "message": "Cache refreshed successfully"}

    async def update_agent(
        agent_name: str | None = None,
        operation: str | None = None,
        agent_data: dict[str, Any] | None = None,
        learning_notes: str | None = None,
    ) -> dict[str, Any]:
        """Update or enhance an existing agent profile."""
        try:
            agent_name = validate_required_string(agent_name, "agent_name")
            validate_choice(operation, UPDATE_OPERATIONS, "operation")
            if agent_data is not None and not isinstance(agent_data, dict):
                raise ValidationError("agent_data must be an object")
            if operation == "update":
                data = agent_data or {}
                validate_required_string(data.get("content"), "agent_data.content")
        except ValidationError as e:
            return error_response("validation_error", str(e))

        return await enhanced_service.update_agent(
            agent_name=agent_name,
            operation=operation,
            agent_data=agent_data,
            learning_notes=learning_notes,
        )

    return {
        "get_contextual_agent": get_contextual_agent,
        "list_vishkar_agents": list_vishkar_agents,
        "load_vishkar_agent": load_vishkar_agent,
        "validate_vishkar_agent_profile": validate_vishkar_agent_profile,
        "refresh_agent_cache": refresh_agent_cache,
        "update_agent": update_agent,
    }
