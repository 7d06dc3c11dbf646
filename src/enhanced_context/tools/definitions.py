"""Tool definitions with their JSON schemas."""

from typing import Any

from mcp.types import Tool

from ..services.guidance import ECOSYSTEM_SECTIONS, sdlc_phases
from ..services.standards import AVAILABLE_SECTIONS
from .validation import (
    AGENT_TYPES,
    COMPLEXITIES,
    DOMAINS,
    OUTPUT_FORMATS,
    SCOPES,
    TASK_INTENTS,
    UPDATE_OPERATIONS,
)


def _string(description: str, enum: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "string", "description": description}
    if enum is not None:
        schema["enum"] = list(enum)
    return schema


def _boolean(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description}


def _object(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required or []}


def get_all_tool_definitions(allowed_query_types: list[str]) -> list[Tool]:
    """Get all tool definitions.

    Args:
        allowed_query_types: Values accepted for ``query_type``, from the
            context mappings document
    """
    return [
        # === Context Tools ===
        Tool(
            name="load_enhanced_context",
            description=(
                "Load global contexts, templates, project-specific rules and a "
                "specialist agent persona for a task. Either describe the task in "
                "task_statement and let the parameters be inferred, or give "
                "query_type and the other fields explicitly. Explicit fields "
                "override inferred ones."
            ),
            # Either task_statement or query_type is required, checked at call time
            inputSchema=_object({
                "task_statement": _string(
                    "Natural language description of the task, e.g. "
                    "'Help me write user stories for a payment feature'"
                ),
                "query_type": _string(
                    "Type of query. Optional if task_statement is provided.",
                    allowed_query_types,
                ),
                "task_intent": _string(
                    "What you want to do: create, refine, breakdown, review, plan, "
                    "implement, select, escalate or deploy",
                    TASK_INTENTS,
                ),
                "scope": _string(
                    "Scope of work: epic, story, subtask, portfolio, theme or spike",
                    SCOPES,
                ),
                "complexity": _string(
                    "Complexity level: simple, medium, complex or critical",
                    COMPLEXITIES,
                ),
                "output_format": _string(
                    "Where the output will go: jira, confluence, github or gitlab",
                    OUTPUT_FORMATS,
                ),
                "include_sdlc_checks": _boolean(
                    "Include the 13-step SDLC checklist (default: false)"
                ),
                "domain_focus": {
                    "type": "array",
                    "items": {"type": "string", "enum": list(DOMAINS)},
                    "description": "Domain areas that need special attention",
                },
                "user_query": _string("Original user query (optional)"),
                "project_path": _string(
                    "Relative path to the current project, used to load its rules"
                ),
            }),
        ),
        Tool(
            name="analyze_task_intent",
            description=(
                "Analyze a task statement and report the inferred query type, "
                "intent, scope, complexity and domains, plus the context "
                "combination they select. Loads no documents."
            ),
            inputSchema=_object(
                {"task_statement": _string("Natural language task description")},
                ["task_statement"],
            ),
        ),
        Tool(
            name="list_context_combinations",
            description="List the predefined context combinations.",
            inputSchema=_object({
                "query_type": _string(
                    "Only list combinations for this query type", allowed_query_types
                ),
            }),
        ),
        # === Agent Tools ===
        Tool(
            name="get_contextual_agent",
            description=(
                "Recommend specialist agents for the files being worked on, "
                "ranked by how well their file patterns match."
            ),
            inputSchema=_object({
                "file_paths": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "File paths relative to the project root",
                },
                "file_path": _string("A single file path"),
                "include_agent_details": _boolean(
                    "Also return each recommended agent's profile (default: false)"
                ),
            }),
        ),
        Tool(
            name="list_vishkar_agents",
            description=(
                "List all available agent profiles (domain experts and technical agents)"
            ),
            inputSchema=_object({
                "agent_type": _string("Filter agents by type (default: all)", AGENT_TYPES),
            }),
        ),
        Tool(
            name="load_vishkar_agent",
            description="Load a complete agent profile by id",
            inputSchema=_object(
                {
                    "agent_id": _string("Agent id, e.g. qa-engineer"),
                    "include_examples": _boolean(
                        "Include the examples section (default: true)"
                    ),
                },
                ["agent_id"],
            ),
        ),
        Tool(
            name="validate_vishkar_agent_profile",
            description="Validate agent profile format and completeness",
            inputSchema=_object(
                {
                    "agent_id": _string("Agent id to validate"),
                    "strict_mode": _boolean(
                        "Also require specializations and a model (default: false)"
                    ),
                },
                ["agent_id"],
            ),
        ),
        Tool(
            name="refresh_agent_cache",
            description="Clear cached agent profiles so they are reloaded from storage",
            inputSchema=_object({
                "agent_id": _string("Agent to refresh (omit to clear all)"),
            }),
        ),
        Tool(
            name="update_agent",
            description=(
                "Update an existing agent profile or append learning notes to it. "
                "Cannot create new agents."
            ),
            inputSchema=_object(
                {
                    "agent_name": _string("Id of the existing agent"),
                    "operation": _string(
                        "update replaces the profile, enhance appends learning notes",
                        UPDATE_OPERATIONS,
                    ),
                    "agent_data": {
                        "type": "object",
                        "properties": {
                            "name": _string("Display name for the agent"),
                            "description": _string("Agent description"),
                            "model": _string("Model preference, e.g. sonnet"),
                            "content": _string("Full agent instructions"),
                        },
                        "description": "New profile fields (required with update)",
                    },
                    "learning_notes": _string(
                        "Learning notes (required with enhance)"
                    ),
                },
                ["agent_name", "operation"],
            ),
        ),
        # === Guidance Tools ===
        Tool(
            name="get_engineering_standards",
            description=(
                "Get engineering standards. Returns one section, or every section "
                "with the file index when no section is given."
            ),
            inputSchema=_object({
                "section": _string("Standards section", AVAILABLE_SECTIONS),
            }),
        ),
        Tool(
            name="get_sdlc_guidance",
            description="Get delivery lifecycle guidance for a phase, or the phase overview.",
            inputSchema=_object({
                "phase": _string("Lifecycle phase", sdlc_phases()),
                "include_checklist": _boolean(
                    "Include the 13-step checklist (default: false)"
                ),
            }),
        ),
        Tool(
            name="get_mcp_ecosystem_guide",
            description=(
                "Get a guide to the MCP servers in the ecosystem: where they run, "
                "how to authenticate and how to call them."
            ),
            inputSchema=_object({
                "section": _string(
                    "Which section to return (default: full)", list(ECOSYSTEM_SECTIONS)
                ),
                "mcp_name": _string(
                    "Return details for one server, e.g. 'JIRA MCP'"
                ),
            }),
        ),
    ]
