"""Models for the JSON configuration documents.

The documents use camelCase keys; fields are snake_case with aliases.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .conditions import Condition, evaluate_condition, parse_condition

TaskIntent = Literal[
    "create",
    "refine",
    "breakdown",
    "review",
    "plan",
    "implement",
    "select",
    "escalate",
    "deploy",
]
TaskScope = Literal["epic", "story", "subtask", "portfolio", "theme", "spike"]
TaskComplexity = Literal["simple", "medium", "complex", "critical"]
OutputFormat = Literal[
    "jira", "confluence", "github", "gitlab", "report", "presentation"
]


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# context-mappings.json


class ContextMapping(_Document):
    contexts: list[str] = Field(default_factory=list)
    templates: list[str] = Field(default_factory=list)
    description: str = ""


class MappingsConfig(_Document):
    mappings: dict[str, ContextMapping]
    allowed_query_types: list[str] = Field(alias="allowedQueryTypes")


# server-config.json


class ServerInfo(_Document):
    name: str = "enhanced-context-mcp"
    version: str = "2.0.0"
    protocol_version: str = Field(default="2024-11-05", alias="protocolVersion")
    description: str = ""


class StorageConfig(_Document):
    mode: Literal["local", "blob"] = "local"
    context_subdirectory: str = Field(default="contexts", alias="contextSubdirectory")
    template_subdirectory: str = Field(
        default="templates", alias="templateSubdirectory"
    )
    agent_subdirectory: str = Field(default="agents", alias="agentSubdirectory")
    domain_agent_subdirectory: str = Field(
        default="domain-agents", alias="domainAgentSubdirectory"
    )
    standards_subdirectory: str = Field(
        default="standards", alias="standardsSubdirectory"
    )
    project_rules_subdirectory: str = Field(
        default=".wama/rules", alias="projectRulesSubdirectory"
    )


class SecurityConfig(_Document):
    enable_authentication: bool = Field(default=True, alias="enableAuthentication")


class FeatureFlags(_Document):
    agent_loading: bool = Field(default=True, alias="agentLoading")
    template_loading: bool = Field(default=True, alias="templateLoading")
    project_rules_loading: bool = Field(default=True, alias="projectRulesLoading")


class ServerConfig(_Document):
    server: ServerInfo = Field(default_factory=ServerInfo)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    features: FeatureFlags = Field(default_factory=FeatureFlags)


# context-combinations.json


class TaskGuidance(_Document):
    quality_checks: list[str] = Field(default_factory=list, alias="qualityChecks")
    common_mistakes: list[str] = Field(default_factory=list, alias="commonMistakes")
    best_practices: list[str] = Field(default_factory=list, alias="bestPractices")
    prerequisites: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    epic_prefix_required: bool | None = Field(default=None, alias="epicPrefixRequired")
    epic_prefix_format: str | None = Field(default=None, alias="epicPrefixFormat")
    story_structure: str | None = Field(default=None, alias="storyStructure")
    acceptance_criteria_format: str | None = Field(
        default=None, alias="acceptanceCriteriaFormat"
    )


class ConditionalContext(_Document):
    """Extra contexts included when a condition holds."""

    condition: str
    contexts: list[str] = Field(default_factory=list)
    reason: str = ""

    _parsed: Condition = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._parsed = parse_condition(self.condition)

    @property
    def parsed(self) -> Condition:
        return self._parsed

    def matches(self, env: dict[str, Any]) -> bool:
        return evaluate_condition(self._parsed, env)


class ContextCombination(_Document):
    """A named bundle of contexts, templates and agents for a kind of task."""

    id: str
    name: str
    description: str = ""
    query_type: str = Field(alias="queryType")
    task_intent: TaskIntent | None = Field(default=None, alias="taskIntent")
    scope: TaskScope | None = None
    complexity: TaskComplexity | None = None
    base_contexts: list[str] = Field(default_factory=list, alias="baseContexts")
    conditional_contexts: list[ConditionalContext] = Field(
        default_factory=list, alias="conditionalContexts"
    )
    templates: list[str] = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)
    guidance: TaskGuidance | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a camelCase JSON-serializable dict."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CombinationCatalog(_Document):
    combinations: list[ContextCombination] = Field(default_factory=list)
    default_combination: ContextCombination = Field(alias="defaultCombination")
