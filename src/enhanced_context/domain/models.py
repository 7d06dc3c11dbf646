"""Domain entities: contexts, templates and agent profiles."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class InvalidEntityError(ValueError):
    """An entity was constructed with missing or invalid fields."""

    pass


class ContextSource(Enum):
    """Where a context document came from."""

    GLOBAL = "global"
    PROJECT_RULES = "project_rules"
    CUSTOM = "custom"


class TemplateSource(Enum):
    """Where a template came from."""

    LIBRARY = "library"
    CUSTOM = "custom"


class AgentType(Enum):
    """Kind of agent profile."""

    DOMAIN_EXPERT = "domain_expert"
    TECHNICAL = "technical"


def _coerce_enum(enum_cls: type[Enum], value: Any, label: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise InvalidEntityError(f"Invalid {label}: {value}") from e


def _require(value: Any, label: str) -> None:
    if not isinstance(value, str) or not value:
        raise InvalidEntityError(f"{label} is required and must be a non-empty string")


@dataclass(frozen=True)
class Context:
    """A named markdown context document."""

    name: str
    content: str
    source: ContextSource

    def __post_init__(self) -> None:
        _require(self.name, "Context name")
        _require(self.content, "Context content")
        object.__setattr__(
            self, "source", _coerce_enum(ContextSource, self.source, "context source")
        )

    @property
    def size(self) -> int:
        """Content size in UTF-8 bytes."""
        return len(self.content.encode("utf-8"))

    @property
    def lines(self) -> int:
        return self.content.count("\n") + 1

    def summary(self) -> str:
        return f"{self.name} ({self.source.value}): {self.size} bytes, {self.lines} lines"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "name": self.name,
            "content": self.content,
            "source": self.source.value,
            "size": self.size,
            "lines": self.lines,
        }


@dataclass(frozen=True)
class Template:
    """A named markdown template with ``{{variable}}`` placeholders."""

    name: str
    content: str
    source: TemplateSource = TemplateSource.LIBRARY
    variables: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        _require(self.name, "Template name")
        _require(self.content, "Template content")
        object.__setattr__(
            self,
            "source",
            _coerce_enum(TemplateSource, self.source, "template source"),
        )
        if self.variables is not None:
            object.__setattr__(self, "variables", tuple(self.variables))

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    def extract_variables(self) -> list[str]:
        """Get placeholder names in order of appearance.

        An explicitly supplied variable list takes precedence over scanning.
        """
        if self.variables is not None:
            return list(self.variables)
        return VARIABLE_PATTERN.findall(self.content)

    def summary(self) -> str:
        return f"{self.name}: {self.size} bytes, {len(self.extract_variables())} variables"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "content": self.content,
            "source": self.source.value,
            "variables": self.extract_variables(),
            "size": self.size,
        }


@dataclass(frozen=True)
class AgentMetadata:
    """Lightweight description of an agent, without its content."""

    id: str
    name: str
    description: str
    type: AgentType
    specializations: tuple[str, ...] = ()
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "specializations": list(self.specializations),
            "model": self.model,
        }


@dataclass(frozen=True)
class Agent:
    """A specialist persona profile."""

    id: str
    name: str
    content: str
    description: str = ""
    type: AgentType = AgentType.TECHNICAL
    specializations: tuple[str, ...] = field(default_factory=tuple)
    model: str | None = None

    def __post_init__(self) -> None:
        _require(self.id, "Agent ID")
        _require(self.name, "Agent name")
        _require(self.content, "Agent content")
        object.__setattr__(
            self, "type", _coerce_enum(AgentType, self.type, "agent type")
        )
        object.__setattr__(self, "specializations", tuple(self.specializations))

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    def has_specialization(self, specialization: str) -> bool:
        return specialization in self.specializations

    def summary(self) -> str:
        return f"{self.name} ({self.type.value}): {self.description}"

    def metadata(self) -> AgentMetadata:
        return AgentMetadata(
            id=self.id,
            name=self.name,
            description=self.description,
            type=self.type,
            specializations=self.specializations,
            model=self.model,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "description": self.description,
            "type": self.type.value,
            "specializations": list(self.specializations),
            "model": self.model,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Agent":
        """Create from dict (the inverse of to_dict).

        Raises:
            InvalidEntityError: If required fields are missing or invalid
        """
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            content=data.get("content", ""),
            description=data.get("description", ""),
            type=data.get("type", AgentType.TECHNICAL.value),
            specializations=tuple(data.get("specializations") or ()),
            model=data.get("model"),
        )
