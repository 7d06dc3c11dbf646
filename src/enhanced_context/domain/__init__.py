"""Domain entities."""

from .models import (
    Agent,
    AgentMetadata,
    AgentType,
    Context,
    ContextSource,
    InvalidEntityError,
    Template,
    TemplateSource,
)

__all__ = [
    "Agent",
    "AgentMetadata",
    "AgentType",
    "Context",
    "ContextSource",
    "InvalidEntityError",
    "Template",
    "TemplateSource",
]
