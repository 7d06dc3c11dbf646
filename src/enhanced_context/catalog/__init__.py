"""Configuration documents: query-type mappings, server config and the
context combination catalog."""

from .conditions import Condition, evaluate_condition, parse_condition
from .loader import ConfigLoader, ConfigurationError, get_config_loader
from .models import (
    CombinationCatalog,
    ConditionalContext,
    ContextCombination,
    ContextMapping,
    MappingsConfig,
    ServerConfig,
    TaskGuidance,
)

__all__ = [
    "CombinationCatalog",
    "Condition",
    "ConditionalContext",
    "ConfigLoader",
    "ConfigurationError",
    "ContextCombination",
    "ContextMapping",
    "MappingsConfig",
    "ServerConfig",
    "TaskGuidance",
    "evaluate_condition",
    "get_config_loader",
    "parse_condition",
]
