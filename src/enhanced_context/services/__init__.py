"""Document services, selection engine and orchestration."""

from .agents import AgentSelection, AgentService, ProfileValidation
from .combinations import ContextCombinationService, QueryParameters, SelectedContext
from .contexts import ContextService
from .enhanced import EnhancedContextResult, EnhancedContextService, InvalidRequestError
from .factory import ServiceFactory, get_service_factory, reset_service_factory
from .intent import AnalyzedIntent, IntentAnalyzer
from .matcher import AgentRecommendation, MatcherError, glob_to_regex, recommend_agents
from .standards import StandardsService, UnknownSectionError
from .templates import TemplateService

__all__ = [
    "AgentRecommendation",
    "AgentSelection",
    "AgentService",
    "AnalyzedIntent",
    "ContextCombinationService",
    "ContextService",
    "EnhancedContextResult",
    "EnhancedContextService",
    "IntentAnalyzer",
    "InvalidRequestError",
    "MatcherError",
    "ProfileValidation",
    "QueryParameters",
    "SelectedContext",
    "ServiceFactory",
    "StandardsService",
    "TemplateService",
    "UnknownSectionError",
    "get_service_factory",
    "glob_to_regex",
    "recommend_agents",
    "reset_service_factory",
]
