"""Agent profile loading, selection and validation."""

from dataclasses import dataclass, field
from typing import Any

import structlog

from ..domain import Agent, AgentMetadata, AgentType, InvalidEntityError
from ..storage import Cache, CachedContentStore, ContentStore, MemoryCache, StorageError
from .profiles import ParsedFrontMatter, ParseFailed, parse_agent_profile, parse_headings

logger = structlog.get_logger()

AGENT_EXTENSION = ".md"
CACHE_PREFIX = "agent:"
MIN_CONTENT_LENGTH = 100

# Fallback persona per query type when no combination names one
QUERY_TYPE_AGENTS = {
    "story": "product-manager",
    "testing": "qa-engineer",
    "security": "security-engineer",
    "architecture": "architect",
    "pr-review": "code-reviewer",
    "browser-testing": "qa-automation",
    "project-planning": "product-manager",
    "story-breakdown": "product-manager",
    "documentation": "technical-writer",
    "flow-diagrams": "architect",
    "infrastructure": "devops-engineer",
}


@dataclass
class AgentSelection:
    """Outcome of picking an agent for a request."""

    selected: Agent | None
    available: list[AgentMetadata]
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected": self.selected.to_dict() if self.selected else None,
            "available": [meta.to_dict() for meta in self.available],
            "reason": self.reason,
        }


@dataclass
class ProfileValidation:
    """Result of validating an agent profile."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}


class AgentService:
    """Loads agent profiles from one or more store directories.

    Profiles are looked up by id in directory order, so an id in ``agents``
    shadows the same id in ``domain-agents``.
    """

    def __init__(
        self,
        store: ContentStore,
        agent_dirs: list[str] | tuple[str, ...] = ("agents", "domain-agents"),
        cache: Cache | None = None,
        cache_ttl: int = 3600,
        domain_dirs: tuple[str, ...] = ("domain-agents",),
    ) -> None:
        """Initialize the service.

        Args:
            store: Content store holding the profiles
            agent_dirs: Directories scanned for ``<id>.md`` files
            cache: Cache for parsed agents (in-process map by default)
            cache_ttl: Seconds a cached agent stays valid
            domain_dirs: Directories whose profiles default to domain experts
        """
        self.store = store
        self.agent_dirs = list(agent_dirs)
        self.cache = cache if cache is not None else MemoryCache()
        self.cache_ttl = cache_ttl
        self.domain_dirs = domain_dirs

    def _default_type(self, directory: str) -> AgentType:
        if directory in self.domain_dirs:
            return AgentType.DOMAIN_EXPERT
        return AgentType.TECHNICAL

    def build_agent(self, agent_id: str, content: str, directory: str) -> Agent:
        """Parse a profile document into an Agent.

        Raises:
            InvalidEntityError: If the profile declares an unknown type or the
                content is empty
        """
        parsed = parse_agent_profile(agent_id, content)
        if isinstance(parsed, ParseFailed):
            logger.warning(
                "agent.front_matter_invalid", agent_id=agent_id, error=parsed.error
            )
            parsed = parse_headings(agent_id, content)

        if isinstance(parsed, ParsedFrontMatter):
            return Agent(
                id=agent_id,
                name=parsed.name,
                content=content,
                description=parsed.description,
                type=parsed.type or self._default_type(directory),
                specializations=tuple(parsed.specializations),
                model=parsed.model,
            )
        return Agent(
            id=agent_id,
            name=parsed.name,
            content=content,
            description=parsed.description,
            type=self._default_type(directory),
        )

    async def list_agents(self, agent_type: str | None = "all") -> list[AgentMetadata]:
        """List metadata for every readable profile.

        Args:
            agent_type: ``domain_expert``, ``technical`` or ``all``

        Returns:
            Agent metadata in directory then filename order
        """
        agents = []
        seen: set[str] = set()
        for directory in self.agent_dirs:
            try:
                keys = await self.store.list(directory)
            except StorageError as e:
                logger.warning("agent.list_failed", directory=directory, error=str(e))
                continue
            for key in keys:
                if not key.endswith(AGENT_EXTENSION):
                    continue
                agent_id = key.rsplit("/", 1)[-1].removesuffix(AGENT_EXTENSION)
                if agent_id in seen:
                    continue
                try:
                    content = await self.store.read(key)
                    agent = self.build_agent(agent_id, content, directory)
                except (StorageError, InvalidEntityError) as e:
                    logger.warning("agent.parse_failed", key=key, error=str(e))
                    continue
                seen.add(agent_id)
                if agent_type in (None, "all") or agent.type.value == agent_type:
                    agents.append(agent.metadata())
        return agents

    async def load_agent(self, agent_id: str) -> Agent | None:
        """Load a profile by id, consulting the cache first.

        Returns:
            The agent, or None if no directory holds a readable profile
        """
        cache_key = f"{CACHE_PREFIX}{agent_id}"
        cached = await self.cache.get(cache_key)
        if cached is not None:
            try:
                return Agent.from_dict(cached)
            except InvalidEntityError:
                await self.cache.delete(cache_key)

        for directory in self.agent_dirs:
            path = f"{directory}/{agent_id}{AGENT_EXTENSION}"
            try:
                if not await self.store.exists(path):
                    continue
                content = await self.store.read(path)
                agent = self.build_agent(agent_id, content, directory)
            except (StorageError, InvalidEntityError) as e:
                logger.warning("agent.load_failed", agent_id=agent_id, error=str(e))
                continue
            await self.cache.set(cache_key, agent.to_dict(), self.cache_ttl)
            return agent

        logger.info("agent.not_found", agent_id=agent_id)
        return None

    async def find_agent_path(self, agent_id: str) -> str | None:
        """Get the store key holding an agent's profile, if any."""
        for directory in self.agent_dirs:
            path = f"{directory}/{agent_id}{AGENT_EXTENSION}"
            if await self.store.exists(path):
                return path
        return None

    async def select_agent(
        self,
        preferred_ids: list[str] | None,
        query_type: str,
    ) -> AgentSelection:
        """Pick the agent for a request.

        The combination's ordered preferences are tried first, then the
        built-in persona for the query type.
        """
        available = await self.list_agents("all")

        for agent_id in preferred_ids or []:
            agent = await self.load_agent(agent_id)
            if agent:
                return AgentSelection(
                    selected=agent,
                    available=available,
                    reason=f"Selected {agent.name} from combination preferences",
                )

        fallback_id = QUERY_TYPE_AGENTS.get(query_type)
        if fallback_id:
            agent = await self.load_agent(fallback_id)
            if agent:
                return AgentSelection(
                    selected=agent,
                    available=available,
                    reason=f"Auto-selected {agent.name} based on query type: {query_type}",
                )

        return AgentSelection(
            selected=None,
            available=available,
            reason=f"No agent auto-selected for query type: {query_type}",
        )

    async def refresh_agent_cache(self, agent_id: str | None = None) -> None:
        """Drop one cached agent, or all of them.

        Cached reads of the profile documents are dropped too, so edits made
        directly on disk are picked up on the next load.
        """
        if agent_id:
            await self.cache.delete(f"{CACHE_PREFIX}{agent_id}")
        else:
            await self.cache.clear(CACHE_PREFIX)
        if isinstance(self.store, CachedContentStore):
            for directory in self.agent_dirs:
                if agent_id:
                    await self.store.invalidate(f"{directory}/{agent_id}{AGENT_EXTENSION}")
                else:
                    await self.store.invalidate(f"{directory}/")
        logger.info("agent.cache_refreshed", agent_id=agent_id or "all")

    async def validate_agent_profile(
        self, agent_id: str, strict_mode: bool = False
    ) -> ProfileValidation:
        """Check a profile for completeness.

        Args:
            agent_id: Profile to check
            strict_mode: Also require specializations and a model preference
        """
        agent = await self.load_agent(agent_id)
        if agent is None:
            return ProfileValidation(valid=False, errors=[f"Agent {agent_id} not found"])

        errors = []
        if not agent.name:
            errors.append("Agent name is missing")
        if not agent.description:
            errors.append("Agent description is missing")
        if len(agent.content) < MIN_CONTENT_LENGTH:
            errors.append(
                f"Agent content is too short (minimum {MIN_CONTENT_LENGTH} characters)"
            )
        if strict_mode:
            if not agent.specializations:
                errors.append("Agent has no specializations defined")
            if not agent.model:
                errors.append("Agent model preference is not defined")

        return ProfileValidation(valid=not errors, errors=errors)
