"""Construction of services with shared storage and cache backends."""

import threading

import structlog

from ..catalog import ConfigLoader, get_config_loader
from ..config import EnhancedContextSettings, settings as default_settings
from ..storage import (
    BlobContentStore,
    Cache,
    CachedContentStore,
    ContentStore,
    HybridContentStore,
    MemoryCache,
    RedisCache,
)
from .agents import AgentService
from .combinations import ContextCombinationService
from .contexts import ContextService
from .enhanced import EnhancedContextService
from .intent import IntentAnalyzer
from .standards import StandardsService
from .templates import TemplateService

logger = structlog.get_logger()


class ServiceFactory:
    """Builds services that share one content store and one cache.

    Backends are created lazily on first use. Creation is guarded by a lock
    so concurrent first requests see a single instance.
    """

    def __init__(
        self,
        settings: EnhancedContextSettings | None = None,
        config_loader: ConfigLoader | None = None,
    ) -> None:
        self.settings = settings or default_settings
        if config_loader is None:
            config_loader = (
                ConfigLoader(self.settings.config_dir) if settings else get_config_loader()
            )
        self.config_loader = config_loader
        self._lock = threading.Lock()
        self._store: ContentStore | None = None
        self._cache: Cache | None = None

    def _build_store(self) -> ContentStore:
        storage = self.config_loader.load_server_config().storage
        mode = self.settings.storage_backend or storage.mode
        blob = self.settings.blob

        store: ContentStore
        if mode == "blob" and blob.url and blob.token:
            logger.info("factory.store_selected", backend="blob", url=blob.url)
            store = BlobContentStore(
                url=blob.url, token=blob.token, prefix=blob.prefix, timeout=blob.timeout
            )
        else:
            if mode == "blob":
                logger.warning("factory.blob_unconfigured", fallback="local")
            logger.info(
                "factory.store_selected",
                backend="local",
                home=str(self.settings.home),
                fallback=str(self.settings.fallback_dir),
            )
            store = HybridContentStore(self.settings.home, self.settings.fallback_dir)

        read_ttl = self.settings.cache.read_ttl
        if read_ttl > 0:
            store = CachedContentStore(store, MemoryCache(), read_ttl)
        return store

    def _build_cache(self) -> Cache:
        cache_settings = self.settings.cache
        if cache_settings.backend == "redis":
            if cache_settings.redis_url:
                logger.info("factory.cache_selected", backend="redis")
                return RedisCache(url=cache_settings.redis_url)
            logger.warning("factory.redis_unconfigured", fallback="memory")
        logger.info("factory.cache_selected", backend="memory")
        return MemoryCache()

    @property
    def store(self) -> ContentStore:
        with self._lock:
            if self._store is None:
                self._store = self._build_store()
            return self._store

    @property
    def cache(self) -> Cache:
        with self._lock:
            if self._cache is None:
                self._cache = self._build_cache()
            return self._cache

    def create_context_service(self) -> ContextService:
        storage = self.config_loader.load_server_config().storage
        return ContextService(
            self.store,
            context_dir=storage.context_subdirectory,
            rules_dir=storage.project_rules_subdirectory,
        )

    def create_template_service(self) -> TemplateService:
        storage = self.config_loader.load_server_config().storage
        return TemplateService(self.store, template_dir=storage.template_subdirectory)

    def create_agent_service(self) -> AgentService:
        storage = self.config_loader.load_server_config().storage
        return AgentService(
            self.store,
            agent_dirs=(
                storage.agent_subdirectory,
                storage.domain_agent_subdirectory,
            ),
            cache=self.cache,
            cache_ttl=self.settings.cache.agent_ttl,
            domain_dirs=(storage.domain_agent_subdirectory,),
        )

    def create_standards_service(self) -> StandardsService:
        storage = self.config_loader.load_server_config().storage
        return StandardsService(self.store, standards_dir=storage.standards_subdirectory)

    def create_combination_service(self) -> ContextCombinationService:
        return ContextCombinationService(self.config_loader)

    def create_intent_analyzer(self) -> IntentAnalyzer:
        return IntentAnalyzer()

    def create_enhanced_context_service(self) -> EnhancedContextService:
        return EnhancedContextService(
            context_service=self.create_context_service(),
            template_service=self.create_template_service(),
            agent_service=self.create_agent_service(),
            combination_service=self.create_combination_service(),
            config_loader=self.config_loader,
            intent_analyzer=self.create_intent_analyzer(),
        )

    async def initialize(self) -> None:
        """Prepare the content store (creates the writable home layout)."""
        await self.store.initialize()

    async def close(self) -> None:
        with self._lock:
            store, cache = self._store, self._cache
            self._store = None
            self._cache = None
        if store is not None:
            await store.close()
        if isinstance(cache, RedisCache):
            await cache.close()

    def reset(self) -> None:
        """Forget the backends so the next call rebuilds them."""
        with self._lock:
            self._store = None
            self._cache = None


_factory: ServiceFactory | None = None
_factory_lock = threading.Lock()


def get_service_factory() -> ServiceFactory:
    """Get the process-wide service factory."""
    global _factory
    with _factory_lock:
        if _factory is None:
            _factory = ServiceFactory()
        return _factory


def reset_service_factory() -> None:
    global _factory
    with _factory_lock:
        _factory = None
