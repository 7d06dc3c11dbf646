"""Loading of global context documents and per-project rules."""

import re

import structlog

from ..domain import Context, ContextSource, InvalidEntityError
from ..storage import ContentStore, StorageError

logger = structlog.get_logger()

CONTEXT_EXTENSION = ".mdc"
_RULE_EXTENSION = re.compile(r"\.(md|mdc)$")


def is_valid_project_path(project_path: str) -> bool:
    """Check that a project path is relative and does not traverse upward."""
    if ".." in project_path:
        return False
    return not project_path.startswith(("/", "~"))


def _basename(key: str) -> str:
    return key.rsplit("/", 1)[-1]


class ContextService:
    """Loads context documents from a content store."""

    def __init__(
        self,
        store: ContentStore,
        context_dir: str = "contexts",
        rules_dir: str = ".wama/rules",
    ) -> None:
        self.store = store
        self.context_dir = context_dir
        self.rules_dir = rules_dir

    async def load_global_contexts(self, names: list[str]) -> list[Context]:
        """Load contexts by name, in order.

        Missing or unreadable documents are logged and skipped.

        Args:
            names: Context names (without extension)

        Returns:
            Loaded contexts
        """
        contexts = []
        for name in names:
            path = f"{self.context_dir}/{name}{CONTEXT_EXTENSION}"
            try:
                if not await self.store.exists(path):
                    logger.info("context.not_found", name=name)
                    continue
                content = await self.store.read(path)
                contexts.append(Context(name, content, ContextSource.GLOBAL))
            except (StorageError, InvalidEntityError) as e:
                logger.warning("context.load_failed", name=name, error=str(e))
        return contexts

    async def load_project_rules(self, project_path: str | None) -> list[Context]:
        """Load every rule document under ``<project_path>/<rules_dir>``.

        Absolute paths, home-relative paths and paths containing ``..`` are
        rejected and yield no rules.
        """
        if not project_path:
            return []
        if not is_valid_project_path(project_path):
            logger.warning("context.invalid_project_path", project_path=project_path)
            return []

        rules_prefix = f"{project_path.rstrip('/')}/{self.rules_dir}"
        try:
            keys = await self.store.list(rules_prefix)
        except StorageError as e:
            logger.warning("context.rules_list_failed", prefix=rules_prefix, error=str(e))
            return []

        rules = []
        for key in keys:
            try:
                content = await self.store.read(key)
                name = _RULE_EXTENSION.sub("", _basename(key))
                rules.append(Context(name, content, ContextSource.PROJECT_RULES))
            except (StorageError, InvalidEntityError) as e:
                logger.warning("context.rule_load_failed", key=key, error=str(e))
        return rules

    async def get_context_by_name(self, name: str) -> Context | None:
        contexts = await self.load_global_contexts([name])
        return contexts[0] if contexts else None

    async def list_available_contexts(self) -> list[str]:
        try:
            keys = await self.store.list(self.context_dir)
        except StorageError as e:
            logger.warning("context.list_failed", error=str(e))
            return []
        return [
            _basename(key).removesuffix(CONTEXT_EXTENSION)
            for key in keys
            if key.endswith(CONTEXT_EXTENSION)
        ]
