"""Loading and rendering of templates."""

import re

import structlog

from ..domain import InvalidEntityError, Template, TemplateSource
from ..storage import ContentStore, StorageError

logger = structlog.get_logger()

TEMPLATE_EXTENSION = ".md"


class TemplateService:
    """Loads templates from a content store."""

    def __init__(self, store: ContentStore, template_dir: str = "templates") -> None:
        self.store = store
        self.template_dir = template_dir

    async def load_templates(self, names: list[str]) -> list[Template]:
        """Load templates by name, skipping any that are missing."""
        templates = []
        for name in names:
            path = f"{self.template_dir}/{name}{TEMPLATE_EXTENSION}"
            try:
                if not await self.store.exists(path):
                    logger.info("template.not_found", name=name)
                    continue
                content = await self.store.read(path)
                templates.append(Template(name, content, TemplateSource.LIBRARY))
            except (StorageError, InvalidEntityError) as e:
                logger.warning("template.load_failed", name=name, error=str(e))
        return templates

    async def get_template_by_name(self, name: str) -> Template | None:
        templates = await self.load_templates([name])
        return templates[0] if templates else None

    async def list_available_templates(self) -> list[str]:
        try:
            keys = await self.store.list(self.template_dir)
        except StorageError as e:
            logger.warning("template.list_failed", error=str(e))
            return []
        return [
            key.rsplit("/", 1)[-1].removesuffix(TEMPLATE_EXTENSION)
            for key in keys
            if key.endswith(TEMPLATE_EXTENSION)
        ]

    @staticmethod
    def render_template(template: Template, variables: dict[str, str]) -> str:
        """Substitute ``{{key}}`` placeholders.

        Values are inserted literally. Placeholders without a value are left
        untouched.
        """
        if not variables:
            return template.content
        # One pass, so inserted values are never substituted again
        pattern = re.compile("|".join(re.escape("{{" + key + "}}") for key in variables))
        return pattern.sub(lambda m: str(variables[m[0][2:-2]]), template.content)
