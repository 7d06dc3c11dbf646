"""Engineering standards documents."""

from typing import Any

import structlog

from ..storage import ContentStore, StorageError

logger = structlog.get_logger()

SECTION_FILES = {
    "overview": "README.md",
    "python": "python.md",
    "fastapi": "fastapi.md",
    "database": "database.md",
    "testing": "testing.md",
    "frontend": "frontend.md",
    "security": "security.md",
    "code_quality": "code_quality.md",
    "diagrams": "diagrams.md",
}

AVAILABLE_SECTIONS = list(SECTION_FILES)


class UnknownSectionError(ValueError):
    """No standards file is mapped to the requested section."""

    pass


class StandardsService:
    """Serves the engineering standards markdown files."""

    def __init__(self, store: ContentStore, standards_dir: str = "standards") -> None:
        self.store = store
        self.standards_dir = standards_dir

    def _path(self, filename: str) -> str:
        return f"{self.standards_dir}/{filename}"

    async def load_standard(self, section: str) -> str:
        """Load one section.

        Raises:
            UnknownSectionError: If the section is not mapped
            StorageError: If the file cannot be read
        """
        filename = SECTION_FILES.get(section)
        if filename is None:
            raise UnknownSectionError(
                f"Unknown section: {section}. Available: {', '.join(AVAILABLE_SECTIONS)}"
            )
        return await self.store.read(self._path(filename))

    async def load_all_standards(self) -> dict[str, str]:
        """Load every section; unreadable ones carry an error message instead."""
        standards = {}
        for section in AVAILABLE_SECTIONS:
            try:
                standards[section] = await self.load_standard(section)
            except StorageError as e:
                logger.warning("standards.load_failed", section=section, error=str(e))
                standards[section] = f"Error loading {section}: {e}"
        return standards

    async def list_standard_files(self) -> list[dict[str, Any]]:
        return [
            {
                "section": section,
                "filename": filename,
                "exists": await self.store.exists(self._path(filename)),
            }
            for section, filename in SECTION_FILES.items()
        ]

    def standards_info(self) -> dict[str, Any]:
        return {
            "directory": f"{self.standards_dir}/",
            "files": dict(SECTION_FILES),
            "available_sections": list(AVAILABLE_SECTIONS),
            "usage": {
                "llm": "Read relevant standard files before implementing features",
                "team": "Edit the files in the content directory to change standards",
            },
        }
