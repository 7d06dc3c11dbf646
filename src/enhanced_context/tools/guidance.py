"""Engineering standards, SDLC and MCP ecosystem guidance tools."""

from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from ..services import StandardsService, UnknownSectionError
from ..services.guidance import (
    ECOSYSTEM_SECTIONS,
    ecosystem_guide,
    render_sdlc_checklist,
    sdlc_guidance,
    sdlc_phases,
)
from ..storage import StorageError
from .errors import ValidationError, error_response
from .validation import validate_choice

logger = structlog.get_logger()

# Type alias for async tool function
ToolFunc = Callable[..., Coroutine[Any, Any, dict[str, Any]]]


def get_guidance_tools(standards_service: StandardsService) -> dict[str, ToolFunc]:
    """Get guidance tool implementations.

    Args:
        standards_service: Reader for the standards documents

    Returns:
        Dictionary mapping tool names to async implementations
    """

    async def get_engineering_standards(section: str | None = None) -> dict[str, Any]:
        """Return one standards section, or all of them with the file index."""
        if section:
            try:
                content = await standards_service.load_standard(section)
            except UnknownSectionError as e:
                return error_response("validation_error", str(e))
            except StorageError as e:
                logger.warning("standards.section_unavailable", section=section, error=str(e))
                return error_response("not_found", f"Standards section {section} unavailable: {e}")
            return {"section": section, "content": content}

        return {
            "standards": await standards_service.load_all_standards(),
            "files": await standards_service.list_standard_files(),
            "info": standards_service.standards_info(),
        }

    async def get_sdlc_guidance(
        phase: str | None = None,
        include_checklist: bool = False,
    ) -> dict[str, Any]:
        """Return lifecycle guidance for a phase, or the phase overview."""
        try:
            if phase is not None:
                validate_choice(phase, sdlc_phases(), "phase")
        except ValidationError as e:
            return error_response("validation_error", str(e))

        guidance = sdlc_guidance(phase)
        if include_checklist:
            guidance["checklist"] = render_sdlc_checklist()
        return guidance

    async def get_mcp_ecosystem_guide(
        section: str = "full",
        mcp_name: str | None = None,
    ) -> dict[str, Any]:
        """Describe the MCP servers available alongside this one."""
        try:
            validate_choice(section, ECOSYSTEM_SECTIONS, "section")
        except ValidationError as e:
            return error_response("validation_error", str(e))

        guide = ecosystem_guide(section, mcp_name)
        if "error" in guide and isinstance(guide["error"], str):
            return error_response("not_found", guide["error"])
        return guide

    return {
        "get_engineering_standards": get_engineering_standards,
        "get_sdlc_guidance": get_sdlc_guidance,
        "get_mcp_ecosystem_guide": get_mcp_ecosystem_guide,
    }
