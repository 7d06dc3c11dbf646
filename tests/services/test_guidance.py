"""Tests for the static SDLC and ecosystem guidance."""

import pytest

from enhanced_context.services.guidance import (
    ECOSYSTEM_SECTIONS,
    ecosystem_guide,
    render_sdlc_checklist,
    sdlc_guidance,
    sdlc_phases,
    sdlc_steps,
)


class TestSdlcGuidance:
    """Test lifecycle phases and steps."""

    def test_thirteen_ordered_steps(self) -> None:
        steps = sdlc_steps()

        assert [s["step"] for s in steps] == list(range(1, 14))
        assert all(s["phase"] in sdlc_phases() for s in steps)

    def test_phases(self) -> None:
        assert sdlc_phases() == [
            "requirements",
            "design",
            "implementation",
            "testing",
            "deployment",
            "maintenance",
        ]

    def test_overview(self) -> None:
        overview = sdlc_guidance()

        assert overview["phases"] == sdlc_phases()
        assert len(overview["steps"]) == 13

    def test_single_phase(self) -> None:
        guidance = sdlc_guidance("requirements")

        assert guidance["phase"] == "requirements"
        assert "Every story has acceptance criteria" in guidance["quality_gates"]
        assert all(s["phase"] == "requirements" for s in guidance["steps"])

    def test_unknown_phase(self) -> None:
        with pytest.raises(KeyError):
            sdlc_guidance("vibes")

    def test_checklist(self) -> None:
        checklist = render_sdlc_checklist()

        assert checklist.startswith("## SDLC Checklist (13 steps)")
        assert checklist.count("### Step ") == 13
        assert "- [ ] " in checklist


class TestEcosystemGuide:
    """Test the MCP ecosystem catalog."""

    def test_overview_counts(self) -> None:
        overview = ecosystem_guide("overview")

        assert overview["total_mcps"] == overview["remote_count"] + overview["local_count"]

    def test_lookup_by_name_is_case_insensitive(self) -> None:
        result = ecosystem_guide(mcp_name="jira")

        assert result["mcp"]["name"] == "JIRA MCP"
        assert result["usage_tip"].startswith("This MCP requires authentication.")

    def test_lookup_without_auth(self) -> None:
        result = ecosystem_guide(mcp_name="pr-agent")

        assert result["usage_tip"] == "This MCP does not require authentication."

    def test_unknown_name(self) -> None:
        result = ecosystem_guide(mcp_name="fax machine")

        assert result["error"].startswith('MCP "fax machine" not found')

    def test_lists_own_tools(self) -> None:
        remote = ecosystem_guide("remote_mcps")["mcps"]

        own = next(s for s in remote if s["name"] == "Enhanced Context MCP")
        assert len(own["tools"]) == 12

    @pytest.mark.parametrize("section", ECOSYSTEM_SECTIONS)
    def test_every_section_renders(self, section: str) -> None:
        assert ecosystem_guide(section)
