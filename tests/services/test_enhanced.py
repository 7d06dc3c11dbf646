"""Tests for enhanced context orchestration."""

import asyncio
from pathlib import Path

import pytest

from enhanced_context.services import (
    EnhancedContextService,
    InvalidRequestError,
    ServiceFactory,
)


@pytest.fixture
def service(factory: ServiceFactory) -> EnhancedContextService:
    return factory.create_enhanced_context_service()


def text_of(result: object) -> str:
    content = result.content  # type: ignore[attr-defined]
    assert len(content) == 1
    assert content[0]["type"] == "text"
    return content[0]["text"]


class TestResolveParameters:
    """Test merging explicit arguments with the statement analysis."""

    def test_requires_query_type_or_statement(self, service: EnhancedContextService) -> None:
        with pytest.raises(InvalidRequestError, match="Either query_type or task_statement"):
            service.resolve_parameters({})

    def test_rejects_unknown_query_type(self, service: EnhancedContextService) -> None:
        with pytest.raises(InvalidRequestError, match="Invalid query_type: astrology"):
            service.resolve_parameters({"query_type": "astrology"})

    def test_explicit_values_win(self, service: EnhancedContextService) -> None:
        params, analysis = service.resolve_parameters(
            {
                "task_statement": "Review security for our authentication system",
                "task_intent": "implement",
                "domain_focus": "payments",
            }
        )

        assert analysis is not None
        assert params.query_type == "security"
        assert params.task_intent == "implement"
        assert params.domain_focus == ["payments"]
        assert params.user_query == "Review security for our authentication system"

    def test_explicit_query_type_only(self, service: EnhancedContextService) -> None:
        params, analysis = service.resolve_parameters({"query_type": "testing"})

        assert analysis is None
        assert params.query_type == "testing"
        assert params.task_intent is None
        assert params.domain_focus == []

    def test_empty_statement_uses_defaults(self, service: EnhancedContextService) -> None:
        """An empty statement is still a statement and resolves to the defaults."""
        params, analysis = service.resolve_parameters({"task_statement": ""})

        assert analysis is not None
        assert params.query_type == "story"
        assert params.task_intent == "create"


class TestLoadEnhancedContext:
    """Test the rendered response."""

    async def test_security_review_end_to_end(self, service: EnhancedContextService) -> None:
        result = await service.load_enhanced_context(
            {"task_statement": "Review security for our authentication system"}
        )
        text = text_of(result)

        assert not result.is_error
        assert text.startswith("Enhanced Context Loaded Successfully:")
        assert "## Query Type: security" in text
        assert "Selected combination: Security Review" in text
        assert "## Auto-Selected Agent: Security Engineer" in text
        for name in ("security-review", "threat-modeling", "secure-coding"):
            assert f"### {name}\n" in text
        assert "## Templates Loaded (2)" in text
        assert "## Task Guidance" in text
        assert "- Loaded 3 contexts: security-review, threat-modeling, secure-coding" in text

    async def test_sections_in_order(self, service: EnhancedContextService) -> None:
        text = text_of(await service.load_enhanced_context({"query_type": "story"}))

        markers = [
            "Enhanced Context Loaded Successfully:",
            "## Context Combination",
            "## Auto-Selected Agent:",
            "## Global Contexts:",
            "## Summary:",
        ]
        positions = [text.index(marker) for marker in markers]
        assert positions == sorted(positions)

    async def test_sdlc_checklist(self, service: EnhancedContextService) -> None:
        text = text_of(
            await service.load_enhanced_context(
                {"query_type": "testing", "include_sdlc_checks": True}
            )
        )

        assert "## SDLC Checklist (13 steps)" in text

    async def test_unreadable_documents_are_skipped(
        self, service: EnhancedContextService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Permission failures drop single items instead of failing the request."""
        read_text = Path.read_text
        iterdir = Path.iterdir

        def guarded_read(self: Path, *args: object, **kwargs: object) -> str:
            if self.name == "threat-modeling.mdc":
                raise PermissionError(13, "Permission denied", str(self))
            return read_text(self, *args, **kwargs)  # type: ignore[arg-type]

        def guarded_iterdir(self: Path) -> object:
            if self.name == "domain-agents":
                raise PermissionError(13, "Permission denied", str(self))
            return iterdir(self)

        monkeypatch.setattr(Path, "read_text", guarded_read)
        monkeypatch.setattr(Path, "iterdir", guarded_iterdir)

        result = await service.load_enhanced_context(
            {"task_statement": "Review security for our authentication system"}
        )
        text = text_of(result)

        assert not result.is_error
        assert "### security-review\n" in text
        assert "### threat-modeling\n" not in text
        assert "## Auto-Selected Agent: Security Engineer" in text

    async def test_invalid_request_is_error_result(
        self, service: EnhancedContextService
    ) -> None:
        result = await service.load_enhanced_context({"query_type": "astrology"})

        assert result.is_error
        assert result.to_dict()["isError"] is True
        assert text_of(result).startswith("Error loading enhanced context: Invalid query_type")

    async def test_project_rules_included(
        self, service: EnhancedContextService, home_dir: Path
    ) -> None:
        """Rules are read relative to the content home."""
        rules = home_dir / "shop" / ".wama" / "rules"
        rules.mkdir(parents=True)
        (rules / "naming.md").write_text("Prefix every table with shop_")

        text = text_of(
            await service.load_enhanced_context(
                {"query_type": "pr-review", "project_path": "shop"}
            )
        )

        assert "## Project-Specific Rules:" in text
        assert "Prefix every table with shop_" in text
        assert "- Loaded 1 project-specific rules: naming" in text

    async def test_traversal_project_path_loads_no_rules(
        self, service: EnhancedContextService
    ) -> None:
        text = text_of(
            await service.load_enhanced_context(
                {"query_type": "pr-review", "project_path": "../.."}
            )
        )

        assert "## Project-Specific Rules:" not in text

    async def test_timeout(
        self, service: EnhancedContextService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def slow(names: list[str]) -> list[object]:
            await asyncio.sleep(5)
            return []

        monkeypatch.setattr(service.context_service, "load_global_contexts", slow)

        result = await service.load_enhanced_context({"query_type": "story"}, timeout=0.05)

        assert result.is_error
        assert "timed out" in text_of(result)

    async def test_contexts_not_duplicated(self, service: EnhancedContextService) -> None:
        """A context named by both base and conditional lists loads once."""
        text = text_of(
            await service.load_enhanced_context(
                {
                    "query_type": "story",
                    "task_intent": "create",
                    "scope": "story",
                    "domain_focus": ["security", "payments"],
                }
            )
        )

        assert text.count("### secure-coding\n") == 1


class TestUpdateAgent:
    """Test rewriting and annotating agent profiles."""

    async def test_enhance_appends_notes(
        self, service: EnhancedContextService, home_dir: Path
    ) -> None:
        result = await service.update_agent(
            "qa-engineer", "enhance", learning_notes="Flaky tests hide real races."
        )

        assert result == {
            "success": True,
            "message": "Agent 'qa-engineer' enhance operation completed successfully",
        }
        written = (home_dir / "agents" / "qa-engineer.md").read_text()
        assert "## Learning Notes (" in written
        assert written.rstrip().endswith("Flaky tests hide real races.")

        agent = await service.agent_service.load_agent("qa-engineer")
        assert agent is not None
        assert "Flaky tests hide real races." in agent.content

    async def test_update_rewrites_profile(
        self, service: EnhancedContextService, home_dir: Path
    ) -> None:
        result = await service.update_agent(
            "architect",
            "update",
            agent_data={
                "description": "Owns the system design",
                "content": "# Architect\nNew body\n",
            },
        )

        assert result["success"] is True
        agent = await service.agent_service.load_agent("architect")
        assert agent is not None
        assert agent.description == "Owns the system design"
        assert agent.model == "opus"
        assert agent.content.endswith("# Architect\nNew body\n")

    async def test_unknown_agent(self, service: EnhancedContextService) -> None:
        result = await service.update_agent("ghost", "enhance", learning_notes="x")

        assert result["success"] is False
        assert result["message"] == (
            "Agent 'ghost' not found. Cannot create new agents - only update existing ones."
        )

    async def test_enhance_requires_notes(self, service: EnhancedContextService) -> None:
        result = await service.update_agent("architect", "enhance")

        assert result == {
            "success": False,
            "message": "Learning notes are required for enhance operation",
        }

    async def test_unknown_operation(self, service: EnhancedContextService) -> None:
        result = await service.update_agent("architect", "delete")

        assert result["success"] is False

    async def test_update_keeps_bundled_agents_listed(
        self, service: EnhancedContextService
    ) -> None:
        """Writing one profile to the home must not shrink the agent listing."""
        before = await service.agent_service.list_agents("all")

        result = await service.update_agent("qa-engineer", "enhance", learning_notes="Note.")

        assert result["success"] is True
        after = await service.agent_service.list_agents("all")
        assert len(before) == len(after) == 19

    async def test_write_failure_is_reported(
        self, service: EnhancedContextService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A filesystem permission error becomes a failed result, not an exception."""

        def denied(*args: object, **kwargs: object) -> None:
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "write_text", denied)

        result = await service.update_agent("architect", "enhance", learning_notes="x")

        assert result["success"] is False
        assert result["message"].startswith("Error updating agent: Cannot write")
