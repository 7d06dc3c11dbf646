"""Tests for domain entities."""

import pytest

from enhanced_context.domain import (
    Agent,
    AgentType,
    Context,
    ContextSource,
    InvalidEntityError,
    Template,
    TemplateSource,
)


class TestContext:
    """Test context documents."""

    def test_size_and_lines(self) -> None:
        context = Context("sdlc", "line one\nline two é", ContextSource.GLOBAL)

        assert context.size == len("line one\nline two é".encode())
        assert context.lines == 2
        assert context.summary() == f"sdlc (global): {context.size} bytes, 2 lines"

    def test_source_coerced_from_string(self) -> None:
        context = Context("rules", "x", "project_rules")  # type: ignore[arg-type]

        assert context.source is ContextSource.PROJECT_RULES
        assert context.to_dict()["source"] == "project_rules"

    @pytest.mark.parametrize(
        ("name", "content", "source"),
        [
            ("", "content", ContextSource.GLOBAL),
            ("name", "", ContextSource.GLOBAL),
            ("name", "content", "nowhere"),
        ],
    )
    def test_invalid(self, name: str, content: str, source: object) -> None:
        with pytest.raises(InvalidEntityError):
            Context(name, content, source)  # type: ignore[arg-type]


class TestTemplate:
    """Test templates and placeholder extraction."""

    def test_extract_variables_in_order(self) -> None:
        template = Template("story", "# {{title}}\nAs a {{role}}, {{title}} again")

        assert template.extract_variables() == ["title", "role", "title"]
        assert template.source is TemplateSource.LIBRARY

    def test_explicit_variables_take_precedence(self) -> None:
        template = Template("story", "{{a}} {{b}}", variables=["x"])

        assert template.extract_variables() == ["x"]

    def test_ignores_malformed_placeholders(self) -> None:
        template = Template("t", "{{ spaced }} {single} {{ok}}")

        assert template.extract_variables() == ["ok"]

    def test_invalid(self) -> None:
        with pytest.raises(InvalidEntityError):
            Template("t", "")
        with pytest.raises(InvalidEntityError):
            Template("t", "x", source="vendor")  # type: ignore[arg-type]


class TestAgent:
    """Test agent profiles."""

    def test_defaults(self) -> None:
        agent = Agent(id="qa", name="QA", content="body")

        assert agent.type is AgentType.TECHNICAL
        assert agent.specializations == ()
        assert agent.model is None

    def test_dict_round_trip(self) -> None:
        agent = Agent(
            id="payments-expert",
            name="Payments Expert",
            content="# Payments",
            description="PCI and payment flows",
            type=AgentType.DOMAIN_EXPERT,
            specializations=("pci", "payments"),
            model="opus",
        )

        assert Agent.from_dict(agent.to_dict()) == agent

    def test_from_dict_coerces_list_specializations(self) -> None:
        agent = Agent.from_dict(
            {"id": "a", "name": "A", "content": "c", "specializations": ["x", "y"]}
        )

        assert agent.specializations == ("x", "y")
        assert agent.has_specialization("x")

    def test_metadata_omits_content(self) -> None:
        agent = Agent(id="qa", name="QA", content="body", description="tests")

        metadata = agent.metadata().to_dict()

        assert "content" not in metadata
        assert metadata["id"] == "qa"
        assert metadata["type"] == "technical"

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "A", "content": "c"},
            {"id": "a", "content": "c"},
            {"id": "a", "name": "A"},
            {"id": "a", "name": "A", "content": "c", "type": "wizard"},
        ],
    )
    def test_invalid(self, data: dict[str, str]) -> None:
        with pytest.raises(InvalidEntityError):
            Agent.from_dict(data)

    def test_invalid_entity_error_is_value_error(self) -> None:
        assert issubclass(InvalidEntityError, ValueError)
