"""Tests for conditional context expressions."""

import pytest

from enhanced_context.catalog import evaluate_condition, parse_condition
from enhanced_context.catalog.conditions import And, Equals, Includes, Or, Unsupported


def env(**overrides: object) -> dict[str, object]:
    base: dict[str, object] = {
        "query_type": "security",
        "complexity": None,
        "task_intent": None,
        "scope": None,
        "output_format": None,
        "domain_focus": [],
        "include_sdlc_checks": False,
    }
    base.update(overrides)
    return base


class TestParseCondition:
    """Test parsing into expression trees."""

    def test_equals(self) -> None:
        assert parse_condition("complexity === 'critical'") == Equals("complexity", "critical")

    def test_equals_double_quotes(self) -> None:
        assert parse_condition('scope === "epic"') == Equals("scope", "epic")

    def test_equals_boolean(self) -> None:
        assert parse_condition("include_sdlc_checks === true") == Equals(
            "include_sdlc_checks", True
        )

    def test_includes(self) -> None:
        assert parse_condition("domain_focus.includes('payments')") == Includes(
            "domain_focus", "payments"
        )

    def test_or_binds_loosest(self) -> None:
        """``a || b && c`` parses as ``a || (b && c)``."""
        parsed = parse_condition(
            "complexity === 'critical' || domain_focus.includes('data') && scope === 'epic'"
        )

        assert parsed == Or(
            terms=(
                Equals("complexity", "critical"),
                And(terms=(Includes("domain_focus", "data"), Equals("scope", "epic"))),
            )
        )

    @pytest.mark.parametrize(
        "source",
        [
            "complexity > 3",
            "domain_focus.length === 0",
            "!include_sdlc_checks",
            "complexity === 'critical' || (scope === 'epic')",
            "",
        ],
    )
    def test_unsupported(self, source: str) -> None:
        """Anything outside the grammar becomes Unsupported."""
        assert isinstance(parse_condition(source), Unsupported)


class TestEvaluateCondition:
    """Test evaluation against request parameters."""

    def test_equals_matches(self) -> None:
        condition = parse_condition("complexity === 'critical'")

        assert evaluate_condition(condition, env(complexity="critical"))
        assert not evaluate_condition(condition, env(complexity="simple"))
        assert not evaluate_condition(condition, env())

    def test_includes_matches_list_membership(self) -> None:
        condition = parse_condition("domain_focus.includes('payments')")

        assert evaluate_condition(condition, env(domain_focus=["security", "payments"]))
        assert not evaluate_condition(condition, env(domain_focus=["security"]))

    def test_includes_on_non_list_is_false(self) -> None:
        condition = parse_condition("complexity.includes('crit')")

        assert not evaluate_condition(condition, env(complexity="critical"))

    def test_precedence(self) -> None:
        """``||`` has lower precedence than ``&&``."""
        condition = parse_condition(
            "complexity === 'critical' || domain_focus.includes('data') && scope === 'epic'"
        )

        assert evaluate_condition(condition, env(complexity="critical"))
        assert evaluate_condition(condition, env(domain_focus=["data"], scope="epic"))
        assert not evaluate_condition(condition, env(domain_focus=["data"]))
        assert not evaluate_condition(condition, env(scope="epic"))

    def test_boolean_equality(self) -> None:
        condition = parse_condition("include_sdlc_checks === true")

        assert evaluate_condition(condition, env(include_sdlc_checks=True))
        assert not evaluate_condition(condition, env(include_sdlc_checks=False))

    def test_unsupported_is_false(self) -> None:
        """Unsupported conditions never include their contexts."""
        condition = parse_condition("complexity >= 'medium'")

        assert not evaluate_condition(condition, env(complexity="medium"))
