"""Tests for combination scoring, selection and expansion."""

import json
from dataclasses import replace
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from enhanced_context.catalog import ConfigLoader, ContextCombination
from enhanced_context.config import BUNDLED_CONFIG
from enhanced_context.services import ContextCombinationService, QueryParameters
from enhanced_context.services.combinations import score_combination
from enhanced_context.tools.validation import COMPLEXITIES, DOMAINS, SCOPES, TASK_INTENTS

BUNDLED = ContextCombinationService(ConfigLoader(BUNDLED_CONFIG))
QUERY_TYPES = ConfigLoader(BUNDLED_CONFIG).get_allowed_query_types()


def combination(**fields: object) -> ContextCombination:
    data: dict[str, object] = {"id": "c", "name": "C", "queryType": "story"}
    data.update(fields)
    return ContextCombination.model_validate(data)


params_strategy = st.builds(
    QueryParameters,
    query_type=st.sampled_from(QUERY_TYPES),
    task_intent=st.none() | st.sampled_from(TASK_INTENTS),
    scope=st.none() | st.sampled_from(SCOPES),
    complexity=st.none() | st.sampled_from(COMPLEXITIES),
    domain_focus=st.lists(st.sampled_from(DOMAINS), unique=True, max_size=3),
)


@pytest.fixture
def service() -> ContextCombinationService:
    return ContextCombinationService(ConfigLoader(BUNDLED_CONFIG))


class TestScoreCombination:
    """Test the weighted score."""

    def test_query_type_is_hard_filter(self) -> None:
        """A different query type scores 0 however well the rest matches."""
        c = combination(queryType="testing", taskIntent="create")

        assert score_combination(c, QueryParameters("story", task_intent="create")) == 0.0

    def test_unconstrained_combination_scores_full(self) -> None:
        assert score_combination(combination(), QueryParameters("story")) == pytest.approx(1.0)

    def test_exact_match(self) -> None:
        c = combination(taskIntent="create", scope="story", complexity="critical")
        params = QueryParameters(
            "story", task_intent="create", scope="story", complexity="critical"
        )

        assert score_combination(c, params) == pytest.approx(1.0)

    def test_partial_credit_for_unset_dimensions(self) -> None:
        c = combination(taskIntent="create", scope="story", complexity="critical")

        assert score_combination(c, QueryParameters("story")) == pytest.approx(
            0.4 + 0.1 + 0.1 + 0.075
        )

    def test_mismatch_scores_nothing_for_dimension(self) -> None:
        c = combination(taskIntent="create", scope="epic")
        params = QueryParameters("story", task_intent="review", scope="story")

        assert score_combination(c, params) == pytest.approx(0.4 + 0.15)

    @given(params_strategy)
    def test_score_bounds(self, params: QueryParameters) -> None:
        for c in BUNDLED.list_combinations():
            score = score_combination(c, params)
            assert 0.0 <= score <= 1.0 + 1e-9
            if c.query_type != params.query_type:
                assert score == 0.0

    @given(params_strategy, st.sampled_from(["task_intent", "scope", "complexity"]))
    def test_matching_a_dimension_never_lowers_score(
        self, params: QueryParameters, dimension: str
    ) -> None:
        """Setting a dimension to the combination's own value can only help it."""
        for c in BUNDLED.list_combinations():
            required = getattr(c, dimension)
            if required is None:
                continue
            matched = replace(params, **{dimension: required})

            assert score_combination(c, matched) >= score_combination(c, params)


class TestFindBestCombination:
    """Test selection against the bundled catalog."""

    def test_security_review_scenario(self, service: ContextCombinationService) -> None:
        params = QueryParameters(
            "security", task_intent="review", domain_focus=["security"]
        )

        best = service.find_best_combination(params)

        assert best.id == "security-review"
        assert best.agents == ["security-engineer"]

    def test_epic_scope_selects_epic_creation(self, service: ContextCombinationService) -> None:
        params = QueryParameters("story", task_intent="create", scope="epic")

        assert service.find_best_combination(params).id == "epic-creation"

    def test_payment_story_contexts(self, service: ContextCombinationService) -> None:
        params = QueryParameters(
            "story",
            task_intent="create",
            scope="story",
            complexity="critical",
            domain_focus=["payments"],
        )

        best = service.find_best_combination(params)
        names = [s.name for s in service.get_all_contexts(best, params)]

        assert best.id == "story-creation"
        assert names == [
            "sdlc-methodology",
            "story-writing",
            "acceptance-criteria",
            "secure-coding",
            "payments-security",
        ]

    def test_conditional_reasons(self, service: ContextCombinationService) -> None:
        c = service.get_combination_by_id("security-review")
        assert c is not None
        params = QueryParameters(
            "security", complexity="critical", domain_focus=["data", "compliance"]
        )

        selected = service.get_all_contexts(c, params)
        conditional = [s for s in selected if s.source == "conditional"]

        assert [s.name for s in conditional] == ["compliance", "data-management"]
        assert conditional[1].reason == "Critical review of data handling"

    @given(params_strategy)
    def test_selection_respects_query_type(self, params: QueryParameters) -> None:
        best = BUNDLED.find_best_combination(params)

        assert best.query_type == params.query_type or best.id == "default"

    @given(params_strategy)
    def test_selection_is_deterministic(self, params: QueryParameters) -> None:
        assert BUNDLED.find_best_combination(params).id == BUNDLED.find_best_combination(
            params
        ).id

    @given(params_strategy)
    def test_selection_is_maximal(self, params: QueryParameters) -> None:
        """No combination outscores the one selected."""
        best = BUNDLED.find_best_combination(params)
        best_score = score_combination(best, params)

        for c in BUNDLED.list_combinations():
            assert score_combination(c, params) <= best_score

    def test_explain(self, service: ContextCombinationService) -> None:
        c = service.get_combination_by_id("security-review")
        assert c is not None
        params = QueryParameters(
            "security", task_intent="review", domain_focus=["payments"]
        )

        lines = service.explain_combination(c, params)

        assert lines[0] == "Selected combination: Security Review"
        assert "Task intent: review" in lines
        assert "Domain focus: payments" in lines
        assert "  - Payment data is in scope" in lines

    def test_validate_combination(self, service: ContextCombinationService) -> None:
        for c in service.list_combinations():
            assert service.validate_combination(c)["valid"], c.id

        result = service.validate_combination(combination())
        assert not result["valid"]
        assert "Combination missing guidance" in result["errors"]


class TestDefaultCombination:
    """Test the fallback when nothing matches."""

    @pytest.fixture
    def sparse_service(self, tmp_path: Path) -> ContextCombinationService:
        """Catalog with no combination for most query types."""
        for name in ("context-mappings.json", "server-config.json"):
            (tmp_path / name).write_text((BUNDLED_CONFIG / name).read_text())
        (tmp_path / "context-combinations.json").write_text(
            json.dumps(
                {
                    "combinations": [
                        {"id": "only", "name": "Only", "queryType": "testing"},
                        {"id": "first", "name": "First", "queryType": "security"},
                        {"id": "second", "name": "Second", "queryType": "security"},
                    ],
                    "defaultCombination": {
                        "id": "fallback",
                        "name": "Fallback",
                        "queryType": "story",
                        "baseContexts": ["sdlc-methodology"],
                    },
                }
            )
        )
        return ContextCombinationService(ConfigLoader(tmp_path))

    def test_default_when_no_candidate(self, sparse_service: ContextCombinationService) -> None:
        best = sparse_service.find_best_combination(QueryParameters("documentation"))

        assert best.id == "fallback"

    def test_ties_keep_catalog_order(self, sparse_service: ContextCombinationService) -> None:
        best = sparse_service.find_best_combination(QueryParameters("security"))

        assert best.id == "first"
