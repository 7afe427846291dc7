"""Tests for relevance scoring and result ordering."""

import pytest

from qa_portal.search.executor import parse_terms
from qa_portal.search.params import DEFAULT_SEARCH_PARAMS
from qa_portal.search.schemas import SearchResult, SearchSortField
from qa_portal.search.scorer import score_question, sort_results
from tests.conftest import BASE_TIME, make_question

PARAMS = dict(DEFAULT_SEARCH_PARAMS)


def _result(question_id: str, score: float = 0.5, **fields) -> SearchResult:
    return SearchResult(question=make_question(question_id, **fields), score=score)


# ---------------------------------------------------------------------------
# score_question
# ---------------------------------------------------------------------------


class TestScoreQuestion:
    @pytest.mark.parametrize(
        ("title", "content", "tags", "expected"),
        [
            ("Using React", "nothing here", [], 0.8),
            ("Unrelated", "I use React daily", [], 0.6),
            ("Unrelated", "nothing here", ["react"], 0.7),
            ("Unrelated", "nothing here", [], 0.0),
        ],
    )
    def test_single_field_weights(self, title, content, tags, expected):
        question = make_question("q", title, content, tags=tags)

        assert score_question(question, parse_terms("react"), PARAMS) == pytest.approx(expected)

    def test_multiple_fields_clamp_to_one(self):
        question = make_question("q", "React state", "React hooks", tags=["react"])

        assert score_question(question, parse_terms("react"), PARAMS) == 1.0

    def test_exact_title_bonus(self):
        question = make_question("q", "React Hooks", "nothing relevant")

        score = score_question(question, parse_terms("react hooks"), PARAMS)

        assert score == pytest.approx(1.0)

    def test_exact_title_bonus_with_custom_weight(self):
        params = {**PARAMS, "title_weight": 0.5}
        question = make_question("q", "React Hooks", "nothing relevant")

        score = score_question(question, parse_terms("React Hooks"), params)

        assert score == pytest.approx(0.7)

    def test_token_match_counts_for_field(self):
        question = make_question("q", "Next.js routing", "nothing relevant")

        score = score_question(question, parse_terms("Next.js authentication"), PARAMS)

        assert score == pytest.approx(0.8)

    def test_tag_only_document_for_phrase_query(self):
        question = make_question(
            "q1", "Next.js 15でのJWT認証実装について", "本文", tags=["authentication"]
        )

        score = score_question(question, parse_terms("Next.js authentication"), PARAMS)

        assert score >= 0.6

    def test_score_is_always_in_unit_range(self):
        params = {**PARAMS, "title_weight": 1.0, "content_weight": 1.0, "exact_title_bonus": 0.9}
        question = make_question("q", "react", "react", tags=["react"])

        assert 0.0 <= score_question(question, parse_terms("react"), params) <= 1.0


# ---------------------------------------------------------------------------
# sort_results
# ---------------------------------------------------------------------------


class TestSortResults:
    def test_relevance_descending(self):
        results = [_result("a", 0.2), _result("b", 0.9), _result("c", 0.5)]

        ordered = sort_results(results)

        assert [r.question.id for r in ordered] == ["b", "c", "a"]

    def test_relevance_ascending(self):
        results = [_result("a", 0.2), _result("b", 0.9), _result("c", 0.5)]

        ordered = sort_results(results, SearchSortField.relevance, "asc")

        assert [r.question.id for r in ordered] == ["a", "c", "b"]

    def test_priority_uses_severity_order(self):
        results = [
            _result("low", priority="low"),
            _result("high", priority="high"),
            _result("medium", priority="medium"),
        ]

        ordered = sort_results(results, SearchSortField.priority, "desc")

        assert [r.question.id for r in ordered] == ["high", "medium", "low"]

    def test_status_uses_lifecycle_order(self):
        results = [
            _result("closed", status="closed"),
            _result("unanswered", status="unanswered"),
            _result("resolved", status="resolved"),
            _result("answered", status="answered"),
        ]

        ordered = sort_results(results, SearchSortField.status, "asc")

        assert [r.question.id for r in ordered] == ["unanswered", "answered", "resolved", "closed"]

    def test_created_at_and_updated_at(self):
        results = [_result("old", minutes=1), _result("new", minutes=5, updated_at=BASE_TIME)]

        by_created = sort_results(results, SearchSortField.created_at, "desc")
        by_updated = sort_results(results, SearchSortField.updated_at, "desc")

        assert [r.question.id for r in by_created] == ["new", "old"]
        assert [r.question.id for r in by_updated] == ["old", "new"]

    @pytest.mark.parametrize("order", ["asc", "desc"])
    def test_equal_keys_keep_candidate_order(self, order):
        results = [_result(name, 0.5) for name in ("first", "second", "third")]

        ordered = sort_results(results, SearchSortField.relevance, order)

        assert [r.question.id for r in ordered] == ["first", "second", "third"]
