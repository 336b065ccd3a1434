"""Tests for GraphQL query construction."""

import json
import re

import pytest

from discussion_mirror.errors import ConfigError
from discussion_mirror.github.query import (
    DETAILED_PAGE_SIZE,
    GraphQLQuery,
    build_discussions_summary_query,
    build_repository_discussions_query,
    escape_graphql_string,
    render_query_preview,
)


def _first_argument(text: str) -> int:
    match = re.search(r"gitHubDiscussions\(first: (-?\d+)\)", text)
    assert match, text
    return int(match.group(1))


class TestRepositoryQuery:
    def test_names_sent_as_variables(self):
        query = build_repository_discussions_query("acme", "docs")
        assert query.variables == {"owner": "acme", "name": "docs", "first": DETAILED_PAGE_SIZE}
        assert "acme" not in query.text
        assert "docs" not in query.text

    def test_requests_title_url_body(self):
        text = build_repository_discussions_query("acme", "docs").text
        for field in ("title", "url", "bodyText"):
            assert field in text
        assert "discussions(first: $first)" in text

    def test_fixed_page_size(self):
        assert DETAILED_PAGE_SIZE == 10

    def test_hostile_name_cannot_alter_query(self):
        hostile = 'docs") { __typename } x: repository(owner: "evil'
        query = build_repository_discussions_query("acme", hostile)
        assert hostile not in query.text
        assert query.variables["name"] == hostile

    def test_names_trimmed(self):
        query = build_repository_discussions_query(" acme ", " docs ")
        assert query.variables["owner"] == "acme"
        assert query.variables["name"] == "docs"

    @pytest.mark.parametrize("org, repo", [("", "docs"), ("acme", ""), ("acme", "   ")])
    def test_blank_names_rejected(self, org, repo):
        with pytest.raises(ConfigError):
            build_repository_discussions_query(org, repo)

    def test_payload(self):
        payload = build_repository_discussions_query("acme", "docs").payload()
        assert set(payload) == {"query", "variables"}
        json.dumps(payload)


class TestSummaryQuery:
    @pytest.mark.parametrize("n, used", [(10, 10), (100, 100), (150, 100), (0, 1), (-3, 1)])
    def test_fetch_count_clamped(self, n, used):
        assert _first_argument(build_discussions_summary_query(n).text) == used

    def test_summary_fields(self):
        text = build_discussions_summary_query(10).text
        assert "title" in text and "url" in text
        assert "content" not in text
        assert "gitHubRepositories" not in text

    def test_preview_variant_fields(self):
        text = build_discussions_summary_query(10, include_content=True).text
        for field in ("id", "title", "content", "gitHubRepositories", "name"):
            assert field in text

    def test_summary_has_no_variables(self):
        assert build_discussions_summary_query(5).payload() == {
            "query": build_discussions_summary_query(5).text
        }


class TestGraphQLQuery:
    def test_immutable(self):
        query = GraphQLQuery(text="query { x }", variables={"a": 1})
        with pytest.raises(Exception):
            query.text = "other"
        with pytest.raises(TypeError):
            query.variables["a"] = 2


class TestEscaping:
    def test_quotes_and_backslashes(self):
        assert escape_graphql_string('a"b\\c') == '"a\\"b\\\\c"'

    def test_newlines(self):
        assert escape_graphql_string("a\nb") == '"a\\nb"'


class TestPreview:
    def test_preview_includes_summary_and_repositories(self, make_config):
        config = make_config(github_repositories="docs, ,website", github_fetch_count=500)
        preview = render_query_preview(config)
        assert _first_argument(preview) == 100
        assert 'repository(owner: "acme", name: "docs")' in preview
        assert 'repository(owner: "acme", name: "website")' in preview
        assert 'name: "")' not in preview
        assert "$owner" not in preview

    def test_preview_without_organization(self, make_config):
        preview = render_query_preview(make_config(github_organization=""))
        assert "repository(" not in preview
