"""GraphQL query construction.

Repository and organization names never reach the query text: the
repository query declares them as GraphQL variables and the values travel
in the request's "variables" object. escape_graphql_string() exists only
for the human-readable preview that inlines them.
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from ..config import MirrorConfig, clamp_fetch_count
from ..errors import ConfigError

__all__ = [
    "DETAILED_PAGE_SIZE",
    "GraphQLQuery",
    "build_discussions_summary_query",
    "build_repository_discussions_query",
    "escape_graphql_string",
    "render_query_preview",
]

# Page size of the per-repository query (single page, no pagination)
DETAILED_PAGE_SIZE = 10

REPOSITORY_DISCUSSIONS_QUERY = """\
query RepositoryDiscussions($owner: String!, $name: String!, $first: Int!) {
  repository(owner: $owner, name: $name) {
    discussions(first: $first) {
      nodes {
        title
        url
        bodyText
      }
    }
  }
}
"""

SUMMARY_QUERY_TEMPLATE = """\
query GetGitHubDiscussions {{
  gitHubDiscussions(first: {first}) {{
    edges {{
      node {{
{fields}
      }}
    }}
  }}
}}
"""

_SUMMARY_FIELDS = ("title", "url")

_PREVIEW_FIELDS = """\
        id
        title
        content
        gitHubRepositories {
          edges {
            node {
              name
            }
          }
        }"""


@dataclass(frozen=True)
class GraphQLQuery:
    """An immutable GraphQL document plus its variables."""

    text: str
    variables: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    def payload(self) -> dict[str, Any]:
        """Request body for a GraphQL POST."""
        body: dict[str, Any] = {"query": self.text}
        if self.variables:
            body["variables"] = dict(self.variables)
        return body


def escape_graphql_string(value: str) -> str:
    """Render a value as a quoted GraphQL string literal.

    GraphQL string literals share JSON's escaping rules for quotes,
    backslashes and control characters.
    """
    return json.dumps(value, ensure_ascii=False)


def build_repository_discussions_query(organization: str, repository: str) -> GraphQLQuery:
    """Build the per-repository query returning title, url and bodyText.

    Args:
        organization: Repository owner login
        repository: Repository name

    Raises:
        ConfigError: If either name is blank
    """
    owner = (organization or "").strip()
    name = (repository or "").strip()
    if not owner:
        raise ConfigError("GitHub organization is not configured")
    if not name:
        raise ConfigError("Repository name is blank")
    return GraphQLQuery(
        text=REPOSITORY_DISCUSSIONS_QUERY,
        variables={"owner": owner, "name": name, "first": DETAILED_PAGE_SIZE},
    )


def build_discussions_summary_query(
    fetch_count: int, include_content: bool = False
) -> GraphQLQuery:
    """Build the cross-repository summary query.

    Args:
        fetch_count: Requested page size, clamped to [1, 100]
        include_content: Add id, content and repository names (settings preview)
    """
    first = clamp_fetch_count(fetch_count)
    if include_content:
        fields = _PREVIEW_FIELDS
    else:
        fields = "\n".join(f"        {name}" for name in _SUMMARY_FIELDS)
    return GraphQLQuery(text=SUMMARY_QUERY_TEMPLATE.format(first=first, fields=fields))


def render_query_preview(config: MirrorConfig) -> str:
    """Query text shown to administrators next to the settings.

    Includes the summary query for the host CMS and, per configured
    repository, the GitHub query with its variables inlined as escaped
    literals so it can be pasted into the GitHub GraphQL explorer.
    """
    sections = [
        build_discussions_summary_query(config.get_fetch_count(), include_content=True).text
    ]
    for repository in config.get_repositories():
        if not repository or not config.github_organization:
            continue
        inlined = REPOSITORY_DISCUSSIONS_QUERY.replace(
            "query RepositoryDiscussions($owner: String!, $name: String!, $first: Int!)",
            "query",
        ).replace(
            "repository(owner: $owner, name: $name)",
            "repository(owner: {}, name: {})".format(
                escape_graphql_string(config.github_organization),
                escape_graphql_string(repository),
            ),
        ).replace("discussions(first: $first)", f"discussions(first: {DETAILED_PAGE_SIZE})")
        sections.append(f"# {repository}\n{inlined}")
    return "\n".join(sections)
