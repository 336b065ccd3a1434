"""GitHub integration package.

Provides the GraphQL query builder, an async API client with failure
classification, and the mapper projecting responses into discussion records.
"""

from .client import GitHubGraphQLClient
from .mapper import map_repository_discussions, map_summary_discussions
from .query import (
    DETAILED_PAGE_SIZE,
    GraphQLQuery,
    build_discussions_summary_query,
    build_repository_discussions_query,
    escape_graphql_string,
    render_query_preview,
)

__all__ = [
    "DETAILED_PAGE_SIZE",
    "GitHubGraphQLClient",
    "GraphQLQuery",
    "build_discussions_summary_query",
    "build_repository_discussions_query",
    "escape_graphql_string",
    "map_repository_discussions",
    "map_summary_discussions",
    "render_query_preview",
]
