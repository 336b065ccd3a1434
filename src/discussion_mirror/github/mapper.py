"""Projection of GraphQL responses into discussion records.

Navigates a fixed path in the parsed body. A missing or non-list path is an
UnexpectedShapeError; individual items missing required fields are skipped.
Output order matches input order; nothing is sorted or deduplicated.
"""

import logging
from typing import Any

from ..errors import UnexpectedShapeError
from ..models import DiscussionRecord, DiscussionSummary
from ..sanitize import sanitize_text_field, sanitize_textarea_field, sanitize_url

logger = logging.getLogger("discussion_mirror.github.mapper")

__all__ = ["map_repository_discussions", "map_summary_discussions"]

REPOSITORY_NODES_PATH = ("data", "repository", "discussions", "nodes")
SUMMARY_EDGES_PATH = ("data", "gitHubDiscussions", "edges")


def _navigate(body: Any, path: tuple[str, ...]) -> list:
    current = body
    for key in path:
        if not isinstance(current, dict) or current.get(key) is None:
            raise UnexpectedShapeError(".".join(path))
        current = current[key]
    if not isinstance(current, list):
        raise UnexpectedShapeError(
            ".".join(path), f"Unexpected data structure: {'.'.join(path)} is not a list"
        )
    return current


def _log_graphql_errors(body: Any) -> None:
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors and isinstance(errors, list):
        messages = [
            str(e.get("message", e))[:100] if isinstance(e, dict) else str(e)[:100]
            for e in errors[:3]
        ]
        logger.warning(
            "graphql_errors",
            extra={"error_count": len(errors), "messages": messages},
        )


def _string(item: dict, key: str) -> str | None:
    value = item.get(key)
    return value if isinstance(value, str) else None


def map_repository_discussions(body: dict[str, Any]) -> list[DiscussionRecord]:
    """Map a repository discussions response to records.

    Expects data.repository.discussions.nodes[] with title, url, bodyText.

    Raises:
        UnexpectedShapeError: If the nodes list is absent or not a list
    """
    _log_graphql_errors(body)
    nodes = _navigate(body, REPOSITORY_NODES_PATH)

    records: list[DiscussionRecord] = []
    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            logger.debug("Skipping non-object discussion node at index %d", index)
            continue
        raw_title = _string(node, "title")
        raw_url = _string(node, "url")
        raw_body = _string(node, "bodyText")
        if raw_title is None or raw_url is None or raw_body is None:
            logger.debug("Skipping discussion at index %d: missing fields", index)
            continue

        title = sanitize_text_field(raw_title)
        url = sanitize_url(raw_url)
        if not title or not url:
            logger.debug("Skipping discussion at index %d: empty title or invalid url", index)
            continue

        records.append(
            DiscussionRecord(title=title, body=sanitize_textarea_field(raw_body), url=url)
        )
    return records


def map_summary_discussions(body: dict[str, Any]) -> list[DiscussionSummary]:
    """Map a cross-repository summary response to summaries.

    Expects data.gitHubDiscussions.edges[].node with title and url, and
    optionally id, content and gitHubRepositories (preview variant).

    Raises:
        UnexpectedShapeError: If the edges list is absent or not a list
    """
    _log_graphql_errors(body)
    edges = _navigate(body, SUMMARY_EDGES_PATH)

    summaries: list[DiscussionSummary] = []
    for index, edge in enumerate(edges):
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict):
            continue
        title = sanitize_text_field(_string(node, "title"))
        url = sanitize_url(_string(node, "url"))
        if not title or not url:
            logger.debug("Skipping summary at index %d: incomplete data", index)
            continue

        content = _string(node, "content")
        repo_connection = node.get("gitHubRepositories")
        repo_edges = repo_connection.get("edges") if isinstance(repo_connection, dict) else None
        if not isinstance(repo_edges, list):
            repo_edges = []
        repositories = tuple(
            sanitize_text_field(e["node"]["name"])
            for e in repo_edges
            if isinstance(e, dict)
            and isinstance(e.get("node"), dict)
            and isinstance(e["node"].get("name"), str)
        )
        summaries.append(
            DiscussionSummary(
                title=title,
                url=url,
                id=_string(node, "id"),
                content=sanitize_textarea_field(content) if content is not None else None,
                repositories=repositories,
            )
        )
    return summaries
