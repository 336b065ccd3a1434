"""Read-only presentational surfaces over mirrored discussions.

All surfaces read the local content repository; none of them calls GitHub.
Storage errors are returned as inline plain-text messages.
"""

import logging
import sqlite3
from dataclasses import dataclass

from .config import MirrorConfig
from .models import StoredDiscussion
from .sanitize import escape_html, escape_url, sanitize_url
from .storage import SOURCE_URL_META_KEY, ContentRepository

logger = logging.getLogger("discussion_mirror.render")

__all__ = [
    "EMPTY_BLOCK_MESSAGE",
    "EMPTY_LIST_MESSAGE",
    "EMPTY_WIDGET_MESSAGE",
    "ViewResult",
    "render_dashboard_widget",
    "render_discussion_list",
    "render_repository_block",
    "resolve_view",
]

EMPTY_LIST_MESSAGE = "No discussions found."
EMPTY_WIDGET_MESSAGE = "No discussions available."
EMPTY_BLOCK_MESSAGE = "No GitHub discussions found."
ERROR_PREFIX = "Error fetching GitHub discussions: "


def _render_items(records: list[StoredDiscussion]) -> str:
    items = []
    for record in records:
        title = escape_html(record.title)
        url = escape_url(record.url)
        if url:
            items.append(f'<li><a href="{url}">{title}</a></li>')
        else:
            items.append(f"<li>{title}</li>")
    return "<ul>" + "".join(items) + "</ul>"


def render_discussion_list(repository: ContentRepository, config: MirrorConfig) -> str:
    """Inline list embed: newest discussions up to the configured fetch count."""
    try:
        records = repository.list_records(limit=config.get_fetch_count())
    except sqlite3.Error as e:
        logger.error("render_failed", extra={"surface": "list", "error": str(e)})
        return ERROR_PREFIX + str(e)
    if not records:
        return EMPTY_LIST_MESSAGE
    return _render_items(records)


def render_dashboard_widget(repository: ContentRepository, config: MirrorConfig) -> str:
    """Dashboard summary widget."""
    try:
        records = repository.list_records(limit=config.get_fetch_count())
    except sqlite3.Error as e:
        logger.error("render_failed", extra={"surface": "widget", "error": str(e)})
        return ERROR_PREFIX + str(e)
    if not records:
        return EMPTY_WIDGET_MESSAGE
    return _render_items(records)


def render_repository_block(repository: ContentRepository, category: str) -> str:
    """Tag-filtered list block for one repository (or organization) slug."""
    try:
        records = repository.list_records(tag_slug=category or "")
    except sqlite3.Error as e:
        logger.error("render_failed", extra={"surface": "block", "error": str(e)})
        return ERROR_PREFIX + str(e)
    if not records:
        return EMPTY_BLOCK_MESSAGE
    return _render_items(records)


@dataclass(frozen=True)
class ViewResult:
    """Outcome of viewing one record: a redirect or a rendered page."""

    status: int
    redirect_url: str | None = None
    html: str = ""

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None


def resolve_view(repository: ContentRepository, config: MirrorConfig, record_id: int) -> ViewResult:
    """Resolve a view of a mirrored discussion.

    When redirects are enabled and the record has a canonical URL, the view
    redirects to GitHub. The URL is read under the same metadata key the
    pipeline writes.
    """
    record = repository.get_record(record_id)
    if record is None:
        return ViewResult(status=404, html=escape_html("Discussion not found."))

    if config.github_enable_redirect:
        target = sanitize_url(repository.get_meta(record_id, SOURCE_URL_META_KEY))
        if target:
            return ViewResult(status=302, redirect_url=target)

    parts = [f"<h1>{escape_html(record.title)}</h1>"]
    for paragraph in record.body.split("\n\n"):
        if paragraph.strip():
            text = escape_html(paragraph).replace("\n", "<br>")
            parts.append(f"<p>{text}</p>")
    url = escape_url(record.url)
    if url:
        parts.append(f'<p><a href="{url}">View on GitHub</a></p>')
    return ViewResult(status=200, html="\n".join(parts))
