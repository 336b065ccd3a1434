"""SQLite content repository for mirrored discussions.

Holds discussion records, per-record auxiliary metadata (key/value) and a
hierarchy of tags (organization tag -> repository tag). DiscussionStore
is the write path used by the pipeline: every call inserts a new record,
there is no lookup-by-URL or lookup-by-title.
"""

import logging
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from .errors import PersistError
from .models import DiscussionRecord, StoredDiscussion, Tag

logger = logging.getLogger("discussion_mirror.storage")

__all__ = [
    "POST_STATUS_PUBLISH",
    "SOURCE_URL_META_KEY",
    "ContentRepository",
    "DiscussionStore",
    "slugify",
]

# Single metadata key for the canonical GitHub URL, used by writes and redirects
SOURCE_URL_META_KEY = "github_url"

POST_STATUS_PUBLISH = "publish"

SCHEMA = """
CREATE TABLE IF NOT EXISTS discussions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    body TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'publish',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS discussion_meta (
    discussion_id INTEGER NOT NULL REFERENCES discussions(id) ON DELETE CASCADE,
    meta_key TEXT NOT NULL,
    meta_value TEXT NOT NULL,
    PRIMARY KEY (discussion_id, meta_key)
);

CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    slug TEXT NOT NULL,
    parent_id INTEGER REFERENCES tags(id),
    UNIQUE (slug, parent_id)
);

CREATE TABLE IF NOT EXISTS discussion_tags (
    discussion_id INTEGER NOT NULL REFERENCES discussions(id) ON DELETE CASCADE,
    tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (discussion_id, tag_id)
);

CREATE INDEX IF NOT EXISTS idx_discussion_tags_tag ON discussion_tags(tag_id);
"""

_SLUG_RE = re.compile(r"[^a-z0-9]+")

_SELECT_RECORD = """
SELECT d.id, d.title, d.body, d.status, d.created_at,
       (SELECT m.meta_value FROM discussion_meta m
         WHERE m.discussion_id = d.id AND m.meta_key = :meta_key) AS url,
       (SELECT t.name FROM discussion_tags dt JOIN tags t ON t.id = dt.tag_id
         WHERE dt.discussion_id = d.id
         ORDER BY t.parent_id IS NULL, t.id LIMIT 1) AS repository
FROM discussions d
"""


def slugify(name: str) -> str:
    """Lowercase, hyphen-separated slug for tag lookups."""
    return _SLUG_RE.sub("-", name.lower()).strip("-")


class ContentRepository:
    """SQLite-backed store of discussion records, metadata and tags.

    Example:
        >>> with ContentRepository(Path("discussions.db")) as repo:
        ...     records = repo.list_records(tag_slug="docs")
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def __enter__(self) -> "ContentRepository":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self.conn.close()

    # -- Records --------------------------------------------------------

    def insert_record(self, title: str, body: str, status: str = POST_STATUS_PUBLISH) -> int:
        """Insert a record and return its id (not committed)."""
        cursor = self.conn.execute(
            "INSERT INTO discussions (title, body, status, created_at) VALUES (?, ?, ?, ?)",
            (title, body, status, datetime.now(timezone.utc).isoformat()),
        )
        return cursor.lastrowid

    def get_record(self, record_id: int) -> StoredDiscussion | None:
        row = self.conn.execute(
            _SELECT_RECORD + " WHERE d.id = :record_id",
            {"meta_key": SOURCE_URL_META_KEY, "record_id": record_id},
        ).fetchone()
        return _to_stored(row) if row else None

    def list_records(
        self, tag_slug: str | None = None, limit: int | None = None
    ) -> list[StoredDiscussion]:
        """List published records, newest first.

        Args:
            tag_slug: Only records tagged with this slug or any of its descendants.
                A repository tag wins over an organization tag with the same slug.
            limit: Maximum number of records (None = all)
        """
        params: dict[str, object] = {"meta_key": SOURCE_URL_META_KEY, "status": POST_STATUS_PUBLISH}
        sql = _SELECT_RECORD
        if tag_slug is not None:
            sql = (
                "WITH RECURSIVE subtree(id) AS ("
                " SELECT id FROM tags WHERE slug = :slug AND (parent_id IS NOT NULL"
                " OR NOT EXISTS (SELECT 1 FROM tags WHERE slug = :slug AND parent_id IS NOT NULL))"
                " UNION SELECT t.id FROM tags t JOIN subtree s ON t.parent_id = s.id)"
                + sql
                + " WHERE d.status = :status AND d.id IN ("
                "SELECT discussion_id FROM discussion_tags WHERE tag_id IN (SELECT id FROM subtree))"
            )
            params["slug"] = tag_slug
        else:
            sql += " WHERE d.status = :status"
        sql += " ORDER BY d.id DESC"
        if limit is not None:
            sql += " LIMIT :limit"
            params["limit"] = limit
        return [_to_stored(row) for row in self.conn.execute(sql, params).fetchall()]

    def count_records(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM discussions").fetchone()[0]

    # -- Metadata -------------------------------------------------------

    def set_meta(self, record_id: int, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT INTO discussion_meta (discussion_id, meta_key, meta_value) VALUES (?, ?, ?) "
            "ON CONFLICT (discussion_id, meta_key) DO UPDATE SET meta_value = excluded.meta_value",
            (record_id, key, value),
        )

    def get_meta(self, record_id: int, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT meta_value FROM discussion_meta WHERE discussion_id = ? AND meta_key = ?",
            (record_id, key),
        ).fetchone()
        return row[0] if row else None

    # -- Tags -----------------------------------------------------------

    def get_or_create_tag(self, name: str, parent_id: int | None = None) -> Tag:
        """Look up a tag by name under the given parent, creating it if absent.

        Names that slugify alike (my.repo, my-repo) get distinct slugs by
        numeric suffix: my-repo, my-repo-2, ...
        """
        row = self.conn.execute(
            "SELECT id, name, slug, parent_id FROM tags WHERE name = ? AND parent_id IS ?",
            (name, parent_id),
        ).fetchone()
        if row:
            return Tag(id=row["id"], name=row["name"], slug=row["slug"], parent_id=row["parent_id"])
        base = slugify(name)
        slug, suffix = base, 1
        while self.conn.execute(
            "SELECT 1 FROM tags WHERE slug = ? AND parent_id IS ?", (slug, parent_id)
        ).fetchone():
            suffix += 1
            slug = f"{base}-{suffix}"
        cursor = self.conn.execute(
            "INSERT INTO tags (name, slug, parent_id) VALUES (?, ?, ?)",
            (name, slug, parent_id),
        )
        logger.debug("tag_created", extra={"tag": name, "slug": slug, "parent_id": parent_id})
        return Tag(id=cursor.lastrowid, name=name, slug=slug, parent_id=parent_id)

    def assign_tag(self, record_id: int, tag_id: int) -> None:
        self.conn.execute(
            "INSERT OR IGNORE INTO discussion_tags (discussion_id, tag_id) VALUES (?, ?)",
            (record_id, tag_id),
        )

    def list_tags(self) -> list[Tag]:
        rows = self.conn.execute("SELECT id, name, slug, parent_id FROM tags ORDER BY id").fetchall()
        return [
            Tag(id=row["id"], name=row["name"], slug=row["slug"], parent_id=row["parent_id"])
            for row in rows
        ]


def _to_stored(row: sqlite3.Row) -> StoredDiscussion:
    return StoredDiscussion(
        id=row["id"],
        title=row["title"],
        body=row["body"],
        status=row["status"],
        created_at=row["created_at"],
        url=row["url"],
        repository=row["repository"],
    )


class DiscussionStore:
    """Write path from mapped records to the content repository.

    Always inserts. Each record is written in its own transaction: the
    record row, its source URL metadata and its repository tag either all
    land or none do.
    """

    def __init__(self, repository: ContentRepository) -> None:
        self.repository = repository

    def store(
        self,
        record: DiscussionRecord,
        source_repository: str,
        organization: str | None = None,
    ) -> int:
        """Insert one discussion record.

        Args:
            record: Mapped, sanitized discussion
            source_repository: Repository name used as the record's tag
            organization: Optional organization, parent of the repository tag

        Returns:
            New record id

        Raises:
            PersistError: If the record could not be created
        """
        conn = self.repository.conn
        try:
            record_id = self.repository.insert_record(record.title, record.body)
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistError(f"Failed to insert discussion '{record.title}': {e}") from e

        try:
            self.repository.set_meta(record_id, SOURCE_URL_META_KEY, record.url)
            parent_id = None
            if organization:
                parent_id = self.repository.get_or_create_tag(organization).id
            tag = self.repository.get_or_create_tag(source_repository, parent_id=parent_id)
            self.repository.assign_tag(record_id, tag.id)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistError(
                f"Failed to attach metadata to discussion '{record.title}': {e}"
            ) from e
        return record_id
