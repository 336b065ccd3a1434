"""Data models for mirrored discussions and pipeline runs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import FetchError, MapError, MirrorError

__all__ = [
    "DiscussionRecord",
    "DiscussionSummary",
    "RepoFailure",
    "RepoState",
    "RunSummary",
    "StoredDiscussion",
    "Tag",
]


@dataclass(frozen=True)
class DiscussionRecord:
    """A normalized discussion ready to be persisted.

    Attributes:
        title: Sanitized single-line title
        body: Sanitized plain-text body (may be empty)
        url: Canonical GitHub URL, stored as auxiliary metadata
    """

    title: str
    body: str
    url: str


@dataclass(frozen=True)
class DiscussionSummary:
    """One node of the cross-repository summary query."""

    title: str
    url: str
    id: str | None = None
    content: str | None = None
    repositories: tuple[str, ...] = ()


@dataclass(frozen=True)
class Tag:
    """Hierarchical category; repository tags sit under their organization tag."""

    id: int
    name: str
    slug: str
    parent_id: int | None = None


@dataclass(frozen=True)
class StoredDiscussion:
    """A discussion record as read back from the content repository."""

    id: int
    title: str
    body: str
    status: str
    created_at: str
    url: str | None = None
    repository: str | None = None


class RepoState(str, Enum):
    """Per-repository pipeline state.

    pending -> queried -> mapped -> (partially_stored | fully_stored),
    or failed from any step before storage.
    """

    PENDING = "pending"
    QUERIED = "queried"
    MAPPED = "mapped"
    PARTIALLY_STORED = "partially_stored"
    FULLY_STORED = "fully_stored"
    FAILED = "failed"


@dataclass(frozen=True)
class RepoFailure:
    """A repository whose query, fetch or mapping step failed."""

    repository: str
    error: FetchError | MapError | MirrorError

    @property
    def kind(self) -> str:
        return getattr(self.error, "kind", type(self.error).__name__)


@dataclass
class RunSummary:
    """Result of one pipeline run.

    Attributes:
        attempted: Records handed to persistence
        stored: Records successfully inserted
        failed_repos: Repositories that failed before persistence
        persist_errors: Records that could not be inserted
        repositories: Final state per repository
        skipped_locked: True when another run held the run lock
        duration_seconds: Wall-clock duration of the run
    """

    attempted: int = 0
    stored: int = 0
    failed_repos: list[RepoFailure] = field(default_factory=list)
    persist_errors: int = 0
    repositories: dict[str, RepoState] = field(default_factory=dict)
    skipped_locked: bool = False
    duration_seconds: float = 0.0

    @property
    def repositories_attempted(self) -> int:
        return len(self.repositories)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for metrics and logging."""
        return {
            "attempted": self.attempted,
            "stored": self.stored,
            "persist_errors": self.persist_errors,
            "repositories_attempted": self.repositories_attempted,
            "failed_repos": [
                {"repository": f.repository, "kind": f.kind, "error": str(f.error)}
                for f in self.failed_repos
            ],
            "repositories": {name: state.value for name, state in self.repositories.items()},
            "skipped_locked": self.skipped_locked,
            "duration_seconds": round(self.duration_seconds, 2),
        }
